"""
Unit tests for fingerprint computation.
"""

import io

import pytest
from imagematch.scanner import (
    compute_fingerprint,
    fingerprint_file,
    get_algorithm,
    is_image_file,
)
from conftest import make_pattern_image


class TestGetAlgorithm:
    """Test get_algorithm lookup."""

    @pytest.mark.parametrize("name", ['ahash', 'phash', 'dhash'])
    def test_known_algorithms(self, name):
        algorithm = get_algorithm(name)
        assert algorithm.tag == f"{name}-8"
        assert algorithm.bit_length == 64

    def test_case_insensitive(self):
        assert get_algorithm('PHASH').name == 'phash'

    def test_hash_size(self):
        assert get_algorithm('phash', 16).bit_length == 256

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unknown hash algorithm"):
            get_algorithm('sha1')

    def test_hash_size_too_small(self):
        with pytest.raises(ValueError):
            get_algorithm('ahash', 1)


class TestComputeFingerprint:
    """Test compute_fingerprint function."""

    @pytest.mark.parametrize("name", ['ahash', 'phash', 'dhash'])
    def test_deterministic(self, name):
        algorithm = get_algorithm(name)
        first = compute_fingerprint(make_pattern_image(7), algorithm)
        second = compute_fingerprint(make_pattern_image(7), algorithm)
        assert first is not None
        assert first == second
        assert first.algorithm == algorithm.tag
        assert first.bit_length == 64

    def test_bytes_and_image_agree(self):
        algorithm = get_algorithm('phash')
        img = make_pattern_image(11)
        buffer = io.BytesIO()
        img.save(buffer, 'PNG')
        assert compute_fingerprint(buffer.getvalue(), algorithm) == compute_fingerprint(img, algorithm)

    def test_different_images_differ(self):
        algorithm = get_algorithm('ahash')
        a = compute_fingerprint(make_pattern_image(1), algorithm)
        b = compute_fingerprint(make_pattern_image(2), algorithm)
        assert a - b > 2

    def test_bit_length_follows_hash_size(self):
        result = compute_fingerprint(make_pattern_image(5, size=128), get_algorithm('ahash', 16))
        assert result.bit_length == 256
        assert len(result.bits) == 32

    def test_corrupt_bytes_give_no_hash(self):
        assert compute_fingerprint(b"definitely not an image", get_algorithm('phash')) is None

    def test_input_not_mutated(self):
        img = make_pattern_image(3, mode='RGBA')
        before = img.tobytes()
        compute_fingerprint(img, get_algorithm('phash'))
        assert img.mode == 'RGBA'
        assert img.tobytes() == before


class TestFingerprintFile:
    """Test fingerprint_file function."""

    def test_png_file(self, image_factory):
        path = image_factory('img.png', seed=4)
        assert fingerprint_file(path, get_algorithm('phash')) == compute_fingerprint(
            make_pattern_image(4), get_algorithm('phash')
        )

    def test_corrupted_file(self, temp_dir):
        path = temp_dir / "broken.jpg"
        path.write_text("not an image")
        assert fingerprint_file(path, get_algorithm('ahash')) is None

    def test_nonexistent_file(self):
        assert fingerprint_file("/nonexistent/image.png", get_algorithm('ahash')) is None


class TestIsImageFile:
    """Test is_image_file extension check."""

    @pytest.mark.parametrize("name", ['a.jpg', 'b.JPEG', 'c.png', 'd.webp', 'e.heic'])
    def test_image_extensions(self, name):
        assert is_image_file(name)

    @pytest.mark.parametrize("name", ['notes.txt', '.image_hashes.db', 'archive.zip', 'noext'])
    def test_other_extensions(self, name):
        assert not is_image_file(name)
