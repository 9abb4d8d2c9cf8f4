"""
Pytest configuration and shared fixtures for test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

import numpy as np
from PIL import Image

from imagematch.user_config import get_user_config


def make_pattern_image(seed: int, size: int = 64, mode: str = 'RGB') -> Image.Image:
    """
    Create a deterministic blocky noise image.

    An 8x8 grid of random gray levels is scaled up without smoothing, so
    every perceptual hash sees strong, seed-specific structure. Solid colors
    are useless here: any single-color image has an all-zero average hash.
    """
    rng = np.random.default_rng(seed)
    cells = rng.integers(0, 256, size=(8, 8), dtype=np.uint8)
    img = Image.fromarray(cells).resize((size, size), Image.NEAREST)
    return img.convert(mode)


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path_factory, monkeypatch):
    """Keep tests independent of ~/.imagematch and IMAGEMATCH_* variables."""
    for var in (
        'IMAGEMATCH_WORKERS', 'IMAGEMATCH_DEDUPE_THRESHOLD', 'IMAGEMATCH_SEARCH_THRESHOLD',
        'IMAGEMATCH_DEDUPE_ALGORITHM', 'IMAGEMATCH_SEARCH_ALGORITHM', 'IMAGEMATCH_HASH_SIZE',
        'IMAGEMATCH_CACHE_FILE', 'IMAGEMATCH_SKIP_FOLDERS',
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('IMAGEMATCH_CONFIG_DIR', str(tmp_path_factory.mktemp('config')))
    get_user_config().reload()
    yield get_user_config()
    get_user_config().reload()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir).resolve()
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def image_factory(temp_dir):
    """
    Factory writing a pattern image to a path relative to temp_dir.

    Usage:
        path = image_factory('X/a.png', seed=1)
    """
    def _make(relative_path: str, seed: int, fmt: str = 'PNG') -> str:
        path = temp_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        make_pattern_image(seed).save(path, fmt)
        return str(path)
    return _make


@pytest.fixture
def sample_corpus(temp_dir, image_factory):
    """
    Create a small corpus spread over three folders.

    Returns:
        dict with the corpus root and paths to:
        - x_a, x_b: two different images in folder X
        - y_a: copy of x_a in folder Y
        - y_b: copy of x_b in folder Y
        - z_unique: image unlike any other, in folder Z
        - z_broken: file with an image extension that cannot be decoded
    """
    root = temp_dir / "photos"
    images = {'root': root}
    images['x_a'] = image_factory('photos/X/a.png', seed=1)
    images['x_b'] = image_factory('photos/X/b.png', seed=2)
    images['y_a'] = image_factory('photos/Y/a_copy.png', seed=1)
    images['y_b'] = image_factory('photos/Y/b_copy.png', seed=2)
    images['z_unique'] = image_factory('photos/Z/unique.png', seed=3)

    broken = root / "Z" / "broken.jpg"
    broken.write_text("not an image")
    images['z_broken'] = str(broken)
    return images


@pytest.fixture
def temp_cache_db(temp_dir):
    """Path for a temporary cache database file."""
    return str(temp_dir / "test_cache.db")
