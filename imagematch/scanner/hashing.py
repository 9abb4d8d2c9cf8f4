"""
Hashing module for the scanner package.

Computes perceptual fingerprints from decoded image content. All functions
are pure: no shared state, no references kept to the input image, and a
failure to decode or hash yields None (NoHash) rather than an exception.
"""

from __future__ import annotations

import io
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from ..config import IMAGE_EXTENSIONS, DEFAULT_HASH_SIZE
from ..models import Fingerprint
from .dependencies import Image, imagehash, _logger


# Hash functions by algorithm name. Each takes (image, hash_size) and
# returns an imagehash.ImageHash holding a hash_size x hash_size bool matrix.
HASH_FUNCTIONS: dict[str, Callable] = {
    'ahash': imagehash.average_hash,
    'phash': imagehash.phash,
    'dhash': imagehash.dhash,
}


@dataclass(frozen=True)
class HashAlgorithm:
    """
    A perceptual hash function and its size.

    Attributes:
        name: Key into HASH_FUNCTIONS
        hash_size: Side of the hash matrix
    """
    name: str
    hash_size: int = DEFAULT_HASH_SIZE

    @property
    def tag(self) -> str:
        """Tag stored with every fingerprint this algorithm produces."""
        return f"{self.name}-{self.hash_size}"

    @property
    def bit_length(self) -> int:
        return self.hash_size * self.hash_size

    def __call__(self, image: Image.Image):
        return HASH_FUNCTIONS[self.name](image, hash_size=self.hash_size)


def get_algorithm(name: str, hash_size: int = DEFAULT_HASH_SIZE) -> HashAlgorithm:
    """
    Look up a hash algorithm by name.

    Args:
        name: 'ahash', 'phash' or 'dhash'
        hash_size: Side of the hash matrix (fingerprints have hash_size**2 bits)

    Returns:
        HashAlgorithm instance

    Raises:
        ValueError: If the name is unknown or hash_size is below 2
    """
    key = name.lower()
    if key not in HASH_FUNCTIONS:
        raise ValueError(
            f"Unknown hash algorithm: {name}. Use one of: {', '.join(sorted(HASH_FUNCTIONS))}"
        )
    if hash_size < 2:
        raise ValueError(f"hash_size must be at least 2, got {hash_size}")
    return HashAlgorithm(name=key, hash_size=hash_size)


def is_image_file(filepath: str | Path) -> bool:
    """Check whether a path has a supported image extension."""
    return os.path.splitext(str(filepath))[1].lower() in IMAGE_EXTENSIONS


def compute_fingerprint(
    image: Union[Image.Image, bytes, bytearray],
    algorithm: HashAlgorithm,
) -> Optional[Fingerprint]:
    """
    Calculate the perceptual fingerprint of decoded image content.

    Args:
        image: A PIL image, or the encoded bytes of an image
        algorithm: Hash algorithm to apply

    Returns:
        Fingerprint, or None if the content cannot be decoded or hashed
    """
    if isinstance(image, (bytes, bytearray)):
        try:
            with Image.open(io.BytesIO(image)) as img:
                img.load()
                return compute_fingerprint(img, algorithm)
        except Exception as e:
            _logger.debug(f"Could not decode image bytes: {e}")
            return None

    try:
        # convert() returns a copy, so the caller's image is never modified
        if image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')
        image_hash = algorithm(image)
        return Fingerprint.from_bool_array(algorithm.tag, image_hash.hash)
    except Exception as e:
        _logger.debug(f"{algorithm.tag} hash failed: {e}")
        return None


def fingerprint_file(filepath: str | Path, algorithm: HashAlgorithm) -> Optional[Fingerprint]:
    """
    Calculate the perceptual fingerprint of an image file.

    Args:
        filepath: Path to the image
        algorithm: Hash algorithm to apply

    Returns:
        Fingerprint, or None if the file cannot be opened, decoded or hashed
    """
    try:
        with Image.open(filepath) as img:
            # Force load to detect truncated/corrupt images early
            img.load()
            fingerprint = compute_fingerprint(img, algorithm)
    except Exception as e:
        _logger.debug(f"Could not decode {filepath}: {e}")
        return None

    if fingerprint is None:
        _logger.debug(f"No fingerprint for {filepath}")
    return fingerprint


__all__ = [
    'HASH_FUNCTIONS',
    'HashAlgorithm',
    'get_algorithm',
    'is_image_file',
    'compute_fingerprint',
    'fingerprint_file',
]
