"""
Data models for imagematch.

Contains the value types shared by hashing, caching and comparison:
file identities, fingerprints, per-file hash results, comparison results
and run-scoped settings and statistics. Also holds the Hamming distance and
similarity conversions, which every comparator must reproduce exactly.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Optional

import numpy as np


class FingerprintMismatchError(ValueError):
    """Raised when comparing fingerprints of different algorithms or lengths."""


@dataclass(frozen=True)
class FileIdentity:
    """
    Identifies one version of a file on disk.

    The cache is keyed by identity rather than by path alone, so a file that
    is rewritten in place (new size or mtime) is hashed again instead of
    being served a stale fingerprint.

    Attributes:
        path: Absolute path to the file
        size: File size in bytes
        mtime_ns: Modification time in nanoseconds
    """
    path: str
    size: int
    mtime_ns: int

    @classmethod
    def from_path(cls, path: str | os.PathLike) -> 'FileIdentity':
        """
        Build the identity of a file from its current stat.

        Raises:
            OSError: If the file cannot be stat'ed
        """
        abs_path = os.path.abspath(os.fspath(path))
        stat = os.stat(abs_path)
        return cls(path=abs_path, size=stat.st_size, mtime_ns=stat.st_mtime_ns)


@dataclass(frozen=True)
class Fingerprint:
    """
    Perceptual fingerprint of an image.

    A fully owned value type: the raw bits are stored packed (big-endian bit
    order, zero padded to a whole byte) next to the tag of the algorithm that
    produced them, so the persisted form never depends on a hashing library's
    internals.

    Attributes:
        algorithm: Algorithm tag, e.g. "phash-8"
        bits: Packed bit vector
        bit_length: Number of meaningful bits in ``bits``
    """
    algorithm: str
    bits: bytes
    bit_length: int

    def __post_init__(self):
        if self.bit_length <= 0:
            raise ValueError(f"bit_length must be positive, got {self.bit_length}")
        expected = (self.bit_length + 7) // 8
        if len(self.bits) != expected:
            raise ValueError(
                f"{self.algorithm}: expected {expected} bytes for {self.bit_length} bits, "
                f"got {len(self.bits)}"
            )

    @classmethod
    def from_bool_array(cls, algorithm: str, array) -> 'Fingerprint':
        """Pack a boolean bit matrix (as produced by imagehash) into a fingerprint."""
        flat = np.asarray(array, dtype=bool).flatten()
        packed = np.packbits(flat, bitorder='big')
        return cls(algorithm=algorithm, bits=packed.tobytes(), bit_length=int(flat.size))

    @classmethod
    def from_hex(cls, algorithm: str, hex_string: str, bit_length: int) -> 'Fingerprint':
        """Create a fingerprint from its hex representation."""
        return cls(algorithm=algorithm, bits=bytes.fromhex(hex_string), bit_length=bit_length)

    def to_hex(self) -> str:
        """Return the packed bits as a hex string."""
        return self.bits.hex()

    def as_int(self) -> int:
        """Return the packed bits as an unsigned integer."""
        return int.from_bytes(self.bits, 'big')

    def is_comparable(self, other: 'Fingerprint') -> bool:
        """True if both fingerprints come from the same algorithm and length."""
        return self.algorithm == other.algorithm and self.bit_length == other.bit_length

    def __sub__(self, other: 'Fingerprint') -> int:
        return hamming_distance(self, other)

    def __str__(self) -> str:
        return self.to_hex()


def hamming_distance(a: Fingerprint, b: Fingerprint) -> int:
    """
    Count the differing bit positions between two fingerprints.

    Args:
        a: First fingerprint
        b: Second fingerprint

    Returns:
        Number of differing bits (0 for identical fingerprints)

    Raises:
        FingerprintMismatchError: If the fingerprints were produced by
            different algorithms or have different bit lengths
    """
    if not a.is_comparable(b):
        raise FingerprintMismatchError(
            f"Cannot compare {a.algorithm}/{a.bit_length} bits "
            f"with {b.algorithm}/{b.bit_length} bits"
        )
    return bin(a.as_int() ^ b.as_int()).count('1')


def similarity_percent(distance: int, bit_length: int) -> float:
    """
    Convert a Hamming distance to a similarity percentage.

    The distance is clamped to [0, bit_length], so the result is always
    within [0, 100]. Distance 0 gives 100, distance ``bit_length`` gives 0.
    """
    distance = min(max(distance, 0), bit_length)
    return 100.0 * (bit_length - distance) / bit_length


def max_distance_for_threshold(threshold: float, bit_length: int) -> int:
    """
    Convert a similarity threshold (percent) to a maximum Hamming distance.

    Uses ``floor(bit_length * (1 - threshold / 100))`` so that any distance
    less than or equal to the result can satisfy the threshold.

    Raises:
        ValueError: If threshold is outside [0, 100]
    """
    if not 0 <= threshold <= 100:
        raise ValueError(f"Threshold must be between 0 and 100, got {threshold:.2f}")
    return int(math.floor(bit_length * (1.0 - threshold / 100.0)))


@dataclass
class HashResult:
    """
    Outcome of fingerprinting one file.

    Attributes:
        path: Path as supplied by the enumerator
        identity: FileIdentity, or None if the file could not be stat'ed
        fingerprint: Computed or cached fingerprint, None for NoHash
        error: Error message if hashing raised
        cached: True if the fingerprint came from the cache
    """
    path: str
    identity: Optional[FileIdentity] = None
    fingerprint: Optional[Fingerprint] = None
    error: Optional[str] = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        """True if a fingerprint is available."""
        return self.fingerprint is not None


@dataclass(frozen=True)
class ComparisonResult:
    """A pair of files from different folders whose fingerprints match."""
    path_a: str
    path_b: str
    distance: int
    similarity: float

    def to_row(self) -> tuple[str, str, str]:
        """Return the (pathA, pathB, similarity) record written to CSV."""
        return (self.path_a, self.path_b, f"{self.similarity:.2f}%")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'path_a': self.path_a,
            'path_b': self.path_b,
            'distance': self.distance,
            'similarity': round(self.similarity, 2),
        }


@dataclass(frozen=True)
class SearchMatch:
    """
    First corpus image matching a query image.

    Attributes:
        query_path: Path of the query image
        match_path: Path of the matching candidate
        distance: Hamming distance between the two fingerprints
        similarity: Similarity percentage derived from distance
        max_distance: Distance limit derived from the threshold
        position: 1-based index of the match in the scanned candidates
    """
    query_path: str
    match_path: str
    distance: int
    similarity: float
    max_distance: int
    position: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'query_path': self.query_path,
            'match_path': self.match_path,
            'distance': self.distance,
            'similarity': round(self.similarity, 2),
        }


@dataclass
class DispatchStats:
    """Counters for one dispatcher run."""
    total_files: int = 0
    cache_hits: int = 0
    computed: int = 0
    no_hash: int = 0
    errors: int = 0

    @property
    def cache_misses(self) -> int:
        return self.total_files - self.cache_hits

    @property
    def hit_rate(self) -> float:
        """Return cache hit rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.cache_hits / self.total_files) * 100


@dataclass(frozen=True)
class ScanSettings:
    """
    Run-scoped settings passed explicitly to every component of one run.

    Attributes:
        algorithm: Hash algorithm name ('ahash', 'phash', 'dhash')
        hash_size: Hash matrix side; fingerprints have hash_size ** 2 bits
        threshold: Similarity threshold in percent
        workers: Number of hashing workers (<= 0 means one per CPU)
        cache_path: SQLite cache file, or None to run without a cache
        skip_folders: Path fragments excluded from enumeration
        show_progress: Whether to show progress bars
    """
    algorithm: str
    hash_size: int
    threshold: float
    workers: int = 0
    cache_path: Optional[str] = None
    skip_folders: tuple[str, ...] = field(default_factory=tuple)
    show_progress: bool = True
