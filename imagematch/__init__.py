"""
Image Match
===========
Perceptual near-duplicate image matching.

Features:
- Perceptual fingerprints (aHash, pHash, dHash) with configurable size
- Persistent SQLite fingerprint cache keyed by path, size and mtime
- Parallel, bounded hashing with cache hit/miss statistics
- Cross-folder de-duplication with one reported pair per folder pair
- First-match search of one image against a folder
- CLI for automation
"""

__version__ = "1.0.0"

from .models import (
    FileIdentity,
    Fingerprint,
    FingerprintMismatchError,
    HashResult,
    ComparisonResult,
    SearchMatch,
    DispatchStats,
    ScanSettings,
    hamming_distance,
    similarity_percent,
    max_distance_for_threshold,
)
from .config import IMAGE_EXTENSIONS, DEDUPE_THRESHOLD, SEARCH_THRESHOLD
from .scanner import (
    get_algorithm,
    compute_fingerprint,
    fingerprint_file,
    find_image_files,
    iter_fingerprints,
    compute_missing,
    collect_fingerprints,
    CrossFolderDeduplicator,
    find_cross_folder_duplicates,
    find_first_match,
)
from .database import HashCache

__all__ = [
    "FileIdentity",
    "Fingerprint",
    "FingerprintMismatchError",
    "HashResult",
    "ComparisonResult",
    "SearchMatch",
    "DispatchStats",
    "ScanSettings",
    "hamming_distance",
    "similarity_percent",
    "max_distance_for_threshold",
    "IMAGE_EXTENSIONS",
    "DEDUPE_THRESHOLD",
    "SEARCH_THRESHOLD",
    "get_algorithm",
    "compute_fingerprint",
    "fingerprint_file",
    "find_image_files",
    "iter_fingerprints",
    "compute_missing",
    "collect_fingerprints",
    "CrossFolderDeduplicator",
    "find_cross_folder_duplicates",
    "find_first_match",
    "HashCache",
]
