"""
Scanner package for imagematch.

Provides fingerprint computation, cached parallel dispatch, and the two
comparison strategies: cross-folder de-duplication and single-query search.

Public API:
- find_image_files / iter_image_files: Discover image files in directories
- get_algorithm: Look up a perceptual hash algorithm
- compute_fingerprint: Fingerprint a decoded image or its bytes
- fingerprint_file: Fingerprint an image file
- iter_fingerprints / compute_missing / collect_fingerprints: Cached,
  parallel fingerprint computation
- CrossFolderDeduplicator / find_cross_folder_duplicates: Folder-gated
  all-pairs de-duplication
- find_first_match: First-match search of one query against a corpus
- has_heif_support: Check if HEIC/HEIF support is available
"""

from __future__ import annotations

from .file_discovery import find_image_files, iter_image_files
from .hashing import (
    HASH_FUNCTIONS,
    HashAlgorithm,
    get_algorithm,
    is_image_file,
    compute_fingerprint,
    fingerprint_file,
)
from .parallel import (
    resolve_workers,
    iter_fingerprints,
    compute_missing,
    collect_fingerprints,
)
from .deduplication import (
    FolderPairGate,
    CrossFolderDeduplicator,
    find_cross_folder_duplicates,
)
from .search import find_first_match

from .dependencies import HAS_HEIF_SUPPORT


def has_heif_support() -> bool:
    """Check if HEIC/HEIF support is available."""
    return HAS_HEIF_SUPPORT


__all__ = [
    # File discovery
    'find_image_files',
    'iter_image_files',
    # Hashing
    'HASH_FUNCTIONS',
    'HashAlgorithm',
    'get_algorithm',
    'is_image_file',
    'compute_fingerprint',
    'fingerprint_file',
    # Dispatch
    'resolve_workers',
    'iter_fingerprints',
    'compute_missing',
    'collect_fingerprints',
    # Comparison
    'FolderPairGate',
    'CrossFolderDeduplicator',
    'find_cross_folder_duplicates',
    'find_first_match',
    # Feature detection
    'has_heif_support',
]
