"""
SQLite-backed fingerprint cache for imagematch.

Persists perceptual fingerprints between runs so unchanged files are never
hashed twice. Entries are keyed by file path + size + mtime and by the
algorithm tag, so rewritten files and algorithm changes miss the cache.

Public API:
- HashCache: In-memory mapping with load/merge/save
- merge(): Functional form of HashCache.merge
- get_stats(): Entry counts and size of a cache file
- clear_cache(): Delete a cache file
"""

from __future__ import annotations

from .core import HashCache, merge
from .maintenance import get_stats, clear_cache
from .operations import CacheFormatError


__all__ = [
    'HashCache',
    'merge',
    'get_stats',
    'clear_cache',
    'CacheFormatError',
]
