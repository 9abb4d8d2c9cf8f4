"""
HashCache: in-memory fingerprint mapping persisted to SQLite.

The cache is loaded once at process start, grown by the dispatcher's merge
step, and saved once at process end. Loading never fails the run: a missing
file yields an empty cache, and an unreadable or corrupt one is reported and
replaced by an empty cache.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from typing import Iterable, Iterator, Optional

from ..models import FileIdentity, Fingerprint
from .connection import CacheDatabase
from .operations import read_entries, write_entries
from .schema import initialize_schema


logger = logging.getLogger(__name__)

CacheKey = tuple[FileIdentity, str]


class HashCache:
    """
    Mapping of (FileIdentity, algorithm tag) to Fingerprint.

    Entries are only ever added through merge(), where an existing entry
    always wins, so every identity is hashed at most once per cache lifetime.

    Usage:
        cache = HashCache.load(db_path)
        cache.merge(new_entries)
        cache.save(db_path)
    """

    def __init__(self, entries: Optional[Iterable[tuple[FileIdentity, Fingerprint]]] = None):
        self._entries: dict[CacheKey, Fingerprint] = {}
        if entries is not None:
            self.merge(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __eq__(self, other) -> bool:
        if not isinstance(other, HashCache):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"HashCache({len(self._entries)} entries)"

    def get(self, identity: FileIdentity, algorithm: str) -> Optional[Fingerprint]:
        """Return the cached fingerprint of identity for algorithm, if any."""
        return self._entries.get((identity, algorithm))

    def items(self, algorithm: Optional[str] = None) -> Iterator[tuple[FileIdentity, Fingerprint]]:
        """
        Iterate over cache entries.

        Args:
            algorithm: Only yield fingerprints with this tag (all if None)
        """
        for (identity, tag), fingerprint in self._entries.items():
            if algorithm is None or tag == algorithm:
                yield identity, fingerprint

    def merge(self, entries: Iterable[tuple[FileIdentity, Fingerprint]]) -> int:
        """
        Add entries whose key is not already cached.

        Args:
            entries: (identity, fingerprint) pairs

        Returns:
            Number of entries added. Existing entries are never overwritten.
        """
        added = 0
        for identity, fingerprint in entries:
            key = (identity, fingerprint.algorithm)
            if key not in self._entries:
                self._entries[key] = fingerprint
                added += 1
        return added

    def prune_missing(self) -> int:
        """
        Remove entries whose file is gone or has changed on disk.

        Returns:
            Number of entries removed
        """
        current: dict[str, Optional[FileIdentity]] = {}
        stale = []
        for key in self._entries:
            path = key[0].path
            if path not in current:
                try:
                    current[path] = FileIdentity.from_path(path)
                except OSError:
                    current[path] = None
            if current[path] != key[0]:
                stale.append(key)

        for key in stale:
            del self._entries[key]
        return len(stale)

    @classmethod
    def load(cls, db_path: str) -> 'HashCache':
        """
        Load a cache from disk.

        Args:
            db_path: Path to the SQLite cache file

        Returns:
            Loaded cache; an empty cache if the file does not exist or
            cannot be read
        """
        if not os.path.exists(db_path):
            logger.info(f"Cache file {db_path} not found, starting fresh")
            return cls()

        try:
            with CacheDatabase(db_path).reading() as conn:
                entries = list(read_entries(conn))
        except (sqlite3.Error, ValueError, TypeError, OSError) as e:
            logger.warning(
                f"Could not read cache file {db_path} (corrupted or format changed?), "
                f"starting fresh: {e}"
            )
            return cls()

        cache = cls(entries)
        logger.info(f"Loaded {len(cache):,} fingerprints from cache: {db_path}")
        return cache

    def save(self, db_path: str) -> bool:
        """
        Write the full mapping to disk, replacing any previous cache file.

        The database is built in a temporary file next to db_path and moved
        into place, so a failed save leaves the previous file untouched.

        Args:
            db_path: Path to the SQLite cache file

        Returns:
            True if saved, False on failure (the failure is logged)
        """
        tmp_path = f"{db_path}.tmp"
        try:
            tmp_db = CacheDatabase(tmp_path)
            tmp_db.ensure_directory()
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

            with tmp_db.writing() as conn:
                initialize_schema(conn)
                written = write_entries(conn, self.items())

            os.replace(tmp_path, db_path)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Could not save cache file {db_path}: {e}")
            try:
                os.remove(tmp_path)
            except OSError as cleanup_err:
                logger.debug(f"Could not remove {tmp_path}: {cleanup_err}")
            return False

        logger.info(f"Saved {written:,} fingerprints to cache: {db_path}")
        return True


def merge(cache: HashCache, entries: Iterable[tuple[FileIdentity, Fingerprint]]) -> HashCache:
    """Merge entries into cache (existing entries win) and return the cache."""
    cache.merge(entries)
    return cache


__all__ = ['HashCache', 'merge']
