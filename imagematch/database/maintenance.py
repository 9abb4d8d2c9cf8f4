"""
Maintenance operations for the fingerprint cache file.

Provides statistics and removal of a cache file. Pruning of stale entries
works on a loaded HashCache (see HashCache.prune_missing).
"""

from __future__ import annotations

import logging
import os

from .connection import CacheDatabase


logger = logging.getLogger(__name__)


def get_stats(db_path: str) -> dict:
    """
    Get cache statistics.

    Args:
        db_path: Path to the SQLite cache file

    Returns:
        Dictionary with cache statistics:
            - total_entries: Number of cached fingerprints
            - algorithms: Entry count per algorithm tag
            - db_size_bytes: Database size in bytes
            - db_size_mb: Database size in MB
            - db_path: Path to database file
    """
    stats = {
        'total_entries': 0,
        'algorithms': {},
        'db_size_bytes': 0,
        'db_size_mb': 0,
        'db_path': db_path,
    }
    if not os.path.exists(db_path):
        return stats

    db_size = os.path.getsize(db_path)
    stats['db_size_bytes'] = db_size
    stats['db_size_mb'] = round(db_size / (1024 * 1024), 2)

    try:
        with CacheDatabase(db_path).reading() as conn:
            rows = conn.execute(
                "SELECT algorithm, COUNT(*) AS cnt FROM fingerprints GROUP BY algorithm"
            ).fetchall()
    except Exception as e:
        logger.warning(f"Failed to get cache stats: {e}")
        return stats

    stats['algorithms'] = {row['algorithm']: row['cnt'] for row in rows}
    stats['total_entries'] = sum(stats['algorithms'].values())
    return stats


def clear_cache(db_path: str) -> bool:
    """
    Delete a cache file.

    Returns:
        True if the file was removed or did not exist
    """
    try:
        if os.path.exists(db_path):
            os.remove(db_path)
        return True
    except OSError as e:
        logger.warning(f"Failed to clear cache {db_path}: {e}")
        return False


__all__ = ['get_stats', 'clear_cache']
