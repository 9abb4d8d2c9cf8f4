"""
SQLite access for cache files.

A cache file is only ever opened twice per run: once read-only when the cache
is loaded, and once for writing when a fresh file is built on save. Readers
open the file through a read-only URI so a load can never create or modify it.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class CacheDatabase:
    """
    One SQLite cache file on disk.

    Usage:
        db = CacheDatabase(path)
        with db.reading() as conn:
            rows = conn.execute("SELECT ...").fetchall()
        with db.writing() as conn:
            conn.executemany("INSERT ...", rows)
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)

    def ensure_directory(self) -> None:
        """Create the parent directory of the database file if needed."""
        parent = self.db_path.resolve().parent
        parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def reading(self) -> Iterator[sqlite3.Connection]:
        """
        Open the file read-only.

        Raises:
            sqlite3.OperationalError: If the file cannot be opened
        """
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def writing(self) -> Iterator[sqlite3.Connection]:
        """
        Open the file for writing inside a single transaction.

        The transaction is committed when the block exits normally and rolled
        back if it raises.
        """
        conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()


__all__ = ['CacheDatabase']
