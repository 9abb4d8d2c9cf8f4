"""
Row-level read and write operations for the fingerprint cache.
"""

from __future__ import annotations

import sqlite3
from typing import Iterable, Iterator

from ..models import FileIdentity, Fingerprint
from .schema import SCHEMA_VERSION, read_schema_version


class CacheFormatError(ValueError):
    """Raised when a cache database exists but has an unexpected structure."""


_ROW_TYPES = {
    'path': str,
    'file_size': int,
    'mtime_ns': int,
    'algorithm': str,
    'bit_length': int,
    'bits': bytes,
}


def row_to_entry(row: sqlite3.Row) -> tuple[FileIdentity, Fingerprint]:
    """
    Convert database row to a cache entry.

    Raises:
        CacheFormatError: If a column is NULL or holds the wrong storage type
        ValueError: If the stored bits do not match the stored bit length
    """
    for column, expected in _ROW_TYPES.items():
        value = row[column]
        if not isinstance(value, expected):
            raise CacheFormatError(
                f"malformed row: column {column} holds {type(value).__name__}, "
                f"expected {expected.__name__}"
            )

    identity = FileIdentity(
        path=row['path'],
        size=row['file_size'],
        mtime_ns=row['mtime_ns'],
    )
    fingerprint = Fingerprint(
        algorithm=row['algorithm'],
        bits=row['bits'],
        bit_length=row['bit_length'],
    )
    return identity, fingerprint


def read_entries(conn: sqlite3.Connection) -> Iterator[tuple[FileIdentity, Fingerprint]]:
    """
    Read every entry of a cache database.

    Raises:
        CacheFormatError: If the schema version is missing or unknown
        sqlite3.DatabaseError: If the file is not a valid database
        ValueError: If a row is malformed
    """
    version = read_schema_version(conn)
    if version != SCHEMA_VERSION:
        raise CacheFormatError(
            f"unsupported cache schema version {version} (expected {SCHEMA_VERSION})"
        )

    for row in conn.execute(
        "SELECT path, file_size, mtime_ns, algorithm, bit_length, bits FROM fingerprints"
    ):
        yield row_to_entry(row)


def write_entries(
    conn: sqlite3.Connection,
    entries: Iterable[tuple[FileIdentity, Fingerprint]],
) -> int:
    """
    Insert entries into the fingerprint table.

    Returns:
        Number of rows written
    """
    rows = [
        (
            identity.path, identity.size, identity.mtime_ns,
            fingerprint.algorithm, fingerprint.bit_length, fingerprint.bits,
        )
        for identity, fingerprint in entries
    ]
    conn.executemany("""
        INSERT OR REPLACE INTO fingerprints (
            path, file_size, mtime_ns, algorithm, bit_length, bits
        ) VALUES (?, ?, ?, ?, ?, ?)
    """, rows)
    return len(rows)


__all__ = ['CacheFormatError', 'row_to_entry', 'read_entries', 'write_entries']
