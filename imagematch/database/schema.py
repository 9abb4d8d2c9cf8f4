"""
Database schema initialization and version checks.

The fingerprint table stores the raw bit vector and algorithm tag of every
entry explicitly, so the file format does not depend on any hashing library.
"""

from __future__ import annotations

import sqlite3


# Schema version - increment when changing table structure
SCHEMA_VERSION = 1


def initialize_schema(conn: sqlite3.Connection) -> None:
    """
    Create the cache tables in a fresh database.

    Args:
        conn: Active database connection

    Tables created:
        - meta: Schema version tracking
        - fingerprints: One row per (file identity, algorithm)
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS fingerprints (
            path TEXT NOT NULL,
            file_size INTEGER NOT NULL,
            mtime_ns INTEGER NOT NULL,
            algorithm TEXT NOT NULL,
            bit_length INTEGER NOT NULL,
            bits BLOB NOT NULL,
            PRIMARY KEY (path, file_size, mtime_ns, algorithm)
        )
    """)

    conn.execute("""
        INSERT OR REPLACE INTO meta (key, value)
        VALUES ('schema_version', ?)
    """, (str(SCHEMA_VERSION),))


def read_schema_version(conn: sqlite3.Connection) -> int:
    """
    Read the schema version of an existing database.

    Returns:
        Stored schema version, or 0 if the database has no meta table

    Raises:
        sqlite3.DatabaseError: If the file is not a SQLite database
    """
    table = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'meta'"
    ).fetchone()
    if table is None:
        return 0

    result = conn.execute(
        "SELECT value FROM meta WHERE key = 'schema_version'"
    ).fetchone()
    return int(result['value']) if result else 0


__all__ = ['SCHEMA_VERSION', 'initialize_schema', 'read_schema_version']
