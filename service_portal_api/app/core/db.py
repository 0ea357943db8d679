"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations when the document store
starts (``init_db``).  Documents are kept as JSON text in a single
``documents`` table; every collection shares that table and is told
apart by the ``collection`` column.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: document table
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS documents (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            collection TEXT NOT NULL,
            data TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 2: most reads filter by collection and kind
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection);
        CREATE INDEX IF NOT EXISTS idx_documents_kind
            ON documents(collection, json_extract(data, '$.kind'));
        """,
    ),
]


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    If ``database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


def get_connection(db_path: str) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name.  No
    type detection is enabled; values come back as they were stored.
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(db_path: str) -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection(db_path)
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def init_db(db_path: str) -> int:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new entries of
    ``MIGRATIONS``.  Returns the resulting schema version.
    """
    with get_cursor(db_path) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
    return current_version
