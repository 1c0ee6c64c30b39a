"""
SQLite world state and version log.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from .config import DB_PATH, DB_TIMEOUT_SEC, ensure_db_directory


@contextmanager
def get_db(db_path: str = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    # Autocommit mode: writers open their own BEGIN IMMEDIATE transaction
    conn = sqlite3.connect(db_path or DB_PATH, timeout=DB_TIMEOUT_SEC, isolation_level=None)
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = None):
    """Initialize the database with required tables."""
    ensure_db_directory(db_path)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        # Current value per key
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS world_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                version INTEGER NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        # Append-only version log, one row per committed put
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                key TEXT NOT NULL,
                version INTEGER NOT NULL,
                tx_id TEXT NOT NULL,
                ts TEXT NOT NULL,
                value TEXT NOT NULL,
                previous_hash TEXT NOT NULL,
                value_hash TEXT NOT NULL,
                UNIQUE (key, version)
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_history_key_version ON history(key, version)')


def health_check(db_path: str = None):
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            tables = cursor.fetchall()

            # Check if required tables exist
            table_names = [table[0] for table in tables]
            required_tables = ['world_state', 'history']

            return all(table in table_names for table in required_tables)
    except sqlite3.Error:
        return False
