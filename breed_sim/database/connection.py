"""Database connection management for breed_sim."""

import sqlite3
from pathlib import Path

from ..exceptions import DatabaseError


def get_db_connection(db_path: str) -> sqlite3.Connection:
    """
    Open the history database with foreign keys enabled.

    Args:
        db_path: Path to SQLite database file, or ``:memory:``

    Returns:
        SQLite connection

    Raises:
        DatabaseError: If connection fails
    """
    try:
        if db_path != ':memory:':
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn
    except (sqlite3.Error, OSError) as e:
        raise DatabaseError(f"Failed to connect to database at {db_path}: {e}") from e


def create_database(db_path: str) -> sqlite3.Connection:
    """Open the history database and make sure its tables exist."""
    from .schema import create_schema

    conn = get_db_connection(db_path)
    create_schema(conn)
    return conn
