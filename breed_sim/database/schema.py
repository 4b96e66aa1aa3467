"""Database schema for the breeding-history store."""

import sqlite3

from ..exceptions import DatabaseError


def create_schema(conn: sqlite3.Connection) -> None:
    """
    Create the breeding-history tables and indexes.

    Args:
        conn: SQLite database connection

    Raises:
        DatabaseError: If schema creation fails
    """
    try:
        cursor = conn.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")

        # One row per finalized (or cancelled) breeding session
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS breeding_sessions (
                session_id TEXT PRIMARY KEY,
                request_id TEXT NULL,
                parent1_id TEXT NOT NULL,
                parent2_id TEXT NOT NULL,
                game_type TEXT NOT NULL,
                difficulty TEXT NULL,
                seed INTEGER NOT NULL,
                status TEXT NOT NULL CHECK(status IN ('completed', 'failed', 'cancelled', 'rejected')),
                success INTEGER NOT NULL CHECK(success IN (0, 1)),
                final_score REAL NOT NULL,
                final_success_chance REAL NOT NULL CHECK(final_success_chance >= 0 AND final_success_chance <= 1),
                offspring_count INTEGER NOT NULL CHECK(offspring_count >= 0),
                bonus_traits_earned INTEGER NOT NULL CHECK(bonus_traits_earned IN (0, 1)),
                perfect_breeding INTEGER NOT NULL CHECK(perfect_breeding IN (0, 1)),
                experience_gained INTEGER NOT NULL DEFAULT 0,
                config TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS offspring (
                creature_id TEXT PRIMARY KEY,
                session_id TEXT NOT NULL,
                species_id TEXT NOT NULL,
                strength INTEGER NOT NULL CHECK(strength >= 0 AND strength <= 100),
                vitality INTEGER NOT NULL CHECK(vitality >= 0 AND vitality <= 100),
                agility INTEGER NOT NULL CHECK(agility >= 0 AND agility <= 100),
                intelligence INTEGER NOT NULL CHECK(intelligence >= 0 AND intelligence <= 100),
                adaptability INTEGER NOT NULL CHECK(adaptability >= 0 AND adaptability <= 100),
                social INTEGER NOT NULL CHECK(social >= 0 AND social <= 100),
                special_markers INTEGER NOT NULL CHECK(special_markers >= 0 AND special_markers < 256),
                genome_id TEXT NULL,
                generation INTEGER NULL CHECK(generation IS NULL OR generation >= 1),
                FOREIGN KEY (session_id) REFERENCES breeding_sessions(session_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sessions_parents ON breeding_sessions(parent1_id, parent2_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sessions_status ON breeding_sessions(status)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_offspring_session ON offspring(session_id)")

        conn.commit()

    except sqlite3.Error as e:
        conn.rollback()
        raise DatabaseError(f"Failed to create database schema: {e}") from e


def drop_schema(conn: sqlite3.Connection) -> None:
    """
    Drop all history tables (for testing/cleanup).

    Args:
        conn: SQLite database connection
    """
    cursor = conn.cursor()
    for table in ('offspring', 'breeding_sessions'):
        cursor.execute(f"DROP TABLE IF EXISTS {table}")
    conn.commit()
