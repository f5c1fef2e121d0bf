"""Database connection helpers and schema management."""

from __future__ import annotations

import sqlite3

from .config import DB_PATH


class DatabaseManager:
    """Manage SQLite connections and schema lifecycle for the application."""

    def __init__(self, db_path: str):
        """Store the initial database path."""
        self._db_path = db_path

    def set_path(self, db_path: str) -> None:
        """Update the database path (used by tests to point to temporary files)."""
        self._db_path = db_path

    def connect(self) -> sqlite3.Connection:
        """Create a new SQLite connection returning rows addressable by column name."""
        conn_obj = sqlite3.connect(self._db_path)
        conn_obj.row_factory = sqlite3.Row
        return conn_obj

    def initialize(self) -> None:
        """Ensure all tables and indexes required by the app are present."""
        with self.connect() as connection:
            self._ensure_assessments_table(connection)
            self._ensure_indexes(connection)

    @staticmethod
    def _ensure_assessments_table(conn_obj: sqlite3.Connection) -> None:
        """Create the assessments table; rows are written once and never updated."""
        conn_obj.execute(
            """
            CREATE TABLE IF NOT EXISTS assessments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                public_id TEXT NOT NULL UNIQUE,
                source TEXT NOT NULL,
                result_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )

    @staticmethod
    def _ensure_indexes(conn_obj: sqlite3.Connection) -> None:
        conn_obj.execute(
            "CREATE INDEX IF NOT EXISTS idx_assessments_created_at ON assessments(created_at);"
        )


db_manager = DatabaseManager(DB_PATH)
