"""Repository layer encapsulating raw database interactions."""

from __future__ import annotations

from typing import List, Optional
import sqlite3

from .db import DatabaseManager


class AssessmentRepository:
    """Persistence layer for completed assessment reports (insert and read only)."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def insert(self, public_id: str, source: str, result_json: str, created_at: str) -> sqlite3.Row:
        with self._db.connect() as connection:
            cursor = connection.execute(
                "INSERT INTO assessments(public_id, source, result_json, created_at) VALUES(?, ?, ?, ?)",
                (public_id, source, result_json, created_at),
            )
            return connection.execute(
                "SELECT public_id, source, result_json, created_at FROM assessments WHERE id=?",
                (cursor.lastrowid,),
            ).fetchone()

    def find_by_public_id(self, public_id: str) -> Optional[sqlite3.Row]:
        with self._db.connect() as connection:
            return connection.execute(
                "SELECT public_id, source, result_json, created_at FROM assessments WHERE public_id=?",
                (public_id,),
            ).fetchone()

    def list_recent(self, limit: int) -> List[sqlite3.Row]:
        with self._db.connect() as connection:
            return connection.execute(
                """
                SELECT public_id, source, result_json, created_at
                FROM assessments
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
