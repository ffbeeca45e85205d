# companion_access/storage/sqlite_store.py

from __future__ import annotations

import os
import sqlite3
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from ..config import DEFAULT_SQLITE_PATH
from ..errors import StoreError
from ..logging_config import get_logger
from ..models import Companion, CompanionFields, SessionHistoryEntry

logger = get_logger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


class SqliteStore:
    """
    SQLite-backed record store for the two collections this package owns:
    `companions` and `session_history`.

    Every sqlite3 failure is logged and re-raised as StoreError. Rows that do
    not validate against the models are reported the same way.

    session_history.companion_id is not a foreign key: history
    is append-only and may keep pointing at a companion that no longer exists.
    """

    def __init__(self, path: str = DEFAULT_SQLITE_PATH) -> None:
        if path == ":memory:":
            self.path = path
        else:
            self.path = os.path.expanduser(path)
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._init_schema()

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS companions (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                subject TEXT NOT NULL,
                topic TEXT NOT NULL,
                voice TEXT NOT NULL,
                style TEXT NOT NULL,
                duration INTEGER NOT NULL CHECK (duration > 0),
                color TEXT,
                author TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS session_history (
                id TEXT PRIMARY KEY,
                companion_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_comp_author ON companions(author);")
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_hist_user_created ON session_history(user_id, created_at);"
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_hist_created ON session_history(created_at);")
        self.conn.commit()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _fetchall(self, op: str, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            cur = self.conn.cursor()
            cur.execute(sql, tuple(params))
            return cur.fetchall()
        except sqlite3.Error as e:
            logger.error("[SqliteStore.%s] query failed: %s", op, e)
            raise StoreError(f"{op} failed: {e}") from e

    def _write(self, op: str, sql: str, params: Sequence[Any]) -> None:
        try:
            cur = self.conn.cursor()
            cur.execute(sql, tuple(params))
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error("[SqliteStore.%s] write failed: %s", op, e)
            raise StoreError(f"{op} failed: {e}") from e

    @staticmethod
    def _row_to_companion(row: sqlite3.Row) -> Companion:
        try:
            return Companion(
                id=row["id"],
                name=row["name"],
                subject=row["subject"],
                topic=row["topic"],
                voice=row["voice"],
                style=row["style"],
                duration=row["duration"],
                color=row["color"],
                author=row["author"],
                created_at=row["created_at"],
            )
        except ValidationError as e:
            raise StoreError(f"malformed companion row id={row['id']!r}: {e}") from e

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> SessionHistoryEntry:
        try:
            return SessionHistoryEntry(
                id=row["id"],
                companion_id=row["companion_id"],
                user_id=row["user_id"],
                created_at=row["created_at"],
            )
        except ValidationError as e:
            raise StoreError(f"malformed session_history row id={row['id']!r}: {e}") from e

    # ------------------------------------------------------------------ #
    # companions
    # ------------------------------------------------------------------ #

    def insert_companion(self, fields: CompanionFields, author: str) -> str:
        """
        Insert a companion owned by `author` and return its new id.

        The id and created_at are assigned here. Reading the record back is
        left to the caller (get_companion), so a failed read is not mistaken
        for a failed insert.
        """
        companion_id = str(uuid4())
        self._write(
            "insert_companion",
            """
            INSERT INTO companions (
                id,
                name,
                subject,
                topic,
                voice,
                style,
                duration,
                color,
                author,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                companion_id,
                fields.name,
                fields.subject,
                fields.topic,
                fields.voice,
                fields.style,
                fields.duration,
                fields.color,
                author,
                _now_iso(),
            ),
        )
        return companion_id

    def get_companion(self, companion_id: str) -> Companion | None:
        rows = self._fetchall(
            "get_companion",
            "SELECT * FROM companions WHERE id = ? LIMIT 1;",
            (companion_id,),
        )
        if not rows:
            return None
        return self._row_to_companion(rows[0])

    def select_companions(
        self,
        where: str | None,
        params: Sequence[Any],
        limit: int,
        offset: int,
    ) -> list[Companion]:
        """
        Run a composed WHERE clause over companions with an offset window.

        No ORDER BY is applied; rows come back in the table's natural order.
        """
        sql = "SELECT * FROM companions"
        if where:
            sql += f" WHERE {where}"
        sql += " LIMIT ? OFFSET ?;"
        rows = self._fetchall("select_companions", sql, [*params, limit, offset])
        return [self._row_to_companion(r) for r in rows]

    def list_companions_by_ids(self, ids: list[str]) -> list[Companion]:
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        rows = self._fetchall(
            "list_companions_by_ids",
            f"""
            SELECT * FROM companions
            WHERE id IN ({placeholders});
            """,
            ids,
        )
        return [self._row_to_companion(r) for r in rows]

    def list_companions_by_author(self, author: str) -> list[Companion]:
        rows = self._fetchall(
            "list_companions_by_author",
            "SELECT * FROM companions WHERE author = ?;",
            (author,),
        )
        return [self._row_to_companion(r) for r in rows]

    def count_companions_by_author(self, author: str) -> int:
        rows = self._fetchall(
            "count_companions_by_author",
            "SELECT COUNT(*) AS n FROM companions WHERE author = ?;",
            (author,),
        )
        return int(rows[0]["n"])

    # ------------------------------------------------------------------ #
    # session_history
    # ------------------------------------------------------------------ #

    def insert_session(
        self,
        companion_id: str,
        user_id: str,
        created_at: str | None = None,
    ) -> SessionHistoryEntry:
        entry = SessionHistoryEntry(
            id=str(uuid4()),
            companion_id=companion_id,
            user_id=user_id,
            created_at=created_at or _now_iso(),
        )
        self._write(
            "insert_session",
            """
            INSERT INTO session_history (id, companion_id, user_id, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (entry.id, entry.companion_id, entry.user_id, entry.created_at),
        )
        return entry

    def list_recent_sessions(self, limit: int, user_id: str | None = None) -> list[SessionHistoryEntry]:
        """
        Most recent history entries first, optionally for a single user.

        Entries with the same created_at come back newest-inserted first.
        """
        if user_id is None:
            sql = """
                SELECT * FROM session_history
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?;
            """
            params: tuple[Any, ...] = (limit,)
        else:
            sql = """
                SELECT * FROM session_history
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?;
            """
            params = (user_id, limit)
        rows = self._fetchall("list_recent_sessions", sql, params)
        return [self._row_to_session(r) for r in rows]

    def close(self) -> None:
        self.conn.close()
