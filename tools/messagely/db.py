"""SQLite database client with an async query interface.

Every query runs on a worker thread through ``asyncio.to_thread`` so
callers can await it from an event loop. A single connection is shared
and guarded by a lock; each statement is committed on success and rolled
back on failure before the exception is re-raised unchanged.

    db = Database(".messagely/messagely.db")
    result = await db.query("SELECT * FROM users WHERE username = ?", ["alice"])
    result.rows      # [{"username": "alice", ...}]
    result.rowcount  # 1
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    username TEXT PRIMARY KEY,
    password TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    phone TEXT NOT NULL,
    join_at TEXT NOT NULL,
    last_login_at TEXT
);

CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_username TEXT NOT NULL REFERENCES users (username),
    to_username TEXT NOT NULL REFERENCES users (username),
    body TEXT NOT NULL,
    sent_at TEXT NOT NULL,
    read_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_messages_from_username ON messages (from_username);
CREATE INDEX IF NOT EXISTS idx_messages_to_username ON messages (to_username);
"""


@dataclass
class QueryResult:
    """Rows fetched by a query plus the number of rows it touched.

    Attributes:
        rows: Fetched rows as dicts keyed by column name.
        rowcount: ``len(rows)`` for statements that return rows, otherwise
            the number of rows the statement modified.
    """

    rows: List[Dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0

    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None


class Database:
    """Shared SQLite connection exposing ``await query(sql, params)``.

    Args:
        db_path: Path to the SQLite file, or ":memory:". Parent
                 directories are created automatically.
    """

    def __init__(self, db_path: str = MEMORY_DB) -> None:
        self.db_path = db_path
        self._lock = Lock()
        if db_path != MEMORY_DB:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        if db_path != MEMORY_DB:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug(f"Database opened: {db_path}")

    def _execute(self, sql: str, params: Sequence[Any]) -> QueryResult:
        with self._lock:
            try:
                cur = self._conn.execute(sql, tuple(params))
                if cur.description is not None:
                    rows = [dict(row) for row in cur.fetchall()]
                    rowcount = len(rows)
                else:
                    rows = []
                    rowcount = cur.rowcount
                self._conn.commit()
            except sqlite3.Error:
                self._conn.rollback()
                raise
        return QueryResult(rows=rows, rowcount=rowcount)

    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute one parameterized statement and return its rows."""
        return await asyncio.to_thread(self._execute, sql, params)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
        logger.debug(f"Database closed: {self.db_path}")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO-8601 timestamp; NULL stays ``None``."""
    if value is None:
        return None
    return datetime.fromisoformat(value)
