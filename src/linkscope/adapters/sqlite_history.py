"""SQLite history adapter.

Implements the core HistoryPort using a simple SQLite database.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from linkscope.core.models import ErrorRecord, HistoryEntry


class SQLiteHistory:
    """Thin SQLite wrapper that satisfies the HistoryPort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - posts: append-only log of every resolved posting
        - errors: append-only log of failed resolutions for diagnostics
        """

        with self._connect() as conn:
            # posts keeps one row per posting event; the earliest row for a url
            # is the "previously posted" reference. No uniqueness is enforced.
            # Fields:
            # - id: auto-increment primary key, breaks timestamp ties
            # - url: final (post-redirect) url
            # - nick: who posted it
            # - channel: where it was posted
            # - posted_at: ISO-8601 UTC timestamp
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS posts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT NOT NULL,
                    nick TEXT NOT NULL,
                    channel TEXT NOT NULL,
                    posted_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_posts_url ON posts (url)")
            # errors is never read by the pipeline; it is there for operators.
            # Fields:
            # - kind: failure kind value (timeout, bad_status, ...)
            # - status: HTTP status when one was received
            # - detail: short free-form explanation
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS errors (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    status INTEGER,
                    detail TEXT,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )

    @staticmethod
    def _to_entry(row: sqlite3.Row) -> HistoryEntry:
        return HistoryEntry(
            url=row["url"],
            nick=row["nick"],
            channel=row["channel"],
            timestamp=datetime.fromisoformat(row["posted_at"]),
        )

    def lookup(self, url: str) -> Optional[HistoryEntry]:
        """Return the earliest posting of ``url``, if any."""

        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT url, nick, channel, posted_at FROM posts
                WHERE url = ?
                ORDER BY posted_at ASC, id ASC
                LIMIT 1
                """,
                (url,),
            ).fetchone()
        return self._to_entry(row) if row else None

    def list_posts(self, url: str) -> List[HistoryEntry]:
        """Return every posting of ``url``, earliest first."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT url, nick, channel, posted_at FROM posts
                WHERE url = ?
                ORDER BY posted_at ASC, id ASC
                """,
                (url,),
            ).fetchall()
        return [self._to_entry(row) for row in rows]

    def record(self, entry: HistoryEntry) -> None:
        """Append a posting to the posts table."""

        with self._connect() as conn:
            conn.execute(
                "INSERT INTO posts (url, nick, channel, posted_at) VALUES (?, ?, ?, ?)",
                (entry.url, entry.nick, entry.channel, entry.timestamp.isoformat()),
            )

    def record_error(self, error: ErrorRecord) -> None:
        """Append a failed resolution to the errors table."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO errors (url, kind, status, detail, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (error.url, error.kind.value, error.status, error.detail, error.timestamp.isoformat()),
            )

    def count_errors(self) -> int:
        """Return the number of logged failures."""

        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM errors").fetchone()
        return int(row["total"])
