"""SQLite message store.

Holds the archived GroupMe history with an FTS5 index and serves the same
read operations as the HTTP data service, so the viewer can run directly
against a local archive.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from dataclasses import asdict
from typing import Callable, List, Optional

from chatscope.core.errors import NotFoundError, ServiceError
from chatscope.core.models import ArchivedMessage, ConversationWindow, Message

LOGGER = logging.getLogger(__name__)

_MESSAGE_COLUMNS = "m.id, m.name, m.text, m.created_at, m.user_id"


class SQLiteMessageStore:
    """Thin SQLite wrapper that satisfies the archive and service ports."""

    def __init__(
        self,
        db_path: str,
        window_size: int = 10,
        page_size: int = 20,
        search_limit: int = 50,
    ) -> None:
        self._db_path = db_path
        self._window_size = window_size
        self._page_size = page_size
        self._search_limit = search_limit

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - messages: one row per GroupMe message, keyed by its id
        - messages_fts: external-content FTS5 index over messages
        """

        with self._connect() as conn:
            # attachments and favorited_by are stored as JSON text; nothing
            # queries into them.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    id TEXT PRIMARY KEY,
                    source_guid TEXT,
                    created_at INTEGER,
                    user_id TEXT,
                    group_id TEXT,
                    name TEXT,
                    avatar_url TEXT,
                    text TEXT,
                    system BOOLEAN,
                    attachments TEXT,
                    favorited_by TEXT
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS messages_created_at ON messages (created_at, id)"
            )
            # External content: the index stores no text of its own and reads
            # rows back from messages by rowid.
            conn.execute(
                """
                CREATE VIRTUAL TABLE IF NOT EXISTS messages_fts USING fts5(
                    id,
                    name,
                    text,
                    user_id,
                    content='messages',
                    content_rowid='rowid'
                )
                """
            )

    def save_message(self, message: ArchivedMessage) -> None:
        """Upsert a message and keep its full-text row in sync."""

        attachments = json.dumps([asdict(item) for item in message.attachments])
        favorited_by = json.dumps(message.favorited_by)
        values = (
            message.source_guid,
            message.created_at,
            message.user_id,
            message.group_id,
            message.name,
            message.avatar_url,
            message.text,
            message.system,
            attachments,
            favorited_by,
        )
        with self._connect() as conn:
            existing = conn.execute(
                "SELECT rowid, id, name, text, user_id FROM messages WHERE id = ?",
                (message.id,),
            ).fetchone()
            if existing is not None:
                # External-content FTS needs the old values to drop the old terms.
                conn.execute(
                    """
                    INSERT INTO messages_fts (messages_fts, rowid, id, name, text, user_id)
                    VALUES ('delete', ?, ?, ?, ?, ?)
                    """,
                    (existing["rowid"], existing["id"], existing["name"], existing["text"], existing["user_id"]),
                )
                conn.execute(
                    """
                    UPDATE messages SET
                        source_guid = ?, created_at = ?, user_id = ?, group_id = ?,
                        name = ?, avatar_url = ?, text = ?, system = ?,
                        attachments = ?, favorited_by = ?
                    WHERE id = ?
                    """,
                    (*values, message.id),
                )
                rowid = existing["rowid"]
            else:
                cur = conn.execute(
                    """
                    INSERT INTO messages (
                        source_guid, created_at, user_id, group_id, name,
                        avatar_url, text, system, attachments, favorited_by, id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (*values, message.id),
                )
                rowid = cur.lastrowid
            conn.execute(
                "INSERT INTO messages_fts (rowid, id, name, text, user_id) VALUES (?, ?, ?, ?, ?)",
                (rowid, message.id, message.name, message.text, message.user_id),
            )

    def count_messages(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM messages").fetchone()
        return int(row["total"])

    # Reads run in a worker thread, off the event loop. Each one opens its
    # own connection there.

    async def search(self, query: str) -> List[Message]:
        return await asyncio.to_thread(self._search, query)

    async def get_window(self, message_id: str) -> ConversationWindow:
        return await asyncio.to_thread(self._get_window, message_id)

    async def get_before(self, message_id: str) -> List[Message]:
        return await asyncio.to_thread(self._get_page, message_id, self._query_before)

    async def get_after(self, message_id: str) -> List[Message]:
        return await asyncio.to_thread(self._get_page, message_id, self._query_after)

    def _search(self, query: str) -> List[Message]:
        match = _fts_query(query)
        if not match:
            return []
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_MESSAGE_COLUMNS}
                    FROM messages_fts
                    JOIN messages m ON m.rowid = messages_fts.rowid
                    WHERE messages_fts MATCH ?
                    ORDER BY m.created_at DESC, m.id DESC
                    LIMIT ?
                    """,
                    (match, self._search_limit),
                ).fetchall()
        except sqlite3.OperationalError as exc:
            raise ServiceError(f"search failed: {exc}") from exc
        return [_row_to_message(row) for row in rows]

    def _get_window(self, message_id: str) -> ConversationWindow:
        with self._connect() as conn:
            anchor = self._get_anchor(conn, message_id)
            before = self._query_before(conn, anchor, self._window_size)
            after = self._query_after(conn, anchor, self._window_size)
        before.reverse()
        return ConversationWindow(before_messages=before, message=anchor, after_messages=after)

    def _get_page(
        self,
        message_id: str,
        query: Callable[[sqlite3.Connection, Message, int], List[Message]],
    ) -> List[Message]:
        with self._connect() as conn:
            anchor = self._get_anchor(conn, message_id)
            return query(conn, anchor, self._page_size)

    @staticmethod
    def _get_anchor(conn: sqlite3.Connection, message_id: str) -> Message:
        row = conn.execute(
            f"SELECT {_MESSAGE_COLUMNS} FROM messages m WHERE m.id = ?",
            (str(message_id),),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"message {message_id} not found")
        return _row_to_message(row)

    @staticmethod
    def _query_before(conn: sqlite3.Connection, anchor: Message, limit: int) -> List[Message]:
        """Messages strictly older than anchor, nearest first."""

        rows = conn.execute(
            f"""
            SELECT {_MESSAGE_COLUMNS} FROM messages m
            WHERE m.created_at < ? OR (m.created_at = ? AND m.id < ?)
            ORDER BY m.created_at DESC, m.id DESC
            LIMIT ?
            """,
            (anchor.created_at, anchor.created_at, anchor.id, limit),
        ).fetchall()
        return [_row_to_message(row) for row in rows]

    @staticmethod
    def _query_after(conn: sqlite3.Connection, anchor: Message, limit: int) -> List[Message]:
        """Messages strictly newer than anchor, oldest first."""

        rows = conn.execute(
            f"""
            SELECT {_MESSAGE_COLUMNS} FROM messages m
            WHERE m.created_at > ? OR (m.created_at = ? AND m.id > ?)
            ORDER BY m.created_at ASC, m.id ASC
            LIMIT ?
            """,
            (anchor.created_at, anchor.created_at, anchor.id, limit),
        ).fetchall()
        return [_row_to_message(row) for row in rows]


def _fts_query(query: str) -> Optional[str]:
    """Quote each term so user input is matched as plain words, not FTS syntax."""

    terms = [term.replace('"', '""') for term in query.split()]
    if not terms:
        return None
    return " ".join(f'"{term}"' for term in terms)


def _row_to_message(row: sqlite3.Row) -> Message:
    return Message(
        id=row["id"],
        name=row["name"] or "",
        text=row["text"] or "",
        created_at=int(row["created_at"] or 0),
        user_id=row["user_id"] or "",
    )
