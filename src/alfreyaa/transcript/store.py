"""SQLite-backed chat transcript, read and written by the CLI."""

import asyncio
import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from .models import ChatMessage, MessageType, Sender, initial_message


class TranscriptStore:
    """Async SQLite store for the ordered list of chat turns.

    Turns keep their original position when updated, so a deployment turn
    rewritten by later progress stays where it was first shown.
    """

    def __init__(self, db_path: Path | None = None):
        """Initialize TranscriptStore.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.config/alfreyaa/history.db
        """
        if db_path is None:
            from ..config import get_config_dir

            db_path = get_config_dir() / "history.db"
        self.db_path = db_path
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create schema if not exists."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA journal_mode = WAL")
                await db.execute("""
                    CREATE TABLE IF NOT EXISTS messages (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL UNIQUE,
                        sender TEXT NOT NULL,
                        type TEXT NOT NULL,
                        text TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        payload TEXT NOT NULL
                    )
                """)
                await db.commit()

            self._initialized = True

    async def append(self, message: ChatMessage) -> None:
        """Insert a new turn at the end of the transcript."""
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO messages (id, sender, type, text, created_at, payload) VALUES (?, ?, ?, ?, ?, ?)",
                self._to_row(message),
            )
            await db.commit()

    async def upsert(self, message: ChatMessage) -> None:
        """Insert a turn, or rewrite it in place if its id already exists."""
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO messages (id, sender, type, text, created_at, payload) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    sender = excluded.sender,
                    type = excluded.type,
                    text = excluded.text,
                    payload = excluded.payload
            """,
                self._to_row(message),
            )
            await db.commit()

    async def get_message(self, message_id: str) -> ChatMessage | None:
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM messages WHERE id = ?", (message_id,)) as cursor:
                row = await cursor.fetchone()
                if row:
                    return self._row_to_message(row)
        return None

    async def list_messages(self, limit: int | None = None) -> list[ChatMessage]:
        """Return turns oldest first; an empty transcript yields the greeting."""
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            if limit is None:
                query, params = "SELECT * FROM messages ORDER BY seq", ()
            else:
                # Latest N, still oldest first
                query = "SELECT * FROM (SELECT * FROM messages ORDER BY seq DESC LIMIT ?) ORDER BY seq"
                params = (limit,)
            async with db.execute(query, params) as cursor:
                rows = await cursor.fetchall()

        if not rows:
            return [initial_message()]
        return [self._row_to_message(row) for row in rows]

    async def clear(self) -> int:
        """Delete every turn. Returns count deleted."""
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM messages")
            await db.commit()
            return cursor.rowcount

    @staticmethod
    def _to_row(message: ChatMessage) -> tuple:
        return (
            message.id,
            message.sender.value,
            message.type.value,
            message.text,
            message.created_at.isoformat(),
            json.dumps(message.payload()),
        )

    @staticmethod
    def _row_to_message(row: aiosqlite.Row) -> ChatMessage:
        """Convert DB row to ChatMessage."""
        try:
            payload = json.loads(row["payload"])
        except json.JSONDecodeError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        return ChatMessage(
            id=row["id"],
            sender=Sender(row["sender"]),
            type=MessageType(row["type"]),
            text=row["text"],
            created_at=datetime.fromisoformat(row["created_at"]),
            **payload,
        )
