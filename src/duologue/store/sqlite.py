"""SQLite conversation store backend.

Provides persistent chat storage using a SQLite database.
Uses aiosqlite for async access.
"""

import logging
from datetime import datetime
from pathlib import Path
from uuid import uuid4

import aiosqlite

from ..exceptions import StorageError
from .base import ConversationStore
from .models import Chat, Role, Turn, make_title, next_timestamp

logger = logging.getLogger(__name__)

_CHAT_COLUMNS = """
    c.id, c.owner_id, c.created_at, c.updated_at,
    (
        SELECT t.content FROM turns t
        WHERE t.chat_id = c.id AND t.role = 'initiator'
        ORDER BY t.seq ASC
        LIMIT 1
    ) AS first_utterance
"""


class SQLiteConversationStore(ConversationStore):
    """SQLite-backed conversation store.

    Stores chats and turns in a SQLite database file.
    Supports persistent storage across sessions.
    """

    def __init__(self, path: str | Path = "./duologue.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        if self._connection is not None:
            return
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("PRAGMA foreign_keys = ON")
            await self._create_schema()
        except (aiosqlite.Error, OSError) as e:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None
            raise StorageError(
                f"Failed to open conversation store at {self._db_path}: {e}",
                original=e
            ) from e
        logger.debug("Opened conversation store %s", self._db_path)

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS chats (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS turns (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chat_id TEXT NOT NULL,
                seq INTEGER NOT NULL,
                role TEXT NOT NULL CHECK (role IN ('initiator', 'responder')),
                content TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (chat_id) REFERENCES chats(id) ON DELETE CASCADE
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_turns_chat
            ON turns(chat_id, seq)
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_chats_owner
            ON chats(owner_id, updated_at DESC)
        """)

        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _conn(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StorageError("Conversation store is not connected")
        return self._connection

    async def create_chat(self, owner_id: str) -> str:
        conn = self._conn()
        chat_id = str(uuid4())
        now = next_timestamp(None).isoformat(timespec="microseconds")
        try:
            await conn.execute(
                "INSERT INTO chats (id, owner_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (chat_id, owner_id, now, now)
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(f"Failed to create chat: {e}", original=e) from e

        logger.debug("Created chat %s for %s", chat_id, owner_id)
        return chat_id

    async def list_chats(self, owner_id: str) -> list[Chat]:
        conn = self._conn()
        try:
            async with conn.execute(
                f"""
                SELECT {_CHAT_COLUMNS}
                FROM chats c
                WHERE c.owner_id = ?
                ORDER BY c.updated_at DESC
                """,
                (owner_id,)
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to list chats: {e}", original=e) from e

        return [self._row_to_chat(row) for row in rows]

    async def get_chat(self, chat_id: str) -> Chat | None:
        conn = self._conn()
        try:
            async with conn.execute(
                f"SELECT {_CHAT_COLUMNS} FROM chats c WHERE c.id = ?",
                (chat_id,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(
                f"Failed to load chat {chat_id}: {e}", chat_id=chat_id, original=e
            ) from e

        return self._row_to_chat(row) if row else None

    async def load_history(self, chat_id: str) -> list[Turn]:
        conn = self._conn()
        try:
            async with conn.execute(
                """
                SELECT seq, role, content, created_at
                FROM turns
                WHERE chat_id = ?
                ORDER BY created_at ASC, seq ASC
                """,
                (chat_id,)
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(
                f"Failed to load history of chat {chat_id}: {e}",
                chat_id=chat_id,
                original=e
            ) from e

        history = []
        for row in rows:
            seq, role, content, created_at = row
            history.append(Turn(
                chat_id=chat_id,
                role=Role(role),
                content=content,
                created_at=datetime.fromisoformat(created_at),
                seq=seq,
            ))
        return history

    async def append_turn(self, chat_id: str, role: Role, content: str) -> Turn:
        conn = self._conn()
        try:
            async with conn.execute(
                """
                SELECT c.updated_at,
                       (SELECT MAX(t.created_at) FROM turns t WHERE t.chat_id = c.id),
                       (SELECT COALESCE(MAX(t.seq), 0) FROM turns t WHERE t.chat_id = c.id)
                FROM chats c WHERE c.id = ?
                """,
                (chat_id,)
            ) as cursor:
                row = await cursor.fetchone()

            if row is None:
                raise StorageError(f"Chat {chat_id} does not exist", chat_id=chat_id)

            updated_at, last_turn_at, last_seq = row
            previous = datetime.fromisoformat(last_turn_at or updated_at)
            turn = Turn(
                chat_id=chat_id,
                role=Role(role),
                content=content,
                created_at=next_timestamp(previous),
                seq=last_seq + 1,
            )
            stamp = turn.created_at.isoformat(timespec="microseconds")

            await conn.execute(
                """
                INSERT INTO turns (chat_id, seq, role, content, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (chat_id, turn.seq, turn.role.value, turn.content, stamp)
            )
            # max() keeps last activity non-decreasing
            await conn.execute(
                "UPDATE chats SET updated_at = MAX(updated_at, ?) WHERE id = ?",
                (stamp, chat_id)
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(
                f"Failed to append turn to chat {chat_id}: {e}",
                chat_id=chat_id,
                original=e
            ) from e

        return turn

    async def delete_chat(self, chat_id: str) -> None:
        conn = self._conn()
        try:
            await conn.execute("DELETE FROM chats WHERE id = ?", (chat_id,))
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(
                f"Failed to delete chat {chat_id}: {e}", chat_id=chat_id, original=e
            ) from e

    @staticmethod
    def _row_to_chat(row) -> Chat:
        chat_id, owner_id, created_at, updated_at, first_utterance = row
        return Chat(
            id=chat_id,
            owner_id=owner_id,
            created_at=datetime.fromisoformat(created_at),
            updated_at=datetime.fromisoformat(updated_at),
            title=make_title(first_utterance) if first_utterance else None,
        )

    @property
    def backend_type(self) -> str:
        return "sqlite"
