import aiosqlite
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class Database:
    """
    Local key-addressed blob table with an integer version per key.
    Writes are conditional on the version the caller last read.
    """

    def __init__(self, path: str):
        self.path = path

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = await aiosqlite.connect(self.path)
        await conn.execute("PRAGMA journal_mode=WAL;")
        try:
            yield conn
        finally:
            await conn.close()

    async def fetchone(self, query: str, params: tuple = ()):
        async with self.connect() as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchone()

    async def init_tables(self) -> None:
        """Initialize the blob table."""
        async with self.connect() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    content TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await conn.commit()
            logger.info("Database tables initialized")

    async def get_blob(self, key: str) -> Optional[Tuple[str, int]]:
        """Return (content, version), or None when the key has never been written."""
        row = await self.fetchone(
            "SELECT content, version FROM blobs WHERE key = ?",
            (key,)
        )
        return (row[0], row[1]) if row else None

    async def insert_blob(self, key: str, content: str) -> bool:
        """First write of a key. False if someone else created it meanwhile."""
        async with self.connect() as conn:
            try:
                await conn.execute(
                    "INSERT INTO blobs (key, content, version) VALUES (?, ?, 1)",
                    (key, content)
                )
            except aiosqlite.IntegrityError:
                return False
            await conn.commit()
            return True

    async def update_blob(self, key: str, content: str, expected_version: int) -> bool:
        """Conditional update. False if the stored version moved on."""
        async with self.connect() as conn:
            cursor = await conn.execute(
                """
                UPDATE blobs
                SET content = ?, version = version + 1, updated_at = CURRENT_TIMESTAMP
                WHERE key = ? AND version = ?
                """,
                (content, key, expected_version)
            )
            await conn.commit()
            return cursor.rowcount == 1
