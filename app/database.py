from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import aiosqlite

from app.config import DATABASE_PATH

logger = logging.getLogger(__name__)


@dataclass
class SQLiteAdapter:
    conn: aiosqlite.Connection

    async def execute(self, query: str, params: Sequence | None = None) -> None:
        await self.conn.execute(query, params or ())

    async def fetch_one(self, query: str, params: Sequence | None = None):
        cursor = await self.conn.execute(query, params or ())
        return await cursor.fetchone()

    async def commit(self) -> None:
        await self.conn.commit()

    async def close(self) -> None:
        await self.conn.close()

    async def executescript(self, script: str) -> None:
        await self.conn.executescript(script)


_db: SQLiteAdapter | None = None


async def get_db() -> SQLiteAdapter:
    global _db
    if _db is None:
        conn = await aiosqlite.connect(DATABASE_PATH)
        conn.row_factory = aiosqlite.Row
        _db = SQLiteAdapter(conn)
        logger.info("Connected to SQLite database at %s", DATABASE_PATH)
    return _db


SQLITE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS kv_store (
        scope TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT (datetime('now')),
        PRIMARY KEY (scope, key)
    );
"""


async def init_db() -> None:
    db = await get_db()
    await db.executescript(SQLITE_SCHEMA)
    await db.commit()


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None
