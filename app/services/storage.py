"""Key-value persistence for per-profile browser state."""

import logging
from typing import Protocol

from app.database import get_db

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store, used when no database is wanted (tests, previews)."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class DatabaseKeyValueStore:
    """SQLite-backed store; every key lives under one profile ``scope``."""

    def __init__(self, scope: str) -> None:
        self.scope = scope

    async def get(self, key: str) -> str | None:
        db = await get_db()
        row = await db.fetch_one(
            "SELECT value FROM kv_store WHERE scope = ? AND key = ?",
            (self.scope, key),
        )
        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        db = await get_db()
        await db.execute(
            "INSERT INTO kv_store (scope, key, value, updated_at) VALUES (?, ?, ?, datetime('now')) "
            "ON CONFLICT(scope, key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
            (self.scope, key, value),
        )
        await db.commit()

    async def delete(self, key: str) -> None:
        db = await get_db()
        await db.execute(
            "DELETE FROM kv_store WHERE scope = ? AND key = ?",
            (self.scope, key),
        )
        await db.commit()
        logger.debug("Deleted %s for scope %s", key, self.scope)
