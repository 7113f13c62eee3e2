from __future__ import annotations

import json
import logging
import secrets
from datetime import UTC, datetime

from pydantic import TypeAdapter, ValidationError

from app.config import HISTORY_LIMIT
from app.models.history import HistoryEntryView, HistoryItem, HistoryType
from app.services.storage import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "medisage-history"

_items_adapter = TypeAdapter(list[HistoryItem])


def _new_id(now: datetime) -> str:
    return f"{now.isoformat()}-{secrets.token_hex(4)}"


class HistoryStore:
    """Bounded log of past queries, newest first, persisted under one key."""

    def __init__(self, store: KeyValueStore, limit: int = HISTORY_LIMIT) -> None:
        self._store = store
        self._limit = limit
        self._items: list[HistoryItem] = []

    async def load(self) -> None:
        raw = await self._store.get(HISTORY_KEY)
        if not raw:
            self._items = []
            return
        try:
            self._items = _items_adapter.validate_json(raw)[: self._limit]
        except (ValidationError, ValueError):
            logger.warning("Discarding malformed persisted history")
            self._items = []

    async def append(self, item_type: HistoryType, query: str | list[str]) -> HistoryItem:
        now = datetime.now(UTC)
        if isinstance(query, list):
            query = list(query)
        item = HistoryItem(id=_new_id(now), type=item_type, query=query, timestamp=now.isoformat())
        self._items = [item, *self._items][: self._limit]
        await self._persist()
        return item

    async def clear(self) -> None:
        self._items = []
        await self._persist()

    def list(self) -> list[HistoryItem]:
        return list(self._items)

    def get(self, item_id: str) -> HistoryItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def view(self) -> list[HistoryEntryView]:
        return [
            HistoryEntryView(
                id=item.id,
                type=item.type,
                label=", ".join(item.query) if isinstance(item.query, list) else item.query,
                timestamp=item.timestamp,
            )
            for item in self._items
        ]

    def __len__(self) -> int:
        return len(self._items)

    async def _persist(self) -> None:
        payload = json.dumps([item.model_dump() for item in self._items])
        await self._store.set(HISTORY_KEY, payload)
