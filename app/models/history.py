from typing import Literal

from pydantic import BaseModel, ConfigDict

HistoryType = Literal["info", "interaction", "document"]


class HistoryItem(BaseModel):
    """A recorded past query. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: HistoryType
    query: str | list[str]
    timestamp: str


class HistoryEntryView(BaseModel):
    """History item as rendered in the navigation sidebar."""

    id: str
    type: HistoryType
    label: str
    timestamp: str
