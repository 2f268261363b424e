# src/code_mentor/history.py
import logging
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from pydantic import BaseModel


logger = logging.getLogger(__name__)


class InteractionKind(str, Enum):
    REVIEW = "review"
    PR = "pr"
    REFACTOR = "refactor"
    EXPLAIN = "explain"
    FOLLOW_UP = "follow_up"


class HistoryItem(BaseModel):
    id: str
    kind: InteractionKind
    title: str
    data: Any


class HistoryStore:
    """In-memory interaction log, newest first. Lost on restart."""

    def __init__(self, limit: int = 50):
        self._items: deque[HistoryItem] = deque(maxlen=limit)

    def record(self, kind: InteractionKind, title: str, data: Any) -> HistoryItem:
        item = HistoryItem(
            id=datetime.now(timezone.utc).isoformat(),
            kind=kind,
            title=title,
            data=data,
        )
        self._items.appendleft(item)
        logger.debug(f"Recorded {kind.value} interaction: {title}")
        return item

    def items(self) -> list[HistoryItem]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
