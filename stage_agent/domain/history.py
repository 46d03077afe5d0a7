"""Bounded in-memory action history."""

from collections import deque
from typing import Deque, List

from stage_agent.domain.models import AgenticAction


class ActionHistory:
    """Ring buffer of dispatched actions; oldest entries are evicted first."""

    def __init__(self, limit: int = 100):
        if limit < 1:
            raise ValueError(f"history limit must be positive, got {limit}")
        self._items: Deque[AgenticAction] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._items.maxlen or 0

    def append(self, action: AgenticAction) -> None:
        self._items.append(action)

    def entries(self) -> List[AgenticAction]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
