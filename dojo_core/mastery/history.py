"""
Recent-history window used to suppress immediate repeats.

History is session-scoped and never persisted.
"""

from __future__ import annotations
from collections import deque
from typing import Iterator

from dojo_core.mastery.config import EngineConfig
from dojo_core.mastery.constants import HISTORY_MAX


class RecentHistory:
    """
    Bounded ring of the most recently drawn ItemIds (oldest first).
    """

    def __init__(self, capacity: int = HISTORY_MAX):
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self._items: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def push(self, item_id: str) -> None:
        """Append item_id, dropping the oldest entry when full."""
        if self.capacity:
            self._items.append(item_id)

    def latest(self, count: int) -> list[str]:
        """Up to `count` most recent ItemIds, newest first."""
        if count <= 0:
            return []
        return list(reversed(self._items))[:count]

    @property
    def last(self):
        return self._items[-1] if self._items else None

    def clear(self) -> None:
        self._items.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items


def exclusion_window(pool_size: int, config: EngineConfig) -> int:
    """
    Number of recent draws to exclude for a pool of the given size.

    Scales from history_min to history_max with the pool (one slot per four
    items) but never covers more than half of the other candidates, so the
    previous draw is always excluded and the next draw stays random.

    Args:
        pool_size: Number of ItemIds in the candidate pool
        config: Engine configuration

    Returns:
        Window size in [0, history_max]
    """
    if pool_size <= 1:
        return 0
    scaled = max(config.history_min, min(config.history_max, pool_size // 4))
    return min(scaled, max(1, (pool_size - 1) // 2))
