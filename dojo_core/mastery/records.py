"""
Weight Records - per-item mastery state

Defines the mastery record kept for every drillable item and the in-memory
store that owns them.

Key concepts:
- Weight: relative draw probability (higher = drawn more often)
- Forward/Reverse confidence: estimated mastery per prompt direction
- Attempts: running totals used for accuracy reporting
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Iterator, Optional, Tuple

from dojo_core.mastery.config import EngineConfig
from dojo_core.mastery.constants import Direction


ItemId = str


@dataclass
class WeightRecord:
    """
    Mastery state for a single item (kana glyph, kanji or vocabulary entry).
    """
    weight: float
    forward_confidence: float  # native script -> romaji/meaning
    reverse_confidence: float  # romaji/meaning -> native script
    total_attempts: int = 0
    correct_attempts: int = 0
    last_seen_at: Optional[datetime] = None

    def confidence(self, direction: Direction) -> float:
        """Confidence for one prompt direction."""
        if direction is Direction.FORWARD:
            return self.forward_confidence
        return self.reverse_confidence

    def set_confidence(self, direction: Direction, value: float) -> None:
        if direction is Direction.FORWARD:
            self.forward_confidence = value
        else:
            self.reverse_confidence = value

    @property
    def accuracy(self) -> Optional[float]:
        """Share of correct answers, or None if never attempted."""
        if self.total_attempts == 0:
            return None
        return self.correct_attempts / self.total_attempts

    def copy(self) -> "WeightRecord":
        return replace(self)


def initialize_default_record(config: EngineConfig) -> WeightRecord:
    """
    Create the record for an item that has never been seen.

    Args:
        config: Engine configuration supplying the defaults

    Returns:
        New WeightRecord initialized with defaults
    """
    return WeightRecord(
        weight=config.default_weight,
        forward_confidence=config.default_confidence,
        reverse_confidence=config.default_confidence,
        total_attempts=0,
        correct_attempts=0,
        last_seen_at=None,
    )


class WeightStore:
    """
    In-memory mapping from ItemId to WeightRecord.

    Records are created lazily with default values on first access. The store
    does no I/O and no locking; the engine serializes access to it.
    """

    def __init__(self, config: EngineConfig):
        self.config = config
        self._records: dict[ItemId, WeightRecord] = {}

    def get(self, item_id: ItemId) -> WeightRecord:
        """Return the record for item_id, creating a default one if absent."""
        record = self._records.get(item_id)
        if record is None:
            record = initialize_default_record(self.config)
            self._records[item_id] = record
        return record

    def peek(self, item_id: ItemId) -> Optional[WeightRecord]:
        """Return the record for item_id without creating it."""
        return self._records.get(item_id)

    def set(self, item_id: ItemId, record: WeightRecord) -> None:
        self._records[item_id] = record

    def entries(self, ids: Iterable[ItemId]) -> list[Tuple[ItemId, WeightRecord]]:
        """
        Records for a candidate pool, in ascending ItemId order.

        Missing records are created with defaults.
        """
        return [(item_id, self.get(item_id)) for item_id in sorted(set(ids))]

    def items(self) -> Iterator[Tuple[ItemId, WeightRecord]]:
        return iter(self._records.items())

    def reset_ids(self, ids: Iterable[ItemId]) -> int:
        """
        Restore the given items to default records.

        Returns:
            Number of records that existed and were reset
        """
        count = 0
        for item_id in set(ids):
            if self._records.pop(item_id, None) is not None:
                count += 1
        return count

    def clear(self) -> int:
        count = len(self._records)
        self._records.clear()
        return count

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._records
