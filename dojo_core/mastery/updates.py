"""
Outcome Updates

Applies one answered prompt to an item's WeightRecord.

Key principles:
- Only the confidence of the direction that was asked moves (EMA)
- Correct answers shrink the weight, misses grow it, both bounded
- No persistence here; the engine schedules writes
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from dojo_core.mastery.config import EngineConfig
from dojo_core.mastery.constants import Direction
from dojo_core.mastery.records import ItemId, WeightRecord


def update_confidence(confidence: float, correct: bool, rate: float) -> float:
    """
    Exponential moving average toward the outcome.

    Formula:
        c' = c + rate * (outcome - c),  outcome = 1 if correct else 0

    Returns:
        New confidence, kept within [0, 1]
    """
    outcome = 1.0 if correct else 0.0
    updated = confidence + rate * (outcome - confidence)
    return min(1.0, max(0.0, updated))


def update_weight(weight: float, correct: bool, config: EngineConfig) -> float:
    """
    Mastery decay on success, growth on failure.

    Formula:
        correct:   w' = max(min_weight, w * correct_factor)
        incorrect: w' = min(max_weight, w * incorrect_factor)

    The result is clamped to [min_weight, max_weight] on both sides.
    """
    if correct:
        updated = weight * config.correct_factor
    else:
        updated = weight * config.incorrect_factor
    return min(config.max_weight, max(config.min_weight, updated))


def apply_outcome(
    item_id: ItemId,
    record: WeightRecord,
    direction: Direction,
    correct: bool,
    config: EngineConfig,
    timestamp: Optional[datetime] = None,
    latency_ms: Optional[int] = None,
    game_mode: Optional[str] = None
) -> dict:
    """
    Apply an answer to a record (modified in place).

    Args:
        item_id: Item that was answered
        record: Its WeightRecord
        direction: Prompt direction that was used
        correct: Whether the answer was correct
        config: Engine configuration
        timestamp: Answer time (defaults to now)
        latency_ms: Optional response time, carried in the event only
        game_mode: Optional game mode ("pick"/"type"), carried in the event only

    Returns:
        Event dict describing the state before and after the update
    """
    direction = Direction(direction)
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    weight_before = record.weight
    confidence_before = record.confidence(direction)

    record.total_attempts += 1
    if correct:
        record.correct_attempts += 1

    record.set_confidence(
        direction,
        update_confidence(confidence_before, correct, config.confidence_rate)
    )
    record.weight = update_weight(weight_before, correct, config)
    record.last_seen_at = timestamp

    return {
        'item_id': item_id,
        'direction': direction.value,
        'correct': bool(correct),
        'timestamp': timestamp,
        'latency_ms': latency_ms,
        'game_mode': game_mode,
        'weight_before': weight_before,
        'weight_after': record.weight,
        'confidence_before': confidence_before,
        'confidence_after': record.confidence(direction),
        'total_attempts': record.total_attempts,
        'correct_attempts': record.correct_attempts,
    }
