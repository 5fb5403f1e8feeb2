"""
Selector - weighted item draw and prompt-direction choice

Pure selection logic over the in-memory store (no persistence calls).

Main workflow:
1. Exclude recently drawn items (unless that would empty the pool)
2. Weighted draw over the remaining candidates in ascending ItemId order
3. Choose the prompt direction from the item's per-direction confidence
4. Push the drawn item onto the recent history
"""

from __future__ import annotations
import random
from typing import Iterable, NamedTuple, Optional

from dojo_core.mastery.config import EngineConfig
from dojo_core.mastery.constants import Direction
from dojo_core.mastery.errors import EmptyPool
from dojo_core.mastery.history import RecentHistory, exclusion_window
from dojo_core.mastery.records import ItemId, WeightRecord, WeightStore


_default_rng = random.Random()


class Draw(NamedTuple):
    """The item to ask about next and the side shown as the prompt."""
    item_id: ItemId
    direction: Direction


def select_next(
    store: WeightStore,
    pool: Iterable[ItemId],
    history: RecentHistory,
    config: EngineConfig,
    rng: Optional[random.Random] = None
) -> Draw:
    """
    Draw the next item and its prompt direction.

    Args:
        store: Weight store (records are created lazily for new items)
        pool: ItemIds currently enabled by the learner's selection
        history: Recent draws; updated with the drawn item
        config: Engine configuration
        rng: Random source (defaults to the module-level generator)

    Returns:
        Draw(item_id, direction)

    Raises:
        EmptyPool: if pool is empty (the store is not touched)
    """
    rng = rng or _default_rng
    candidates = exclude_recent(pool, history, config)

    item_id = weighted_choice(store.entries(candidates), rng)
    direction = choose_direction(store.get(item_id), config, rng)

    history.push(item_id)
    return Draw(item_id, direction)


def exclude_recent(
    pool: Iterable[ItemId],
    history: RecentHistory,
    config: EngineConfig
) -> set[ItemId]:
    """
    Remove recently drawn items from the pool.

    If removing them would leave nothing to draw, the pool is returned
    unchanged for this draw only.

    Raises:
        EmptyPool: if the pool itself is empty
    """
    pool_set = set(pool)
    if not pool_set:
        raise EmptyPool("No items selected to draw from")

    window = exclusion_window(len(pool_set), config)
    remaining = pool_set.difference(history.latest(window))
    return remaining or pool_set


def weighted_choice(entries: list[tuple[ItemId, WeightRecord]], rng: random.Random) -> ItemId:
    """
    Standard cumulative-weight sampling.

    Entries must be in a stable order (the store returns them sorted by
    ItemId) so a seeded rng reproduces the same draws.

    Raises:
        EmptyPool: if entries is empty
    """
    if not entries:
        raise EmptyPool("No candidates left after history exclusion")

    total = sum(record.weight for _, record in entries)
    target = rng.random() * total

    cumulative = 0.0
    for item_id, record in entries:
        cumulative += record.weight
        if cumulative > target:
            return item_id

    # Floating-point rounding can leave target == cumulative on the last item
    return entries[-1][0]


def choose_direction(
    record: WeightRecord,
    config: EngineConfig,
    rng: random.Random
) -> Direction:
    """
    Pick the prompt direction ("Smart Reverse Mode").

    - Confidences within explore_threshold of each other: coin flip
    - Otherwise: the weaker direction with probability weaker_probability,
      the stronger one the rest of the time

    Args:
        record: Record of the drawn item
        config: Engine configuration
        rng: Random source

    Returns:
        Direction to prompt with
    """
    bias = record.reverse_confidence - record.forward_confidence
    if abs(bias) < config.explore_threshold:
        return Direction.FORWARD if rng.random() < 0.5 else Direction.REVERSE

    weaker = Direction.FORWARD if bias > 0 else Direction.REVERSE
    if rng.random() < config.weaker_probability:
        return weaker
    return weaker.opposite
