"""
Pool helpers for drill screens.

A pool is the set of ItemIds the learner enabled by choosing kana groups,
kanji sets or vocabulary sets. ItemIds are namespaced by dojo so the three
domains never collide ("kana:あ", "kanji:日", "vocabulary:taberu").
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Mapping, Sequence, Tuple

logger = logging.getLogger(__name__)

SEPARATOR = ":"


class Dojo(str, Enum):
    """Drill domain; also used as the engine namespace."""
    KANA = "kana"
    KANJI = "kanji"
    VOCABULARY = "vocabulary"


class GameMode(str, Enum):
    """How the learner answers (recorded with outcomes, no effect on weights)."""
    PICK = "pick"  # Multiple choice
    TYPE = "type"  # Free text input


def make_item_id(dojo: Dojo, key: str) -> str:
    """
    Build the ItemId for an entry of a dojo.

    Args:
        dojo: Drill domain
        key: Stable key within the dojo (glyph, kanji or word id)

    Returns:
        "<dojo>:<key>"
    """
    if not key:
        raise ValueError("item key must be non-empty")
    return f"{Dojo(dojo).value}{SEPARATOR}{key}"


def split_item_id(item_id: str) -> Tuple[Dojo, str]:
    """Inverse of make_item_id."""
    dojo, sep, key = item_id.partition(SEPARATOR)
    if not sep or not key:
        raise ValueError(f"not a namespaced ItemId: {item_id!r}")
    return Dojo(dojo), key


def build_pool(
    dojo: Dojo,
    groups: Mapping[str, Sequence[str]],
    selected: Iterable[str]
) -> set[str]:
    """
    Collect the ItemIds of the selected groups.

    Args:
        dojo: Drill domain
        groups: Group name -> entry keys (kana rows, kanji sets, vocab sets)
        selected: Names of the groups the learner enabled

    Returns:
        Set of ItemIds (empty if nothing usable was selected)
    """
    pool: set[str] = set()
    for name in selected:
        keys = groups.get(name)
        if keys is None:
            logger.warning("Ignoring unknown %s group %r", Dojo(dojo).value, name)
            continue
        pool.update(make_item_id(dojo, key) for key in keys)
    return pool

