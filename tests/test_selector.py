"""
Unit tests for the selector (weighted draw, no-repeat window, direction balancing).
"""

import random
from collections import Counter

import pytest

from dojo_core.mastery import (
    Direction,
    EmptyPool,
    EngineConfig,
    RecentHistory,
    WeightRecord,
    exclusion_window,
    select_next,
)
from dojo_core.mastery.selector import choose_direction, exclude_recent, weighted_choice


def _record(weight=1.0, forward=0.5, reverse=0.5):
    return WeightRecord(weight=weight, forward_confidence=forward, reverse_confidence=reverse)


class TestEmptyPool:

    def test_empty_pool_raises_and_leaves_store_untouched(self, store, config, rng):
        history = RecentHistory()
        with pytest.raises(EmptyPool):
            select_next(store, set(), history, config, rng)
        assert len(store) == 0
        assert len(history) == 0

    def test_weighted_choice_rejects_no_entries(self, rng):
        with pytest.raises(EmptyPool):
            weighted_choice([], rng)


class TestNoRepeat:

    @pytest.mark.parametrize("pool_size", [2, 3, 4, 5, 8, 13, 40])
    def test_never_repeats_previous_draw(self, store, config, pool_size):
        rng = random.Random(pool_size)
        pool = {f"kana:{i:02d}" for i in range(pool_size)}
        # Skewed weights make repeats likely if exclusion were broken
        for i, item_id in enumerate(sorted(pool)):
            store.get(item_id).weight = 20.0 if i == 0 else 0.05

        history = RecentHistory(config.history_max)
        previous = None
        for _ in range(300):
            draw = select_next(store, pool, history, config, rng)
            assert draw.item_id in pool
            assert draw.item_id != previous
            previous = draw.item_id

    def test_single_item_pool_repeats(self, store, config, rng):
        history = RecentHistory()
        draws = [select_next(store, {"kanji:日"}, history, config, rng).item_id for _ in range(5)]
        assert draws == ["kanji:日"] * 5

    def test_exclusion_never_empties_pool(self, config):
        history = RecentHistory(5)
        for item_id in ("a", "b"):
            history.push(item_id)
        # Window for a pool of 2 only covers the latest draw
        assert exclude_recent({"a", "b"}, history, config) == {"a"}
        # History entries outside the pool do not matter
        assert exclude_recent({"c"}, history, config) == {"c"}

    def test_history_is_bounded(self, store, config, rng):
        history = RecentHistory(3)
        pool = {f"kana:{i}" for i in range(10)}
        for _ in range(10):
            select_next(store, pool, history, config, rng)
        assert len(history) == 3


class TestExclusionWindow:

    @pytest.mark.parametrize("pool_size, expected", [
        (0, 0),
        (1, 0),
        (2, 1),
        (3, 1),
        (5, 2),
        (7, 3),
        (12, 3),
        (16, 4),
        (20, 5),
        (200, 5),
    ])
    def test_window_scales_with_pool(self, pool_size, expected):
        assert exclusion_window(pool_size, EngineConfig()) == expected


class TestWeightedDraw:

    def test_uniform_weights_give_uniform_frequencies(self, store, config):
        rng = random.Random(7)
        pool = {"A", "B", "C"}
        history = RecentHistory(config.history_max)
        counts = Counter(select_next(store, pool, history, config, rng).item_id for _ in range(1000))
        for item_id in pool:
            assert 0.28 < counts[item_id] / 1000 < 0.39

    def test_heavier_item_drawn_more_often(self, rng):
        entries = [("a", _record(weight=9.0)), ("b", _record(weight=1.0))]
        counts = Counter(weighted_choice(entries, rng) for _ in range(2000))
        assert 0.85 < counts["a"] / 2000 < 0.95

    def test_seeded_draws_are_reproducible(self, config):
        pool = {f"kana:{i}" for i in range(10)}

        def run(seed):
            from dojo_core.mastery import WeightStore
            store = WeightStore(config)
            history = RecentHistory(config.history_max)
            rng = random.Random(seed)
            return [select_next(store, pool, history, config, rng) for _ in range(20)]

        assert run(99) == run(99)

    def test_rounding_falls_back_to_last_entry(self):
        class AlmostOne:
            def random(self):
                return 1.0

        entries = [("a", _record(weight=0.1)), ("b", _record(weight=0.2))]
        assert weighted_choice(entries, AlmostOne()) == "b"


class TestDirectionBalancing:

    def test_balanced_confidence_explores_both_directions(self, config):
        rng = random.Random(3)
        record = _record(forward=0.5, reverse=0.55)
        counts = Counter(choose_direction(record, config, rng) for _ in range(2000))
        assert 0.45 < counts[Direction.FORWARD] / 2000 < 0.55

    @pytest.mark.parametrize("forward, reverse, weaker", [
        (0.2, 0.8, Direction.FORWARD),
        (0.9, 0.3, Direction.REVERSE),
    ])
    def test_weaker_direction_preferred(self, config, forward, reverse, weaker):
        rng = random.Random(11)
        record = _record(forward=forward, reverse=reverse)
        counts = Counter(choose_direction(record, config, rng) for _ in range(4000))
        assert 0.77 < counts[weaker] / 4000 < 0.83
        assert counts[weaker.opposite] > 0

    def test_probability_is_configurable(self, rng):
        config = EngineConfig(weaker_probability=1.0)
        record = _record(forward=0.1, reverse=0.9)
        assert {choose_direction(record, config, rng) for _ in range(200)} == {Direction.FORWARD}

    def test_draw_pushes_history(self, store, config, rng):
        history = RecentHistory()
        draw = select_next(store, {"kana:あ", "kana:い"}, history, config, rng)
        assert history.last == draw.item_id
        assert isinstance(draw.direction, Direction)
