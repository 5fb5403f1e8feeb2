"""
Unit tests for outcome updates (confidence EMA and weight decay/growth).
"""

import random
from datetime import datetime, timezone

import pytest

from dojo_core.mastery import Direction, EngineConfig, WeightRecord, apply_outcome, initialize_default_record
from dojo_core.mastery.updates import update_confidence, update_weight


NOW = datetime(2026, 10, 18, tzinfo=timezone.utc)


class TestWeightUpdate:

    def test_correct_shrinks_weight(self, config):
        assert update_weight(1.0, True, config) == pytest.approx(0.55)

    def test_incorrect_grows_weight(self, config):
        assert update_weight(1.0, False, config) == pytest.approx(1.8)

    def test_repeated_correct_is_monotonic_until_floor(self, config):
        record = initialize_default_record(config)
        previous = record.weight
        for _ in range(20):
            apply_outcome("kana:あ", record, Direction.FORWARD, True, config, NOW)
            assert record.weight <= previous
            if previous > config.min_weight:
                assert record.weight < previous
            previous = record.weight
        assert record.weight == config.min_weight

    def test_repeated_incorrect_is_monotonic_until_ceiling(self, config):
        record = initialize_default_record(config)
        previous = record.weight
        for _ in range(20):
            apply_outcome("kana:あ", record, Direction.REVERSE, False, config, NOW)
            assert record.weight >= previous
            if previous < config.max_weight:
                assert record.weight > previous
            previous = record.weight
        assert record.weight == config.max_weight

    def test_weight_stays_in_bounds_for_random_sequences(self, config):
        rng = random.Random(5)
        record = initialize_default_record(config)
        for _ in range(500):
            direction = rng.choice([Direction.FORWARD, Direction.REVERSE])
            apply_outcome("kanji:木", record, direction, rng.random() < 0.5, config, NOW)
            assert config.min_weight <= record.weight <= config.max_weight
            assert 0.0 <= record.forward_confidence <= 1.0
            assert 0.0 <= record.reverse_confidence <= 1.0
            assert record.correct_attempts <= record.total_attempts


class TestConfidenceUpdate:

    def test_ema_toward_outcome(self):
        assert update_confidence(0.5, True, 0.3) == pytest.approx(0.65)
        assert update_confidence(0.5, False, 0.3) == pytest.approx(0.35)

    @pytest.mark.parametrize("start", [0.0, 0.25, 1.0])
    @pytest.mark.parametrize("correct", [True, False])
    def test_confidence_stays_in_unit_interval(self, start, correct):
        value = update_confidence(start, correct, 1.0)
        assert 0.0 <= value <= 1.0

    def test_only_used_direction_changes(self, config):
        record = initialize_default_record(config)
        apply_outcome("kana:か", record, Direction.REVERSE, True, config, NOW)
        assert record.reverse_confidence == pytest.approx(0.65)
        assert record.forward_confidence == 0.5


class TestApplyOutcome:

    def test_five_misses_scenario(self, config):
        record = initialize_default_record(config)
        for _ in range(5):
            apply_outcome("kana:あ", record, Direction.FORWARD, False, config, NOW)
        assert record.weight >= 1.8
        assert record.weight <= config.max_weight
        assert record.forward_confidence < 0.5 - 0.1
        assert record.reverse_confidence == 0.5
        assert record.total_attempts == 5
        assert record.correct_attempts == 0

    def test_attempt_counters_and_timestamp(self, config):
        record = initialize_default_record(config)
        apply_outcome("kana:あ", record, Direction.FORWARD, True, config, NOW)
        apply_outcome("kana:あ", record, Direction.FORWARD, False, config, NOW)
        assert record.total_attempts == 2
        assert record.correct_attempts == 1
        assert record.last_seen_at == NOW

    def test_event_describes_change(self, config):
        record = initialize_default_record(config)
        event = apply_outcome(
            "vocabulary:taberu", record, "reverse", False, config, NOW,
            latency_ms=1800, game_mode="type"
        )
        assert event["item_id"] == "vocabulary:taberu"
        assert event["direction"] == "reverse"
        assert event["correct"] is False
        assert event["weight_before"] == 1.0
        assert event["weight_after"] == pytest.approx(1.8)
        assert event["confidence_before"] == 0.5
        assert event["confidence_after"] == pytest.approx(0.35)
        assert event["latency_ms"] == 1800
        assert event["game_mode"] == "type"
        assert event["timestamp"] == NOW

    def test_unknown_direction_rejected_without_mutation(self, config):
        record = initialize_default_record(config)
        with pytest.raises(ValueError):
            apply_outcome("kana:あ", record, "sideways", True, config, NOW)
        assert record.total_attempts == 0

    def test_custom_factors(self):
        config = EngineConfig(correct_factor=0.5, incorrect_factor=2.0, confidence_rate=0.5)
        record = WeightRecord(weight=4.0, forward_confidence=0.5, reverse_confidence=0.5)
        apply_outcome("kana:あ", record, Direction.FORWARD, True, config, NOW)
        assert record.weight == pytest.approx(2.0)
        assert record.forward_confidence == pytest.approx(0.75)
