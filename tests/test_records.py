"""
Unit tests for WeightRecord and WeightStore.
"""

from dojo_core.mastery import Direction, EngineConfig, WeightRecord, WeightStore, initialize_default_record


class TestDefaults:
    """Default record values."""

    def test_default_record_values(self, config):
        record = initialize_default_record(config)
        assert record.weight == 1.0
        assert record.forward_confidence == 0.5
        assert record.reverse_confidence == 0.5
        assert record.total_attempts == 0
        assert record.correct_attempts == 0
        assert record.last_seen_at is None

    def test_defaults_follow_config(self):
        config = EngineConfig(default_weight=2.0, default_confidence=0.3)
        record = initialize_default_record(config)
        assert record.weight == 2.0
        assert record.forward_confidence == 0.3
        assert record.reverse_confidence == 0.3

    def test_accuracy(self):
        record = WeightRecord(weight=1.0, forward_confidence=0.5, reverse_confidence=0.5)
        assert record.accuracy is None
        record.total_attempts = 4
        record.correct_attempts = 3
        assert record.accuracy == 0.75

    def test_confidence_by_direction(self):
        record = WeightRecord(weight=1.0, forward_confidence=0.2, reverse_confidence=0.9)
        assert record.confidence(Direction.FORWARD) == 0.2
        assert record.confidence(Direction.REVERSE) == 0.9
        record.set_confidence(Direction.REVERSE, 0.4)
        assert record.reverse_confidence == 0.4
        assert record.forward_confidence == 0.2


class TestWeightStore:
    """In-memory store behaviour."""

    def test_get_creates_default_lazily(self, store):
        assert "kana:あ" not in store
        record = store.get("kana:あ")
        assert "kana:あ" in store
        assert record.weight == 1.0
        assert store.get("kana:あ") is record

    def test_peek_does_not_create(self, store):
        assert store.peek("kana:い") is None
        assert len(store) == 0

    def test_set_replaces_record(self, store):
        record = WeightRecord(weight=3.0, forward_confidence=0.1, reverse_confidence=0.2)
        store.set("kanji:日", record)
        assert store.get("kanji:日") is record

    def test_entries_sorted_and_restricted_to_pool(self, store):
        store.get("kana:z")
        entries = store.entries({"kana:c", "kana:a", "kana:b"})
        assert [item_id for item_id, _ in entries] == ["kana:a", "kana:b", "kana:c"]
        assert "kana:z" not in [item_id for item_id, _ in entries]

    def test_reset_ids_and_clear(self, store):
        for key in ("a", "b", "c"):
            store.get(f"kana:{key}").weight = 5.0
        assert store.reset_ids({"kana:a", "kana:missing"}) == 1
        assert store.get("kana:a").weight == 1.0
        assert store.get("kana:b").weight == 5.0
        assert store.clear() == 3
        assert len(store) == 0

    def test_copy_is_independent(self):
        record = WeightRecord(weight=1.0, forward_confidence=0.5, reverse_confidence=0.5)
        clone = record.copy()
        clone.weight = 9.0
        assert record.weight == 1.0
