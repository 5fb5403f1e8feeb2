"""Shared fixtures for the mastery engine tests."""

import random
from datetime import datetime, timezone

import pytest

from dojo_core.mastery import DrillEngine, EngineConfig, InMemoryAdapter, WeightStore, clear_engines


FIXED_NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolated_registry():
    clear_engines()
    yield
    clear_engines()


@pytest.fixture
def config():
    """Default constants with tiny save delays so tests stay fast."""
    return EngineConfig(save_delay_seconds=0.05, save_retry_delay_seconds=0.01)


@pytest.fixture
def store(config):
    return WeightStore(config)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def adapter():
    return InMemoryAdapter()


@pytest.fixture
def make_engine(config):
    """Factory for engines sharing the test config."""
    def _make(adapter=None, seed=42, namespace="kana"):
        return DrillEngine(
            adapter if adapter is not None else InMemoryAdapter(),
            config=config,
            namespace=namespace,
            rng=random.Random(seed),
            clock=lambda: FIXED_NOW,
        )
    return _make
