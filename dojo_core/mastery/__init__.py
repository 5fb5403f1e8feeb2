"""
Mastery - adaptive item selection for kana, kanji and vocabulary drills

Main API for drill screens.

This package decides, on every drill round, which item the learner is asked
about and in which direction:
- Weighted draw: missed items come back sooner, mastered ones fade out
- No immediate repeats: a short recent-history window is excluded
- Smart Reverse Mode: the weaker prompt direction gets most of the practice
- Debounced persistence with graceful fallback to in-memory state

Quick start:
    from dojo_core import mastery

    engine = mastery.get_engine("kana")
    report = await engine.ensure_loaded()

    item_id, direction = engine.next(pool)
    engine.record_outcome(item_id, direction, correct=True)
"""

# Engine facade
from dojo_core.mastery.engine import (
    DrillEngine,
    EngineState,
    LoadReport,
    get_engine,
    clear_engines
)

# Algorithm pieces (for advanced usage)
from dojo_core.mastery.selector import Draw, select_next
from dojo_core.mastery.updates import apply_outcome
from dojo_core.mastery.history import RecentHistory, exclusion_window
from dojo_core.mastery.records import WeightRecord, WeightStore, initialize_default_record

# Persistence
from dojo_core.mastery.snapshot import Snapshot, RecordPayload, parse_snapshot
from dojo_core.mastery.persistence import (
    PersistenceAdapter,
    InMemoryAdapter,
    JsonFileAdapter,
    build_adapter
)

# Configuration and constants
from dojo_core.mastery.config import EngineConfig, load_config
from dojo_core.mastery.constants import Direction, SCHEMA_VERSION

# Errors
from dojo_core.mastery.errors import (
    EngineError,
    StorageUnavailable,
    Corrupt,
    EmptyPool,
    NotLoaded
)


__all__ = [
    # Engine
    "DrillEngine",
    "EngineState",
    "LoadReport",
    "get_engine",
    "clear_engines",

    # Algorithm
    "Draw",
    "select_next",
    "apply_outcome",
    "RecentHistory",
    "exclusion_window",
    "WeightRecord",
    "WeightStore",
    "initialize_default_record",

    # Persistence
    "Snapshot",
    "RecordPayload",
    "parse_snapshot",
    "PersistenceAdapter",
    "InMemoryAdapter",
    "JsonFileAdapter",
    "build_adapter",

    # Configuration
    "EngineConfig",
    "load_config",
    "Direction",
    "SCHEMA_VERSION",

    # Errors
    "EngineError",
    "StorageUnavailable",
    "Corrupt",
    "EmptyPool",
    "NotLoaded",
]
