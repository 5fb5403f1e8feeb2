"""
Engine configuration.

All tunable constants of the selection engine live on EngineConfig.
Values come from the defaults in constants.py and can be overridden with
DOJO_* environment variables (a local .env file is honoured).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

from dotenv import load_dotenv

from dojo_core.mastery import constants

# Load environment
load_dotenv()


# Default storage location (same place the review logs used to live)
DATA_DIR = Path(__file__).parent.parent.parent / "logs"


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunable parameters for selection, outcome updates and persistence.
    """
    min_weight: float = constants.MIN_WEIGHT
    max_weight: float = constants.MAX_WEIGHT
    default_weight: float = constants.DEFAULT_WEIGHT
    default_confidence: float = constants.DEFAULT_CONFIDENCE
    confidence_rate: float = constants.CONFIDENCE_RATE
    correct_factor: float = constants.CORRECT_FACTOR
    incorrect_factor: float = constants.INCORRECT_FACTOR
    explore_threshold: float = constants.EXPLORE_THRESHOLD
    weaker_probability: float = constants.WEAKER_PROBABILITY
    history_min: int = constants.HISTORY_MIN
    history_max: int = constants.HISTORY_MAX
    save_delay_seconds: float = constants.SAVE_DELAY_SECONDS
    save_retry_delay_seconds: float = constants.SAVE_RETRY_DELAY_SECONDS
    recent_events_limit: int = constants.RECENT_EVENTS_LIMIT

    def __post_init__(self):
        if self.min_weight <= 0:
            raise ValueError(f"min_weight must be positive, got {self.min_weight}")
        if self.min_weight > self.max_weight:
            raise ValueError(
                f"min_weight ({self.min_weight}) exceeds max_weight ({self.max_weight})"
            )
        if not self.min_weight <= self.default_weight <= self.max_weight:
            raise ValueError(
                f"default_weight {self.default_weight} outside "
                f"[{self.min_weight}, {self.max_weight}]"
            )
        for name in ("default_confidence", "confidence_rate", "explore_threshold", "weaker_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if not 0.0 < self.correct_factor <= 1.0:
            raise ValueError(f"correct_factor must be within (0, 1], got {self.correct_factor}")
        if self.incorrect_factor < 1.0:
            raise ValueError(f"incorrect_factor must be >= 1, got {self.incorrect_factor}")
        if self.history_min < 0 or self.history_min > self.history_max:
            raise ValueError(
                f"invalid history window [{self.history_min}, {self.history_max}]"
            )
        if self.save_delay_seconds < 0 or self.save_retry_delay_seconds < 0:
            raise ValueError("save delays must be non-negative")
        if self.recent_events_limit < 0:
            raise ValueError("recent_events_limit must be non-negative")


def load_config() -> EngineConfig:
    """
    Build an EngineConfig from the environment.

    Each field can be overridden with DOJO_<FIELD_NAME>, e.g.
    DOJO_MIN_WEIGHT=0.1 or DOJO_SAVE_DELAY_SECONDS=2.

    Returns:
        EngineConfig with environment overrides applied
    """
    overrides = {}
    for field in fields(EngineConfig):
        raw = os.getenv(f"DOJO_{field.name.upper()}")
        if raw is None or raw == "":
            continue
        caster = int if field.type in (int, "int") else float
        try:
            overrides[field.name] = caster(raw)
        except ValueError as exc:
            raise ValueError(f"DOJO_{field.name.upper()}={raw!r} is not a valid {caster.__name__}") from exc
    return EngineConfig(**overrides)


# ---- Storage settings ----

def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_storage_backend() -> str:
    """
    Get the configured storage backend name.

    Returns:
        One of "sqlalchemy", "mongo", "json", "memory"
    """
    return os.getenv("DOJO_STORAGE", "sqlalchemy").lower()


def get_database_url() -> str:
    """
    Get the SQLAlchemy database URL.

    Falls back to a SQLite file under logs/. In test mode the database name
    "mastery" is swapped for "test_mastery" so tests never touch real data.

    Returns:
        Database URL
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        DATA_DIR.mkdir(exist_ok=True)
        url = f"sqlite:///{DATA_DIR / 'mastery.db'}"

    if is_test_mode():
        return url.replace("mastery", "test_mastery", 1)
    return url


def get_mongo_uri() -> str:
    """Get the MongoDB connection string."""
    mongo_uri = os.getenv("MONGO_URI")
    if not mongo_uri:
        raise ValueError("MONGO_URI not found in environment variables")
    return mongo_uri


def get_mongo_db_name() -> str:
    """Get the MongoDB database name (test-mode aware)."""
    name = os.getenv("DOJO_MONGO_DB", "dojo_trainer")
    return f"test_{name}" if is_test_mode() else name


def get_json_path(namespace: str) -> Path:
    """
    Get the JSON snapshot file for a namespace.

    DOJO_JSON_DIR overrides the directory (default: logs/).
    """
    directory = Path(os.getenv("DOJO_JSON_DIR", str(DATA_DIR)))
    prefix = "test_" if is_test_mode() else ""
    return directory / f"{prefix}mastery_{namespace}.json"
