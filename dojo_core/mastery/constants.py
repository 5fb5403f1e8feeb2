"""
Mastery Constants and Parameters

Default values for the adaptive item-selection engine in one place.
Every value here can be overridden through EngineConfig (see config.py).
"""

from enum import Enum


# ---- Prompt Direction ----

class Direction(str, Enum):
    """Which side of an item is shown as the prompt."""
    FORWARD = "forward"  # Native script shown, answer with romaji/meaning
    REVERSE = "reverse"  # Romaji/meaning shown, answer with native script

    @property
    def opposite(self) -> "Direction":
        return Direction.REVERSE if self is Direction.FORWARD else Direction.FORWARD


# ---- Snapshot Format ----

SCHEMA_VERSION = 1


# ---- Weight Bounds ----

DEFAULT_WEIGHT = 1.0
MIN_WEIGHT = 0.05   # Floor so mastered items still show up occasionally
MAX_WEIGHT = 20.0   # Ceiling so one missed item cannot dominate the pool


# ---- Confidence Tracking ----

DEFAULT_CONFIDENCE = 0.5
CONFIDENCE_RATE = 0.3  # EMA rate (alpha) for per-direction confidence


# ---- Weight Updates ----

CORRECT_FACTOR = 0.55    # Weight multiplier after a correct answer
INCORRECT_FACTOR = 1.8   # Weight multiplier after a miss


# ---- Direction Balancing ("Smart Reverse Mode") ----

EXPLORE_THRESHOLD = 0.1   # |reverse - forward| below this -> coin flip
WEAKER_PROBABILITY = 0.8  # Chance of drilling the weaker direction otherwise


# ---- Recent History ----

HISTORY_MIN = 3
HISTORY_MAX = 5


# ---- Persistence ----

SAVE_DELAY_SECONDS = 1.5        # Trailing-edge debounce for snapshot writes
SAVE_RETRY_DELAY_SECONDS = 0.5  # Backoff before the single save retry
RECENT_EVENTS_LIMIT = 200       # Outcome events kept in memory per engine
