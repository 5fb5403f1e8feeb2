"""
Engine error taxonomy.

StorageUnavailable and Corrupt are recovered inside the engine;
EmptyPool and NotLoaded reach the caller.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all mastery engine errors."""


class StorageUnavailable(EngineError):
    """The persistence backend could not be reached."""


class Corrupt(EngineError):
    """A stored snapshot exists but is malformed or has an unknown schema version."""


class EmptyPool(EngineError):
    """No candidate item is left to draw from."""


class NotLoaded(EngineError):
    """An engine operation was called before ensure_loaded() completed."""
