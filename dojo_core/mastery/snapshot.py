"""
Pydantic models for the persisted weight snapshot.

The JSON layout uses camelCase keys:

    {"schemaVersion": 1,
     "records": {"kana:あ": {"weight": 1.0, "forwardConfidence": 0.5, ...}}}

Anything that does not validate is reported as Corrupt; a payload is never
partially trusted.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from dojo_core.mastery.config import EngineConfig
from dojo_core.mastery.constants import SCHEMA_VERSION
from dojo_core.mastery.errors import Corrupt
from dojo_core.mastery.records import WeightRecord, WeightStore


class RecordPayload(BaseModel):
    """Serialized form of one WeightRecord."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    weight: float = Field(..., gt=0, description="Relative draw probability")
    forward_confidence: float = Field(..., ge=0, le=1, alias="forwardConfidence")
    reverse_confidence: float = Field(..., ge=0, le=1, alias="reverseConfidence")
    total_attempts: int = Field(0, ge=0, alias="totalAttempts")
    correct_attempts: int = Field(0, ge=0, alias="correctAttempts")
    last_seen_at: Optional[datetime] = Field(None, alias="lastSeenAt")

    @field_validator("weight")
    @classmethod
    def _finite_weight(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("weight must be finite")
        return value

    @model_validator(mode="after")
    def _attempts_consistent(self) -> "RecordPayload":
        if self.correct_attempts > self.total_attempts:
            raise ValueError("correctAttempts exceeds totalAttempts")
        return self

    @classmethod
    def from_record(cls, record: WeightRecord) -> "RecordPayload":
        return cls(
            weight=record.weight,
            forward_confidence=record.forward_confidence,
            reverse_confidence=record.reverse_confidence,
            total_attempts=record.total_attempts,
            correct_attempts=record.correct_attempts,
            last_seen_at=record.last_seen_at,
        )

    def to_record(self, config: EngineConfig) -> WeightRecord:
        """Convert back, clamping the weight into the configured range."""
        return WeightRecord(
            weight=min(config.max_weight, max(config.min_weight, self.weight)),
            forward_confidence=self.forward_confidence,
            reverse_confidence=self.reverse_confidence,
            total_attempts=self.total_attempts,
            correct_attempts=self.correct_attempts,
            last_seen_at=self.last_seen_at,
        )


class Snapshot(BaseModel):
    """Serializable dump of a whole WeightStore."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    schema_version: int = Field(..., alias="schemaVersion", strict=True)
    records: dict[str, RecordPayload] = Field(default_factory=dict)

    @field_validator("schema_version")
    @classmethod
    def _known_version(cls, value: int) -> int:
        if value != SCHEMA_VERSION:
            raise ValueError(f"unsupported schemaVersion {value} (expected {SCHEMA_VERSION})")
        return value

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(schema_version=SCHEMA_VERSION, records={})

    @classmethod
    def from_store(cls, store: WeightStore) -> "Snapshot":
        return cls(
            schema_version=SCHEMA_VERSION,
            records={item_id: RecordPayload.from_record(record) for item_id, record in store.items()},
        )

    def to_document(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


def parse_snapshot(payload: Any) -> Snapshot:
    """
    Validate a stored payload (dict or JSON string).

    Raises:
        Corrupt: if the payload is not a valid, known-version snapshot
    """
    try:
        if isinstance(payload, (str, bytes, bytearray)):
            return Snapshot.model_validate_json(payload)
        if not isinstance(payload, dict):
            raise Corrupt(f"snapshot must be an object, got {type(payload).__name__}")
        return Snapshot.model_validate(payload)
    except ValidationError as exc:
        raise Corrupt(f"invalid snapshot: {exc.error_count()} validation error(s)") from exc
