"""
SQLAlchemy ORM Models for weight snapshots

Defines WeightRecordRow and SnapshotMeta for relational persistence.
One namespace (dojo) owns a set of rows plus one meta row.
"""

from sqlalchemy import Column, Float, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WeightRecordRow(Base):
    """
    Persistent mastery state for a single item within a namespace.
    """
    __tablename__ = 'weight_record'

    # Primary key: composite of namespace and item_id
    namespace = Column(String(64), primary_key=True, nullable=False)
    item_id = Column(String(255), primary_key=True, nullable=False)

    # Selection state
    weight = Column(Float, nullable=False)
    forward_confidence = Column(Float, nullable=False)
    reverse_confidence = Column(Float, nullable=False)

    # Attempt tracking
    total_attempts = Column(Integer, nullable=False, default=0)
    correct_attempts = Column(Integer, nullable=False, default=0)

    # ISO-8601 text so timezone-aware timestamps round-trip on SQLite too
    last_seen_at = Column(String(64), nullable=True)

    def __repr__(self):
        return f"<WeightRecordRow({self.namespace}, {self.item_id}, weight={self.weight:.3f})>"


class SnapshotMeta(Base):
    """
    Snapshot header for a namespace (schema version and last save time).
    """
    __tablename__ = 'weight_snapshot_meta'

    namespace = Column(String(64), primary_key=True, nullable=False)
    schema_version = Column(Integer, nullable=False)
    saved_at = Column(String(64), nullable=False)
    record_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<SnapshotMeta({self.namespace}, v{self.schema_version}, {self.record_count} records)>"
