"""
Database - SQLAlchemy persistence for weight snapshots

Handles all relational I/O for the engine. Uses SQLAlchemy ORM with any
backend SQLAlchemy supports (Postgres in production, SQLite locally).

This module handles ONLY database I/O.
Selection and update logic live in selector.py and updates.py.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from dojo_core.mastery.errors import Corrupt, StorageUnavailable
from dojo_core.mastery.models import Base, SnapshotMeta, WeightRecordRow
from dojo_core.mastery.persistence import PersistenceAdapter
from dojo_core.mastery.snapshot import Snapshot, parse_snapshot

logger = logging.getLogger(__name__)


def get_engine(database_url: str) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    Server databases get a small connection pool; SQLite connections are
    shared across the worker threads that run blocking I/O.

    Args:
        database_url: SQLAlchemy URL

    Returns:
        SQLAlchemy Engine instance
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False
        )
    return create_engine(
        database_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


class SqlAlchemyAdapter(PersistenceAdapter):
    """
    Stores one namespace's snapshot as rows (one per item) plus a header row.

    Saves replace every row of the namespace in a single transaction.
    """

    def __init__(self, database_url: str, namespace: str, engine: Optional[Engine] = None):
        self.database_url = database_url
        self.namespace = namespace
        self._engine = engine
        self._sessionmaker: Optional[sessionmaker] = None
        self._initialized = False

    # ---- Connection management ----

    def _get_session(self) -> Session:
        if self._engine is None:
            self._engine = get_engine(self.database_url)
        if not self._initialized:
            # Safe to call multiple times - only creates missing tables
            Base.metadata.create_all(self._engine)
            self._initialized = True
        if self._sessionmaker is None:
            self._sessionmaker = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._sessionmaker()

    def dispose(self) -> None:
        """Close pooled connections."""
        if self._engine is not None:
            self._engine.dispose()

    # ---- PersistenceAdapter ----

    async def load(self) -> Snapshot:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, snapshot: Snapshot) -> None:
        await asyncio.to_thread(self._save_sync, snapshot)

    def _load_sync(self) -> Snapshot:
        try:
            session = self._get_session()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"cannot open database: {exc}") from exc

        try:
            meta = session.get(SnapshotMeta, self.namespace)
            rows = session.query(WeightRecordRow).filter(
                WeightRecordRow.namespace == self.namespace
            ).all()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"cannot read snapshot '{self.namespace}': {exc}") from exc
        finally:
            session.close()

        if meta is None:
            if rows:
                raise Corrupt(f"namespace '{self.namespace}' has rows but no snapshot header")
            return Snapshot.empty()

        if meta.record_count != len(rows):
            raise Corrupt(
                f"namespace '{self.namespace}' header lists {meta.record_count} records, "
                f"found {len(rows)}"
            )

        payload = {
            "schemaVersion": meta.schema_version,
            "records": {
                row.item_id: {
                    "weight": row.weight,
                    "forwardConfidence": row.forward_confidence,
                    "reverseConfidence": row.reverse_confidence,
                    "totalAttempts": row.total_attempts,
                    "correctAttempts": row.correct_attempts,
                    "lastSeenAt": row.last_seen_at,
                }
                for row in rows
            },
        }
        return parse_snapshot(payload)

    def _save_sync(self, snapshot: Snapshot) -> None:
        try:
            session = self._get_session()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"cannot open database: {exc}") from exc

        try:
            session.query(WeightRecordRow).filter(
                WeightRecordRow.namespace == self.namespace
            ).delete(synchronize_session=False)

            for item_id, payload in snapshot.records.items():
                session.add(WeightRecordRow(
                    namespace=self.namespace,
                    item_id=item_id,
                    weight=payload.weight,
                    forward_confidence=payload.forward_confidence,
                    reverse_confidence=payload.reverse_confidence,
                    total_attempts=payload.total_attempts,
                    correct_attempts=payload.correct_attempts,
                    last_seen_at=payload.last_seen_at.isoformat() if payload.last_seen_at else None
                ))

            session.merge(SnapshotMeta(
                namespace=self.namespace,
                schema_version=snapshot.schema_version,
                saved_at=datetime.now(timezone.utc).isoformat(),
                record_count=len(snapshot.records)
            ))
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageUnavailable(f"cannot write snapshot '{self.namespace}': {exc}") from exc
        finally:
            session.close()

        logger.debug("Saved %d records for '%s'", len(snapshot.records), self.namespace)
