"""
Persistence Adapters - durable storage for weight snapshots

The engine only depends on PersistenceAdapter. Concrete backends:
- InMemoryAdapter: process-local, used for tests and "no storage" mode
- JsonFileAdapter: one JSON document per namespace on disk
- SqlAlchemyAdapter (database.py): relational rows via SQLAlchemy
- MongoAdapter (mongo.py): one document per namespace

Adapters know nothing about engine semantics; they move Snapshots in and out
and translate backend failures into StorageUnavailable / Corrupt.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from dojo_core.mastery import config as engine_config
from dojo_core.mastery.errors import Corrupt, StorageUnavailable
from dojo_core.mastery.snapshot import Snapshot, parse_snapshot


class PersistenceAdapter(ABC):
    """Async key/value storage for one namespace's Snapshot."""

    @abstractmethod
    async def load(self) -> Snapshot:
        """
        Read the stored snapshot.

        Returns:
            Stored Snapshot, or an empty one if nothing was saved yet

        Raises:
            StorageUnavailable: backend not reachable
            Corrupt: payload present but malformed or of unknown version
        """

    @abstractmethod
    async def save(self, snapshot: Snapshot) -> None:
        """
        Replace the stored snapshot (last write wins).

        Raises:
            StorageUnavailable: backend not reachable
        """


class InMemoryAdapter(PersistenceAdapter):
    """
    Keeps the last saved snapshot in memory.

    fail_load / fail_save make the next N calls raise, which is how tests and
    demos exercise the engine's fallback paths.
    """

    def __init__(self, snapshot: Optional[Snapshot] = None, payload=None):
        self._document = snapshot.to_document() if snapshot is not None else payload
        self.fail_load = 0
        self.fail_save = 0
        self.load_error: type[Exception] = StorageUnavailable
        self.load_calls = 0
        self.save_calls = 0

    async def load(self) -> Snapshot:
        self.load_calls += 1
        if self.fail_load:
            self.fail_load -= 1
            raise self.load_error("in-memory storage configured to fail load")
        if self._document is None:
            return Snapshot.empty()
        return parse_snapshot(self._document)

    async def save(self, snapshot: Snapshot) -> None:
        self.save_calls += 1
        if self.fail_save:
            self.fail_save -= 1
            raise StorageUnavailable("in-memory storage configured to fail save")
        self._document = snapshot.to_document()

    @property
    def document(self):
        """The raw stored payload (camelCase dict), or None."""
        return self._document


class JsonFileAdapter(PersistenceAdapter):
    """
    Stores the snapshot as a JSON file.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a crash never leaves a half-written file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    async def load(self) -> Snapshot:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, snapshot: Snapshot) -> None:
        await asyncio.to_thread(self._save_sync, snapshot.to_document())

    def _load_sync(self) -> Snapshot:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return Snapshot.empty()
        except OSError as exc:
            raise StorageUnavailable(f"cannot read {self.path}: {exc}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise Corrupt(f"{self.path} is not valid UTF-8") from exc
        except json.JSONDecodeError as exc:
            raise Corrupt(f"{self.path} is not valid JSON") from exc
        return parse_snapshot(payload)

    def _save_sync(self, document: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageUnavailable(f"cannot write {self.path}: {exc}") from exc


def build_adapter(namespace: str, backend: Optional[str] = None) -> PersistenceAdapter:
    """
    Create the adapter configured for this process.

    Args:
        namespace: Storage namespace (one per dojo)
        backend: Override for DOJO_STORAGE

    Returns:
        PersistenceAdapter instance
    """
    backend = (backend or engine_config.get_storage_backend()).lower()

    if backend == "memory":
        return InMemoryAdapter()
    if backend == "json":
        return JsonFileAdapter(engine_config.get_json_path(namespace))
    if backend == "sqlalchemy":
        from dojo_core.mastery.database import SqlAlchemyAdapter
        return SqlAlchemyAdapter(engine_config.get_database_url(), namespace)
    if backend == "mongo":
        from dojo_core.mastery.mongo import MongoAdapter
        return MongoAdapter.from_env(namespace)

    raise ValueError(f"Unknown storage backend: {backend}")
