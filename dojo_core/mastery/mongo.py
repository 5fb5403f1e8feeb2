"""
MongoDB persistence for weight snapshots.

Each namespace is stored as a single document:
    {"_id": <namespace>, "schemaVersion": 1, "records": {...}}
"""

from __future__ import annotations

import asyncio
from typing import Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from dojo_core.mastery import config as engine_config
from dojo_core.mastery.errors import StorageUnavailable
from dojo_core.mastery.persistence import PersistenceAdapter
from dojo_core.mastery.snapshot import Snapshot, parse_snapshot

COLLECTION_NAME = "weight_snapshots"

# Global connection pool (reused across engines)
_client: Optional[MongoClient] = None


def get_collection() -> Collection:
    """
    Get the MongoDB snapshot collection.

    Uses a persistent connection pool that's reused across engines.

    Returns:
        MongoDB collection object
    """
    global _client

    if _client is None:
        _client = MongoClient(
            engine_config.get_mongo_uri(),
            maxPoolSize=10,  # Connection pool size
            minPoolSize=1,   # Keep at least 1 connection alive
            maxIdleTimeMS=60000,  # Keep connections alive for 60 seconds
            serverSelectionTimeoutMS=5000
        )

    return _client[engine_config.get_mongo_db_name()][COLLECTION_NAME]


class MongoAdapter(PersistenceAdapter):
    """Stores one namespace's snapshot as a single MongoDB document."""

    def __init__(self, collection: Collection, namespace: str):
        self.collection = collection
        self.namespace = namespace

    @classmethod
    def from_env(cls, namespace: str) -> "MongoAdapter":
        return cls(get_collection(), namespace)

    async def load(self) -> Snapshot:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, snapshot: Snapshot) -> None:
        await asyncio.to_thread(self._save_sync, snapshot)

    def _load_sync(self) -> Snapshot:
        try:
            document = self.collection.find_one({"_id": self.namespace})
        except PyMongoError as exc:
            raise StorageUnavailable(f"cannot read snapshot '{self.namespace}': {exc}") from exc

        if document is None:
            return Snapshot.empty()

        document = dict(document)
        document.pop("_id", None)
        return parse_snapshot(document)

    def _save_sync(self, snapshot: Snapshot) -> None:
        document = snapshot.to_document()
        document["_id"] = self.namespace
        try:
            self.collection.replace_one({"_id": self.namespace}, document, upsert=True)
        except PyMongoError as exc:
            raise StorageUnavailable(f"cannot write snapshot '{self.namespace}': {exc}") from exc
