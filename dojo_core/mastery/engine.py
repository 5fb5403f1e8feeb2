"""
Engine - process-wide facade for drill screens

Composes the weight store, selector, outcome updater and persistence
adapter behind four operations:

    report = await engine.ensure_loaded()
    draw = engine.next(pool)
    engine.record_outcome(draw.item_id, draw.direction, correct=True)
    engine.reset("all")

Lifecycle: UNINITIALIZED -> LOADING -> READY. Only ensure_loaded() awaits
I/O; next/record_outcome/reset are synchronous and raise NotLoaded before
the engine is READY. Snapshot writes are debounced and never block callers.
"""

from __future__ import annotations

import asyncio
import logging
import random
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from dojo_core.mastery.config import EngineConfig, load_config
from dojo_core.mastery.constants import Direction
from dojo_core.mastery.debounce import DebouncedSave
from dojo_core.mastery.errors import Corrupt, EngineError, NotLoaded, StorageUnavailable
from dojo_core.mastery.history import RecentHistory
from dojo_core.mastery.persistence import PersistenceAdapter, build_adapter
from dojo_core.mastery.records import ItemId, WeightRecord, WeightStore, initialize_default_record
from dojo_core.mastery.selector import Draw, select_next
from dojo_core.mastery.snapshot import Snapshot
from dojo_core.mastery.updates import apply_outcome

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class LoadReport:
    """
    Result of ensure_loaded().

    warning is set when stored state could not be used and the engine
    started from an empty store instead.
    """
    namespace: str
    restored: int
    warning: Optional[EngineError] = None

    @property
    def ok(self) -> bool:
        return self.warning is None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DrillEngine:
    """
    Adaptive item-selection engine for one namespace (one dojo).
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        config: Optional[EngineConfig] = None,
        namespace: str = "default",
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utc_now
    ):
        self.adapter = adapter
        self.config = config or load_config()
        self.namespace = namespace
        self.rng = rng or random.Random()
        self.clock = clock

        self.store = WeightStore(self.config)
        self.history = RecentHistory(self.config.history_max)
        self.persistence_degraded = False

        self._lock = threading.RLock()
        self._state = EngineState.UNINITIALIZED
        self._load_task: Optional[asyncio.Future] = None
        self._load_report: Optional[LoadReport] = None
        self._saver: Optional[DebouncedSave] = None
        self._save_lock = asyncio.Lock()
        self._dirty = False
        self._events: deque[dict] = deque(maxlen=self.config.recent_events_limit)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is EngineState.READY

    # ---- Lifecycle ----

    async def ensure_loaded(self) -> LoadReport:
        """
        Load stored state once; concurrent callers share the same load.

        Storage failures are not raised: the engine falls back to an empty
        store and the returned LoadReport carries the warning.

        Returns:
            LoadReport for this engine
        """
        if self._state is EngineState.READY:
            return self._load_report

        if self._load_task is None:
            self._state = EngineState.LOADING
            self._load_task = asyncio.ensure_future(self._load())

        return await asyncio.shield(self._load_task)

    async def _load(self) -> LoadReport:
        warning: Optional[EngineError] = None
        snapshot = Snapshot.empty()
        try:
            snapshot = await self.adapter.load()
        except (StorageUnavailable, Corrupt) as exc:
            logger.warning(
                "Stored weights for '%s' unusable (%s: %s); starting from defaults",
                self.namespace, type(exc).__name__, exc
            )
            warning = exc
            snapshot = Snapshot.empty()
        except Exception:
            # Unknown adapter failure: allow a later ensure_loaded() to retry
            self._state = EngineState.UNINITIALIZED
            self._load_task = None
            raise

        with self._lock:
            self.store.clear()
            for item_id, payload in snapshot.records.items():
                self.store.set(item_id, payload.to_record(self.config))
            restored = len(self.store)

        self._saver = DebouncedSave(
            self._persist,
            self.config.save_delay_seconds,
            asyncio.get_running_loop()
        )
        self._load_report = LoadReport(self.namespace, restored, warning)
        self._state = EngineState.READY
        logger.info("Engine '%s' ready with %d stored records", self.namespace, restored)
        return self._load_report

    async def flush(self) -> None:
        """Write pending changes now instead of waiting for the debounce timer."""
        if self._saver is not None:
            await self._saver.flush()
        if self._dirty:
            await self._persist()

    async def close(self) -> None:
        """Flush pending changes and stop the save timer."""
        await self.flush()
        if self._saver is not None:
            self._saver.cancel()

    # ---- Drill operations ----

    def next(self, pool: Iterable[ItemId], history: Optional[RecentHistory] = None) -> Draw:
        """
        Draw the next item and prompt direction from pool.

        Args:
            pool: ItemIds enabled by the learner's current selection
            history: Caller-owned recent history (defaults to the engine's own)

        Returns:
            Draw(item_id, direction)

        Raises:
            NotLoaded: before ensure_loaded() completed
            EmptyPool: pool is empty
        """
        self._require_ready()
        with self._lock:
            return select_next(
                self.store,
                pool,
                self.history if history is None else history,
                self.config,
                self.rng
            )

    def record_outcome(
        self,
        item_id: ItemId,
        direction: Union[Direction, str],
        correct: bool,
        latency_ms: Optional[int] = None,
        game_mode: Optional[str] = None
    ) -> None:
        """
        Apply an answer to the item's record and schedule a save.

        Raises:
            NotLoaded: before ensure_loaded() completed
            ValueError: unknown direction
        """
        self._require_ready()
        direction = Direction(direction)
        with self._lock:
            event = apply_outcome(
                item_id,
                self.store.get(item_id),
                direction,
                correct,
                self.config,
                timestamp=self.clock(),
                latency_ms=latency_ms,
                game_mode=game_mode
            )
            self._events.append(event)
            self._dirty = True
        self._schedule_save()

    def reset(self, scope: Union[str, Iterable[ItemId]] = "all") -> int:
        """
        Restore records to defaults ("recalculate").

        Args:
            scope: "all", or an iterable of ItemIds

        Returns:
            Number of stored records that were reset
        """
        self._require_ready()
        with self._lock:
            if isinstance(scope, str):
                if scope != "all":
                    raise ValueError(f"reset scope must be 'all' or a set of ItemIds, got {scope!r}")
                count = self.store.clear()
                self.history.clear()
            else:
                count = self.store.reset_ids(scope)
            self._dirty = True
        logger.info("Reset %d records in '%s'", count, self.namespace)
        self._schedule_save()
        return count

    # ---- Read-only views ----

    def record(self, item_id: ItemId) -> WeightRecord:
        """Copy of an item's record (defaults if it was never seen)."""
        with self._lock:
            record = self.store.peek(item_id)
            if record is None:
                return initialize_default_record(self.config)
            return record.copy()

    def weakest(self, pool: Iterable[ItemId], limit: int = 10) -> list[ItemId]:
        """ItemIds from pool ordered by descending weight (most missed first)."""
        with self._lock:
            weights = {
                item_id: (self.store.peek(item_id) or initialize_default_record(self.config)).weight
                for item_id in set(pool)
            }
        ranked = sorted(weights, key=lambda item_id: (-weights[item_id], item_id))
        return ranked[:max(0, limit)]

    def recent_events(self, limit: Optional[int] = None) -> list[dict]:
        """Most recent outcome events, newest first."""
        with self._lock:
            events = list(reversed(self._events))
        return events if limit is None else events[:limit]

    def snapshot(self) -> Snapshot:
        """Snapshot of the current store."""
        with self._lock:
            return Snapshot.from_store(self.store)

    # ---- Internals ----

    def _require_ready(self) -> None:
        if self._state is not EngineState.READY:
            raise NotLoaded(
                f"Engine '{self.namespace}' is {self._state.value}; await ensure_loaded() first"
            )

    def _schedule_save(self) -> None:
        if self._saver is not None and not self.persistence_degraded:
            self._saver.schedule()

    async def _persist(self) -> None:
        """
        Save one snapshot, retrying once after a short backoff.

        Saves are serialized and each snapshot is taken under the store lock,
        so a later save always contains everything an earlier one did.
        """
        async with self._save_lock:
            # A save queued behind a failing one must not touch the adapter again
            if self.persistence_degraded:
                return

            with self._lock:
                if not self._dirty:
                    return
                snapshot = Snapshot.from_store(self.store)
                self._dirty = False

            try:
                await self.adapter.save(snapshot)
                return
            except StorageUnavailable as exc:
                logger.warning("Saving weights for '%s' failed (%s); retrying once", self.namespace, exc)
            except Exception:
                logger.exception("Unexpected error saving weights for '%s'", self.namespace)
                self._degrade()
                return

            await asyncio.sleep(self.config.save_retry_delay_seconds)
            try:
                await self.adapter.save(snapshot)
            except StorageUnavailable as exc:
                logger.error(
                    "Saving weights for '%s' failed again (%s); keeping progress in memory only",
                    self.namespace, exc
                )
                self._degrade()
            except Exception:
                logger.exception("Unexpected error saving weights for '%s'", self.namespace)
                self._degrade()

    def _degrade(self) -> None:
        """Stop saving; the unsaved changes stay pending in memory."""
        with self._lock:
            self._dirty = True
        self.persistence_degraded = True


# ---- Process-wide registry ----

_engines: dict[str, DrillEngine] = {}
_registry_lock = threading.Lock()


def get_engine(
    namespace: str = "default",
    adapter: Optional[PersistenceAdapter] = None,
    config: Optional[EngineConfig] = None
) -> DrillEngine:
    """
    Get the process-wide engine for a namespace, creating it on first use.

    adapter and config only apply when the engine is created.

    Args:
        namespace: Engine namespace (one per dojo)
        adapter: Persistence adapter (defaults to the configured backend)
        config: Engine configuration (defaults to load_config())

    Returns:
        DrillEngine for the namespace
    """
    with _registry_lock:
        engine = _engines.get(namespace)
        if engine is None:
            engine = DrillEngine(
                adapter or build_adapter(namespace),
                config=config,
                namespace=namespace
            )
            _engines[namespace] = engine
        return engine


def clear_engines() -> None:
    """Forget all registered engines (pending saves are not flushed)."""
    with _registry_lock:
        for engine in _engines.values():
            if engine._saver is not None:
                engine._saver.cancel()
        _engines.clear()
