"""
Trend Store.

Owns the rolling per-signal detection history. Every read-modify-write
cycle runs under one asyncio.Lock, so within a process the store is the
single writer of the snapshot collection.

Contract:
    record(signals) → append now, increment total_count, prune EVERY
                      snapshot to the retention window, persist, return the
                      full set sorted by total_count descending
    load()          → pruned view of the persisted set (no write)

Failure mode:
    Backend I/O errors never reach the caller. The store logs
    `trend_store_unavailable`, sets `degraded`, and returns the last set it
    successfully loaded (initially empty).
"""

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from casecast.exceptions import TrendStoreUnavailableError
from casecast.schemas.insights import Signal
from casecast.schemas.trends import TrendSnapshot

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

RETENTION: timedelta = timedelta(days=7)

_SNAPSHOT_LIST = TypeAdapter(list[TrendSnapshot])

Mutation = Callable[[list[TrendSnapshot]], list[TrendSnapshot]]


def as_utc(value: datetime) -> datetime:
    """Naive datetimes (e.g. read back from SQLite) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def prune_snapshot(snapshot: TrendSnapshot, now: datetime, retention: timedelta = RETENTION) -> TrendSnapshot:
    kept = sorted(as_utc(ts) for ts in snapshot.recent_detections if now - as_utc(ts) <= retention)
    return snapshot.model_copy(update={"recent_detections": kept})


def sort_snapshots(snapshots: Iterable[TrendSnapshot]) -> list[TrendSnapshot]:
    return sorted(snapshots, key=lambda s: s.total_count, reverse=True)


def apply_detections(
    snapshots: list[TrendSnapshot],
    signals: Iterable[Signal],
    now: datetime,
    retention: timedelta = RETENTION,
) -> list[TrendSnapshot]:
    """Pure update step: prune everything, then count each observed signal once."""
    by_id = {s.signal_id: prune_snapshot(s, now, retention) for s in snapshots}

    for signal in signals:
        current = by_id.get(signal.id)
        history = list(current.recent_detections) if current else []
        history.append(now)
        by_id[signal.id] = prune_snapshot(
            TrendSnapshot(
                signal_id=signal.id,
                title=signal.title,
                severity=signal.severity,
                total_count=(current.total_count if current else 0) + 1,
                recent_detections=history,
                last_detected_at=now,
            ),
            now,
            retention,
        )

    return sort_snapshots(by_id.values())


class TrendStore(ABC):
    """Abstract trend store. Subclasses provide the persistence backend."""

    backend: str = "abstract"

    def __init__(self, retention: timedelta = RETENTION):
        self.retention = retention
        self.degraded = False
        self._lock = asyncio.Lock()
        self._cache: list[TrendSnapshot] = []

    # ── Backend hooks ─────────────────────────────────────────────────

    @abstractmethod
    async def _load_all(self) -> list[TrendSnapshot]:
        """Read the full collection. Raise TrendStoreUnavailableError on I/O failure."""

    @abstractmethod
    async def _save_all(self, snapshots: list[TrendSnapshot]) -> None:
        """Replace the full collection atomically. Raise TrendStoreUnavailableError on failure."""

    async def _read_modify_write(self, mutate: Mutation) -> list[TrendSnapshot]:
        snapshots = await self._load_all()
        updated = mutate(snapshots)
        await self._save_all(updated)
        return updated

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""

    # ── Public contract ───────────────────────────────────────────────

    async def record(
        self,
        signals: list[Signal],
        now: Optional[datetime] = None,
    ) -> list[TrendSnapshot]:
        now = as_utc(now or datetime.now(timezone.utc))
        async with self._lock:
            try:
                updated = await self._read_modify_write(
                    lambda snapshots: apply_detections(snapshots, signals, now, self.retention)
                )
            except TrendStoreUnavailableError as exc:
                return self._fallback(exc, operation="record")

            self._cache = updated
            self.degraded = False

        logger.info(
            "trend_recorded",
            backend=self.backend,
            recorded=[s.id for s in signals],
            snapshots=len(updated),
        )
        return list(updated)

    async def load(self, now: Optional[datetime] = None) -> list[TrendSnapshot]:
        now = as_utc(now or datetime.now(timezone.utc))
        try:
            snapshots = await self._load_all()
        except TrendStoreUnavailableError as exc:
            return self._fallback(exc, operation="load")

        pruned = sort_snapshots(prune_snapshot(s, now, self.retention) for s in snapshots)
        self._cache = pruned
        self.degraded = False
        return list(pruned)

    def _fallback(self, exc: TrendStoreUnavailableError, operation: str) -> list[TrendSnapshot]:
        self.degraded = True
        logger.warning(
            "trend_store_unavailable",
            backend=self.backend,
            operation=operation,
            error=exc.message,
            cached_snapshots=len(self._cache),
        )
        return list(self._cache)


class InMemoryTrendStore(TrendStore):
    """Process-local store for tests and ephemeral deployments."""

    backend = "memory"

    def __init__(self, retention: timedelta = RETENTION):
        super().__init__(retention)
        self._data: list[TrendSnapshot] = []

    async def _load_all(self) -> list[TrendSnapshot]:
        return [s.model_copy(deep=True) for s in self._data]

    async def _save_all(self, snapshots: list[TrendSnapshot]) -> None:
        self._data = [s.model_copy(deep=True) for s in snapshots]

    def reset(self) -> None:
        """Clear all state (for testing)."""
        self._data = []
        self._cache = []
        self.degraded = False


class JsonFileTrendStore(TrendStore):
    """
    Single JSON document holding the whole collection.

    Writes go to a temp file in the same directory and are swapped in with
    os.replace, so readers never observe a half-written document.
    """

    backend = "file"

    def __init__(self, path: str | Path, retention: timedelta = RETENTION):
        super().__init__(retention)
        self.path = Path(path)

    async def _load_all(self) -> list[TrendSnapshot]:
        return await asyncio.to_thread(self._read_file)

    async def _save_all(self, snapshots: list[TrendSnapshot]) -> None:
        await asyncio.to_thread(self._write_file, snapshots)

    def _read_file(self) -> list[TrendSnapshot]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise TrendStoreUnavailableError(self.backend, str(exc)) from exc

        if not raw.strip():
            return []
        try:
            return _SNAPSHOT_LIST.validate_json(raw)
        except ValidationError as exc:
            raise TrendStoreUnavailableError(self.backend, f"corrupt document: {exc.error_count()} errors") from exc

    def _write_file(self, snapshots: list[TrendSnapshot]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(_SNAPSHOT_LIST.dump_json(snapshots, indent=2))
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise TrendStoreUnavailableError(self.backend, str(exc)) from exc
