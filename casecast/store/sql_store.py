"""
SQL Trend Store.

Each read-modify-write cycle runs inside one database transaction with the
collection rows locked FOR UPDATE (ignored by SQLite, which serializes
writers itself). Combined with the process-level lock of TrendStore this
keeps updates lost-update free across workers sharing one database.
"""

from datetime import datetime, timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from casecast.db.models import TrendSnapshotRow
from casecast.exceptions import TrendStoreUnavailableError
from casecast.schemas.common import Severity
from casecast.schemas.trends import TrendSnapshot
from casecast.store.trend_store import RETENTION, Mutation, TrendStore, as_utc

logger = structlog.get_logger(__name__)


def row_to_snapshot(row: TrendSnapshotRow) -> TrendSnapshot:
    return TrendSnapshot(
        signal_id=row.signal_id,
        title=row.title,
        severity=Severity(row.severity),
        total_count=row.total_count,
        recent_detections=[as_utc(datetime.fromisoformat(ts)) for ts in row.recent_detections or []],
        last_detected_at=as_utc(row.last_detected_at) if row.last_detected_at else None,
    )


def copy_into_row(row: TrendSnapshotRow, snapshot: TrendSnapshot) -> None:
    row.title = snapshot.title
    row.severity = snapshot.severity.value
    row.total_count = snapshot.total_count
    row.recent_detections = [ts.isoformat() for ts in snapshot.recent_detections]
    row.last_detected_at = snapshot.last_detected_at


class SqlTrendStore(TrendStore):
    backend = "sql"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retention: timedelta = RETENTION,
    ):
        super().__init__(retention)
        self._session_factory = session_factory

    async def _load_all(self) -> list[TrendSnapshot]:
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(select(TrendSnapshotRow))).scalars().all()
                return [row_to_snapshot(row) for row in rows]
        except SQLAlchemyError as exc:
            raise TrendStoreUnavailableError(self.backend, str(exc)) from exc

    async def _save_all(self, snapshots: list[TrendSnapshot]) -> None:
        await self._read_modify_write(lambda _: snapshots)

    async def _read_modify_write(self, mutate: Mutation) -> list[TrendSnapshot]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    rows = (
                        await session.execute(select(TrendSnapshotRow).with_for_update())
                    ).scalars().all()
                    by_id = {row.signal_id: row for row in rows}

                    updated = mutate([row_to_snapshot(row) for row in rows])

                    for snapshot in updated:
                        row = by_id.get(snapshot.signal_id)
                        if row is None:
                            row = TrendSnapshotRow(signal_id=snapshot.signal_id)
                            session.add(row)
                        copy_into_row(row, snapshot)
                return updated
        except SQLAlchemyError as exc:
            raise TrendStoreUnavailableError(self.backend, str(exc)) from exc
