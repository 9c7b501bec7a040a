"""
Trend API.

GET /api/v1/trends — current pruned snapshot set, most frequent first
"""

from fastapi import APIRouter

from casecast.config import settings
from casecast.schemas.trends import TrendSnapshotList
from casecast.services.registry import get_services

router = APIRouter(prefix=f"{settings.api_prefix}/trends", tags=["trends"])

_services = get_services()


@router.get("", response_model=TrendSnapshotList)
async def list_trends():
    store = _services.trend_store
    snapshots = await store.load()
    return TrendSnapshotList(snapshots=snapshots, total=len(snapshots), degraded=store.degraded)
