"""Pydantic schema for persisted trend snapshots."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from casecast.schemas.common import Severity


class TrendSnapshot(BaseModel):
    """
    Rolling detection history of one signal id.

    recent_detections is kept ascending and pruned to the retention window
    by the owning TrendStore; no other component mutates snapshots.
    """

    signal_id: str
    title: str
    severity: Severity
    total_count: int = Field(default=0, ge=0)
    recent_detections: list[datetime] = Field(default_factory=list)
    last_detected_at: Optional[datetime] = None


class TrendSnapshotList(BaseModel):
    snapshots: list[TrendSnapshot]
    total: int
    degraded: bool = False
