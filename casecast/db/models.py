"""CaseCast SQLAlchemy models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from casecast.db.engine import Base


class TrendSnapshotRow(Base):
    """One row per signal id; recent detections stored as ISO-8601 strings."""

    __tablename__ = "trend_snapshots"

    signal_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recent_detections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    last_detected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
