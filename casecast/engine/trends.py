"""
Trend Analyzer.

Derives proactive alerts from persisted trend snapshots and the current
case. Rules are evaluated independently and merged by alert id, later
rules overwriting earlier ones:

1. Spike       — ≥ 3 detections in 24h and severity ≠ low (skips rule 2)
2. Cumulative  — ≥ 6 detections in the trailing 7 days (low → medium)
3. Urgency     — case urgency mentions immediate/urgent
4. Category    — case type mentions corporate/internal
5. Multi-high  — more than one current signal is high
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog

from casecast.schemas.common import Severity
from casecast.schemas.insights import Alert, Signal
from casecast.schemas.trends import TrendSnapshot
from casecast.store.trend_store import RETENTION, as_utc

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

SPIKE_WINDOW: timedelta = timedelta(hours=24)
SPIKE_THRESHOLD: int = 3
# Snapshots keep exactly this much history.
CUMULATIVE_WINDOW: timedelta = RETENTION
CUMULATIVE_THRESHOLD: int = 6

URGENCY_PATTERN = re.compile(r"긴급|immediate|urgent", re.IGNORECASE)
CORPORATE_PATTERN = re.compile(r"기업|산업|내부|corporate|industrial|internal", re.IGNORECASE)


class TrendAnalyzer:
    """Stateless alert derivation; thresholds are configurable per instance."""

    def __init__(
        self,
        spike_window: timedelta = SPIKE_WINDOW,
        spike_threshold: int = SPIKE_THRESHOLD,
        cumulative_window: timedelta = CUMULATIVE_WINDOW,
        cumulative_threshold: int = CUMULATIVE_THRESHOLD,
    ):
        self.spike_window = spike_window
        self.spike_threshold = spike_threshold
        self.cumulative_window = cumulative_window
        self.cumulative_threshold = cumulative_threshold

    def derive_alerts(
        self,
        snapshots: list[TrendSnapshot],
        current_signals: list[Signal],
        case_urgency: Optional[str] = None,
        case_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[Alert]:
        now = as_utc(now or datetime.now(timezone.utc))
        alerts: list[Alert] = []

        for snapshot in snapshots:
            alert = self._trend_alert(snapshot, now)
            if alert:
                alerts.append(alert)

        if case_urgency and URGENCY_PATTERN.search(case_urgency):
            alerts.append(Alert(
                id="urgency-priority",
                title="Client requested urgent response",
                severity=Severity.HIGH,
                message="The client asked for an urgent or immediate response.",
                suggestion="Assign an investigator first and share progress in real time.",
            ))

        if case_type and CORPORATE_PATTERN.search(case_type):
            alerts.append(Alert(
                id="corporate-pattern",
                title="Corporate case pattern detected",
                severity=Severity.MEDIUM,
                message="Similar corporate cases are accumulating.",
                suggestion="Consider widening the scope together with the organization's internal audit team.",
            ))

        high_signals = [s for s in current_signals if s.severity == Severity.HIGH]
        if len(high_signals) > 1:
            alerts.append(Alert(
                id="multiple-high",
                title="Compound high risk",
                severity=Severity.HIGH,
                message=f"{len(high_signals)} high-severity signals detected; the threats compound.",
                suggestion="Review the field response plan now and bring in legal counsel in parallel.",
            ))

        deduped = list({alert.id: alert for alert in alerts}.values())
        if deduped:
            logger.info("alerts_derived", alerts=[a.id for a in deduped])
        return deduped

    def _trend_alert(self, snapshot: TrendSnapshot, now: datetime) -> Optional[Alert]:
        detections = [as_utc(ts) for ts in snapshot.recent_detections]

        recent = sum(1 for ts in detections if now - ts <= self.spike_window)
        if recent >= self.spike_threshold and snapshot.severity != Severity.LOW:
            return Alert(
                id=f"{snapshot.signal_id}-spike",
                title=f"{snapshot.title}: frequency increase",
                severity=snapshot.severity,
                message=f"The same alert fired {recent} times in the last 24 hours.",
                suggestion="Re-prioritize the case and reassign response staff.",
            )

        weekly = sum(1 for ts in detections if now - ts <= self.cumulative_window)
        if weekly >= self.cumulative_threshold:
            return Alert(
                id=f"{snapshot.signal_id}-trend",
                title=f"{snapshot.title}: cumulative increase",
                severity=Severity.MEDIUM if snapshot.severity == Severity.LOW else snapshot.severity,
                message=f"{snapshot.title} recurred {weekly} times over the last 7 days.",
                suggestion="Review response strategies for similar cases and update the guidelines.",
            )
        return None
