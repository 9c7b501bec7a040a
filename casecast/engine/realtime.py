"""
Realtime Insights Pipeline.

One pass over an intake conversation:

    detect → record trends → timeline → recommendations
           → next actions / follow-ups / action plan → alerts → flow

Trends are recorded before anything else touches the network. When the
trend store is degraded, history-based alerts (spike, cumulative) are
skipped and the response carries `trends_degraded=True`; case-based
alerts still apply.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from casecast.engine.detector import SignalDetector, user_text
from casecast.engine.flow import simulate_flow
from casecast.engine.numeric import clamp, round_half_up
from casecast.engine.planning import (
    adjust_timeline,
    build_action_plan,
    build_follow_up_questions,
    build_next_actions,
    summary_for,
)
from casecast.engine.recommendations import ScenarioCorpus
from casecast.engine.trends import TrendAnalyzer
from casecast.exceptions import InputValidationError
from casecast.schemas.insights import RealtimeInsights, RealtimeRequest
from casecast.store.trend_store import TrendStore

logger = structlog.get_logger(__name__)


def normalize_payload(payload: Union[RealtimeRequest, Mapping]) -> RealtimeRequest:
    """Validate a raw payload; schema problems surface as InputValidationError."""
    if isinstance(payload, RealtimeRequest):
        return payload
    try:
        return RealtimeRequest.model_validate(payload)
    except ValidationError as exc:
        errors = [
            {"loc": [str(part) for part in error["loc"]], "msg": error["msg"]}
            for error in exc.errors()
        ]
        first = errors[0]["loc"][0] if errors and errors[0]["loc"] else None
        raise InputValidationError(
            "Realtime insights payload is invalid",
            field=first,
            details={"errors": errors},
        ) from exc


class RealtimeAnalyzer:
    """Runs the realtime insights pipeline against one trend store."""

    def __init__(
        self,
        store: TrendStore,
        corpus: ScenarioCorpus,
        detector: Optional[SignalDetector] = None,
        trends: Optional[TrendAnalyzer] = None,
    ):
        self.store = store
        self.corpus = corpus
        self.detector = detector or SignalDetector()
        self.trends = trends or TrendAnalyzer()

    async def analyze(
        self,
        payload: Union[RealtimeRequest, Mapping],
        now: Optional[datetime] = None,
    ) -> RealtimeInsights:
        request = normalize_payload(payload)
        now = now or datetime.now(timezone.utc)
        summary = request.intake_summary

        detection = self.detector.detect_messages(request.messages)
        snapshots = await self.store.record(detection.signals, now)
        degraded = self.store.degraded
        if degraded:
            snapshots = []

        content = user_text(request.messages)
        timeline = adjust_timeline(content, summary)
        recommendations = self.corpus.rank(request.keywords, content)
        next_actions = build_next_actions(detection.signals, summary)
        follow_ups = build_follow_up_questions(summary, detection.signals)
        action_plan = build_action_plan(
            detection.signals,
            summary,
            next_actions,
            request.conversation_summary,
        )
        alerts = self.trends.derive_alerts(
            snapshots,
            detection.signals,
            case_urgency=summary.urgency if summary else None,
            case_type=summary.case_type if summary else None,
            now=now,
        )
        flow = simulate_flow(detection.overall_risk, detection.signals, summary)

        insights = RealtimeInsights(
            generated_at=now,
            risk_score=int(clamp(round_half_up(detection.risk_score), 0, 100)),
            overall_risk=detection.overall_risk,
            signals=detection.signals,
            alerts=alerts,
            timeline=timeline,
            recommendations=recommendations,
            next_actions=next_actions,
            action_plan=action_plan,
            flow_simulation=flow,
            follow_up_questions=follow_ups,
            summary=summary_for(detection.overall_risk),
            trends_degraded=degraded,
        )
        logger.info(
            "realtime_insights_generated",
            risk_score=insights.risk_score,
            overall_risk=insights.overall_risk.value,
            alerts=len(alerts),
            recommendations=len(recommendations),
            trends_degraded=degraded,
        )
        return insights
