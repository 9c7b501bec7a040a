"""
Compliance Scanner.

Runs the compliance rule table over labeled text segments. Every match
(up to 6 per rule per segment) becomes an issue; per-category weighted
hit counts feed five fixed metrics:

    score = 100 − clamp(weighted_hits × factor, 0, cap)
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog

from casecast.engine.numeric import clamp
from casecast.rules.compliance_rules import COMPLIANCE_RULE_TABLE
from casecast.rules.evaluator import PatternRuleEvaluator
from casecast.rules.table import RuleCategory, RuleTable
from casecast.schemas.common import Severity, severity_from_weight, severity_weight
from casecast.schemas.compliance import (
    AdditionalNote,
    ComplianceIssue,
    ComplianceMetric,
    ComplianceReport,
    ComplianceSegment,
)

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

SNIPPET_LIMIT: int = 140
MAX_FLAGGED_ISSUES: int = 40
MAX_SEGMENTS: int = 30
NO_RISK_DETAIL = "No risk indicators"


@dataclass(frozen=True)
class MetricSpec:
    id: str
    category: RuleCategory
    label: str
    factor: float
    cap: float
    threshold: float
    flagged_detail: str


METRICS: tuple[MetricSpec, ...] = (
    MetricSpec("privacy-score", RuleCategory.PRIVACY, "Personal data exposure risk", 28, 90, 70,
               "Sensitive data present. Masking and access control required."),
    MetricSpec("safety-score", RuleCategory.SAFETY, "Safety / violence risk", 35, 90, 65,
               "Dangerous statements detected. Report and review the safety plan."),
    MetricSpec("legal-score", RuleCategory.LEGAL, "Legal / regulatory impact", 26, 80, 60,
               "Possible legal violation. Run a legal review."),
    MetricSpec("bias-score", RuleCategory.BIAS, "Biased language risk", 32, 85, 75,
               "Discriminatory wording detected. Apply the training material and guidelines."),
    MetricSpec("policy-score", RuleCategory.POLICY, "Platform policy fit", 20, 70, 70,
               "Wording may breach policy. Add a disclaimer or rephrase."),
)

_WHITESPACE = re.compile(r"\s+")
_SLUG = re.compile(r"[^a-z0-9]+")


def make_snippet(fragment: str) -> str:
    normalized = fragment.strip()
    if len(normalized) > SNIPPET_LIMIT:
        return f"{normalized[:SNIPPET_LIMIT]}…"
    return normalized


class ComplianceScanner:
    """Pure scanner; the evaluator is built once per rule table."""

    def __init__(self, table: Optional[RuleTable] = None):
        self.evaluator = PatternRuleEvaluator(table or COMPLIANCE_RULE_TABLE)

    def scan(self, segments: list[ComplianceSegment]) -> ComplianceReport:
        issues: list[ComplianceIssue] = []
        weighted_hits: dict[RuleCategory, float] = {}

        for segment in segments:
            if not segment.text.strip():
                continue
            for hit in self.evaluator.evaluate(segment.text):
                rule = hit.rule
                for fragment in hit.fragments:
                    issues.append(ComplianceIssue(
                        id=f"{rule.id}-{segment.id}-{len(issues) + 1}",
                        category=rule.category.value,
                        severity=rule.severity,
                        snippet=make_snippet(fragment),
                        guidance=rule.guidance,
                        regulation_references=list(rule.references),
                        source=segment.label,
                    ))
                    weighted_hits[rule.category] = (
                        weighted_hits.get(rule.category, 0.0) + severity_weight(rule.severity)
                    )

        flagged_sources = {issue.source for issue in issues}
        clean_segments = sum(1 for s in segments if s.label not in flagged_sources)

        metrics = [self._metric(spec, weighted_hits.get(spec.category, 0.0)) for spec in METRICS]

        overall = (
            severity_from_weight(max(severity_weight(i.severity) for i in issues))
            if issues else Severity.LOW
        )
        summary = (
            f"{len(issues)} potential regulatory issues found. Address them in priority order."
            if issues else "No regulatory issues detected."
        )

        report = ComplianceReport(
            id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc),
            overall_severity=overall,
            flagged_issues=issues[:MAX_FLAGGED_ISSUES],
            metrics=metrics,
            clean_segments=clean_segments,
            total_segments=len(segments),
            summary=summary,
        )
        logger.info(
            "compliance_scanned",
            segments=len(segments),
            issues=len(issues),
            overall_severity=overall.value,
        )
        return report

    @staticmethod
    def _metric(spec: MetricSpec, hits: float) -> ComplianceMetric:
        score = 100 - clamp(hits * spec.factor, 0, spec.cap)
        return ComplianceMetric(
            id=spec.id,
            label=spec.label,
            score=clamp(round(score, 2), 0, 100),
            threshold=spec.threshold,
            detail=spec.flagged_detail if hits > 0 else NO_RISK_DETAIL,
        )


def to_compliance_segments(
    conversation_summary: Optional[str] = None,
    realtime_summary: Optional[str] = None,
    report_draft: Optional[str] = None,
    negotiation_plan: Optional[str] = None,
    additional_notes: Iterable[AdditionalNote] = (),
) -> list[ComplianceSegment]:
    """Build scan segments from the free-text artifacts of a case."""
    segments: list[ComplianceSegment] = []

    def push(label: str, text: Optional[str]) -> None:
        normalized = _WHITESPACE.sub(" ", text or "").strip()
        if not normalized:
            return
        slug = _SLUG.sub("-", label.lower())
        segments.append(ComplianceSegment(
            id=f"{slug}-{len(segments) + 1}",
            label=label,
            text=normalized,
            source=label,
        ))

    push("Conversation Summary", conversation_summary)
    push("Real-time Insights", realtime_summary)
    push("Report Draft", report_draft)
    push("Negotiation Plan", negotiation_plan)
    for index, note in enumerate(additional_notes, start=1):
        push(note.label or f"Additional-{index}", note.text)

    return segments[:MAX_SEGMENTS]
