"""
Report Draft Builder.

Assembles an investigation report draft from whatever the intake has
produced so far: the case summary, the realtime insights, evidence
triage results and the transcript. Every section is optional; empty
sections are left out of the Markdown rendering.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog

from casecast.engine.detector import describe_signal
from casecast.engine.numeric import round_half_up
from casecast.schemas.common import Severity, severity_weight
from casecast.schemas.evidence import EvidenceSummary
from casecast.schemas.insights import IntakeSummary, RealtimeInsights, StepStatus
from casecast.schemas.report import (
    EvidenceHighlight,
    ReportDraft,
    ReportDraftRequest,
    RiskHighlight,
    TimelineEntry,
)

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

MAX_KEY_INSIGHTS = 8
MAX_RISK_HIGHLIGHTS = 5
MAX_ACTION_ITEMS = 10
MAX_EVIDENCE_HIGHLIGHTS = 6
MAX_FOLLOW_UPS = 8
MAX_APPENDIX_NOTES = 6
MAX_DOCUMENTS_LISTED = 3
MAX_APPENDIX_DOCUMENTS = 5
TRANSCRIPT_EXCERPT_MESSAGES = 4

SEVERITY_LABELS: dict[Severity, str] = {
    Severity.HIGH: "Urgent",
    Severity.MEDIUM: "Caution",
    Severity.LOW: "Watch",
}
RISK_LEVEL_LABELS: dict[Severity, str] = {
    Severity.HIGH: "High",
    Severity.MEDIUM: "Medium",
    Severity.LOW: "Low",
}
STATUS_LABELS: dict[StepStatus, str] = {
    StepStatus.DONE: "Done",
    StepStatus.IN_PROGRESS: "In progress",
    StepStatus.PENDING: "Pending",
}

DEFAULT_TITLE = "Investigation report draft"
DEFAULT_SUMMARY = "Report draft generated from the information collected during intake."
DEFAULT_FINDING = "Key analysis results are on record."

_WHITESPACE = re.compile(r"\s+")


def _clean(value: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", value).strip() if value else ""


def _unique(values, limit: int) -> list:
    return list(dict.fromkeys(values))[:limit]


def eta_label(eta_days: Optional[int], status: StepStatus) -> str:
    if status == StepStatus.DONE:
        return "Done"
    if eta_days is None:
        return "Schedule under review"
    if eta_days <= 0:
        return "Today"
    return f"Within {eta_days} days"


def build_key_insights(
    summary: Optional[IntakeSummary],
    insights: Optional[RealtimeInsights],
    evidence: list[EvidenceSummary],
) -> list[str]:
    lines: list[str] = []
    if summary is not None:
        for label, value in (
            ("Case", summary.case_title),
            ("Client goal", summary.objective),
            ("Case type", summary.case_type),
            ("Urgency", summary.urgency),
        ):
            if _clean(value):
                lines.append(f"{label}: {_clean(value)}")
    if insights is not None:
        lines.append(
            f"Assessed risk: {RISK_LEVEL_LABELS[insights.overall_risk]} "
            f"({round_half_up(insights.risk_score)} pts)"
        )
        if insights.alerts:
            lines.append(f"{len(insights.alerts)} trend alert(s) raised")
        lines.append(f"Expected investigation length: {insights.flow_simulation.total_duration_days} days")
    if summary is not None and summary.recommended_documents:
        lines.append(f"Required material: {', '.join(summary.recommended_documents[:MAX_DOCUMENTS_LISTED])}")
    if summary is not None and summary.key_facts:
        lines.append(f"{len(summary.key_facts)} key fact(s) recorded")
    if evidence:
        # Stable sort: the first artifact wins among equal risk levels.
        top = sorted(evidence, key=lambda e: severity_weight(e.risk_level), reverse=True)[0]
        lines.append(f"Key evidence: {top.title} ({top.risk_level.value.upper()})")

    return _unique(lines, MAX_KEY_INSIGHTS)


def build_risk_highlights(insights: Optional[RealtimeInsights]) -> list[RiskHighlight]:
    if insights is None:
        return []
    return [
        RiskHighlight(
            title=signal.title,
            severity=signal.severity,
            detail=describe_signal(signal),
            recommendation=signal.guidance,
        )
        for signal in insights.signals[:MAX_RISK_HIGHLIGHTS]
    ]


def build_action_items(insights: Optional[RealtimeInsights]) -> list[str]:
    if insights is None:
        return []
    items = []
    for item in insights.action_plan.items:
        owner = f" · Owner {item.owner_hint}" if item.owner_hint else ""
        due = f" (~{item.due_in_hours}h)" if item.due_in_hours else ""
        items.append(f"{item.label}{owner}{due}: {item.description}")
    for action in insights.next_actions:
        items.append(f"[{SEVERITY_LABELS[action.priority]}] {action.label} - {action.description}")
    return _unique(items, MAX_ACTION_ITEMS)


def build_timeline_entries(insights: Optional[RealtimeInsights]) -> list[TimelineEntry]:
    if insights is None:
        return []
    return [
        TimelineEntry(
            phase=step.label,
            status=STATUS_LABELS[step.status],
            eta_label=eta_label(step.eta_days, step.status),
            note=step.rationale,
        )
        for step in insights.timeline
    ]


def build_evidence_highlights(evidence: list[EvidenceSummary]) -> list[EvidenceHighlight]:
    return [
        EvidenceHighlight(
            title=summary.title,
            classification=summary.classification,
            risk_level=summary.risk_level,
            key_finding=next(iter(summary.key_findings or summary.recommended_actions), DEFAULT_FINDING),
        )
        for summary in evidence[:MAX_EVIDENCE_HIGHLIGHTS]
    ]


def build_follow_up_checklist(summary: Optional[IntakeSummary], insights: Optional[RealtimeInsights]) -> list[str]:
    candidates = [
        *(summary.missing_details if summary is not None else []),
        *(insights.follow_up_questions if insights is not None else []),
    ]
    return _unique((c.strip() for c in candidates if c.strip()), MAX_FOLLOW_UPS)


def build_appendix_notes(request: ReportDraftRequest) -> list[str]:
    notes: list[str] = []
    if request.conversation_summary and request.conversation_summary.strip():
        notes.append(f"Conversation summary: {request.conversation_summary.strip()}")
    summary = request.intake_summary
    if summary is not None and summary.recommended_documents:
        documents = ", ".join(summary.recommended_documents[:MAX_APPENDIX_DOCUMENTS])
        notes.append(f"Material still to secure: {documents}")
    if request.transcript:
        excerpt = " \n".join(
            f"{'AI' if message.role == 'assistant' else 'Client'}: {message.content}"
            for message in request.transcript[:TRANSCRIPT_EXCERPT_MESSAGES]
        )
        notes.append(f"Transcript excerpt:\n{excerpt}")
    return notes[:MAX_APPENDIX_NOTES]


def render_markdown(report: ReportDraft) -> str:
    lines = [
        f"# {report.title}",
        f"Generated: {report.generated_at.isoformat()}",
        "",
        "## Summary",
        report.executive_summary,
        "",
    ]

    def section(heading: str, body: list[str]) -> None:
        if body:
            lines.extend([f"## {heading}", *body, ""])

    section("Key insights", [f"- {item}" for item in report.key_insights])
    section("Risk signals", [
        line
        for h in report.risk_highlights
        for line in (f"- [{SEVERITY_LABELS[h.severity]}] {h.title}: {h.detail}", f"  - Response: {h.recommendation}")
    ])
    section("Action items", [f"- {item}" for item in report.action_items])
    section("Timeline", [
        line
        for e in report.timeline_entries
        for line in (f"- {e.phase} ({e.status}, {e.eta_label})", f"  - {e.note}")
    ])
    section("Evidence highlights", [
        line
        for e in report.evidence_highlights
        for line in (
            f"- {e.title} ({e.classification}, {SEVERITY_LABELS[e.risk_level]})",
            f"  - {e.key_finding}",
        )
    ])
    section("Follow-up checks", [f"- {item}" for item in report.follow_up_checklist])
    section("Appendix", [f"- {note}" for note in report.appendix_notes])
    return "\n".join(lines)


def new_report_id() -> str:
    return f"report-{uuid.uuid4().hex[:12]}"


def build_report_draft(request: ReportDraftRequest, now: Optional[datetime] = None) -> ReportDraft:
    summary = request.intake_summary
    insights = request.insights

    title = _clean(summary.case_title if summary is not None else None) or DEFAULT_TITLE
    executive_summary = (
        _clean(request.conversation_summary)
        or _clean(insights.summary if insights is not None else None)
        or DEFAULT_SUMMARY
    )

    report = ReportDraft(
        id=new_report_id(),
        generated_at=now or datetime.now(timezone.utc),
        title=title,
        executive_summary=executive_summary,
        key_insights=build_key_insights(summary, insights, request.evidence_summaries),
        risk_highlights=build_risk_highlights(insights),
        action_items=build_action_items(insights),
        timeline_entries=build_timeline_entries(insights),
        evidence_highlights=build_evidence_highlights(request.evidence_summaries),
        follow_up_checklist=build_follow_up_checklist(summary, insights),
        appendix_notes=build_appendix_notes(request),
        markdown="",
    )
    report.markdown = render_markdown(report)
    logger.info(
        "report_draft_built",
        report_id=report.id,
        sections=sum(1 for line in report.markdown.splitlines() if line.startswith("## ")),
    )
    return report
