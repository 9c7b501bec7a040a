"""
Case planning helpers for realtime insights.

Timeline adjustment, next actions, follow-up questions and the
prioritized action plan. All functions are pure.
"""

from datetime import datetime, timezone
from typing import Optional

from casecast.rules.risk_rules import EVIDENCE_LOSS, LEGAL_DEADLINE, VIOLENCE_THREAT
from casecast.schemas.common import Severity
from casecast.schemas.insights import (
    ActionPlan,
    ActionPlanItem,
    IntakeSummary,
    NextAction,
    PlanPhase,
    Signal,
    StepStatus,
    TimelineStep,
)

MAX_FOLLOW_UPS = 4

BASE_TIMELINE: tuple[TimelineStep, ...] = (
    TimelineStep(id="intake", label="Case intake and triage", status=StepStatus.IN_PROGRESS,
                 eta_days=1, rationale="Collecting the basic case facts from the conversation."),
    TimelineStep(id="evidence", label="Core evidence collection", status=StepStatus.PENDING,
                 eta_days=3, rationale="The schedule for securing key evidence is not fixed yet."),
    TimelineStep(id="field", label="Field investigation and tracking", status=StepStatus.PENDING,
                 eta_days=5, rationale="Field scope and resources are still to be assigned."),
    TimelineStep(id="interim", label="Interim report and strategy review", status=StepStatus.PENDING,
                 eta_days=7, rationale="You will be notified once the interim report date is set."),
    TimelineStep(id="final", label="Final report and handover", status=StepStatus.PENDING,
                 eta_days=10, rationale="The closing report draft will be prepared."),
)

SUCCESS_CRITERIA: tuple[str, ...] = (
    "Client safety and urgent issues stabilized",
    "Core evidence collection completed",
    "Strategy aligned through the interim briefing",
)

SUMMARIES: dict[Severity, str] = {
    Severity.HIGH: "Signals requiring urgent response were detected. Safety and legal deadlines come first.",
    Severity.MEDIUM: "Key issues are emerging; a pre-emptive response strategy is needed.",
    Severity.LOW: "The situation is stable for now; keep securing evidence and checking the schedule.",
}


def _has_signal(signals: list[Signal], signal_id: str) -> bool:
    return any(s.id == signal_id for s in signals)


def _mentions(content: str, *needles: str) -> bool:
    return any(needle in content for needle in needles)


def adjust_timeline(
    content: str,
    summary: Optional[IntakeSummary],
) -> list[TimelineStep]:
    """Pull steps forward based on what the client asked for. `content` is lowercased user text."""
    steps = {step.id: step.model_copy() for step in BASE_TIMELINE}

    if _mentions(content, "증거", "evidence") or (summary and summary.recommended_documents):
        steps["evidence"] = steps["evidence"].model_copy(update={
            "status": StepStatus.IN_PROGRESS,
            "eta_days": 2,
            "rationale": "Evidence was mentioned; collection should start immediately.",
        })

    if _mentions(content, "보고", "중간", "report", "interim"):
        steps["interim"] = steps["interim"].model_copy(update={
            "status": StepStatus.IN_PROGRESS,
            "eta_days": 3,
            "rationale": "An interim report was requested; the schedule is moved up.",
        })

    if _mentions(content, "위협", "긴급", "threat", "urgent"):
        steps["field"] = steps["field"].model_copy(update={
            "status": StepStatus.IN_PROGRESS,
            "eta_days": 1,
            "rationale": "Urgent signals that need a field response were detected.",
        })

    return list(steps.values())


def build_next_actions(signals: list[Signal], summary: Optional[IntakeSummary]) -> list[NextAction]:
    actions: list[NextAction] = []

    if _has_signal(signals, VIOLENCE_THREAT):
        actions.append(NextAction(
            id="safety-plan",
            label="Set up a client safety plan",
            description="Check protection order options, police reporting and emergency contacts, then share them.",
            priority=Severity.HIGH,
        ))

    if summary and summary.recommended_documents:
        actions.append(NextAction(
            id="document-check",
            label="Share the evidence checklist",
            description="Share the required document list with the client and explain how to upload.",
            priority=Severity.MEDIUM,
        ))

    if _has_signal(signals, LEGAL_DEADLINE):
        actions.append(NextAction(
            id="deadline-sync",
            label="Align legal deadlines",
            description="Put the filing deadline and internal review dates on the calendar.",
            priority=Severity.HIGH,
        ))

    if not actions:
        actions.append(NextAction(
            id="intake-review",
            label="Review the initial consultation",
            description="Check the summary and make sure no questions were missed.",
            priority=Severity.LOW,
        ))

    return actions


def build_follow_up_questions(summary: Optional[IntakeSummary], signals: list[Signal]) -> list[str]:
    questions: list[str] = []

    def add(question: str) -> None:
        if question not in questions:
            questions.append(question)

    if summary and summary.missing_details:
        add(f'Could you tell us more about "{summary.missing_details[0]}"?')
    if summary and summary.recommended_documents:
        add("Are there any other materials or evidence you could secure?")
    if _has_signal(signals, VIOLENCE_THREAT):
        add("Is there any danger around you right now, or do you need protective measures?")
    if _has_signal(signals, LEGAL_DEADLINE):
        add("Could you confirm exactly when the legal filing deadline is?")
    if not questions and summary and summary.case_type:
        add(f"Regarding this {summary.case_type} matter, could you explain a bit more about how it started?")
    if not questions:
        add("What worries you most right now, or is there anything else you would like to share?")

    return questions[:MAX_FOLLOW_UPS]


def build_action_plan(
    signals: list[Signal],
    summary: Optional[IntakeSummary],
    next_actions: list[NextAction],
    conversation_summary: Optional[str] = None,
) -> ActionPlan:
    focus = (
        (summary.case_title.strip() if summary else "")
        or (summary.primary_intent.strip() if summary else "")
        or "Initial response plan"
    )
    high = [s.id for s in signals if s.severity == Severity.HIGH]
    medium = [s.id for s in signals if s.severity == Severity.MEDIUM]
    documents = summary.recommended_documents if summary else []
    missing = summary.missing_details if summary else []

    items: list[ActionPlanItem] = []
    if high:
        items.append(ActionPlanItem(
            id="p0-safety",
            phase=PlanPhase.P0,
            label="Immediate safety and legal protection",
            description="Confirm the client's location and hazards, then activate emergency contacts and legal protection.",
            owner_hint="Lead Investigator",
            due_in_hours=1,
            related_signals=high,
        ))
    if documents:
        items.append(ActionPlanItem(
            id="p0-evidence",
            phase=PlanPhase.P0,
            label="Secure core evidence",
            description=f"Ask the client to upload {', '.join(documents[:3])} and back them up to prevent loss.",
            owner_hint="Case Coordinator",
            due_in_hours=6,
            related_signals=[s.id for s in signals if s.id == EVIDENCE_LOSS],
        ))
    if medium:
        items.append(ActionPlanItem(
            id="p1-briefing",
            phase=PlanPhase.P1,
            label="Prepare the interim strategy briefing",
            description="Schedule a team briefing to restate risk signals and client expectations.",
            owner_hint="Strategy Lead",
            due_in_hours=24,
            related_signals=medium,
        ))
    if missing:
        items.append(ActionPlanItem(
            id="p1-gap-fill",
            phase=PlanPhase.P1,
            label="Fill information gaps",
            description=f"Confirm these items first: {', '.join(missing[:3])}.",
            owner_hint="Client Success",
            due_in_hours=36,
        ))
    items.append(ActionPlanItem(
        id="backup-review",
        phase=PlanPhase.BACKUP,
        label="Contingency risk review",
        description="Draft an alternative strategy from the risk assessment and scenario recommendations, and prepare approval.",
        owner_hint="Operations",
        due_in_hours=72,
    ))

    notes: list[str] = []
    if conversation_summary:
        notes.append(conversation_summary)
    if summary and summary.next_questions:
        notes.append(f"Needs confirmation: {', '.join(summary.next_questions[:2])}")
    if next_actions:
        notes.append(f"Priority tasks: {', '.join(a.label for a in next_actions[:3])}")

    return ActionPlan(
        focus=focus,
        generated_at=datetime.now(timezone.utc),
        success_criteria=list(SUCCESS_CRITERIA),
        notes=" / ".join(notes) or "Initial response plan generated from the conversation summary and risk signals.",
        items=items,
    )


def summary_for(overall_risk: Severity) -> str:
    return SUMMARIES[overall_risk]
