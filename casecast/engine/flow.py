"""
Investigation Flow Simulator.

Five fixed phases whose durations and confidences are stretched by the
overall risk and specific signals:

    days       = max(1, round_half_up(base_days × factor))
    confidence = clamp(confidence, 0.5, 0.95)

The analysis phase under a legal deadline is compressed instead
(factor −0.15, at least 2 days) and marked critical.
"""

from dataclasses import dataclass
from typing import Optional

from casecast.engine.numeric import clamp, round_half_up
from casecast.rules.risk_rules import (
    DIGITAL_TRACE,
    EMOTIONAL_DISTRESS,
    LEGAL_DEADLINE,
    VIOLENCE_THREAT,
)
from casecast.schemas.common import Severity
from casecast.schemas.insights import (
    FlowPhase,
    FlowSimulation,
    IntakeSummary,
    PhaseStatus,
    Signal,
)

MAX_CHECKPOINTS = 4
CHECKPOINT_CONFIDENCE = 0.7

BASE_PHASES: tuple[FlowPhase, ...] = (
    FlowPhase(id="discovery", name="Fact finding", duration_days=2, confidence=0.8,
              description="Organize the case overview and collect initial supporting material.",
              required_roles=["Intake Specialist"], dependencies=[], status=PhaseStatus.PLANNED),
    FlowPhase(id="evidence", name="Evidence collection", duration_days=4, confidence=0.7,
              description="Secure documents and digital logs and verify their integrity.",
              required_roles=["Research Analyst", "Digital Forensic"], dependencies=["discovery"],
              status=PhaseStatus.CRITICAL),
    FlowPhase(id="field", name="Field investigation", duration_days=5, confidence=0.6,
              description="Run offline work: site visits, interviews and undercover observation.",
              required_roles=["Field Investigator"], dependencies=["evidence"], status=PhaseStatus.PLANNED),
    FlowPhase(id="analysis", name="Analysis and strategy", duration_days=3, confidence=0.75,
              description="Analyze the collected data and prepare the legal strategy and response scenarios.",
              required_roles=["Strategy Lead", "Legal Advisor"], dependencies=["field", "evidence"],
              status=PhaseStatus.PARALLEL),
    FlowPhase(id="report", name="Final report and handover", duration_days=2, confidence=0.85,
              description="Document the findings and agree on follow-up actions with the client.",
              required_roles=["Report Writer", "Account Manager"], dependencies=["analysis"],
              status=PhaseStatus.PLANNED),
)


@dataclass(frozen=True)
class FlowContext:
    overall_risk: Severity
    signals: list[Signal]
    summary: Optional[IntakeSummary] = None

    def has(self, signal_id: str) -> bool:
        return any(s.id == signal_id for s in self.signals)

    @property
    def document_count(self) -> int:
        return len(self.summary.recommended_documents) if self.summary else 0


def _adjust(phase: FlowPhase, ctx: FlowContext) -> FlowPhase:
    factor = 1.0
    confidence = phase.confidence

    if ctx.overall_risk == Severity.HIGH:
        factor += 0.2
        confidence -= 0.05
    elif ctx.overall_risk == Severity.LOW:
        factor -= 0.1
        confidence += 0.05

    if phase.id == "evidence" and ctx.document_count > 3:
        factor += 0.2

    if phase.id == "field" and ctx.has(VIOLENCE_THREAT):
        factor += 0.25
        confidence -= 0.05

    if phase.id == "analysis" and ctx.has(LEGAL_DEADLINE):
        factor -= 0.15
        confidence += 0.05
        return phase.model_copy(update={
            "duration_days": max(2, round_half_up(phase.duration_days * factor)),
            "confidence": round(min(0.95, confidence + 0.05), 2),
            "status": PhaseStatus.CRITICAL,
        })

    return phase.model_copy(update={
        "duration_days": max(1, round_half_up(phase.duration_days * factor)),
        "confidence": round(clamp(confidence, 0.5, 0.95), 2),
    })


def _resource_notes(ctx: FlowContext) -> list[str]:
    notes = []
    if ctx.overall_risk == Severity.HIGH:
        notes.append("High-risk case: secure night and weekend response staff.")
    if ctx.document_count > 5:
        notes.append("Form a document review task force to classify the evidence.")
    if ctx.has(DIGITAL_TRACE):
        notes.append("Assign digital forensics equipment and specialists.")
    if ctx.has(EMOTIONAL_DISTRESS):
        notes.append("Bring in a client care manager to ease the communication load.")
    return notes


def _risk_notes(ctx: FlowContext) -> list[str]:
    notes: list[str] = []
    for signal in ctx.signals:
        if signal.severity == Severity.HIGH:
            note = f"{signal.title} detected repeatedly. Prepare separate countermeasures early."
        elif signal.severity == Severity.MEDIUM:
            note = f"Review {signal.title.lower()} risks at the interim report."
        else:
            continue
        if note not in notes:
            notes.append(note)
    return notes or ["No additional risks detected so far."]


def _checkpoints(phases: list[FlowPhase]) -> list[str]:
    return [
        f"Get lead approval after the {phase.name.lower()} phase before moving on."
        for phase in phases
        if phase.status == PhaseStatus.CRITICAL or phase.confidence < CHECKPOINT_CONFIDENCE
    ][:MAX_CHECKPOINTS]


def simulate_flow(
    overall_risk: Severity,
    signals: list[Signal],
    summary: Optional[IntakeSummary] = None,
) -> FlowSimulation:
    ctx = FlowContext(overall_risk=overall_risk, signals=signals, summary=summary)
    phases = [_adjust(phase, ctx) for phase in BASE_PHASES]
    return FlowSimulation(
        total_duration_days=sum(p.duration_days for p in phases),
        phases=phases,
        resource_notes=_resource_notes(ctx),
        risk_notes=_risk_notes(ctx),
        checkpoints=_checkpoints(phases),
    )
