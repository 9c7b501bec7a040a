"""
Realtime Insights Schemas.

Request: the intake chat transcript plus an optional structured case summary.
Response: signals, alerts, timeline, recommendations, next actions,
action plan, flow simulation and follow-up questions.
"""

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from casecast.schemas.common import Severity


# ── Request ────────────────────────────────────────────────────────────


class ChatMessage(BaseModel):
    """One message of the intake conversation."""

    role: str = Field(..., description="user | assistant (other roles are ignored by detection)")
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class IntakeSummary(BaseModel):
    """Structured case summary extracted from the intake conversation."""

    case_title: str = ""
    case_type: str = ""
    primary_intent: str = ""
    urgency: str = ""
    objective: str = ""
    key_facts: list[str] = Field(default_factory=list)
    missing_details: list[str] = Field(default_factory=list)
    recommended_documents: list[str] = Field(default_factory=list)
    next_questions: list[str] = Field(default_factory=list)

    @field_validator(
        "case_title", "case_type", "primary_intent", "urgency", "objective",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class RealtimeRequest(BaseModel):
    """Payload for the realtime insights call."""

    messages: list[ChatMessage] = Field(..., min_length=1)
    intake_summary: Optional[IntakeSummary] = None
    keywords: list[str] = Field(default_factory=list)
    conversation_summary: Optional[str] = None


# ── Signals & Alerts ───────────────────────────────────────────────────


class Signal(BaseModel):
    """A detected risk indicator."""

    id: str
    title: str
    severity: Severity
    confidence: float = Field(..., ge=0, le=1)
    evidence: str
    guidance: str


class Alert(BaseModel):
    """Proactive alert derived from trend history and the current case."""

    id: str
    title: str
    severity: Severity
    message: str
    suggestion: str


# ── Timeline & Recommendations ─────────────────────────────────────────


class StepStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TimelineStep(BaseModel):
    id: str
    label: str
    status: StepStatus
    eta_days: int
    rationale: str


class ScenarioRecommendation(BaseModel):
    id: str
    title: str
    similarity: float = Field(..., ge=0, le=1)
    summary: str
    highlight: str


class NextAction(BaseModel):
    id: str
    label: str
    description: str
    priority: Severity


# ── Action Plan ────────────────────────────────────────────────────────


class PlanPhase(StrEnum):
    P0 = "p0"
    P1 = "p1"
    BACKUP = "backup"


class ActionPlanItem(BaseModel):
    id: str
    phase: PlanPhase
    label: str
    description: str
    owner_hint: str
    due_in_hours: int
    related_signals: list[str] = Field(default_factory=list)


class ActionPlan(BaseModel):
    focus: str
    generated_at: datetime
    success_criteria: list[str]
    notes: str
    items: list[ActionPlanItem]


# ── Flow Simulation ────────────────────────────────────────────────────


class PhaseStatus(StrEnum):
    PLANNED = "planned"
    CRITICAL = "critical"
    PARALLEL = "parallel"


class FlowPhase(BaseModel):
    id: str
    name: str
    duration_days: int
    confidence: float = Field(..., ge=0, le=1)
    description: str
    required_roles: list[str]
    dependencies: list[str]
    status: PhaseStatus


class FlowSimulation(BaseModel):
    total_duration_days: int
    phases: list[FlowPhase]
    resource_notes: list[str]
    risk_notes: list[str]
    checkpoints: list[str]


# ── Response ───────────────────────────────────────────────────────────


class RealtimeInsights(BaseModel):
    """Combined output of one realtime insights pass."""

    generated_at: datetime
    risk_score: int = Field(..., ge=0, le=100)
    overall_risk: Severity
    signals: list[Signal]
    alerts: list[Alert]
    timeline: list[TimelineStep]
    recommendations: list[ScenarioRecommendation]
    next_actions: list[NextAction]
    action_plan: ActionPlan
    flow_simulation: FlowSimulation
    follow_up_questions: list[str] = Field(..., max_length=4)
    summary: str
    trends_degraded: bool = False
