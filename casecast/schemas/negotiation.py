"""
Negotiation Coaching Schemas.

Request: the intake conversation, optionally with the structured case
summary and the realtime insight bundle computed for it.
Response: tone guidance, strategy pillars, script lines, objection
handlers, risk warnings and follow-up prompts.
"""

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

from casecast.schemas.common import Severity
from casecast.schemas.insights import ChatMessage, IntakeSummary, RealtimeInsights


class NegotiationRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    intake_summary: Optional[IntakeSummary] = None
    insights: Optional[RealtimeInsights] = None
    conversation_summary: Optional[str] = None


class ScriptIntent(StrEnum):
    RAPPORT = "rapport"
    INFORMATION = "information"
    RISK = "risk"
    PROPOSAL = "proposal"
    OBJECTION = "objection"


class ToneGuidance(BaseModel):
    primary_tone: str
    backup_tone: Optional[str] = None
    cues: list[str] = Field(..., max_length=4)


class ScriptLine(BaseModel):
    """A ready-to-say line with the reasoning behind it."""

    id: str
    intent: ScriptIntent
    label: str
    script: str
    rationale: str
    trust_impact: float = Field(..., ge=0, le=1)
    emotional_tone: str
    recommended_next_step: Optional[str] = None


class NegotiationWarning(BaseModel):
    id: str
    title: str
    severity: Severity
    detail: str
    mitigation: str


class NegotiationCoachPlan(BaseModel):
    id: str
    generated_at: datetime
    situation_summary: str
    primary_goal: str
    tone_guidance: ToneGuidance
    strategy_pillars: list[str] = Field(..., max_length=4)
    scripted_responses: list[ScriptLine] = Field(..., max_length=4)
    objection_handlers: list[ScriptLine]
    risk_warnings: list[NegotiationWarning] = Field(..., max_length=4)
    follow_up_prompts: list[str] = Field(..., max_length=5)
    rapport_tips: list[str] = Field(..., max_length=4)
