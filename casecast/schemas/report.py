"""Pydantic schemas for the investigation report draft."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from casecast.schemas.common import Severity
from casecast.schemas.evidence import EvidenceSummary
from casecast.schemas.insights import ChatMessage, IntakeSummary, RealtimeInsights


class ReportDraftRequest(BaseModel):
    intake_summary: Optional[IntakeSummary] = None
    conversation_summary: Optional[str] = None
    insights: Optional[RealtimeInsights] = None
    evidence_summaries: list[EvidenceSummary] = Field(default_factory=list)
    transcript: list[ChatMessage] = Field(default_factory=list)


class RiskHighlight(BaseModel):
    title: str
    severity: Severity
    detail: str
    recommendation: str


class TimelineEntry(BaseModel):
    phase: str
    status: str
    eta_label: str
    note: str


class EvidenceHighlight(BaseModel):
    title: str
    classification: str
    risk_level: Severity
    key_finding: str


class ReportDraft(BaseModel):
    """Structured report sections plus their Markdown rendering."""

    id: str
    generated_at: datetime
    title: str
    executive_summary: str
    key_insights: list[str] = Field(..., max_length=8)
    risk_highlights: list[RiskHighlight] = Field(..., max_length=5)
    action_items: list[str] = Field(..., max_length=10)
    timeline_entries: list[TimelineEntry]
    evidence_highlights: list[EvidenceHighlight] = Field(..., max_length=6)
    follow_up_checklist: list[str] = Field(..., max_length=8)
    appendix_notes: list[str] = Field(..., max_length=6)
    markdown: str
