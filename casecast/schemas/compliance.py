"""Pydantic schemas for the compliance scanner."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from casecast.schemas.common import Severity


class ComplianceSegment(BaseModel):
    """A labeled piece of text to scan."""

    id: str
    label: str
    text: str
    source: str


class ComplianceIssue(BaseModel):
    id: str
    category: str
    severity: Severity
    snippet: str
    guidance: str
    regulation_references: list[str]
    source: str


class ComplianceMetric(BaseModel):
    id: str
    label: str
    score: float = Field(..., ge=0, le=100)
    threshold: float
    detail: str


class ComplianceReport(BaseModel):
    id: str
    generated_at: datetime
    overall_severity: Severity
    flagged_issues: list[ComplianceIssue]
    metrics: list[ComplianceMetric]
    clean_segments: int
    total_segments: int
    summary: str


class AdditionalNote(BaseModel):
    label: str
    text: str


class ComplianceScanRequest(BaseModel):
    """Either explicit segments, or the summary fields to build them from."""

    segments: list[ComplianceSegment] = Field(default_factory=list)
    conversation_summary: Optional[str] = None
    realtime_summary: Optional[str] = None
    report_draft: Optional[str] = None
    negotiation_plan: Optional[str] = None
    additional_notes: list[AdditionalNote] = Field(default_factory=list)
