"""Pydantic schemas for candidate matching."""

from typing import Optional

from pydantic import BaseModel, Field

from casecast.schemas.common import Severity
from casecast.schemas.insights import IntakeSummary, Signal


class CandidateContact(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class CandidateProfile(BaseModel):
    """Service provider profile owned by the calling system (read-only here)."""

    id: str
    rating_average: Optional[float] = None
    success_rate: Optional[float] = None
    experience_years: float = 0
    service_area: Optional[str] = None
    specialties: list[str] = Field(default_factory=list)
    contact: Optional[CandidateContact] = None


class MatchContext(BaseModel):
    """Case description the candidates are ranked against."""

    keywords: list[str] = Field(default_factory=list)
    scenario_title: Optional[str] = None
    intake_summary: Optional[IntakeSummary] = None
    signals: list[Signal] = Field(default_factory=list)
    overall_risk: Optional[Severity] = None


class MatchRequest(BaseModel):
    candidates: list[CandidateProfile]
    context: MatchContext = Field(default_factory=MatchContext)


class MatchResult(BaseModel):
    candidate_id: str
    name: str
    email: Optional[str] = None
    match_score: int = Field(..., ge=0, le=100)
    base_score: int = Field(..., ge=0, le=100)
    rank_bonus: int = Field(..., ge=0)
    success_probability: float = Field(..., ge=0, le=1)
    confidence: float = Field(..., ge=0, le=1)
    alignment_factors: list[str]
    matched_keywords: list[str] = Field(default_factory=list)
    reason: str


class MatchResponse(BaseModel):
    results: list[MatchResult]
    total_candidates: int
