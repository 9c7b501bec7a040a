"""
Digital Twin Schemas.

Fixed factors of a field operation, the resulting analysis, and the
schema an external generator's JSON must satisfy to be blended.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# ── Fixed Factor Enums ─────────────────────────────────────────────────


class FieldAgentGender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    MIXED = "mixed"


class ShiftType(StrEnum):
    DAY = "day"
    NIGHT = "night"
    ROTATING = "rotating"


class TargetOccupation(StrEnum):
    OFFICE = "office"
    FREELANCER = "freelancer"
    SERVICE = "service"
    UNKNOWN = "unknown"


class CommutePattern(StrEnum):
    REGULAR = "regular"
    FLEX = "flex"
    REMOTE = "remote"


class Weather(StrEnum):
    CLEAR = "clear"
    RAIN = "rain"
    SNOW = "snow"
    WINDY = "windy"


class LocationDensity(StrEnum):
    DOWNTOWN = "downtown"
    RESIDENTIAL = "residential"
    RURAL = "rural"


class EscortSupport(StrEnum):
    SOLO = "solo"
    DUAL = "dual"
    TEAM = "team"


class BudgetLevel(StrEnum):
    TIGHT = "tight"
    STANDARD = "standard"
    PREMIUM = "premium"


class ConfidenceLabel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnalysisSource(StrEnum):
    HEURISTIC_ONLY = "heuristic-only"
    BLENDED = "blended"


class FallbackReason(StrEnum):
    """Why a twin analysis came back heuristic-only."""
    DISABLED = "disabled"
    TIMEOUT = "timeout"
    ERROR = "error"
    INVALID_PAYLOAD = "invalid_payload"


FIELD_AGENT_LABELS = {
    FieldAgentGender.MALE: "Male agent",
    FieldAgentGender.FEMALE: "Female agent",
    FieldAgentGender.MIXED: "Mixed team",
}
SHIFT_LABELS = {
    ShiftType.DAY: "Daytime operation",
    ShiftType.NIGHT: "Night-focused",
    ShiftType.ROTATING: "Rotating shifts",
}
OCCUPATION_LABELS = {
    TargetOccupation.OFFICE: "Office worker",
    TargetOccupation.FREELANCER: "Freelancer / field job",
    TargetOccupation.SERVICE: "Service / on-site job",
    TargetOccupation.UNKNOWN: "Unknown occupation",
}
COMMUTE_LABELS = {
    CommutePattern.REGULAR: "regular commute",
    CommutePattern.FLEX: "flexible commute",
    CommutePattern.REMOTE: "remote / low mobility",
}
WEATHER_LABELS = {
    Weather.CLEAR: "Clear",
    Weather.RAIN: "Rain",
    Weather.SNOW: "Snow",
    Weather.WINDY: "Strong wind",
}
DENSITY_LABELS = {
    LocationDensity.DOWNTOWN: "dense downtown",
    LocationDensity.RESIDENTIAL: "residential",
    LocationDensity.RURAL: "outskirts / rural",
}
ESCORT_LABELS = {
    EscortSupport.SOLO: "Solo deployment",
    EscortSupport.DUAL: "Two-person unit",
    EscortSupport.TEAM: "Full team",
}
BUDGET_LABELS = {
    BudgetLevel.TIGHT: "Minimal cost",
    BudgetLevel.STANDARD: "Standard",
    BudgetLevel.PREMIUM: "Premium",
}


# ── Request ────────────────────────────────────────────────────────────


class TwinSimulationInput(BaseModel):
    """Fixed factors + scenario variables of one planned field operation."""

    scenario_category: str
    field_agent_gender: FieldAgentGender = FieldAgentGender.MALE
    has_vehicle: bool = False
    operation_date: Optional[str] = None
    shift_type: ShiftType = ShiftType.DAY
    target_occupation: TargetOccupation = TargetOccupation.UNKNOWN
    commute_pattern: CommutePattern = CommutePattern.REGULAR
    weather: Weather = Weather.CLEAR
    location_density: LocationDensity = LocationDensity.RESIDENTIAL
    escort_support: EscortSupport = EscortSupport.SOLO
    budget_level: BudgetLevel = BudgetLevel.STANDARD
    special_notes: Optional[str] = None
    conversation_summary: Optional[str] = None
    scenario_title: Optional[str] = None
    scenario_variables: dict[str, Any] = Field(default_factory=dict)


# ── Response ───────────────────────────────────────────────────────────


class TwinTimelineStep(BaseModel):
    phase: str
    detail: str
    emphasis: Optional[str] = None


class TwinAnalysis(BaseModel):
    """Heuristic (optionally blended) estimate of an operation's success."""

    id: str
    generated_at: datetime
    success_rate: int = Field(..., ge=0, le=100)
    confidence_label: ConfidenceLabel
    key_factors: list[str]
    risk_alerts: list[str]
    recommended_actions: list[str]
    timeline: list[TwinTimelineStep]
    knowledge_base: list[str]
    rationale: Optional[str] = None
    source: AnalysisSource = AnalysisSource.HEURISTIC_ONLY


# ── External generator payload ─────────────────────────────────────────


class ExternalTwinPayload(BaseModel):
    """Schema an external generator's JSON must satisfy to be blended."""

    success_rate: float = Field(..., ge=0, le=100)
    confidence_label: Literal["high", "medium", "low"]
    key_factors: list[str] = Field(..., min_length=1)
    risk_alerts: list[str] = Field(..., min_length=1)
    recommended_actions: list[str] = Field(..., min_length=1)
    timeline: list[TwinTimelineStep] = Field(..., min_length=1)
    knowledge_base: list[str] = Field(..., min_length=1)
    rationale: Optional[str] = None
