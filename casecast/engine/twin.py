"""
Digital Twin Estimator.

Deterministic success estimate for a planned field operation:

    score = 62
          + fixed factors (category, agents, vehicle, shift, occupation,
            commute, weather, density, escort, budget, operation date)
          + scenario variable effects (per-category table)
    success_rate = clamp(round_half_up(score), 8, 96)

Every score change pushes exactly one explanation line (key factor or
risk alert). Empty explanation lists receive one generic default line.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional

import structlog

from casecast.engine.numeric import clamp, round_half_up
from casecast.exceptions import InputValidationError
from casecast.scenarios.definitions import default_registry
from casecast.scenarios.heuristics import (
    BUILTIN_HEURISTICS,
    CategoryHeuristics,
    Effect,
    apply_scenario_heuristics,
)
from casecast.scenarios.registry import ScenarioValues, ScenarioVariableRegistry
from casecast.schemas.twin import (
    COMMUTE_LABELS,
    DENSITY_LABELS,
    ESCORT_LABELS,
    OCCUPATION_LABELS,
    WEATHER_LABELS,
    BudgetLevel,
    CommutePattern,
    ConfidenceLabel,
    EscortSupport,
    FieldAgentGender,
    LocationDensity,
    ShiftType,
    TargetOccupation,
    TwinAnalysis,
    TwinSimulationInput,
    TwinTimelineStep,
    Weather,
)

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

BASE_SCORE: float = 62
MIN_SUCCESS_RATE: int = 8
MAX_SUCCESS_RATE: int = 96
HIGH_CONFIDENCE_RATE: int = 75
MEDIUM_CONFIDENCE_RATE: int = 55

BASE_KNOWLEDGE: tuple[str, ...] = (
    "Private investigation success case database (2023): per-variable weights",
    "Field agent operations manual, 7th edition",
    "Internal movement-pattern model v2.4",
)

DEFAULT_KEY_FACTOR = "Operation is feasible under the baseline simulation parameters."
DEFAULT_RISK_ALERT = "No major risks; keep the standard checklist."
DEFAULT_ACTION = "Mark stakeout points in advance and check the communication protocol."


# ── Fixed factor effects ──────────────────────────────────────────────────

CATEGORY_EFFECTS: dict[str, Effect] = {
    "affair": Effect(6, key="Infidelity case: clear core activity hours make tailing efficient."),
    "corporate": Effect(2, risk="Corporate security cases face legal limits and counter-surveillance."),
    "missing": Effect(-8, risk="Missing person searches depend heavily on police and local networks."),
    "insurance": Effect(4, key="Insurance case: repeated patterns make evidence easier to secure."),
}

AGENT_EFFECTS: dict[FieldAgentGender, Effect] = {
    FieldAgentGender.MIXED: Effect(4, key="A mixed team diversifies cover and approach scenarios."),
    FieldAgentGender.FEMALE: Effect(2, key="A female agent lowers complaint risk near residences."),
}

VEHICLE_EFFECTS: dict[bool, Effect] = {
    True: Effect(5, key="Tracking vehicle secured: wider radius and sustained night watch."),
    False: Effect(-7, risk="No vehicle: long-distance tailing costs more time and money.",
                  action="Secure vehicle support or bring in a partner team."),
}

SHIFT_EFFECTS: dict[ShiftType, Effect] = {
    ShiftType.DAY: Effect(3, key="Daytime operation keeps visibility and access simple."),
    ShiftType.NIGHT: Effect(-4, risk="Night operation: visibility and access control suffer."),
    ShiftType.ROTATING: Effect(1, key="Rotating shifts give round-the-clock coverage."),
}

OCCUPATION_EFFECTS: dict[TargetOccupation, Effect] = {
    TargetOccupation.OFFICE: Effect(6, key="Office workers follow regular, trackable routes."),
    TargetOccupation.FREELANCER: Effect(-5, risk="Freelancers keep volatile schedules; routes are hard to predict."),
    TargetOccupation.SERVICE: Effect(1, key="Service jobs tie the subject to a known workplace."),
    TargetOccupation.UNKNOWN: Effect(-6, risk="Subject occupation unknown: add a research phase first."),
}

COMMUTE_EFFECTS: dict[CommutePattern, Effect] = {
    CommutePattern.REGULAR: Effect(5, key="Regular commute: fixed monitoring points are possible."),
    CommutePattern.FLEX: Effect(-3, risk="Flexible commute: pattern learning takes longer."),
    CommutePattern.REMOTE: Effect(-5, risk="Mostly remote: few outdoor movements, rely on online tracing."),
}

WEATHER_EFFECTS: dict[Weather, Effect] = {
    Weather.CLEAR: Effect(4, key="Clear weather keeps sightlines and equipment reliable."),
    Weather.RAIN: Effect(-5, risk="Rain: protect sightlines and tracking equipment.",
                         action="Bring waterproof gear and strengthen indoor fallback scenarios."),
    Weather.SNOW: Effect(-8, risk="Snow: night CCTV quality and road closures become variables.",
                         action="Arrange tire chains and alternative transport in advance."),
    Weather.WINDY: Effect(-2, risk="Strong wind limits drone use and outdoor stakeouts."),
}

DENSITY_EFFECTS: dict[LocationDensity, Effect] = {
    LocationDensity.DOWNTOWN: Effect(-3, risk="Dense downtown: parking and tail exposure risk rise."),
    LocationDensity.RESIDENTIAL: Effect(2, key="Residential area: neighborhood watch patterns are usable."),
    LocationDensity.RURAL: Effect(-1, risk="Outskirts: plan long drives and fuel management."),
}

ESCORT_EFFECTS: dict[EscortSupport, Effect] = {
    EscortSupport.SOLO: Effect(-6, risk="Solo deployment: too few hands for field contingencies.",
                               action="Secure backup drone or live control-center support."),
    EscortSupport.DUAL: Effect(3, key="Two-person unit: cross-surveillance and rest rotation."),
    EscortSupport.TEAM: Effect(6, key="Full team: multi-angle coverage and clear role split.",
                               action="Re-check the team communication protocol during briefing."),
}

BUDGET_EFFECTS: dict[BudgetLevel, Effect] = {
    BudgetLevel.TIGHT: Effect(-4, risk="Tight budget limits equipment and relief staffing.",
                              action="Concentrate resources on key segments; consider renting IoT sensors."),
    BudgetLevel.PREMIUM: Effect(5, key="Premium budget widens equipment and partner options."),
}

WEEKEND_EFFECT = Effect(-3, risk="Weekend operation: store closures and guard shifts add variables.",
                        action="Plan weekend-specific routes and request holiday cooperation letters.")
WEEKDAY_EFFECT = Effect(2, key="Weekday operation: commute hours support pattern analysis.")
UNSCHEDULED_EFFECT = Effect(risk="Operation date undecided: review again once weather and staffing are fixed.")


def confidence_label_for(success_rate: float) -> ConfidenceLabel:
    if success_rate >= HIGH_CONFIDENCE_RATE:
        return ConfidenceLabel.HIGH
    if success_rate >= MEDIUM_CONFIDENCE_RATE:
        return ConfidenceLabel.MEDIUM
    return ConfidenceLabel.LOW


def new_twin_id() -> str:
    return f"twin_{uuid.uuid4().hex[:12]}"


def is_weekend(operation_date: Optional[str]) -> Optional[bool]:
    """True/False for a parseable ISO date, None when it cannot be parsed."""
    if not operation_date or not operation_date.strip():
        return None
    try:
        planned = datetime.fromisoformat(operation_date.strip())
    except ValueError:
        return None
    return planned.weekday() >= 5


@dataclass
class HeuristicAccumulator:
    """Running score plus de-duplicated explanation lists."""

    score: float = BASE_SCORE
    key_factors: list[str] = field(default_factory=list)
    risk_alerts: list[str] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)

    @staticmethod
    def _push(target: list[str], line: Optional[str]) -> None:
        if line and line not in target:
            target.append(line)

    def apply(self, effect: Effect) -> None:
        self.score += effect.delta
        self._push(self.key_factors, effect.key)
        self._push(self.risk_alerts, effect.risk)
        self._push(self.recommended_actions, effect.action)

    def add_risk(self, line: str) -> None:
        self._push(self.risk_alerts, line)

    def fill_defaults(self) -> None:
        if not self.key_factors:
            self.key_factors.append(DEFAULT_KEY_FACTOR)
        if not self.risk_alerts:
            self.risk_alerts.append(DEFAULT_RISK_ALERT)
        if not self.recommended_actions:
            self.recommended_actions.append(DEFAULT_ACTION)


def build_timeline(inputs: TwinSimulationInput, category_label: str) -> list[TwinTimelineStep]:
    return [
        TwinTimelineStep(
            phase="Digital twin environment setup",
            detail=f"Layer the virtual scenario on top of the {category_label} profile.",
        ),
        TwinTimelineStep(
            phase="Movement pattern learning",
            detail=(
                f"Replay {COMMUTE_LABELS[inputs.commute_pattern]} data for the "
                f"{OCCUPATION_LABELS[inputs.target_occupation].lower()} subject."
            ),
            emphasis="GPS ping · CDR 48h sampling",
        ),
        TwinTimelineStep(
            phase="Field risk simulation",
            detail=(
                f"Combine {WEATHER_LABELS[inputs.weather].lower()} weather with the "
                f"{DENSITY_LABELS[inputs.location_density]} environment to validate risk factors."
            ),
        ),
        TwinTimelineStep(
            phase="Operation rehearsal",
            detail=(
                f"Rehearse entry routes and backup scenarios as a "
                f"{ESCORT_LABELS[inputs.escort_support].lower()}."
            ),
        ),
    ]


class TwinEstimator:
    """Scores a TwinSimulationInput into a heuristic TwinAnalysis."""

    def __init__(
        self,
        registry: Optional[ScenarioVariableRegistry] = None,
        heuristics: Optional[Mapping[str, CategoryHeuristics]] = None,
    ):
        self.registry = registry or default_registry
        self.heuristics = heuristics if heuristics is not None else BUILTIN_HEURISTICS

    def sanitized_variables(self, inputs: TwinSimulationInput) -> ScenarioValues:
        if inputs.scenario_category not in self.registry:
            raise InputValidationError(
                f"Unknown scenario category: {inputs.scenario_category}",
                field="scenario_category",
            )
        return self.registry.sanitize(inputs.scenario_category, inputs.scenario_variables)

    def score(self, inputs: TwinSimulationInput, rationale: Optional[str] = None) -> TwinAnalysis:
        variables = self.sanitized_variables(inputs)
        category = self.registry.get(inputs.scenario_category)

        acc = HeuristicAccumulator()
        for effect in (
            CATEGORY_EFFECTS.get(category.id),
            AGENT_EFFECTS.get(inputs.field_agent_gender),
            VEHICLE_EFFECTS[inputs.has_vehicle],
            SHIFT_EFFECTS[inputs.shift_type],
            OCCUPATION_EFFECTS[inputs.target_occupation],
            COMMUTE_EFFECTS[inputs.commute_pattern],
            WEATHER_EFFECTS[inputs.weather],
            DENSITY_EFFECTS[inputs.location_density],
            ESCORT_EFFECTS[inputs.escort_support],
            BUDGET_EFFECTS.get(inputs.budget_level),
        ):
            if effect is not None:
                acc.apply(effect)

        if inputs.operation_date:
            weekend = is_weekend(inputs.operation_date)
            if weekend is not None:
                acc.apply(WEEKEND_EFFECT if weekend else WEEKDAY_EFFECT)
        else:
            acc.apply(UNSCHEDULED_EFFECT)

        notes = (inputs.special_notes or "").strip()
        if notes:
            acc.add_risk(f"Special notes to verify: {notes}")

        apply_scenario_heuristics(category.id, variables, acc, self.heuristics)

        success_rate = int(clamp(round_half_up(acc.score), MIN_SUCCESS_RATE, MAX_SUCCESS_RATE))
        acc.fill_defaults()

        analysis = TwinAnalysis(
            id=new_twin_id(),
            generated_at=datetime.now(timezone.utc),
            success_rate=success_rate,
            confidence_label=confidence_label_for(success_rate),
            key_factors=acc.key_factors,
            risk_alerts=acc.risk_alerts,
            recommended_actions=acc.recommended_actions,
            timeline=build_timeline(inputs, category.label.lower()),
            knowledge_base=list(BASE_KNOWLEDGE),
            rationale=rationale,
        )
        logger.info(
            "twin_scored",
            category=category.id,
            raw_score=acc.score,
            success_rate=success_rate,
            confidence=analysis.confidence_label.value,
        )
        return analysis
