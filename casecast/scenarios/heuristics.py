"""
Scenario Heuristics.

Per-category effect tables applied on top of the fixed twin factors.
Each effect carries a score delta and at most one explanation line
(a key factor or a risk alert), optionally with a recommended action.

Rule of the table: a non-zero delta always has exactly one explanation.
This is checked when an Effect is constructed, so a malformed table
fails at import.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Union

from casecast.exceptions import ConfigurationError
from casecast.scenarios.registry import ScenarioValue


@dataclass(frozen=True)
class Effect:
    delta: int = 0
    key: Optional[str] = None
    risk: Optional[str] = None
    action: Optional[str] = None

    def __post_init__(self):
        if self.key is not None and self.risk is not None:
            raise ConfigurationError("An effect explains itself with a key factor or a risk, not both")
        if self.delta != 0 and self.key is None and self.risk is None:
            raise ConfigurationError(f"Effect with delta {self.delta} has no explanation")


class EffectSink(Protocol):
    def apply(self, effect: Effect) -> None: ...


@dataclass(frozen=True)
class SelectEffects:
    variable: str
    effects: Mapping[str, Effect]

    def resolve(self, value: ScenarioValue) -> Optional[Effect]:
        return self.effects.get(value) if isinstance(value, str) else None


@dataclass(frozen=True)
class BooleanEffects:
    variable: str
    when_true: Optional[Effect] = None
    when_false: Optional[Effect] = None

    def resolve(self, value: ScenarioValue) -> Optional[Effect]:
        return self.when_true if value is True else self.when_false


@dataclass(frozen=True)
class ThresholdEffects:
    """`at_least` is checked before `at_most`."""

    variable: str
    at_least: Optional[tuple[float, Effect]] = None
    at_most: Optional[tuple[float, Effect]] = None

    def resolve(self, value: ScenarioValue) -> Optional[Effect]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if self.at_least and value >= self.at_least[0]:
            return self.at_least[1]
        if self.at_most and value <= self.at_most[0]:
            return self.at_most[1]
        return None


VariableEffects = Union[SelectEffects, BooleanEffects, ThresholdEffects]


@dataclass(frozen=True)
class CategoryHeuristics:
    category: str
    tables: tuple[VariableEffects, ...] = field(default_factory=tuple)

    def apply(self, values: Mapping[str, ScenarioValue], sink: EffectSink) -> None:
        for table in self.tables:
            effect = table.resolve(values.get(table.variable))
            if effect is not None:
                sink.apply(effect)


# ── affair ────────────────────────────────────────────────────────────────

AFFAIR_HEURISTICS = CategoryHeuristics("affair", (
    SelectEffects("routinePredictability", {
        "high": Effect(6, key="Highly predictable routine makes tailing patterns easy to establish."),
        "moderate": Effect(2, key="Partly predictable routine narrows the observation windows."),
        "low": Effect(-6, risk="Irregular routine makes the observation schedule hard to fix."),
    }),
    BooleanEffects("sharedLocations",
                   when_true=Effect(3, key="Known shared locations allow fixed-point surveillance.")),
    SelectEffects("digitalTrailVisibility", {
        "extensive": Effect(4, key="An extensive digital trail supports movement reconstruction."),
        "minimal": Effect(-4, risk="Little digital trail; field observation carries the load.",
                          action="Plan additional field shifts to compensate for the thin digital trail."),
    }),
    SelectEffects("thirdPartyComplexity", {
        "multiple": Effect(-4, risk="Multiple third parties increase identification effort.",
                           action="Build a relationship map before assigning tails."),
        "unknown": Effect(-2, risk="The third party is not yet identified."),
    }),
    SelectEffects("legalSensitivity", {
        "criminal": Effect(-6, risk="Criminal exposure demands strict evidence legality.",
                           action="Review every collection method with counsel beforehand."),
        "litigation": Effect(-3, risk="Litigation planned; evidence must hold up in court."),
        "civil": Effect(1, key="Civil scope keeps evidentiary requirements manageable."),
    }),
    SelectEffects("evidenceTypePriority", {
        "financial": Effect(action="Request card and transfer statements through lawful channels."),
        "digital": Effect(action="Preserve message and SNS records with hash verification."),
        "video": Effect(action="Prepare low-light video equipment and backup storage."),
    }),
    SelectEffects("weekendActivityLevel", {
        "high": Effect(-4, risk="Heavy weekend activity stretches the surveillance roster.",
                       action="Add a weekend rotation to the field schedule."),
        "low": Effect(2, key="Quiet weekends concentrate activity into weekdays."),
    }),
    SelectEffects("travelFrequency", {
        "weekly": Effect(-5, risk="Weekly travel requires mobile surveillance.",
                         action="Secure a vehicle and travel budget for out-of-town tails."),
        "rare": Effect(2, key="Rare travel keeps the operation local."),
    }),
    SelectEffects("familyAwarenessLevel", {
        "open": Effect(3, key="Family awareness eases cooperation with the client."),
        "hidden": Effect(-3, risk="Hidden from family; discretion constraints are higher."),
    }),
    BooleanEffects("sharedVehicleAccess",
                   when_true=Effect(3, key="Shared vehicle access gives location cues."),
                   when_false=Effect(-1, risk="No vehicle access; movement cues are limited.")),
    SelectEffects("targetTechSavvy", {
        "high": Effect(-4, risk="A tech-savvy subject may detect tracking.",
                       action="Run counter-surveillance checks before each shift."),
        "low": Effect(2, key="Low tech savviness reduces detection risk."),
    }),
    SelectEffects("financialOpsec", {
        "strict": Effect(-3, risk="Strict financial opsec hides payment trails.",
                         action="Shift focus to physical evidence over transaction records."),
        "basic": Effect(2, key="Loose financial habits leave usable payment trails."),
    }),
))

# ── corporate ─────────────────────────────────────────────────────────────

CORPORATE_HEURISTICS = CategoryHeuristics("corporate", (
    SelectEffects("insiderAccessLevel", {
        "high": Effect(6, key="High insider access shortens the path to internal records."),
        "low": Effect(-4, risk="Low insider access limits internal evidence.",
                      action="Negotiate data access with the client's security team."),
        "medium": Effect(2, key="Moderate insider access covers the core systems."),
    }),
    SelectEffects("securityMaturity", {
        "advanced": Effect(-5, risk="Mature security controls slow covert collection.",
                           action="Coordinate collection windows with the security operations team."),
        "basic": Effect(3, key="Basic security posture leaves logs easy to gather."),
    }),
    SelectEffects("remoteWorkRatio", {
        "high": Effect(-3, risk="Mostly remote staff widen the endpoint scope.",
                       action="Include remote endpoints and VPN logs in the collection plan."),
        "low": Effect(2, key="Mostly on-site staff keep activity observable."),
    }),
    BooleanEffects("legalHoldActive",
                   when_true=Effect(-2, risk="Active legal hold restricts how data may be handled.",
                                    action="Align collection steps with the legal hold notice.")),
    SelectEffects("dataSensitivity", {
        "regulated": Effect(-4, risk="Regulated data adds compliance overhead.",
                            action="Confirm regulatory handling requirements before export."),
        "standard": Effect(1, key="Standard data sensitivity simplifies handling."),
    }),
    SelectEffects("unionPresence", {
        "strong": Effect(-2, risk="Strong union presence requires procedural care in interviews.",
                         action="Brief union representatives according to policy."),
        "none": Effect(1, key="No union procedures constrain the interview schedule."),
    }),
    BooleanEffects("cyberMonitoring",
                   when_true=Effect(key="Existing cyber monitoring supplies baseline logs."),
                   when_false=Effect(-3, risk="No cyber monitoring; logs may be missing.",
                                     action="Deploy temporary log collection before interviews start.")),
    SelectEffects("siteDistribution", {
        "global": Effect(-5, risk="Global sites complicate jurisdiction and logistics.",
                         action="Map jurisdictions and assign local partners per region."),
        "single": Effect(2, key="A single site keeps the investigation contained."),
    }),
    SelectEffects("incidentHistory", {
        "recurring": Effect(-4, risk="Recurring incidents suggest entrenched misconduct.",
                            action="Review prior incident reports for repeat actors."),
        "none": Effect(1, key="No prior incidents keep the baseline clean."),
    }),
    SelectEffects("vendorFootprint", {
        "extensive": Effect(-3, risk="An extensive vendor footprint widens the data surface.",
                            action="Prioritize vendors with privileged system access."),
    }),
    SelectEffects("employeeTurnover", {
        "volatile": Effect(-2, risk="Volatile turnover means key witnesses may leave."),
        "stable": Effect(1, key="Stable staffing keeps witnesses available."),
    }),
    ThresholdEffects("dataLossWindow",
                     at_least=(48, Effect(-3, risk="A long data loss window risks overwritten logs.",
                                          action="Image critical systems immediately.")),
                     at_most=(8, Effect(2, key="A short data loss window keeps logs fresh."))),
    SelectEffects("whistleblowerActivity", {
        "active": Effect(2, key="An active whistleblower can guide the evidence search."),
        "pending": Effect(-1, risk="A pending whistleblower report may alert the subjects."),
    }),
))

# ── missing ───────────────────────────────────────────────────────────────

MISSING_HEURISTICS = CategoryHeuristics("missing", (
    SelectEffects("lastSightingReliability", {
        "strong": Effect(6, key="A reliable last sighting anchors the search radius."),
        "weak": Effect(-6, risk="An unreliable last sighting widens the search radius.",
                       action="Re-interview witnesses and verify CCTV timestamps."),
        "moderate": Effect(2, key="A plausible last sighting gives a starting area."),
    }),
    SelectEffects("lawEnforcementCooperation", {
        "active": Effect(4, key="Active police cooperation opens official records."),
        "none": Effect(-3, risk="No police cooperation limits access to official records."),
    }),
    SelectEffects("healthConcerns", {
        "critical": Effect(-5, risk="Critical health concerns shorten the safe search window.",
                           action="Contact hospitals and pharmacies along likely routes."),
        "none": Effect(1, key="No known health concerns."),
    }),
    SelectEffects("travelDocumentStatus", {
        "held": Effect(-3, risk="The subject holds travel documents; overseas departure is possible.",
                       action="Check departure records through the proper authorities."),
        "confiscated": Effect(3, key="Confiscated travel documents rule out overseas departure."),
    }),
    SelectEffects("supportNetwork", {
        "isolated": Effect(-4, risk="An isolated subject leaves few contacts to trace.",
                           action="Canvass shelters and frequented public places."),
        "family": Effect(3, key="A family network provides contact leads."),
    }),
    SelectEffects("riskZones", {
        "wilderness": Effect(-5, risk="Wilderness zones require search-and-rescue coordination.",
                             action="Coordinate with local search-and-rescue teams."),
        "suburban": Effect(1, key="Suburban zones keep the search grid manageable."),
    }),
    ThresholdEffects("timeSinceMissingHours",
                     at_least=(168, Effect(-6, risk="More than a week has passed since the disappearance.",
                                           action="Widen the search to transport hubs and other regions.")),
                     at_most=(24, Effect(3, key="Reported within a day; trails are still fresh."))),
    SelectEffects("subjectAgeBracket", {
        "minor": Effect(-3, risk="A missing minor demands immediate escalation.",
                        action="Escalate with child protection services."),
        "senior": Effect(-2, risk="A senior subject may be disoriented or need care."),
    }),
    BooleanEffects("hasPersonalVehicle",
                   when_true=Effect(-2, risk="A personal vehicle extends the possible travel range.",
                                    action="Request license plate recognition records.")),
    SelectEffects("digitalFootprintAccess", {
        "full": Effect(3, key="Full digital access enables device-based tracing."),
        "none": Effect(-3, risk="No digital footprint access."),
    }),
    SelectEffects("terrainComplexity", {
        "wilderness": Effect(-4, risk="Wilderness terrain slows ground search.",
                             action="Plan drone or aerial support for terrain coverage."),
        "urban": Effect(1, key="Urban terrain offers dense CCTV coverage."),
    }),
    SelectEffects("psychologicalState", {
        "distressed": Effect(-4, risk="A distressed subject raises the risk of self-harm.",
                             action="Involve a crisis counselor in contact attempts."),
    }),
))

# ── insurance ─────────────────────────────────────────────────────────────

INSURANCE_HEURISTICS = CategoryHeuristics("insurance", (
    SelectEffects("claimValueBand", {
        "50mPlus": Effect(-4, risk="A high claim value invites stronger legal defense.",
                          action="Document every finding to litigation standard."),
        "under10m": Effect(2, key="A small claim value keeps the scope narrow."),
    }),
    SelectEffects("priorClaimHistory", {
        "frequent": Effect(-3, risk="Frequent prior claims suggest an organized pattern.",
                           action="Cross-check prior claims for shared providers or witnesses."),
        "none": Effect(2, key="No prior claims keep the history simple."),
    }),
    SelectEffects("medicalValidationDifficulty", {
        "high": Effect(-4, risk="Medical claims are hard to validate independently.",
                       action="Arrange an independent medical review."),
        "low": Effect(2, key="Medical records are straightforward to validate."),
    }),
    SelectEffects("insurerCooperationLevel", {
        "supportive": Effect(3, key="A supportive insurer shares claim files quickly."),
        "adversarial": Effect(-4, risk="An adversarial insurer slows document access.",
                              action="Formalize document requests in writing."),
    }),
    BooleanEffects("digitalTransactionFlag",
                   when_true=Effect(1, key="Flagged digital transactions give a concrete lead.",
                                    action="Trace the flagged transactions with the finance team.")),
    SelectEffects("surveillanceTolerance", {
        "low": Effect(-2, risk="Low surveillance tolerance limits field observation.",
                      action="Favor document review over extended surveillance."),
        "high": Effect(2, key="High surveillance tolerance allows extended observation."),
    }),
    SelectEffects("policyType", {
        "life": Effect(-3, risk="Life policies involve sensitive beneficiary issues.",
                       action="Verify beneficiary relationships and recent policy changes."),
        "property": Effect(1, key="Property claims leave physical evidence to inspect."),
    }),
    SelectEffects("claimPreparationLevel", {
        "exhaustive": Effect(-3, risk="An exhaustively prepared claim may be staged."),
        "minimal": Effect(2, key="A minimally prepared claim shows inconsistencies readily."),
    }),
    ThresholdEffects("coApplicantCount",
                     at_least=(3, Effect(-2, risk="Several co-applicants complicate the claim picture.")),
                     at_most=(0, Effect(1, key="A single applicant keeps statements consistent."))),
    BooleanEffects("hasLegalRepresentation",
                   when_true=Effect(-3, risk="The claimant is legally represented.",
                                    action="Route all contact with the claimant through counsel.")),
    SelectEffects("surveillanceCounterMeasures", {
        "aggressive": Effect(-4, risk="Aggressive countermeasures may expose the surveillance.",
                             action="Rotate surveillance staff and vehicles frequently."),
        "none": Effect(2, key="No countermeasures observed."),
    }),
    SelectEffects("financialAuditTrail", {
        "suspicious": Effect(-5, risk="A suspicious audit trail points to concealed flows.",
                             action="Commission a forensic accounting review."),
        "clean": Effect(2, key="A clean audit trail narrows the fraud hypothesis."),
    }),
))


BUILTIN_HEURISTICS: dict[str, CategoryHeuristics] = {
    h.category: h
    for h in (AFFAIR_HEURISTICS, CORPORATE_HEURISTICS, MISSING_HEURISTICS, INSURANCE_HEURISTICS)
}


def apply_scenario_heuristics(
    category: str,
    values: Mapping[str, ScenarioValue],
    sink: EffectSink,
    heuristics: Optional[Mapping[str, CategoryHeuristics]] = None,
) -> None:
    """Apply the category's effect table; categories without one contribute nothing."""
    table = (heuristics if heuristics is not None else BUILTIN_HEURISTICS).get(category)
    if table is not None:
        table.apply(values, sink)
