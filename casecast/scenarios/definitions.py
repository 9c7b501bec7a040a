"""
Built-in scenario categories.

affair / corporate / missing / insurance, each with its typed variables.
Option values are stable wire identifiers; labels are display text.
"""

from typing import Optional

from casecast.scenarios.registry import (
    BooleanVariable,
    NumberVariable,
    ScenarioCategory,
    ScenarioVariableRegistry,
    SelectVariable,
    VariableOption,
)


def _select(
    id: str,
    label: str,
    default: str,
    options: list[tuple[str, str]],
    description: str = "",
) -> SelectVariable:
    return SelectVariable(
        id=id,
        label=label,
        description=description,
        default=default,
        options=tuple(VariableOption(value=value, label=text) for value, text in options),
    )


def _boolean(id: str, label: str, default: bool, description: str = "") -> BooleanVariable:
    return BooleanVariable(id=id, label=label, description=description, default=default)


def _number(
    id: str,
    label: str,
    default: float,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    step: float = 1,
    description: str = "",
) -> NumberVariable:
    return NumberVariable(
        id=id, label=label, description=description,
        default=default, min=minimum, max=maximum, step=step,
    )


_LOW_MODERATE_HIGH = [("low", "Low"), ("moderate", "Moderate"), ("high", "High")]


AFFAIR = ScenarioCategory(
    id="affair",
    label="Infidelity investigation",
    variables=(
        _select("routinePredictability", "Routine predictability", "moderate", _LOW_MODERATE_HIGH,
                "How regular the subject's daily movements are"),
        _boolean("sharedLocations", "Known shared locations", False,
                 "Places the subject and the third party are known to meet"),
        _select("digitalTrailVisibility", "Digital trail visibility", "moderate",
                [("minimal", "Minimal"), ("moderate", "Moderate"), ("extensive", "Extensive")]),
        _select("thirdPartyComplexity", "Third-party complexity", "single",
                [("single", "Single party"), ("multiple", "Multiple parties"), ("unknown", "Unknown")]),
        _select("legalSensitivity", "Legal sensitivity", "civil",
                [("civil", "Civil"), ("litigation", "Litigation planned"), ("criminal", "Criminal exposure")]),
        _select("evidenceTypePriority", "Evidence type priority", "photo",
                [("photo", "Photo"), ("video", "Video"), ("financial", "Financial records"),
                 ("digital", "Digital records")]),
        _select("weekendActivityLevel", "Weekend activity level", "moderate", _LOW_MODERATE_HIGH),
        _select("travelFrequency", "Travel frequency", "monthly",
                [("rare", "Rare"), ("monthly", "Monthly"), ("weekly", "Weekly")]),
        _select("familyAwarenessLevel", "Family awareness", "partial",
                [("hidden", "Hidden"), ("partial", "Partially aware"), ("open", "Openly known")]),
        _boolean("sharedVehicleAccess", "Shared vehicle access", False),
        _select("targetTechSavvy", "Subject tech savviness", "moderate", _LOW_MODERATE_HIGH),
        _select("financialOpsec", "Financial operational security", "moderate",
                [("basic", "Basic"), ("moderate", "Moderate"), ("strict", "Strict")]),
    ),
)

CORPORATE = ScenarioCategory(
    id="corporate",
    label="Corporate investigation",
    variables=(
        _select("insiderAccessLevel", "Insider access level", "medium",
                [("low", "Low"), ("medium", "Medium"), ("high", "High")]),
        _select("securityMaturity", "Security maturity", "intermediate",
                [("basic", "Basic"), ("intermediate", "Intermediate"), ("advanced", "Advanced")]),
        _select("remoteWorkRatio", "Remote work ratio", "balanced",
                [("low", "Mostly on-site"), ("balanced", "Balanced"), ("high", "Mostly remote")]),
        _boolean("legalHoldActive", "Legal hold active", False),
        _select("dataSensitivity", "Data sensitivity", "confidential",
                [("standard", "Standard"), ("confidential", "Confidential"), ("regulated", "Regulated")]),
        _select("unionPresence", "Union presence", "partial",
                [("none", "None"), ("partial", "Partial"), ("strong", "Strong")]),
        _boolean("cyberMonitoring", "Cyber monitoring in place", True),
        _select("siteDistribution", "Site distribution", "regional",
                [("single", "Single site"), ("regional", "Regional"), ("global", "Global")]),
        _select("incidentHistory", "Incident history", "occasional",
                [("none", "None"), ("occasional", "Occasional"), ("recurring", "Recurring")]),
        _select("vendorFootprint", "Vendor footprint", "diversified",
                [("limited", "Limited"), ("diversified", "Diversified"), ("extensive", "Extensive")]),
        _select("employeeTurnover", "Employee turnover", "moderate",
                [("stable", "Stable"), ("moderate", "Moderate"), ("volatile", "Volatile")]),
        _number("dataLossWindow", "Data loss window (hours)", 24, 0, 96, 1,
                "Hours until logs or backups are overwritten"),
        _select("whistleblowerActivity", "Whistleblower activity", "none",
                [("none", "None"), ("pending", "Pending"), ("active", "Active")]),
    ),
)

MISSING = ScenarioCategory(
    id="missing",
    label="Missing person search",
    variables=(
        _select("lastSightingReliability", "Last sighting reliability", "moderate",
                [("weak", "Weak"), ("moderate", "Moderate"), ("strong", "Strong")]),
        _select("lawEnforcementCooperation", "Law enforcement cooperation", "limited",
                [("none", "None"), ("limited", "Limited"), ("active", "Active")]),
        _select("healthConcerns", "Health concerns", "known",
                [("none", "None"), ("known", "Known condition"), ("critical", "Critical")]),
        _select("travelDocumentStatus", "Travel document status", "held",
                [("held", "Held by subject"), ("notIssued", "Not issued"), ("confiscated", "Confiscated")]),
        _select("supportNetwork", "Support network", "family",
                [("isolated", "Isolated"), ("family", "Family"), ("friends", "Friends")]),
        _select("riskZones", "Risk zones", "suburban",
                [("urban", "Urban"), ("suburban", "Suburban"), ("wilderness", "Wilderness")]),
        _number("timeSinceMissingHours", "Hours since missing", 48, 0, 720, 1),
        _select("subjectAgeBracket", "Subject age bracket", "adult",
                [("minor", "Minor"), ("adult", "Adult"), ("senior", "Senior")]),
        _boolean("hasPersonalVehicle", "Subject has a vehicle", False),
        _select("digitalFootprintAccess", "Digital footprint access", "partial",
                [("none", "None"), ("partial", "Partial"), ("full", "Full")]),
        _select("terrainComplexity", "Terrain complexity", "mixed",
                [("urban", "Urban"), ("mixed", "Mixed"), ("wilderness", "Wilderness")]),
        _select("psychologicalState", "Psychological state", "unknown",
                [("stable", "Stable"), ("distressed", "Distressed"), ("unknown", "Unknown")]),
    ),
)

INSURANCE = ScenarioCategory(
    id="insurance",
    label="Insurance fraud investigation",
    variables=(
        _select("claimValueBand", "Claim value band", "10to50m",
                [("under10m", "Under 10M KRW"), ("10to50m", "10M to 50M KRW"), ("50mPlus", "Over 50M KRW")]),
        _select("priorClaimHistory", "Prior claim history", "sporadic",
                [("none", "None"), ("sporadic", "Sporadic"), ("frequent", "Frequent")]),
        _select("medicalValidationDifficulty", "Medical validation difficulty", "moderate",
                _LOW_MODERATE_HIGH),
        _select("insurerCooperationLevel", "Insurer cooperation", "neutral",
                [("supportive", "Supportive"), ("neutral", "Neutral"), ("adversarial", "Adversarial")]),
        _boolean("digitalTransactionFlag", "Digital transaction anomaly flagged", False),
        _select("surveillanceTolerance", "Surveillance tolerance", "moderate", _LOW_MODERATE_HIGH),
        _select("policyType", "Policy type", "health",
                [("life", "Life"), ("accident", "Accident"), ("property", "Property"), ("health", "Health")]),
        _select("claimPreparationLevel", "Claim preparation level", "standard",
                [("minimal", "Minimal"), ("standard", "Standard"), ("exhaustive", "Exhaustive")]),
        _number("coApplicantCount", "Co-applicant count", 0, 0, 5, 1),
        _boolean("hasLegalRepresentation", "Claimant has legal representation", False),
        _select("surveillanceCounterMeasures", "Surveillance countermeasures", "basic",
                [("none", "None"), ("basic", "Basic"), ("aggressive", "Aggressive")]),
        _select("financialAuditTrail", "Financial audit trail", "fragmented",
                [("clean", "Clean"), ("fragmented", "Fragmented"), ("suspicious", "Suspicious")]),
    ),
)

BUILTIN_CATEGORIES: tuple[ScenarioCategory, ...] = (AFFAIR, CORPORATE, MISSING, INSURANCE)


def build_default_registry() -> ScenarioVariableRegistry:
    """Registry pre-loaded with the built-in categories."""
    return ScenarioVariableRegistry(BUILTIN_CATEGORIES)


default_registry = build_default_registry()
