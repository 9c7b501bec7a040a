"""Shared enums and the severity weighting law."""

from enum import StrEnum


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Shared by the risk detector and the compliance scanner.
SEVERITY_WEIGHTS: dict[Severity, float] = {
    Severity.HIGH: 1.0,
    Severity.MEDIUM: 0.6,
    Severity.LOW: 0.35,
}


def severity_weight(severity: Severity | str) -> float:
    """Weight of a severity level (high > medium > low)."""
    return SEVERITY_WEIGHTS[Severity(severity)]


def severity_from_weight(weight: float) -> Severity:
    """Map a maximum weight back to a severity band."""
    if weight >= 0.9:
        return Severity.HIGH
    if weight >= 0.55:
        return Severity.MEDIUM
    return Severity.LOW
