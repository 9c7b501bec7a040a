"""Numeric helpers shared by the scoring modules."""

import math


def clamp(value: float, lower: float, upper: float) -> float:
    return min(upper, max(lower, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (round() would round half to even)."""
    return math.floor(value + 0.5)
