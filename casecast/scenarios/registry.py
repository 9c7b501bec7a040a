"""
Scenario Variable Registry.

Typed, per-category variable definitions with sanitize/default logic.
A definition is one variant of a tagged union (select | boolean | number);
each variant knows how to coerce an untrusted JSON value into its type.

Sanitize contract:
    - iterates the category's definitions, never the raw map's keys
      (unknown keys are dropped)
    - boolean: fixed truth table, else the default
    - number:  finite number or numeric string, clamped to [min, max]
    - select:  exact option value, else the default
    - idempotent: sanitize(c, sanitize(c, raw)) == sanitize(c, raw)

The registry holds no scoring logic.
"""

import math
import re
from typing import Annotated, Any, Iterable, Literal, Mapping, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from casecast.exceptions import ConfigurationError, UnknownScenarioCategoryError

logger = structlog.get_logger(__name__)

ScenarioValue = Union[str, bool, float]
ScenarioValues = dict[str, ScenarioValue]

TRUE_TOKENS = frozenset({"true", "1", "yes", "y"})
FALSE_TOKENS = frozenset({"false", "0", "no", "n"})

_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


# ── Coercion ──────────────────────────────────────────────────────────────


def coerce_bool(value: Any, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_TOKENS:
            return True
        if normalized in FALSE_TOKENS:
            return False
    if isinstance(value, int):
        return value > 0
    if isinstance(value, float) and math.isfinite(value):
        return value > 0
    return fallback


def parse_float_prefix(text: str) -> Optional[float]:
    """Leading numeric prefix of a string ("12.5h" → 12.5), None if absent."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(0)) if match else None


def coerce_number(
    value: Any,
    fallback: float,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    parsed: Optional[float] = None
    if isinstance(value, float):
        parsed = value
    elif isinstance(value, int) and not isinstance(value, bool):
        parsed = float(value) if abs(value) < 2 ** 1023 else (math.inf if value > 0 else -math.inf)
    elif isinstance(value, str) and value.strip():
        parsed = parse_float_prefix(value)

    result = parsed if parsed is not None and math.isfinite(parsed) else float(fallback)
    if minimum is not None:
        result = max(minimum, result)
    if maximum is not None:
        result = min(maximum, result)
    return result


# ── Definitions ───────────────────────────────────────────────────────────


class VariableOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str
    description: Optional[str] = None


class _VariableBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    description: str = ""


class SelectVariable(_VariableBase):
    type: Literal["select"] = "select"
    default: str
    options: tuple[VariableOption, ...]

    def coerce(self, raw: Any) -> str:
        if isinstance(raw, str) and any(option.value == raw for option in self.options):
            return raw
        return self.default

    def display(self, value: ScenarioValue) -> str:
        for option in self.options:
            if option.value == value:
                return option.label
        return "-" if value is None else str(value)

    def validate_definition(self) -> None:
        if not self.options:
            raise ConfigurationError(f"Select variable '{self.id}' has no options")
        if self.default not in {option.value for option in self.options}:
            raise ConfigurationError(
                f"Select variable '{self.id}' default '{self.default}' is not an option",
                details={"variable": self.id},
            )


class BooleanVariable(_VariableBase):
    type: Literal["boolean"] = "boolean"
    default: bool

    def coerce(self, raw: Any) -> bool:
        return coerce_bool(raw, self.default)

    def display(self, value: ScenarioValue) -> str:
        return "Yes" if value else "No"

    def validate_definition(self) -> None:
        return None


class NumberVariable(_VariableBase):
    type: Literal["number"] = "number"
    default: float
    min: Optional[float] = None
    max: Optional[float] = None
    step: float = 1

    def coerce(self, raw: Any) -> float:
        return coerce_number(raw, self.default, self.min, self.max)

    def display(self, value: ScenarioValue) -> str:
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    def validate_definition(self) -> None:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ConfigurationError(f"Number variable '{self.id}' has min > max")
        if (self.min is not None and self.default < self.min) or (
            self.max is not None and self.default > self.max
        ):
            raise ConfigurationError(
                f"Number variable '{self.id}' default is outside [min, max]",
                details={"variable": self.id},
            )


ScenarioVariable = Annotated[
    Union[SelectVariable, BooleanVariable, NumberVariable],
    Field(discriminator="type"),
]


class ScenarioCategory(BaseModel):
    """A registrable scenario category and its variable definitions."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    variables: tuple[ScenarioVariable, ...]


# ── Registry ──────────────────────────────────────────────────────────────


class ScenarioVariableRegistry:
    """Registered scenario categories keyed by id."""

    def __init__(self, categories: Iterable[ScenarioCategory] = ()):
        self._categories: dict[str, ScenarioCategory] = {}
        for category in categories:
            self.register(category)

    def register(self, category: ScenarioCategory) -> None:
        if category.id in self._categories:
            raise ConfigurationError(
                f"Scenario category already registered: {category.id}",
                details={"category": category.id},
            )
        seen: set[str] = set()
        for variable in category.variables:
            if variable.id in seen:
                raise ConfigurationError(
                    f"Duplicate variable '{variable.id}' in category '{category.id}'",
                    details={"category": category.id, "variable": variable.id},
                )
            seen.add(variable.id)
            variable.validate_definition()

        self._categories[category.id] = category
        logger.debug("scenario_category_registered", category=category.id, variables=len(seen))

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._categories

    def categories(self) -> list[ScenarioCategory]:
        return list(self._categories.values())

    def get(self, category_id: str) -> ScenarioCategory:
        try:
            return self._categories[category_id]
        except KeyError:
            raise UnknownScenarioCategoryError(category_id) from None

    def defaults(self, category_id: str) -> ScenarioValues:
        return {v.id: v.default for v in self.get(category_id).variables}

    def sanitize(self, category_id: str, raw: Optional[Mapping[str, Any]]) -> ScenarioValues:
        source = raw or {}
        return {v.id: v.coerce(source.get(v.id)) for v in self.get(category_id).variables}

    def format_for_prompt(self, category_id: str, values: Mapping[str, Any]) -> list[str]:
        return [
            f"· {v.label}: {v.display(values.get(v.id))}"
            for v in self.get(category_id).variables
        ]
