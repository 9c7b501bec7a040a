"""
Rule Table.

A rule table is an immutable, validated collection of pattern rules.
Patterns are compiled when the table is built, so a malformed regex
fails at import time instead of on a request.
"""

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, Iterator, Optional

import structlog

from casecast.exceptions import ConfigurationError, ErrorCode
from casecast.schemas.common import Severity

logger = structlog.get_logger(__name__)


class RuleCategory(StrEnum):
    PRIVACY = "privacy"
    SAFETY = "safety"
    LEGAL = "legal"
    BIAS = "bias"
    POLICY = "policy"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Rule:
    """One declarative detection rule."""
    id: str
    title: str
    patterns: tuple[str, ...]
    category: RuleCategory
    severity: Severity
    guidance: str
    references: tuple[str, ...] = ()
    flags: int = 0


@dataclass(frozen=True)
class CompiledRule:
    rule: Rule
    compiled: tuple[re.Pattern, ...]


class RuleTable:
    """Validated, compiled, ordered set of rules."""

    def __init__(self, name: str, rules: Iterable[Rule]):
        self.name = name
        self._compiled: list[CompiledRule] = []
        seen: set[str] = set()

        for rule in rules:
            if rule.id in seen:
                raise ConfigurationError(
                    f"Duplicate rule id '{rule.id}' in table '{name}'",
                    details={"table": name, "rule_id": rule.id},
                )
            if not rule.patterns:
                raise ConfigurationError(
                    f"Rule '{rule.id}' in table '{name}' has no patterns",
                    details={"table": name, "rule_id": rule.id},
                )
            seen.add(rule.id)
            self._compiled.append(CompiledRule(rule=rule, compiled=self._compile(name, rule)))

        logger.debug("rule_table_loaded", table=name, rules=len(self._compiled))

    @staticmethod
    def _compile(name: str, rule: Rule) -> tuple[re.Pattern, ...]:
        compiled = []
        for pattern in rule.patterns:
            try:
                compiled.append(re.compile(pattern, rule.flags))
            except re.error as exc:
                raise ConfigurationError(
                    f"Malformed pattern for rule '{rule.id}' in table '{name}': {exc}",
                    code=ErrorCode.INVALID_RULE_PATTERN,
                    details={"table": name, "rule_id": rule.id, "pattern": pattern},
                ) from exc
        return tuple(compiled)

    def __iter__(self) -> Iterator[CompiledRule]:
        return iter(self._compiled)

    def __len__(self) -> int:
        return len(self._compiled)

    def get(self, rule_id: str) -> Optional[Rule]:
        for entry in self._compiled:
            if entry.rule.id == rule_id:
                return entry.rule
        return None
