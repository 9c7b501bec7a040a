"""
Pattern-Rule Evaluator.

One evaluator, parameterized by a RuleTable, serves both the risk signal
detector and the compliance scanner. It only reports what matched;
weighting and aggregation are left to the caller.
"""

from dataclasses import dataclass

from casecast.rules.table import Rule, RuleTable

# ── Configuration ─────────────────────────────────────────────────────────

MATCH_CAP: int = 6              # Max sub-matches kept per rule per text
BASE_CONFIDENCE: float = 0.35
CONFIDENCE_STEP: float = 0.2
MAX_CONFIDENCE: float = 0.95


@dataclass(frozen=True)
class RuleHit:
    """What one rule matched in one text."""
    rule: Rule
    pattern_hits: int               # Distinct patterns of the rule that matched
    fragments: tuple[str, ...]      # Matched text, in order, capped


def confidence_for(match_count: int) -> float:
    """Confidence grows 0.2 per match from 0.35, capped at 0.95."""
    return min(MAX_CONFIDENCE, max(BASE_CONFIDENCE, BASE_CONFIDENCE + match_count * CONFIDENCE_STEP))


class PatternRuleEvaluator:
    """Run every rule of a table against a text."""

    def __init__(self, table: RuleTable, match_cap: int = MATCH_CAP):
        self.table = table
        self.match_cap = match_cap

    def evaluate(self, text: str) -> list[RuleHit]:
        hits: list[RuleHit] = []
        if not text:
            return hits

        for entry in self.table:
            fragments: list[str] = []
            pattern_hits = 0
            for pattern in entry.compiled:
                matched = False
                for match in pattern.finditer(text):
                    matched = True
                    if len(fragments) >= self.match_cap:
                        break
                    fragments.append(match.group(0))
                if matched:
                    pattern_hits += 1

            if pattern_hits:
                hits.append(RuleHit(
                    rule=entry.rule,
                    pattern_hits=pattern_hits,
                    fragments=tuple(fragments),
                ))

        return hits
