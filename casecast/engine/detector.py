"""
Risk Signal Detector.

Evaluates the risk rule table against conversation text and emits one
weighted Signal per fired rule, plus an aggregate risk score.

Scoring:
    confidence  = clamp(0.35 + 0.2 × distinct_patterns_matched, 0.35, 0.95)
    risk_score  = clamp(Σ confidence × severity_weight × 30, 0, 95)
    overall     = high if > 60, medium if > 30, else low
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from casecast.engine.numeric import clamp, round_half_up
from casecast.rules.evaluator import PatternRuleEvaluator, confidence_for
from casecast.rules.risk_rules import RISK_RULE_TABLE
from casecast.rules.table import RuleTable
from casecast.schemas.common import Severity, severity_weight
from casecast.schemas.insights import ChatMessage, Signal

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

SCORE_SCALE: float = 30.0
MAX_RISK_SCORE: float = 95.0
HIGH_RISK_THRESHOLD: float = 60.0
MEDIUM_RISK_THRESHOLD: float = 30.0
EVIDENCE_FRAGMENTS: int = 3


@dataclass(frozen=True)
class DetectionResult:
    """Signals of one detection pass and their aggregate score."""
    signals: list[Signal]
    risk_score: float               # 0-95
    overall_risk: Severity


def overall_risk_for(score: float) -> Severity:
    if score > HIGH_RISK_THRESHOLD:
        return Severity.HIGH
    if score > MEDIUM_RISK_THRESHOLD:
        return Severity.MEDIUM
    return Severity.LOW


def user_text(messages: Iterable[ChatMessage]) -> str:
    """Lowercased concatenation of user-role messages."""
    return " \n".join(m.content.lower() for m in messages if m.role == "user")


class SignalDetector:
    """Pure detector over a rule table; safe to share across requests."""

    def __init__(self, table: Optional[RuleTable] = None):
        self.evaluator = PatternRuleEvaluator(table or RISK_RULE_TABLE)

    def detect(self, text: str) -> list[Signal]:
        signals = []
        for hit in self.evaluator.evaluate(text):
            evidence = list(dict.fromkeys(hit.fragments))[:EVIDENCE_FRAGMENTS]
            signals.append(Signal(
                id=hit.rule.id,
                title=hit.rule.title,
                severity=hit.rule.severity,
                confidence=confidence_for(hit.pattern_hits),
                evidence=", ".join(evidence),
                guidance=hit.rule.guidance,
            ))
        return signals

    def detect_messages(self, messages: Iterable[ChatMessage]) -> DetectionResult:
        """Detect over user messages only and compute the risk score."""
        signals = self.detect(user_text(messages))
        score = risk_score_for(signals)
        result = DetectionResult(
            signals=signals,
            risk_score=score,
            overall_risk=overall_risk_for(score),
        )
        logger.info(
            "signals_detected",
            signals=[s.id for s in signals],
            risk_score=round(score, 2),
            overall_risk=result.overall_risk.value,
        )
        return result


def risk_score_for(signals: Iterable[Signal]) -> float:
    total = sum(s.confidence * severity_weight(s.severity) * SCORE_SCALE for s in signals)
    return clamp(total, 0.0, MAX_RISK_SCORE)


def describe_signal(signal: Signal) -> str:
    """One-line confidence and evidence summary used by coaching and reports."""
    return f"Confidence {round_half_up(signal.confidence * 100)}% · Evidence: {signal.evidence}"
