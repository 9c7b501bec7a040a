"""
Candidate Matcher.

Ranks investigator profiles against a case description:

    keyword    = clamp(matched × 8, 0, 60)
    rating     = clamp(r, 0, 5) × 8
    success    = clamp(s, 0, 100) × 0.45
    experience = clamp(y, 0, 30) × 2.2
    base       = round_half_up(clamp(Σ × risk_weight, 20, 100))

Top 5 by base score receive a rank bonus (+6, +4, +2, 0, 0) and the final
match score is clamped to [25, 100].
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import structlog

from casecast.engine.numeric import clamp, round_half_up
from casecast.schemas.common import Severity
from casecast.schemas.matching import CandidateProfile, MatchContext, MatchResult

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

MAX_CASE_TOKENS: int = 24
MAX_RISK_TOKENS: int = 16
TOP_N: int = 5

KEYWORD_POINTS: float = 8
KEYWORD_CAP: float = 60
RATING_POINTS: float = 8
SUCCESS_POINTS: float = 0.45
EXPERIENCE_POINTS: float = 2.2
EXPERIENCE_CAP: float = 30

MIN_BASE_SCORE: float = 20
MIN_MATCH_SCORE: float = 25
MAX_SCORE: float = 100

RISK_WEIGHTS: dict[Severity, float] = {
    Severity.HIGH: 1.15,
    Severity.MEDIUM: 1.05,
    Severity.LOW: 0.95,
}

RISK_KEYWORD_HINTS: dict[str, tuple[str, ...]] = {
    "violence-threat": ("폭력", "보호", "위협", "안전", "스토킹"),
    "evidence-loss": ("증거", "포렌식", "백업", "디지털"),
    "legal-deadline": ("법", "기한", "소송", "법률"),
    "emotional-distress": ("상담", "케어", "심리", "감정"),
    "digital-trace": ("디지털", "IT", "포렌식", "로그"),
}

# English aliases rank after every fired signal's native hints.
RISK_KEYWORD_ALIASES: dict[str, tuple[str, ...]] = {
    "violence-threat": ("violence", "protection", "threat", "safety", "stalking"),
    "evidence-loss": ("evidence", "forensic", "backup", "digital"),
    "legal-deadline": ("legal", "deadline", "litigation", "law"),
    "emotional-distress": ("counseling", "care", "psychological", "emotional"),
    "digital-trace": ("digital", "forensic", "log"),
}

_CASE_SPLIT = re.compile(r"[,\s/·]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_tokens(tokens: Iterable[str]) -> list[str]:
    """Trim, lowercase, drop empties and de-duplicate preserving order."""
    seen: dict[str, None] = {}
    for token in tokens:
        normalized = token.strip().lower()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def _push_with_parts(bucket: list[str], value: Optional[str], splitter: re.Pattern) -> None:
    if not value or not value.strip():
        return
    trimmed = value.strip()
    bucket.append(trimmed)
    bucket.extend(part for part in (p.strip() for p in splitter.split(trimmed)) if len(part) > 1)


def case_keywords(context: MatchContext) -> list[str]:
    bucket: list[str] = []
    summary = context.intake_summary
    if summary is not None:
        for value in (summary.case_title, summary.case_type, summary.primary_intent,
                      summary.objective, summary.urgency):
            _push_with_parts(bucket, value, _CASE_SPLIT)
        for value in [*summary.key_facts, *summary.recommended_documents]:
            _push_with_parts(bucket, value, _CASE_SPLIT)
    _push_with_parts(bucket, context.scenario_title, _CASE_SPLIT)
    bucket.extend(context.keywords)
    return normalize_tokens(bucket)[:MAX_CASE_TOKENS]


def risk_keywords(context: MatchContext) -> list[str]:
    """Native hints of every fired signal first, then titles and aliases, capped."""
    tokens = [hint for signal in context.signals for hint in RISK_KEYWORD_HINTS.get(signal.id, ())]
    for signal in context.signals:
        _push_with_parts(tokens, signal.title, _WHITESPACE)
        tokens.extend(RISK_KEYWORD_ALIASES.get(signal.id, ()))
    return normalize_tokens(tokens)[:MAX_RISK_TOKENS]


def presence_fraction(values: list[Any]) -> float:
    """Share of values that are present: non-zero numbers, non-blank strings."""
    present = 0
    for value in values:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            present += value != 0
        elif isinstance(value, str):
            present += bool(value.strip())
        else:
            present += bool(value)
    return present / max(1, len(values))


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


@dataclass(frozen=True)
class _Scored:
    profile: CandidateProfile
    base_score: int
    success_probability: float
    confidence: float
    alignment_factors: list[str]
    matched: list[str]
    reason: str


class CandidateMatcher:
    """Weighted multi-factor ranking of candidate profiles."""

    def __init__(self, top_n: int = TOP_N):
        self.top_n = top_n

    def match(self, candidates: list[CandidateProfile], context: MatchContext) -> list[MatchResult]:
        case_tokens = case_keywords(context)
        risk_tokens = risk_keywords(context)
        risk_weight = RISK_WEIGHTS[context.overall_risk or Severity.MEDIUM]

        scored = [self._score(c, case_tokens, risk_tokens, risk_weight) for c in candidates]
        # sorted() is stable: ties keep input order
        ranked = sorted(scored, key=lambda s: s.base_score, reverse=True)[: self.top_n]

        results = []
        for rank, entry in enumerate(ranked):
            bonus = max(0, 6 - rank * 2)
            contact = entry.profile.contact
            results.append(MatchResult(
                candidate_id=entry.profile.id,
                name=(contact.name if contact and contact.name else "Unknown"),
                email=contact.email if contact else None,
                match_score=int(clamp(entry.base_score + bonus, MIN_MATCH_SCORE, MAX_SCORE)),
                base_score=entry.base_score,
                rank_bonus=bonus,
                success_probability=entry.success_probability,
                confidence=entry.confidence,
                alignment_factors=entry.alignment_factors,
                matched_keywords=entry.matched,
                reason=entry.reason,
            ))

        logger.info(
            "candidates_matched",
            candidates=len(candidates),
            returned=len(results),
            case_tokens=len(case_tokens),
            risk_tokens=len(risk_tokens),
        )
        return results

    def _score(
        self,
        profile: CandidateProfile,
        case_tokens: list[str],
        risk_tokens: list[str],
        risk_weight: float,
    ) -> _Scored:
        specialties = normalize_tokens(profile.specialties)
        matchable = [*case_tokens, *risk_tokens]
        matched = normalize_tokens(t for t in matchable if any(t in spec for spec in specialties))

        rating = profile.rating_average
        success = profile.success_rate
        years = profile.experience_years

        keyword_score = clamp(len(matched) * KEYWORD_POINTS, 0, KEYWORD_CAP)
        rating_score = clamp(rating, 0, 5) * RATING_POINTS if rating else 0
        success_score = clamp(success, 0, 100) * SUCCESS_POINTS if success else 0
        experience_score = clamp(years, 0, EXPERIENCE_CAP) * EXPERIENCE_POINTS

        total = keyword_score + rating_score + success_score + experience_score
        base_score = round_half_up(clamp(total * risk_weight, MIN_BASE_SCORE, MAX_SCORE))

        nr = rating / 5 if rating else 0.55
        ns = success / 100 if success else 0.6
        ne = clamp(years / 12, 0, 1)
        nk = clamp(len(matched) / max(3, len(matchable)), 0, 1)
        success_probability = clamp(
            (0.32 * nr + 0.28 * ns + 0.22 * ne + 0.18 * nk) * risk_weight, 0.35, 0.96
        )

        confidence = clamp(
            0.45 + presence_fraction([rating, success, "specialty" if specialties else None, years]) * 0.45,
            0.55,
            0.95,
        )

        highlight = None
        if matched:
            quoted = ", ".join(f'"{t}"' for t in matched[:3])
            highlight = f"Specialties match case keywords {quoted}{' etc.' if len(matched) > 3 else ''}"

        alignment = [
            line for line in (
                highlight,
                f"Average rating {rating:.1f}" if rating else None,
                f"Case success rate {success:.1f}%" if success else None,
                f"{_format_number(years)} years of field experience" if years > 0 else None,
                f"Covers the {profile.service_area} area" if profile.service_area else None,
            ) if line
        ]

        strength = f"a {success:.0f}% success rate" if success else None
        if highlight:
            reason = (
                f"{highlight.replace(chr(34), '')}. {_format_number(years)} years of experience and "
                f"{strength or 'an established case record'} are strengths."
            )
        else:
            reason = (
                f"{_format_number(years)} years of experience and "
                f"{strength or 'their specialties'} fit the case."
            )

        return _Scored(
            profile=profile,
            base_score=base_score,
            success_probability=success_probability,
            confidence=confidence,
            alignment_factors=alignment,
            matched=matched,
            reason=reason,
        )
