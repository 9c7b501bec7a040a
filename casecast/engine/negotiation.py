"""
Negotiation Coach.

Deterministic coaching plan for the investigator's next conversation with
the client or the opposing party. User messages are scored on three
pattern groups, each pattern counting once per message:

    stress    = clamp(hits / 4, 0, 1)
    hostility = clamp(hits / 4, 0, 1)
    trust     = clamp(hits / 3, 0, 1)

The scores pick the tone, the rapport tips and the trust impact of each
script line; the case summary and realtime insights supply the goal,
strategy pillars, risk warnings and follow-up prompts.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog

from casecast.engine.detector import describe_signal
from casecast.engine.numeric import clamp, round_half_up
from casecast.rules.risk_rules import EMOTIONAL_DISTRESS, LEGAL_DEADLINE
from casecast.schemas.common import Severity
from casecast.schemas.insights import ChatMessage, IntakeSummary, RealtimeInsights, Signal
from casecast.schemas.negotiation import (
    NegotiationCoachPlan,
    NegotiationRequest,
    NegotiationWarning,
    ScriptIntent,
    ScriptLine,
    ToneGuidance,
)

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

MAX_CUES = 4
MAX_PILLARS = 4
MAX_SCRIPTS = 4
MAX_WARNINGS = 4
MAX_PROMPTS = 5
MAX_TIPS = 4

STRESS_PATTERNS: tuple[re.Pattern, ...] = tuple(re.compile(p) for p in (
    r"긴급|\burgent", r"무섭|\bscared\b|\bscary\b", r"위협|\bthreat", r"불안|\banxious",
    r"위험|\bdanger", r"협박|\bblackmail", r"압박|\bpressur", r"시한|\btime limit",
    r"기한|\bdeadline", r"마감|\bdue date",
))
HOSTILITY_PATTERNS: tuple[re.Pattern, ...] = tuple(re.compile(p) for p in (
    r"화났|\bangry\b", r"화가|\bfurious\b", r"분노|\brage\b", r"책임|\bliab(?:le|ility)\b",
    r"배상|\bcompensat", r"소송|\bsue\b|\blawsuit", r"처벌|\bpunish",
))
TRUST_PATTERNS: tuple[re.Pattern, ...] = tuple(re.compile(p) for p in (
    r"감사|\bthank", r"고마|\bgrateful\b", r"믿|\btrust", r"안심|\breliev",
    r"도움|\bhelpful\b", r"고맙|\bappreciat",
))

RISK_LABELS: dict[Severity, str] = {
    Severity.HIGH: "High",
    Severity.MEDIUM: "Medium",
    Severity.LOW: "Low",
}

DEFAULT_SITUATION = (
    "Key information is still thin. Build trust from the conversation first, "
    "then confirm the details."
)
DEFAULT_GOAL = "Secure trust and confirm the key facts"
DEFAULT_PILLAR = "Organize the current situation and align mutual expectations"
DEFAULT_PROMPTS: tuple[str, ...] = (
    "Reconfirm the core value the other side must get out of this negotiation.",
    "Check that our side has mapped out what it can concede in advance.",
)
GENERAL_WARNING = NegotiationWarning(
    id="general-prep",
    title="Unconfirmed variables",
    severity=Severity.LOW,
    detail="No additional risk signals have been raised in the conversation so far.",
    mitigation="Share the negotiation notes and keep an alert routine so new variables can be handled at once.",
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Sentiment:
    stress: float
    hostility: float
    trust: float


def _clean(value: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", value).strip() if value else ""


def _first(values: list[str]) -> str:
    return _clean(values[0]) if values else ""


def _unique(values: Iterable[str], limit: int) -> list[str]:
    return list(dict.fromkeys(values))[:limit]


def analyze_sentiment(messages: Iterable[ChatMessage]) -> Sentiment:
    stress = hostility = trust = 0
    for message in messages:
        if message.role != "user":
            continue
        content = message.content.lower()
        stress += sum(1 for p in STRESS_PATTERNS if p.search(content))
        hostility += sum(1 for p in HOSTILITY_PATTERNS if p.search(content))
        trust += sum(1 for p in TRUST_PATTERNS if p.search(content))

    return Sentiment(
        stress=clamp(stress / 4, 0, 1),
        hostility=clamp(hostility / 4, 0, 1),
        trust=clamp(trust / 3, 0, 1),
    )


def build_tone_guidance(sentiment: Sentiment, insights: Optional[RealtimeInsights]) -> ToneGuidance:
    primary = "Calm, empathetic tone"
    backup = None
    cues: list[str] = []

    if sentiment.stress > 0.6 or (insights is not None and insights.overall_risk == Severity.HIGH):
        primary = "Reassuring, empathetic tone"
        cues += [
            "Mention safety and protection repeatedly",
            "Summarize the current situation and acknowledge their feelings",
        ]
    if sentiment.hostility > 0.45:
        backup = "Firm but respectful tone"
        cues += ["Explain with facts and evidence", "Draw clear lines on conditions and limits"]
    if sentiment.trust < 0.3:
        cues += [
            "Offer to act on even a small commitment right away",
            "Stress what both sides gain from the negotiation",
        ]
    else:
        cues.append("Point out what is already going well along the way")

    return ToneGuidance(primary_tone=primary, backup_tone=backup, cues=_unique(cues, MAX_CUES))


def summarize_situation(
    summary: Optional[IntakeSummary],
    insights: Optional[RealtimeInsights],
    conversation_summary: Optional[str] = None,
) -> str:
    if conversation_summary and conversation_summary.strip():
        return conversation_summary.strip()

    parts: list[str] = []
    if summary is not None:
        for label, value in (
            ("Case", summary.case_title),
            ("Client goal", summary.primary_intent),
            ("Desired outcome", summary.objective),
        ):
            if _clean(value):
                parts.append(f"{label}: {_clean(value)}")
    if insights is not None:
        parts.append(
            f"Current risk level: {RISK_LABELS[insights.overall_risk]} "
            f"({round_half_up(insights.risk_score)} pts)"
        )
    return " · ".join(parts) if parts else DEFAULT_SITUATION


def derive_primary_goal(summary: Optional[IntakeSummary], insights: Optional[RealtimeInsights]) -> str:
    if summary is not None:
        if _clean(summary.objective):
            return _clean(summary.objective)
        if _clean(summary.primary_intent):
            return f"Reach an initial agreement toward {_clean(summary.primary_intent)}"
    if insights is not None and _clean(insights.action_plan.focus):
        return _clean(insights.action_plan.focus)
    return DEFAULT_GOAL


def build_strategy_pillars(summary: Optional[IntakeSummary], insights: Optional[RealtimeInsights]) -> list[str]:
    signal_ids = {s.id for s in insights.signals} if insights is not None else set()
    pillars: list[str] = []

    if insights is not None and insights.overall_risk == Severity.HIGH:
        pillars.append("Secure immediate safety and set up an emergency plan")
    if LEGAL_DEADLINE in signal_ids:
        pillars.append("Use the legal deadline as leverage when setting the schedule")
    if summary is not None and summary.missing_details:
        pillars.append("Fill in the missing information, then pin down the terms")
    if summary is not None and summary.recommended_documents:
        pillars.append("Share the evidence-gathering plan to build trust")
    if EMOTIONAL_DISTRESS in signal_ids:
        pillars.append("Stabilize emotions and keep repeating supportive messages")

    return _unique(pillars, MAX_PILLARS) or [DEFAULT_PILLAR]


def _last_user_message(messages: list[ChatMessage]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return _clean(message.content)
    return ""


def _first_with_severity(signals: list[Signal], severity: Severity) -> Optional[Signal]:
    return next((s for s in signals if s.severity == severity), None)


def build_scripted_responses(
    messages: list[ChatMessage],
    summary: Optional[IntakeSummary],
    insights: Optional[RealtimeInsights],
    sentiment: Sentiment,
) -> list[ScriptLine]:
    concern = _last_user_message(messages)
    missing = _first(summary.missing_details) if summary is not None else ""
    document = _first(summary.recommended_documents) if summary is not None else ""
    signals = insights.signals if insights is not None else []
    high = _first_with_severity(signals, Severity.HIGH)
    medium = _first_with_severity(signals, Severity.MEDIUM)

    scripts = [ScriptLine(
        id="trust-opening",
        intent=ScriptIntent.RAPPORT,
        label="Trust-building opener",
        script=" ".join((
            "I fully understand that this situation may feel like a heavy burden right now.",
            f'Let me restate the situation around what you told me: "{concern}".' if concern
            else "Let me summarize what you have shared so far and guide you from there.",
            "I'll start with steps we can take right away and, where needed, "
            "build the negotiation strategy with you step by step.",
        )),
        rationale="Acknowledging feelings and offering a support plan right away builds trust early on.",
        trust_impact=clamp(0.65 + sentiment.trust * 0.3, 0.55, 0.95),
        emotional_tone="Empathy",
        recommended_next_step="Reconfirm two or three key facts and agree on a shared goal.",
    )]

    if missing:
        scripts.append(ScriptLine(
            id="info-clarify",
            intent=ScriptIntent.INFORMATION,
            label="Key information follow-up",
            script=" ".join((
                f"I'd like to look a little more closely at {missing}.",
                "Once we have it, our options in the negotiation widen considerably.",
                "Tell me whatever you can confirm comfortably and I'll organize it.",
            )),
            rationale=(
                "Missing information is essential leverage. Wording that eases the client's "
                "burden keeps trust intact."
            ),
            trust_impact=clamp(0.58 + (1 - sentiment.stress) * 0.25, 0.5, 0.88),
            emotional_tone="Calm",
            recommended_next_step=(
                f"If you can check the {document}, we can base the proposal on evidence." if document
                else "Summarize what has been gathered and schedule the next step."
            ),
        ))

    if high is not None:
        scripts.append(ScriptLine(
            id="risk-anchor",
            intent=ScriptIntent.RISK,
            label="Risk response anchor",
            script=" ".join((
                f'The "{high.title}" signal came up, so we need a response strategy for it right away.',
                f"First, I suggest we prepare as follows: {high.guidance}",
                "At the same time we'll present our options to the other side early to lead the negotiation.",
            )),
            rationale="Raising the highest risk first conveys both trust and expertise.",
            trust_impact=clamp(0.62 + sentiment.trust * 0.2, 0.5, 0.9),
            emotional_tone="Firm",
            recommended_next_step="After handling the risk, lay out two expected scenarios and set the terms.",
        ))
    elif medium is not None:
        scripts.append(ScriptLine(
            id="moderate-risk",
            intent=ScriptIntent.RISK,
            label="Medium risk management",
            script=" ".join((
                f'We picked up "{medium.title}", so I want to prepare countermeasures in advance.',
                f"A possible approach: {medium.guidance}",
                "If you agree, we'll use it as a pre-emptive move at the negotiating table.",
            )),
            rationale="Handling medium risks early reduces uncertainty in the negotiation.",
            trust_impact=clamp(0.6 + sentiment.trust * 0.15, 0.48, 0.85),
            emotional_tone="Trust",
            recommended_next_step="Once agreed, confirm the schedule and who is responsible.",
        ))

    if len(scripts) < 3:
        scripts.append(ScriptLine(
            id="value-proposal",
            intent=ScriptIntent.PROPOSAL,
            label="Value proposition",
            script=(
                "The core value we bring to this negotiation is minimizing harm and preventing "
                "recurrence. Let's stress that the other side gains from it too."
            ),
            rationale="Stressing mutual benefit raises the motivation to negotiate.",
            trust_impact=clamp(0.57 + sentiment.trust * 0.2, 0.5, 0.82),
            emotional_tone="Persuasion",
            recommended_next_step="After confirming agreement, put the concrete terms (deadlines, documents, roles) in writing.",
        ))

    return scripts[:MAX_SCRIPTS]


def build_objection_handlers(summary: Optional[IntakeSummary]) -> list[ScriptLine]:
    objective = _clean(summary.objective) if summary is not None else ""
    document = _first(summary.recommended_documents) if summary is not None else ""

    return [
        ScriptLine(
            id="budget-objection",
            intent=ScriptIntent.OBJECTION,
            label="Cost and resource concerns",
            script=" ".join((
                "I completely understand the concerns about budget and resources.",
                f"Let's first agree on the scope this goal ({objective}) really needs and adjust "
                "extra options step by step." if objective
                else "I suggest separating essential from optional scope and settling priorities first.",
            )),
            rationale="Splitting the burden into parts lowers resistance.",
            trust_impact=0.62,
            emotional_tone="Cooperative",
            recommended_next_step="Send a table of essential versus optional items.",
        ),
        ScriptLine(
            id="evidence-objection",
            intent=ScriptIntent.OBJECTION,
            label="Insufficient evidence concerns",
            script=" ".join((
                "You may be worried that the material is not sufficient.",
                f"Securing the {document} first will strengthen our credibility." if document
                else "We'll start with the points we can verify from the records we already have.",
                "Where more material is hard to get, we'll prepare to fill the gap through direct investigation.",
            )),
            rationale="Presenting an evidence-gathering strategy raises readiness for the negotiation.",
            trust_impact=0.6,
            emotional_tone="Strategic",
            recommended_next_step="Share the evidence-gathering plan and the expected schedule.",
        ),
    ]


def build_risk_warnings(insights: Optional[RealtimeInsights]) -> list[NegotiationWarning]:
    if insights is None or not insights.signals:
        return [GENERAL_WARNING]
    return [
        NegotiationWarning(
            id=signal.id,
            title=signal.title,
            severity=signal.severity,
            detail=describe_signal(signal),
            mitigation=signal.guidance,
        )
        for signal in insights.signals[:MAX_WARNINGS]
    ]


def build_follow_up_prompts(summary: Optional[IntakeSummary], insights: Optional[RealtimeInsights]) -> list[str]:
    candidates = [
        *(insights.follow_up_questions if insights is not None else []),
        *(summary.next_questions if summary is not None else []),
    ]
    prompts = _unique((_clean(c) for c in candidates if _clean(c)), MAX_PROMPTS)
    return prompts or list(DEFAULT_PROMPTS)


def build_rapport_tips(sentiment: Sentiment) -> list[str]:
    tips: list[str] = []
    if sentiment.stress > 0.6:
        tips.append("Sum up the key points before answering and match their pace.")
    if sentiment.trust < 0.35:
        tips.append("Share a small success or a similar case to show expertise.")
    else:
        tips.append("They already trust you; keep the momentum with quick commitments.")
    if sentiment.hostility > 0.4:
        tips.append("Meet emotional reactions with an immediate fact check and empathy.")
    return _unique(tips, MAX_TIPS)


def new_plan_id() -> str:
    return f"coach-{uuid.uuid4().hex[:12]}"


def generate_coaching(request: NegotiationRequest, now: Optional[datetime] = None) -> NegotiationCoachPlan:
    summary = request.intake_summary
    insights = request.insights
    sentiment = analyze_sentiment(request.messages)

    plan = NegotiationCoachPlan(
        id=new_plan_id(),
        generated_at=now or datetime.now(timezone.utc),
        situation_summary=summarize_situation(summary, insights, request.conversation_summary),
        primary_goal=derive_primary_goal(summary, insights),
        tone_guidance=build_tone_guidance(sentiment, insights),
        strategy_pillars=build_strategy_pillars(summary, insights),
        scripted_responses=build_scripted_responses(request.messages, summary, insights, sentiment),
        objection_handlers=build_objection_handlers(summary),
        risk_warnings=build_risk_warnings(insights),
        follow_up_prompts=build_follow_up_prompts(summary, insights),
        rapport_tips=build_rapport_tips(sentiment),
    )
    logger.info(
        "negotiation_coached",
        stress=round(sentiment.stress, 2),
        hostility=round(sentiment.hostility, 2),
        trust=round(sentiment.trust, 2),
        scripts=len(plan.scripted_responses),
    )
    return plan


def plan_to_text(plan: NegotiationCoachPlan) -> str:
    """Flatten the plan's spoken lines for a compliance scan."""
    lines = [plan.situation_summary, plan.primary_goal]
    lines += [line.script for line in (*plan.scripted_responses, *plan.objection_handlers)]
    lines += plan.follow_up_prompts
    return "\n".join(lines)
