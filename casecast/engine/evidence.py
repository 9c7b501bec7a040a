"""
Evidence Summarizer.

Keyword-hint triage of uploaded evidence artifacts. Each hint that fires
adds 35 (high) or 20 (medium) points; an attached file adds 10 and
visual media 15. The score is clamped to [5, 95] and doubles as the
confidence (score / 100).
"""

import re
from dataclasses import dataclass

import structlog

from casecast.engine.numeric import clamp
from casecast.schemas.common import Severity, severity_weight
from casecast.schemas.evidence import ArtifactType, EvidenceArtifact, EvidenceSummary

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

HINT_POINTS: dict[Severity, int] = {Severity.HIGH: 35, Severity.MEDIUM: 20}
FILE_POINTS = 10
VISUAL_POINTS = 15
MIN_SCORE, MAX_SCORE = 5, 95
MAX_FINDINGS = 3
MAX_ACTIONS = 3
DESCRIPTION_EXCERPT = 140

CLASSIFICATIONS: dict[ArtifactType, str] = {
    ArtifactType.DOCUMENT: "Documentary evidence",
    ArtifactType.IMAGE: "Image evidence",
    ArtifactType.VIDEO: "Video evidence",
    ArtifactType.AUDIO: "Audio recording",
    ArtifactType.OTHER: "Other material",
}

VISUAL_TYPES = frozenset({ArtifactType.IMAGE, ArtifactType.VIDEO})


@dataclass(frozen=True)
class KeywordHint:
    pattern: re.Pattern
    risk: Severity
    note: str


KEYWORD_HINTS: tuple[KeywordHint, ...] = (
    KeywordHint(re.compile(r"계약|합의|약정|법적|소송|contract|agreement|legal|lawsuit"),
                Severity.HIGH, "Legal dispute content"),
    KeywordHint(re.compile(r"폭행|협박|위협|위험|긴급|assault|threat|danger|urgent"),
                Severity.HIGH, "Personal safety threat"),
    KeywordHint(re.compile(r"거래|송금|입금|출금|금액|현금|transaction|transfer|deposit|withdrawal|cash"),
                Severity.MEDIUM, "Financial transaction records"),
    KeywordHint(re.compile(r"메신저|카카오톡|통화|녹취|대화|messenger|kakaotalk|call|recording|chat"),
                Severity.MEDIUM, "Conversation records"),
    KeywordHint(re.compile(r"사진|영상|이미지|촬영|photo|video|image|footage"),
                Severity.MEDIUM, "Visual evidence"),
)

RISK_ACTIONS: dict[Severity, str] = {
    Severity.HIGH: "Start a legal review and protective measures immediately.",
    Severity.MEDIUM: "Secure evidence integrity and make a backup.",
    Severity.LOW: "Gather additional context and supporting material if needed.",
}
VISUAL_ACTION = "Keep the original resolution and record the metadata."
AUDIO_ACTION = "Prepare an accurate transcript with timestamps."


def _artifact_text(artifact: EvidenceArtifact) -> str:
    parts = [artifact.title, artifact.description or "", *artifact.keywords]
    return " ".join(p for p in parts if p).lower()


def summarize_artifact(artifact: EvidenceArtifact, index: int) -> EvidenceSummary:
    text = _artifact_text(artifact)

    score = 0
    risk = Severity.LOW
    notes: list[str] = []
    for hint in KEYWORD_HINTS:
        if not hint.pattern.search(text):
            continue
        score += HINT_POINTS[hint.risk]
        if severity_weight(hint.risk) > severity_weight(risk):
            risk = hint.risk
        if hint.note not in notes:
            notes.append(hint.note)

    if artifact.has_file:
        score += FILE_POINTS
    if artifact.type in VISUAL_TYPES:
        score += VISUAL_POINTS
    score = clamp(score, MIN_SCORE, MAX_SCORE)

    findings = list(notes)
    if artifact.description:
        findings.append(f"Summary: {artifact.description[:DESCRIPTION_EXCERPT]}")
    if artifact.keywords:
        findings.append(f"Keywords: {', '.join(artifact.keywords)}")

    actions = [RISK_ACTIONS[risk]]
    if artifact.type in VISUAL_TYPES:
        actions.append(VISUAL_ACTION)
    if artifact.type == ArtifactType.AUDIO:
        actions.append(AUDIO_ACTION)

    return EvidenceSummary(
        id=artifact.id or f"artifact-{index}",
        title=artifact.title,
        classification=CLASSIFICATIONS.get(artifact.type, "Evidence material"),
        confidence=score / 100,
        risk_level=risk,
        key_findings=findings[:MAX_FINDINGS],
        recommended_actions=actions[:MAX_ACTIONS],
    )


def summarize_artifacts(artifacts: list[EvidenceArtifact]) -> list[EvidenceSummary]:
    summaries = [summarize_artifact(artifact, index) for index, artifact in enumerate(artifacts)]
    if summaries:
        logger.info(
            "evidence_summarized",
            artifacts=len(summaries),
            high_risk=sum(1 for s in summaries if s.risk_level == Severity.HIGH),
        )
    return summaries
