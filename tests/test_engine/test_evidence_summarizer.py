"""
Tests for evidence artifact triage.

Covers:
- Hint scoring, file and visual bonuses, score clamp
- Risk level, classification and id fallback
- Findings and recommended actions per artifact type
"""

import pytest

from casecast.engine.evidence import (
    AUDIO_ACTION,
    RISK_ACTIONS,
    VISUAL_ACTION,
    summarize_artifact,
    summarize_artifacts,
)
from casecast.schemas.common import Severity
from casecast.schemas.evidence import ArtifactType, EvidenceArtifact


class TestEvidenceSummarizer:
    def test_visual_contract_evidence(self):
        artifact = EvidenceArtifact(
            id="ev-1", title="Photo of the contract signing", type=ArtifactType.IMAGE, has_file=True,
        )
        summary = summarize_artifact(artifact, 0)

        assert summary.id == "ev-1"
        assert summary.classification == "Image evidence"
        assert summary.confidence == pytest.approx(0.80)
        assert summary.risk_level == Severity.HIGH
        assert summary.key_findings == ["Legal dispute content", "Visual evidence"]
        assert summary.recommended_actions == [RISK_ACTIONS[Severity.HIGH], VISUAL_ACTION]

    def test_empty_artifact_gets_floor_score(self):
        summary = summarize_artifact(EvidenceArtifact(title="Misc"), 3)
        assert summary.id == "artifact-3"
        assert summary.confidence == pytest.approx(0.05)
        assert summary.risk_level == Severity.LOW
        assert summary.classification == "Other material"
        assert summary.recommended_actions == [RISK_ACTIONS[Severity.LOW]]

    def test_score_is_capped(self):
        artifact = EvidenceArtifact(
            title="계약 협박 송금 카카오톡 사진",
            type=ArtifactType.VIDEO,
            has_file=True,
        )
        assert summarize_artifact(artifact, 0).confidence == pytest.approx(0.95)

    def test_audio_recording(self):
        artifact = EvidenceArtifact(
            title="Call with landlord",
            description="Recording of the phone call about the cash transfer",
            type=ArtifactType.AUDIO,
            keywords=["landlord", "deposit"],
        )
        summary = summarize_artifact(artifact, 0)

        assert summary.risk_level == Severity.MEDIUM
        assert summary.confidence == pytest.approx(0.40)
        assert summary.key_findings == [
            "Financial transaction records",
            "Conversation records",
            "Summary: Recording of the phone call about the cash transfer",
        ]
        assert summary.recommended_actions == [RISK_ACTIONS[Severity.MEDIUM], AUDIO_ACTION]

    def test_summarize_artifacts_keeps_order(self):
        summaries = summarize_artifacts([EvidenceArtifact(title="a"), EvidenceArtifact(title="b")])
        assert [s.id for s in summaries] == ["artifact-0", "artifact-1"]
        assert summarize_artifacts([]) == []
