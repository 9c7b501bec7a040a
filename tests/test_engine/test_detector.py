"""
Tests for the risk signal detector.

Covers:
- Only user-role messages are scanned
- Korean and English keyword coverage
- Confidence, evidence fragments and guidance per signal
- risk_score range and the overall risk bands
- Severity weight ordering
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from casecast.engine.detector import SignalDetector, overall_risk_for, risk_score_for, user_text
from casecast.rules.risk_rules import (
    DIGITAL_TRACE,
    EVIDENCE_LOSS,
    LEGAL_DEADLINE,
    VIOLENCE_THREAT,
)
from casecast.schemas.common import SEVERITY_WEIGHTS, Severity, severity_weight
from casecast.schemas.insights import ChatMessage


class TestUserText:
    def test_joins_user_messages_lowercased(self):
        messages = [
            ChatMessage(role="user", content="Hello THERE"),
            ChatMessage(role="assistant", content="ignored"),
            ChatMessage(role="user", content="Again"),
        ]
        assert user_text(messages) == "hello there \nagain"


class TestSignalDetector:
    def setup_method(self):
        self.detector = SignalDetector()

    def test_threat_and_deadline_are_high_signals(self, threat_messages):
        result = self.detector.detect_messages(threat_messages)
        by_id = {s.id: s for s in result.signals}

        assert set(by_id) >= {VIOLENCE_THREAT, LEGAL_DEADLINE}
        assert by_id[VIOLENCE_THREAT].severity == Severity.HIGH
        assert by_id[LEGAL_DEADLINE].severity == Severity.HIGH
        assert "협박" in by_id[VIOLENCE_THREAT].evidence
        # 기한 and 이번 주 are two distinct patterns
        assert by_id[LEGAL_DEADLINE].confidence == pytest.approx(0.75)

    def test_overall_risk_follows_score(self, threat_messages):
        result = self.detector.detect_messages(threat_messages)
        assert result.overall_risk == overall_risk_for(result.risk_score)

    def test_heavy_conversation_is_high_risk(self):
        messages = [
            ChatMessage(role="user", content="협박 위협 폭력 스토킹이 계속돼요"),
            ChatMessage(role="user", content="소송 기한 마감이 내일이에요"),
            ChatMessage(role="user", content="증거 영상이 삭제될까 봐 녹취를 해뒀어요"),
        ]
        result = self.detector.detect_messages(messages)
        assert result.risk_score > 60
        assert result.overall_risk == Severity.HIGH

    def test_assistant_messages_are_ignored(self):
        messages = [
            ChatMessage(role="assistant", content="협박을 받으셨나요? 기한은 언제인가요?"),
            ChatMessage(role="user", content="아니요, 그냥 상담만 원해요."),
        ]
        result = self.detector.detect_messages(messages)
        assert result.signals == []
        assert result.risk_score == 0
        assert result.overall_risk == Severity.LOW

    def test_english_keywords(self):
        signals = self.detector.detect(
            "he keeps sending threats and i'm afraid the recording will be deleted from his phone"
        )
        ids = {s.id for s in signals}
        assert {VIOLENCE_THREAT, EVIDENCE_LOSS, DIGITAL_TRACE} <= ids

    def test_evidence_lists_at_most_three_distinct_fragments(self):
        signals = self.detector.detect("증거 증거 삭제 폐기 훼손 녹취")
        evidence = next(s for s in signals if s.id == EVIDENCE_LOSS).evidence
        parts = evidence.split(", ")
        assert len(parts) <= 3
        assert len(parts) == len(set(parts))

    def test_signal_carries_rule_guidance(self):
        signal = self.detector.detect("카카오톡 대화를 백업했어요")[0]
        assert signal.id == DIGITAL_TRACE
        assert signal.guidance


class TestRiskScore:
    def test_bands(self):
        assert overall_risk_for(61) == Severity.HIGH
        assert overall_risk_for(60) == Severity.MEDIUM
        assert overall_risk_for(31) == Severity.MEDIUM
        assert overall_risk_for(30) == Severity.LOW

    def test_empty_is_zero(self):
        assert risk_score_for([]) == 0

    @given(st.text(max_size=400))
    def test_score_always_in_range(self, text):
        signals = SignalDetector().detect(text.lower())
        score = risk_score_for(signals)
        assert 0 <= score <= 95
        for signal in signals:
            assert 0.35 <= signal.confidence <= 0.95


class TestSeverityWeights:
    def test_order_is_stable(self):
        assert severity_weight(Severity.HIGH) > severity_weight(Severity.MEDIUM) > severity_weight(Severity.LOW)

    def test_values(self):
        assert SEVERITY_WEIGHTS == {Severity.HIGH: 1.0, Severity.MEDIUM: 0.6, Severity.LOW: 0.35}

    def test_accepts_plain_strings(self):
        assert severity_weight("medium") == 0.6
