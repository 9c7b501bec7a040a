"""
Tests for the compliance scanner.

Covers:
- PII detection including digits written directly after Hangul
- Issue ids, snippets, sources and regulation references
- Metric scores, caps and details
- Clean segment counting, overall severity and summary text
- Building segments from case artifacts
"""

import pytest

from casecast.engine.compliance import (
    MAX_SEGMENTS,
    NO_RISK_DETAIL,
    SNIPPET_LIMIT,
    ComplianceScanner,
    make_snippet,
    to_compliance_segments,
)
from casecast.schemas.common import Severity
from casecast.schemas.compliance import AdditionalNote, ComplianceSegment


def _segment(segment_id: str, text: str, label: str = None) -> ComplianceSegment:
    label = label or segment_id
    return ComplianceSegment(id=segment_id, label=label, text=text, source=label)


class TestComplianceScanner:
    def setup_method(self):
        self.scanner = ComplianceScanner()

    def test_phone_number_after_hangul(self):
        report = self.scanner.scan([_segment("s1", "연락처는010-1234-5678입니다")])

        assert len(report.flagged_issues) == 1
        issue = report.flagged_issues[0]
        assert issue.id == "pii-phone-s1-1"
        assert issue.category == "privacy"
        assert issue.snippet == "010-1234-5678"
        assert issue.regulation_references == ["PIPA", "GDPR"]
        assert issue.source == "s1"

        metrics = {m.id: m for m in report.metrics}
        assert metrics["privacy-score"].score == pytest.approx(72)
        assert metrics["privacy-score"].detail != NO_RISK_DETAIL
        assert metrics["safety-score"].score == 100
        assert metrics["safety-score"].detail == NO_RISK_DETAIL
        assert report.overall_severity == Severity.HIGH

    def test_digits_inside_longer_numbers_do_not_match(self):
        report = self.scanner.scan([_segment("s1", "order 12345678901234567")])
        assert report.flagged_issues == []

    def test_clean_segments_are_counted(self):
        report = self.scanner.scan([
            _segment("a", "He threatened to kill me."),
            _segment("b", "The meeting is on Monday."),
            _segment("c", "   "),
        ])
        assert report.total_segments == 3
        assert report.clean_segments == 2
        assert report.summary.startswith(f"{len(report.flagged_issues)} potential regulatory issues")

    def test_no_issues(self):
        report = self.scanner.scan([_segment("a", "Routine background check request.")])
        assert report.flagged_issues == []
        assert report.overall_severity == Severity.LOW
        assert report.summary == "No regulatory issues detected."
        assert [m.score for m in report.metrics] == [100, 100, 100, 100, 100]
        assert [m.id for m in report.metrics] == [
            "privacy-score", "safety-score", "legal-score", "bias-score", "policy-score",
        ]

    def test_metric_penalty_is_capped(self):
        text = " ".join(["폭력 협박 자살 살해 테러 폭탄"] * 3)
        report = self.scanner.scan([_segment("a", text)])
        safety = next(m for m in report.metrics if m.id == "safety-score")
        assert safety.score == 10

    def test_low_severity_policy_issue(self):
        report = self.scanner.scan([_segment("a", "This is not legal advice.")])
        assert [i.id for i in report.flagged_issues] == ["policy-legal-advice-a-1"]
        policy = next(m for m in report.metrics if m.id == "policy-score")
        assert policy.score == pytest.approx(93)
        assert report.overall_severity == Severity.LOW

    def test_issue_numbering_spans_segments(self):
        report = self.scanner.scan([
            _segment("a", "call 010-1111-2222"),
            _segment("b", "call 010-3333-4444"),
        ])
        assert [i.id for i in report.flagged_issues] == ["pii-phone-a-1", "pii-phone-b-2"]


class TestHelpers:
    def test_make_snippet_truncates(self):
        snippet = make_snippet("x" * 200)
        assert snippet == "x" * SNIPPET_LIMIT + "…"
        assert make_snippet("  short  ") == "short"

    def test_to_compliance_segments(self):
        segments = to_compliance_segments(
            conversation_summary="Client   reports\nthreats",
            realtime_summary="",
            report_draft="Draft text",
            additional_notes=[AdditionalNote(label="", text="note body")],
        )
        assert [s.label for s in segments] == ["Conversation Summary", "Report Draft", "Additional-1"]
        assert segments[0].text == "Client reports threats"
        assert segments[0].id == "conversation-summary-1"
        assert segments[1].id == "report-draft-2"

    def test_segment_count_is_capped(self):
        notes = [AdditionalNote(label=f"n{i}", text="text") for i in range(40)]
        assert len(to_compliance_segments(additional_notes=notes)) == MAX_SEGMENTS
