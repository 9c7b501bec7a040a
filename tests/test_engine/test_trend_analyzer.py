"""
Tests for trend alert derivation.

Covers:
- Spike alert (≥ 3 in 24h, severity ≠ low) and its precedence over trend
- Cumulative trend alert (≥ 6 in 7 days) with low → medium promotion
- Urgency, corporate and multiple-high case alerts
- Alert id de-duplication and configurable thresholds
"""

from datetime import timedelta

from casecast.engine.trends import TrendAnalyzer
from casecast.schemas.common import Severity
from casecast.schemas.insights import Signal
from casecast.schemas.trends import TrendSnapshot


def _snapshot(now, signal_id="violence-threat", severity=Severity.HIGH, ages=()):
    detections = sorted(now - age for age in ages)
    return TrendSnapshot(
        signal_id=signal_id,
        title="Violence threat indicators",
        severity=severity,
        total_count=len(detections),
        recent_detections=detections,
        last_detected_at=detections[-1] if detections else None,
    )


def _signal(signal_id, severity):
    return Signal(id=signal_id, title=signal_id, severity=severity, confidence=0.55,
                  evidence="x", guidance="y")


class TestSpikeAndTrend:
    def setup_method(self):
        self.analyzer = TrendAnalyzer()

    def test_spike_alert(self, now):
        snapshot = _snapshot(now, ages=[timedelta(hours=h) for h in (1, 5, 20)])
        alerts = self.analyzer.derive_alerts([snapshot], [], now=now)
        assert [a.id for a in alerts] == ["violence-threat-spike"]
        assert alerts[0].severity == Severity.HIGH
        assert "3 times" in alerts[0].message

    def test_spike_takes_precedence_over_trend(self, now):
        ages = [timedelta(hours=h) for h in (1, 2, 3, 4)] + [timedelta(days=d) for d in (2, 3, 4)]
        alerts = self.analyzer.derive_alerts([_snapshot(now, ages=ages)], [], now=now)
        ids = [a.id for a in alerts]
        assert "violence-threat-spike" in ids
        assert "violence-threat-trend" not in ids

    def test_low_severity_never_spikes(self, now):
        snapshot = _snapshot(now, "digital-trace", Severity.LOW, [timedelta(hours=h) for h in (1, 2, 3)])
        assert self.analyzer.derive_alerts([snapshot], [], now=now) == []

    def test_cumulative_trend_promotes_low_to_medium(self, now):
        ages = [timedelta(days=d) for d in (1.5, 2, 3, 4, 5, 6)]
        snapshot = _snapshot(now, "digital-trace", Severity.LOW, ages)
        alerts = self.analyzer.derive_alerts([snapshot], [], now=now)
        assert [a.id for a in alerts] == ["digital-trace-trend"]
        assert alerts[0].severity == Severity.MEDIUM

    def test_old_detections_do_not_count(self, now):
        ages = [timedelta(days=d) for d in (8, 9, 10, 11, 12, 13)]
        assert self.analyzer.derive_alerts([_snapshot(now, ages=ages)], [], now=now) == []

    def test_thresholds_are_configurable(self, now):
        analyzer = TrendAnalyzer(spike_threshold=2)
        snapshot = _snapshot(now, ages=[timedelta(hours=1), timedelta(hours=2)])
        assert [a.id for a in analyzer.derive_alerts([snapshot], [], now=now)] == ["violence-threat-spike"]


class TestCaseAlerts:
    def setup_method(self):
        self.analyzer = TrendAnalyzer()

    def test_urgency(self, now):
        alerts = self.analyzer.derive_alerts([], [], case_urgency="긴급 대응 요청", now=now)
        assert [a.id for a in alerts] == ["urgency-priority"]
        assert alerts[0].severity == Severity.HIGH

    def test_urgency_is_case_insensitive(self, now):
        alerts = self.analyzer.derive_alerts([], [], case_urgency="IMMEDIATE", now=now)
        assert [a.id for a in alerts] == ["urgency-priority"]

    def test_corporate_case_type(self, now):
        alerts = self.analyzer.derive_alerts([], [], case_type="Internal audit", now=now)
        assert [a.id for a in alerts] == ["corporate-pattern"]
        assert alerts[0].severity == Severity.MEDIUM

    def test_multiple_high_signals(self, now):
        signals = [_signal("violence-threat", Severity.HIGH), _signal("legal-deadline", Severity.HIGH)]
        alerts = self.analyzer.derive_alerts([], signals, now=now)
        assert [a.id for a in alerts] == ["multiple-high"]
        assert alerts[0].message.startswith("2 high-severity")

    def test_single_high_signal_is_quiet(self, now):
        signals = [_signal("violence-threat", Severity.HIGH), _signal("evidence-loss", Severity.MEDIUM)]
        assert self.analyzer.derive_alerts([], signals, now=now) == []

    def test_all_rules_combine_without_duplicate_ids(self, now):
        snapshot = _snapshot(now, ages=[timedelta(hours=h) for h in (1, 2, 3)])
        signals = [_signal("violence-threat", Severity.HIGH), _signal("legal-deadline", Severity.HIGH)]
        alerts = self.analyzer.derive_alerts(
            [snapshot, snapshot], signals, case_urgency="urgent", case_type="corporate", now=now
        )
        ids = [a.id for a in alerts]
        assert ids == ["violence-threat-spike", "urgency-priority", "corporate-pattern", "multiple-high"]
