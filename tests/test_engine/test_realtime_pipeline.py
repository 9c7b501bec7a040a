"""
End-to-end tests for the realtime insights pipeline.

Covers:
- Full response shape for a threat conversation with intake summary
- Trend recording across calls and the resulting spike alert
- Degraded trend store: history alerts skipped, case alerts kept
- Payload validation errors
- Scenario recommendations from the packaged corpus
"""

from datetime import timedelta

import pytest

from casecast.engine.realtime import RealtimeAnalyzer, normalize_payload
from casecast.engine.recommendations import ScenarioCorpus
from casecast.exceptions import InputValidationError, TrendStoreUnavailableError
from casecast.rules.risk_rules import LEGAL_DEADLINE, VIOLENCE_THREAT
from casecast.schemas.insights import RealtimeRequest
from casecast.store.trend_store import TrendStore


class _BrokenStore(TrendStore):
    backend = "broken"

    async def _load_all(self):
        raise TrendStoreUnavailableError(self.backend, "disk on fire")

    async def _save_all(self, snapshots):
        raise TrendStoreUnavailableError(self.backend, "disk on fire")


class TestNormalizePayload:
    def test_accepts_dict(self, threat_messages):
        request = normalize_payload({"messages": [m.model_dump() for m in threat_messages]})
        assert isinstance(request, RealtimeRequest)
        assert len(request.messages) == 3

    def test_empty_messages_rejected(self):
        with pytest.raises(InputValidationError) as exc:
            normalize_payload({"messages": []})
        assert exc.value.field == "messages"
        assert exc.value.status_code == 400
        assert exc.value.details["errors"][0]["loc"] == ["messages"]

    def test_missing_messages_rejected(self):
        with pytest.raises(InputValidationError):
            normalize_payload({})


class TestRealtimeAnalyzer:
    @pytest.mark.asyncio
    async def test_threat_conversation(self, analyzer, threat_messages, intake_summary, now):
        insights = await analyzer.analyze(
            RealtimeRequest(messages=threat_messages, intake_summary=intake_summary), now=now
        )

        signal_ids = {s.id for s in insights.signals}
        assert {VIOLENCE_THREAT, LEGAL_DEADLINE} <= signal_ids
        assert 0 <= insights.risk_score <= 100
        assert insights.generated_at == now
        assert insights.trends_degraded is False

        alert_ids = [a.id for a in insights.alerts]
        assert "urgency-priority" in alert_ids
        assert "multiple-high" in alert_ids

        assert [a.id for a in insights.next_actions][:1] == ["safety-plan"]
        assert len(insights.follow_up_questions) <= 4
        assert insights.action_plan.items[0].id == "p0-safety"
        assert len(insights.flow_simulation.phases) == 5
        assert len(insights.timeline) == 5

    @pytest.mark.asyncio
    async def test_repeated_threats_trigger_spike(self, analyzer, memory_store, threat_messages, now):
        payload = {"messages": [m.model_dump() for m in threat_messages]}
        for minutes in (40, 20):
            await analyzer.analyze(payload, now=now - timedelta(minutes=minutes))
        insights = await analyzer.analyze(payload, now=now)

        assert f"{VIOLENCE_THREAT}-spike" in [a.id for a in insights.alerts]
        snapshots = {s.signal_id: s for s in await memory_store.load(now)}
        assert snapshots[VIOLENCE_THREAT].total_count == 3

    @pytest.mark.asyncio
    async def test_calm_conversation(self, analyzer, calm_messages, now):
        insights = await analyzer.analyze(RealtimeRequest(messages=calm_messages), now=now)
        assert insights.signals == []
        assert insights.risk_score == 0
        assert insights.alerts == []
        assert [a.id for a in insights.next_actions] == ["intake-review"]

    @pytest.mark.asyncio
    async def test_degraded_store_keeps_case_alerts(self, corpus, threat_messages, intake_summary, now):
        analyzer = RealtimeAnalyzer(store=_BrokenStore(), corpus=corpus)
        for _ in range(3):
            insights = await analyzer.analyze(
                RealtimeRequest(messages=threat_messages, intake_summary=intake_summary), now=now
            )

        assert insights.trends_degraded is True
        alert_ids = [a.id for a in insights.alerts]
        assert not any(alert_id.endswith(("-spike", "-trend")) for alert_id in alert_ids)
        assert "urgency-priority" in alert_ids
        assert "multiple-high" in alert_ids

    @pytest.mark.asyncio
    async def test_invalid_payload(self, analyzer):
        with pytest.raises(InputValidationError):
            await analyzer.analyze({"messages": "not a list"})


class TestScenarioCorpus:
    def test_packaged_corpus_loads(self, corpus):
        assert len(corpus) > 0

    def test_rank_prefers_keyword_overlap(self):
        corpus = ScenarioCorpus.from_mapping({
            "stalking_case": {"summary": "stalking threat protection"},
            "tax_case": {"summary": "tax audit ledger review"},
        })
        results = corpus.rank(["stalking", "threat"], "")
        assert [r.id for r in results] == ["stalking_case"]
        assert results[0].title == "stalking case"
        assert 0 < results[0].similarity <= 1

    def test_rank_limit(self):
        corpus = ScenarioCorpus.from_mapping({f"case-{i}": {"t": "alpha"} for i in range(6)})
        assert len(corpus.rank(["alpha"], "")) == 4
