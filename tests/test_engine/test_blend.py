"""
Tests for the blend orchestrator.

Covers:
- Heuristic-only results keep every heuristic list and carry a
  fallback rationale per reason
- 60/40 success-rate blend, clamping and case-insensitive list merge
- Fallback reasons: disabled, timeout, error, invalid payload,
  open breaker (reporting the reason that opened it)
"""

import asyncio

import pytest

from casecast.engine.blend import (
    BLEND_NOTE,
    FALLBACK_RATIONALES,
    MAX_LIST_ITEMS,
    BlendOrchestrator,
    FallbackReason,
    merge_unique,
)
from casecast.engine.twin import TwinEstimator
from casecast.exceptions import ExternalGeneratorError
from casecast.schemas.twin import (
    AnalysisSource,
    ConfidenceLabel,
    ExternalTwinPayload,
    TwinTimelineStep,
)
from casecast.services.resilience import BreakerState, GeneratorBreaker


def _payload(success_rate=80.0, **overrides) -> ExternalTwinPayload:
    data = dict(
        success_rate=success_rate,
        confidence_label="high",
        key_factors=["External factor"],
        risk_alerts=["External risk"],
        recommended_actions=["External action"],
        timeline=[TwinTimelineStep(phase="Recon", detail="Scout the area")],
        knowledge_base=["Field dataset 2024"],
        rationale="External reasoning.",
    )
    data.update(overrides)
    return ExternalTwinPayload(**data)


class _FakeGenerator:
    name = "fake"

    def __init__(self, result=None, error=None, delay=0.0, available=True):
        self.result = result
        self.error = error
        self.delay = delay
        self._available = available
        self.calls = 0

    @property
    def available(self):
        return self._available

    async def generate(self, inputs):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def _orchestrator(generator=None, enabled=True, timeout=1.0, breaker=None):
    return BlendOrchestrator(
        estimator=TwinEstimator(),
        generator=generator,
        enabled=enabled,
        timeout=timeout,
        breaker=breaker or GeneratorBreaker("test", failure_threshold=100),
    )


class TestMergeUnique:
    def test_case_insensitive_first_spelling_wins(self):
        assert merge_unique(["Watch the car", " "], ["watch THE car", "Other"]) == ["Watch the car", "Other"]

    def test_limit_and_none(self):
        assert merge_unique(None, ["a", "b", "c"], limit=2) == ["a", "b"]


class TestBlend:
    def setup_method(self):
        self.orchestrator = _orchestrator()

    def test_heuristic_only_keeps_lists(self, twin_input):
        heuristic = TwinEstimator().score(twin_input)
        result = self.orchestrator.blend(heuristic, None)

        assert result.source == AnalysisSource.HEURISTIC_ONLY
        assert result.success_rate == heuristic.success_rate
        assert result.key_factors == heuristic.key_factors
        assert result.risk_alerts == heuristic.risk_alerts
        assert result.recommended_actions == heuristic.recommended_actions
        assert result.timeline == heuristic.timeline

    def test_fallback_reason_sets_rationale(self, twin_input):
        heuristic = TwinEstimator().score(twin_input)
        result = self.orchestrator.blend(heuristic, None, FallbackReason.TIMEOUT)
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.TIMEOUT]

    def test_weighted_success_rate(self, twin_input):
        heuristic = TwinEstimator().score(twin_input)          # 65
        result = self.orchestrator.blend(heuristic, _payload(80))

        assert result.source == AnalysisSource.BLENDED
        assert result.success_rate == 74
        assert result.confidence_label == ConfidenceLabel.MEDIUM
        assert result.id != heuristic.id
        assert result.timeline[0].phase == "Recon"
        assert result.key_factors[0] == "External factor"
        assert BLEND_NOTE in result.rationale
        assert result.rationale.startswith("External reasoning.")

    def test_blend_is_clamped(self, twin_input):
        heuristic = TwinEstimator().score(twin_input)
        assert self.orchestrator.blend(heuristic, _payload(100)).success_rate == 86
        low = heuristic.model_copy(update={"success_rate": 8})
        assert self.orchestrator.blend(low, _payload(0)).success_rate == 8

    def test_merged_lists_have_no_casefold_duplicates(self, twin_input):
        heuristic = TwinEstimator().score(twin_input)
        duplicate = heuristic.key_factors[0].upper()
        result = self.orchestrator.blend(heuristic, _payload(key_factors=[duplicate, "New factor"]))

        folded = [line.casefold() for line in result.key_factors]
        assert len(folded) == len(set(folded))
        assert result.key_factors[0] == duplicate
        assert len(result.key_factors) <= MAX_LIST_ITEMS


class TestRun:
    @pytest.mark.asyncio
    async def test_disabled(self, twin_input):
        generator = _FakeGenerator(result=_payload())
        result = await _orchestrator(generator, enabled=False).run(twin_input)
        assert result.source == AnalysisSource.HEURISTIC_ONLY
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.DISABLED]
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_unavailable_generator_counts_as_disabled(self, twin_input):
        generator = _FakeGenerator(result=_payload(), available=False)
        result = await _orchestrator(generator).run(twin_input)
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.DISABLED]

    @pytest.mark.asyncio
    async def test_success(self, twin_input):
        result = await _orchestrator(_FakeGenerator(result=_payload(80))).run(twin_input)
        assert result.source == AnalysisSource.BLENDED
        assert result.success_rate == 74

    @pytest.mark.asyncio
    async def test_timeout(self, twin_input):
        generator = _FakeGenerator(result=_payload(), delay=1.0)
        result = await _orchestrator(generator, timeout=0.05).run(twin_input)
        assert result.source == AnalysisSource.HEURISTIC_ONLY
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.TIMEOUT]
        assert result.success_rate == 65

    @pytest.mark.asyncio
    async def test_invalid_payload(self, twin_input):
        generator = _FakeGenerator(error=ExternalGeneratorError("invalid json"))
        result = await _orchestrator(generator).run(twin_input)
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.INVALID_PAYLOAD]

    @pytest.mark.asyncio
    async def test_generator_error(self, twin_input):
        generator = _FakeGenerator(error=ExternalGeneratorError("empty response"))
        result = await _orchestrator(generator).run(twin_input)
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.ERROR]

    @pytest.mark.asyncio
    async def test_unexpected_exception_falls_back(self, twin_input):
        generator = _FakeGenerator(error=RuntimeError("boom"))
        result = await _orchestrator(generator).run(twin_input)
        assert result.source == AnalysisSource.HEURISTIC_ONLY
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.ERROR]

    @pytest.mark.asyncio
    async def test_open_breaker_skips_the_call(self, twin_input):
        breaker = GeneratorBreaker("test", failure_threshold=1, recovery_timeout=60)
        generator = _FakeGenerator(error=RuntimeError("down"))
        orchestrator = _orchestrator(generator, breaker=breaker)

        await orchestrator.run(twin_input)
        assert breaker.state == BreakerState.OPEN

        result = await orchestrator.run(twin_input)
        assert result.rationale == FALLBACK_RATIONALES[FallbackReason.ERROR]
        assert generator.calls == 1

    @pytest.mark.asyncio
    async def test_open_breaker_reports_the_reason_that_opened_it(self, twin_input):
        breaker = GeneratorBreaker("test", failure_threshold=1, recovery_timeout=60)
        generator = _FakeGenerator(result=_payload(), delay=0.5)
        orchestrator = _orchestrator(generator, timeout=0.05, breaker=breaker)

        first = await orchestrator.run(twin_input)
        assert first.rationale == FALLBACK_RATIONALES[FallbackReason.TIMEOUT]

        second = await orchestrator.run(twin_input)
        assert second.rationale == FALLBACK_RATIONALES[FallbackReason.TIMEOUT]
        assert generator.calls == 1

    @pytest.mark.asyncio
    async def test_invalid_payloads_keep_breaker_closed(self, twin_input):
        breaker = GeneratorBreaker("test", failure_threshold=1)
        generator = _FakeGenerator(error=ExternalGeneratorError("invalid payload"))
        orchestrator = _orchestrator(generator, breaker=breaker)

        for _ in range(3):
            await orchestrator.run(twin_input)
        assert breaker.state == BreakerState.CLOSED
        assert breaker.last_reason == FallbackReason.INVALID_PAYLOAD
        assert generator.calls == 3

    def test_each_orchestrator_owns_its_breaker(self):
        first = BlendOrchestrator(generator=_FakeGenerator())
        second = BlendOrchestrator(generator=_FakeGenerator())
        assert first.breaker is not second.breaker
        assert first.breaker.generator == "fake"
