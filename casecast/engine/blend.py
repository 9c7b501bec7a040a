"""
Blend Orchestrator.

Heuristic first, external second, never external-only:

    run(inputs):
        heuristic = TwinEstimator.score(inputs)
        external  = one bounded call to the external generator (or None)
        return blend(heuristic, external)

With no external result the heuristic analysis is returned unchanged
apart from the fallback rationale. With one, the success rate becomes
clamp(round_half_up(0.6 × external + 0.4 × heuristic), 8, 96) and the
explanation lists are merged external-first with case-insensitive dedup.
"""

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog

from casecast.engine.numeric import clamp, round_half_up
from casecast.engine.twin import (
    MAX_SUCCESS_RATE,
    MIN_SUCCESS_RATE,
    TwinEstimator,
    confidence_label_for,
    new_twin_id,
)
from casecast.exceptions import ExternalGeneratorError
from casecast.schemas.twin import (
    AnalysisSource,
    ExternalTwinPayload,
    FallbackReason,
    TwinAnalysis,
    TwinSimulationInput,
)
from casecast.services.resilience import GeneratorBreaker
from casecast.services.twin_generator import ExternalTwinGenerator

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

EXTERNAL_WEIGHT: float = 0.6
HEURISTIC_WEIGHT: float = 0.4
MAX_LIST_ITEMS: int = 6
DEFAULT_TIMEOUT_SECONDS: float = 8.0

HEURISTIC_RATIONALE = "Heuristic calibration based on scenario variables."
BLEND_NOTE = "External analysis combined with heuristic calibration to reflect scenario variable impact."


FALLBACK_RATIONALES: dict[FallbackReason, str] = {
    FallbackReason.DISABLED: "External analysis is not configured; returning the heuristic analysis.",
    FallbackReason.TIMEOUT: "External analysis timed out; returning the heuristic analysis.",
    FallbackReason.ERROR: "External analysis call failed; returning the heuristic analysis.",
    FallbackReason.INVALID_PAYLOAD: "External analysis response could not be parsed; returning the heuristic analysis.",
}

_INVALID_PAYLOAD_REASONS = frozenset({"invalid json", "invalid payload"})


def merge_unique(*lists: Optional[Iterable[str]], limit: Optional[int] = None) -> list[str]:
    """Concatenate, trim, drop blanks and case-insensitive duplicates (first spelling wins)."""
    seen: set[str] = set()
    merged: list[str] = []
    for entries in lists:
        for entry in entries or ():
            normalized = entry.strip() if isinstance(entry, str) else ""
            key = normalized.casefold()
            if not normalized or key in seen:
                continue
            seen.add(key)
            merged.append(normalized)
    return merged[:limit] if limit is not None else merged


class BlendOrchestrator:
    """Sole caller of the external generator."""

    def __init__(
        self,
        estimator: Optional[TwinEstimator] = None,
        generator: Optional[ExternalTwinGenerator] = None,
        enabled: bool = True,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        breaker: Optional[GeneratorBreaker] = None,
    ):
        self.estimator = estimator or TwinEstimator()
        self.generator = generator
        self.enabled = enabled
        self.timeout = timeout
        self.breaker = breaker or GeneratorBreaker(generator.name if generator is not None else "none")

    async def run(self, inputs: TwinSimulationInput) -> TwinAnalysis:
        heuristic = self.estimator.score(inputs)
        external, reason = await self._call_external(inputs)
        return self.blend(heuristic, external, reason)

    def blend(
        self,
        heuristic: TwinAnalysis,
        external: Optional[ExternalTwinPayload],
        fallback_reason: Optional[FallbackReason] = None,
    ) -> TwinAnalysis:
        if external is None:
            rationale = heuristic.rationale
            if fallback_reason is not None:
                rationale = FALLBACK_RATIONALES[fallback_reason]
            return heuristic.model_copy(update={
                "source": AnalysisSource.HEURISTIC_ONLY,
                "rationale": rationale,
            })

        success_rate = int(clamp(
            round_half_up(external.success_rate * EXTERNAL_WEIGHT + heuristic.success_rate * HEURISTIC_WEIGHT),
            MIN_SUCCESS_RATE,
            MAX_SUCCESS_RATE,
        ))
        rationale_lines = merge_unique(
            [external.rationale] if external.rationale else None,
            [heuristic.rationale or HEURISTIC_RATIONALE],
            [BLEND_NOTE],
        )

        blended = TwinAnalysis(
            id=new_twin_id(),
            generated_at=datetime.now(timezone.utc),
            success_rate=success_rate,
            confidence_label=confidence_label_for(success_rate),
            key_factors=merge_unique(external.key_factors, heuristic.key_factors, limit=MAX_LIST_ITEMS),
            risk_alerts=merge_unique(external.risk_alerts, heuristic.risk_alerts, limit=MAX_LIST_ITEMS),
            recommended_actions=merge_unique(
                external.recommended_actions, heuristic.recommended_actions, limit=MAX_LIST_ITEMS
            ),
            timeline=list(external.timeline[:MAX_LIST_ITEMS]) if external.timeline else heuristic.timeline,
            knowledge_base=merge_unique(external.knowledge_base, heuristic.knowledge_base, limit=MAX_LIST_ITEMS),
            rationale="\n\n".join(rationale_lines),
            source=AnalysisSource.BLENDED,
        )
        logger.info(
            "blend_applied",
            heuristic_rate=heuristic.success_rate,
            external_rate=external.success_rate,
            blended_rate=success_rate,
        )
        return blended

    async def _call_external(
        self, inputs: TwinSimulationInput
    ) -> tuple[Optional[ExternalTwinPayload], Optional[FallbackReason]]:
        if not self.enabled or self.generator is None or not self.generator.available:
            return None, FallbackReason.DISABLED

        skipped = self.breaker.admit()
        if skipped is not None:
            return None, skipped

        payload: Optional[ExternalTwinPayload] = None
        # Cancellation before an outcome still counts against the generator.
        reason: Optional[FallbackReason] = FallbackReason.ERROR
        try:
            payload = await asyncio.wait_for(self.generator.generate(inputs), timeout=self.timeout)
            reason = None
        except asyncio.TimeoutError:
            reason = FallbackReason.TIMEOUT
            error = f"no answer within {self.timeout}s"
        except ExternalGeneratorError as exc:
            reason = (
                FallbackReason.INVALID_PAYLOAD if exc.reason in _INVALID_PAYLOAD_REASONS
                else FallbackReason.ERROR
            )
            error = exc.message
        except Exception as exc:
            reason = FallbackReason.ERROR
            error = str(exc)
        finally:
            self.breaker.record(reason)

        if reason is None:
            return payload, None
        logger.warning(
            "external_generator_failed",
            generator=self.breaker.generator,
            reason=reason.value,
            error=error,
        )
        return None, reason
