"""
Resilience — Generator Breaker.

One breaker per external twin generator, owned by the blend orchestrator
that calls it. Every attempt is recorded with the FallbackReason it
produced (None on success). Timeouts and call errors count toward opening
the breaker; an answer that fails validation does not, since the
generator itself responded.

    CLOSED  attempts go through
    OPEN    attempts are skipped; fall back with the reason that opened it
    TRIAL   after recovery_timeout, exactly one attempt goes through;
            success closes, another tripping failure reopens

There are no retries.
"""

import time
from enum import StrEnum
from typing import Any, Callable, Optional

import structlog

from casecast.schemas.twin import FallbackReason

logger = structlog.get_logger(__name__)

TRIPPING_REASONS: frozenset[FallbackReason] = frozenset({FallbackReason.TIMEOUT, FallbackReason.ERROR})


class BreakerState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    TRIAL = "trial"


class GeneratorBreaker:
    """Tracks failures of one external generator and gates attempts to it."""

    def __init__(
        self,
        generator: str,
        failure_threshold: int = 3,
        window_seconds: float = 60.0,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.generator = generator
        self.failure_threshold = failure_threshold
        self.window_seconds = window_seconds
        self.recovery_timeout = recovery_timeout
        self._clock = clock

        self._state = BreakerState.CLOSED
        self._failures: list[float] = []
        self._opened_at = 0.0
        self._opened_by: Optional[FallbackReason] = None
        self._trial_in_flight = False
        self.last_reason: Optional[FallbackReason] = None

    @property
    def state(self) -> BreakerState:
        if self._state == BreakerState.OPEN and self._clock() - self._opened_at >= self.recovery_timeout:
            self._state = BreakerState.TRIAL
            logger.info("generator_breaker_trial", generator=self.generator)
        return self._state

    def admit(self) -> Optional[FallbackReason]:
        """None if an attempt may go ahead, otherwise the reason to fall back with."""
        state = self.state
        if state == BreakerState.CLOSED:
            return None
        if state == BreakerState.TRIAL and not self._trial_in_flight:
            self._trial_in_flight = True
            return None

        logger.info("generator_breaker_skipped", generator=self.generator, state=state.value)
        return self._opened_by or FallbackReason.ERROR

    def record(self, reason: Optional[FallbackReason]) -> None:
        """Record the outcome of an admitted attempt."""
        self.last_reason = reason
        self._trial_in_flight = False

        if reason not in TRIPPING_REASONS:
            if self._state != BreakerState.CLOSED:
                logger.info("generator_breaker_closed", generator=self.generator)
            self._state = BreakerState.CLOSED
            self._failures.clear()
            self._opened_by = None
            return

        now = self._clock()
        if self._state == BreakerState.TRIAL:
            self._open(now, reason)
            return

        cutoff = now - self.window_seconds
        self._failures = [t for t in self._failures if t > cutoff]
        self._failures.append(now)
        if len(self._failures) >= self.failure_threshold:
            self._open(now, reason)

    def _open(self, now: float, reason: FallbackReason) -> None:
        self._state = BreakerState.OPEN
        self._opened_at = now
        self._opened_by = reason
        self._failures.clear()
        logger.warning(
            "generator_breaker_opened",
            generator=self.generator,
            reason=reason.value,
            recovery_timeout=self.recovery_timeout,
        )

    def status(self) -> dict[str, Any]:
        return {
            "generator": self.generator,
            "state": self.state.value,
            "recent_failures": len(self._failures),
            "opened_by": self._opened_by.value if self._opened_by else None,
            "last_reason": self.last_reason.value if self.last_reason else None,
        }

    def reset(self) -> None:
        self._state = BreakerState.CLOSED
        self._failures.clear()
        self._opened_by = None
        self._trial_in_flight = False
        self.last_reason = None
