"""
Tests for the per-generator breaker.

Covers:
- CLOSED → OPEN after the failure threshold of tripping reasons
- Invalid payloads never trip the breaker
- OPEN skips attempts and reports the reason that opened it
- TRIAL after the recovery timeout admits one attempt; success closes,
  a tripping failure reopens
- Failures outside the window are forgotten
"""

from casecast.schemas.twin import FallbackReason
from casecast.services.resilience import BreakerState, GeneratorBreaker


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestGeneratorBreaker:
    def setup_method(self):
        self.clock = _Clock()
        self.breaker = GeneratorBreaker(
            "claude:test", failure_threshold=2, window_seconds=60, recovery_timeout=30, clock=self.clock
        )

    def _fail(self, reason=FallbackReason.ERROR):
        assert self.breaker.admit() is None
        self.breaker.record(reason)

    def test_success_keeps_breaker_closed(self):
        assert self.breaker.admit() is None
        self.breaker.record(None)
        assert self.breaker.state == BreakerState.CLOSED
        assert self.breaker.last_reason is None

    def test_opens_after_threshold(self):
        self._fail(FallbackReason.ERROR)
        assert self.breaker.state == BreakerState.CLOSED
        self._fail(FallbackReason.TIMEOUT)

        assert self.breaker.state == BreakerState.OPEN
        assert self.breaker.admit() == FallbackReason.TIMEOUT
        assert self.breaker.status()["opened_by"] == "timeout"

    def test_invalid_payload_does_not_trip(self):
        for _ in range(5):
            self._fail(FallbackReason.INVALID_PAYLOAD)
        assert self.breaker.state == BreakerState.CLOSED
        assert self.breaker.last_reason == FallbackReason.INVALID_PAYLOAD

    def test_success_clears_recent_failures(self):
        self._fail()
        self.breaker.admit()
        self.breaker.record(None)
        self._fail()
        assert self.breaker.state == BreakerState.CLOSED

    def test_old_failures_leave_the_window(self):
        self._fail()
        self.clock.now += 61
        self._fail()
        assert self.breaker.state == BreakerState.CLOSED
        assert self.breaker.status()["recent_failures"] == 1

    def test_trial_success_closes(self):
        self._fail()
        self._fail()
        self.clock.now += 30

        assert self.breaker.state == BreakerState.TRIAL
        assert self.breaker.admit() is None
        # only one trial attempt at a time
        assert self.breaker.admit() == FallbackReason.ERROR

        self.breaker.record(None)
        assert self.breaker.state == BreakerState.CLOSED
        assert self.breaker.admit() is None

    def test_trial_failure_reopens(self):
        self._fail()
        self._fail()
        self.clock.now += 30

        assert self.breaker.admit() is None
        self.breaker.record(FallbackReason.TIMEOUT)
        assert self.breaker.state == BreakerState.OPEN
        assert self.breaker.admit() == FallbackReason.TIMEOUT

    def test_reset(self):
        self._fail()
        self._fail()
        self.breaker.reset()
        assert self.breaker.state == BreakerState.CLOSED
        assert self.breaker.status() == {
            "generator": "claude:test",
            "state": "closed",
            "recent_failures": 0,
            "opened_by": None,
            "last_reason": None,
        }
