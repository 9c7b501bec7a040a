"""
Service Registry: centralized dependency wiring for CaseCast.

All engine instances are created once and shared across the application.
Detectors, scorers and the scenario registry are pure, so sharing them
between concurrent requests is safe. The trend store is the one stateful
service and is closed on shutdown.

Usage:
    from casecast.services.registry import get_services
    services = get_services()
    insights = await services.realtime_analyzer.analyze(payload)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

import structlog

from casecast.config import settings

logger = structlog.get_logger(__name__)


@dataclass
class ServiceRegistry:
    """
    Lazy registry of engine singletons.

    Services are built on first access so importing the API layer never
    touches the filesystem or the database.
    """

    _trend_store: Optional[object] = field(default=None, repr=False)
    _signal_detector: Optional[object] = field(default=None, repr=False)
    _trend_analyzer: Optional[object] = field(default=None, repr=False)
    _scenario_corpus: Optional[object] = field(default=None, repr=False)
    _realtime_analyzer: Optional[object] = field(default=None, repr=False)
    _scenario_registry: Optional[object] = field(default=None, repr=False)
    _twin_estimator: Optional[object] = field(default=None, repr=False)
    _blend_orchestrator: Optional[object] = field(default=None, repr=False)
    _candidate_matcher: Optional[object] = field(default=None, repr=False)
    _compliance_scanner: Optional[object] = field(default=None, repr=False)

    @property
    def trend_store(self):
        """Trend persistence, backend chosen by TREND_STORE_BACKEND."""
        if self._trend_store is None:
            self._trend_store = build_trend_store(settings.trend_store_backend)
            logger.debug("service_initialized", service="TrendStore", backend=self._trend_store.backend)
        return self._trend_store

    @property
    def signal_detector(self):
        if self._signal_detector is None:
            from casecast.engine.detector import SignalDetector
            self._signal_detector = SignalDetector()
            logger.debug("service_initialized", service="SignalDetector")
        return self._signal_detector

    @property
    def trend_analyzer(self):
        """Alert derivation with windows from settings."""
        if self._trend_analyzer is None:
            from casecast.engine.trends import CUMULATIVE_WINDOW, TrendAnalyzer
            self._trend_analyzer = TrendAnalyzer(
                spike_window=timedelta(hours=settings.trend_spike_window_hours),
                spike_threshold=settings.trend_spike_threshold,
                cumulative_window=CUMULATIVE_WINDOW,
                cumulative_threshold=settings.trend_cumulative_threshold,
            )
            logger.debug("service_initialized", service="TrendAnalyzer")
        return self._trend_analyzer

    @property
    def scenario_corpus(self):
        if self._scenario_corpus is None:
            from casecast.engine.recommendations import load_corpus
            self._scenario_corpus = load_corpus()
            logger.debug("service_initialized", service="ScenarioCorpus")
        return self._scenario_corpus

    @property
    def realtime_analyzer(self):
        """Realtime insights pipeline."""
        if self._realtime_analyzer is None:
            from casecast.engine.realtime import RealtimeAnalyzer
            self._realtime_analyzer = RealtimeAnalyzer(
                store=self.trend_store,
                corpus=self.scenario_corpus,
                detector=self.signal_detector,
                trends=self.trend_analyzer,
            )
            logger.debug("service_initialized", service="RealtimeAnalyzer")
        return self._realtime_analyzer

    @property
    def scenario_registry(self):
        if self._scenario_registry is None:
            from casecast.scenarios.definitions import default_registry
            self._scenario_registry = default_registry
            logger.debug("service_initialized", service="ScenarioVariableRegistry")
        return self._scenario_registry

    @property
    def twin_estimator(self):
        if self._twin_estimator is None:
            from casecast.engine.twin import TwinEstimator
            self._twin_estimator = TwinEstimator(registry=self.scenario_registry)
            logger.debug("service_initialized", service="TwinEstimator")
        return self._twin_estimator

    @property
    def blend_orchestrator(self):
        """Heuristic twin scoring plus the optional LLM blend."""
        if self._blend_orchestrator is None:
            from casecast.engine.blend import BlendOrchestrator
            from casecast.services.resilience import GeneratorBreaker
            from casecast.services.twin_generator import LLMTwinGenerator
            generator = LLMTwinGenerator(registry=self.scenario_registry)
            self._blend_orchestrator = BlendOrchestrator(
                estimator=self.twin_estimator,
                generator=generator,
                breaker=GeneratorBreaker(
                    generator.name,
                    failure_threshold=settings.generator_failure_threshold,
                    recovery_timeout=settings.generator_recovery_seconds,
                ),
                enabled=settings.external_generator_enabled,
                timeout=settings.external_generator_timeout_seconds,
            )
            logger.debug("service_initialized", service="BlendOrchestrator")
        return self._blend_orchestrator

    @property
    def candidate_matcher(self):
        if self._candidate_matcher is None:
            from casecast.engine.matching import CandidateMatcher
            self._candidate_matcher = CandidateMatcher()
            logger.debug("service_initialized", service="CandidateMatcher")
        return self._candidate_matcher

    @property
    def compliance_scanner(self):
        if self._compliance_scanner is None:
            from casecast.engine.compliance import ComplianceScanner
            self._compliance_scanner = ComplianceScanner()
            logger.debug("service_initialized", service="ComplianceScanner")
        return self._compliance_scanner

    async def close(self) -> None:
        """Release the trend store if it was ever opened."""
        if self._trend_store is not None:
            await self._trend_store.close()
            self._trend_store = None
            self._realtime_analyzer = None


def build_trend_store(backend: str):
    """Instantiate the configured trend store backend."""
    from casecast.exceptions import ConfigurationError

    backend = backend.strip().lower()

    if backend == "memory":
        from casecast.store.trend_store import InMemoryTrendStore
        return InMemoryTrendStore()
    if backend == "file":
        from casecast.store.trend_store import JsonFileTrendStore
        return JsonFileTrendStore(settings.trend_store_path)
    if backend == "sql":
        from casecast.db.engine import get_session_factory
        from casecast.store.sql_store import SqlTrendStore
        return SqlTrendStore(get_session_factory())

    raise ConfigurationError(
        f"Unknown trend store backend: {backend}",
        details={"backend": backend, "supported": ["file", "memory", "sql"]},
    )


# ── Singleton ─────────────────────────────────────────────────────────

_registry: Optional[ServiceRegistry] = None


def get_services() -> ServiceRegistry:
    """Get the global service registry (singleton)."""
    global _registry
    if _registry is None:
        _registry = ServiceRegistry()
        logger.info("service_registry_created")
    return _registry
