"""
CaseCast — Heuristic Risk & Matching Intelligence Engine.

Architecture:
    casecast/
    ├── api/             # FastAPI routers (thin HTTP layer)
    ├── middleware/      # Request context, error handling
    ├── schemas/         # Pydantic request/response models
    ├── rules/           # Declarative rule tables + generic pattern evaluator
    ├── engine/          # Detection, trends, twin scoring, matching, compliance, blending
    ├── scenarios/       # Typed scenario variable registry + per-category heuristics
    ├── store/           # Trend persistence (file, memory, SQL)
    └── services/        # External generator (LLM gateway), resilience, corpus, registry

Module Boundaries:
    - Detectors, scorers and the variable registry are pure functions
    - TrendStore is the ONLY owner of persisted trend state
    - BlendOrchestrator is the ONLY caller of the external generator
    - Every score is clamped at the computation boundary

Data Flow:
    Messages → SignalDetector → TrendStore → TrendAnalyzer → Alerts
    Case summary + signals → CandidateMatcher → ranked MatchResults
    Twin inputs → TwinEstimator → BlendOrchestrator (+ optional LLM) → TwinAnalysis

Version: 1.0.0
"""

__version__ = "1.0.0"
