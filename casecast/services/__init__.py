"""
Service layer.

Components:
- llm_gateway: Anthropic Messages API client (httpx)
- resilience: per-generator breaker owned by the blend orchestrator
- twin_generator: external twin analysis generator (prompt, parse, validate)
- registry: lazily built, process-wide engine and store singletons
"""
