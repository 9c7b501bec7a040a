"""
Pydantic request/response models.

Components:
- common: shared severity enum and weighting law
- insights: realtime insights request/response (signals, alerts, plan, flow)
- trends: persisted trend snapshot
- twin: digital twin inputs, analysis and external payload schema
- matching: candidate profiles and match results
- compliance: segments, issues, metrics, report
- evidence: evidence artifact triage
- negotiation: coaching request and plan
- report: report draft request and sections
"""
