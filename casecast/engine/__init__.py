"""
CaseCast Heuristic Engine — deterministic scoring and detection.

Components:
- detector: rule-based risk signal detection and risk score
- trends: spike / cumulative / case-context alert derivation
- twin: digital twin success estimator (fixed factors + scenario variables)
- matching: candidate-to-case weighted matching with rank bonus
- compliance: privacy / safety / legal / bias / policy scanner
- blend: heuristic + optional external generator blending policy
- planning: timeline, next actions, follow-up questions, action plan
- flow: investigation flow simulation
- recommendations: similar-scenario corpus ranking
- evidence: evidence artifact triage
- negotiation: negotiation coaching plan (tone, scripts, warnings)
- report_draft: investigation report draft and Markdown rendering
- realtime: orchestrates one realtime insights pass
"""
