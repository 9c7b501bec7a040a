"""
Declarative detection rules.

Components:
- table: Rule / RuleTable (patterns compiled once, malformed regex is fatal)
- evaluator: generic pattern-rule evaluator shared by both detectors
- risk_rules: conversational risk signal table
- compliance_rules: privacy / safety / legal / bias / policy table
"""
