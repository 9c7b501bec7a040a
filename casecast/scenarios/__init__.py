"""
Scenario variables.

Components:
- registry: typed variable definitions (select / boolean / number), category
  registration, defaults, sanitize-on-read coercion, prompt formatting
- definitions: the built-in affair / corporate / missing / insurance categories
- heuristics: per-category score effects consumed by the twin estimator
"""
