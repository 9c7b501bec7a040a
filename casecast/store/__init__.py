"""
Trend persistence.

Components:
- trend_store: TrendStore contract (single-writer lock, pruning, degraded mode),
  JSON file and in-memory backends
- sql_store: SQLAlchemy backend, one transaction per read-modify-write cycle
"""
