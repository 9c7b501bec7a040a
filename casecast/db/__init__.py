"""SQLAlchemy engine, session factory and ORM models for the SQL trend store."""
