"""Persistence: SQLAlchemy models and store implementations."""
