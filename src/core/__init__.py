"""Core: cross-cutting setup shared by the entry points."""

from src.core.logging_setup import configure_logging

__all__ = ["configure_logging"]
