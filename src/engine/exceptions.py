"""
Typed errors raised by the assessment engine.

Store-layer failures (connectivity, timeouts) are not wrapped here; they
propagate to the caller unchanged.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for user-visible engine failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(EngineError):
    """Raised when a session, question or user does not exist."""

    status_code = 404


class UnauthorizedError(EngineError):
    """Raised when a session belongs to another user."""

    status_code = 403


class ConflictError(EngineError):
    """Raised when a session is already finished or a username is taken."""

    status_code = 409


class ValidationError(EngineError):
    """Raised for malformed payloads (missing fields, unknown modes)."""

    status_code = 422
