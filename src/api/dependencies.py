"""
FastAPI dependencies wiring the engine to the SQL stores.

Tests override these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException

from config import get_settings
from src.db.database import SessionLocal
from src.db.repositories import SqlUnitOfWork
from src.db.seen_store import SqlSeenQuestionStore
from src.engine.session_orchestrator import SessionOrchestrator
from src.users.service import UserService


@lru_cache(maxsize=1)
def get_orchestrator() -> SessionOrchestrator:
    """Process-wide orchestrator (it holds no per-request state)."""
    return SessionOrchestrator.from_settings(
        lambda: SqlUnitOfWork(SessionLocal),
        SqlSeenQuestionStore(SessionLocal),
        get_settings(),
    )


@lru_cache(maxsize=1)
def get_user_service() -> UserService:
    settings = get_settings()
    return UserService(
        SessionLocal,
        supported_languages=settings.supported_languages,
        max_attempts=settings.max_registration_attempts,
    )


def get_user_id(x_user: str | None = Header(default=None)) -> str:
    """Caller identity from the ``x-user`` header."""
    if not x_user:
        raise HTTPException(status_code=401, detail="Missing x-user header")
    return x_user
