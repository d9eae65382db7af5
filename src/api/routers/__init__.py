"""API routers for the trivia assessment service."""

from src.api.routers import (
    quiz_router,
    session_router,
    user_router,
)

__all__ = [
    "quiz_router",
    "session_router",
    "user_router",
]
