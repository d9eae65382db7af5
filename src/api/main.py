"""
FastAPI application for the trivia assessment service.

Provides REST API for:
- User registration and profiles
- Adaptive question batches
- Session start/finish (skill, streak and topic updates)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from src.core.logging_setup import configure_logging
from src.db.database import get_engine, init_db
from src.engine.exceptions import EngineError

settings = get_settings()


def _check_database_health() -> tuple[str, str | None]:
    """
    Check database connectivity.

    Returns:
        Tuple of (status, error_message). Status is "ok" or "error".
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", None
    except SQLAlchemyError as e:
        return "error", str(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    configure_logging(settings.log_level, settings.log_file)
    logger.info("Starting trivia assessment service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    logger.info("Shutting down trivia assessment service...")


app = FastAPI(
    title="Trivia Assessment Engine",
    description="""
    Adaptive trivia quiz backend.

    ## Flow

    ```
    GET  /quiz/next       -> batch matched to the user's skill (unseen first)
    POST /session/start   -> session id
    POST /session/finish  -> skill, streak, topic weights and seen-set updated
    ```
    """,
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Map typed engine errors onto HTTP status codes."""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "message": exc.message},
    )


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "trivia-engine",
        "version": "0.1.0",
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with a real database round trip."""
    db_status, db_error = _check_database_health()

    result: dict[str, Any] = {
        "ok": db_status == "ok",
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": db_status},
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from src.api.routers import (
    quiz_router,
    session_router,
    user_router,
)

app.include_router(user_router.router, tags=["Users"])
app.include_router(quiz_router.router, prefix="/quiz", tags=["Quiz"])
app.include_router(session_router.router, prefix="/session", tags=["Sessions"])
