from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from src.db.models import Base

settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI serves sync routes from a threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.database_url,
    echo=settings.log_level == "DEBUG",
    **_engine_kwargs(settings.database_url),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_engine() -> Engine:
    """Get the database engine."""
    return engine


def init_db(bind: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized")


@contextmanager
def session_scope(factory: sessionmaker | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
