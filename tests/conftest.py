"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
in-memory fakes of the engine's stores for unit tests, and a throwaway
SQLite database for integration tests.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Point the module-level engine at a scratch database before config is imported
TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="trivia-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_DIR / 'trivia-test.db'}"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.db.database import init_db  # noqa: E402
from tests.fakes import (  # noqa: E402
    InMemoryQuestionStore,
    InMemorySeenStore,
    InMemoryState,
    InMemoryUnitOfWork,
    make_question,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def question_store():
    """A small English pool covering every difficulty in two categories."""
    questions = [make_question(f"gen-{d}-{i}", d) for d in range(1, 7) for i in range(3)]
    questions += [make_question(f"sci-{d}", d, category="science") for d in range(1, 7)]
    return InMemoryQuestionStore(questions)


@pytest.fixture
def seen_store():
    return InMemorySeenStore()


@pytest.fixture
def state():
    """Shared committed state with two registered users."""
    return InMemoryState(users=["u1", "u2"])


@pytest.fixture
def orchestrator(state, question_store, seen_store):
    from src.engine.session_orchestrator import SessionOrchestrator

    return SessionOrchestrator(lambda: InMemoryUnitOfWork(state, question_store), seen_store)


@pytest.fixture
def sample_results():
    """A five-question session as the client submits it."""
    return [
        {"questionId": "gen-3-0", "correct": True, "category": "general", "difficulty": 3, "timeMs": 2000},
        {"questionId": "gen-3-1", "correct": True, "category": "general", "difficulty": 3, "timeMs": 8000},
        {"questionId": "gen-4-0", "correct": False, "category": "general", "difficulty": 4, "timeMs": 15000},
        {"questionId": "sci-3", "correct": True, "category": "science", "difficulty": 3, "timeMs": 4000},
        {"questionId": "sci-4", "correct": True, "category": "science", "difficulty": 4, "timeMs": 6000},
    ]


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return sessionmaker(bind=sqlite_engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def fk_session_factory():
    """Like ``session_factory`` but with SQLite foreign key enforcement on."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    engine.dispose()
