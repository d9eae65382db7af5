"""
Capability interfaces the engine consumes.

The engine never talks to a database directly. Reads have explicit
or-default semantics (mu 3.0, streak 0/0, weight 0.0, empty seen-set) so
call sites carry no fallback literals.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from src.engine.models import AnswerRecord, Question, Session, SessionMode, StreakState


class QuestionStore(Protocol):
    def find_questions(
        self,
        lang: str,
        category: str,
        min_difficulty: int,
        max_difficulty: int,
        limit: int,
    ) -> list[Question]:
        """Questions in a language/category/band, newest first, at most ``limit``."""
        ...

    def get_question(self, question_id: str, lang: str) -> Question | None: ...

    def count_by_category(self, lang: str | None = None) -> dict[str, int]: ...


class UserStore(Protocol):
    def exists(self, user_id: str) -> bool: ...


class ProficiencyStore(Protocol):
    def get(self, user_id: str) -> float:
        """Current mu, or the default 3.0 for users without a rating."""
        ...

    def set(self, user_id: str, mu: float) -> None: ...


class StreakStore(Protocol):
    def get(self, user_id: str) -> StreakState:
        """Current streak state, or 0/0."""
        ...

    def set(self, user_id: str, current: int, best: int) -> None: ...


class PreferenceStore(Protocol):
    def get_many(self, user_id: str, categories: Sequence[str]) -> dict[str, float]:
        """Weights for the categories that have a row (others are omitted)."""
        ...

    def upsert(self, user_id: str, category: str, weight: float) -> None: ...


class SeenQuestionStore(Protocol):
    def get(self, user_id: str) -> set[str]:
        """Unexpired seen question ids, or an empty set."""
        ...

    def add_all(self, user_id: str, question_ids: Iterable[str], ttl_seconds: int) -> None:
        """
        Atomically union ``question_ids`` into the user's seen-set.

        Refreshes the retention window of the whole set. Concurrent callers
        for the same user must not lose each other's members.
        """
        ...

    def purge_expired(self) -> int: ...


class SessionStore(Protocol):
    def create(self, user_id: str, mode: SessionMode) -> str: ...

    def get(self, session_id: str) -> Session | None: ...

    def finish(self, session_id: str, user_id: str, score: int, max_streak: int) -> bool:
        """Close an active session. Returns False if it was already finished."""
        ...

    def list_for_user(self, user_id: str, limit: int = 10) -> list[Session]: ...


class AnswerHistoryStore(Protocol):
    def upsert(self, user_id: str, question_id: str, correct: bool) -> None: ...

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[AnswerRecord]: ...

    def has_answered(self, user_id: str, question_id: str) -> bool: ...


class UnitOfWork(Protocol):
    """
    Transactional scope over the relational stores.

    Used as a context manager. Writes become visible only after
    ``commit()``; leaving the block without committing (or on an
    exception) rolls everything back.
    """

    users: UserStore
    questions: QuestionStore
    proficiency: ProficiencyStore
    streaks: StreakStore
    preferences: PreferenceStore
    sessions: SessionStore
    answers: AnswerHistoryStore

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(self, exc_type, exc, tb) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
