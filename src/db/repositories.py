"""
SQLAlchemy implementations of the engine's store interfaces.

Every repository works on a caller-owned ``Session``; ``SqlUnitOfWork``
owns that session and decides when it commits. Rows are mapped into the
engine's dataclasses here, so JSON columns are parsed exactly once.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, sessionmaker

from src.db.models import (
    QuestionBase,
    QuestionTranslation,
    RunSession,
    StreakStateRow,
    TopicPref,
    User,
    UserAnswer,
    UserSkill,
)
from src.db.utils import upsert, utcnow
from src.engine.math_utils import parse_difficulty
from src.engine.models import (
    DEFAULT_MU,
    AnswerRecord,
    Question,
    Session as AssessmentSession,
    SessionMode,
    StreakState,
)
from src.engine.skill_rating import clamp_skill


def _to_question(base: QuestionBase, translation: QuestionTranslation) -> Question:
    return Question(
        id=base.id,
        prompt=translation.prompt,
        options=tuple(translation.options or ()),
        correct_index=translation.correct_idx,
        difficulty=parse_difficulty(base.difficulty),
        category=base.category or "general",
        lang=translation.lang,
    )


def _to_session(row: RunSession) -> AssessmentSession:
    return AssessmentSession(
        id=row.id,
        user_id=row.user_id,
        mode=SessionMode(row.mode),
        started_at=row.started_at,
        ended_at=row.ended_at,
        score=row.score or 0,
        max_streak=row.max_streak or 0,
    )


class SqlQuestionStore:
    """Read access to the question pool (question_base + question_translation)."""

    def __init__(self, session: Session):
        self.session = session

    def find_questions(
        self,
        lang: str,
        category: str,
        min_difficulty: int,
        max_difficulty: int,
        limit: int,
    ) -> list[Question]:
        if limit <= 0:
            return []
        query = (
            select(QuestionBase, QuestionTranslation)
            .join(QuestionTranslation, QuestionTranslation.base_id == QuestionBase.id)
            .where(
                QuestionTranslation.lang == lang,
                QuestionBase.category == category,
                QuestionBase.difficulty.between(min_difficulty, max_difficulty),
            )
            .order_by(QuestionBase.created_at.desc(), QuestionBase.difficulty.asc(), QuestionBase.id)
            .limit(limit)
        )
        rows = self.session.execute(query).all()
        return [_to_question(base, translation) for base, translation in rows]

    def get_question(self, question_id: str, lang: str) -> Question | None:
        row = self.session.execute(
            select(QuestionBase, QuestionTranslation)
            .join(QuestionTranslation, QuestionTranslation.base_id == QuestionBase.id)
            .where(QuestionBase.id == question_id, QuestionTranslation.lang == lang)
        ).first()
        return _to_question(*row) if row else None

    def count_by_category(self, lang: str | None = None) -> dict[str, int]:
        query = select(QuestionBase.category, func.count(func.distinct(QuestionBase.id)))
        if lang:
            query = query.join(
                QuestionTranslation, QuestionTranslation.base_id == QuestionBase.id
            ).where(QuestionTranslation.lang == lang)
        query = query.group_by(QuestionBase.category).order_by(QuestionBase.category)
        return {category: count for category, count in self.session.execute(query).all()}

    def add_question(
        self,
        question_id: str | None,
        category: str,
        difficulty: int,
        translations: dict[str, dict],
        region: str = "global",
        source_urls: list[str] | None = None,
        verified: bool = False,
    ) -> str:
        """
        Add a question with its translations to the pool.

        Args:
            question_id: Base id (generated if None)
            category: Question category
            difficulty: 1-6 (clamped)
            translations: lang -> {"prompt", "options", "correct_idx"}

        Returns:
            The base question id
        """
        base = QuestionBase(
            id=question_id or str(uuid.uuid4()),
            category=category,
            difficulty=parse_difficulty(difficulty),
            region=region,
            source_urls=source_urls or [],
            verified=verified,
        )
        for lang, content in translations.items():
            base.translations.append(
                QuestionTranslation(
                    lang=lang,
                    prompt=content["prompt"],
                    options=list(content["options"]),
                    correct_idx=int(content["correct_idx"]),
                )
            )
        self.session.add(base)
        self.session.flush()
        return base.id


class SqlUserStore:
    def __init__(self, session: Session):
        self.session = session

    def exists(self, user_id: str) -> bool:
        return self.session.scalar(select(User.id).where(User.id == user_id)) is not None


class SqlProficiencyStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> float:
        mu = self.session.scalar(select(UserSkill.mu).where(UserSkill.user_id == user_id))
        return clamp_skill(mu) if mu is not None else DEFAULT_MU

    def set(self, user_id: str, mu: float) -> None:
        upsert(
            self.session,
            UserSkill,
            [{"user_id": user_id, "mu": clamp_skill(mu), "updated_at": utcnow()}],
            index_elements=["user_id"],
            update_fields=["mu", "updated_at"],
        )

    def initialize(self, user_id: str, initial_mu: float = DEFAULT_MU) -> None:
        upsert(
            self.session,
            UserSkill,
            [{"user_id": user_id, "mu": initial_mu, "updated_at": utcnow()}],
            index_elements=["user_id"],
            update_fields=[],
        )


class SqlStreakStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> StreakState:
        row = self.session.get(StreakStateRow, user_id)
        if row is None:
            return StreakState()
        return StreakState(current=row.current_streak, best=row.best_streak)

    def set(self, user_id: str, current: int, best: int) -> None:
        upsert(
            self.session,
            StreakStateRow,
            [
                {
                    "user_id": user_id,
                    "current_streak": max(0, current),
                    "best_streak": max(0, best),
                    "updated_at": utcnow(),
                }
            ],
            index_elements=["user_id"],
            update_fields=["current_streak", "best_streak", "updated_at"],
        )

    def initialize(self, user_id: str) -> None:
        upsert(
            self.session,
            StreakStateRow,
            [{"user_id": user_id, "current_streak": 0, "best_streak": 0, "updated_at": utcnow()}],
            index_elements=["user_id"],
            update_fields=[],
        )


class SqlPreferenceStore:
    def __init__(self, session: Session):
        self.session = session

    def get_many(self, user_id: str, categories: Sequence[str]) -> dict[str, float]:
        if not categories:
            return {}
        rows = self.session.execute(
            select(TopicPref.topic, TopicPref.weight).where(
                TopicPref.user_id == user_id, TopicPref.topic.in_(list(categories))
            )
        ).all()
        return {topic: weight for topic, weight in rows}

    def upsert(self, user_id: str, category: str, weight: float) -> None:
        upsert(
            self.session,
            TopicPref,
            [{"user_id": user_id, "topic": category, "weight": weight}],
            index_elements=["user_id", "topic"],
            update_fields=["weight"],
        )


class SqlSessionStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, user_id: str, mode: SessionMode) -> str:
        row = RunSession(id=str(uuid.uuid4()), user_id=user_id, mode=SessionMode(mode).value)
        self.session.add(row)
        self.session.flush()
        return row.id

    def get(self, session_id: str) -> AssessmentSession | None:
        row = self.session.get(RunSession, session_id)
        return _to_session(row) if row else None

    def finish(self, session_id: str, user_id: str, score: int, max_streak: int) -> bool:
        # Guarded on ended_at IS NULL so a concurrent finish cannot close it twice
        result = self.session.execute(
            update(RunSession)
            .where(
                RunSession.id == session_id,
                RunSession.user_id == user_id,
                RunSession.ended_at.is_(None),
            )
            .values(score=score, max_streak=max_streak, ended_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Session {session_id} was not active when finishing")
            return False
        return True

    def list_for_user(self, user_id: str, limit: int = 10) -> list[AssessmentSession]:
        rows = self.session.scalars(
            select(RunSession)
            .where(RunSession.user_id == user_id)
            .order_by(RunSession.started_at.desc())
            .limit(limit)
        ).all()
        return [_to_session(row) for row in rows]


class SqlAnswerHistoryStore:
    def __init__(self, session: Session):
        self.session = session

    def upsert(self, user_id: str, question_id: str, correct: bool) -> None:
        upsert(
            self.session,
            UserAnswer,
            [
                {
                    "user_id": user_id,
                    "question_id": question_id,
                    "correct": bool(correct),
                    "answered_at": utcnow(),
                }
            ],
            index_elements=["user_id", "question_id"],
            update_fields=["correct", "answered_at"],
        )

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[AnswerRecord]:
        query = (
            select(UserAnswer)
            .where(UserAnswer.user_id == user_id)
            .order_by(UserAnswer.answered_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return [
            AnswerRecord(question_id=row.question_id, correct=row.correct, answered_at=row.answered_at)
            for row in self.session.scalars(query).all()
        ]

    def has_answered(self, user_id: str, question_id: str) -> bool:
        return self.session.get(UserAnswer, (user_id, question_id)) is not None


class SqlUnitOfWork:
    """
    One database transaction spanning all relational stores.

    Usage:
        with SqlUnitOfWork(SessionLocal) as uow:
            uow.proficiency.set(user_id, mu)
            uow.commit()
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.session: Session | None = None

    def __enter__(self) -> SqlUnitOfWork:
        self.session = self.session_factory()
        self.users = SqlUserStore(self.session)
        self.questions = SqlQuestionStore(self.session)
        self.proficiency = SqlProficiencyStore(self.session)
        self.streaks = SqlStreakStore(self.session)
        self.preferences = SqlPreferenceStore(self.session)
        self.sessions = SqlSessionStore(self.session)
        self.answers = SqlAnswerHistoryStore(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            # Anything not explicitly committed is discarded
            self.rollback()
        finally:
            self.session.close()
            self.session = None

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
