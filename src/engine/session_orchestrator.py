"""
Session orchestration: the lifecycle of one assessment session.

States: Active -> Finished (terminal). A session is active as soon as it
is created; ``finish_session`` is the only transition and a finished
session is never modified again.

Finishing a session:
1. Validate ownership/state and that the user is registered
2. Fold results through the skill rating in submitted order
3. Close the streak (current -> 0, best only grows)
4. Adapt topic preferences per category
5. Commit mu, streak, answer history, preferences and session totals together
6. Union the question ids into the user's seen-set (a failure here is logged;
   the session is already finished)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from loguru import logger

from src.engine.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from src.engine.models import FinishResult, Question, QuestionResult, Session, SessionMode
from src.engine.question_selector import QuestionSelector
from src.engine.scoring import ScoringEngine
from src.engine.skill_rating import fold_results
from src.engine.stores import SeenQuestionStore, UnitOfWork
from src.engine.streaks import close_session
from src.engine.topic_preferences import TopicPreferenceAdapter

DEFAULT_SEEN_TTL_SECONDS = 30 * 24 * 60 * 60


def normalize_results(results: Sequence[QuestionResult | Mapping[str, Any]]) -> list[QuestionResult]:
    """Parse submitted results, keeping their order."""
    if results is None:
        raise ValidationError("Session results are required")
    normalized = []
    for index, item in enumerate(results):
        if isinstance(item, QuestionResult):
            normalized.append(item)
            continue
        try:
            normalized.append(QuestionResult.from_payload(item))
        except ValidationError as e:
            raise ValidationError(f"Result #{index}: {e.message}") from e
    return normalized


class SessionOrchestrator:
    """
    Coordinates rating, selection, scoring, streaks and preferences.

    Holds no per-request state; everything lives behind the unit of work
    and the seen-set store.
    """

    def __init__(
        self,
        unit_of_work: Callable[[], UnitOfWork],
        seen_store: SeenQuestionStore,
        scoring: ScoringEngine | None = None,
        base_language: str = "en",
        fetch_multiplier: int = 5,
        max_expansion: int = 3,
        seen_ttl_seconds: int = DEFAULT_SEEN_TTL_SECONDS,
    ):
        self.unit_of_work = unit_of_work
        self.seen_store = seen_store
        self.scoring = scoring or ScoringEngine()
        self.base_language = base_language
        self.fetch_multiplier = fetch_multiplier
        self.max_expansion = max_expansion
        self.seen_ttl_seconds = seen_ttl_seconds

    @classmethod
    def from_settings(
        cls, unit_of_work: Callable[[], UnitOfWork], seen_store: SeenQuestionStore, settings: Any
    ) -> SessionOrchestrator:
        return cls(
            unit_of_work,
            seen_store,
            seen_ttl_seconds=settings.seen_questions_ttl_seconds,
            **settings.get_selection_config(),
        )

    # ========================================
    # Session lifecycle
    # ========================================

    def start_session(self, user_id: str, mode: str | SessionMode) -> str:
        session_mode = SessionMode.parse(mode)
        with self.unit_of_work() as uow:
            self._require_user(uow, user_id)
            session_id = uow.sessions.create(user_id, session_mode)
            uow.commit()
        logger.info(f"Started {session_mode.value} session {session_id} for user {user_id}")
        return session_id

    def get_next_questions(
        self,
        user_id: str,
        lang: str,
        category: str,
        n: int,
        recent_perf: float,
    ) -> list[Question]:
        """Select the next batch of questions for a user."""
        with self.unit_of_work() as uow:
            mu = uow.proficiency.get(user_id)
            selector = QuestionSelector(
                uow.questions,
                self.seen_store,
                base_language=self.base_language,
                fetch_multiplier=self.fetch_multiplier,
                max_expansion=self.max_expansion,
            )
            return selector.select(user_id, lang, category, n, recent_perf, mu)

    def finish_session(
        self,
        session_id: str,
        user_id: str,
        results: Sequence[QuestionResult | Mapping[str, Any]],
        final_score: int | None = None,
        max_streak: int | None = None,
    ) -> FinishResult:
        """
        Finish an active session and apply its outcomes.

        Args:
            session_id: Session to close
            user_id: Caller; must own the session
            results: Per-question outcomes in presentation order
            final_score: Client-tracked total (recomputed server-side if None)
            max_streak: Client-tracked max streak (recomputed if None)

        Returns:
            FinishResult with the new mu and session totals

        Raises:
            ValidationError: malformed results
            NotFoundError: unknown session or user
            UnauthorizedError: session belongs to another user
            ConflictError: session already finished
        """
        ordered = normalize_results(results)
        logger.info(
            f"Finishing session {session_id} for {user_id}: {len(ordered)} results, "
            f"score={final_score}, max_streak={max_streak}"
        )

        recomputed = self.scoring.score_session(ordered)
        session_score = recomputed.total if final_score is None else max(0, int(final_score))
        session_max_streak = recomputed.max_streak if max_streak is None else max(0, int(max_streak))
        if final_score is not None and session_score != recomputed.total:
            logger.debug(
                f"Session {session_id} submitted score {session_score} differs from recomputed {recomputed.total}"
            )

        with self.unit_of_work() as uow:
            session = self._load_active_session(uow, session_id, user_id)
            self._require_user(uow, user_id)

            current_mu = uow.proficiency.get(user_id)
            new_mu = fold_results(current_mu, ordered)

            new_streak = close_session(uow.streaks.get(user_id), session_max_streak)

            uow.proficiency.set(user_id, new_mu)
            uow.streaks.set(user_id, new_streak.current, new_streak.best)
            for result in ordered:
                uow.answers.upsert(user_id, result.question_id, result.correct)
            topic_weights = TopicPreferenceAdapter(uow.preferences).apply(user_id, ordered)
            if not uow.sessions.finish(session.id, user_id, session_score, session_max_streak):
                raise ConflictError(f"Session {session_id} already finished")

            uow.commit()

        question_ids = [r.question_id for r in ordered]
        if question_ids:
            try:
                self.seen_store.add_all(user_id, question_ids, self.seen_ttl_seconds)
            except Exception as e:
                logger.warning(f"Could not mark {len(question_ids)} questions seen for {user_id}: {e}")

        logger.info(
            f"Session {session_id} finished: mu {current_mu:.2f} -> {new_mu:.2f}, "
            f"best streak {new_streak.best}, {len(question_ids)} questions marked seen"
        )
        return FinishResult(
            new_mu=new_mu,
            score=session_score,
            max_streak=session_max_streak,
            best_streak=new_streak.best,
            topic_weights=topic_weights,
        )

    def get_session_history(self, user_id: str, limit: int = 10) -> list[Session]:
        with self.unit_of_work() as uow:
            return uow.sessions.list_for_user(user_id, limit)

    def get_category_counts(self, lang: str | None = None) -> dict[str, int]:
        with self.unit_of_work() as uow:
            return uow.questions.count_by_category(lang)

    @staticmethod
    def _require_user(uow: UnitOfWork, user_id: str) -> None:
        if not uow.users.exists(user_id):
            raise NotFoundError(f"User {user_id} not found")

    @staticmethod
    def _load_active_session(uow: UnitOfWork, session_id: str, user_id: str) -> Session:
        session = uow.sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        if session.user_id != user_id:
            raise UnauthorizedError("Session does not belong to user")
        if session.is_finished:
            raise ConflictError(f"Session {session_id} already finished")
        return session
