"""
Question selection with progressive range widening.

Strategy:
1. Fetch up to n * fetch_multiplier candidates in the planned difficulty band
2. Fall back to the base language when the requested one has nothing
3. Widen the band (by 1, 2, 3...) while fewer than n unique candidates exist
4. Sort by difficulty so the batch ramps up
5. Serve questions the user has not seen first, then top up with seen ones

A batch shorter than n is a valid outcome: it means the pool is exhausted
for this user/category/language.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from src.engine.difficulty_planner import (
    DifficultyRange,
    calculate_difficulty_range,
    widen_difficulty_range,
)
from src.engine.models import Question
from src.engine.stores import QuestionStore, SeenQuestionStore


def partition_by_seen(
    questions: Iterable[Question], seen_ids: set[str]
) -> tuple[list[Question], list[Question]]:
    """Split questions into (unseen, seen), preserving order within each."""
    unseen: list[Question] = []
    seen: list[Question] = []
    for question in questions:
        if question.id in seen_ids:
            seen.append(question)
        else:
            unseen.append(question)
    return unseen, seen


class QuestionSelector:
    """Builds a batch of questions for one user."""

    def __init__(
        self,
        question_store: QuestionStore,
        seen_store: SeenQuestionStore,
        base_language: str = "en",
        fetch_multiplier: int = 5,
        max_expansion: int = 3,
    ):
        self.question_store = question_store
        self.seen_store = seen_store
        self.base_language = base_language
        self.fetch_multiplier = max(1, fetch_multiplier)
        self.max_expansion = max(0, max_expansion)

    def select(
        self,
        user_id: str,
        lang: str,
        category: str,
        n: int,
        recent_perf: float,
        mu: float,
    ) -> list[Question]:
        """
        Select up to ``n`` questions ordered by ascending difficulty.

        Args:
            user_id: User the batch is for (seen-set owner)
            lang: Requested language
            category: Question category
            n: Batch size
            recent_perf: Recent accuracy ratio (0-1)
            mu: Current skill estimate

        Returns:
            At most n questions, unseen ones first
        """
        if n <= 0:
            return []

        difficulty_range = calculate_difficulty_range(mu, recent_perf)
        fetch_limit = n * self.fetch_multiplier
        logger.debug(
            f"Selecting {n} {lang}/{category} questions for {user_id} "
            f"(mu={mu:.2f}, recent_perf={recent_perf:.2f}, range={difficulty_range.to_dict()})"
        )

        candidates: dict[str, Question] = {}
        self._merge(candidates, self._fetch(lang, category, difficulty_range, fetch_limit))

        expansion = 1
        while len(candidates) < n and expansion <= self.max_expansion:
            wider = widen_difficulty_range(difficulty_range, expansion)
            logger.debug(f"Only {len(candidates)}/{n} candidates, widening range to {wider.to_dict()}")
            self._merge(candidates, self._fetch(lang, category, wider, fetch_limit))
            expansion += 1

        # Stable sort keeps the store's newest-first order within a difficulty
        ordered = sorted(candidates.values(), key=lambda q: q.difficulty)

        seen_ids = self.seen_store.get(user_id)
        unseen, seen = partition_by_seen(ordered, seen_ids)

        selected = unseen[:n]
        if len(selected) < n:
            selected.extend(seen[: n - len(selected)])

        if len(selected) < n:
            logger.warning(
                f"Question pool exhausted for {lang}/{category}: "
                f"returning {len(selected)}/{n} for user {user_id}"
            )
        logger.info(
            f"Returning {len(selected)} questions ({len(unseen)} unseen, {len(seen)} seen candidates)"
        )
        return selected

    def _fetch(
        self, lang: str, category: str, difficulty_range: DifficultyRange, limit: int
    ) -> list[Question]:
        results = self.question_store.find_questions(
            lang, category, difficulty_range.min, difficulty_range.max, limit
        )
        if not results and lang != self.base_language:
            logger.debug(f"No {lang} questions in {difficulty_range.to_dict()}, falling back to {self.base_language}")
            results = self.question_store.find_questions(
                self.base_language, category, difficulty_range.min, difficulty_range.max, limit
            )
        return results

    @staticmethod
    def _merge(candidates: dict[str, Question], results: Iterable[Question]) -> None:
        for question in results:
            candidates.setdefault(question.id, question)
