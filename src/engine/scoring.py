"""
Scoring for answered questions.

score = round(100 * difficulty * (1 + speed_bonus + streak_multiplier))

- speed_bonus decays exponentially with response time, capped at 0.3
- streak_multiplier grows 0.1 per answer of the streak before this one,
  capped at 0.5
- incorrect answers score 0
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from src.engine.math_utils import parse_difficulty, round_half_up
from src.engine.models import QuestionResult
from src.engine.streaks import StreakTracker

BASE_SCORE_MULTIPLIER = 100
MAX_SPEED_BONUS = 0.3
SPEED_BONUS_DECAY_SECONDS = 8.0
MAX_STREAK_MULTIPLIER = 0.5
STREAK_INCREMENT_PER_LEVEL = 0.1

# Missing response times are scored as a slow-ish 15s answer
MISSING_TIME_MS = 15000


@dataclass
class ScoreBreakdown:
    """Score for one answer with its bonus components."""

    score: int
    speed_bonus: float
    streak_multiplier: float


@dataclass
class SessionScore:
    """Server-side recomputation of a session's totals."""

    total: int
    max_streak: int
    answers: list[ScoreBreakdown] = field(default_factory=list)


def calculate_speed_bonus(time_ms: float | None) -> float:
    """Speed bonus fraction, monotonically decreasing in elapsed time."""
    if time_ms is None:
        time_ms = MISSING_TIME_MS
    seconds = max(0.0, time_ms) / 1000
    bonus = MAX_SPEED_BONUS * math.exp(-seconds / SPEED_BONUS_DECAY_SECONDS)
    return min(MAX_SPEED_BONUS, bonus)


def calculate_streak_multiplier(current_streak: int) -> float:
    multiplier = STREAK_INCREMENT_PER_LEVEL * max(0, current_streak)
    return min(MAX_STREAK_MULTIPLIER, multiplier)


class ScoringEngine:
    """Calculates per-answer and per-session scores."""

    def calculate_score(
        self,
        correct: bool,
        difficulty: int,
        time_ms: float | None,
        streak_before_answer: int,
    ) -> int:
        return self.calculate_score_detailed(
            correct, difficulty, time_ms, streak_before_answer
        ).score

    def calculate_score_detailed(
        self,
        correct: bool,
        difficulty: int,
        time_ms: float | None,
        streak_before_answer: int,
    ) -> ScoreBreakdown:
        """
        Calculate a score with its breakdown.

        Args:
            correct: Whether the answer was correct
            difficulty: Question difficulty (clamped to 1-6)
            time_ms: Response time in milliseconds (optional)
            streak_before_answer: Consecutive correct answers before this one

        Returns:
            ScoreBreakdown (all zero for an incorrect answer)
        """
        if not correct:
            return ScoreBreakdown(score=0, speed_bonus=0.0, streak_multiplier=0.0)

        base = BASE_SCORE_MULTIPLIER * parse_difficulty(difficulty)
        speed_bonus = calculate_speed_bonus(time_ms)
        streak_multiplier = calculate_streak_multiplier(streak_before_answer)
        score = round_half_up(base * (1 + speed_bonus + streak_multiplier))

        return ScoreBreakdown(
            score=score,
            speed_bonus=speed_bonus,
            streak_multiplier=streak_multiplier,
        )

    def score_session(self, results: Iterable[QuestionResult]) -> SessionScore:
        """Score an ordered session, feeding each answer the streak before it."""
        tracker = StreakTracker()
        answers = []
        for result in results:
            streak_before = tracker.record(result.correct)
            answers.append(
                self.calculate_score_detailed(
                    result.correct, result.difficulty, result.time_ms, streak_before
                )
            )
        return SessionScore(
            total=sum(a.score for a in answers),
            max_streak=tracker.best,
            answers=answers,
        )
