"""
Unit tests for ScoringEngine.

Tests:
- Speed bonus decay and cap
- Streak multiplier growth and cap
- Per-answer score with its breakdown
- Session recomputation feeds each answer the streak before it
"""

import math

import pytest

from src.engine.models import QuestionResult
from src.engine.scoring import (
    MAX_SPEED_BONUS,
    MAX_STREAK_MULTIPLIER,
    ScoringEngine,
    calculate_speed_bonus,
    calculate_streak_multiplier,
)


@pytest.fixture
def engine():
    return ScoringEngine()


class TestSpeedBonus:
    def test_instant_answer_gets_full_bonus(self):
        assert calculate_speed_bonus(0) == pytest.approx(MAX_SPEED_BONUS)

    def test_decays_exponentially(self):
        assert calculate_speed_bonus(8000) == pytest.approx(0.3 * math.exp(-1))

    def test_monotonically_decreasing(self):
        bonuses = [calculate_speed_bonus(t) for t in (0, 1000, 5000, 12000, 30000)]
        assert bonuses == sorted(bonuses, reverse=True)

    def test_missing_time_counts_as_fifteen_seconds(self):
        assert calculate_speed_bonus(None) == pytest.approx(calculate_speed_bonus(15000))


class TestStreakMultiplier:
    @pytest.mark.parametrize("streak,expected", [(0, 0.0), (1, 0.1), (3, 0.3), (5, 0.5), (12, 0.5)])
    def test_grows_and_caps(self, streak, expected):
        assert calculate_streak_multiplier(streak) == pytest.approx(expected)

    def test_never_exceeds_cap(self):
        assert calculate_streak_multiplier(1000) == MAX_STREAK_MULTIPLIER


class TestCalculateScore:
    def test_worked_example(self, engine):
        """difficulty 4, 1s, streak 3: round(400 * (1 + 0.2647 + 0.3)) = 626."""
        breakdown = engine.calculate_score_detailed(True, 4, 1000, 3)

        assert breakdown.speed_bonus == pytest.approx(0.2647, abs=1e-4)
        assert breakdown.streak_multiplier == pytest.approx(0.3)
        assert breakdown.score == 626

    def test_incorrect_scores_zero(self, engine):
        assert engine.calculate_score(False, 6, 100, 10) == 0

    def test_scales_with_difficulty(self, engine):
        easy = engine.calculate_score(True, 1, 2000, 0)
        hard = engine.calculate_score(True, 5, 2000, 0)
        assert hard > easy

    def test_bounded_by_max_bonuses(self, engine):
        for difficulty in range(1, 7):
            score = engine.calculate_score(True, difficulty, 0, 50)
            assert score <= round(100 * difficulty * 1.8)


class TestScoreSession:
    def test_streak_before_answer_is_used(self, engine):
        results = [
            QuestionResult(question_id=f"q{i}", correct=True, category="general", difficulty=2, time_ms=0)
            for i in range(3)
        ]
        session = engine.score_session(results)

        assert [a.streak_multiplier for a in session.answers] == pytest.approx([0.0, 0.1, 0.2])
        assert session.max_streak == 3
        assert session.total == 260 + 280 + 300

    def test_wrong_answer_resets_streak(self, engine):
        results = [
            QuestionResult(question_id="a", correct=True, category="general", time_ms=0),
            QuestionResult(question_id="b", correct=False, category="general", time_ms=0),
            QuestionResult(question_id="c", correct=True, category="general", time_ms=0),
        ]
        session = engine.score_session(results)

        assert session.answers[2].streak_multiplier == 0.0
        assert session.max_streak == 1

    def test_empty_session(self, engine):
        session = engine.score_session([])
        assert session.total == 0
        assert session.max_streak == 0
