"""
Skill rating: turns an answer outcome and response latency into a new mu.

mu is a scalar proficiency estimate on the same 1-6 scale as question
difficulty. Each answer moves it by a fixed step that depends on
correctness and on how quickly the user answered.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from src.engine.math_utils import clamp, round_half_up
from src.engine.models import MAX_SKILL, MIN_SKILL, QuestionResult

FAST_THRESHOLD_MS = 5000
NORMAL_THRESHOLD_MS = 12000


class SpeedBucket(str, Enum):
    FAST = "fast"
    NORMAL = "normal"
    SLOW = "slow"


SPEED_DELTAS: dict[bool, dict[SpeedBucket, float]] = {
    True: {SpeedBucket.FAST: 0.30, SpeedBucket.NORMAL: 0.20, SpeedBucket.SLOW: 0.10},
    False: {SpeedBucket.FAST: -0.30, SpeedBucket.NORMAL: -0.20, SpeedBucket.SLOW: -0.10},
}


def get_speed_bucket(time_ms: float | None) -> SpeedBucket:
    """Determine the speed bucket for a response time. Missing time counts as normal."""
    if time_ms is None:
        return SpeedBucket.NORMAL
    if time_ms <= FAST_THRESHOLD_MS:
        return SpeedBucket.FAST
    if time_ms <= NORMAL_THRESHOLD_MS:
        return SpeedBucket.NORMAL
    return SpeedBucket.SLOW


def calculate_skill_delta(correct: bool, speed_bucket: SpeedBucket) -> float:
    return SPEED_DELTAS[bool(correct)][speed_bucket]


def clamp_skill(mu: float) -> float:
    return clamp(mu, MIN_SKILL, MAX_SKILL)


def update_mu(mu: float, correct: bool, time_ms: float | None = None) -> float:
    """
    Update a user's mu for one answer.

    Args:
        mu: Current skill estimate
        correct: Whether the answer was correct
        time_ms: Response time in milliseconds (optional)

    Returns:
        New mu, clamped to [1.0, 6.0]
    """
    delta = calculate_skill_delta(correct, get_speed_bucket(time_ms))
    return clamp_skill(mu + delta)


def target_difficulty(mu: float) -> int:
    """Question difficulty that best matches a skill estimate."""
    return int(clamp(round_half_up(mu), 1, 6))


def fold_results(mu: float, results: Iterable[QuestionResult]) -> float:
    """
    Apply update_mu over a session's results in presentation order.

    Each delta compounds on the previous result (and clamping happens at
    every step), so the order of ``results`` changes the outcome.
    """
    updated = clamp_skill(mu)
    for result in results:
        updated = update_mu(updated, result.correct, result.time_ms)
    return updated
