"""
Difficulty planning for question selection.

Maps a skill estimate and the user's recent accuracy onto an inclusive
band of question difficulties:

- Struggling (recent_perf < 0.4): target-2 .. target
- Excelling (recent_perf > 0.7): target .. target+2
- Balanced: target-1 .. target+1
"""

from __future__ import annotations

from dataclasses import dataclass

from src.engine.math_utils import clamp
from src.engine.skill_rating import target_difficulty

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 6

RECENT_PERF_THRESHOLD_LOW = 0.4
RECENT_PERF_THRESHOLD_HIGH = 0.7

# Offsets from the target difficulty (min, max)
DIFFICULTY_RANGE_STRUGGLING = (-2, 0)
DIFFICULTY_RANGE_EXCELLING = (0, 2)
DIFFICULTY_RANGE_BALANCED = (-1, 1)


@dataclass(frozen=True)
class DifficultyRange:
    """Inclusive difficulty band."""

    min: int
    max: int

    def contains(self, difficulty: int) -> bool:
        return self.min <= difficulty <= self.max

    def to_dict(self) -> dict[str, int]:
        return {"min": self.min, "max": self.max}


def _clamp_difficulty(value: int) -> int:
    return int(clamp(value, MIN_DIFFICULTY, MAX_DIFFICULTY))


def calculate_difficulty_range(mu: float, recent_perf: float) -> DifficultyRange:
    """
    Calculate the adaptive difficulty band.

    Args:
        mu: User skill estimate
        recent_perf: Recent accuracy ratio (0-1)

    Returns:
        DifficultyRange with 1 <= min <= max <= 6
    """
    target = target_difficulty(mu)

    if recent_perf < RECENT_PERF_THRESHOLD_LOW:
        low, high = DIFFICULTY_RANGE_STRUGGLING
    elif recent_perf > RECENT_PERF_THRESHOLD_HIGH:
        low, high = DIFFICULTY_RANGE_EXCELLING
    else:
        low, high = DIFFICULTY_RANGE_BALANCED

    return DifficultyRange(
        min=_clamp_difficulty(target + low),
        max=_clamp_difficulty(target + high),
    )


def widen_difficulty_range(difficulty_range: DifficultyRange, expansion: int) -> DifficultyRange:
    """Widen a band by ``expansion`` on both sides, staying within [1, 6]."""
    return DifficultyRange(
        min=max(MIN_DIFFICULTY, difficulty_range.min - expansion),
        max=min(MAX_DIFFICULTY, difficulty_range.max + expansion),
    )
