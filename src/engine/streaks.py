"""
Streak tracking: consecutive-correct counters per user.

Within a session the tracker counts answers as they come. A session
boundary always breaks the streak: at finish the persisted ``current``
resets to 0 while ``best`` only ever grows.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.engine.models import QuestionResult, StreakState


class StreakTracker:
    """Running current/best streak over an ordered sequence of answers."""

    def __init__(self, current: int = 0, best: int = 0):
        self.current = max(0, current)
        self.best = max(0, best, self.current)

    def record(self, correct: bool) -> int:
        """
        Record one answer.

        Returns:
            The streak *before* this answer (what scoring multiplies by)
        """
        before = self.current
        self.current = self.current + 1 if correct else 0
        self.best = max(self.best, self.current)
        return before

    @classmethod
    def max_streak_of(cls, results: Iterable[QuestionResult]) -> int:
        """Recompute a session's max streak from its ordered results."""
        tracker = cls()
        for result in results:
            tracker.record(result.correct)
        return tracker.best

    def state(self) -> StreakState:
        return StreakState(current=self.current, best=self.best)


def close_session(persisted: StreakState, session_max_streak: int) -> StreakState:
    """Fold a finished session into the persisted streak state."""
    return StreakState(
        current=0,
        best=max(persisted.best, max(0, session_max_streak)),
    )
