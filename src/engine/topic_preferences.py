"""
Topic preference adaptation.

After each session the per-category affinity weight moves by +0.2 when the
user did well in that category (accuracy > 70%), by -0.2 when they did
poorly (< 30%), and stays put otherwise. Weights live in [-5, 5].
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from src.engine.math_utils import clamp
from src.engine.models import QuestionResult
from src.engine.stores import PreferenceStore

MIN_TOPIC_WEIGHT = -5.0
MAX_TOPIC_WEIGHT = 5.0
TOPIC_WEIGHT_DELTA_HIGH = 0.2
TOPIC_WEIGHT_DELTA_LOW = -0.2
TOPIC_ACCURACY_THRESHOLD_HIGH = 0.7
TOPIC_ACCURACY_THRESHOLD_LOW = 0.3


@dataclass
class CategoryAccuracy:
    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


def category_accuracy(results: Iterable[QuestionResult]) -> dict[str, CategoryAccuracy]:
    """Per-category correct/total counts, in first-seen category order."""
    stats: dict[str, CategoryAccuracy] = {}
    for result in results:
        entry = stats.setdefault(result.category, CategoryAccuracy())
        entry.total += 1
        if result.correct:
            entry.correct += 1
    return stats


def weight_delta(accuracy: float) -> float:
    if accuracy > TOPIC_ACCURACY_THRESHOLD_HIGH:
        return TOPIC_WEIGHT_DELTA_HIGH
    if accuracy < TOPIC_ACCURACY_THRESHOLD_LOW:
        return TOPIC_WEIGHT_DELTA_LOW
    return 0.0


def adjust_weight(weight: float, accuracy: float) -> float:
    return clamp(weight + weight_delta(accuracy), MIN_TOPIC_WEIGHT, MAX_TOPIC_WEIGHT)


class TopicPreferenceAdapter:
    """Applies one weight update per distinct category of a session."""

    def __init__(self, store: PreferenceStore):
        self.store = store

    def apply(self, user_id: str, results: Iterable[QuestionResult]) -> dict[str, float]:
        """
        Update the user's topic weights from a session's results.

        Returns:
            New weight per touched category
        """
        stats = category_accuracy(results)
        if not stats:
            return {}

        current = self.store.get_many(user_id, list(stats))
        updated: dict[str, float] = {}
        for category, entry in stats.items():
            new_weight = adjust_weight(current.get(category, 0.0), entry.accuracy)
            self.store.upsert(user_id, category, new_weight)
            updated[category] = new_weight
        return updated
