"""
Domain models for the adaptive assessment engine.

Plain dataclasses; the SQLAlchemy tables in ``src.db.models`` are mapped
into these at the store boundary so nothing downstream re-parses JSON.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from src.engine.exceptions import ValidationError
from src.engine.math_utils import parse_difficulty

DEFAULT_MU = 3.0
MIN_SKILL = 1.0
MAX_SKILL = 6.0


class SessionMode(str, Enum):
    """Game modes a session can be started in."""

    RUN = "run"
    ENDLESS = "endless"
    DAILY = "daily"

    @classmethod
    def parse(cls, value: str | SessionMode) -> SessionMode:
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValidationError(f"Unknown session mode '{value}' (expected one of: {allowed})")


class SessionStatus(str, Enum):
    """Observable session states. Created is collapsed into Active."""

    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class Question:
    """A published multiple-choice question in one language."""

    id: str
    prompt: str
    options: tuple[str, ...]
    correct_index: int
    difficulty: int
    category: str
    lang: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "options": list(self.options),
            "correct_idx": self.correct_index,
            "difficulty": self.difficulty,
            "category": self.category,
            "lang": self.lang,
        }


@dataclass
class StreakState:
    """Persisted consecutive-correct counters for a user."""

    current: int = 0
    best: int = 0


@dataclass
class Session:
    """One assessment session."""

    id: str
    user_id: str
    mode: SessionMode
    started_at: datetime | None = None
    ended_at: datetime | None = None
    score: int = 0
    max_streak: int = 0

    @property
    def status(self) -> SessionStatus:
        return SessionStatus.FINISHED if self.ended_at is not None else SessionStatus.ACTIVE

    @property
    def is_finished(self) -> bool:
        return self.status is SessionStatus.FINISHED


@dataclass
class AnswerRecord:
    """Latest outcome of a user on one question."""

    question_id: str
    correct: bool
    answered_at: datetime | None = None


@dataclass(frozen=True)
class QuestionResult:
    """Outcome of one presented question, submitted when a session finishes."""

    question_id: str
    correct: bool
    category: str
    difficulty: int = 3
    selected_index: int | None = None
    time_ms: int | None = None

    # Accepts the client's camelCase keys as well as snake_case
    _ALIASES = {
        "question_id": ("questionId", "question_id"),
        "correct": ("correct",),
        "category": ("category",),
        "difficulty": ("difficulty",),
        "selected_index": ("selectedIdx", "selectedIndex", "selected_index"),
        "time_ms": ("timeMs", "time_ms"),
    }
    _REQUIRED = ("question_id", "correct", "category")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> QuestionResult:
        """Build a result from a submitted mapping, raising ValidationError if malformed."""
        if not isinstance(payload, Mapping):
            raise ValidationError(f"Question result must be an object, got {type(payload).__name__}")

        values: dict[str, Any] = {}
        for name, keys in cls._ALIASES.items():
            for key in keys:
                if key in payload and payload[key] is not None:
                    values[name] = payload[key]
                    break

        missing = [name for name in cls._REQUIRED if name not in values]
        if missing:
            raise ValidationError(f"Question result missing required fields: {', '.join(missing)}")
        if not isinstance(values["correct"], bool):
            raise ValidationError("Question result field 'correct' must be a boolean")

        time_ms = values.get("time_ms")
        if time_ms is not None:
            try:
                time_ms = max(0, int(time_ms))
            except (TypeError, ValueError):
                raise ValidationError(f"Question result field 'timeMs' is not a number: {time_ms!r}")

        selected = values.get("selected_index")
        if selected is not None:
            try:
                selected = int(selected)
            except (TypeError, ValueError):
                raise ValidationError(f"Question result field 'selectedIdx' is not a number: {selected!r}")

        return cls(
            question_id=str(values["question_id"]),
            correct=values["correct"],
            category=str(values["category"]),
            difficulty=parse_difficulty(values.get("difficulty")),
            selected_index=selected,
            time_ms=time_ms,
        )


@dataclass
class FinishResult:
    """What a finished session changed."""

    new_mu: float
    score: int
    max_streak: int
    best_streak: int
    topic_weights: dict[str, float] = field(default_factory=dict)


@dataclass
class UserProfile:
    """Public profile with the user's current rating and streak."""

    id: str
    username: str
    locale: str
    mu: float
    current_streak: int
    best_streak: int
    last_login_at: datetime | None = None
