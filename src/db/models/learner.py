"""
Learner state models.

SQLAlchemy models for everything the engine tracks per user:
- Users and their rating (user_skill)
- Streak counters
- Topic preference weights
- Sessions (run_session) and answer history
- Seen-question set with rolling expiry
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.db.utils import utcnow
from src.engine.models import DEFAULT_MU

from .base import Base


class User(Base):
    """Registered (or guest) player."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    username_norm: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    locale: Mapped[str] = mapped_column(String(8), nullable=False, default="en")
    is_guest: Mapped[bool] = mapped_column(Boolean, default=False)
    last_login_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.username}>"


class UserSkill(Base):
    """Current mu per user. Only the rating engine writes here."""

    __tablename__ = "user_skill"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    mu: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_MU)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)


class StreakStateRow(Base):
    """Persisted streak counters per user."""

    __tablename__ = "streak_state"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)


class TopicPref(Base):
    """Topic affinity weight (-5..5), one row per (user, topic)."""

    __tablename__ = "topic_pref"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    topic: Mapped[str] = mapped_column(String(64), primary_key=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)


class RunSession(Base):
    """One assessment session. ended_at is set exactly once."""

    __tablename__ = "run_session"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    mode: Mapped[str] = mapped_column(String(16), nullable=False)
    started_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column()
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_run_session_user_started", "user_id", "started_at"),)

    def __repr__(self) -> str:
        return f"<RunSession {self.id} user={self.user_id} mode={self.mode} ended={self.ended_at}>"


class UserAnswer(Base):
    """Latest outcome per (user, question)."""

    __tablename__ = "user_answer"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    question_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    answered_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class SeenQuestion(Base):
    """
    Member of a user's seen-set.

    All of a user's rows share one expiry, refreshed on every write, so the
    set behaves like a single blob with a rolling TTL.
    """

    __tablename__ = "seen_question"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    question_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    seen_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)

    __table_args__ = (Index("idx_seen_question_expires", "expires_at"),)
