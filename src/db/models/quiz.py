"""
Question pool models.

Implements:
- QuestionBase: language-neutral question metadata (category, difficulty)
- QuestionTranslation: prompt and options in one language

The pool is populated by the external generation job (or the
``questions import`` CLI command) and is read-only to the engine.

Options JSON structure:
    ["Option A", "Option B", "Option C", "Option D"]
with ``correct_idx`` pointing into it.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.utils import utcnow

from .base import Base


class QuestionBase(Base):
    """Language-neutral question record."""

    __tablename__ = "question_base"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="general")
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    region: Mapped[str] = mapped_column(String(32), nullable=False, default="global")

    # Provenance from the generation pipeline
    source_urls: Mapped[list[str] | None] = mapped_column(JSON, default=list)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    translations: Mapped[list[QuestionTranslation]] = relationship(
        back_populates="base", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_question_base_category_difficulty", "category", "difficulty"),
        Index("idx_question_base_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<QuestionBase {self.id} {self.category} d={self.difficulty}>"


class QuestionTranslation(Base):
    """Prompt and options of a question in one language."""

    __tablename__ = "question_translation"

    base_id: Mapped[str] = mapped_column(
        ForeignKey("question_base.id", ondelete="CASCADE"), primary_key=True
    )
    lang: Mapped[str] = mapped_column(String(8), primary_key=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    correct_idx: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    base: Mapped[QuestionBase] = relationship(back_populates="translations")

    __table_args__ = (Index("idx_question_translation_lang", "lang"),)

    def __repr__(self) -> str:
        return f"<QuestionTranslation {self.base_id} lang={self.lang}>"
