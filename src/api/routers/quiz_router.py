"""
Quiz router for question batches.

Endpoints for:
- Next adaptive batch for the calling user
- Question counts per category
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger
from pydantic import BaseModel, Field

from config import get_settings
from src.api.dependencies import get_orchestrator, get_user_id
from src.engine.exceptions import ValidationError
from src.engine.session_orchestrator import SessionOrchestrator

router = APIRouter()
settings = get_settings()


# ========================================
# Response Models
# ========================================


class QuestionResponse(BaseModel):
    """Response model for a question in a batch."""

    id: str
    prompt: str
    options: List[str]
    correct_idx: int
    difficulty: int
    category: str
    lang: str


class QuestionBatchResponse(BaseModel):
    """Response model for a batch of questions."""

    items: List[QuestionResponse]


class CategoryCountsResponse(BaseModel):
    """Response model for per-category pool sizes."""

    counts: Dict[str, int] = Field(default_factory=dict)


# ========================================
# Endpoints
# ========================================


@router.get(
    "/next",
    response_model=QuestionBatchResponse,
    summary="Next adaptive question batch",
)
def next_questions(
    lang: str = Query(settings.base_language, description="Requested language"),
    cat: str = Query("general", description="Question category"),
    n: int = Query(settings.default_batch_size, ge=1, le=settings.max_batch_size),
    recent_perf: float = Query(0.5, alias="recentPerf", description="Recent accuracy (0-1)"),
    user_id: str = Depends(get_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> QuestionBatchResponse:
    """
    Select questions matched to the caller's skill.

    Unseen questions come first, ordered by ascending difficulty. Fewer than
    ``n`` items means the pool is exhausted for this category/language.
    """
    if not settings.is_supported_language(lang):
        raise ValidationError(f"Unsupported language: {lang}")
    if cat not in settings.categories:
        raise ValidationError(f"Unknown category: {cat}")

    questions = orchestrator.get_next_questions(user_id, lang, cat, n, recent_perf)
    logger.debug(f"/quiz/next served {len(questions)} questions to {user_id}")
    return QuestionBatchResponse(items=[QuestionResponse(**q.to_dict()) for q in questions])


@router.get(
    "/categories",
    response_model=CategoryCountsResponse,
    summary="Question counts per category",
)
def category_counts(
    lang: Optional[str] = Query(None, description="Only count questions translated into this language"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    return {"counts": orchestrator.get_category_counts(lang)}
