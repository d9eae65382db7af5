"""
Session router: start, finish and list assessment sessions.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from src.api.dependencies import get_orchestrator, get_user_id
from src.engine.models import SessionMode
from src.engine.session_orchestrator import SessionOrchestrator

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class StartSessionRequest(BaseModel):
    mode: SessionMode = Field(..., description="Session mode: run, endless, daily")


class StartSessionResponse(BaseModel):
    sessionId: str


class QuestionResultPayload(BaseModel):
    """One answered question, in the order it was presented."""

    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(..., alias="questionId")
    selected_idx: Optional[int] = Field(None, alias="selectedIdx")
    time_ms: Optional[int] = Field(None, alias="timeMs", ge=0)
    difficulty: int = 3
    category: str
    correct: bool

    def to_result_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "selectedIdx": self.selected_idx,
            "timeMs": self.time_ms,
            "difficulty": self.difficulty,
            "category": self.category,
            "correct": self.correct,
        }


class FinishSessionRequest(BaseModel):
    sessionId: str
    questions: List[QuestionResultPayload] = Field(default_factory=list)
    finalScore: Optional[int] = Field(None, ge=0)
    maxStreak: Optional[int] = Field(None, ge=0)


class FinishSessionResponse(BaseModel):
    ok: bool
    score: int
    maxStreak: int
    bestStreak: int
    newMu: float
    topicWeights: dict[str, float] = Field(default_factory=dict)


class SessionSummary(BaseModel):
    id: str
    mode: str
    status: str
    started_at: Optional[datetime]
    ended_at: Optional[datetime]
    score: int
    max_streak: int


# ========================================
# Endpoints
# ========================================


@router.post("/start", response_model=StartSessionResponse, summary="Start a session")
def start_session(
    request: StartSessionRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> StartSessionResponse:
    session_id = orchestrator.start_session(user_id, request.mode)
    return StartSessionResponse(sessionId=session_id)


@router.post("/finish", response_model=FinishSessionResponse, summary="Finish a session")
def finish_session(
    request: FinishSessionRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> FinishSessionResponse:
    """
    Apply a finished session's results.

    Results must be in presentation order: the skill update folds them
    sequentially. Fails with 404/403/409 for unknown, foreign or already
    finished sessions.
    """
    result = orchestrator.finish_session(
        request.sessionId,
        user_id,
        [q.to_result_dict() for q in request.questions],
        final_score=request.finalScore,
        max_streak=request.maxStreak,
    )
    return FinishSessionResponse(
        ok=True,
        score=result.score,
        maxStreak=result.max_streak,
        bestStreak=result.best_streak,
        newMu=result.new_mu,
        topicWeights=result.topic_weights,
    )


@router.get("/history", response_model=List[SessionSummary], summary="Recent sessions")
def session_history(
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> List[SessionSummary]:
    return [
        SessionSummary(
            id=s.id,
            mode=s.mode.value,
            status=s.status.value,
            started_at=s.started_at,
            ended_at=s.ended_at,
            score=s.score,
            max_streak=s.max_streak,
        )
        for s in orchestrator.get_session_history(user_id, limit)
    ]
