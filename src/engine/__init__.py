"""
Engine: adaptive assessment core.

- skill_rating: mu update rule and target difficulty
- difficulty_planner: difficulty bands and widening
- question_selector: batch selection with seen-item prioritization
- scoring: time- and streak-sensitive points
- streaks: consecutive-correct tracking
- topic_preferences: per-category affinity weights
- session_orchestrator: session lifecycle
"""

from src.engine.difficulty_planner import (
    DifficultyRange,
    calculate_difficulty_range,
    widen_difficulty_range,
)
from src.engine.exceptions import (
    ConflictError,
    EngineError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from src.engine.models import (
    FinishResult,
    Question,
    QuestionResult,
    Session,
    SessionMode,
    SessionStatus,
    StreakState,
)
from src.engine.question_selector import QuestionSelector
from src.engine.scoring import ScoreBreakdown, ScoringEngine
from src.engine.session_orchestrator import SessionOrchestrator
from src.engine.skill_rating import fold_results, target_difficulty, update_mu
from src.engine.streaks import StreakTracker
from src.engine.topic_preferences import TopicPreferenceAdapter

__all__ = [
    # Rating & planning
    "update_mu",
    "fold_results",
    "target_difficulty",
    "DifficultyRange",
    "calculate_difficulty_range",
    "widen_difficulty_range",
    # Components
    "QuestionSelector",
    "ScoringEngine",
    "ScoreBreakdown",
    "StreakTracker",
    "TopicPreferenceAdapter",
    "SessionOrchestrator",
    # Models
    "Question",
    "QuestionResult",
    "Session",
    "SessionMode",
    "SessionStatus",
    "StreakState",
    "FinishResult",
    # Errors
    "EngineError",
    "NotFoundError",
    "UnauthorizedError",
    "ConflictError",
    "ValidationError",
]
