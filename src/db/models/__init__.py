# SQLAlchemy models
from .base import Base
from .learner import (
    RunSession,
    SeenQuestion,
    StreakStateRow,
    TopicPref,
    User,
    UserAnswer,
    UserSkill,
)
from .quiz import (
    QuestionBase,
    QuestionTranslation,
)

__all__ = [
    # Base
    "Base",
    # Question pool
    "QuestionBase",
    "QuestionTranslation",
    # Learner state
    "User",
    "UserSkill",
    "StreakStateRow",
    "TopicPref",
    "RunSession",
    "UserAnswer",
    "SeenQuestion",
]
