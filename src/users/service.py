"""
User registration and profiles.

Registration creates the user row together with its initial rating
(mu 3.0) and streak state (0/0) in one transaction, so a user never exists
without the defaults the engine reads. Credentials are out of scope here;
the caller identifies users by id.
"""

from __future__ import annotations

import re
import secrets
import uuid

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from src.db.database import session_scope
from src.db.models import User
from src.db.repositories import SqlProficiencyStore, SqlStreakStore
from src.engine.exceptions import ConflictError, NotFoundError, ValidationError
from src.engine.models import DEFAULT_MU, UserProfile

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 20
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def validate_username(username: str) -> bool:
    return (
        MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH
        and USERNAME_PATTERN.match(username) is not None
    )


def normalize_username(username: str) -> str:
    """Lowercased, trimmed form used for case-insensitive uniqueness."""
    return username.strip().lower()


class UserService:
    """Creates users and reads their profiles."""

    def __init__(
        self,
        session_factory: sessionmaker,
        supported_languages: list[str] | None = None,
        max_attempts: int = 5,
    ):
        self.session_factory = session_factory
        self.supported_languages = supported_languages or ["en"]
        self.max_attempts = max_attempts

    def create_user(self, username: str | None = None, locale: str = "en") -> tuple[str, str]:
        """
        Register a user (a guest when no username is given).

        Args:
            username: Requested username (optional)
            locale: Preferred language

        Returns:
            (user_id, username) - the username may carry a suffix if the
            requested one was taken

        Raises:
            ValidationError: invalid username or unsupported locale
            ConflictError: no unique username found within max_attempts
        """
        if locale not in self.supported_languages:
            raise ValidationError(f"Unsupported locale '{locale}'")
        if username is not None:
            username = username.strip()
            if not validate_username(username):
                raise ValidationError(
                    f"Username must be {MIN_USERNAME_LENGTH}-{MAX_USERNAME_LENGTH} "
                    "characters of letters, digits or underscore"
                )

        user_id = str(uuid.uuid4())
        is_guest = username is None
        candidate = username or f"Guest_{user_id[:8]}"

        for attempt in range(1, self.max_attempts + 1):
            try:
                with session_scope(self.session_factory) as session:
                    session.add(
                        User(
                            id=user_id,
                            username=candidate,
                            username_norm=normalize_username(candidate),
                            locale=locale,
                            is_guest=is_guest,
                        )
                    )
                    session.flush()
                    SqlProficiencyStore(session).initialize(user_id, DEFAULT_MU)
                    SqlStreakStore(session).initialize(user_id)
                logger.info(f"Registered user {user_id} as {candidate}")
                return user_id, candidate
            except IntegrityError:
                logger.debug(f"Username '{candidate}' taken (attempt {attempt}/{self.max_attempts})")
                base = (username or "Guest")[: MAX_USERNAME_LENGTH - 7]
                candidate = f"{base}_{secrets.token_hex(3)}"

        raise ConflictError("Could not generate unique username")

    def get_profile(self, user_id: str) -> UserProfile:
        with session_scope(self.session_factory) as session:
            user = session.scalar(select(User).where(User.id == user_id))
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            mu = SqlProficiencyStore(session).get(user_id)
            streak = SqlStreakStore(session).get(user_id)
            return UserProfile(
                id=user.id,
                username=user.username,
                locale=user.locale,
                mu=mu,
                current_streak=streak.current,
                best_streak=streak.best,
                last_login_at=user.last_login_at,
            )
