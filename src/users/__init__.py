"""Users: registration and profiles."""

from src.users.service import UserService, normalize_username, validate_username

__all__ = ["UserService", "normalize_username", "validate_username"]
