"""
Configuration settings for the trivia assessment service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///./trivia.db",
        description="SQLAlchemy connection string (PostgreSQL in production)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8100,
        description="API server port",
    )

    # ========================================
    # Content Pool
    # ========================================
    base_language: str = Field(
        default="en",
        description="Fallback language when the requested one has no questions",
    )
    supported_languages: list[str] = Field(
        default=["en", "ru", "es"],
        description="Locales users may register with and request questions in",
    )
    categories: list[str] = Field(
        default=[
            "general",
            "science",
            "history",
            "geography",
            "tech",
            "movies",
            "music",
            "sports",
            "literature",
            "nature",
            "popculture",
            "logic",
            "math",
        ],
        description="Known question categories",
    )

    # ========================================
    # Question Selection
    # ========================================
    question_fetch_multiplier: int = Field(
        default=5,
        description="Fetch this many times the batch size as candidates",
    )
    max_difficulty_range_expansion: int = Field(
        default=3,
        description="Maximum widening rounds when the pool is sparse",
    )
    default_batch_size: int = Field(
        default=10,
        description="Questions per batch when the client does not ask for a size",
    )
    max_batch_size: int = Field(
        default=50,
        description="Upper bound on questions per batch",
    )

    # ========================================
    # Seen-set retention
    # ========================================
    seen_questions_ttl_seconds: int = Field(
        default=30 * 24 * 60 * 60,
        description="Rolling retention of a user's seen questions (from last write)",
    )

    # ========================================
    # Registration
    # ========================================
    max_registration_attempts: int = Field(
        default=5,
        description="Username collision retries before giving up",
    )

    def get_selection_config(self) -> dict[str, int | str]:
        """Get question selection configuration as a dictionary."""
        return {
            "base_language": self.base_language,
            "fetch_multiplier": self.question_fetch_multiplier,
            "max_expansion": self.max_difficulty_range_expansion,
        }

    def is_supported_language(self, lang: str) -> bool:
        """Check if a locale is one the content pool is translated into."""
        return lang in self.supported_languages


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
