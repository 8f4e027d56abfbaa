"""
Configuration management for the grading engine.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The AI key is optional: without it the subjective grader runs on the
    deterministic similarity fallback only.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # AI Grading Provider Configuration
    # ==========================================================================
    ai_api_key: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible grading provider",
    )

    ai_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Base URL for the grading provider",
    )

    ai_model: str = Field(
        default="llama-3.1-70b-versatile",
        description="Model to use for short answer grading",
    )

    ai_temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Temperature for LLM generation (0.0 = deterministic)",
    )

    ai_max_tokens: int = Field(
        default=1000,
        ge=50,
        le=8192,
        description="Maximum tokens in a grading response",
    )

    ai_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Per-request timeout enforced by the AI client",
    )

    ai_max_retries: int = Field(
        default=2,
        ge=0,
        le=5,
        description="Retries for rate limit, connection and server errors",
    )

    ai_json_mode: bool = Field(
        default=True,
        description="Ask the provider for a JSON object response",
    )

    ai_max_concurrent_calls: int = Field(
        default=2,
        ge=1,
        le=32,
        description="Maximum simultaneous grading calls against the provider",
    )

    # ==========================================================================
    # Grading Configuration
    # ==========================================================================
    batch_max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Worker threads used to grade a batch of responses",
    )

    numeric_tolerance: float = Field(
        default=0.001,
        ge=0.0,
        description="Absolute tolerance for numerical answers",
    )

    plagiarism_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Cosine similarity above which an answer is flagged",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: str = Field(
        default="WARNING",
        description="Root log level used by the CLI",
    )

    @field_validator("ai_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URL doesn't have trailing slash."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def ai_enabled(self) -> bool:
        """Whether an AI provider can be constructed from these settings."""
        return bool(self.ai_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
