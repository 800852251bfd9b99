"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Quiz Attempt API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Database
    DATABASE_URL: str = "postgresql://localhost:5432/quiz_dev"
    DB_POOL_SIZE: int = 10  # Number of connections to maintain
    DB_POOL_MAX_OVERFLOW: int = 20  # Max extra connections when pool exhausted
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for available connection
    DB_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour
    DB_ECHO: bool = False

    # Identity (JWT issued by the identity provider)
    # IMPORTANT: JWT_SECRET_KEY MUST be set in .env file - no default for security
    JWT_SECRET_KEY: str = Field(..., description="JWT verification key (required)")
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = ""  # Empty disables audience verification
    JWT_USER_ID_CLAIM: str = "sub"
    JWT_DEPARTMENT_CLAIM: str = "department"
    ADMIN_ROLE: str = "quiz-admin"

    # Service-to-service calls (e.g. the personalization service)
    INTERNAL_API_TOKEN: str = Field(
        default="",
        repr=False,
        description="Expected X-Internal-Token for /internal routes (empty disables them)",
    )

    # Question generation collaborator
    QUIZ_AI_BASE_URL: str = "http://localhost:8000"
    QUIZ_AI_TOKEN: str = Field(
        default="",
        repr=False,
        description="Internal token sent as X-Internal-Token (leave empty to disable)",
    )
    QUIZ_AI_TIMEOUT_SECONDS: float = Field(
        default=600.0,
        gt=0,
        description="Read timeout for generation requests (LLM calls are slow)",
    )
    QUIZ_AI_CONNECT_TIMEOUT_SECONDS: float = 30.0
    QUIZ_LANGUAGE: str = "ko"
    QUIZ_QUESTION_COUNT: int = Field(default=10, ge=1, le=50)
    QUIZ_MAX_OPTIONS: int = Field(default=4, ge=2, le=10)

    # Placeholder questions are used only when generation fails AND this is on.
    # Off by default: a failed generation leaves no attempt behind.
    QUIZ_GENERATION_FALLBACK_ENABLED: bool = False
    QUIZ_PLACEHOLDER_QUESTION_COUNT: int = Field(default=5, ge=1, le=50)

    # Expiry policy for submissions after the time limit.
    # False: accept, grade normally, flag time_limit_exceeded.
    # True: reject with 409 ATTEMPT_EXPIRED.
    QUIZ_REJECT_EXPIRED_SUBMISSIONS: bool = False
    QUIZ_SUBMIT_GRACE_SECONDS: int = Field(
        default=5,
        ge=0,
        description="Seconds after expiry still treated as on-time (network latency)",
    )

    # Dashboard statistics
    STATS_PASS_THRESHOLD: int = 80  # Fixed cross-education pass line
    STATS_DEFAULT_PERIOD_DAYS: int = 30
    STATS_UNKNOWN_DEPARTMENT: str = "Other"

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    # Prometheus metrics endpoint
    PROMETHEUS_METRICS_ENABLED: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_stats_config(self) -> Self:
        """Validate dashboard statistics settings at startup."""
        if not 0 <= self.STATS_PASS_THRESHOLD <= 100:
            raise ValueError(
                f"STATS_PASS_THRESHOLD must be within 0-100, got {self.STATS_PASS_THRESHOLD}"
            )
        if self.STATS_DEFAULT_PERIOD_DAYS <= 0:
            raise ValueError(
                "STATS_DEFAULT_PERIOD_DAYS must be positive, "
                f"got {self.STATS_DEFAULT_PERIOD_DAYS}"
            )
        return self

    @model_validator(mode="after")
    def validate_production_database(self) -> Self:
        """Refuse to boot production against the development default database."""
        if self.ENV == "production" and "localhost" in self.DATABASE_URL:
            raise ValueError(
                "DATABASE_URL points at localhost in production. "
                "Set DATABASE_URL to the production database."
            )
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
