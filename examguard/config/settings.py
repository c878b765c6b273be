"""Application settings using Pydantic BaseSettings."""

import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from examguard.config.constants import FailurePolicy

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ExamGuard Proctoring"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}, got '{v}'")
        return upper

    @model_validator(mode="after")
    def validate_timeouts_positive(self) -> "Settings":
        for field_name in (
            "face_verification_timeout",
            "periodic_check_timeout",
            "liveness_timeout",
            "examiner_timeout",
            "periodic_check_interval",
            "warning_display_seconds",
        ):
            value = getattr(self, field_name)
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got {value}")
        return self

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        if self.warning_threshold < 1:
            raise ValueError(f"warning_threshold must be at least 1, got {self.warning_threshold}")
        if self.api_max_attempts < 1:
            raise ValueError(f"api_max_attempts must be at least 1, got {self.api_max_attempts}")
        return self

    @model_validator(mode="after")
    def warn_wildcard_origins(self) -> "Settings":
        if self.allowed_origins == ["*"]:
            logging.getLogger(__name__).warning(
                "allowed_origins is set to ['*']; consider restricting in production"
            )
        return self

    # Anthropic
    anthropic_api_key: str | None = None

    # Vision model (face match, periodic check, liveness)
    vision_model: str = "claude-sonnet-4-5"
    vision_max_tokens: int = 512
    vision_temperature: float = 0.0

    # Examiner model (live session conversation)
    examiner_model: str = "claude-sonnet-4-5"
    examiner_max_tokens: int = 1024
    examiner_temperature: float = 0.3

    # Timeouts
    face_verification_timeout: float = 15.0
    periodic_check_timeout: float = 10.0
    liveness_timeout: float = 10.0
    examiner_timeout: float = 30.0

    # Rate-limit retries
    api_call_delay: float = 1.0
    api_max_attempts: int = 5

    # Reply parsing: extra attempts after an unreadable reply
    reply_parse_retries: int = 1

    # Verification policy
    failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN
    match_confidence_floor: int = 60
    liveness_confidence_floor: int = 70
    min_avatar_length: int = 100

    # Face verification screen
    face_warmup_delay: float = 2.0
    fault_advance_delay: float = 1.0
    success_advance_delay: float = 1.5
    skip_after_failures: int = 2
    face_capture_quality: float = 0.2

    # Violation tracker
    periodic_check_interval: float = 30.0
    warning_threshold: int = 3
    warning_display_seconds: float = 3.0
    periodic_capture_quality: float = 0.3

    # Live session
    session_ttl_seconds: int = 7200
    exam_question_count: int = 3
    exam_opening_delay: float = 3.0
    practice_opening_delay: float = 1.0

    # CORS
    allowed_origins: list[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
