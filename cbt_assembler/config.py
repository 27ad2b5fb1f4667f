"""Configuration management for the CBT question assembly engine."""

from typing import List, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GROQ_MODELS = (
    "llama-3.3-70b-versatile,llama-3.1-8b-instant,mistral-saba-24b"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    env: str = "development"
    log_level: str = "INFO"

    # Question bank
    database_url: str = "sqlite:///./cbt_questions.db"
    bank_timeout_seconds: float = 10.0
    bank_overfetch_factor: int = 2

    # Primary provider (Google Gemini). Both keys feed the rotating key pool.
    gemini_api_key: Optional[str] = None
    gemini_api_key_2: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"

    # Secondary provider (Groq)
    groq_api_key: Optional[str] = None
    groq_models: str = DEFAULT_GROQ_MODELS  # Comma-separated list
    groq_reliable_model: str = "llama-3.3-70b-versatile"

    # Generation
    provider_timeout_seconds: float = 60.0
    max_concurrent_subjects: int = 4

    @field_validator(
        "provider_timeout_seconds", "bank_timeout_seconds", "max_concurrent_subjects"
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Timeouts and concurrency limits must be positive."""
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("bank_overfetch_factor")
    @classmethod
    def validate_overfetch(cls, v: int) -> int:
        """The bank must be asked for at least the requested count."""
        if v < 1:
            raise ValueError("bank_overfetch_factor must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_reliable_model(self) -> "Settings":
        """The reliable Groq model must belong to the model pool."""
        if self.groq_reliable_model not in self.groq_model_list:
            raise ValueError(
                f"groq_reliable_model '{self.groq_reliable_model}' must be one of "
                f"groq_models ({self.groq_models})"
            )
        return self

    @property
    def gemini_api_keys(self) -> List[str]:
        """Configured Gemini keys in rotation order, blanks removed."""
        return [k for k in (self.gemini_api_key, self.gemini_api_key_2) if k]

    @property
    def groq_model_list(self) -> List[str]:
        """Groq model identifiers parsed from the comma-separated setting."""
        return [m.strip() for m in self.groq_models.split(",") if m.strip()]


# Global settings instance, loaded on first use by get_settings()
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first call.

    Raises:
        ValidationError: If the environment holds invalid settings
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
