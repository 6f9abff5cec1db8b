from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8787
    APP_NAME: str = "Dota 2 Coach"
    APP_ENV: Literal["development", "production"] = "production"

    # LLM providers. Auto-selection prefers Anthropic > OpenAI > OpenRouter
    # unless LLM_PROVIDER names one whose key is present.
    ANTHROPIC_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    OPENROUTER_API_KEY: str | None = None
    LLM_PROVIDER: str | None = None
    LLM_MODEL: str | None = None
    LLM_BASE_URL: str | None = None
    LLM_TIMEOUT_SECONDS: float = 60.0
    OPENROUTER_REFERER: str = "http://localhost"
    OPENROUTER_TITLE: str = "dota2-interactive-agent"

    # Web search
    SERPAPI_API_KEY: str | None = None
    SEARCH_RESULT_LIMIT: int = 5

    # Storage
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_PROFILE_KEY: str = "dota:profile:"
    REDIS_NOTES_KEY: str = "dota:notes"
    NOTES_MAX_ENTRIES: int = 1000

    # Single implicit user
    DEFAULT_USER_ID: str = "1"

    @field_validator("LLM_PROVIDER", mode="before")
    @classmethod
    def normalize_provider(cls, value):
        # Unknown names are kept; provider selection skips them.
        if value is None:
            return None
        value = str(value).strip().lower()
        return value or None


settings = Settings()
