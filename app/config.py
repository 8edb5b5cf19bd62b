"""Central configuration for the chat service.

Values come from environment variables and an optional .env file, exposed as a
typed Settings object (Pydantic BaseSettings) that is passed into the app and
service at construction time.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables once for the whole app
load_dotenv(find_dotenv())

APP_TITLE = "Maizic Chatbot API"
APP_VERSION = "1.0.0"

_FALSY = {"0", "false", "no", "off"}


class ConfigurationError(RuntimeError):
    """Raised when the process cannot start with the current configuration."""


def _split_csv(raw: Optional[str]) -> List[str]:
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


class Settings(BaseSettings):
    """Runtime settings for the API and services."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Completion capability
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None
    LLM_MODEL: str = "gpt-4"
    LLM_FALLBACK_MODELS: str = "gpt-3.5-turbo"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 300
    LLM_TIMEOUT_SECONDS: float = 30.0
    LLM_MAX_RETRIES: int = 0

    # Persona and canned replies
    SYSTEM_PROMPT: Optional[str] = None
    INTENT_REPLIES_PATH: Optional[str] = None
    ENABLE_INTENTS: bool = True

    # Process
    ENV: str = "development"
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # HTTP policy
    CORS_ORIGINS: str = ""
    RATE_LIMIT_PER_MIN: int = 60
    ENABLE_DEBUG_ENDPOINT: Optional[bool] = None
    # Proxies whose X-Forwarded-For is trusted; the limiter keys on the resolved client
    FORWARDED_ALLOW_IPS: str = "127.0.0.1"

    @field_validator("OPENAI_BASE_URL")
    @classmethod
    def _sanitize_base_url(cls, v: Optional[str]) -> Optional[str]:
        # Normalise so the SDK doesn't see a scheme-less URL
        use = (v or "").strip()
        if not use:
            return None
        if not (use.startswith("http://") or use.startswith("https://")):
            use = "https://" + use
        return use

    @field_validator("ENABLE_DEBUG_ENDPOINT", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("ENV")
    @classmethod
    def _normalize_env(cls, v: str) -> str:
        return (v or "development").strip().lower()

    @property
    def is_production(self) -> bool:
        return self.ENV in {"production", "prod"}

    @property
    def has_credentials(self) -> bool:
        return bool(self.OPENAI_API_KEY.strip())

    @property
    def fallback_models(self) -> List[str]:
        return [m for m in _split_csv(self.LLM_FALLBACK_MODELS) if m != self.LLM_MODEL]

    @property
    def model_chain(self) -> List[str]:
        """Primary model followed by fallbacks, de-duplicated in order."""
        chain: List[str] = []
        for m in [self.LLM_MODEL.strip(), *self.fallback_models]:
            if m and m not in chain:
                chain.append(m)
        return chain

    @property
    def cors_origins(self) -> List[str]:
        # Permissive during development, explicit allow-list in production
        if not self.is_production:
            return ["*"]
        return _split_csv(self.CORS_ORIGINS)

    @property
    def debug_enabled(self) -> bool:
        if self.ENABLE_DEBUG_ENDPOINT is not None:
            return bool(self.ENABLE_DEBUG_ENDPOINT)
        return not self.is_production


def validate_settings(settings: Settings) -> Settings:
    """Fail fast on configuration the service cannot run without."""
    if not settings.has_credentials:
        raise ConfigurationError(
            "OPENAI_API_KEY is not set. Add it to the environment or .env before starting."
        )
    if not settings.model_chain:
        raise ConfigurationError("LLM_MODEL must name at least one model.")
    if settings.LLM_MAX_TOKENS <= 0:
        raise ConfigurationError("LLM_MAX_TOKENS must be positive.")
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def env_flag(value: Optional[str], default: bool = False) -> bool:
    """Interpret loose truthy/falsy strings used by launch scripts."""
    if value is None:
        return default
    return value.strip().lower() not in _FALSY
