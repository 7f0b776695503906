"""Application-wide configuration powered by pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEV_SITE_URL = "http://localhost:4321"
PRODUCTION_SITE_URL = "https://mini-games.pages.dev"


class Settings(BaseSettings):
    """Runtime settings loaded from environment or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # OPENROUTER is the legacy variable name still set on some deployments.
    openrouter_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "OPENROUTER", "openrouter_api_key"),
    )
    openrouter_base_url: str = Field(default=DEFAULT_BASE_URL, alias="OPENROUTER_BASE_URL")
    openrouter_default_model: str = Field(
        default="openai/gpt-4o-mini", alias="OPENROUTER_DEFAULT_MODEL"
    )
    request_timeout_ms: int | None = Field(default=15_000, alias="OPENROUTER_TIMEOUT_MS")
    default_temperature: float | None = Field(
        default=0.7, alias="OPENROUTER_DEFAULT_TEMPERATURE"
    )
    default_max_tokens: int | None = Field(default=512, alias="OPENROUTER_DEFAULT_MAX_TOKENS")

    public_site_url: str | None = Field(default=None, alias="PUBLIC_SITE_URL")
    cf_pages_url: str | None = Field(default=None, alias="CF_PAGES_URL")

    @property
    def site_url(self) -> str:
        """Public URL of the app, sent upstream as the HTTP referer."""

        if self.public_site_url:
            return self.public_site_url
        if self.cf_pages_url:
            return self.cf_pages_url
        return DEV_SITE_URL if self.environment == "development" else PRODUCTION_SITE_URL


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
