"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Cineby", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    cineby_base_url: HttpUrl = Field(
        default="https://www.cineby.app", alias="CINEBY_BASE_URL"
    )
    build_id_ttl_seconds: int = Field(default=3_600, alias="BUILD_ID_TTL", ge=60)
    request_timeout_seconds: float = Field(
        default=10.0, alias="REQUEST_TIMEOUT", gt=0, le=120
    )
    catalog_page_size: int = Field(
        default=20, alias="CATALOG_PAGE_SIZE", ge=1, le=100
    )

    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="USER_AGENT")
    accept_language: str = Field(
        default="en-US,en;q=0.9", alias="ACCEPT_LANGUAGE"
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        if value is None:
            return "INFO"
        level = str(value).strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return level

    @property
    def base_url(self) -> str:
        """Return the upstream origin without a trailing slash."""

        return str(self.cineby_base_url).rstrip("/")

    def upstream_headers(self) -> dict[str, str]:
        """Browser-like headers; the upstream rejects default client signatures."""

        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": self.accept_language,
            "Referer": f"{self.base_url}/",
        }

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
