"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app and the operator scripts
share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _split_csv(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    return tuple(item.strip() for item in value.split(",") if item.strip())


class _Settings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")


class SpotifySettings(_Settings):
    """Credentials and endpoints for the Spotify accounts service and Web API."""

    client_id: str = Field(..., validation_alias="SPOTIFY_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="SPOTIFY_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="SPOTIFY_REDIRECT_URI")
    accounts_base_url: str = Field(
        "https://accounts.spotify.com",
        validation_alias="SPOTIFY_ACCOUNTS_BASE_URL",
    )
    api_base_url: str = Field(
        "https://api.spotify.com/v1",
        validation_alias="SPOTIFY_API_BASE_URL",
    )
    request_timeout: float = Field(
        10.0,
        validation_alias="SPOTIFY_REQUEST_TIMEOUT",
        description="Upper bound in seconds for every outbound Spotify call.",
    )


class OAuthSettings(_Settings):
    """OAuth flow configuration."""

    state_cookie_name: str = Field(
        "spotify_auth_state", validation_alias="OAUTH_STATE_COOKIE"
    )
    state_ttl_seconds: int = Field(1200, validation_alias="OAUTH_STATE_TTL")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "user-read-playback-state",
            "user-modify-playback-state",
            "user-read-currently-playing",
            "playlist-read-private",
            "playlist-read-collaborative",
            "user-read-recently-played",
            "user-read-private",
            "user-read-email",
        ),
        validation_alias="OAUTH_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return _split_csv(value)


class BotSettings(_Settings):
    """Shared-secret configuration for the chat-bot caller."""

    shared_secret: Optional[str] = Field(
        None,
        validation_alias="BOT_SHARED_SECRET",
        description="When set, /spotify/* requests must present this value.",
    )


class StorageSettings(_Settings):
    """Refresh-token persistence and access-token reuse."""

    token_store_path: str = Field(
        "data/refreshTokens.json", validation_alias="TOKEN_STORE_PATH"
    )
    access_token_cache_seconds: int = Field(
        0,
        validation_alias="ACCESS_TOKEN_CACHE_SECONDS",
        description=(
            "Reuse minted access tokens for up to this many seconds. "
            "Zero refreshes on every proxied call."
        ),
    )


class AppSettings(_Settings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    base_url: str = Field(
        "http://localhost:3000",
        validation_alias="BASE_URL",
        description="Public URL of this service, shown to integrators.",
    )
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3000, validation_alias="PORT")
    cors_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="ZOHO_CORS_ORIGIN",
        description="Allowed origins. Empty or '*' allows every origin.",
    )
    resume_transfer_delay: float = Field(
        0.5,
        validation_alias="RESUME_TRANSFER_DELAY",
        description="Seconds to wait after transferring playback before resuming.",
    )
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    bot: BotSettings = Field(default_factory=BotSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        return _split_csv(value)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "BotSettings",
    "OAuthSettings",
    "SpotifySettings",
    "StorageSettings",
    "get_settings",
]
