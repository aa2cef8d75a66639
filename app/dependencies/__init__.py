"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_auth_flow,
    get_playback_service,
    get_spotify_api_client,
    get_spotify_oauth_client,
    get_spotify_proxy,
    get_spotify_token_service,
    get_token_store,
)
from .config import SettingsDependency, get_app_settings
from .guards import BotSecretDependency, require_bot_secret

__all__ = [
    "BotSecretDependency",
    "SettingsDependency",
    "get_app_settings",
    "get_auth_flow",
    "get_playback_service",
    "get_spotify_api_client",
    "get_spotify_oauth_client",
    "get_spotify_proxy",
    "get_spotify_token_service",
    "get_token_store",
    "require_bot_secret",
]
