"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import JsonFileTokenStore, SpotifyApiClient, SpotifyOAuthClient, TokenStore
from app.core.config import get_settings
from app.services import (
    PlaybackService,
    SpotifyAuthFlow,
    SpotifyProxy,
    SpotifyTokenService,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the shared refresh-token store."""
    return JsonFileTokenStore(_settings().storage.token_store_path)


@lru_cache()
def get_spotify_oauth_client() -> SpotifyOAuthClient:
    """Create a singleton Spotify accounts client."""
    settings = _settings()
    return SpotifyOAuthClient(settings.spotify, settings.oauth)


@lru_cache()
def get_spotify_api_client() -> SpotifyApiClient:
    """Create a singleton Spotify Web API client."""
    return SpotifyApiClient(_settings().spotify)


@lru_cache()
def get_spotify_token_service() -> SpotifyTokenService:
    """Provide the access-token exchanger backed by the token store."""
    return SpotifyTokenService(
        store=get_token_store(),
        oauth_client=get_spotify_oauth_client(),
        cache_seconds=_settings().storage.access_token_cache_seconds,
    )


@lru_cache()
def get_spotify_proxy() -> SpotifyProxy:
    return SpotifyProxy(get_spotify_token_service(), get_spotify_api_client())


def get_auth_flow() -> SpotifyAuthFlow:
    """Build the login/callback orchestrator."""
    return SpotifyAuthFlow(
        oauth_client=get_spotify_oauth_client(),
        token_service=get_spotify_token_service(),
        api_client=get_spotify_api_client(),
        store=get_token_store(),
    )


def get_playback_service() -> PlaybackService:
    """Build the playback command service."""
    return PlaybackService(
        get_spotify_proxy(), transfer_delay=_settings().resume_transfer_delay
    )


__all__ = [
    "get_auth_flow",
    "get_playback_service",
    "get_spotify_api_client",
    "get_spotify_oauth_client",
    "get_spotify_proxy",
    "get_spotify_token_service",
    "get_token_store",
]
