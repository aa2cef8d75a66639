"""Expose constructed client wrappers."""

from .spotify_api import SpotifyApiClient
from .spotify_auth import SpotifyOAuthClient, TokenGrant
from .token_store import InMemoryTokenStore, JsonFileTokenStore, TokenStore

__all__ = [
    "InMemoryTokenStore",
    "JsonFileTokenStore",
    "SpotifyApiClient",
    "SpotifyOAuthClient",
    "TokenGrant",
    "TokenStore",
]
