"""Service layer exports."""

from .auth_flow import AuthorizationResult, LoginRedirect, SpotifyAuthFlow
from .playback import PlaybackService
from .spotify_proxy import SpotifyProxy
from .spotify_tokens import SpotifyTokenService

__all__ = [
    "AuthorizationResult",
    "LoginRedirect",
    "PlaybackService",
    "SpotifyAuthFlow",
    "SpotifyProxy",
    "SpotifyTokenService",
]
