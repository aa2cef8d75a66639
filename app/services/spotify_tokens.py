"""
Helpers for minting Spotify access tokens from stored refresh tokens.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from app.clients.spotify_auth import SpotifyOAuthClient, TokenGrant
from app.clients.token_store import TokenStore
from app.core.errors import MissingCredentialError

logger = logging.getLogger(__name__)


@dataclass
class _CachedToken:
    access_token: str
    expires_at: float


class SpotifyTokenService:
    """Exchanges authorization codes and refresh tokens for access tokens."""

    _REFRESH_WINDOW = 60.0

    def __init__(
        self,
        store: TokenStore,
        oauth_client: SpotifyOAuthClient,
        *,
        cache_seconds: int = 0,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._cache_seconds = cache_seconds
        self._cache: dict[str, _CachedToken] = {}

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        return await self._oauth.exchange_authorization_code(code)

    async def get_access_token(self, user_id: str) -> str:
        """Return an access token for ``user_id``, refreshing through Spotify."""
        cached = self._cache.get(user_id)
        if cached and cached.expires_at > time.monotonic():
            return cached.access_token

        refresh_token = await asyncio.to_thread(self._store.get, user_id)
        if not refresh_token:
            raise MissingCredentialError(
                "No refresh token stored for this user. "
                "Ask them to authenticate via /login."
            )

        grant = await self._oauth.refresh_access_token(refresh_token)
        if grant.refresh_token and grant.refresh_token != refresh_token:
            logger.info("Spotify rotated the refresh token for user %s", user_id)
            await asyncio.to_thread(self._store.save, user_id, grant.refresh_token)

        if self._cache_seconds > 0:
            lifetime = min(
                float(self._cache_seconds), grant.expires_in - self._REFRESH_WINDOW
            )
            if lifetime > 0:
                self._cache[user_id] = _CachedToken(
                    grant.access_token, time.monotonic() + lifetime
                )

        return grant.access_token

    def forget(self, user_id: str) -> None:
        """Drop any cached access token for ``user_id``.

        Called after a new grant is stored and when Spotify rejects a token.
        """
        self._cache.pop(user_id, None)


__all__ = ["SpotifyTokenService"]
