"""Authenticated pass-through calls to the Spotify Web API on behalf of a user."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Optional

from app.clients.spotify_api import SpotifyApiClient
from app.core.errors import UpstreamApiError
from app.services.spotify_tokens import SpotifyTokenService


class SpotifyProxy:
    """Resolve a user's access token and forward one Web API call."""

    def __init__(
        self, token_service: SpotifyTokenService, api_client: SpotifyApiClient
    ) -> None:
        self._tokens = token_service
        self._api = api_client

    async def request(
        self,
        user_id: str,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
        *,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        access_token = await self._tokens.get_access_token(user_id)
        try:
            return await self._api.request(
                access_token, method, path, json=body, params=params
            )
        except UpstreamApiError as exc:
            # A revoked or expired token must not be served from the cache again.
            if exc.status == HTTPStatus.UNAUTHORIZED:
                self._tokens.forget(user_id)
            raise


__all__ = ["SpotifyProxy"]
