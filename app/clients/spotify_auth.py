"""
Spotify OAuth utilities.

These helpers build the consent URL and talk to the accounts service token
endpoint for both the authorization-code and refresh-token grants.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from app.core.config import OAuthSettings, SpotifySettings
from app.core.errors import UpstreamAuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenGrant:
    """Access token minted by the token endpoint."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = 3600


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class SpotifyOAuthClient:
    """Build Spotify authorization URLs and exchange codes or refresh tokens."""

    AUTHORIZE_PATH = "/authorize"
    TOKEN_PATH = "/api/token"

    def __init__(
        self,
        spotify_settings: SpotifySettings,
        oauth_settings: OAuthSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._spotify = spotify_settings
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def token_url(self) -> str:
        return f"{self._spotify.accounts_base_url.rstrip('/')}{self.TOKEN_PATH}"

    def build_authorization_url(self, state: str) -> str:
        """Construct the Spotify consent URL."""
        params = {
            "response_type": "code",
            "client_id": self._spotify.client_id,
            "scope": " ".join(self._oauth.scopes),
            "redirect_uri": str(self._spotify.redirect_uri),
            "state": state,
        }
        base = self._spotify.accounts_base_url.rstrip("/")
        return f"{base}{self.AUTHORIZE_PATH}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for an access and refresh token."""
        return await self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": str(self._spotify.redirect_uri),
            }
        )

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        """Mint a new access token from a stored refresh token.

        Spotify may or may not rotate the refresh token; ``TokenGrant.refresh_token``
        is ``None`` when it keeps the old one valid.
        """
        return await self._request_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    async def _request_token(self, form: dict[str, str]) -> TokenGrant:
        try:
            async with httpx.AsyncClient(
                timeout=self._spotify.request_timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.token_url,
                    data=form,
                    auth=(self._spotify.client_id, self._spotify.client_secret),
                )
        except httpx.HTTPError as exc:
            logger.warning("Token endpoint unreachable (%s): %s", form["grant_type"], exc)
            raise UpstreamAuthError(path=self.TOKEN_PATH, payload=str(exc)) from exc

        if not response.is_success:
            logger.warning(
                "Token endpoint rejected %s grant with status %s",
                form["grant_type"],
                response.status_code,
            )
            raise UpstreamAuthError(
                path=self.TOKEN_PATH,
                status=response.status_code,
                payload=_json_or_text(response),
            )

        token_payload = _json_or_text(response)
        if not isinstance(token_payload, dict) or not token_payload.get("access_token"):
            raise UpstreamAuthError(
                path=self.TOKEN_PATH,
                status=response.status_code,
                payload="Spotify did not return an access token.",
            )

        return TokenGrant(
            access_token=token_payload["access_token"],
            refresh_token=token_payload.get("refresh_token") or None,
            expires_in=int(token_payload.get("expires_in") or 3600),
        )


__all__ = ["SpotifyOAuthClient", "TokenGrant"]
