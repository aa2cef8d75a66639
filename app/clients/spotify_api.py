"""Thin async wrapper over the Spotify Web API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from app.core.config import SpotifySettings
from app.core.errors import UpstreamApiError

logger = logging.getLogger(__name__)


class SpotifyApiClient:
    """Issue bearer-authenticated requests against the Web API base URL."""

    def __init__(
        self,
        settings: SpotifySettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def request(
        self,
        access_token: str,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Perform one call and return the parsed body.

        Any 2xx is success; an empty body (204 No Content, or 200 with nothing
        from the player endpoints) yields ``{}``.
        """
        url = f"{self._settings.api_base_url.rstrip('/')}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method.upper(),
                    url,
                    json=json,
                    params=params,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Spotify %s %s failed in transport: %s", method.upper(), path, exc)
            raise UpstreamApiError(path=path, payload=str(exc)) from exc

        if not response.is_success:
            try:
                payload: Any = response.json()
            except ValueError:
                payload = response.text
            logger.warning(
                "Spotify %s %s returned %s", method.upper(), path, response.status_code
            )
            raise UpstreamApiError(
                path=path, status=response.status_code, payload=payload
            )

        if not response.content.strip():
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"data": body}

    async def get_current_user(self, access_token: str) -> dict[str, Any]:
        """Fetch the profile of the user the token belongs to."""
        return await self.request(access_token, "GET", "/me")


__all__ = ["SpotifyApiClient"]
