"""
Redirect-based OAuth handshake with Spotify.

``start`` issues a single-use state value and the consent URL; ``complete``
validates the callback against the state remembered in the browser cookie,
exchanges the code, resolves the Spotify user id and persists the refresh
token.
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from app.clients.spotify_api import SpotifyApiClient
from app.clients.spotify_auth import SpotifyOAuthClient
from app.clients.token_store import TokenStore
from app.core.errors import InvalidSessionError, ReAuthRequiredError, UpstreamApiError
from app.core.logging import mask
from app.services.spotify_tokens import SpotifyTokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginRedirect:
    state: str
    authorization_url: str


@dataclass(frozen=True)
class AuthorizationResult:
    user_id: str
    access_token: str
    refresh_token: Optional[str]

    @property
    def reused_stored_token(self) -> bool:
        return self.refresh_token is None


class SpotifyAuthFlow:
    """Orchestrates login redirect and callback for one browser session."""

    def __init__(
        self,
        oauth_client: SpotifyOAuthClient,
        token_service: SpotifyTokenService,
        api_client: SpotifyApiClient,
        store: TokenStore,
    ) -> None:
        self._oauth = oauth_client
        self._tokens = token_service
        self._api = api_client
        self._store = store

    def start(self) -> LoginRedirect:
        state = uuid.uuid4().hex
        logger.info("Starting Spotify login with state %s", mask(state))
        return LoginRedirect(
            state=state,
            authorization_url=self._oauth.build_authorization_url(state=state),
        )

    @staticmethod
    def validate_callback(
        *,
        code: Optional[str],
        state: Optional[str],
        stored_state: Optional[str],
        error: Optional[str] = None,
    ) -> str:
        """Return the authorization code once the callback is proven genuine."""
        logger.info(
            "OAuth callback received: code=%s state=%s stored=%s",
            "present" if code else "MISSING",
            mask(state),
            mask(stored_state),
        )
        if error:
            raise InvalidSessionError(
                "Spotify authorization was not granted.", details=error
            )
        if not code:
            raise InvalidSessionError("Missing authorization code.")
        if not state:
            raise InvalidSessionError("Missing state parameter.")
        if not stored_state:
            raise InvalidSessionError(
                "No stored state found. Cookies may be blocked or expired."
            )
        if not hmac.compare_digest(state.encode("utf-8"), stored_state.encode("utf-8")):
            raise InvalidSessionError(
                "State mismatch. Please restart the login process."
            )
        logger.info("OAuth state validation passed")
        return code

    async def complete(
        self,
        *,
        code: Optional[str],
        state: Optional[str],
        stored_state: Optional[str],
        error: Optional[str] = None,
    ) -> AuthorizationResult:
        code = self.validate_callback(
            code=code, state=state, stored_state=stored_state, error=error
        )

        grant = await self._tokens.exchange_authorization_code(code)
        profile = await self._api.get_current_user(grant.access_token)
        user_id = profile.get("id")
        if not user_id:
            raise UpstreamApiError(
                path="/me", payload="Spotify profile did not include a user id."
            )

        if grant.refresh_token:
            await asyncio.to_thread(self._store.save, user_id, grant.refresh_token)
            self._tokens.forget(user_id)
        elif not await asyncio.to_thread(self._store.get, user_id):
            raise ReAuthRequiredError(
                "Spotify did not return a refresh token. Ask the user to re-consent."
            )
        else:
            logger.info("No new refresh token for %s; keeping the stored one", user_id)

        return AuthorizationResult(
            user_id=user_id,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
        )


__all__ = ["AuthorizationResult", "LoginRedirect", "SpotifyAuthFlow"]
