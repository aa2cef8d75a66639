"""
Public FastAPI routes: health, the Spotify OAuth handshake and enrollment listing.
"""

from __future__ import annotations

import asyncio
import html
import logging
import time
from http import HTTPStatus
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from app.clients.token_store import TokenStore
from app.core.config import AppSettings
from app.core.errors import BridgeError, InvalidSessionError
from app.dependencies import SettingsDependency, get_auth_flow, get_token_store
from app.schemas import EnrolledUserList
from app.services.auth_flow import AuthorizationResult, SpotifyAuthFlow

router = APIRouter()
logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "uptime": round(time.monotonic() - _STARTED_AT, 3)}


@router.get("/login")
async def start_spotify_login(
    flow: Annotated[SpotifyAuthFlow, Depends(get_auth_flow)],
    settings: SettingsDependency,
) -> RedirectResponse:
    """Remember a fresh state value in a cookie and bounce to Spotify consent."""
    login = flow.start()
    response = RedirectResponse(
        url=login.authorization_url, status_code=HTTPStatus.FOUND
    )
    response.set_cookie(
        settings.oauth.state_cookie_name,
        login.state,
        max_age=settings.oauth.state_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.get("/callback")
async def handle_spotify_callback(
    request: Request,
    flow: Annotated[SpotifyAuthFlow, Depends(get_auth_flow)],
    settings: SettingsDependency,
    code: Optional[str] = Query(None, description="Authorization code from Spotify."),
    state: Optional[str] = Query(None, description="State echoed back by Spotify."),
    error: Optional[str] = Query(None, description="Set when the user denied consent."),
) -> Response:
    """Complete the OAuth exchange and show the integrator their user id.

    The state cookie is cleared on every outcome.
    """
    cookie_name = settings.oauth.state_cookie_name
    response: Response
    try:
        result = await flow.complete(
            code=code,
            state=state,
            stored_state=request.cookies.get(cookie_name),
            error=error,
        )
    except InvalidSessionError as exc:
        logger.warning("Rejected OAuth callback: %s", exc.message)
        response = JSONResponse(exc.to_body(), status_code=exc.status_code)
    except BridgeError as exc:
        logger.error("Spotify callback failed: %s", exc.message)
        response = JSONResponse(
            {"error": "Spotify callback failed.", "details": exc.message},
            status_code=exc.status_code,
        )
    except Exception:
        logger.exception("Unexpected error while completing Spotify authorization")
        response = JSONResponse(
            {
                "error": "Spotify callback failed.",
                "details": "Unexpected error while completing authorization.",
            },
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )
    else:
        logger.info("Spotify authorization completed for %s", result.user_id)
        response = HTMLResponse(_render_success_page(result, settings))

    response.delete_cookie(
        cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.get("/users", response_model=EnrolledUserList)
async def list_enrolled_users(
    store: Annotated[TokenStore, Depends(get_token_store)],
) -> Response | EnrolledUserList:
    """List every user with a refresh token on file."""
    try:
        users = await asyncio.to_thread(store.list_users)
    except OSError as exc:
        logger.error("Error reading user IDs: %s", exc)
        return JSONResponse(
            {"error": "Failed to retrieve user IDs.", "details": str(exc)},
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )
    return EnrolledUserList(
        count=len(users),
        users=[user.model_dump(mode="json", by_alias=True) for user in users],
    )


def _render_success_page(result: AuthorizationResult, settings: AppSettings) -> str:
    user_id = html.escape(result.user_id)
    access_token = html.escape(result.access_token)
    refresh_token = html.escape(
        "stored previously" if result.reused_stored_token else result.refresh_token
    )
    base_url = html.escape(settings.base_url.rstrip("/"))
    return f"""<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>Spotify Auth Success</title>
    <style>
      body {{ font-family: system-ui, sans-serif; margin: 3rem auto; max-width: 640px; line-height: 1.6; color: #0f172a; }}
      code {{ background: #f1f5f9; padding: 0.2rem 0.35rem; border-radius: 4px; }}
      pre {{ background: #0f172a; color: #f8fafc; padding: 1rem; border-radius: 8px; overflow-x: auto; }}
      .card {{ border: 1px solid #cbd5f5; padding: 2rem; border-radius: 12px; }}
    </style>
  </head>
  <body>
    <div class="card">
      <h1>You're all set</h1>
      <p>Spotify has authorized this Zoho Cliq controller. You can close this window.</p>
      <p><strong>User ID:</strong> {user_id}</p>
      <pre>{{
  "accessToken": "{access_token}",
  "refreshToken": "{refresh_token}"
}}</pre>
      <p>Next step: configure your Zoho Cliq bot to call <code>{base_url}/spotify/*</code> endpoints with <code>userId={user_id}</code>.</p>
    </div>
  </body>
</html>"""


__all__ = ["router"]
