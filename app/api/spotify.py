"""
Bot-facing playback and status routes under ``/spotify``.

Every route sits behind the shared-secret guard. Upstream failures come back
as ``{"error": "Unable to <action>.", "details": ...}`` with 502, or 403/404
when Spotify reports a missing Premium subscription or no active device.
"""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Annotated, Any, Awaitable, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.clients.token_store import TokenStore
from app.core.errors import (
    BridgeError,
    NoDeviceError,
    SpotifyErrorCode,
    UpstreamApiError,
    ValidationError,
)
from app.dependencies import (
    BotSecretDependency,
    SettingsDependency,
    get_playback_service,
    get_token_store,
)
from app.schemas import BotCommand
from app.services.playback import PlaybackService

router = APIRouter(prefix="/spotify", dependencies=[BotSecretDependency])
logger = logging.getLogger(__name__)

PlaybackDependency = Annotated[PlaybackService, Depends(get_playback_service)]

_SOLUTIONS = {
    SpotifyErrorCode.PREMIUM_REQUIRED: (
        "Spotify Premium subscription is required for playback controls. "
        "Please upgrade your Spotify account or use read-only endpoints like "
        "/spotify/current."
    ),
    SpotifyErrorCode.NO_ACTIVE_DEVICE: (
        "Please open Spotify on a device and start playing something first."
    ),
}


def _failure(action: str, exc: BridgeError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return JSONResponse(exc.to_body(), status_code=exc.status_code)

    body: dict[str, Any] = {"error": f"Unable to {action}.", "details": exc.message}
    if isinstance(exc, UpstreamApiError):
        solution = _SOLUTIONS.get(exc.code)
        if solution:
            body["solution"] = solution
            body["reason"] = exc.code.value
    elif isinstance(exc, NoDeviceError) and exc.details:
        body["solution"] = exc.details
    logger.warning("Unable to %s: %s", action, exc.message)
    return JSONResponse(body, status_code=exc.status_code)


async def _run(action: str, call: Awaitable[dict[str, Any]]) -> Any:
    try:
        return await call
    except BridgeError as exc:
        return _failure(action, exc)


def _command(command: Optional[BotCommand]) -> BotCommand:
    return command or BotCommand()


@router.post("/connect", status_code=HTTPStatus.OK)
async def connect(
    settings: SettingsDependency,
    store: Annotated[TokenStore, Depends(get_token_store)],
    command: Optional[BotCommand] = None,
) -> dict:
    """Hand the bot a login link and say whether the user is already enrolled."""
    user_id = _command(command).user_id
    return {
        "login_url": f"{settings.base_url.rstrip('/')}/login",
        "enrolled": bool(user_id and await asyncio.to_thread(store.get, user_id)),
    }


@router.post("/play")
async def play(service: PlaybackDependency, command: Optional[BotCommand] = None):
    body = _command(command)
    return await _run("start playback", service.play(body.user_id, body.track_uri))


@router.post("/pause")
async def pause(service: PlaybackDependency, command: Optional[BotCommand] = None):
    return await _run("pause playback", service.pause(_command(command).user_id))


@router.post("/resume")
async def resume(service: PlaybackDependency, command: Optional[BotCommand] = None):
    return await _run("resume playback", service.resume(_command(command).user_id))


@router.post("/next")
async def next_track(service: PlaybackDependency, command: Optional[BotCommand] = None):
    return await _run("skip to the next track", service.next(_command(command).user_id))


@router.post("/previous")
async def previous_track(
    service: PlaybackDependency, command: Optional[BotCommand] = None
):
    return await _run(
        "go to the previous track", service.previous(_command(command).user_id)
    )


@router.post("/volume")
async def volume(service: PlaybackDependency, command: Optional[BotCommand] = None):
    body = _command(command)
    return await _run("set volume", service.volume(body.user_id, body.volume_percent))


@router.post("/seek")
async def seek(service: PlaybackDependency, command: Optional[BotCommand] = None):
    body = _command(command)
    return await _run(
        "seek in the current track", service.seek(body.user_id, body.position_ms)
    )


@router.post("/queue")
async def queue(service: PlaybackDependency, command: Optional[BotCommand] = None):
    body = _command(command)
    return await _run("add track to queue", service.queue(body.user_id, body.track_uri))


@router.get("/current")
async def current(
    service: PlaybackDependency,
    user_id: Optional[str] = Query(None, alias="userId"),
):
    return await _run("fetch current playback", service.current(user_id))


@router.get("/devices")
async def devices(
    service: PlaybackDependency,
    user_id: Optional[str] = Query(None, alias="userId"),
):
    return await _run("get devices", service.devices(user_id))


__all__ = ["router"]
