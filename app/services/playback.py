"""
Playback and status commands issued on behalf of a chat-bot user.

Each method validates its inputs, performs one or a few proxied Web API calls
and returns the JSON body the bot receives. Failures surface as
``BridgeError`` subclasses; the router decides how to phrase them.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote

from app.core.errors import NoDeviceError, ValidationError
from app.services.spotify_proxy import SpotifyProxy

logger = logging.getLogger(__name__)

_DEVICE_FIELDS = (
    "id",
    "name",
    "type",
    "is_active",
    "is_private_session",
    "is_restricted",
    "volume_percent",
)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _require_user_id(
    user_id: Optional[str], message: str = "userId is required in the request body."
) -> str:
    if not user_id:
        raise ValidationError(message)
    return user_id


def _artist_names(track: dict[str, Any]) -> Optional[str]:
    names = [a.get("name") for a in track.get("artists") or [] if a.get("name")]
    return ", ".join(names) or None


def _ok(action: str, **extra: Any) -> dict[str, Any]:
    return {"status": "ok", "action": action, **extra}


class PlaybackService:
    """Maps bot commands onto Spotify player endpoints."""

    def __init__(
        self,
        proxy: SpotifyProxy,
        *,
        transfer_delay: float = 0.5,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._proxy = proxy
        self._transfer_delay = transfer_delay
        self._sleep = sleep

    async def play(self, user_id: Optional[str], track_uri: Optional[str]) -> dict[str, Any]:
        user_id = _require_user_id(user_id)
        if not track_uri:
            raise ValidationError("trackUri is required to start playback.")
        await self._proxy.request(user_id, "PUT", "/me/player/play", {"uris": [track_uri]})
        return _ok("play", trackUri=track_uri)

    async def pause(self, user_id: Optional[str]) -> dict[str, Any]:
        user_id = _require_user_id(user_id)
        await self._proxy.request(user_id, "PUT", "/me/player/pause")
        return _ok("pause")

    async def next(self, user_id: Optional[str]) -> dict[str, Any]:
        user_id = _require_user_id(user_id)
        await self._proxy.request(user_id, "POST", "/me/player/next")
        return _ok("next")

    async def previous(self, user_id: Optional[str]) -> dict[str, Any]:
        user_id = _require_user_id(user_id)
        await self._proxy.request(user_id, "POST", "/me/player/previous")
        return _ok("previous")

    async def volume(self, user_id: Optional[str], volume_percent: Any) -> dict[str, Any]:
        user_id = _require_user_id(user_id)
        if not _is_number(volume_percent) or not 0 <= volume_percent <= 100:
            raise ValidationError("volume_percent must be a number between 0 and 100.")
        await self._proxy.request(
            user_id,
            "PUT",
            "/me/player/volume",
            # Half-up; the value is already known to be in 0..100.
            params={"volume_percent": int(volume_percent + 0.5)},
        )
        return _ok("volume", volume_percent=volume_percent)

    async def seek(self, user_id: Optional[str], position_ms: Any) -> dict[str, Any]:
        user_id = _require_user_id(user_id)
        if not _is_number(position_ms) or position_ms < 0:
            raise ValidationError("position_ms must be a non-negative number.")
        await self._proxy.request(
            user_id,
            "PUT",
            "/me/player/seek",
            params={"position_ms": int(position_ms)},
        )
        return _ok("seek", position_ms=position_ms)

    async def queue(self, user_id: Optional[str], track_uri: Optional[str]) -> dict[str, Any]:
        user_id = _require_user_id(user_id)
        if not track_uri:
            raise ValidationError("trackUri is required to queue a song.")
        await self._proxy.request(
            user_id, "POST", f"/me/player/queue?uri={quote(track_uri, safe='')}"
        )
        return _ok("queue", trackUri=track_uri)

    async def resume(self, user_id: Optional[str]) -> dict[str, Any]:
        """Resume the last known track, moving playback to a device if needed."""
        user_id = _require_user_id(user_id)

        devices = (
            await self._proxy.request(user_id, "GET", "/me/player/devices")
        ).get("devices") or []
        if not devices:
            raise NoDeviceError(
                "No Spotify devices are available.",
                details="Open Spotify on a phone, desktop or speaker and try again.",
            )

        playback = await self._proxy.request(user_id, "GET", "/me/player")
        track = playback.get("item") or {}
        progress_ms = int(playback.get("progress_ms") or 0)

        device = next((d for d in devices if d.get("is_active")), None)
        transferred = False
        if device is None:
            device = devices[0]
            logger.info(
                "No active device for %s; transferring playback to %s",
                user_id,
                device.get("name"),
            )
            await self._proxy.request(
                user_id,
                "PUT",
                "/me/player",
                {"device_ids": [device.get("id")], "play": False},
            )
            transferred = True
            if self._transfer_delay > 0:
                await self._sleep(self._transfer_delay)
        elif track and playback.get("is_playing"):
            return _ok(
                "resume",
                message="Track is already playing",
                device=self._device_ref(device),
                transferred=False,
                track=self._track_ref(track, progress_ms),
            )

        params = {"device_id": device.get("id")} if transferred else None
        body = None
        if track.get("uri"):
            body = {"uris": [track["uri"]], "position_ms": progress_ms}
        await self._proxy.request(user_id, "PUT", "/me/player/play", body, params=params)

        resumed_track = None
        if body is not None:
            resumed_track = {
                **self._track_ref(track, progress_ms),
                "resumed_at": datetime.now(timezone.utc).isoformat(),
            }
        return _ok(
            "resume",
            device=self._device_ref(device),
            transferred=transferred,
            track=resumed_track,
        )

    async def current(self, user_id: Optional[str]) -> dict[str, Any]:
        """Summarize what is playing plus the neighbouring tracks."""
        user_id = _require_user_id(user_id, "userId query parameter is required.")

        player = await self._proxy.request(user_id, "GET", "/me/player")
        if not player:
            return {"is_playing": False, "message": "No active playback on this account."}

        queue_result, recent_result = await asyncio.gather(
            self._proxy.request(user_id, "GET", "/me/player/queue"),
            self._proxy.request(
                user_id, "GET", "/me/player/recently-played", params={"limit": 1}
            ),
            return_exceptions=True,
        )
        if isinstance(queue_result, BaseException):
            logger.warning("Queue lookup failed for %s: %s", user_id, queue_result)
            queue_result = {}
        if isinstance(recent_result, BaseException):
            logger.warning("Recently-played lookup failed for %s: %s", user_id, recent_result)
            recent_result = {}

        track = player.get("item") or {}
        upcoming = queue_result.get("queue") or []
        recent = recent_result.get("items") or []
        images = (track.get("album") or {}).get("images") or []

        return {
            "track_name": track.get("name"),
            "artist": _artist_names(track),
            "album_image": images[0].get("url") if images else None,
            "progress_ms": player.get("progress_ms") or 0,
            "duration_ms": track.get("duration_ms") or 0,
            "is_playing": bool(player.get("is_playing")),
            "next_track_uri": (upcoming[0] or {}).get("uri") if upcoming else None,
            "previous_track_uri": (
                ((recent[0] or {}).get("track") or {}).get("uri") if recent else None
            ),
        }

    async def devices(self, user_id: Optional[str]) -> dict[str, Any]:
        user_id = _require_user_id(user_id, "userId is required as a query parameter.")
        payload = await self._proxy.request(user_id, "GET", "/me/player/devices")
        devices = [
            {name: device.get(name) for name in _DEVICE_FIELDS}
            for device in payload.get("devices") or []
        ]
        return {"devices": devices, "count": len(devices)}

    @staticmethod
    def _device_ref(device: dict[str, Any]) -> dict[str, Any]:
        return {"id": device.get("id"), "name": device.get("name")}

    @staticmethod
    def _track_ref(track: dict[str, Any], progress_ms: int) -> dict[str, Any]:
        return {
            "name": track.get("name"),
            "artist": _artist_names(track),
            "uri": track.get("uri"),
            "position_ms": progress_ms,
        }


__all__ = ["PlaybackService"]
