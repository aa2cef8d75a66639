"""
Exception hierarchy shared by the clients, services and routers.

Every error carries the HTTP status it maps to when it escapes a route, so the
application-level handler can render it without knowing the concrete type.
"""

from __future__ import annotations

import json
from enum import Enum
from http import HTTPStatus
from typing import Any, Optional


class SpotifyErrorCode(str, Enum):
    """Player error reasons documented by the Spotify Web API."""

    NO_PREV_TRACK = "NO_PREV_TRACK"
    NO_NEXT_TRACK = "NO_NEXT_TRACK"
    NO_SPECIFIC_TRACK = "NO_SPECIFIC_TRACK"
    ALREADY_PAUSED = "ALREADY_PAUSED"
    NOT_PAUSED = "NOT_PAUSED"
    NOT_PLAYING_LOCALLY = "NOT_PLAYING_LOCALLY"
    NOT_PLAYING_TRACK = "NOT_PLAYING_TRACK"
    NOT_PLAYING_CONTEXT = "NOT_PLAYING_CONTEXT"
    ENDLESS_CONTEXT = "ENDLESS_CONTEXT"
    CONTEXT_DISALLOW = "CONTEXT_DISALLOW"
    ALREADY_PLAYING = "ALREADY_PLAYING"
    RATE_LIMITED = "RATE_LIMITED"
    REMOTE_CONTROL_DISALLOW = "REMOTE_CONTROL_DISALLOW"
    DEVICE_NOT_CONTROLLABLE = "DEVICE_NOT_CONTROLLABLE"
    VOLUME_CONTROL_DISALLOW = "VOLUME_CONTROL_DISALLOW"
    NO_ACTIVE_DEVICE = "NO_ACTIVE_DEVICE"
    PREMIUM_REQUIRED = "PREMIUM_REQUIRED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_payload(cls, payload: Any) -> "SpotifyErrorCode":
        """Extract the ``error.reason`` field from a Spotify error body."""
        if not isinstance(payload, dict):
            return cls.UNKNOWN
        error = payload.get("error")
        reason = error.get("reason") if isinstance(error, dict) else None
        if not isinstance(reason, str):
            return cls.UNKNOWN
        try:
            return cls(reason.upper())
        except ValueError:
            return cls.UNKNOWN


class BridgeError(Exception):
    """Base error rendered as ``{"error": ..., "details": ...}``."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        details: Any = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(BridgeError):
    """Missing or malformed request field."""

    status_code = HTTPStatus.BAD_REQUEST


class InvalidSessionError(BridgeError):
    """OAuth state or cookie problem during the callback."""

    status_code = HTTPStatus.BAD_REQUEST


class UnauthorizedError(BridgeError):
    """Shared bot secret missing or wrong."""

    status_code = HTTPStatus.UNAUTHORIZED


class MissingCredentialError(BridgeError):
    """No refresh token is on file for the user."""

    status_code = HTTPStatus.BAD_GATEWAY


class NoDeviceError(BridgeError):
    """The user has no Spotify device to play on."""

    status_code = HTTPStatus.NOT_FOUND


class ReAuthRequiredError(BridgeError):
    """Spotify withheld a refresh token and none is stored."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class UpstreamError(BridgeError):
    """Spotify rejected a call or could not be reached."""

    status_code = HTTPStatus.BAD_GATEWAY
    prefix = "Spotify request failed"

    def __init__(
        self,
        *,
        path: str,
        status: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        self.path = path
        self.status = status
        self.payload = payload
        summary = json.dumps(
            {"status": status, "endpoint": path, "message": payload},
            default=str,
        )
        super().__init__(f"{self.prefix}: {summary}")


class UpstreamAuthError(UpstreamError):
    """The accounts service token endpoint rejected an exchange."""

    prefix = "Spotify token exchange failed"


class UpstreamApiError(UpstreamError):
    """A Web API call returned a non-2xx status or failed in transport."""

    prefix = "Spotify API request failed"

    def __init__(
        self,
        *,
        path: str,
        status: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(path=path, status=status, payload=payload)
        self.code = SpotifyErrorCode.from_payload(payload)
        if self.code is SpotifyErrorCode.PREMIUM_REQUIRED:
            self.status_code = HTTPStatus.FORBIDDEN
        elif self.code is SpotifyErrorCode.NO_ACTIVE_DEVICE:
            self.status_code = HTTPStatus.NOT_FOUND


__all__ = [
    "BridgeError",
    "InvalidSessionError",
    "MissingCredentialError",
    "NoDeviceError",
    "ReAuthRequiredError",
    "SpotifyErrorCode",
    "UnauthorizedError",
    "UpstreamApiError",
    "UpstreamAuthError",
    "UpstreamError",
    "ValidationError",
]
