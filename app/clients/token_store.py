"""JSON-file backed storage for per-user Spotify refresh tokens."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError
from app.models.oauth import EnrolledUser, StoredRefreshToken

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    """Mapping from Spotify user id to refresh token."""

    def save(self, user_id: str, refresh_token: str) -> None: ...

    def get(self, user_id: str) -> Optional[str]: ...

    def remove(self, user_id: str) -> None: ...

    def list_users(self) -> list[EnrolledUser]: ...


def _require(value: str | None, message: str) -> None:
    if not value:
        raise ValidationError(message)


def _to_enrolled(user_id: str, entry: Any) -> EnrolledUser:
    updated = entry.get("updatedAt") if isinstance(entry, dict) else None
    try:
        return EnrolledUser(user_id=user_id, last_updated=updated)
    except PydanticValidationError:
        return EnrolledUser(user_id=user_id)


class JsonFileTokenStore:
    """Single JSON document ``{userId: {refreshToken, updatedAt}}`` on disk.

    Every read-modify-write runs under one lock and the document is replaced
    atomically, so concurrent saves for different users never drop each other.
    A malformed document is reset to ``{}`` on the next read.
    """

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_file(self) -> None:
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self._write({})

    def _read(self) -> Dict[str, Any]:
        self._ensure_file()
        raw = self._path.read_bytes()
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            data = None
        if not isinstance(data, dict):
            logger.error(
                "Token store %s is not a JSON object; re-initializing it.",
                self._path,
            )
            self._write({})
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self._path.parent or Path(".")),
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def save(self, user_id: str, refresh_token: str) -> None:
        _require(user_id, "userId and refreshToken are required to save tokens.")
        _require(refresh_token, "userId and refreshToken are required to save tokens.")
        record = StoredRefreshToken(refresh_token=refresh_token)
        with self._lock:
            data = self._read()
            data[user_id] = record.model_dump(mode="json", by_alias=True)
            self._write(data)
        logger.info("Saved refresh token for user %s", user_id)

    def get(self, user_id: str) -> Optional[str]:
        _require(user_id, "userId is required to fetch a refresh token.")
        with self._lock:
            entry = self._read().get(user_id)
        if not isinstance(entry, dict):
            return None
        return entry.get("refreshToken") or None

    def remove(self, user_id: str) -> None:
        with self._lock:
            data = self._read()
            if user_id not in data:
                return
            del data[user_id]
            self._write(data)
        logger.info("Removed refresh token for user %s", user_id)

    def list_users(self) -> list[EnrolledUser]:
        with self._lock:
            data = self._read()
        return [_to_enrolled(user_id, entry) for user_id, entry in data.items()]


class InMemoryTokenStore:
    """Process-local token store with the same contract as the file store."""

    def __init__(self) -> None:
        self._records: Dict[str, StoredRefreshToken] = {}
        self._lock = threading.Lock()

    def save(self, user_id: str, refresh_token: str) -> None:
        _require(user_id, "userId and refreshToken are required to save tokens.")
        _require(refresh_token, "userId and refreshToken are required to save tokens.")
        with self._lock:
            self._records[user_id] = StoredRefreshToken(
                refresh_token=refresh_token, updated_at=datetime.now(timezone.utc)
            )

    def get(self, user_id: str) -> Optional[str]:
        _require(user_id, "userId is required to fetch a refresh token.")
        record = self._records.get(user_id)
        return record.refresh_token if record else None

    def remove(self, user_id: str) -> None:
        with self._lock:
            self._records.pop(user_id, None)

    def list_users(self) -> list[EnrolledUser]:
        return [
            EnrolledUser(user_id=user_id, last_updated=record.updated_at)
            for user_id, record in self._records.items()
        ]


__all__ = ["InMemoryTokenStore", "JsonFileTokenStore", "TokenStore"]
