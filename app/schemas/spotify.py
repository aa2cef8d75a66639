"""Request bodies accepted from the chat-bot."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class BotCommand(BaseModel):
    """Body of every ``POST /spotify/*`` command.

    Numeric fields are typed ``Any`` so range and type problems reach the
    playback service and come back as a 400 with a readable message.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: Optional[str] = Field(None, alias="userId")
    track_uri: Optional[str] = Field(None, alias="trackUri")
    volume_percent: Any = Field(None, description="Target volume, 0-100.")
    position_ms: Any = Field(None, description="Seek target in milliseconds.")


class EnrolledUserList(BaseModel):
    """Response body of ``GET /users``."""

    count: int
    users: list[dict[str, Any]]


__all__ = ["BotCommand", "EnrolledUserList"]
