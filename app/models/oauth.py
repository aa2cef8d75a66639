"""
Domain models for OAuth token persistence.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredRefreshToken(BaseModel):
    """Represents one user's entry in the refresh-token document."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., alias="refreshToken")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")


class EnrolledUser(BaseModel):
    """A user who has completed authorization at least once."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    last_updated: datetime | None = Field(None, alias="lastUpdated")


__all__ = ["EnrolledUser", "StoredRefreshToken"]
