"""Access guard for the bot-facing control endpoints."""

from __future__ import annotations

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header, Query

from app.core.errors import UnauthorizedError

from .config import SettingsDependency


def require_bot_secret(
    settings: SettingsDependency,
    x_bot_secret: Annotated[Optional[str], Header()] = None,
    secret: Annotated[Optional[str], Query()] = None,
) -> None:
    """Reject the request unless it presents the configured shared secret.

    The guard is open when no ``BOT_SHARED_SECRET`` is configured.
    """
    expected = settings.bot.shared_secret
    if not expected:
        return
    provided = x_bot_secret or secret or ""
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise UnauthorizedError(
            "Unauthorized request. Provide a valid x-bot-secret header."
        )


BotSecretDependency = Depends(require_bot_secret)

__all__ = ["BotSecretDependency", "require_bot_secret"]
