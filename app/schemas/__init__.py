"""Public schema exports."""

from .spotify import BotCommand, EnrolledUserList

__all__ = ["BotCommand", "EnrolledUserList"]
