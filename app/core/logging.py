"""
Logging utilities for the FastAPI application and operator scripts.

Provides a consistent logging format and configuration.
"""

import logging
import sys

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # httpx logs every outbound request line at INFO; keep those out of the
    # service log unless debugging.
    if logging.getLogger().level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def mask(value: str | None, visible: int = 8) -> str:
    """Render an opaque value for logs without exposing it in full."""
    if not value:
        return "MISSING"
    return f"{value[:visible]}..."


__all__ = ["configure_logging", "mask"]
