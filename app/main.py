"""
FastAPI application entrypoint for the Zoho Cliq Spotify bridge.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import router as public_router
from app.api.spotify import router as spotify_router
from app.core.config import AppSettings, get_settings
from app.core.errors import BridgeError
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def _bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


def _add_cors(app: FastAPI, settings: AppSettings) -> None:
    origins = list(settings.cors_origins)
    open_policy = not origins or "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if open_policy else origins,
        allow_origin_regex=".*" if open_policy else None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Zoho Cliq Spotify Bridge",
        version="0.1.0",
        description="OAuth enrollment and playback remote control for a Zoho Cliq bot.",
    )
    _add_cors(app, settings)
    app.add_exception_handler(BridgeError, _bridge_error_handler)
    app.include_router(public_router)
    app.include_router(spotify_router)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    logger.info("Spotify playback controller listening on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":  # pragma: no cover - script entry point
    run()


__all__ = ["app", "create_app", "run"]
