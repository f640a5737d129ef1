"""FastAPI application factory for the read-only status API."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from atc_fleet import __version__
from atc_fleet.api.routes import status
from atc_fleet.config.loader import load_config
from atc_fleet.config.models import AtcConfig

logger = logging.getLogger(__name__)


def create_app(config: AtcConfig | None = None) -> FastAPI:
    app = FastAPI(title="atc", version=__version__, description="Bluesky fleet status")

    if config is None:
        try:
            config = load_config()
        except (FileNotFoundError, ValueError) as exc:
            logger.warning("Using default configuration: %s", exc)
            config = AtcConfig()
    app.state.config = config

    @app.get("/health", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(status.router, prefix="/api")
    return app
