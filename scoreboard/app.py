"""FastAPI application factory and configuration."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from .api import install_middleware, register_routes
from .core import Settings, configure_logging, load_settings
from .services import PlayerService
from .storage import PlayerStore, build_store

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None, store: Optional[PlayerStore] = None
) -> FastAPI:
    """Build the app; ``store`` overrides the backend chosen by ``settings``."""

    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        player_store = store if store is not None else build_store(settings)
        try:
            await run_in_threadpool(player_store.prepare, settings.db_reset)
            app.state.player_service = PlayerService(player_store)
            logger.info(
                "Player service started (backend=%s, environment=%s)",
                settings.storage_backend,
                settings.environment,
            )
            yield
        finally:
            app.state.player_service = None
            player_store.close()
            logger.info("Player service stopped")

    app = FastAPI(title="Player Score API", version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.player_service = None

    install_middleware(app, settings)
    register_routes(app, settings)
    return app


app = create_app()
