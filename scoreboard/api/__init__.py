"""API assembly helpers."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from ..core.config import Settings
from .errors import register_error_handlers
from .middleware import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)
from .routers import ALL_ROUTERS

logger = logging.getLogger(__name__)


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Attach routers, error handlers and (last) the static client."""

    register_error_handlers(app)
    for router in ALL_ROUTERS:
        app.include_router(router)

    static_dir = settings.static_dir
    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="client")
    elif static_dir is not None:
        logger.warning("Static client directory %s not found, skipping", static_dir)


def install_middleware(app: FastAPI, settings: Settings) -> None:
    """Add middleware; the last one added runs first on each request."""

    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    if settings.rate_limit_max > 0:
        limiter = FixedWindowRateLimiter(
            settings.rate_limit_max, settings.rate_limit_window_sec
        )
        app.add_middleware(
            RateLimitMiddleware, limiter=limiter, trust_proxy=settings.trust_proxy
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(SecurityHeadersMiddleware)


__all__ = ["install_middleware", "register_routes"]
