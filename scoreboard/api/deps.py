"""FastAPI dependencies resolving objects built at startup."""

from __future__ import annotations

from fastapi import HTTPException, Request

from ..core.config import Settings
from ..services.players import PlayerService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_player_service(request: Request) -> PlayerService:
    """Return the service created by the application lifespan."""

    service = getattr(request.app.state, "player_service", None)
    if service is None:
        raise HTTPException(503, "Service is starting up")
    return service


__all__ = ["get_player_service", "get_settings"]
