"""Aggregate API routers."""

from fastapi import APIRouter

from .players import router as players_router
from .system import router as system_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    players_router,
)

__all__ = ["ALL_ROUTERS"]
