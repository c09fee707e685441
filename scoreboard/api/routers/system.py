"""System-level API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...core import Settings, isoformat_z, utcnow
from ..deps import get_settings

router = APIRouter(tags=["system"])


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Simple readiness check."""

    return {
        "success": True,
        "message": "Service is healthy",
        "timestamp": isoformat_z(utcnow()),
        "environment": settings.environment,
        "version": settings.version,
    }


__all__ = ["router"]
