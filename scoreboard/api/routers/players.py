"""Player score endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ...core import ValidationError, isoformat_z
from ...services.players import PlayerService, player_to_dict
from ..deps import get_player_service

router = APIRouter(prefix="/api/player", tags=["players"])


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError("Limit must be a positive integer") from exc


@router.post("/add", status_code=201)
async def add_player(
    body: Dict[str, Any], service: PlayerService = Depends(get_player_service)
):
    """Create a player or update the score of an existing one."""

    player = await service.upsert_player(body.get("username"), body.get("score"))
    return {
        "success": True,
        "message": f"Player {player.username} saved successfully",
        "data": {
            "username": player.username,
            "score": player.score,
            "timestamp": isoformat_z(player.updated_at),
        },
    }


@router.post("/get")
async def get_player_score(
    body: Dict[str, Any], service: PlayerService = Depends(get_player_service)
):
    """Look up a player's score by the username in the request body."""

    player = await service.get_player(body.get("username"))
    if player is None:
        raise HTTPException(404, "Player not found")
    return {
        "success": True,
        "data": {"username": player.username, "score": player.score},
    }


@router.get("")
async def list_players(
    limit: Optional[str] = None, service: PlayerService = Depends(get_player_service)
):
    """List the top players, highest score first."""

    players = await service.list_players(_parse_limit(limit))
    return {
        "success": True,
        "data": [player_to_dict(player) for player in players],
        "count": len(players),
    }


@router.get("/{username}")
async def get_player(username: str, service: PlayerService = Depends(get_player_service)):
    player = await service.get_player(username)
    if player is None:
        raise HTTPException(404, "Player not found")
    return {"success": True, "data": player_to_dict(player)}


__all__ = ["router"]
