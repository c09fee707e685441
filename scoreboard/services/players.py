"""Player service: input validation plus calls into the configured store."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from starlette.concurrency import run_in_threadpool

from ..core.errors import StorageError, ValidationError
from ..core.time import isoformat_z, utcnow
from ..models import USERNAME_MAX_LENGTH, Player
from ..storage import PlayerStore

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000
MAX_SCORE = 9.99e125
MIN_POSITIVE_SCORE = 1e-128

_USERNAME_RE = re.compile(r"[A-Za-z0-9_-]+")

T = TypeVar("T")


def normalize_username(raw: Any) -> str:
    """Validate a username and return its canonical (trimmed, lowercase) form."""

    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("Username is required")

    name = raw.strip()
    if len(name) > USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username must be between 1 and {USERNAME_MAX_LENGTH} characters"
        )
    if not _USERNAME_RE.fullmatch(name):
        raise ValidationError(
            "Username can only contain letters, numbers, hyphens, and underscores"
        )
    return name.lower()


def coerce_score(raw: Any) -> float:
    """Accept ints, floats and numeric strings; reject anything not finite or negative."""

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("Score is required")
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise ValidationError("Score must be a number")

    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError("Score must be a number") from exc

    if not math.isfinite(value):
        raise ValidationError("Score must be a finite number")
    if value < 0:
        raise ValidationError("Score must be non-negative")
    # Both backends must accept the value; DynamoDB numbers are the narrower range.
    if value > MAX_SCORE:
        raise ValidationError(f"Score cannot exceed {MAX_SCORE:g}")
    if 0 < value < MIN_POSITIVE_SCORE:
        raise ValidationError(f"Score must be 0 or at least {MIN_POSITIVE_SCORE:g}")
    return value


def coerce_limit(raw: Any = None) -> int:
    if raw is None:
        return DEFAULT_LIST_LIMIT
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValidationError("Limit must be a positive integer")
    if raw < 1:
        raise ValidationError("Limit must be a positive integer")
    if raw > MAX_LIST_LIMIT:
        raise ValidationError(f"Limit cannot exceed {MAX_LIST_LIMIT}")
    return raw


def player_to_dict(player: Player) -> Dict[str, Any]:
    """Serialise a player to the API's camelCase shape."""

    return {
        "username": player.username,
        "score": player.score,
        "createdAt": isoformat_z(player.created_at),
        "updatedAt": isoformat_z(player.updated_at),
    }


class PlayerService:
    """Upsert, look up and list players on a single :class:`PlayerStore`.

    Store calls block, so each one runs in the worker thread pool; the
    coroutine only suspends while the backend is working.
    """

    def __init__(
        self,
        store: PlayerStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self._clock = clock

    async def upsert_player(self, username: Any, score: Any) -> Player:
        name = normalize_username(username)
        value = coerce_score(score)
        player = await self._call(self.store.upsert, name, value, self._clock())
        logger.info("Saved player %s with score %s", player.username, player.score)
        return player

    async def get_player(self, username: Any) -> Optional[Player]:
        name = normalize_username(username)
        return await self._call(self.store.get, name)

    async def list_players(self, limit: Any = None) -> List[Player]:
        count = coerce_limit(limit)
        return await self._call(self.store.top, count)

    async def _call(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await run_in_threadpool(func, *args)
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError("Unexpected storage failure") from exc


__all__ = [
    "DEFAULT_LIST_LIMIT",
    "MAX_LIST_LIMIT",
    "MAX_SCORE",
    "MIN_POSITIVE_SCORE",
    "PlayerService",
    "coerce_limit",
    "coerce_score",
    "normalize_username",
    "player_to_dict",
]
