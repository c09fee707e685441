"""Domain services."""

from .players import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    MAX_SCORE,
    MIN_POSITIVE_SCORE,
    PlayerService,
    coerce_limit,
    coerce_score,
    normalize_username,
    player_to_dict,
)

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
