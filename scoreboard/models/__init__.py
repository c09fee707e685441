"""Database model exports."""

from .player import USERNAME_MAX_LENGTH, Player, PlayerRecord

__all__ = [
    "Player",
    "PlayerRecord",
    "USERNAME_MAX_LENGTH",
]
