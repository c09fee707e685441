"""Interface shared by the storage backends."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from ..models import Player


class PlayerStore(Protocol):
    """Persistence operations the player service relies on.

    Usernames passed in are already normalized. Every method raises
    :class:`~scoreboard.core.errors.StorageError` on backend failure.
    """

    def prepare(self, reset: bool = False) -> None:
        """Make sure the backing table exists and is reachable."""

    def upsert(self, username: str, score: float, now: datetime) -> Player:
        """Insert or update ``username`` in one atomic backend operation."""

    def get(self, username: str) -> Optional[Player]:
        """Point lookup; ``None`` when no record exists."""

    def top(self, limit: int) -> List[Player]:
        """Up to ``limit`` players ordered by score, highest first."""

    def close(self) -> None:
        """Release pooled connections or client handles."""


__all__ = ["PlayerStore"]
