"""Error types raised by the player service and its storage backends."""

from __future__ import annotations


class ScoreboardError(Exception):
    """Base class for service-level failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ScoreboardError):
    """Input was malformed or out of range."""


class StorageError(ScoreboardError):
    """The storage backend failed; the driver exception is kept as ``__cause__``."""


__all__ = ["ScoreboardError", "StorageError", "ValidationError"]
