"""Player record shapes: the storage row and the backend-neutral value."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow

USERNAME_MAX_LENGTH = 50


class Player(SQLModel):
    """A player's score as returned by every storage backend."""

    username: str
    score: float
    created_at: datetime
    updated_at: datetime


class PlayerRecord(SQLModel, table=True):
    """Row in the relational ``players`` table."""

    __tablename__ = "players"

    username: str = ORMField(primary_key=True, max_length=USERNAME_MAX_LENGTH)
    score: float = ORMField(index=True, nullable=False)
    created_at: datetime = ORMField(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False
    )
    updated_at: datetime = ORMField(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False
    )


__all__ = ["Player", "PlayerRecord", "USERNAME_MAX_LENGTH"]
