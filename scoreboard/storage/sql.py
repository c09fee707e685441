"""Relational backend (PostgreSQL in production, SQLite locally)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..core.errors import StorageError
from ..core.time import as_utc
from ..models import Player, PlayerRecord

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _to_player(row: Any) -> Player:
    return Player(
        username=row.username,
        score=float(row.score),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SqlPlayerStore:
    """Player storage on a SQLAlchemy engine.

    Upserts are a single ``INSERT ... ON CONFLICT (username) DO UPDATE``
    statement, so concurrent writers for the same name are serialized by the
    database and ``created_at`` is only ever written by the inserting call.
    """

    def __init__(self, engine: Engine) -> None:
        insert = _DIALECT_INSERTS.get(engine.dialect.name)
        if insert is None:
            raise RuntimeError(
                f"Unsupported database dialect for upserts: {engine.dialect.name}"
            )
        self.engine = engine
        self._insert = insert

    def prepare(self, reset: bool = False) -> None:
        tables = [PlayerRecord.__table__]
        try:
            if reset:
                logger.warning("DB_RESET set, dropping players table")
                SQLModel.metadata.drop_all(self.engine, tables=tables)
            SQLModel.metadata.create_all(self.engine, tables=tables)
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError("Database connection failed") from exc
        logger.info("SQL backend ready (%s)", self.engine.dialect.name)

    def upsert(self, username: str, score: float, now: datetime) -> Player:
        table = PlayerRecord.__table__
        stmt = self._insert(table).values(
            username=username,
            score=score,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.username],
            set_={
                "score": stmt.excluded.score,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(
            table.c.username,
            table.c.score,
            table.c.created_at,
            table.c.updated_at,
        )

        try:
            with self.engine.begin() as conn:
                row = conn.execute(stmt).one()
        except SQLAlchemyError as exc:
            raise StorageError("Could not save player") from exc
        return _to_player(row)

    def get(self, username: str) -> Optional[Player]:
        try:
            with Session(self.engine) as session:
                record = session.get(PlayerRecord, username)
                player = _to_player(record) if record is not None else None
        except SQLAlchemyError as exc:
            raise StorageError("Could not load player") from exc
        return player

    def top(self, limit: int) -> List[Player]:
        query = (
            select(PlayerRecord)
            .order_by(PlayerRecord.score.desc(), PlayerRecord.username.asc())
            .limit(limit)
        )
        try:
            with Session(self.engine) as session:
                players = [_to_player(record) for record in session.exec(query).all()]
        except SQLAlchemyError as exc:
            raise StorageError("Could not list players") from exc
        return players

    def close(self) -> None:
        self.engine.dispose()


__all__ = ["SqlPlayerStore"]
