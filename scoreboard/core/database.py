"""Database engine construction for the SQL backend."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from .config import Settings


def create_sql_engine(settings: Settings) -> Engine:
    """Build an engine with a bounded connection pool.

    SQLite URLs get ``check_same_thread=False`` since requests are served from
    a worker thread pool; in-memory SQLite shares a single connection.
    """

    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        database = url.database or ""
        if not database or database == ":memory:":
            return create_engine(
                settings.database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        Path(database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(
            settings.database_url, connect_args={"check_same_thread": False}
        )

    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
    )


__all__ = ["create_sql_engine"]
