"""Storage backends and the factory that picks one from settings."""

from __future__ import annotations

import boto3

from ..core.config import BACKEND_DYNAMODB, Settings
from ..core.database import create_sql_engine
from .base import PlayerStore
from .dynamodb import LEADERBOARD_PARTITION, DynamoPlayerStore
from .sql import SqlPlayerStore


def build_store(settings: Settings) -> PlayerStore:
    """Construct the backend named by ``settings.storage_backend``."""

    if settings.storage_backend == BACKEND_DYNAMODB:
        resource = boto3.resource(
            "dynamodb",
            region_name=settings.aws_region,
            endpoint_url=settings.dynamo_endpoint_url,
        )
        return DynamoPlayerStore(
            resource.Table(settings.dynamo_table),
            score_index=settings.dynamo_score_index,
        )
    return SqlPlayerStore(create_sql_engine(settings))


__all__ = [
    "DynamoPlayerStore",
    "LEADERBOARD_PARTITION",
    "PlayerStore",
    "SqlPlayerStore",
    "build_store",
]
