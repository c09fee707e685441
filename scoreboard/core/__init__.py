"""Core configuration and infrastructure helpers."""

from .config import BACKEND_DYNAMODB, BACKEND_SQL, Settings, load_settings
from .database import create_sql_engine
from .errors import ScoreboardError, StorageError, ValidationError
from .log import configure_logging
from .time import as_utc, isoformat_z, parse_iso, utcnow

__all__ = [
    "BACKEND_DYNAMODB",
    "BACKEND_SQL",
    "ScoreboardError",
    "Settings",
    "StorageError",
    "ValidationError",
    "as_utc",
    "configure_logging",
    "create_sql_engine",
    "isoformat_z",
    "load_settings",
    "parse_iso",
    "utcnow",
]
