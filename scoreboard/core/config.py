"""Application settings and environment helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[2]

BACKEND_SQL = "sql"
BACKEND_DYNAMODB = "dynamodb"

_BACKEND_ALIASES = {
    "sql": BACKEND_SQL,
    "postgres": BACKEND_SQL,
    "postgresql": BACKEND_SQL,
    "dynamodb": BACKEND_DYNAMODB,
    "dynamo": BACKEND_DYNAMODB,
}

ENVIRONMENTS = ("development", "production", "test")

_LOCAL_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup."""

    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 3000
    version: str = "1.0.0"

    storage_backend: str = BACKEND_SQL
    database_url: str = f"sqlite:///{_PROJECT_ROOT / 'data' / 'app.db'}"
    db_pool_size: int = 20
    db_max_overflow: int = 0
    db_pool_timeout: int = 2
    db_reset: bool = False

    dynamo_table: str = "Players"
    dynamo_score_index: Optional[str] = None
    aws_region: str = "us-east-1"
    dynamo_endpoint_url: Optional[str] = None

    rate_limit_max: int = 1000
    rate_limit_window_sec: int = 900
    trust_proxy: bool = False

    allowed_cors_origins: Tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"
    static_dir: Optional[Path] = _PROJECT_ROOT / "client"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """Read settings from the environment (and a ``.env`` file if present)."""

    load_dotenv(override=False)

    environment = os.getenv("APP_ENV", "development").strip().lower()
    if environment not in ENVIRONMENTS:
        raise RuntimeError(f"APP_ENV must be one of {', '.join(ENVIRONMENTS)}")

    backend_raw = os.getenv("STORAGE_BACKEND", BACKEND_SQL).strip().lower()
    storage_backend = _BACKEND_ALIASES.get(backend_raw)
    if storage_backend is None:
        raise RuntimeError(f"Unknown STORAGE_BACKEND: {backend_raw}")

    # FRONTEND_ORIGIN can contain a comma-separated list for multi-domain deploys.
    origins = [
        *_split_csv(os.getenv("FRONTEND_ORIGIN")),
        *_split_csv(os.getenv("ADDITIONAL_ALLOWED_ORIGINS")),
    ]
    if environment != "production":
        origins.extend(_LOCAL_DEV_ORIGINS)

    static_raw = os.getenv("STATIC_DIR")
    defaults = Settings()

    return Settings(
        environment=environment,
        host=os.getenv("HOST", defaults.host),
        port=_env_int("PORT", defaults.port),
        storage_backend=storage_backend,
        database_url=os.getenv("DATABASE_URL") or defaults.database_url,
        db_pool_size=_env_int("DB_POOL_SIZE", defaults.db_pool_size),
        db_max_overflow=_env_int("DB_MAX_OVERFLOW", defaults.db_max_overflow),
        db_pool_timeout=_env_int("DB_POOL_TIMEOUT", defaults.db_pool_timeout),
        db_reset=_env_bool("DB_RESET", False),
        dynamo_table=os.getenv("DYNAMO_TABLE") or defaults.dynamo_table,
        dynamo_score_index=os.getenv("DYNAMO_SCORE_INDEX") or None,
        aws_region=os.getenv("AWS_REGION") or defaults.aws_region,
        dynamo_endpoint_url=os.getenv("DYNAMO_ENDPOINT_URL") or None,
        rate_limit_max=_env_int("RATE_LIMIT_MAX", defaults.rate_limit_max),
        rate_limit_window_sec=_env_int(
            "RATE_LIMIT_WINDOW_SEC", defaults.rate_limit_window_sec
        ),
        trust_proxy=_env_bool("TRUST_PROXY", False),
        allowed_cors_origins=tuple(_unique(origins)),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        static_dir=Path(static_raw) if static_raw else defaults.static_dir,
    )


__all__ = [
    "BACKEND_DYNAMODB",
    "BACKEND_SQL",
    "ENVIRONMENTS",
    "Settings",
    "load_settings",
]
