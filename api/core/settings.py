"""
Environment-driven settings.

Values are read from the process environment on each call, so tests can
override them with `monkeypatch.setenv`. A `.env` file is loaded once by the
entry point (see `api/main.py`).

Connection settings have no fallback: without DATABASE_URL or DB_HOST,
DB_NAME and DB_USER the pool refuses to start. The listening port defaults to
3000. The remaining defaults are deliberate operational ones, each
overridable: DB_PORT 5432 (the Postgres standard port), pool size 1..20,
2 s to wait for a pooled connection, idle connections closed after 30 s.
"""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote

DEFAULT_PORT = 3000
DEFAULT_BOOTSTRAP_SQL = Path(__file__).resolve().parent.parent / "beans" / "schema.sql"


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    return float(raw) if raw else default


def port() -> int:
    return _env_int("PORT", DEFAULT_PORT)


def database_url() -> str:
    """
    Build the asyncpg DSN.

    `DATABASE_URL` wins when set; otherwise the DSN is assembled from
    DB_HOST / DB_PORT / DB_USER / DB_PASSWORD / DB_NAME.
    """
    url = _env("DATABASE_URL")
    if url:
        return url

    host = _env("DB_HOST")
    name = _env("DB_NAME")
    user = _env("DB_USER")
    if not (host and name and user):
        raise RuntimeError("Database is not configured. Set DATABASE_URL or DB_HOST, DB_NAME and DB_USER.")

    password = _env("DB_PASSWORD")
    credentials = quote(user, safe="")
    if password:
        credentials += ":" + quote(password, safe="")
    return f"postgresql://{credentials}@{host}:{_env_int('DB_PORT', 5432)}/{quote(name, safe='')}"


def pool_min_size() -> int:
    return _env_int("DB_POOL_MIN_SIZE", 1)


def pool_max_size() -> int:
    return _env_int("DB_POOL_MAX_SIZE", 20)


def acquire_timeout() -> float:
    return _env_float("DB_ACQUIRE_TIMEOUT", 2.0)


def idle_lifetime() -> float:
    return _env_float("DB_IDLE_LIFETIME", 30.0)


def bootstrap_sql_path() -> Path:
    raw = _env("BOOTSTRAP_SQL")
    return Path(raw) if raw else DEFAULT_BOOTSTRAP_SQL


def dataset_csv_path() -> Path | None:
    raw = _env("BEANS_DATASET_CSV")
    return Path(raw) if raw else None


def cors_origins() -> list[str]:
    raw = _env("CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def log_level() -> str:
    return (_env("LOG_LEVEL", "INFO") or "INFO").upper()
