"""
Service settings read from environment variables.

Every value has a local-development default, so an unset or blank variable is
never an error. Invalid numeric values fall back to the default as well.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parent / "sql"
DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


def _sanitize_database_url(url: str) -> str:
    # asyncpg rejects libpq-only parameters such as sslmode.
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _mask_url_password(url: str) -> str:
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


@dataclass(frozen=True)
class DatabaseSettings:
    user: str = "postgres"
    password: str = ""
    database: str = "postgres"
    host: str = "localhost"
    port: int = 5432
    min_connections: int = 1
    max_connections: int = 10
    idle_timeout_ms: int = 30_000
    connect_timeout_ms: int = 2_000
    command_timeout_s: int = 30
    url: str | None = None

    def connect_kwargs(self) -> dict[str, Any]:
        """
        Keyword arguments for `asyncpg.create_pool` that pick the server.
        """
        if self.url:
            return {"dsn": self.url}
        return {
            "user": self.user,
            "password": self.password or None,
            "database": self.database,
            "host": self.host,
            "port": self.port,
        }

    def describe(self) -> dict[str, Any]:
        """
        Loggable view of the settings with the password masked.
        """
        if self.url:
            target: dict[str, Any] = {"dsn": _mask_url_password(self.url)}
        else:
            target = {
                "user": self.user,
                "password": "***" if self.password else "",
                "database": self.database,
                "host": self.host,
                "port": self.port,
            }
        return {
            **target,
            "min": self.min_connections,
            "max": self.max_connections,
            "idle_timeout_ms": self.idle_timeout_ms,
            "connect_timeout_ms": self.connect_timeout_ms,
            "command_timeout_s": self.command_timeout_s,
        }


@dataclass(frozen=True)
class Settings:
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    schema_dir: Path = DEFAULT_SCHEMA_DIR
    schema_bootstrap: bool = True
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"


def load_database_settings() -> DatabaseSettings:
    url = os.environ.get("DATABASE_URL", "").strip()
    max_connections = max(1, _env_int("DB_POOL_MAX", 10))
    return DatabaseSettings(
        user=_env_str("DB_USER", "postgres"),
        password=os.environ.get("DB_PASSWORD", ""),
        database=_env_str("DB_NAME", "postgres"),
        host=_env_str("DB_HOST", "localhost"),
        port=_env_int("DB_PORT", 5432),
        min_connections=min(max(0, _env_int("DB_POOL_MIN", 1)), max_connections),
        max_connections=max_connections,
        idle_timeout_ms=max(0, _env_int("DB_IDLE_TIMEOUT_MS", 30_000)),
        connect_timeout_ms=max(1, _env_int("DB_CONNECT_TIMEOUT_MS", 2_000)),
        command_timeout_s=max(1, _env_int("DB_COMMAND_TIMEOUT_S", 30)),
        url=_sanitize_database_url(url) if url else None,
    )


def load_settings() -> Settings:
    raw_origins = os.environ.get("CORS_ORIGINS", "")
    origins = tuple(o.strip() for o in raw_origins.split(",") if o.strip())
    return Settings(
        database=load_database_settings(),
        schema_dir=Path(_env_str("SCHEMA_DIR", str(DEFAULT_SCHEMA_DIR))),
        schema_bootstrap=_env_bool("SCHEMA_BOOTSTRAP", True),
        cors_origins=origins or DEFAULT_CORS_ORIGINS,
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
