# gridquery/config.py
# Environment-driven settings. main.py calls load_dotenv() before importing
# this module, so values from a local .env are visible here.

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


# ---- Files / API -----------------------------------------------------------

ENTITIES_PATH = Path(os.getenv("ENTITIES_FILE", "config/entities.yaml"))
COLUMNS_CACHE_PATH = Path(os.getenv("COLUMNS_CACHE_FILE", "config/columns_cache.json"))
GLOBAL_MAX_PAGE_SIZE = int(os.getenv("GLOBAL_MAX_PAGE_SIZE", "1000"))

# ---- Query cache -----------------------------------------------------------

QUERY_CACHE_ENABLED = _env_bool("QUERY_CACHE_ENABLED", "true")
QUERY_CACHE_TTL_SECONDS = float(os.getenv("QUERY_CACHE_TTL_SECONDS", "100"))
QUERY_CACHE_MAX_ENTRIES = int(os.getenv("QUERY_CACHE_MAX_ENTRIES", "1024"))


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection pool options, mirroring the DB_* environment variables."""
    host: str = "localhost"
    port: int = 3306
    user: str = ""
    password: str = ""
    database: str = ""
    charset: str = "utf8mb4"
    timezone: str = "+00:00"
    connection_limit: int = 10
    wait_for_connections: bool = True
    queue_limit: int = 0  # 0 = unbounded wait queue
    paramstyle: str = "format"

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "3306")),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_NAME", ""),
            charset=os.getenv("DB_CHARSET", "utf8mb4"),
            timezone=os.getenv("DB_TIMEZONE", "+00:00"),
            connection_limit=int(os.getenv("DB_CONNECTION_LIMIT", "10")),
            wait_for_connections=_env_bool("DB_WAIT_FOR_CONNECTIONS", "true"),
            queue_limit=int(os.getenv("DB_QUEUE_LIMIT", "0")),
            paramstyle=os.getenv("DB_PARAMSTYLE", "format"),
        )


__all__ = [
    "ENTITIES_PATH",
    "COLUMNS_CACHE_PATH",
    "GLOBAL_MAX_PAGE_SIZE",
    "QUERY_CACHE_ENABLED",
    "QUERY_CACHE_TTL_SECONDS",
    "QUERY_CACHE_MAX_ENTRIES",
    "DatabaseConfig",
]
