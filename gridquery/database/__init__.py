"""
Database operations for the gridquery data service.

This module handles the MySQL connection pool, statement execution and the
optional TTL result cache.
"""

from .cache import (
    MISSING,
    CacheStore,
    TTLCacheStore,
    QueryCache,
    NullCache,
    ttl_cache,
)
from .client import Database
from .pool import (
    Row,
    ExecuteResult,
    Connection,
    Pool,
    MySQLConnection,
    MySQLPool,
)

__all__ = [
    "MISSING",
    "CacheStore",
    "TTLCacheStore",
    "QueryCache",
    "NullCache",
    "ttl_cache",
    "Database",
    "Row",
    "ExecuteResult",
    "Connection",
    "Pool",
    "MySQLConnection",
    "MySQLPool",
]
