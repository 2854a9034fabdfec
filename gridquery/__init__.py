"""
gridquery: parameter-safe CRUD and DataTable queries over a pooled MySQL
connection, with an optional TTL result cache.
"""

from .config import DatabaseConfig
from .database import Database, MySQLPool, NullCache, QueryCache, TTLCacheStore, ttl_cache
from .errors import (
    Err,
    ErrorInfo,
    GridQueryError,
    Ok,
    PoolNotReady,
    QueryExecutionError,
    Result,
    ValidationError,
)
from .filters import AND, NOT, OR, FieldCondition, Keyword
from .handler import DatabaseHandler

__all__ = [
    "DatabaseConfig",
    "Database",
    "MySQLPool",
    "NullCache",
    "QueryCache",
    "TTLCacheStore",
    "ttl_cache",
    "DatabaseHandler",
    "Keyword",
    "FieldCondition",
    "AND",
    "OR",
    "NOT",
    "Ok",
    "Err",
    "ErrorInfo",
    "Result",
    "GridQueryError",
    "PoolNotReady",
    "QueryExecutionError",
    "ValidationError",
]
