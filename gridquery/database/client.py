from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

from ..config import DatabaseConfig
from ..errors import Ok, PoolNotReady, Result, err
from ..query import DEFAULT_PARAMSTYLE, ParamSink
from .cache import MISSING, NullCache, QueryCache
from .pool import Connection, MySQLPool, Pool

log = logging.getLogger("gridquery.database")


def _copy_rows(rows: Sequence[Any]) -> list:
    # cached rows are never handed out or stored by reference
    return [dict(r) if isinstance(r, dict) else r for r in rows]


class Database:
    """
    One database handle: an explicitly owned pool plus a cache policy.

    Every statement goes through query(), which borrows one connection for
    exactly one statement and always gives it back. Failures come back as
    Err results instead of exceptions. With a QueryCache policy, successful
    row results are served from the cache until they expire; NullCache turns
    caching off.
    """

    def __init__(
        self,
        pool: Optional[Pool],
        *,
        database: str = "",
        cache: Optional[QueryCache] = None,
        paramstyle: str = DEFAULT_PARAMSTYLE,
    ):
        self.pool = pool
        self.database = database
        self.cache = cache if cache is not None else NullCache()
        self.paramstyle = paramstyle

    @classmethod
    async def create(cls, config: DatabaseConfig, *, cache: Optional[QueryCache] = None) -> "Database":
        pool = await MySQLPool.create(config)
        return cls(pool, database=config.database, cache=cache, paramstyle=config.paramstyle)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Connection]:
        if self.pool is None:
            raise PoolNotReady("Connection pool has not been created.")
        conn = await self.pool.acquire()
        try:
            yield conn
        finally:
            conn.release()

    async def _run(self, sql: str, params: Optional[Sequence[Any]], key: Optional[str]) -> Result:
        if key is not None:
            cached = self.cache.get(key)
            if cached is not MISSING:
                return Ok(_copy_rows(cached))
        try:
            async with self.connection() as conn:
                rows = await conn.execute(sql, params)
        except Exception as e:
            log.error("Query failed: %s | sql=%s", e, sql)
            return err(e)
        # write results are never cached
        if key is not None and isinstance(rows, list):
            self.cache.put(key, _copy_rows(rows))
        return Ok(rows)

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> Result:
        key = self.cache.query_key(sql, params) if self.cache.enabled else None
        return await self._run(sql, params, key)

    async def get_table_schema(self, table: str) -> Result:
        """[{'column_name': ...}, ...] for `table` in this handle's database."""
        sink = ParamSink(self.paramstyle)
        sql = (
            "SELECT column_name AS column_name FROM information_schema.columns "
            f"WHERE table_schema = {sink.add(self.database)} AND table_name = {sink.add(table)} "
            "ORDER BY ordinal_position"
        )
        key = self.cache.schema_key(table) if self.cache.enabled else None
        return await self._run(sql, sink.params, key)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None


__all__ = ["Database"]
