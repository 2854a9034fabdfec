from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

import aiomysql

from ..config import DatabaseConfig
from ..errors import PoolNotReady

log = logging.getLogger("gridquery.pool")

Row = Dict[str, Any]


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a statement without a result set (INSERT/UPDATE/DELETE)."""
    insert_id: Optional[int] = None
    affected_rows: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"insertId": self.insert_id, "affectedRows": self.affected_rows}


class Connection(Protocol):
    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Union[List[Row], ExecuteResult]: ...

    def release(self) -> None: ...


class Pool(Protocol):
    async def acquire(self) -> Connection: ...

    async def close(self) -> None: ...


class MySQLConnection:
    def __init__(self, pool: "aiomysql.Pool", raw: "aiomysql.Connection"):
        self._pool = pool
        self._raw = raw
        self._released = False

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Union[List[Row], ExecuteResult]:
        # PyMySQL only %-formats the statement when args is not None
        args = list(params) if params else None
        async with self._raw.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(sql, args)
            if cur.description is None:
                return ExecuteResult(insert_id=cur.lastrowid or None, affected_rows=cur.rowcount)
            return list(await cur.fetchall())

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._pool.release(self._raw)


class MySQLPool:
    """
    aiomysql-backed pool. `connection_limit` bounds the pool size. When
    `wait_for_connections` is false, acquire() fails instead of waiting for a
    busy pool; a positive `queue_limit` caps how many callers may wait.
    """

    def __init__(self, raw: "aiomysql.Pool", config: DatabaseConfig):
        self._raw = raw
        self.config = config
        self._waiting = 0
        self._closed = False

    @classmethod
    async def create(cls, config: DatabaseConfig) -> "MySQLPool":
        tz = config.timezone.replace("'", "")
        raw = await aiomysql.create_pool(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password,
            db=config.database,
            charset=config.charset,
            minsize=1,
            maxsize=max(config.connection_limit, 1),
            autocommit=True,
            init_command=f"SET time_zone = '{tz}'",
        )
        log.info("Created MySQL pool for %s@%s/%s (limit=%d)", config.user, config.host, config.database, config.connection_limit)
        return cls(raw, config)

    @property
    def closed(self) -> bool:
        return self._closed

    async def acquire(self) -> MySQLConnection:
        if self._closed:
            raise PoolNotReady("Connection pool is closed.")
        busy = self._raw.freesize == 0 and self._raw.size >= self._raw.maxsize
        if busy and not self.config.wait_for_connections:
            raise PoolNotReady("No free connection and wait_for_connections is disabled.")
        if busy and self.config.queue_limit > 0 and self._waiting >= self.config.queue_limit:
            raise PoolNotReady(f"Connection queue limit reached ({self.config.queue_limit}).")
        self._waiting += 1
        try:
            raw = await self._raw.acquire()
        finally:
            self._waiting -= 1
        return MySQLConnection(self._raw, raw)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._raw.close()
        await self._raw.wait_closed()
        log.info("MySQL pool closed.")


__all__ = [
    "Row",
    "ExecuteResult",
    "Connection",
    "Pool",
    "MySQLConnection",
    "MySQLPool",
]
