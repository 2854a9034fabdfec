"""Pytest configuration and fixtures."""

import re
import sqlite3
from typing import Any, Callable, List, Optional, Sequence

import pytest

from gridquery.database import Database, ExecuteResult, NullCache


class SqliteConnection:
    def __init__(self, pool: "SqlitePool"):
        self.pool = pool

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None):
        self.pool.statements.append((sql, list(params or [])))
        if self.pool.fail_when is not None and self.pool.fail_when(sql):
            raise sqlite3.OperationalError("simulated driver failure")
        cur = self.pool.conn.execute(sql, list(params or []))
        if cur.description is None:
            self.pool.conn.commit()
            return ExecuteResult(insert_id=cur.lastrowid, affected_rows=cur.rowcount)
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, row)) for row in cur.fetchall()]

    def release(self) -> None:
        self.pool.released += 1


class SqlitePool:
    """
    In-memory SQLite standing in for the MySQL pool. SQLite accepts backtick
    identifiers and `LIMIT offset, count`; REGEXP is registered below.
    """

    def __init__(self):
        self.conn = sqlite3.connect(":memory:", check_same_thread=False)
        self.conn.create_function(
            "REGEXP", 2, lambda pattern, value: value is not None and re.search(pattern, str(value)) is not None
        )
        self.statements: List[tuple] = []
        self.acquired = 0
        self.released = 0
        self.fail_when: Optional[Callable[[str], bool]] = None

    async def acquire(self) -> SqliteConnection:
        self.acquired += 1
        return SqliteConnection(self)

    async def close(self) -> None:
        self.conn.close()


class RecordingConnection:
    def __init__(self, pool: "RecordingPool"):
        self.pool = pool

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None):
        self.pool.statements.append((sql, None if params is None else list(params)))
        if self.pool.error is not None:
            raise self.pool.error
        return self.pool.responses.pop(0) if self.pool.responses else []

    def release(self) -> None:
        self.pool.released += 1


class RecordingPool:
    """Returns scripted responses in order and records every statement."""

    def __init__(self, responses: Optional[list] = None, error: Optional[BaseException] = None):
        self.responses = list(responses or [])
        self.error = error
        self.statements: List[tuple] = []
        self.acquired = 0
        self.released = 0

    async def acquire(self) -> RecordingConnection:
        self.acquired += 1
        return RecordingConnection(self)

    async def close(self) -> None:
        return None


def seed_people(conn: sqlite3.Connection) -> None:
    """
    25 people. Every fifth name contains 'abc' (ids 5, 10, 15, 20, 25);
    ids 1-10 belong to tenant 7, the rest to tenant 8.
    """
    conn.execute(
        "CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT, email TEXT, tenant_id INTEGER)"
    )
    rows = [
        (i, f"abc-{i:02d}" if i % 5 == 0 else f"user-{i:02d}", f"p{i}@example.com", 7 if i <= 10 else 8)
        for i in range(1, 26)
    ]
    conn.executemany("INSERT INTO people (id, name, email, tenant_id) VALUES (?, ?, ?, ?)", rows)
    conn.commit()


@pytest.fixture
def sqlite_pool():
    pool = SqlitePool()
    seed_people(pool.conn)
    try:
        yield pool
    finally:
        pool.conn.close()


@pytest.fixture
def sqlite_db(sqlite_pool):
    return Database(sqlite_pool, database="main", cache=NullCache(), paramstyle="qmark")


@pytest.fixture
def recording_pool():
    return RecordingPool()
