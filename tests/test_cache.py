"""Tests for the TTL store and the cache policy in front of the pool."""

import pytest

from gridquery.database import MISSING, Database, ExecuteResult, NullCache, QueryCache, TTLCacheStore, ttl_cache
from gridquery.errors import Err, Ok

from .conftest import RecordingPool


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_ttl_store_expires_entries():
    clock = FakeClock()
    store = TTLCacheStore(ttl=100, timer=clock)

    store.set("a", [1])
    store.set("b", [2], ttl=10)
    assert store.get("a") == [1]
    assert store.get("b") == [2]

    clock.now += 50
    assert store.get("a") == [1]
    assert store.get("b") is MISSING

    clock.now += 51
    assert store.get("a") is MISSING


def test_ttl_store_keeps_falsy_values_and_flushes():
    store = TTLCacheStore()
    store.set("empty", [])

    assert store.get("empty") == []
    assert len(store) == 1

    store.flush_all()
    assert store.get("empty") is MISSING
    assert len(store) == 0


def test_query_key_is_order_sensitive():
    k1 = QueryCache.query_key("SELECT 1 WHERE a = ? AND b = ?", [1, 2])
    k2 = QueryCache.query_key("SELECT 1 WHERE a = ? AND b = ?", [2, 1])

    assert k1 == 'query_SELECT 1 WHERE a = ? AND b = ?_[1,2]'
    assert k1 != k2
    assert QueryCache.query_key("SELECT 1", None) == "query_SELECT 1_null"
    assert QueryCache.schema_key("people") == "schema_people"


@pytest.mark.asyncio
async def test_hit_skips_the_pool():
    pool = RecordingPool(responses=[[{"id": 1}]])
    db = Database(pool, cache=ttl_cache())

    first = await db.query("SELECT * FROM t WHERE id = %s", [1])
    second = await db.query("SELECT * FROM t WHERE id = %s", [1])

    assert first == second == Ok([{"id": 1}])
    assert pool.acquired == 1
    assert len(pool.statements) == 1


@pytest.mark.asyncio
async def test_cached_empty_result_is_still_a_hit():
    pool = RecordingPool(responses=[[]])
    db = Database(pool, cache=ttl_cache())

    await db.query("SELECT * FROM t")
    await db.query("SELECT * FROM t")

    assert pool.acquired == 1


@pytest.mark.asyncio
async def test_different_params_are_different_entries():
    pool = RecordingPool(responses=[[{"id": 1}], [{"id": 2}]])
    db = Database(pool, cache=ttl_cache())

    a = await db.query("SELECT * FROM t WHERE id = %s", [1])
    b = await db.query("SELECT * FROM t WHERE id = %s", [2])

    assert a.unwrap() == [{"id": 1}]
    assert b.unwrap() == [{"id": 2}]
    assert pool.acquired == 2


@pytest.mark.asyncio
async def test_errors_are_not_cached():
    pool = RecordingPool(error=RuntimeError("boom"))
    db = Database(pool, cache=ttl_cache())

    first = await db.query("SELECT * FROM t")
    assert isinstance(first, Err)

    pool.error = None
    pool.responses = [[{"id": 1}]]
    second = await db.query("SELECT * FROM t")

    assert second == Ok([{"id": 1}])
    assert pool.acquired == 2


@pytest.mark.asyncio
async def test_write_results_are_not_cached():
    pool = RecordingPool(responses=[ExecuteResult(1, 1), ExecuteResult(2, 1)])
    db = Database(pool, cache=ttl_cache())

    a = await db.query("INSERT INTO t (`a`) VALUES (%s)", [1])
    b = await db.query("INSERT INTO t (`a`) VALUES (%s)", [1])

    assert a.unwrap().insert_id == 1
    assert b.unwrap().insert_id == 2


@pytest.mark.asyncio
async def test_clear_cache_forces_re_execution():
    pool = RecordingPool(responses=[[{"n": 1}], [{"n": 2}]])
    db = Database(pool, cache=ttl_cache())

    await db.query("SELECT n FROM t")
    db.clear_cache()
    res = await db.query("SELECT n FROM t")

    assert res.unwrap() == [{"n": 2}]


@pytest.mark.asyncio
async def test_caller_mutation_does_not_leak_into_cache():
    pool = RecordingPool(responses=[[{"id": 1}]])
    db = Database(pool, cache=ttl_cache())

    rows = (await db.query("SELECT * FROM t")).unwrap()
    rows.append({"id": 99})
    rows[0]["id"] = 42

    assert (await db.query("SELECT * FROM t")).unwrap() == [{"id": 1}]

    again = (await db.query("SELECT * FROM t")).unwrap()
    again[0]["id"] = 7

    assert (await db.query("SELECT * FROM t")).unwrap() == [{"id": 1}]


@pytest.mark.asyncio
async def test_null_cache_always_executes():
    pool = RecordingPool(responses=[[{"id": 1}], [{"id": 1}]])
    db = Database(pool, cache=NullCache())

    await db.query("SELECT * FROM t")
    await db.query("SELECT * FROM t")

    assert pool.acquired == 2


@pytest.mark.asyncio
async def test_two_handles_do_not_share_cache_state():
    pool = RecordingPool(responses=[[{"id": 1}], [{"id": 1}]])
    cached = Database(pool, cache=ttl_cache())
    other = Database(pool, cache=ttl_cache())

    await cached.query("SELECT * FROM t")
    await other.query("SELECT * FROM t")

    assert pool.acquired == 2


@pytest.mark.asyncio
async def test_schema_lookup_is_cached_per_table():
    pool = RecordingPool(responses=[[{"column_name": "id"}], [{"column_name": "sku"}]])
    db = Database(pool, database="shop", cache=ttl_cache())

    people = await db.get_table_schema("people")
    again = await db.get_table_schema("people")
    items = await db.get_table_schema("items")

    assert people == again == Ok([{"column_name": "id"}])
    assert items == Ok([{"column_name": "sku"}])
    assert pool.acquired == 2
    sql, params = pool.statements[0]
    assert "table_schema = %s AND table_name = %s" in sql
    assert params == ["shop", "people"]
