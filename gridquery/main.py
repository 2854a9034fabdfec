from __future__ import annotations
from dotenv import load_dotenv

load_dotenv()

import logging, os
from typing import Any, Dict, List, Optional

import jsonschema
from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import (
    QUERY_CACHE_ENABLED,
    QUERY_CACHE_MAX_ENTRIES,
    QUERY_CACHE_TTL_SECONDS,
    DatabaseConfig,
)
from .database import Database, NullCache, ttl_cache
from .filters import hydrate_object, parse_datatable_query
from .registry import Registry
from .validation import (
    _assert_columns_allowed,
    _assert_conditions_allowed,
    _cap_page_size,
)

log = logging.getLogger("gridquery.api")

app = FastAPI(title="gridquery DataTable Service", version="1.0.0")

origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "")
origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

DB: Optional[Database] = None
REG: Optional[Registry] = None


class DataTableResponse(BaseModel):
    draw: int
    recordsTotal: int
    recordsFiltered: int
    data: List[Dict[str, Any]]
    error: Optional[str] = None


def _registry() -> Registry:
    if REG is None:
        raise HTTPException(status_code=503, detail="Service not initialised")
    return REG


@app.on_event("startup")
async def _startup():
    global DB, REG
    if DB is None:
        cache = ttl_cache(QUERY_CACHE_TTL_SECONDS, QUERY_CACHE_MAX_ENTRIES) if QUERY_CACHE_ENABLED else NullCache()
        DB = await Database.create(DatabaseConfig.from_env(), cache=cache)
    if REG is None:
        REG = Registry(DB)
        REG.load_entities()
        REG.load_cache()


@app.on_event("shutdown")
async def _shutdown():
    if DB is not None:
        await DB.close()


@app.get("/healthz")
def health():
    reg = _registry()
    return {"ok": True, "entities": list(reg.entities_cfg.keys())}


@app.get("/entities")
def list_entities(include_columns: bool = True):
    reg = _registry()
    out = []
    for name, meta in reg.entities_cfg.items():
        cached = reg.columns_cache.get(name)
        item: Dict[str, Any] = {
            "entity": name,
            "table": meta["table"],
            "cached": bool(cached),
        }
        if cached:
            item["loadedAt"] = cached.get("loadedAt")
            item["maxPageSize"] = cached.get("maxPageSize")
            if include_columns:
                item["columns"] = list(cached.get("columns", []))
        out.append(item)
    return {"entities": out}


async def _datatable(entity: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    reg = _registry()
    try:
        entry = await reg.ensure_entity(entity)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    try:
        query = parse_datatable_query(payload, validate=True)
        scope = reg.scope_for(entity)
        _assert_columns_allowed(entity, query, entry)
        _assert_conditions_allowed(entity, scope, entry)
    except (ValueError, jsonschema.ValidationError) as e:
        message = e.message if isinstance(e, jsonschema.ValidationError) else str(e)
        raise HTTPException(status_code=400, detail=message)

    request = hydrate_object(payload)
    capped = _cap_page_size(entity, query.length, entry)
    if capped is not None:
        request["length"] = capped

    def _report(exc: BaseException) -> None:
        log.warning("DataTable request on %s failed: %s", entity, exc)

    handler = reg.handler_for(entity, on_error=_report)
    return await handler.select_to_datatable(request, scope)


@app.get("/datatable/{entity}", response_model=DataTableResponse, response_model_exclude_none=True)
async def datatable_get(entity: str, request: Request):
    return await _datatable(entity, dict(request.query_params))


@app.post("/datatable/{entity}", response_model=DataTableResponse, response_model_exclude_none=True)
async def datatable_post(entity: str, payload: Dict[str, Any] = Body(..., description="DataTable request")):
    return await _datatable(entity, payload)


@app.post("/cache/flush")
def flush_cache():
    if DB is None:
        raise HTTPException(status_code=503, detail="Service not initialised")
    DB.clear_cache()
    return {"flushed": True}


@app.post("/reload")
async def reload_registry():
    try:
        summary = await _registry().refresh_all()
        return {"reloaded": summary}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
