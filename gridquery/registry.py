import json, time, typing as t
from pathlib import Path

import yaml

from .config import COLUMNS_CACHE_PATH, ENTITIES_PATH, GLOBAL_MAX_PAGE_SIZE
from .database import Database
from .filters import ConditionItem, parse_condition_items
from .handler import DatabaseHandler, ErrorCallback

class EntityMeta(t.TypedDict, total=False):
    table: str
    expression: str
    maxPageSize: int
    scope: list

class RegistryEntry(t.TypedDict):
    table: str
    columns: list[str]
    loadedAt: str
    maxPageSize: int

def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

def _column_names(rows: list) -> list[str]:
    return [str(r.get("column_name") or r.get("COLUMN_NAME")) for r in rows]

class Registry:
    """
    Entities exposed over HTTP. Each one maps a public name to a table, an
    optional extra select expression, a page-size cap and a scope (strict
    condition items always applied to its queries).
    """

    def __init__(
        self,
        db: Database,
        entities_path: Path = ENTITIES_PATH,
        cache_path: t.Optional[Path] = COLUMNS_CACHE_PATH,
    ):
        self.db = db
        self.entities_path = Path(entities_path)
        self.cache_path = Path(cache_path) if cache_path else None
        self.entities_cfg: dict[str, EntityMeta] = {}
        self.columns_cache: dict[str, RegistryEntry] = {}

    def load_entities(self) -> None:
        if not self.entities_path.exists():
            raise RuntimeError(f"Entity mapping file not found: {self.entities_path}")
        with self.entities_path.open("r", encoding="utf-8") as f:
            if self.entities_path.suffix.lower() in (".yaml", ".yml"):
                cfg = yaml.safe_load(f) or {}
            else:
                cfg = json.load(f)
        ents = cfg.get("entities", {}) or {}
        norm: dict[str, EntityMeta] = {}
        for k, v in ents.items():
            if not isinstance(v, dict) or "table" not in v:
                raise RuntimeError(f"Bad entity mapping for {k}: {v}")
            item: EntityMeta = {"table": str(v["table"])}
            if v.get("expression"):
                item["expression"] = str(v["expression"])
            if "maxPageSize" in v:
                item["maxPageSize"] = int(v["maxPageSize"])
            if v.get("scope"):
                # parse now so a bad scope fails at load time
                parse_condition_items(v["scope"])
                item["scope"] = list(v["scope"])
            norm[k] = item
        self.entities_cfg = norm

    def load_cache(self) -> None:
        if self.cache_path and self.cache_path.exists():
            with self.cache_path.open("r", encoding="utf-8") as f:
                self.columns_cache = json.load(f)
        else:
            self.columns_cache = {}

    def save_cache(self) -> None:
        if not self.cache_path:
            return
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.cache_path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(self.columns_cache, f, indent=2)
        tmp.replace(self.cache_path)

    def meta(self, name: str) -> EntityMeta:
        if name not in self.entities_cfg:
            raise KeyError(f"Unknown entity: {name}")
        return self.entities_cfg[name]

    def scope_for(self, name: str) -> list[ConditionItem]:
        return parse_condition_items(self.meta(name).get("scope"))

    def handler_for(self, name: str, *, on_error: t.Optional[ErrorCallback] = None) -> DatabaseHandler:
        cfg = self.meta(name)
        return DatabaseHandler(self.db, cfg["table"], cfg.get("expression", ""), on_error=on_error)

    async def _describe(self, name: str) -> RegistryEntry:
        cfg = self.meta(name)
        rows = (await self.handler_for(name).get_schema()).unwrap()
        if not rows:
            raise RuntimeError(f"Table {cfg['table']} for entity {name} has no columns (missing?)")
        return {
            "table": cfg["table"],
            "columns": _column_names(rows),
            "loadedAt": _now(),
            "maxPageSize": int(cfg.get("maxPageSize", GLOBAL_MAX_PAGE_SIZE)),
        }

    async def ensure_entity(self, name: str) -> RegistryEntry:
        cfg = self.meta(name)
        cached = self.columns_cache.get(name)
        if cached and cached.get("table") == cfg["table"]:
            return cached
        entry = await self._describe(name)
        self.columns_cache[name] = entry
        self.save_cache()
        return entry

    async def refresh_all(self) -> dict[str, str]:
        """Re-read the entities file and re-discover every table."""
        self.load_entities()
        self.db.clear_cache()
        summaries: dict[str, str] = {}
        for name in self.entities_cfg:
            try:
                entry = await self._describe(name)
                self.columns_cache[name] = entry
                summaries[name] = f"ok ({len(entry['columns'])} cols)"
            except Exception as e:
                summaries[name] = f"error: {e}"
        self.save_cache()
        return summaries
