from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from .database import Database
from .errors import QueryExecutionError, Result, ValidationError, err
from .filters import DataTableQuery, hydrate_object
from .query import (
    build_datatable_queries,
    build_delete,
    build_insert,
    build_select,
    build_select_by,
    build_update,
)

log = logging.getLogger("gridquery.handler")

ErrorCallback = Callable[[BaseException], Any]


def _safe_draw(raw: Any) -> int:
    try:
        return int(str(raw).strip()) if raw not in (None, "") else 0
    except (TypeError, ValueError):
        return 0


def _total(result: Result) -> int:
    """COUNT(*) AS total -> int; an Err result raises."""
    rows = result.unwrap()
    if not rows:
        raise QueryExecutionError("Count query returned no rows")
    return int(rows[0]["total"])


class DatabaseHandler:
    """
    Table-scoped CRUD and DataTable queries on top of a Database.

    `table` and `expression` come from code or configuration, never from a
    request. `on_error` is called with the exception whenever a DataTable
    request degrades to an error response; for a failed statement that is the
    driver's exception. An on_error that raises is logged and ignored.
    """

    def __init__(
        self,
        database: Database,
        table: str,
        expression: str = "",
        *,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.db = database
        self.table = table
        self.expression = expression
        self.on_error = on_error

    def _report(self, exc: Exception) -> None:
        if self.on_error is None:
            return
        # driver failures reach the callback as the driver's own exception
        cause = exc.__cause__ if isinstance(exc, QueryExecutionError) else None
        try:
            self.on_error(cause if cause is not None else exc)
        except Exception:
            log.exception("on_error callback failed for %s", self.table)

    @property
    def paramstyle(self) -> str:
        return self.db.paramstyle

    async def execute_query(self, sql: str, params: Optional[Sequence[Any]] = None) -> Result:
        return await self.db.query(sql, params)

    async def get_schema(self) -> Result:
        return await self.db.get_table_schema(self.table)

    # ------------------------------------------------------------------
    # DataTable
    # ------------------------------------------------------------------
    async def select_to_datatable(
        self,
        raw_query: Mapping[str, Any],
        strict_condition: Sequence[Any] = (),
    ) -> Dict[str, Any]:
        """
        Answer one DataTable request: total count under the strict condition,
        filtered count and one page of rows under strict condition + search.

        Never raises. On any failure the registered on_error callback gets the
        exception and the response carries zero counts, no data and `error`.
        """
        draw = _safe_draw((raw_query or {}).get("draw"))
        try:
            hydrated = hydrate_object(raw_query or {})
            draw = _safe_draw(hydrated.get("draw"))
            query = DataTableQuery.from_dict(hydrated)

            plan = build_datatable_queries(
                query,
                strict_condition,
                table=self.table,
                expression=self.expression,
                paramstyle=self.paramstyle,
            )

            records_total = _total(await self.execute_query(plan.total.sql, plan.total.bindings))
            records_filtered = _total(await self.execute_query(plan.filtered.sql, plan.filtered.bindings))
            data = (await self.execute_query(plan.data.sql, plan.data.bindings)).unwrap()

            return {
                "draw": query.draw,
                "recordsTotal": records_total,
                "recordsFiltered": records_filtered,
                "data": list(data),
            }
        except Exception as e:
            log.exception("select_to_datatable failed on %s", self.table)
            self._report(e)
            return {
                "draw": draw,
                "recordsTotal": 0,
                "recordsFiltered": 0,
                "data": [],
                "error": str(e),
            }

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    async def select_by(self, params: Optional[Mapping[str, Any]] = None) -> Result:
        """Equality-AND over every key of `params`; no params selects every row."""
        stmt = build_select_by(self.table, params, expression=self.expression, paramstyle=self.paramstyle)
        return await self.execute_query(stmt.sql, stmt.bindings)

    async def select(
        self,
        params: Optional[Sequence[Any]] = None,
        clauses: Optional[Mapping[str, Any]] = None,
    ) -> Result:
        try:
            stmt = build_select(
                self.table,
                params,
                clauses,
                expression=self.expression,
                paramstyle=self.paramstyle,
            )
        except ValidationError as e:
            return err(e)
        return await self.execute_query(stmt.sql, stmt.bindings)

    async def insert(self, params: Mapping[str, Any]) -> Result:
        try:
            stmt = build_insert(self.table, params, paramstyle=self.paramstyle)
        except ValidationError as e:
            return err(e)
        return await self.execute_query(stmt.sql, stmt.bindings)

    async def update(self, params: Mapping[str, Any], *, use_regex: bool = False) -> Result:
        """params = {'set': {...}, 'where': {...}}; REGEXP replaces = in WHERE when use_regex."""
        try:
            if not isinstance(params, Mapping):
                raise ValidationError("update() expects {'set': ..., 'where': ...}")
            stmt = build_update(
                self.table,
                params.get("set") or {},
                params.get("where") or {},
                use_regex=use_regex,
                paramstyle=self.paramstyle,
            )
        except ValidationError as e:
            return err(e)
        return await self.execute_query(stmt.sql, stmt.bindings)

    async def delete(self, conditions: Mapping[str, Any]) -> Optional[Result]:
        """Returns None, without touching the database, when `conditions` is empty."""
        stmt = build_delete(self.table, conditions or {}, paramstyle=self.paramstyle)
        if stmt is None:
            log.debug("delete() on %s with no conditions ignored", self.table)
            return None
        return await self.execute_query(stmt.sql, stmt.bindings)


__all__ = ["DatabaseHandler", "ErrorCallback"]
