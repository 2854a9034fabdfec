from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ..filters import Column, DataTableQuery, Search
from .builder import (
    DEFAULT_PARAMSTYLE,
    ParamSink,
    SqlFragment,
    build_count,
    build_strict_condition,
    quote_identifier,
    quote_table,
    select_list,
    where_sql,
)


@dataclass
class DataTablePlan:
    """The three statements answering one DataTable request."""
    total: SqlFragment
    filtered: SqlFragment
    data: SqlFragment


def _search_term(data: str, search: Search, sink: ParamSink) -> str:
    # REGEXP binds the raw pattern; LIKE binds a contains-pattern.
    if search.regex:
        return f"{quote_identifier(data)} REGEXP {sink.add(search.value)}"
    return f"{quote_identifier(data)} LIKE {sink.add(f'%{search.value}%')}"


def build_search_clauses(query: DataTableQuery, sink: ParamSink) -> List[str]:
    """
    Global search: one OR group over every searchable column.
    Column search: one term per searchable column with its own value.
    Bindings land in `sink` in the same order as the returned clauses.
    """
    clauses: List[str] = []
    if query.search.value != "":
        terms = [_search_term(c.data, query.search, sink) for c in query.searchable_columns]
        if terms:
            clauses.append("(" + " OR ".join(terms) + ")")
    for col in query.searchable_columns:
        if col.search.value != "":
            clauses.append(_search_term(col.data, col.search, sink))
    return clauses


def build_order_by(query: DataTableQuery) -> str:
    """Only the first order entry counts, and only for an orderable, named column."""
    if not query.order:
        return ""
    first = query.order[0]
    col: Optional[Column] = query.column_at(first.column)
    if col is None or not col.orderable or not col.data:
        return ""
    return f"ORDER BY {quote_identifier(col.data)} {first.direction}"


def build_limit(query: DataTableQuery) -> str:
    # length -1 (or any negative) means every matching row
    if query.length is None or query.length < 0:
        return ""
    return f"LIMIT {int(query.start)}, {int(query.length)}"


def build_datatable_queries(
    query: DataTableQuery,
    strict_condition: Sequence[Any] = (),
    *,
    table: str,
    expression: Optional[str] = None,
    paramstyle: str = DEFAULT_PARAMSTYLE,
) -> DataTablePlan:
    """
    Build total-count, filtered-count and data statements for a grid request.

    The strict condition is the permanent filter (e.g. tenant scoping) and is
    part of every statement; client search only narrows the filtered count
    and the data page. Identifiers from the request are quoted, every value
    is bound.
    """
    base = build_strict_condition(strict_condition, paramstyle=paramstyle)

    sink = ParamSink(paramstyle)
    sink.extend(base.bindings)
    search_clauses = build_search_clauses(query, sink)

    final_body = " AND ".join(p for p in [base.sql, " AND ".join(search_clauses)] if p)
    final = SqlFragment(final_body, list(sink.params))

    data_sql = " ".join(
        p
        for p in (
            f"SELECT {select_list(expression)} FROM {quote_table(table)}",
            where_sql(final.sql),
            build_order_by(query),
            build_limit(query),
        )
        if p
    )

    return DataTablePlan(
        total=build_count(table, base),
        filtered=build_count(table, final),
        data=SqlFragment(data_sql, list(final.bindings)),
    )


__all__ = [
    "DataTablePlan",
    "build_search_clauses",
    "build_order_by",
    "build_limit",
    "build_datatable_queries",
]
