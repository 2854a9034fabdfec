"""
Query building module for the gridquery data service.

This module provides parameterized SQL generation for CRUD statements and
DataTable (paginated/searched/sorted grid) requests.
"""

from .builder import (
    DEFAULT_PARAMSTYLE,
    ParamSink,
    SqlFragment,
    quote_identifier,
    quote_table,
    select_list,
    where_sql,
    build_strict_condition,
    build_count,
    build_select_by,
    build_select,
    build_insert,
    build_update,
    build_delete,
)
from .datatable import (
    DataTablePlan,
    build_search_clauses,
    build_order_by,
    build_limit,
    build_datatable_queries,
)

__all__ = [
    "DEFAULT_PARAMSTYLE",
    "ParamSink",
    "SqlFragment",
    "quote_identifier",
    "quote_table",
    "select_list",
    "where_sql",
    "build_strict_condition",
    "build_count",
    "build_select_by",
    "build_select",
    "build_insert",
    "build_update",
    "build_delete",
    "DataTablePlan",
    "build_search_clauses",
    "build_order_by",
    "build_limit",
    "build_datatable_queries",
]
