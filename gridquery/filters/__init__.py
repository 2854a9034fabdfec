"""
Request and condition models for the gridquery data service.

This module provides the DataTable request hydrator and descriptor models,
plus the tagged condition items used to build WHERE clauses.
"""

from .hydrate import (
    hydrate_object,
    flatten_object,
)
from .models import (
    Keyword,
    FieldCondition,
    ConditionItem,
    AND,
    OR,
    NOT,
    parse_condition_item,
    parse_condition_items,
    Search,
    Order,
    Column,
    DataTableQuery,
    DATATABLE_SCHEMA,
    parse_datatable_query,
)

__all__ = [
    "hydrate_object",
    "flatten_object",
    "Keyword",
    "FieldCondition",
    "ConditionItem",
    "AND",
    "OR",
    "NOT",
    "parse_condition_item",
    "parse_condition_items",
    "Search",
    "Order",
    "Column",
    "DataTableQuery",
    "DATATABLE_SCHEMA",
    "parse_datatable_query",
]
