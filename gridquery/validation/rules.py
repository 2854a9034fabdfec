from typing import Any, Optional, Sequence

from ..config import GLOBAL_MAX_PAGE_SIZE
from ..filters import DataTableQuery, FieldCondition, parse_condition_items
from ..registry import RegistryEntry


def _allowed(reg: RegistryEntry) -> set[str]:
    return {c.upper() for c in reg["columns"]}


def _assert_columns_allowed(entity: str, query: DataTableQuery, reg: RegistryEntry) -> None:
    # column names from the request end up as quoted identifiers, so they
    # must be real columns of the table
    allowed = _allowed(reg)
    for c in query.columns:
        if c.data and c.data.upper() not in allowed:
            raise ValueError(f"Column not allowed for {entity}: {c.data}")


def _assert_conditions_allowed(entity: str, items: Sequence[Any], reg: RegistryEntry) -> None:
    allowed = _allowed(reg)
    for item in parse_condition_items(items):
        if isinstance(item, FieldCondition) and item.field.upper() not in allowed:
            raise ValueError(f"Condition field not allowed for {entity}: {item.field}")


def _cap_page_size(entity: str, length: Optional[int], reg: RegistryEntry) -> Optional[int]:
    """-1 (all rows) and a missing length pass through; positive sizes are capped."""
    cap = int(reg.get("maxPageSize", GLOBAL_MAX_PAGE_SIZE))
    if length is None or length < 0:
        return length
    return min(length, cap)
