# gridquery/filters/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import json

import jsonschema

from ..errors import ValidationError
from .hydrate import MAX_ARRAY_INDEX, hydrate_object

# ---------------------------------------------------------------------------
# Condition items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Keyword:
    """
    A literal SQL token placed between conditions (AND, OR, NOT, parentheses).
    Always stored upper-cased.
    """
    token: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "token", str(self.token).strip().upper())


@dataclass(frozen=True)
class FieldCondition:
    """
    One comparison: `field` operator <placeholder>, with `value` bound.
    The field name is interpolated, so it must come from trusted config.
    """
    field: str
    value: Any = None
    operator: str = "="


ConditionItem = Union[Keyword, FieldCondition]

AND = Keyword("AND")
OR = Keyword("OR")
NOT = Keyword("NOT")


def parse_condition_item(item: Any) -> Optional[ConditionItem]:
    """
    Accepts:
      - Keyword / FieldCondition      -> returned as-is
      - 'and'                         -> Keyword('AND')
      - {'tenant_id': 7}              -> FieldCondition('tenant_id', 7, '=')
      - {'name': 'a%', 'operator': 'LIKE'}
    A mapping with no field key yields None.
    """
    if isinstance(item, (Keyword, FieldCondition)):
        return item
    if isinstance(item, str):
        return Keyword(item)
    if isinstance(item, Mapping):
        key = next((k for k in item.keys() if k != "operator"), None)
        if key is None:
            return None
        return FieldCondition(str(key), item[key], str(item.get("operator") or "="))
    raise ValidationError(f"Unsupported condition item: {item!r}")


def parse_condition_items(items: Optional[Iterable[Any]]) -> List[ConditionItem]:
    out: List[ConditionItem] = []
    for item in items or []:
        parsed = parse_condition_item(item)
        if parsed is not None:
            out.append(parsed)
    return out


# ---------------------------------------------------------------------------
# DataTable request descriptor
# ---------------------------------------------------------------------------

def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def _as_int(value: Any, default: int = 0) -> int:
    """Strict integer parse; blanks and None give `default`."""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return default
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {value!r}")
    return int(str(value).strip())


def _lenient_int(value: Any, default: int = 0) -> int:
    try:
        return _as_int(value, default)
    except (TypeError, ValueError):
        return default


def _as_items(value: Any) -> List[Any]:
    """
    Hydrated arrays may arrive as lists (with gaps) or promoted dicts.
    A promoted dict is laid back out by index: numeric keys at their
    position (gaps as None), larger indices in numeric order after them,
    then the non-numeric keys in insertion order.
    """
    if isinstance(value, Mapping):
        numbered = sorted(((int(k), v) for k, v in value.items() if str(k).isdecimal()), key=lambda p: p[0])
        named = [v for k, v in value.items() if not str(k).isdecimal()]
        small = [(i, v) for i, v in numbered if i <= MAX_ARRAY_INDEX]
        items: List[Any] = [None] * (small[-1][0] + 1 if small else 0)
        for i, v in small:
            items[i] = v
        items.extend(v for i, v in numbered if i > MAX_ARRAY_INDEX)
        return items + named
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


@dataclass(frozen=True)
class Search:
    value: str = ""
    regex: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "Search":
        if not isinstance(data, Mapping):
            return cls()
        raw = data.get("value")
        return cls(value="" if raw is None else str(raw), regex=_as_bool(data.get("regex")))


@dataclass(frozen=True)
class Order:
    column: int = -1
    dir: str = ""

    @property
    def direction(self) -> str:
        return "ASC" if self.dir.strip().lower() == "asc" else "DESC"

    @classmethod
    def from_dict(cls, data: Any) -> "Order":
        if not isinstance(data, Mapping):
            return cls()
        return cls(column=_lenient_int(data.get("column"), -1), dir=str(data.get("dir") or ""))


@dataclass(frozen=True)
class Column:
    data: str = ""
    searchable: bool = False
    orderable: bool = False
    search: Search = field(default_factory=Search)

    @classmethod
    def from_dict(cls, data: Any) -> "Column":
        if not isinstance(data, Mapping):
            return cls()
        raw = data.get("data")
        return cls(
            data="" if raw is None else str(raw),
            searchable=_as_bool(data.get("searchable")),
            orderable=_as_bool(data.get("orderable")),
            search=Search.from_dict(data.get("search")),
        )


@dataclass(frozen=True)
class DataTableQuery:
    """
    Structured DataTable request. `length` is None when the client sent none
    and -1 when it asked for every row.
    """
    draw: int = 0
    start: int = 0
    length: Optional[int] = None
    search: Search = field(default_factory=Search)
    order: Tuple[Order, ...] = ()
    columns: Tuple[Column, ...] = ()

    @property
    def searchable_columns(self) -> List[Column]:
        return [c for c in self.columns if c.data and c.searchable]

    def column_at(self, index: int) -> Optional[Column]:
        if 0 <= index < len(self.columns):
            return self.columns[index]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "draw": self.draw,
            "start": self.start,
            "length": self.length,
            "search": {"value": self.search.value, "regex": self.search.regex},
            "order": [{"column": o.column, "dir": o.dir} for o in self.order],
            "columns": [
                {
                    "data": c.data,
                    "searchable": c.searchable,
                    "orderable": c.orderable,
                    "search": {"value": c.search.value, "regex": c.search.regex},
                }
                for c in self.columns
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataTableQuery":
        length = data.get("length")
        return cls(
            draw=_lenient_int(data.get("draw"), 0),
            start=max(_as_int(data.get("start"), 0), 0),
            length=None if length is None or length == "" else _as_int(length),
            search=Search.from_dict(data.get("search")),
            order=tuple(Order.from_dict(o) for o in _as_items(data.get("order"))),
            columns=tuple(Column.from_dict(c) for c in _as_items(data.get("columns"))),
        )


# ---------------------------------------------------------------------------
# JSON Schema for the hydrated wire request
# ---------------------------------------------------------------------------

_INTISH = {"oneOf": [{"type": "integer"}, {"type": "string", "pattern": r"^\s*-?\d*\s*$"}]}
_BOOLISH = {"oneOf": [{"type": "boolean"}, {"type": "string"}]}
_SEARCH = {
    "type": "object",
    "properties": {
        "value": {"type": ["string", "number", "null"]},
        "regex": _BOOLISH,
    },
}

DATATABLE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://example.com/datatable.schema.json",
    "title": "DataTable Request",
    "type": "object",
    "properties": {
        "draw": _INTISH,
        "start": _INTISH,
        "length": _INTISH,
        "search": _SEARCH,
        "order": {
            "type": "array",
            "items": {
                "type": ["object", "null"],
                "properties": {
                    "column": _INTISH,
                    "dir": {"type": "string"},
                },
            },
        },
        "columns": {
            "type": "array",
            "items": {
                "type": ["object", "null"],
                "properties": {
                    "data": {"type": ["string", "integer", "null"]},
                    "searchable": _BOOLISH,
                    "orderable": _BOOLISH,
                    "search": _SEARCH,
                },
            },
        },
    },
}


def parse_datatable_query(
    payload: Union[str, Mapping[str, Any]],
    *,
    validate: bool = True,
) -> DataTableQuery:
    """
    Accept a JSON string or a flat/nested mapping and return a DataTableQuery.
    Raises jsonschema.ValidationError when `validate` is set and the hydrated
    request does not match DATATABLE_SCHEMA.
    """
    data = json.loads(payload) if isinstance(payload, str) else payload
    hydrated = hydrate_object(data)
    if validate:
        jsonschema.validate(instance=hydrated, schema=DATATABLE_SCHEMA)
    return DataTableQuery.from_dict(hydrated)


__all__ = [
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
