from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..errors import ValidationError
from ..filters import ConditionItem, FieldCondition, Keyword, parse_condition_items

DEFAULT_PARAMSTYLE = "format"
_PLACEHOLDERS = {"format": "%s", "qmark": "?"}

# Verbatim clause keys accepted by build_select, in emission order.
SELECT_CLAUSES = (
    ("GROUPBY", "GROUP BY"),
    ("HAVING", "HAVING"),
    ("ORDERBY", "ORDER BY"),
    ("LIMIT", "LIMIT"),
    ("OFFSET", "OFFSET"),
)


def quote_identifier(name: str) -> str:
    """
    Backtick-quote one identifier. Doubles internal backticks.
    """
    return "`" + str(name).replace("`", "``") + "`"


def quote_table(name: str) -> str:
    """
    Quote a possibly dotted table name (e.g., db.table) segment by segment.
    """
    parts = [p.strip().strip("`") for p in str(name).split(".")]
    return ".".join(quote_identifier(p) for p in parts)


def select_list(expression: Optional[str]) -> str:
    """
    '*' plus the handler's extra select fragment. A leading comma on the
    fragment is tolerated so both 'a AS b' and ', a AS b' work.
    """
    fields = ["*"]
    extra = (expression or "").strip()
    if extra.startswith(","):
        extra = extra[1:].strip()
    if extra:
        fields.append(extra)
    return ", ".join(fields)


class ParamSink:
    """
    Collects bindings and returns the placeholder for the paramstyle.
      - 'format' -> %s  (aiomysql / PyMySQL)
      - 'qmark'  -> ?   (sqlite3 and friends)
    """
    def __init__(self, paramstyle: str = DEFAULT_PARAMSTYLE):
        if paramstyle not in _PLACEHOLDERS:
            raise ValueError("paramstyle must be 'format' or 'qmark'")
        self.paramstyle = paramstyle
        self.placeholder = _PLACEHOLDERS[paramstyle]
        self.params: List[Any] = []

    def add(self, value: Any) -> str:
        self.params.append(value)
        return self.placeholder

    def extend(self, values: Iterable[Any]) -> None:
        self.params.extend(values)


@dataclass
class SqlFragment:
    sql: str
    bindings: List[Any] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.sql)


# -----------------------------------------------------------------------------
# Conditions
# -----------------------------------------------------------------------------
def _comparison(cond: FieldCondition, sink: ParamSink) -> str:
    return f"{quote_identifier(cond.field)} {cond.operator} {sink.add(cond.value)}"


def _render_items(items: Sequence[ConditionItem], sink: ParamSink, *, implicit_and: bool) -> str:
    tokens: List[str] = []
    prev_was_field = False
    for item in items:
        if isinstance(item, Keyword):
            tokens.append(item.token)
            prev_was_field = False
        elif isinstance(item, FieldCondition):
            if implicit_and and prev_was_field:
                tokens.append("AND")
            tokens.append(_comparison(item, sink))
            prev_was_field = True
        else:
            raise ValidationError(f"Unsupported condition item: {item!r}")
    return " ".join(tokens)


def build_strict_condition(items: Any, *, paramstyle: str = DEFAULT_PARAMSTYLE) -> SqlFragment:
    """
    Render caller-trusted condition items as one parenthesized fragment.

    Keywords are emitted verbatim (upper-cased) and field conditions as
    `field` OP <placeholder>; values are bound in encounter order. The caller
    places the connectives. Empty or non-sequence input gives an empty fragment.
    """
    if not isinstance(items, (list, tuple)) or not items:
        return SqlFragment("", [])
    sink = ParamSink(paramstyle)
    body = _render_items(parse_condition_items(items), sink, implicit_and=False)
    if not body:
        return SqlFragment("", [])
    return SqlFragment(f"({body})", sink.params)


def _equality_and(conditions: Mapping[str, Any], sink: ParamSink, operator: str = "=") -> str:
    return " AND ".join(f"{quote_identifier(k)} {operator} {sink.add(v)}" for k, v in conditions.items())


def where_sql(*parts: str) -> str:
    """'WHERE a AND b' from the non-empty parts, or '' when there are none."""
    body = " AND ".join(p for p in parts if p)
    return f"WHERE {body}" if body else ""


def _join(*parts: str) -> str:
    return " ".join(p for p in parts if p)


# -----------------------------------------------------------------------------
# CRUD statements
# -----------------------------------------------------------------------------
def build_count(table: str, where: SqlFragment) -> SqlFragment:
    sql = _join(f"SELECT COUNT(*) AS total FROM {quote_table(table)}", where_sql(where.sql))
    return SqlFragment(sql, list(where.bindings))


def build_select_by(
    table: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    expression: Optional[str] = None,
    paramstyle: str = DEFAULT_PARAMSTYLE,
) -> SqlFragment:
    sink = ParamSink(paramstyle)
    body = _equality_and(params, sink) if params else ""
    sql = _join(f"SELECT {select_list(expression)} FROM {quote_table(table)}", where_sql(body))
    return SqlFragment(sql, sink.params)


def build_select(
    table: str,
    params: Optional[Sequence[Any]] = None,
    clauses: Optional[Mapping[str, Any]] = None,
    *,
    expression: Optional[str] = None,
    paramstyle: str = DEFAULT_PARAMSTYLE,
) -> SqlFragment:
    """
    SELECT with an optional condition list and verbatim trailing clauses.

    `params` holds Keyword / FieldCondition items (or their loose dict/str
    forms). Adjacent field conditions are joined with AND; explicit keywords
    are kept as given. `clauses` may carry GROUPBY, HAVING, ORDERBY, LIMIT and
    OFFSET, all trusted and emitted verbatim.
    """
    if params is not None and not isinstance(params, (list, tuple)):
        raise ValidationError('"params" must be a list of condition items')
    sink = ParamSink(paramstyle)
    body = _render_items(parse_condition_items(params), sink, implicit_and=True) if params else ""

    clauses = clauses or {}
    tail = [f"{kw} {clauses[key]}" for key, kw in SELECT_CLAUSES if clauses.get(key) not in (None, "")]
    sql = _join(f"SELECT {select_list(expression)} FROM {quote_table(table)}", where_sql(body), *tail)
    return SqlFragment(sql, sink.params)


def build_insert(
    table: str,
    params: Mapping[str, Any],
    *,
    paramstyle: str = DEFAULT_PARAMSTYLE,
) -> SqlFragment:
    if not params:
        raise ValidationError("insert() needs at least one column")
    sink = ParamSink(paramstyle)
    cols = ", ".join(quote_identifier(k) for k in params)
    phs = ", ".join(sink.add(v) for v in params.values())
    return SqlFragment(f"INSERT INTO {quote_table(table)} ({cols}) VALUES ({phs})", sink.params)


def build_update(
    table: str,
    set_values: Mapping[str, Any],
    where: Mapping[str, Any],
    *,
    use_regex: bool = False,
    paramstyle: str = DEFAULT_PARAMSTYLE,
) -> SqlFragment:
    """
    UPDATE with a comma-joined SET list and an AND-joined WHERE.
    Bindings are SET values first, then WHERE values.
    """
    if not set_values:
        raise ValidationError("update() needs a non-empty 'set' mapping")
    if not where:
        raise ValidationError("update() needs a non-empty 'where' mapping")
    sink = ParamSink(paramstyle)
    set_sql = ", ".join(f"{quote_identifier(k)} = {sink.add(v)}" for k, v in set_values.items())
    where_body = _equality_and(where, sink, "REGEXP" if use_regex else "=")
    return SqlFragment(f"UPDATE {quote_table(table)} SET {set_sql} WHERE {where_body}", sink.params)


def build_delete(
    table: str,
    conditions: Mapping[str, Any],
    *,
    paramstyle: str = DEFAULT_PARAMSTYLE,
) -> Optional[SqlFragment]:
    """None when `conditions` is empty; never a table-wide DELETE."""
    if not conditions:
        return None
    sink = ParamSink(paramstyle)
    body = _equality_and(conditions, sink)
    return SqlFragment(f"DELETE FROM {quote_table(table)} WHERE {body}", sink.params)


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
]
