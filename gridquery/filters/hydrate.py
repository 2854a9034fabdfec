# gridquery/filters/hydrate.py
from __future__ import annotations
from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional, Union
import re

# Segments are runs of anything but brackets and single quotes:
#   "columns[0][search][value]" -> ["columns", "0", "search", "value"]
_SEGMENT_RE = re.compile(r"[^\[\]']+")
_INDEX_RE = re.compile(r"^\d+$")

# Larger indices are kept as mapping keys so a hostile key cannot allocate a huge list.
MAX_ARRAY_INDEX = 1000

Container = Union[Dict[str, Any], List[Any]]


def _is_index(segment: str) -> bool:
    return bool(_INDEX_RE.match(segment)) and int(segment) <= MAX_ARRAY_INDEX


def _lookup(container: Container, key: str) -> Any:
    if isinstance(container, list):
        idx = int(key)
        return container[idx] if idx < len(container) else None
    return container.get(key)


def _assign(container: Container, key: str, value: Any) -> None:
    if isinstance(container, list):
        idx = int(key)
        if idx >= len(container):
            container.extend([None] * (idx + 1 - len(container)))
        container[idx] = value
    else:
        container[key] = value


def _promote(items: List[Any]) -> Dict[str, Any]:
    """A list that receives a non-numeric key becomes a mapping of its indices."""
    return {str(i): v for i, v in enumerate(items) if v is not None}


def hydrate_object(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert a flat, bracket-notated mapping into a nested structure.

        {"columns[0][data]": "id", "draw": "1"}
        -> {"columns": [{"data": "id"}], "draw": "1"}

    The container created for a segment is a list when the NEXT segment is a
    decimal index, a dict otherwise. Keys without segments are skipped and the
    last write wins. Values that are already nested are copied through.
    """
    result: Dict[str, Any] = {}
    for raw_key, value in (flat or {}).items():
        segments = _SEGMENT_RE.findall(str(raw_key))
        if not segments:
            continue

        parent: Optional[Container] = None
        parent_key = ""
        current: Container = result
        last = len(segments) - 1
        for i, seg in enumerate(segments):
            if isinstance(current, list) and not _is_index(seg):
                current = _promote(current)
                _assign(parent, parent_key, current)  # type: ignore[arg-type]
            if i == last:
                _assign(current, seg, deepcopy(value))
                break
            child = _lookup(current, seg)
            if not isinstance(child, (dict, list)):
                child = [] if _is_index(segments[i + 1]) else {}
                _assign(current, seg, child)
            parent, parent_key, current = current, seg, child
    return result


def flatten_object(nested: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Inverse of hydrate_object for structures with scalar leaves:
    {"search": {"value": "x"}} -> {"search[value]": "x"}.
    Empty containers have no flat form and are dropped.
    """
    out: Dict[str, Any] = {}

    def walk(prefix: str, node: Any) -> None:
        if isinstance(node, Mapping):
            pairs = [(str(k), v) for k, v in node.items()]
        elif isinstance(node, (list, tuple)):
            pairs = [(str(i), v) for i, v in enumerate(node)]
        else:
            out[prefix] = node
            return
        for k, v in pairs:
            walk(f"{prefix}[{k}]" if prefix else k, v)

    walk("", nested)
    return out


__all__ = ["hydrate_object", "flatten_object", "MAX_ARRAY_INDEX"]
