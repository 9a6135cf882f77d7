from __future__ import annotations

"""TOML writer.

Lakebump rewrites lakefiles in a canonical layout rather than editing them in
place: comments and original formatting are not preserved.

Layout of every table:
- plain `key = value` lines first
- then sub-tables (`[dotted.path]`) and arrays of tables
  (repeated `[[dotted.path]]`), in key order

Keys keep their insertion order. `None` values in tables are omitted.
"""

import json
import math
import re
from datetime import date, datetime, time
from typing import Any, Iterator, Mapping, Sequence

from .errors import TomlDepthError, TomlTypeError

DEFAULT_MAX_DEPTH = 1000

_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


def toml_basic_string(s: str) -> str:
    """Quote a string as a TOML basic string.

    We use JSON encoding for predictable escaping + double quotes. JSON leaves
    DEL alone, TOML does not.
    """

    if not isinstance(s, str):
        raise TomlTypeError("toml_basic_string: expected str")
    return json.dumps(s, ensure_ascii=False).replace("\x7f", "\\u007f")


def toml_key(k: str) -> str:
    if not isinstance(k, str):
        raise TomlTypeError("toml_key: keys must be strings")
    return k if _BARE_KEY.match(k) else toml_basic_string(k)


def toml_bool(v: bool) -> str:
    if not isinstance(v, bool):
        raise TomlTypeError("toml_bool: expected bool")
    return "true" if v else "false"


def toml_int(v: int) -> str:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TomlTypeError("toml_int: expected int")
    return str(v)


def toml_float(v: float) -> str:
    if math.isnan(v):
        return "nan"
    if math.isinf(v):
        return "inf" if v > 0 else "-inf"
    return repr(v)


def toml_datetime(v: date | time) -> str:
    # Offset and local date-times, local dates and local times all use ISO 8601.
    return v.isoformat()


def _check_depth(depth: int) -> None:
    if depth == 0:
        raise TomlDepthError("Could not stringify the object: maximum object depth exceeded")


def _toml_scalar(v: Any) -> str:
    if isinstance(v, bool):
        return toml_bool(v)
    if isinstance(v, int):
        return toml_int(v)
    if isinstance(v, float):
        return toml_float(v)
    if isinstance(v, str):
        return toml_basic_string(v)
    if isinstance(v, (datetime, date, time)):
        return toml_datetime(v)
    raise TomlTypeError(f"cannot serialize values of type '{type(v).__name__}'")


def _is_inline_container(v: Any) -> bool:
    return isinstance(v, (Mapping, list, tuple))


def _inline_entries(v: Mapping[str, Any] | Sequence[Any]) -> Iterator[tuple[str, Any]]:
    if isinstance(v, Mapping):
        for k, item in v.items():
            if item is None:
                raise TomlTypeError("inline tables cannot contain None values")
            yield f"{toml_key(k)} = ", item
    else:
        for item in v:
            if item is None:
                raise TomlTypeError("arrays cannot contain None values")
            yield "", item


class _OpenInline:
    """An array or inline table whose entries are still being formatted."""

    __slots__ = ("entries", "parts", "depth", "is_table", "prefix")

    def __init__(self, v: Mapping[str, Any] | Sequence[Any], depth: int) -> None:
        self.entries = _inline_entries(v)
        self.parts: list[str] = []
        self.depth = depth
        self.is_table = isinstance(v, Mapping)
        # `key = ` of the entry currently open below this one.
        self.prefix = ""

    def close(self) -> str:
        if not self.parts:
            return "{}" if self.is_table else "[]"
        body = ", ".join(self.parts)
        return f"{{ {body} }}" if self.is_table else f"[ {body} ]"


def _format_inline(root: _OpenInline) -> str:
    # Iterative so nesting is bounded by `depth`, not the recursion limit.
    stack = [root]
    while True:
        top = stack[-1]
        entry = next(top.entries, None)
        if entry is None:
            stack.pop()
            text = top.close()
            if not stack:
                return text
            parent = stack[-1]
            parent.parts.append(parent.prefix + text)
            continue

        prefix, item = entry
        _check_depth(top.depth - 1)
        if _is_inline_container(item):
            top.prefix = prefix
            stack.append(_OpenInline(item, top.depth - 1))
        else:
            top.parts.append(prefix + _toml_scalar(item))


def toml_value(v: Any, depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Format any value that can appear on the right of `key = `."""

    _check_depth(depth)
    if _is_inline_container(v):
        return _format_inline(_OpenInline(v, depth))
    return _toml_scalar(v)


def toml_inline_table(tbl: Mapping[str, Any], depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Format a TOML inline table like `{ a = 1, b = "x" }`."""

    return _format_inline(_OpenInline(tbl, depth))


def toml_array(items: Sequence[Any], depth: int = DEFAULT_MAX_DEPTH) -> str:
    return _format_inline(_OpenInline(items, depth))


def _is_array_of_tables(v: Any) -> bool:
    return isinstance(v, (list, tuple)) and len(v) > 0 and all(isinstance(x, Mapping) for x in v)


class _OpenTable:
    """A `[table]` section whose sub-tables are still being written."""

    __slots__ = ("steps", "preamble", "tables", "depth", "header")

    def __init__(self, tbl: Mapping[str, Any], prefix: str, depth: int) -> None:
        self.preamble = ""
        self.tables = ""
        self.depth = depth
        # Header of the sub-table currently open below this one.
        self.header = ""
        self.steps = self._walk(tbl, prefix)

    def _walk(self, tbl: Mapping[str, Any], prefix: str) -> Iterator[tuple[str, Mapping[str, Any], str]]:
        """Write plain values into the preamble; yield each sub-table to open."""

        for k, v in tbl.items():
            if v is None:
                continue
            key = toml_key(k)
            path = f"{prefix}.{key}" if prefix else key
            if _is_array_of_tables(v):
                _check_depth(self.depth - 1)
                for item in v:
                    yield f"[[{path}]]\n", item, path
            elif isinstance(v, Mapping):
                yield f"[{path}]\n", v, path
            else:
                self.preamble += f"{key} = {toml_value(v, self.depth)}\n"

    def close(self) -> str:
        return f"{self.preamble}\n{self.tables}".strip()


def _stringify_table(tbl: Mapping[str, Any], prefix: str, depth: int) -> str:
    _check_depth(depth)
    stack = [_OpenTable(tbl, prefix, depth)]
    while True:
        top = stack[-1]
        step = next(top.steps, None)
        if step is None:
            stack.pop()
            text = top.close()
            if not stack:
                return text
            parent = stack[-1]
            parent.tables += parent.header + text + "\n\n"
            continue

        header, child, path = step
        _check_depth(top.depth - 1)
        top.header = header
        stack.append(_OpenTable(child, path, top.depth - 1))


def stringify_toml(doc: Mapping[str, Any], *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Serialize a document in canonical layout (no trailing newline).

    Raises `TomlTypeError` for values with no TOML form (including `None`
    inside arrays) and `TomlDepthError` past `max_depth` levels of nesting.
    """

    if not isinstance(doc, Mapping):
        raise TomlTypeError("stringify_toml can only be called with a mapping")
    return _stringify_table(doc, "", max_depth)
