"""TOML document parser.

Returns the same Python shapes as stdlib `tomllib`: `dict`, `list`, `str`,
`int`, `float`, `bool`, and `datetime` / `date` / `time` for the four date
flavors (offset date-time, local date-time, local date, local time).

Every key tracks how it was introduced (dotted assignment, `[table]` header,
`[[array]]` header) so inconsistent redefinitions are rejected:

    a.b = 1
    [a]          # error: `a` was introduced by a dotted key

Nesting deeper than `max_depth` raises `TomlDepthError`.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from .errors import TomlDepthError, TomlSyntaxError

DEFAULT_MAX_DEPTH = 1000

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

_INT_RE = re.compile(r"^((0x[0-9a-fA-F](_?[0-9a-fA-F])*)|(([+-]|0[ob])?\d(_?\d)*))$")
_FLOAT_RE = re.compile(r"^[+-]?\d(_?\d)*(\.\d(_?\d)*)?([eE][+-]?\d(_?\d)*)?$")
_LEADING_ZERO_RE = re.compile(r"^[+-]?0[0-9_]")
_HEX_RE = re.compile(r"[0-9a-fA-F]+")
_BARE_KEY_RE = re.compile(r"[A-Za-z0-9_-]+")
_BARE_VALUE_RE = re.compile(r"[A-Za-z0-9_+\-.:]+")

_DATETIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})"
    r"(?:[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})?)?"
)
_TIME_RE = re.compile(r"(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?")

_ESCAPES = {
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "f": "\f",
    "r": "\r",
    '"': '"',
    "\\": "\\",
}

# How a key was introduced.
DOTTED = 0
EXPLICIT = 1
ARRAY = 2
ARRAY_DOTTED = 3


class _Node:
    __slots__ = ("kind", "defined", "index", "children")

    def __init__(self, kind: int) -> None:
        self.kind = kind
        self.defined = False
        self.index = 0
        self.children: dict[Any, _Node] = {}


class _OpenArray:
    __slots__ = ("items",)

    def __init__(self) -> None:
        self.items: list[Any] = []


class _OpenTable:
    """An inline table being parsed, and where its pending value goes."""

    __slots__ = ("items", "closed", "target", "key")

    def __init__(self) -> None:
        self.items: dict[str, Any] = {}
        # Tables given as values are closed; dotted keys may not extend them.
        self.closed: set[int] = set()
        self.target = self.items
        self.key = ""

    def store(self, value: Any) -> None:
        self.target[self.key] = value
        if isinstance(value, dict):
            self.closed.add(id(value))


def _is_control(c: str) -> bool:
    return (c < "\x20" and c != "\t") or c == "\x7f"


def _peek_table(
    keys: list[str], table: dict[str, Any], meta: dict[Any, _Node], kind: int
) -> tuple[str, dict[str, Any], dict[Any, _Node]] | None:
    """Walk (and create) the path `keys` for a declaration of `kind`.

    Returns `(last_key, owning_table, children_meta)`, or None when the
    declaration conflicts with how the path was introduced earlier.
    """

    t: Any = table
    m = meta
    k = ""
    has_own = False

    for i, part in enumerate(keys):
        if i:
            if not has_own:
                t[k] = {}
            t = t[k]
            state = m[k]
            m = state.children
            if kind == DOTTED and state.kind in (EXPLICIT, ARRAY):
                return None
            if state.kind == ARRAY:
                last = len(t) - 1
                t = t[last]
                m = m[last].children

        k = part
        has_own = k in t
        if has_own and k in m and m[k].kind == DOTTED and m[k].defined:
            return None
        if not has_own:
            m[k] = _Node(ARRAY_DOTTED if i < len(keys) - 1 and kind == ARRAY else kind)

    state = m[k]
    if state.kind != kind and not (kind == EXPLICIT and state.kind == ARRAY_DOTTED):
        return None

    if kind == ARRAY:
        if not state.defined:
            state.defined = True
            t[k] = []
        element: dict[str, Any] = {}
        t[k].append(element)
        t = element
        child = _Node(EXPLICIT)
        state.children[state.index] = child
        state.index += 1
        state = child

    if state.defined:
        return None
    state.defined = True

    if kind == EXPLICIT:
        if not has_own:
            t[k] = {}
        t = t[k]
    elif kind == DOTTED and has_own:
        return None

    return k, t, state.children


class _Parser:
    def __init__(self, src: str, max_depth: int) -> None:
        self.src = src
        self.max_depth = max_depth

    def error(self, msg: str, pos: int) -> TomlSyntaxError:
        return TomlSyntaxError(msg, self.src, pos)

    def char(self, pos: int) -> str:
        return self.src[pos] if pos < len(self.src) else ""

    def is_newline(self, pos: int) -> bool:
        c = self.char(pos)
        return c == "\n" or (c == "\r" and self.char(pos + 1) == "\n")

    # -- whitespace and comments -------------------------------------------

    def skip_comment(self, pos: int) -> int:
        """Skip a `#` comment, returning the index of its line break (or EOF)."""

        start = pos
        while pos < len(self.src):
            c = self.src[pos]
            if c == "\n" or (c == "\r" and self.char(pos + 1) == "\n"):
                return pos
            if pos > start and _is_control(c):
                raise self.error("control characters are not allowed in comments", pos)
            pos += 1
        return pos

    def skip_void(self, pos: int, *, newlines: bool = True, comments: bool = True) -> int:
        while True:
            c = self.char(pos)
            if c in (" ", "\t"):
                pos += 1
            elif newlines and self.is_newline(pos):
                pos += 2 if c == "\r" else 1
            elif comments and c == "#":
                pos = self.skip_comment(pos)
                if not newlines:
                    return pos
            else:
                return pos

    def skip_spaces(self, pos: int) -> int:
        return self.skip_void(pos, newlines=False, comments=False)

    # -- document ----------------------------------------------------------

    def parse(self) -> dict[str, Any]:
        res: dict[str, Any] = {}
        meta: dict[Any, _Node] = {}
        tbl = res
        m = meta

        pos = self.skip_void(0)
        while pos < len(self.src):
            if self.src[pos] == "[":
                is_array = self.char(pos + 1) == "["
                start = pos
                pos += 2 if is_array else 1
                keys, pos = self.parse_key(pos, end="]")
                if is_array:
                    if self.char(pos) != "]":
                        raise self.error("expected end of table declaration", pos)
                    pos += 1
                found = _peek_table(keys, res, meta, ARRAY if is_array else EXPLICIT)
                if found is None:
                    raise self.error("trying to redefine an already defined table or value", start)
                _, tbl, m = found
            else:
                start = pos
                keys, pos = self.parse_key(pos, end="=")
                found = _peek_table(keys, tbl, m, DOTTED)
                if found is None:
                    raise self.error("trying to redefine an already defined table or value", start)
                pos = self.skip_spaces(pos)
                value, pos = self.parse_value(pos)
                key, owner, _ = found
                owner[key] = value

            pos = self.skip_void(pos, newlines=False)
            if pos < len(self.src) and not self.is_newline(pos):
                raise self.error("each key-value declaration must be followed by an end-of-line", pos)
            pos = self.skip_void(pos)

        return res

    # -- keys --------------------------------------------------------------

    def parse_key(self, pos: int, *, end: str) -> tuple[list[str], int]:
        """Parse a (dotted) key ending with `end`; returns the parts and the index past `end`."""

        parts: list[str] = []
        while True:
            pos = self.skip_spaces(pos)
            c = self.char(pos)
            if c in ('"', "'"):
                if self.src.startswith(c * 3, pos):
                    raise self.error("multiline strings are not allowed in keys", pos)
                part, pos = self.parse_string(pos)
            else:
                match = _BARE_KEY_RE.match(self.src, pos)
                if match is None:
                    if c == "" or self.is_newline(pos) or c == end:
                        raise self.error("incomplete key-value: cannot find end of key", pos)
                    raise self.error("only letter, numbers, dashes and underscores are allowed in keys", pos)
                part, pos = match.group(), match.end()
            parts.append(part)

            pos = self.skip_spaces(pos)
            c = self.char(pos)
            if c == ".":
                pos += 1
            elif c == end:
                return parts, pos + 1
            elif c == "" or self.is_newline(pos):
                raise self.error("incomplete key-value: cannot find end of key", pos)
            else:
                raise self.error("found extra tokens after the key part", pos)

    # -- values ------------------------------------------------------------

    def parse_value(self, pos: int) -> tuple[Any, int]:
        """Parse the value at `pos`.

        Arrays and inline tables are walked with an explicit stack of open
        containers, so nesting is bounded by `max_depth` and not by the
        interpreter's recursion limit.
        """

        stack: list[_OpenArray | _OpenTable] = []
        while True:
            if len(stack) >= self.max_depth:
                raise TomlDepthError(
                    f"document contains excessively nested structures (max depth {self.max_depth})"
                )

            value: Any
            c = self.char(pos)
            if c == "[":
                stack.append(_OpenArray())
                pos, closed = self.next_element(pos + 1)
                if not closed:
                    continue
                value = stack.pop().items
            elif c == "{":
                table = _OpenTable()
                stack.append(table)
                pos = self.skip_spaces(pos + 1)
                if self.char(pos) != "}":
                    pos = self.next_entry(table, pos)
                    continue
                value = stack.pop().items
                pos += 1
            elif c in ('"', "'"):
                value, pos = self.parse_string(pos)
            elif c == "" or c == "#" or self.is_newline(pos):
                raise self.error("incomplete key-value declaration: no value specified", pos)
            else:
                value, pos = self.parse_scalar(pos)

            # Hand the value to the innermost open container, closing every
            # container it completes.
            while stack:
                top = stack[-1]
                if isinstance(top, _OpenArray):
                    top.items.append(value)
                    pos = self.skip_void(pos)
                    c = self.char(pos)
                    if c == ",":
                        pos, closed = self.next_element(pos + 1)
                        if not closed:
                            break
                    elif c == "]":
                        pos += 1
                    elif c == "":
                        raise self.error("unfinished array encountered", pos)
                    else:
                        raise self.error("unexpected character encountered", pos)
                else:
                    top.store(value)
                    pos = self.skip_spaces(pos)
                    c = self.char(pos)
                    if c == ",":
                        pos = self.next_entry(top, pos + 1)
                        break
                    if c == "":
                        raise self.error("unfinished table encountered", pos)
                    if c != "}":
                        self._check_inline_char(c, pos)
                        raise self.error("unexpected character encountered", pos)
                    pos += 1
                value = stack.pop().items

            if not stack:
                return value, pos

    def next_element(self, pos: int) -> tuple[int, bool]:
        """Move to the next array element; True when the array closes instead."""

        pos = self.skip_void(pos)
        c = self.char(pos)
        if c == "":
            raise self.error("unfinished array encountered", pos)
        if c == "]":
            return pos + 1, True
        if c == ",":
            raise self.error("expected value, found comma", pos)
        return pos, False

    def next_entry(self, table: _OpenTable, pos: int) -> int:
        """Parse the key of the next inline-table entry; returns where its value starts."""

        pos = self.skip_spaces(pos)
        c = self.char(pos)
        if c == "":
            raise self.error("unfinished table encountered", pos)
        if c == "}":
            raise self.error("trailing commas are not allowed in inline tables", pos)
        self._check_inline_char(c, pos)
        if c == ",":
            raise self.error("expected key-value, found comma", pos)

        start = pos
        keys, pos = self.parse_key(pos, end="=")
        target: dict[str, Any] = table.items
        for part in keys[:-1]:
            existing = target.get(part)
            if existing is None:
                existing = target[part] = {}
            elif not isinstance(existing, dict) or id(existing) in table.closed:
                raise self.error("trying to redefine an already defined value", start)
            target = existing
        if keys[-1] in target:
            raise self.error("trying to redefine an already defined value", start)

        table.target = target
        table.key = keys[-1]
        return self.skip_spaces(pos)

    def _check_inline_char(self, c: str, pos: int) -> None:
        if c == "\n" or c == "\r":
            raise self.error("newlines are not allowed in inline tables", pos)
        if c == "#":
            raise self.error("inline tables cannot contain comments", pos)

    # -- strings -----------------------------------------------------------

    def parse_string(self, pos: int) -> tuple[str, int]:
        delim = self.src[pos]
        literal = delim == "'"
        multiline = self.src.startswith(delim * 3, pos)

        if multiline:
            pos += 3
            if self.char(pos) == "\r" and self.char(pos + 1) == "\n":
                pos += 2
            elif self.char(pos) == "\n":
                pos += 1
        else:
            pos += 1

        out: list[str] = []
        while True:
            c = self.char(pos)
            if c == "":
                raise self.error("unfinished string encountered", pos)

            if c == delim:
                if not multiline:
                    return "".join(out), pos + 1
                run = 0
                while self.char(pos + run) == delim:
                    run += 1
                if run >= 3:
                    if run > 5:
                        raise self.error("unexpected character encountered", pos + 5)
                    # Up to two quotes may sit right before the closing delimiter.
                    out.append(delim * (run - 3))
                    return "".join(out), pos + run
                out.append(delim * run)
                pos += run
                continue

            if self.is_newline(pos):
                if not multiline:
                    raise self.error("newlines are not allowed in strings", pos)
                out.append("\r\n" if c == "\r" else "\n")
                pos += 2 if c == "\r" else 1
                continue

            if _is_control(c):
                raise self.error("control characters are not allowed in strings", pos)

            if c == "\\" and not literal:
                text, pos = self.parse_escape(pos, multiline)
                out.append(text)
                continue

            out.append(c)
            pos += 1

    def parse_escape(self, pos: int, multiline: bool) -> tuple[str, int]:
        start = pos
        c = self.char(pos + 1)
        pos += 2

        if c in ("u", "U"):
            size = 4 if c == "u" else 8
            code = self.src[pos : pos + size]
            if len(code) != size or not _HEX_RE.fullmatch(code):
                raise self.error("invalid unicode escape", start)
            value = int(code, 16)
            if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
                raise self.error("invalid unicode escape", start)
            return chr(value), pos + size

        if multiline and c in (" ", "\t", "\n", "\r"):
            # Line-ending backslash: drop the break and the leading whitespace
            # of the following lines.
            pos = self.skip_spaces(pos - 1)
            if not self.is_newline(pos):
                raise self.error("invalid escape: only line-ending whitespace may be escaped", start)
            while True:
                nxt = self.skip_spaces(pos)
                if not self.is_newline(nxt):
                    return "", nxt
                pos = nxt + (2 if self.char(nxt) == "\r" else 1)

        if c in _ESCAPES:
            return _ESCAPES[c], pos

        raise self.error("unrecognized escape sequence", start)

    # -- scalars -----------------------------------------------------------

    def parse_scalar(self, pos: int) -> tuple[Any, int]:
        match = _DATETIME_RE.match(self.src, pos) or _TIME_RE.match(self.src, pos)
        if match is not None and not _BARE_VALUE_RE.match(self.src, match.end()):
            return self.parse_datetime(match, pos), match.end()

        match = _BARE_VALUE_RE.match(self.src, pos)
        if match is None:
            raise self.error("invalid value", pos)
        return self.parse_bare(match.group(), pos), match.end()

    def parse_bare(self, value: str, pos: int) -> Any:
        if value == "true":
            return True
        if value == "false":
            return False
        if value in ("inf", "+inf"):
            return math.inf
        if value == "-inf":
            return -math.inf
        if value in ("nan", "+nan", "-nan"):
            return math.nan
        if value == "-0":
            return 0

        is_int = bool(_INT_RE.match(value))
        if not is_int and not _FLOAT_RE.match(value):
            raise self.error("invalid value", pos)
        if _LEADING_ZERO_RE.match(value):
            raise self.error("leading zeroes are not allowed", pos)

        digits = value.replace("_", "")
        if not is_int:
            return float(digits)
        try:
            number = int(digits, 0)
        except ValueError:
            raise self.error("invalid number", pos) from None
        if not INT_MIN <= number <= INT_MAX:
            raise self.error("integer value cannot be represented losslessly", pos)
        return number

    def parse_datetime(self, match: re.Match[str], pos: int) -> datetime | date | time:
        try:
            if match.re is _TIME_RE:
                hour, minute, second, frac = match.groups()
                return time(int(hour), int(minute), int(second), _micros(frac))

            year, month, day, hour, minute, second, frac, offset = match.groups()
            if hour is None:
                return date(int(year), int(month), int(day))

            tz = _offset(offset) if offset else None
            return datetime(
                int(year),
                int(month),
                int(day),
                int(hour),
                int(minute),
                int(second),
                _micros(frac),
                tzinfo=tz,
            )
        except ValueError:
            raise self.error("invalid value", pos) from None


def _micros(frac: str | None) -> int:
    return int(frac[:6].ljust(6, "0")) if frac else 0


def _offset(text: str) -> timezone:
    if text in ("Z", "z"):
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    hours, minutes = int(text[1:3]), int(text[4:6])
    if hours > 23 or minutes > 59:
        raise ValueError(f"invalid offset: {text}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_toml(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> dict[str, Any]:
    """Parse a TOML document.

    Raises `TomlSyntaxError` (with `lineno` / `colno` / `codeblock`) for
    malformed input and `TomlDepthError` past `max_depth` levels of nesting.
    """

    if not isinstance(text, str):
        raise TypeError(f"parse_toml: expected str, got {type(text).__name__}")
    return _Parser(text, max_depth).parse()
