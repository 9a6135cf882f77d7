from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone

import pytest

from lakebump.errors import TomlDepthError, TomlError, TomlSyntaxError
from lakebump.toml_parse import parse_toml

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib


LAKEFILE = """\
name = "proofs"
version = "0.1.0"
defaultTargets = ["Proofs"]

[leanOptions]
pp.unicode.fun = true
autoImplicit = false

[[require]]
name = "mathlib"
scope = "leanprover-community"
rev = "v4.9.0"

[[require]]
name = "aesop"
git = "https://github.com/leanprover-community/aesop"

[[lean_lib]]
name = "Proofs"
"""

DOCUMENTS = [
    LAKEFILE,
    'a = "x"\nb = \'lit\\eral\'\nc = """\nmulti\nline"""\nd = \'\'\'\nraw \\n\'\'\'\n',
    'str = "tab\\there \\u00e9 \\U0001F600 quote\\" back\\\\"\n',
    'ml = """one \\\n     two \\\n\n   three"""\n',
    'q = """He said ""hi"" """\nr = """""x"""""\n',
    "ints = [0, +99, -17, 1_000, 0xDEAD_beef, 0o755, 0b1101, 9223372036854775807, -9223372036854775808]\n",
    "floats = [1.0, -0.01, 5e+22, 1e06, -2E-2, 6.626e-34, 224_617.445_991]\n",
    "b = [true, false]\nempty = []\nnested = [[1, 2], ['a', \"b\"], [{x = 1}]]\n",
    "arr = [\n  1, # one\n  2,\n]\n",
    "t = { a = 1, b.c = 'x', d = { e = [] } }\nempty = {}\n",
    "odt1 = 1979-05-27T07:32:00Z\nodt2 = 1979-05-27T00:32:00-07:00\nodt3 = 1979-05-27T00:32:00.999999+05:30\n",
    "ldt = 1979-05-27T07:32:00\nspace = 1979-05-27 07:32:00.5\nld = 1979-05-27\nlt = 07:32:00\nlt2 = 00:32:00.999999\n",
    '"quoted key" = 1\n\'literal.key\' = 2\nbare-key_1 = 3\n1234 = 4\n',
    "a.b.c = 1\na.b.d = 2\n[a.e]\nf = 3\n",
    "[x.y.z.w]\n[x]\nv = 1\n",
    "[[fruits]]\nname = 'apple'\n[fruits.physical]\ncolor = 'red'\n[[fruits.varieties]]\nname = 'red delicious'\n[[fruits]]\nname = 'banana'\n",
    "# only a comment\n\n\t\n",
    "a = 1\r\nb = 'crlf'\r\n",
    "[ spaced . header ]\nk = 'v'\n",
    "[[ spaced . array ]]\nk = 'v'\n",
]


@pytest.mark.parametrize("text", DOCUMENTS)
def test_parses_like_tomllib(text: str) -> None:
    assert parse_toml(text) == tomllib.loads(text)


def test_lakefile_shape() -> None:
    doc = parse_toml(LAKEFILE)
    assert doc["leanOptions"] == {"pp": {"unicode": {"fun": True}}, "autoImplicit": False}
    assert [r["name"] for r in doc["require"]] == ["mathlib", "aesop"]
    assert doc["require"][0]["rev"] == "v4.9.0"


def test_special_floats() -> None:
    doc = parse_toml("a = inf\nb = -inf\nc = nan\nd = +nan\ne = +inf\nf = -0\ng = -0.0\n")
    assert doc["a"] == math.inf
    assert doc["b"] == -math.inf
    assert math.isnan(doc["c"]) and math.isnan(doc["d"])
    assert doc["e"] == math.inf
    assert doc["f"] == 0 and isinstance(doc["f"], int)
    assert doc["g"] == 0.0 and math.copysign(1, doc["g"]) == -1


def test_date_time_types() -> None:
    doc = parse_toml(
        "odt = 1979-05-27T00:32:00-07:00\nldt = 1979-05-27T07:32:00.123456789\nld = 1979-05-27\nlt = 07:32:00\n"
    )
    assert doc["odt"] == datetime(1979, 5, 27, 0, 32, tzinfo=timezone(-timedelta(hours=7)))
    assert doc["ldt"] == datetime(1979, 5, 27, 7, 32, 0, 123456)
    assert doc["ldt"].tzinfo is None
    assert doc["ld"] == date(1979, 5, 27)
    assert doc["lt"] == time(7, 32)


def test_key_order_is_preserved() -> None:
    doc = parse_toml("z = 1\na = 2\n[m]\n[b]\n")
    assert list(doc) == ["z", "a", "m", "b"]


@pytest.mark.parametrize(
    "text,message",
    [
        ("a = 1\na = 2\n", "trying to redefine an already defined table or value"),
        ("a.b = 1\n[a]\n", "trying to redefine an already defined table or value"),
        ("[a]\nb.c = 1\n[a.b]\n", "trying to redefine an already defined table or value"),
        ("[a]\n[a]\n", "trying to redefine an already defined table or value"),
        ("a = {}\n[a]\n", "trying to redefine an already defined table or value"),
        ("[[a]]\n[a]\n", "trying to redefine an already defined table or value"),
        ("a = []\n[[a]]\n", "trying to redefine an already defined table or value"),
        ("a = 1 b = 2\n", "each key-value declaration must be followed by an end-of-line"),
        ("a =\n", "incomplete key-value declaration: no value specified"),
        ("a\n", "incomplete key-value: cannot find end of key"),
        ("a b = 1\n", "found extra tokens after the key part"),
        ("a$ = 1\n", "found extra tokens after the key part"),
        ('"""k""" = 1\n', "multiline strings are not allowed in keys"),
        ("a = [1,,2]\n", "expected value, found comma"),
        ("a = [1 2]\n", "unexpected character encountered"),
        ("a = [1, 2\n", "unfinished array encountered"),
        ("a = { b = 1, }\n", "trailing commas are not allowed in inline tables"),
        ("a = { b = 1,\n c = 2 }\n", "newlines are not allowed in inline tables"),
        ("a = { b = 1 # no\n}\n", "inline tables cannot contain comments"),
        ("a = { b = 1, b = 2 }\n", "trying to redefine an already defined value"),
        ("a = { b = { c = 1 }, b.d = 2 }\n", "trying to redefine an already defined value"),
        ("a = { b = 1\n", "newlines are not allowed in inline tables"),
        ('a = "unterminated\n', "newlines are not allowed in strings"),
        ('a = "eof', "unfinished string encountered"),
        ('a = "\\x"\n', "unrecognized escape sequence"),
        ('a = "\\uD800"\n', "invalid unicode escape"),
        ('a = "\\U00110000"\n', "invalid unicode escape"),
        ('a = "\\u12"\n', "invalid unicode escape"),
        ('a = "\\u12a\n"\n', "invalid unicode escape"),
        ('a = "bell\x07"\n', "control characters are not allowed in strings"),
        ("a = 1 # bell\x07\n", "control characters are not allowed in comments"),
        ('a = """x""""""\n', "unexpected character encountered"),
        ("a = 01\n", "leading zeroes are not allowed"),
        ("a = 9223372036854775808\n", "integer value cannot be represented losslessly"),
        ("a = 1.\n", "invalid value"),
        ("a = .5\n", "invalid value"),
        ("a = True\n", "invalid value"),
        ("a = 1979-13-27\n", "invalid value"),
        ("a = 07:32:00Z\n", "invalid value"),
        ("a = 1979-05-27T07:32\n", "invalid value"),
        ("[[a]\n", "expected end of table declaration"),
    ],
)
def test_syntax_errors(text: str, message: str) -> None:
    with pytest.raises(TomlSyntaxError) as excinfo:
        parse_toml(text)
    assert excinfo.value.msg == message
    assert str(excinfo.value).startswith("Invalid TOML document: " + message)


def test_error_position() -> None:
    with pytest.raises(TomlSyntaxError) as excinfo:
        parse_toml('name = "x"\nrev = 01\n')
    err = excinfo.value
    assert (err.lineno, err.colno) == (2, 7)
    assert "2:  rev = 01" in err.codeblock
    assert isinstance(err, TomlError) and isinstance(err, ValueError)


def test_depth_limit() -> None:
    assert parse_toml("a = [[1]]\n", max_depth=3) == {"a": [[1]]}
    with pytest.raises(TomlDepthError):
        parse_toml("a = [[1]]\n", max_depth=2)
    with pytest.raises(TomlDepthError):
        parse_toml("a = " + "[" * 1001 + "]" * 1001 + "\n")
    with pytest.raises(TomlDepthError):
        parse_toml("a = " + "{ a = " * 1001 + "1" + " }" * 1001 + "\n")


def test_deep_nesting_within_the_limit() -> None:
    doc = parse_toml("a = " + "[" * 999 + "]" * 999 + "\n")
    node = doc["a"]
    for _ in range(998):
        assert isinstance(node, list) and len(node) == 1
        node = node[0]
    assert node == []

    doc = parse_toml("a = " + "{ b = " * 998 + "1" + " }" * 998 + "\n")
    node = doc["a"]
    for _ in range(997):
        node = node["b"]
    assert node == {"b": 1}


def test_rejects_non_text() -> None:
    with pytest.raises(TypeError):
        parse_toml(b"a = 1")  # type: ignore[arg-type]
