from __future__ import annotations

import re

_NUMERIC = re.compile(r"^[0-9]+$")

Identifier = int | str


def is_numeric(value: Identifier) -> bool:
    return isinstance(value, int) or bool(_NUMERIC.match(value))


def compare_identifiers(a: Identifier, b: Identifier) -> int:
    """Order two prerelease/build identifiers.

    Numeric identifiers compare numerically and sort below alphanumeric ones;
    alphanumeric identifiers compare as strings.
    """

    anum = is_numeric(a)
    bnum = is_numeric(b)
    if anum and bnum:
        a = int(a)
        b = int(b)

    if a == b:
        return 0
    if anum and not bnum:
        return -1
    if bnum and not anum:
        return 1
    return -1 if a < b else 1


def rcompare_identifiers(a: Identifier, b: Identifier) -> int:
    return compare_identifiers(b, a)
