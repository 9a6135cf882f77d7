"""Version-level helpers: parsing shortcuts, comparison, sorting and coercion."""

from __future__ import annotations

import functools
import re
from typing import Iterable

from ..errors import SemverError
from .grammar import GRAMMAR
from .options import OptionsLike, parse_options
from .version import Version

VersionLike = str | Version

_LEADING_EQ_V = re.compile(r"^[=v]+")


def parse(version: VersionLike, options: OptionsLike = None, *, throw_errors: bool = False) -> Version | None:
    """Parse `version`, returning None on failure unless `throw_errors` is set."""

    if isinstance(version, Version):
        return version
    try:
        return Version(version, options)
    except (SemverError, TypeError):
        if not throw_errors:
            return None
        raise


def valid(version: VersionLike, options: OptionsLike = None) -> str | None:
    v = parse(version, options)
    return v.version if v else None


def clean(version: str, options: OptionsLike = None) -> str | None:
    """Strip whitespace and any leading `=` / `v` and return the canonical string."""

    v = parse(_LEADING_EQ_V.sub("", version.strip()), options)
    return v.version if v else None


def inc(
    version: VersionLike,
    release: str,
    options: OptionsLike = None,
    identifier: str | None = None,
    identifier_base: str | int | bool | None = None,
) -> str | None:
    """Return the incremented version string, or None when it cannot be computed.

    The input is never mutated.
    """

    text = version.version if isinstance(version, Version) else version
    try:
        return Version(text, options).inc(release, identifier, identifier_base).version
    except (SemverError, TypeError):
        return None


def diff(version1: VersionLike, version2: VersionLike) -> str | None:
    """Name the release type that separates two versions, or None if they are equal."""

    v1 = parse(version1, throw_errors=True)
    v2 = parse(version2, throw_errors=True)
    assert v1 is not None and v2 is not None
    comparison = v1.compare(v2)

    if comparison == 0:
        return None

    high, low = (v1, v2) if comparison > 0 else (v2, v1)
    high_has_pre = bool(high.prerelease)
    low_has_pre = bool(low.prerelease)

    if low_has_pre and not high_has_pre:
        # Leaving a prerelease of an x.0.0 is always a major change:
        # 1.0.0-1 -> 1.0.0, 1.0.0-1 -> 1.1.1, 1.0.0-1 -> 2.0.0.
        if not low.patch and not low.minor:
            return "major"

        if low.compare_main(high) == 0:
            if low.minor and not low.patch:
                return "minor"
            return "patch"

    prefix = "pre" if high_has_pre else ""

    if v1.major != v2.major:
        return prefix + "major"
    if v1.minor != v2.minor:
        return prefix + "minor"
    if v1.patch != v2.patch:
        return prefix + "patch"

    # Both are prereleases of the same tuple.
    return "prerelease"


def major(version: VersionLike, options: OptionsLike = None) -> int:
    return Version(version, options).major


def minor(version: VersionLike, options: OptionsLike = None) -> int:
    return Version(version, options).minor


def patch(version: VersionLike, options: OptionsLike = None) -> int:
    return Version(version, options).patch


def prerelease(version: VersionLike, options: OptionsLike = None) -> list[int | str] | None:
    parsed = parse(version, options)
    return parsed.prerelease if parsed and parsed.prerelease else None


def compare(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> int:
    return Version(a, options).compare(Version(b, options))


def rcompare(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> int:
    return compare(b, a, options)


def compare_loose(a: VersionLike, b: VersionLike) -> int:
    return compare(a, b, True)


def compare_build(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> int:
    version_a = Version(a, options)
    version_b = Version(b, options)
    return version_a.compare(version_b) or version_a.compare_build(version_b)


def sort(versions: Iterable[VersionLike], options: OptionsLike = None) -> list[VersionLike]:
    """Return `versions` sorted ascending, using build metadata as a tiebreaker."""

    return sorted(versions, key=functools.cmp_to_key(lambda a, b: compare_build(a, b, options)))


def rsort(versions: Iterable[VersionLike], options: OptionsLike = None) -> list[VersionLike]:
    return sorted(versions, key=functools.cmp_to_key(lambda a, b: compare_build(b, a, options)))


def gt(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> bool:
    return compare(a, b, options) > 0


def lt(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> bool:
    return compare(a, b, options) < 0


def eq(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> bool:
    return compare(a, b, options) == 0


def neq(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> bool:
    return compare(a, b, options) != 0


def gte(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> bool:
    return compare(a, b, options) >= 0


def lte(a: VersionLike, b: VersionLike, options: OptionsLike = None) -> bool:
    return compare(a, b, options) <= 0


def cmp(a: VersionLike, op: str, b: VersionLike, options: OptionsLike = None) -> bool:
    """Compare with an operator string.

    `===` and `!==` compare the canonical strings (build metadata ignored),
    everything else goes through version precedence.
    """

    if op == "===":
        return _text(a) == _text(b)
    if op == "!==":
        return _text(a) != _text(b)
    if op in ("", "=", "=="):
        return eq(a, b, options)
    if op == "!=":
        return neq(a, b, options)
    if op == ">":
        return gt(a, b, options)
    if op == ">=":
        return gte(a, b, options)
    if op == "<":
        return lt(a, b, options)
    if op == "<=":
        return lte(a, b, options)
    raise TypeError(f"Invalid operator: {op}")


def _text(v: VersionLike) -> str:
    return v.version if isinstance(v, Version) else v


def coerce(
    version: VersionLike | int | float | None,
    options: OptionsLike = None,
    *,
    rtl: bool = False,
) -> Version | None:
    """Pull the first (or, with `rtl`, the right-most) version-looking run out of text.

    `"v2"` -> `2.0.0`, `"1.2.3.4"` -> `1.2.3` (`2.3.4` with `rtl`). Prerelease
    and build parts are only kept when `include_prerelease` is set.
    """

    if isinstance(version, Version):
        return version
    if isinstance(version, (int, float)) and not isinstance(version, bool):
        version = str(version)
    if not isinstance(version, str):
        return None

    opts = parse_options(options)
    full = opts.include_prerelease
    pattern = GRAMMAR.safe("COERCEFULL" if full else "COERCE")

    match: re.Match[str] | None
    if not rtl:
        match = pattern.search(version)
    else:
        # Right-most coercible run that does not share a terminus with a
        # run further left: "1.2.3.4" wants "2.3.4", not "3.4" or "4".
        match = None
        pos = 0
        while True:
            nxt = pattern.search(version, pos)
            if nxt is None or (match is not None and match.end() == len(version)):
                break
            if match is None or nxt.end() != match.end():
                match = nxt
            pos = nxt.start() + len(nxt.group(1)) + len(nxt.group(2))

    if match is None:
        return None

    major_ = match.group(2)
    minor_ = match.group(3) or "0"
    patch_ = match.group(4) or "0"
    pre = f"-{match.group(5)}" if full and match.group(5) else ""
    build = f"+{match.group(6)}" if full and match.group(6) else ""

    return parse(f"{major_}.{minor_}.{patch_}{pre}{build}", opts)
