"""Queries over ranges: satisfaction, bounds, simplification and subset tests.

Every function takes an optional `cache` that is handed to the `Range`
parses it performs.
"""

from __future__ import annotations

import functools
from typing import Iterable, Sequence, TypeVar

from ..errors import SemverError
from .comparator import Comparator
from .functions import compare, gt, gte, lt, lte
from .options import OptionsLike, SemverOptions, parse_options
from .range import Range, RangeCache
from .version import Version

T = TypeVar("T", str, Version)

RangeLike = str | Range

MINIMUM_VERSION_WITH_PRERELEASE = (Comparator(">=0.0.0-0"),)
MINIMUM_VERSION = (Comparator(">=0.0.0"),)


def _range(range_: RangeLike | Comparator, options: OptionsLike, cache: RangeCache | None) -> Range:
    return Range(range_, options, cache=cache)


def satisfies(
    version: str | Version,
    range_: RangeLike,
    options: OptionsLike = None,
    *,
    cache: RangeCache | None = None,
) -> bool:
    """True if `version` is in `range_`; an invalid range is never satisfied."""

    try:
        parsed = _range(range_, options, cache)
    except (SemverError, TypeError):
        return False
    return parsed.test(version)


def to_comparators(
    range_: RangeLike, options: OptionsLike = None, *, cache: RangeCache | None = None
) -> list[list[str]]:
    return [
        " ".join(c.value for c in group).strip().split(" ")
        for group in _range(range_, options, cache).set
    ]


def max_satisfying(
    versions: Iterable[T],
    range_: RangeLike,
    options: OptionsLike = None,
    *,
    cache: RangeCache | None = None,
) -> T | None:
    """Highest entry of `versions` inside `range_`, returned as given."""

    try:
        parsed = _range(range_, options, cache)
    except (SemverError, TypeError):
        return None

    best: T | None = None
    best_version: Version | None = None
    for v in versions:
        if not parsed.test(v):
            continue
        if best_version is None or best_version.compare(v) == -1:
            best = v
            best_version = Version(v, options)
    return best


def min_satisfying(
    versions: Iterable[T],
    range_: RangeLike,
    options: OptionsLike = None,
    *,
    cache: RangeCache | None = None,
) -> T | None:
    """Lowest entry of `versions` inside `range_`, returned as given."""

    try:
        parsed = _range(range_, options, cache)
    except (SemverError, TypeError):
        return None

    best: T | None = None
    best_version: Version | None = None
    for v in versions:
        if not parsed.test(v):
            continue
        if best_version is None or best_version.compare(v) == 1:
            best = v
            best_version = Version(v, options)
    return best


def min_version(
    range_: RangeLike, options: OptionsLike = None, *, cache: RangeCache | None = None
) -> Version | None:
    """Lowest version that can satisfy `range_`, or None if nothing can."""

    parsed = _range(range_, options, cache)

    for candidate in ("0.0.0", "0.0.0-0"):
        lowest = Version(candidate)
        if parsed.test(lowest):
            return lowest

    found: Version | None = None
    for group in parsed.set:
        group_min: Version | None = None
        for comparator in group:
            if comparator.semver is None:
                continue
            # Copy so the comparator's own version is left alone.
            bound = Version(comparator.semver.version)
            op = comparator.operator
            if op == ">":
                if not bound.prerelease:
                    bound.patch += 1
                else:
                    bound.prerelease.append(0)
                bound.raw = bound.format()
            elif op in ("<", "<="):
                continue
            elif op not in ("", ">="):
                raise ValueError(f"Unexpected operation: {op}")
            if group_min is None or gt(bound, group_min):
                group_min = bound
        if group_min is not None and (found is None or gt(found, group_min)):
            found = group_min

    if found is not None and parsed.test(found):
        return found
    return None


def valid_range(
    range_: RangeLike, options: OptionsLike = None, *, cache: RangeCache | None = None
) -> str | None:
    """Normalized text of `range_` (`*` for the empty range), or None if invalid."""

    try:
        return _range(range_, options, cache).range or "*"
    except (SemverError, TypeError):
        return None


def outside(
    version: str | Version,
    range_: RangeLike,
    hilo: str,
    options: OptionsLike = None,
    *,
    cache: RangeCache | None = None,
) -> bool:
    """True if `version` is beyond every group of `range_` in direction `hilo`.

    `hilo` is `">"` (above the range) or `"<"` (below it). Everything below
    reads as the `>` case; the comparisons flip for `<`.
    """

    parsed_version = Version(version, options)
    parsed = _range(range_, options, cache)

    if hilo == ">":
        gtfn, ltefn, ltfn, comp, ecomp = gt, lte, lt, ">", ">="
    elif hilo == "<":
        gtfn, ltefn, ltfn, comp, ecomp = lt, gte, gt, "<", "<="
    else:
        raise TypeError('Must provide a hilo val of "<" or ">"')

    if parsed.test(parsed_version):
        return False

    for group in parsed.set:
        high: Comparator | None = None
        low: Comparator | None = None

        for comparator in group:
            if comparator.semver is None:
                comparator = Comparator(">=0.0.0")
            high = high or comparator
            low = low or comparator
            if gtfn(comparator.semver, high.semver, options):
                high = comparator
            elif ltfn(comparator.semver, low.semver, options):
                low = comparator

        assert high is not None and low is not None and low.semver is not None

        # The group's edge has an operator pointing our way.
        if high.operator in (comp, ecomp):
            return False

        # The version is not past the group's lower edge.
        if (not low.operator or low.operator == comp) and ltefn(parsed_version, low.semver):
            return False
        if low.operator == ecomp and ltfn(parsed_version, low.semver):
            return False

    return True


def gtr(
    version: str | Version, range_: RangeLike, options: OptionsLike = None, *, cache: RangeCache | None = None
) -> bool:
    """True if `version` is greater than every version `range_` admits."""

    return outside(version, range_, ">", options, cache=cache)


def ltr(
    version: str | Version, range_: RangeLike, options: OptionsLike = None, *, cache: RangeCache | None = None
) -> bool:
    """True if `version` is less than every version `range_` admits."""

    return outside(version, range_, "<", options, cache=cache)


def intersects(
    r1: RangeLike | Comparator,
    r2: RangeLike | Comparator,
    options: OptionsLike = None,
    *,
    cache: RangeCache | None = None,
) -> bool:
    return _range(r1, options, cache).intersects(_range(r2, options, cache), options)


def simplify_range(
    versions: Sequence[str],
    range_: RangeLike,
    options: OptionsLike = None,
    *,
    cache: RangeCache | None = None,
) -> str:
    """Shortest range text admitting the same members of `versions` as `range_`.

    Contiguous runs of satisfying versions become `a - b`, `>=a`, `<=b` or a
    single version. The original text is returned when it is no longer than
    the simplified one. `versions` itself is not reordered.
    """

    ordered = sorted(versions, key=_compare_key(options))
    runs: list[tuple[str, str | None]] = []
    first: str | None = None
    prev: str | None = None
    for version in ordered:
        if satisfies(version, range_, options, cache=cache):
            prev = version
            if first is None:
                first = version
        else:
            if prev is not None and first is not None:
                runs.append((first, prev))
            prev = None
            first = None
    if first is not None:
        runs.append((first, None))

    parts: list[str] = []
    for low, high in runs:
        if low == high:
            parts.append(low)
        elif high is None and low == ordered[0]:
            parts.append("*")
        elif high is None:
            parts.append(f">={low}")
        elif low == ordered[0]:
            parts.append(f"<={high}")
        else:
            parts.append(f"{low} - {high}")

    simplified = " || ".join(parts)
    original = range_.raw if isinstance(range_, Range) else range_
    return simplified if len(simplified) < len(original) else original


def _compare_key(options: OptionsLike):
    return functools.cmp_to_key(lambda a, b: compare(a, b, options))


def subset(
    sub: RangeLike,
    dom: RangeLike,
    options: OptionsLike = None,
    *,
    cache: RangeCache | None = None,
) -> bool:
    """True if every version admitted by `sub` is also admitted by `dom`.

    `r1 || r2 || ...` is a subset of `R1 || R2 || ...` when every `r` that is
    not a null set is a subset of some `R`; a range made only of null sets is
    a subset of everything.
    """

    if sub is dom or (isinstance(sub, str) and isinstance(dom, str) and sub == dom):
        return True

    opts = parse_options(options)
    sub_range = _range(sub, opts, cache)
    dom_range = _range(dom, opts, cache)
    saw_non_null = False

    for simple_sub in sub_range.set:
        for simple_dom in dom_range.set:
            is_sub = _simple_subset(simple_sub, simple_dom, opts, cache)
            saw_non_null = saw_non_null or is_sub is not None
            if is_sub:
                break
        else:
            if saw_non_null:
                return False
    return True


def _simple_subset(
    sub: Sequence[Comparator],
    dom: Sequence[Comparator],
    opts: SemverOptions,
    cache: RangeCache | None,
) -> bool | None:
    """Subset test for two AND-groups; None means `sub` is a null set.

    With GT the highest `>`/`>=` and LT the lowest `<`/`<=` comparator of
    `sub`, and EQ its `=` comparators:

    - ANY in `sub` becomes `>=0.0.0` (`>=0.0.0-0` with prereleases), ANY
      in `dom` becomes `>=0.0.0` or, with prereleases, contains everything.
    - More than one EQ, or GT above LT, is a null set.
    - A single EQ is a subset when it satisfies GT, LT and every `dom`
      comparator.
    - GT must not be below any `dom` lower bound, and an inclusive GT must
      satisfy every `dom` comparator; the same holds for LT mirrored.
    - Without prereleases, a prerelease GT or LT needs a `dom` comparator
      that is a prerelease of the same tuple. `<X.Y.Z-0` counts as `<X.Y.Z`.
    """

    if sub is dom:
        return True

    if len(sub) == 1 and sub[0].is_any:
        if len(dom) == 1 and dom[0].is_any:
            return True
        sub = MINIMUM_VERSION_WITH_PRERELEASE if opts.include_prerelease else MINIMUM_VERSION

    if len(dom) == 1 and dom[0].is_any:
        if opts.include_prerelease:
            return True
        dom = MINIMUM_VERSION

    eq_set: dict[str, Version] = {}
    gt_comp: Comparator | None = None
    lt_comp: Comparator | None = None
    for c in sub:
        if c.operator in (">", ">="):
            gt_comp = higher_gt(gt_comp, c, opts)
        elif c.operator in ("<", "<="):
            lt_comp = lower_lt(lt_comp, c, opts)
        elif c.semver is not None:
            eq_set.setdefault(c.semver.version, c.semver)

    if len(eq_set) > 1:
        return None

    gtlt_comp: int | None = None
    if gt_comp is not None and lt_comp is not None:
        gtlt_comp = compare(gt_comp.semver, lt_comp.semver, opts)
        if gtlt_comp > 0:
            return None
        if gtlt_comp == 0 and (gt_comp.operator != ">=" or lt_comp.operator != "<="):
            return None

    for eq in eq_set.values():
        if gt_comp is not None and not satisfies(eq, str(gt_comp), opts, cache=cache):
            return None
        if lt_comp is not None and not satisfies(eq, str(lt_comp), opts, cache=cache):
            return None
        return all(satisfies(eq, str(c), opts, cache=cache) for c in dom)

    # A prerelease bound in `sub` needs a prerelease of the same tuple in `dom`.
    need_dom_lt_pre: Version | None = None
    if lt_comp is not None and not opts.include_prerelease and lt_comp.semver.prerelease:
        need_dom_lt_pre = lt_comp.semver
    need_dom_gt_pre: Version | None = None
    if gt_comp is not None and not opts.include_prerelease and gt_comp.semver.prerelease:
        need_dom_gt_pre = gt_comp.semver
    # <1.2.3-0 is the same as <1.2.3
    if (
        need_dom_lt_pre is not None
        and lt_comp is not None
        and lt_comp.operator == "<"
        and need_dom_lt_pre.prerelease == [0]
    ):
        need_dom_lt_pre = None

    has_dom_gt = False
    has_dom_lt = False
    for c in dom:
        has_dom_gt = has_dom_gt or c.operator in (">", ">=")
        has_dom_lt = has_dom_lt or c.operator in ("<", "<=")

        if gt_comp is not None:
            if need_dom_gt_pre is not None and _same_tuple_prerelease(c.semver, need_dom_gt_pre):
                need_dom_gt_pre = None
            if c.operator in (">", ">="):
                higher = higher_gt(gt_comp, c, opts)
                if higher is c and higher is not gt_comp:
                    return False
            elif gt_comp.operator == ">=" and not satisfies(gt_comp.semver, str(c), opts, cache=cache):
                return False

        if lt_comp is not None:
            if need_dom_lt_pre is not None and _same_tuple_prerelease(c.semver, need_dom_lt_pre):
                need_dom_lt_pre = None
            if c.operator in ("<", "<="):
                lower = lower_lt(lt_comp, c, opts)
                if lower is c and lower is not lt_comp:
                    return False
            elif lt_comp.operator == "<=" and not satisfies(lt_comp.semver, str(c), opts, cache=cache):
                return False

        if not c.operator and (lt_comp is not None or gt_comp is not None) and gtlt_comp != 0:
            return False

    # A one-sided bound is not covered by a `dom` bounded on the other side,
    # unless `sub` is pinned to a single version: `>1.0.0 <1.0.1` is a subset
    # of `<2.0.0`.
    if gt_comp is not None and has_dom_lt and lt_comp is None and gtlt_comp != 0:
        return False
    if lt_comp is not None and has_dom_gt and gt_comp is None and gtlt_comp != 0:
        return False

    # `>=1.2.3-pre` is not a subset of `>=1.0.0`: it admits 1.2.3 prereleases.
    if need_dom_gt_pre is not None or need_dom_lt_pre is not None:
        return False

    return True


def _same_tuple_prerelease(candidate: Version | None, wanted: Version) -> bool:
    return (
        candidate is not None
        and bool(candidate.prerelease)
        and candidate.major == wanted.major
        and candidate.minor == wanted.minor
        and candidate.patch == wanted.patch
    )


def higher_gt(a: Comparator | None, b: Comparator, options: OptionsLike = None) -> Comparator:
    """The tighter of two lower bounds; `>1.2.3` beats `>=1.2.3`."""

    if a is None:
        return b
    comp = compare(a.semver, b.semver, options)
    if comp > 0:
        return a
    if comp < 0:
        return b
    if b.operator == ">" and a.operator == ">=":
        return b
    return a


def lower_lt(a: Comparator | None, b: Comparator, options: OptionsLike = None) -> Comparator:
    """The tighter of two upper bounds; `<1.2.3` beats `<=1.2.3`."""

    if a is None:
        return b
    comp = compare(a.semver, b.semver, options)
    if comp < 0:
        return a
    if comp > 0:
        return b
    if b.operator == "<" and a.operator == "<=":
        return b
    return a
