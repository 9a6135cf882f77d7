"""Range expressions: an OR of AND-groups of comparators.

Shorthand (`^1.2`, `~1.2.3`, `1.x`, `1.2.3 - 2`, `*`) is rewritten into plain
comparators when the range is parsed:

    ^1.2.3        >=1.2.3 <2.0.0-0
    ^0.1.2        >=0.1.2 <0.2.0-0
    ~1.2          >=1.2.0 <1.3.0-0
    1.x           >=1.0.0 <2.0.0-0
    >1.2          >=1.3.0
    1.2 - 3.4     >=1.2.0 <3.5.0-0
"""

from __future__ import annotations

import re
from typing import Iterator, Sequence

from ..errors import InvalidComparator, InvalidRange, InvalidVersion
from .cache import LRUCache
from .comparator import Comparator, group_admits
from .grammar import (
    CARET_TRIM_REPLACE,
    COMPARATOR_TRIM_REPLACE,
    GRAMMAR,
    TILDE_TRIM_REPLACE,
)
from .options import OptionsLike, SemverOptions, parse_options
from .version import Version

RangeCache = LRUCache[tuple[int, str], tuple[Comparator, ...]]

_SPACES = re.compile(r"\s+")


def _is_x(ident: str | None) -> bool:
    return not ident or ident.lower() == "x" or ident == "*"


def _hyphen_replace(include_prerelease: bool):
    z = "-0" if include_prerelease else ""

    def replace(m: re.Match[str]) -> str:
        from_, f_major, f_minor, f_patch, f_pre = m.group(1, 2, 3, 4, 5)
        to, t_major, t_minor, t_patch, t_pre = m.group(7, 8, 9, 10, 11)

        if _is_x(f_major):
            from_ = ""
        elif _is_x(f_minor):
            from_ = f">={f_major}.0.0{z}"
        elif _is_x(f_patch):
            from_ = f">={f_major}.{f_minor}.0{z}"
        elif f_pre:
            from_ = f">={from_}"
        else:
            from_ = f">={from_}{z}"

        if _is_x(t_major):
            to = ""
        elif _is_x(t_minor):
            to = f"<{int(t_major) + 1}.0.0-0"
        elif _is_x(t_patch):
            to = f"<{t_major}.{int(t_minor) + 1}.0-0"
        elif t_pre:
            to = f"<={t_major}.{t_minor}.{t_patch}-{t_pre}"
        elif include_prerelease:
            to = f"<{t_major}.{t_minor}.{int(t_patch) + 1}-0"
        else:
            to = f"<={to}"

        return f"{from_} {to}".strip()

    return replace


def _replace_tilde(comp: str, opts: SemverOptions) -> str:
    # ~1.2.3 and ~>1.2.3 --> >=1.2.3 <1.3.0-0; ~1 --> >=1.0.0 <2.0.0-0
    def replace(m: re.Match[str]) -> str:
        major, minor, patch, pre = m.group(1, 2, 3, 4)
        if _is_x(major):
            return ""
        if _is_x(minor):
            return f">={major}.0.0 <{int(major) + 1}.0.0-0"
        if _is_x(patch):
            return f">={major}.{minor}.0 <{major}.{int(minor) + 1}.0-0"
        if pre:
            return f">={major}.{minor}.{patch}-{pre} <{major}.{int(minor) + 1}.0-0"
        return f">={major}.{minor}.{patch} <{major}.{int(minor) + 1}.0-0"

    return GRAMMAR.safe("TILDELOOSE" if opts.loose else "TILDE").sub(replace, comp, count=1)


def _replace_caret(comp: str, opts: SemverOptions) -> str:
    # ^1.2.3 --> >=1.2.3 <2.0.0-0; ^0.1.2 --> >=0.1.2 <0.2.0-0;
    # ^0.0.1 --> >=0.0.1 <0.0.2-0
    z = "-0" if opts.include_prerelease else ""

    def replace(m: re.Match[str]) -> str:
        major, minor, patch, pre = m.group(1, 2, 3, 4)
        if _is_x(major):
            return ""
        if _is_x(minor):
            return f">={major}.0.0{z} <{int(major) + 1}.0.0-0"
        if _is_x(patch):
            if major == "0":
                return f">={major}.{minor}.0{z} <{major}.{int(minor) + 1}.0-0"
            return f">={major}.{minor}.0{z} <{int(major) + 1}.0.0-0"

        low = f">={major}.{minor}.{patch}-{pre}" if pre else f">={major}.{minor}.{patch}"
        if major == "0":
            if not pre:
                low += z
            if minor == "0":
                return f"{low} <{major}.{minor}.{int(patch) + 1}-0"
            return f"{low} <{major}.{int(minor) + 1}.0-0"
        return f"{low} <{int(major) + 1}.0.0-0"

    return GRAMMAR.safe("CARETLOOSE" if opts.loose else "CARET").sub(replace, comp, count=1)


def _replace_x_range(comp: str, opts: SemverOptions) -> str:
    def replace(m: re.Match[str]) -> str:
        gtlt, major, minor, patch = m.group(1, 2, 3, 4)
        x_major = _is_x(major)
        x_minor = x_major or _is_x(minor)
        x_patch = x_minor or _is_x(patch)
        any_x = x_patch

        if gtlt == "=" and any_x:
            gtlt = ""

        # With prereleases included, the bound is the lowest prerelease.
        pre = "-0" if opts.include_prerelease else ""

        if x_major:
            # Nothing is allowed past `>*` or `<*`; anything else is `*`.
            return "<0.0.0-0" if gtlt in (">", "<") else "*"

        if gtlt and any_x:
            # Patch is an x here; so is minor when x_minor.
            if x_minor:
                minor = "0"

            if gtlt == ">":
                # >1 --> >=2.0.0; >1.2 --> >=1.3.0
                gtlt = ">="
                if x_minor:
                    major = str(int(major) + 1)
                else:
                    minor = str(int(minor) + 1)
            elif gtlt == "<=":
                # <=0.7.x is really <0.8.0-0
                gtlt = "<"
                if x_minor:
                    major = str(int(major) + 1)
                else:
                    minor = str(int(minor) + 1)

            if gtlt == "<":
                pre = "-0"

            return f"{gtlt}{major}.{minor}.0{pre}"

        if x_minor:
            return f">={major}.0.0{pre} <{int(major) + 1}.0.0-0"
        if x_patch:
            return f">={major}.{minor}.0{pre} <{major}.{int(minor) + 1}.0-0"
        return m.group(0)

    return GRAMMAR.safe("XRANGELOOSE" if opts.loose else "XRANGE").sub(replace, comp.strip(), count=1)


def _each_token(comp: str, opts: SemverOptions, fn) -> str:
    return " ".join(fn(c, opts) for c in _SPACES.split(comp.strip()))


def _replace_stars(comp: str, opts: SemverOptions) -> str:
    # `*` is AND-ed with everything else and "" already means any version.
    return GRAMMAR.safe("STAR").sub("", comp.strip(), count=1)


def _replace_gte0(comp: str, opts: SemverOptions) -> str:
    token = "GTE0PRE" if opts.include_prerelease else "GTE0"
    return GRAMMAR.safe(token).sub("", comp.strip(), count=1)


def _parse_comparator(comp: str, opts: SemverOptions) -> str:
    comp = _each_token(comp, opts, _replace_caret)
    comp = _each_token(comp, opts, _replace_tilde)
    comp = " ".join(_replace_x_range(c, opts) for c in _SPACES.split(comp))
    return _replace_stars(comp, opts)


def parse_group(text: str, options: OptionsLike = None) -> tuple[Comparator, ...]:
    """Turn one `||`-free segment into its de-duplicated comparators.

    Returns `(<0.0.0-0,)` when any comparator is the null set, and drops the
    ANY comparator when it is not alone.
    """

    opts = parse_options(options)

    hyphen = GRAMMAR.safe("HYPHENRANGELOOSE" if opts.loose else "HYPHENRANGE")
    text = hyphen.sub(_hyphen_replace(opts.include_prerelease), text, count=1)
    # `> 1.2.3 < 1.2.5` --> `>1.2.3 <1.2.5`
    text = GRAMMAR.safe("COMPARATORTRIM").sub(COMPARATOR_TRIM_REPLACE, text)
    # `~ 1.2.3` --> `~1.2.3`
    text = GRAMMAR.safe("TILDETRIM").sub(TILDE_TRIM_REPLACE, text)
    # `^ 1.2.3` --> `^1.2.3`
    text = GRAMMAR.safe("CARETTRIM").sub(CARET_TRIM_REPLACE, text)

    rewritten = " ".join(_parse_comparator(comp, opts) for comp in text.split(" "))
    tokens = [_replace_gte0(comp, opts) for comp in _SPACES.split(rewritten)]

    if opts.loose:
        loose_comparator = GRAMMAR.safe("COMPARATORLOOSE")
        tokens = [comp for comp in tokens if loose_comparator.search(comp)]

    by_value: dict[str, Comparator] = {}
    for token in tokens:
        comp = Comparator(token, opts)
        if comp.is_null_set:
            return (comp,)
        by_value[comp.value] = comp

    if len(by_value) > 1 and "" in by_value:
        del by_value[""]

    return tuple(by_value.values())


def is_satisfiable(comparators: Sequence[Comparator], options: OptionsLike = None) -> bool:
    """True unless two comparators of one AND-group exclude each other."""

    remaining = list(comparators)
    if not remaining:
        return True
    current = remaining.pop()
    while remaining:
        if not all(current.intersects(other, options) for other in remaining):
            return False
        current = remaining.pop()
    return True


class Range:
    """A parsed range such as `^1.2.3 || >=2.5.0 <3`.

    `set` holds the OR-groups; every group is a list of comparators that must
    all hold. Pass `cache` to memoize the per-segment parse.
    """

    def __init__(
        self,
        text: str | Range | Comparator,
        options: OptionsLike = None,
        *,
        cache: RangeCache | None = None,
    ) -> None:
        opts = parse_options(options)
        self.options = opts
        self.loose = opts.loose
        self.include_prerelease = opts.include_prerelease
        self._formatted: str | None = None

        if isinstance(text, Range):
            if text.options == opts:
                self.raw = text.raw
                self.set: list[list[Comparator]] = [list(group) for group in text.set]
                return
            text = text.raw
        elif isinstance(text, Comparator):
            self.raw = text.value
            self.set = [[text]]
            return
        elif not isinstance(text, str):
            raise TypeError(f"Invalid SemVer Range: {text!r}")

        self.raw = _SPACES.sub(" ", text.strip())

        groups: list[list[Comparator]] = []
        for segment in self.raw.split("||"):
            group = self._parse_segment(segment.strip(), cache)
            if group:
                groups.append(list(group))

        if not groups:
            raise InvalidRange(f"Invalid SemVer Range: {self.raw}")

        # Drop null-set groups unless they are all there is, and collapse to a
        # lone ANY group if one survives.
        if len(groups) > 1:
            first = groups[0]
            groups = [g for g in groups if not g[0].is_null_set]
            if not groups:
                groups = [first]
            elif len(groups) > 1:
                for g in groups:
                    if len(g) == 1 and g[0].is_any:
                        groups = [g]
                        break

        self.set = groups

    @classmethod
    def from_comparator(cls, comparator: Comparator) -> Range:
        return cls(comparator, comparator.options)

    def _parse_segment(self, segment: str, cache: RangeCache | None) -> tuple[Comparator, ...]:
        key = (self.options.flags, segment)
        if cache is not None:
            cached = cache.get(key)
            if cached is not None:
                return cached

        try:
            group = parse_group(segment, self.options)
        except InvalidComparator as exc:
            raise InvalidRange(f"Invalid SemVer Range: {self.raw}") from exc

        if cache is not None:
            cache.set(key, group)
        return group

    @property
    def range(self) -> str:
        if self._formatted is None:
            self._formatted = "||".join(
                " ".join(str(comp).strip() for comp in group) for group in self.set
            )
        return self._formatted

    def format(self) -> str:
        return self.range

    def __str__(self) -> str:
        return self.range

    def __repr__(self) -> str:
        return f"Range({self.range!r})"

    def __iter__(self) -> Iterator[list[Comparator]]:
        return iter(self.set)

    def test(self, version: str | Version | None) -> bool:
        """True if any AND-group admits `version`; unparseable input is False."""

        if not version:
            return False
        if isinstance(version, str):
            try:
                version = Version(version, self.options)
            except (InvalidVersion, TypeError):
                return False
        return any(group_admits(group, version, self.options) for group in self.set)

    def intersects(self, other: Range, options: OptionsLike = None) -> bool:
        """True if some version could satisfy both ranges."""

        if not isinstance(other, Range):
            raise TypeError("a Range is required")

        return any(
            is_satisfiable(mine, options)
            and any(
                is_satisfiable(theirs, options)
                and all(a.intersects(b, options) for a in mine for b in theirs)
                for theirs in other.set
            )
            for mine in self.set
        )
