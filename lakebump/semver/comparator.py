from __future__ import annotations

import re
from typing import Iterable

from ..errors import InvalidComparator, InvalidVersion
from .functions import cmp
from .grammar import GRAMMAR
from .options import OptionsLike, SemverOptions, parse_options
from .version import Version

NULL_SET_VALUE = "<0.0.0-0"
ANY_VALUE = ""

_SPACES = re.compile(r"\s+")


class Comparator:
    """One operator/version constraint such as `>=1.2.3`.

    The ANY comparator (parsed from empty text) has no version: its
    `semver` is None, its operator and value are both "" and it accepts
    every version.
    """

    def __init__(self, comp: str | Comparator, options: OptionsLike = None) -> None:
        opts = parse_options(options)
        if isinstance(comp, Comparator):
            comp = comp.value
        elif not isinstance(comp, str):
            raise TypeError(f"Invalid comparator: {comp!r}")

        self.options: SemverOptions = opts
        self.loose = opts.loose
        self.operator = ""
        self.semver: Version | None = None
        self._parse(" ".join(_SPACES.split(comp.strip())))

        if self.semver is None:
            self.value = ANY_VALUE
        else:
            self.value = self.operator + self.semver.version

    def _parse(self, comp: str) -> None:
        pattern = GRAMMAR.safe("COMPARATORLOOSE" if self.options.loose else "COMPARATOR")
        m = pattern.search(comp)
        if not m:
            raise InvalidComparator(f"Invalid comparator: {comp}")

        operator = m.group(1) or ""
        self.operator = "" if operator == "=" else operator

        if m.group(2):
            try:
                self.semver = Version(m.group(2), self.options)
            except InvalidVersion as exc:
                raise InvalidComparator(f"Invalid comparator: {comp}") from exc

    @property
    def is_any(self) -> bool:
        return self.semver is None

    @property
    def is_null_set(self) -> bool:
        return self.value == NULL_SET_VALUE

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Comparator({self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Comparator):
            return NotImplemented
        return self.value == other.value and self.options == other.options

    def __hash__(self) -> int:
        return hash((self.value, self.options))

    def test(self, version: str | Version | None) -> bool:
        if self.semver is None:
            return True
        if version is None:
            return False
        if isinstance(version, str):
            try:
                version = Version(version, self.options)
            except (InvalidVersion, TypeError):
                return False
        return cmp(version, self.operator, self.semver, self.options)

    def intersects(self, other: Comparator, options: OptionsLike = None) -> bool:
        """True if some version can satisfy both `self` and `other`."""

        if not isinstance(other, Comparator):
            raise TypeError("a Comparator is required")

        opts = parse_options(options)

        if self.operator == "":
            if self.semver is None:
                return True
            return group_admits([Comparator(other.value, opts)], self.semver, opts)
        if other.operator == "":
            if other.semver is None:
                return True
            return group_admits([Comparator(self.value, opts)], other.semver, opts)

        assert self.semver is not None and other.semver is not None

        # Nothing sorts below these.
        if opts.include_prerelease and (self.is_null_set or other.is_null_set):
            return False
        if not opts.include_prerelease and (
            self.value.startswith("<0.0.0") or other.value.startswith("<0.0.0")
        ):
            return False

        # Same direction.
        if self.operator.startswith(">") and other.operator.startswith(">"):
            return True
        if self.operator.startswith("<") and other.operator.startswith("<"):
            return True

        # Same bound, both inclusive.
        if (
            self.semver.version == other.semver.version
            and "=" in self.operator
            and "=" in other.operator
        ):
            return True

        # Opposite directions that overlap.
        if (
            cmp(self.semver, "<", other.semver, opts)
            and self.operator.startswith(">")
            and other.operator.startswith("<")
        ):
            return True
        if (
            cmp(self.semver, ">", other.semver, opts)
            and self.operator.startswith("<")
            and other.operator.startswith(">")
        ):
            return True

        return False


def group_admits(comparators: Iterable[Comparator], version: Version, options: OptionsLike = None) -> bool:
    """True if `version` passes every comparator of one AND-group.

    Unless `include_prerelease` is set, a prerelease version additionally needs
    a comparator whose own bound is a prerelease of the same
    major.minor.patch: `>=1.2.3-pr.1 <2.0.0` admits `1.2.3-pr.2` but not
    `1.2.4-alpha`.
    """

    opts = parse_options(options)
    group = list(comparators)

    for comp in group:
        if not comp.test(version):
            return False

    if version.prerelease and not opts.include_prerelease:
        for comp in group:
            allowed = comp.semver
            if allowed is None or not allowed.prerelease:
                continue
            if (
                allowed.major == version.major
                and allowed.minor == version.minor
                and allowed.patch == version.patch
            ):
                return True
        return False

    return True
