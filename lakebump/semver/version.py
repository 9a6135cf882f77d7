from __future__ import annotations

import functools
import re

from ..errors import InvalidIncrementArgument, InvalidVersion, NotAPrerelease
from .constants import MAX_LENGTH, MAX_SAFE_INTEGER
from .grammar import GRAMMAR
from .identifiers import Identifier, compare_identifiers
from .options import OptionsLike, parse_options

_NUMERIC = re.compile(r"^[0-9]+$")


def _numeric_truthy(value: object) -> bool:
    # Mirrors how a numeric identifier base ("0", "1", 1, False) is read.
    if value is None or value is False:
        return False
    if value is True:
        return True
    try:
        f = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return f == f and f != 0


def _not_a_number(value: Identifier | None) -> bool:
    if value is None:
        return True
    if isinstance(value, int):
        return False
    return not _NUMERIC.match(value)


def _compare_sequences(a: list[Identifier], b: list[Identifier]) -> int:
    i = 0
    while True:
        x = a[i] if i < len(a) else None
        y = b[i] if i < len(b) else None
        if x is None and y is None:
            return 0
        if y is None:
            return 1
        if x is None:
            return -1
        if x != y:
            return compare_identifiers(x, y)
        i += 1


@functools.total_ordering
class Version:
    """A parsed `MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]` version.

    Treated as an immutable value, except through `inc()`, which rewrites the
    components in place and re-derives the canonical string.

    Build metadata is kept but never takes part in ordering or equality; use
    `compare_build()` as an explicit tiebreaker.
    """

    def __init__(self, version: str | Version, options: OptionsLike = None) -> None:
        opts = parse_options(options)

        if isinstance(version, Version):
            # Same options: an exact copy. Other options: re-parse the
            # canonical string, which carries no build metadata.
            text = version.version
            if version.build and version.options == opts:
                text += "+" + ".".join(version.build)
            version = text
        elif not isinstance(version, str):
            raise TypeError(f'Invalid version. Must be a string. Got type "{type(version).__name__}".')

        if len(version) > MAX_LENGTH:
            raise InvalidVersion(f"version is longer than {MAX_LENGTH} characters")

        self.options = opts
        self.loose = opts.loose
        self.include_prerelease = opts.include_prerelease

        m = GRAMMAR.safe("LOOSE" if opts.loose else "FULL").match(version.strip())
        if not m:
            raise InvalidVersion(f"Invalid Version: {version}")

        self.raw = version
        self.major = int(m.group(1))
        self.minor = int(m.group(2))
        self.patch = int(m.group(3))

        if self.major > MAX_SAFE_INTEGER:
            raise InvalidVersion("Invalid major version")
        if self.minor > MAX_SAFE_INTEGER:
            raise InvalidVersion("Invalid minor version")
        if self.patch > MAX_SAFE_INTEGER:
            raise InvalidVersion("Invalid patch version")

        self.prerelease: list[Identifier] = []
        if m.group(4):
            for ident in m.group(4).split("."):
                if _NUMERIC.match(ident) and int(ident) < MAX_SAFE_INTEGER:
                    self.prerelease.append(int(ident))
                else:
                    self.prerelease.append(ident)

        self.build: list[str] = m.group(5).split(".") if m.group(5) else []
        self.version = ""
        self.format()

    def format(self) -> str:
        self.version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            self.version += "-" + ".".join(str(p) for p in self.prerelease)
        return self.version

    def __str__(self) -> str:
        return self.version

    def __repr__(self) -> str:
        return f"Version({self.version!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self.version)

    def _coerce_other(self, other: str | Version) -> Version:
        if isinstance(other, Version):
            return other
        return Version(other, self.options)

    def compare(self, other: str | Version) -> int:
        if not isinstance(other, Version):
            if isinstance(other, str) and other == self.version:
                return 0
            other = Version(other, self.options)

        if other.version == self.version:
            return 0

        return self.compare_main(other) or self.compare_pre(other)

    def compare_main(self, other: str | Version) -> int:
        other = self._coerce_other(other)
        return (
            compare_identifiers(self.major, other.major)
            or compare_identifiers(self.minor, other.minor)
            or compare_identifiers(self.patch, other.patch)
        )

    def compare_pre(self, other: str | Version) -> int:
        other = self._coerce_other(other)

        # Not having a prerelease sorts above having one.
        if self.prerelease and not other.prerelease:
            return -1
        if not self.prerelease and other.prerelease:
            return 1
        if not self.prerelease and not other.prerelease:
            return 0
        return _compare_sequences(self.prerelease, other.prerelease)

    def compare_build(self, other: str | Version) -> int:
        other = self._coerce_other(other)
        return _compare_sequences(list(self.build), list(other.build))

    def inc(
        self,
        release: str,
        identifier: str | None = None,
        identifier_base: str | int | bool | None = None,
    ) -> Version:
        """Bump this version in place and return it.

        `premajor`, `preminor` and `prepatch` bump the named component and
        start a prerelease; `prerelease` only bumps patch when the version is
        not a prerelease yet. `major`, `minor` and `patch` release a pending
        prerelease of the same boundary instead of bumping again
        (`1.0.0-5` -> `1.0.0`). `identifier` prefixes the prerelease
        (`beta` -> `1.2.4-beta.0`) and `identifier_base` picks whether the
        counter starts at 0 or 1; `identifier_base=False` omits the counter.
        """

        if release.startswith("pre"):
            if not identifier and identifier_base is False:
                raise InvalidIncrementArgument("invalid increment argument: identifier is empty")
            if identifier:
                pattern = GRAMMAR.safe("PRERELEASELOOSE" if self.loose else "PRERELEASE")
                match = pattern.search(f"-{identifier}")
                if not match or match.group(1) != identifier:
                    raise InvalidIncrementArgument(f"invalid identifier: {identifier}")

        if release == "premajor":
            self.prerelease = []
            self.patch = 0
            self.minor = 0
            self.major += 1
            self.inc("pre", identifier, identifier_base)
        elif release == "preminor":
            self.prerelease = []
            self.patch = 0
            self.minor += 1
            self.inc("pre", identifier, identifier_base)
        elif release == "prepatch":
            # Drop any existing prerelease; it is not relevant to the next patch.
            self.prerelease = []
            self.inc("patch", identifier, identifier_base)
            self.inc("pre", identifier, identifier_base)
        elif release == "prerelease":
            # Same as prepatch for a version that is not a prerelease yet.
            if not self.prerelease:
                self.inc("patch", identifier, identifier_base)
            self.inc("pre", identifier, identifier_base)
        elif release == "release":
            if not self.prerelease:
                raise NotAPrerelease(f"version {self.raw} is not a prerelease")
            self.prerelease = []
        elif release == "major":
            # 1.0.0-5 bumps to 1.0.0; 1.1.0 bumps to 2.0.0.
            if self.minor != 0 or self.patch != 0 or not self.prerelease:
                self.major += 1
            self.minor = 0
            self.patch = 0
            self.prerelease = []
        elif release == "minor":
            # 1.2.0-5 bumps to 1.2.0; 1.2.1 bumps to 1.3.0.
            if self.patch != 0 or not self.prerelease:
                self.minor += 1
            self.patch = 0
            self.prerelease = []
        elif release == "patch":
            # 1.2.0-5 patches to 1.2.0; 1.2.0 patches to 1.2.1.
            if not self.prerelease:
                self.patch += 1
            self.prerelease = []
        elif release == "pre":
            self._inc_pre(identifier, identifier_base)
        else:
            raise InvalidIncrementArgument(f"invalid increment argument: {release}")

        self.raw = self.format()
        if self.build:
            self.raw += "+" + ".".join(self.build)
        return self

    def _inc_pre(self, identifier: str | None, identifier_base: str | int | bool | None) -> None:
        base = 1 if _numeric_truthy(identifier_base) else 0

        if not self.prerelease:
            self.prerelease = [base]
        else:
            bumped = False
            for i in range(len(self.prerelease) - 1, -1, -1):
                current = self.prerelease[i]
                if isinstance(current, int):
                    self.prerelease[i] = current + 1
                    bumped = True
                    break
            if not bumped:
                joined = ".".join(str(p) for p in self.prerelease)
                if identifier == joined and identifier_base is False:
                    raise InvalidIncrementArgument("invalid increment argument: identifier already exists")
                self.prerelease.append(base)

        if identifier:
            # 1.2.0-beta.1 bumps to 1.2.0-beta.2;
            # 1.2.0-beta.foo or 1.2.0-beta bumps to 1.2.0-beta.0.
            fresh: list[Identifier] = [identifier, base]
            if identifier_base is False:
                fresh = [identifier]
            if compare_identifiers(self.prerelease[0], identifier) == 0:
                second = self.prerelease[1] if len(self.prerelease) > 1 else None
                if _not_a_number(second):
                    self.prerelease = fresh
            else:
                self.prerelease = fresh
