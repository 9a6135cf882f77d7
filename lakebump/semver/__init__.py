"""Semantic version parsing, comparison and range matching.

Behaves like the npm `semver` package:
- `Version` values ordered by SemVer 2.0.0 precedence (build metadata ignored)
- `Range` expressions with `^`, `~`, x-ranges, hyphen ranges and `||`
- range queries: satisfaction, min/max satisfying, intersection, subset

Plain functions never keep state between calls. `SemverEngine` owns a
bounded parse cache for callers that parse many ranges.
"""

from __future__ import annotations

from .cache import LRUCache
from .comparator import Comparator
from .constants import (
    MAX_LENGTH,
    MAX_SAFE_BUILD_LENGTH,
    MAX_SAFE_COMPONENT_LENGTH,
    MAX_SAFE_INTEGER,
    RELEASE_TYPES,
    SEMVER_SPEC_VERSION,
)
from .engine import SemverEngine
from .functions import (
    clean,
    cmp,
    coerce,
    compare,
    compare_build,
    compare_loose,
    diff,
    eq,
    gt,
    gte,
    inc,
    lt,
    lte,
    major,
    minor,
    neq,
    parse,
    patch,
    prerelease,
    rcompare,
    rsort,
    sort,
    valid,
)
from .grammar import GRAMMAR, Grammar
from .identifiers import compare_identifiers, rcompare_identifiers
from .options import SemverOptions
from .range import Range
from .ranges import (
    gtr,
    intersects,
    ltr,
    max_satisfying,
    min_satisfying,
    min_version,
    outside,
    satisfies,
    simplify_range,
    subset,
    to_comparators,
    valid_range,
)
from .version import Version

__all__ = [
    # Values
    "Version",
    "Comparator",
    "Range",
    "SemverOptions",
    "SemverEngine",
    "LRUCache",
    "Grammar",
    "GRAMMAR",
    # Versions
    "parse",
    "valid",
    "clean",
    "inc",
    "diff",
    "major",
    "minor",
    "patch",
    "prerelease",
    "compare",
    "rcompare",
    "compare_loose",
    "compare_build",
    "sort",
    "rsort",
    "gt",
    "lt",
    "eq",
    "neq",
    "gte",
    "lte",
    "cmp",
    "coerce",
    "compare_identifiers",
    "rcompare_identifiers",
    # Ranges
    "satisfies",
    "to_comparators",
    "max_satisfying",
    "min_satisfying",
    "min_version",
    "valid_range",
    "outside",
    "gtr",
    "ltr",
    "intersects",
    "simplify_range",
    "subset",
    # Constants
    "SEMVER_SPEC_VERSION",
    "RELEASE_TYPES",
    "MAX_LENGTH",
    "MAX_SAFE_INTEGER",
    "MAX_SAFE_COMPONENT_LENGTH",
    "MAX_SAFE_BUILD_LENGTH",
]
