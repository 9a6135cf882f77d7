from __future__ import annotations

# Version of semver.org implemented here, not the package version.
SEMVER_SPEC_VERSION = "2.0.0"

MAX_LENGTH = 256
MAX_SAFE_INTEGER = 2**53 - 1

# Max digits per component when coercing arbitrary text.
MAX_SAFE_COMPONENT_LENGTH = 16

# MAX_LENGTH minus the shortest version carrying a build: "0.0.0+".
MAX_SAFE_BUILD_LENGTH = MAX_LENGTH - 6

RELEASE_TYPES = (
    "major",
    "premajor",
    "minor",
    "preminor",
    "patch",
    "prepatch",
    "prerelease",
)

FLAG_INCLUDE_PRERELEASE = 0b001
FLAG_LOOSE = 0b010
