from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .constants import FLAG_INCLUDE_PRERELEASE, FLAG_LOOSE


@dataclass(frozen=True)
class SemverOptions:
    """Parse flags shared by versions, comparators and ranges.

    `loose` accepts sloppy input such as `v1.2.3`, `=1.2.3` or `1.2.3beta`.
    `include_prerelease` lets ranges match prerelease versions from any
    major.minor.patch tuple instead of only the tuple they are anchored at.
    """

    loose: bool = False
    include_prerelease: bool = False

    @property
    def flags(self) -> int:
        return (FLAG_INCLUDE_PRERELEASE if self.include_prerelease else 0) | (
            FLAG_LOOSE if self.loose else 0
        )


DEFAULT_OPTIONS = SemverOptions()
LOOSE_OPTIONS = SemverOptions(loose=True)

OptionsLike = SemverOptions | Mapping[str, Any] | bool | None


def parse_options(options: OptionsLike = None) -> SemverOptions:
    """Normalize the accepted option shapes into a SemverOptions.

    `None` means defaults, a bare bool is shorthand for `loose`, and a mapping
    may use either `include_prerelease` or `includePrerelease`.
    """

    if options is None:
        return DEFAULT_OPTIONS
    if isinstance(options, SemverOptions):
        return options
    if isinstance(options, bool):
        return LOOSE_OPTIONS if options else DEFAULT_OPTIONS
    if isinstance(options, Mapping):
        include = options.get("include_prerelease", options.get("includePrerelease", False))
        return SemverOptions(loose=bool(options.get("loose", False)), include_prerelease=bool(include))
    raise TypeError(f"parse_options: unsupported options type: {type(options).__name__}")
