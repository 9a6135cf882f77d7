from __future__ import annotations

from typing import Iterable, TypeVar

from . import functions, ranges
from .cache import DEFAULT_MAX_SIZE, LRUCache
from .grammar import GRAMMAR, Grammar
from .options import OptionsLike, SemverOptions, parse_options
from .range import Range, RangeCache
from .version import Version

T = TypeVar("T", str, Version)


class SemverEngine:
    """Owns the state the version/range functions share: the grammar and the
    range parse cache.

    Build one per process (or per thread) and route calls through it instead
    of relying on module globals. The cache carries its own lock, so one
    engine may be shared between threads.
    """

    def __init__(self, options: OptionsLike = None, cache_size: int = DEFAULT_MAX_SIZE) -> None:
        self.options: SemverOptions = parse_options(options)
        self.grammar: Grammar = GRAMMAR
        self.cache: RangeCache = LRUCache(cache_size)

    def _opts(self, options: OptionsLike) -> SemverOptions:
        return self.options if options is None else parse_options(options)

    def parse_version(self, text: str | Version, options: OptionsLike = None) -> Version:
        parsed = functions.parse(text, self._opts(options), throw_errors=True)
        assert parsed is not None
        return parsed

    def try_parse_version(self, text: str | Version, options: OptionsLike = None) -> Version | None:
        return functions.parse(text, self._opts(options))

    def compare_versions(self, a: str | Version, b: str | Version, options: OptionsLike = None) -> int:
        return functions.compare(a, b, self._opts(options))

    def gt(self, a: str | Version, b: str | Version, options: OptionsLike = None) -> bool:
        return functions.gt(a, b, self._opts(options))

    def lt(self, a: str | Version, b: str | Version, options: OptionsLike = None) -> bool:
        return functions.lt(a, b, self._opts(options))

    def gte(self, a: str | Version, b: str | Version, options: OptionsLike = None) -> bool:
        return functions.gte(a, b, self._opts(options))

    def lte(self, a: str | Version, b: str | Version, options: OptionsLike = None) -> bool:
        return functions.lte(a, b, self._opts(options))

    def eq(self, a: str | Version, b: str | Version, options: OptionsLike = None) -> bool:
        return functions.eq(a, b, self._opts(options))

    def sort(self, versions: Iterable[T], options: OptionsLike = None) -> list[T]:
        return functions.sort(versions, self._opts(options))  # type: ignore[return-value]

    def parse_range(self, text: str | Range, options: OptionsLike = None) -> Range:
        return Range(text, self._opts(options), cache=self.cache)

    def satisfies(self, version: str | Version, range_: str | Range, options: OptionsLike = None) -> bool:
        return ranges.satisfies(version, range_, self._opts(options), cache=self.cache)

    def max_satisfying(self, versions: Iterable[T], range_: str | Range, options: OptionsLike = None) -> T | None:
        return ranges.max_satisfying(versions, range_, self._opts(options), cache=self.cache)

    def min_satisfying(self, versions: Iterable[T], range_: str | Range, options: OptionsLike = None) -> T | None:
        return ranges.min_satisfying(versions, range_, self._opts(options), cache=self.cache)

    def min_version(self, range_: str | Range, options: OptionsLike = None) -> Version | None:
        return ranges.min_version(range_, self._opts(options), cache=self.cache)

    def valid_range(self, range_: str | Range, options: OptionsLike = None) -> str | None:
        return ranges.valid_range(range_, self._opts(options), cache=self.cache)

    def intersects(self, r1: str | Range, r2: str | Range, options: OptionsLike = None) -> bool:
        return ranges.intersects(r1, r2, self._opts(options), cache=self.cache)

    def subset(self, sub: str | Range, dom: str | Range, options: OptionsLike = None) -> bool:
        return ranges.subset(sub, dom, self._opts(options), cache=self.cache)

    def gtr(self, version: str | Version, range_: str | Range, options: OptionsLike = None) -> bool:
        return ranges.gtr(version, range_, self._opts(options), cache=self.cache)

    def ltr(self, version: str | Version, range_: str | Range, options: OptionsLike = None) -> bool:
        return ranges.ltr(version, range_, self._opts(options), cache=self.cache)
