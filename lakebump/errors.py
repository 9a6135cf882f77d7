from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class SemverError(ValueError):
    """Base exception for version / range parsing and misuse."""


class InvalidVersion(SemverError):
    """Raised when text is not a valid version (or is too long / too large)."""


class InvalidComparator(SemverError):
    """Raised when a single comparator like `>=1.2.3` cannot be parsed."""


class InvalidRange(SemverError):
    """Raised when no part of a range expression parses."""


class InvalidIncrementArgument(SemverError):
    """Raised for an unknown release type or an unusable prerelease identifier."""


class NotAPrerelease(SemverError):
    """Raised when `release` is applied to a version without a prerelease."""


class TomlError(ValueError):
    """Base exception for TOML parsing and serialization errors."""


def _line_col(doc: str, pos: int) -> tuple[int, int]:
    lines = doc[:pos].replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return len(lines), len(lines[-1]) + 1


def _codeblock(doc: str, line: int, column: int) -> str:
    lines = doc.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    width = len(str(line + 1))
    out = ""
    for i in range(line - 1, line + 2):
        if i < 1 or i > len(lines) or not lines[i - 1]:
            continue
        out += f"{str(i).ljust(width)}:  {lines[i - 1]}\n"
        if i == line:
            out += " " * (width + column + 2) + "^\n"
    return out


class TomlSyntaxError(TomlError):
    """Raised when a TOML document cannot be parsed.

    Carries the same attributes as stdlib `tomllib.TOMLDecodeError`
    (`msg`, `doc`, `pos`, `lineno`, `colno`) plus a short `codeblock`
    pointing at the offending column.
    """

    def __init__(self, msg: str, doc: str, pos: int) -> None:
        lineno, colno = _line_col(doc, pos)
        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.lineno = lineno
        self.colno = colno
        self.codeblock = _codeblock(doc, lineno, colno)
        super().__init__(f"Invalid TOML document: {msg}\n\n{self.codeblock}")


class TomlDepthError(TomlError):
    """Raised when a document nests deeper than the configured max depth."""


class TomlTypeError(TomlError, TypeError):
    """Raised when a value has no TOML representation."""


class ManifestError(Exception):
    """Base exception for lakefile reading/rewriting errors."""


@dataclass(frozen=True)
class ManifestParseError(ManifestError):
    """Raised when a lakefile cannot be parsed as TOML."""

    path: Path
    message: str
    lineno: int | None = None
    colno: int | None = None

    def __str__(self) -> str:
        loc = ""
        if self.lineno is not None and self.colno is not None:
            loc = f" (line {self.lineno}, column {self.colno})"
        return f"Invalid TOML in {self.path}: {self.message}{loc}"


@dataclass(frozen=True)
class ManifestValidationError(ManifestError):
    """Raised when a parsed lakefile does not have the expected shape."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"Invalid manifest {self.path}: {self.message}"


@dataclass(frozen=True)
class UnsupportedLakefile(ManifestError):
    """Raised when the project only ships a `lakefile.lean`."""

    path: Path

    def __str__(self) -> str:
        return f"Project uses {self.path.name}; only lakefile.toml can be rewritten"
