from __future__ import annotations

"""Rewriting the Mathlib revision pinned in a Lake package's lakefile.

Only `lakefile.toml` can be rewritten. Lake prefers `lakefile.lean` when
both exist, so a project shipping one is rejected rather than half-updated.

We do not preserve comments or exact formatting; the file is rewritten in
the canonical layout of `toml_write.stringify_toml`.
"""

import logging
from pathlib import Path
from typing import Any

from .errors import ManifestParseError, ManifestValidationError, TomlError, TomlSyntaxError, UnsupportedLakefile
from .paths import lakefile_path
from .toml_parse import parse_toml
from .toml_write import stringify_toml

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "leanprover-community"
DEFAULT_NAME = "mathlib"


def find_lakefile(root: Path) -> Path:
    """Locate the package's lakefile under `root`."""

    lean = lakefile_path("lean", root)
    if lean.exists():
        raise UnsupportedLakefile(path=lean)

    toml = lakefile_path("toml", root)
    if not toml.exists():
        raise ManifestValidationError(
            path=root,
            message="could not find lakefile.lean or lakefile.toml; point LAKEBUMP_ROOT at the Lake package",
        )
    logger.debug(f"Using lakefile {toml}")
    return toml


def _parse_lakefile(path: Path, text: str) -> dict[str, Any]:
    try:
        return parse_toml(text)
    except TomlSyntaxError as e:
        raise ManifestParseError(path=path, message=e.msg, lineno=e.lineno, colno=e.colno) from e
    except TomlError as e:
        raise ManifestParseError(path=path, message=str(e)) from e


def load_lakefile_raw(path: Path) -> dict[str, Any]:
    """Load a lakefile.toml as a dict."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestValidationError(path=path, message=f"unable to read file: {e}") from e
    return _parse_lakefile(path, text)


def set_require_rev(doc: dict[str, Any], *, scope: str, name: str, rev: str, path: Path | None = None) -> int:
    """Point every `[[require]]` entry matching `scope`/`name` at `rev`.

    Returns how many entries were rewritten.
    """

    where = path if path is not None else Path("lakefile.toml")
    requires = doc.get("require")
    if requires is None:
        raise ManifestValidationError(path=where, message="require: missing [[require]] entries")
    if not isinstance(requires, list):
        raise ManifestValidationError(path=where, message="require: expected array of tables")

    count = 0
    for i, pkg in enumerate(requires):
        if not isinstance(pkg, dict):
            raise ManifestValidationError(path=where, message=f"require[{i}]: expected table")
        if pkg.get("scope") == scope and pkg.get("name") == name:
            pkg["rev"] = rev
            count += 1
    return count


def rewrite_lakefile_rev(
    path: Path,
    *,
    rev: str,
    scope: str = DEFAULT_SCOPE,
    name: str = DEFAULT_NAME,
) -> int:
    """Rewrite the pinned revision of `scope/name` in `path` to `rev`.

    The file is read and rewritten through one handle: truncated, rewound to
    offset zero, then written, so a shorter document leaves no stale tail.
    """

    try:
        fh = path.open("r+", encoding="utf-8", newline="")
    except FileNotFoundError as e:
        raise ManifestValidationError(path=path, message="file not found") from e

    with fh:
        doc = _parse_lakefile(path, fh.read())
        count = set_require_rev(doc, scope=scope, name=name, rev=rev, path=path)
        text = stringify_toml(doc) + "\n"
        fh.truncate(0)
        fh.seek(0)
        fh.write(text)

    if count:
        logger.info(f"Pinned {scope}/{name} to {rev} in {path} ({count} entries)")
    else:
        logger.warning(f"No [[require]] entry for {scope}/{name} in {path}; nothing pinned")
    return count
