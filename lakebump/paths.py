from __future__ import annotations

import os
from pathlib import Path

LAKEFILE_NAMES = {
    "lean": "lakefile.lean",
    "toml": "lakefile.toml",
}


def work_root() -> Path:
    """Directory holding the Lake package (`LAKEBUMP_ROOT`, else the cwd)."""

    root = os.environ.get("LAKEBUMP_ROOT") or os.getcwd()
    return Path(root).expanduser().resolve()


def lakefile_path(kind: str = "toml", root: Path | None = None) -> Path:
    try:
        name = LAKEFILE_NAMES[kind]
    except KeyError:
        raise ValueError(f"unknown lakefile kind: {kind!r} (expected 'lean' or 'toml')") from None
    return (root if root is not None else work_root()) / name
