"""Release tags: extraction from git output and new-release selection.

The caller runs git (`git ls-remote --tags <url>` for upstream, `git tag
--list 'v*.*'` for the local project) and hands the text over.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from typing import Iterable

from .semver import Version, compare_build, gt, parse

logger = logging.getLogger(__name__)

_LS_REMOTE_TAG = re.compile(r"refs/tags/(v.*\..*)$")


@dataclass(frozen=True)
class ReleaseTag:
    """A git tag together with the version it names (`v4.9.0` -> `4.9.0`)."""

    version: Version
    tag: str


def tags_from_ls_remote(output: str) -> list[str]:
    """Pick `v*.*` tag names out of `git ls-remote --tags` output.

    Annotated tags are listed twice, once with a `^{}` suffix; only the plain
    line is kept.
    """

    tags: list[str] = []
    for line in output.split("\n"):
        line = line.rstrip("\r")
        if line.endswith("^{}"):
            continue
        m = _LS_REMOTE_TAG.search(line)
        if m:
            tags.append(m.group(1))
    return tags


def tags_from_tag_list(output: str) -> list[str]:
    return [line.strip() for line in output.split("\n") if line.strip()]


def version_tags(tags: Iterable[str]) -> list[ReleaseTag]:
    """Parse tags (without their leading `v`) and sort them ascending.

    Tags that are not valid versions are skipped with a warning.
    """

    out: list[ReleaseTag] = []
    for tag in tags:
        version = parse(tag[1:] if tag.startswith("v") else tag)
        if version is None:
            logger.warning(f"Skipping tag {tag!r}: not a semantic version")
            continue
        out.append(ReleaseTag(version=version, tag=tag))

    out.sort(key=functools.cmp_to_key(lambda a, b: compare_build(a.version, b.version)))
    return out


def new_releases(upstream: list[ReleaseTag], ours: list[ReleaseTag]) -> list[ReleaseTag]:
    """Upstream releases newer than our latest one.

    With no releases of our own there is nothing to step through: returns [].
    Both lists are expected in ascending order, as `version_tags` returns them.
    """

    logger.info(f"Found {len(upstream)} upstream releases and {len(ours)} project releases")

    if not ours:
        logger.info("No releases found in the current project; nothing to step through")
        return []

    latest = ours[-1].version
    newer = [r for r in upstream if gt(r.version, latest)]
    logger.info(f"Releases newer than {ours[-1].tag}: {', '.join(r.tag for r in newer) or 'none'}")
    return newer
