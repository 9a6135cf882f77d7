from __future__ import annotations

import logging

from lakebump.releases import new_releases, tags_from_ls_remote, tags_from_tag_list, version_tags

LS_REMOTE = (
    "1111111111111111111111111111111111111111\trefs/tags/v4.8.0\r\n"
    "2222222222222222222222222222222222222222\trefs/tags/v4.8.0^{}\r\n"
    "3333333333333333333333333333333333333333\trefs/tags/v4.9.0-rc1\n"
    "4444444444444444444444444444444444444444\trefs/tags/nightly-2024-05-01\n"
    "5555555555555555555555555555555555555555\trefs/tags/v4\n"
    "\n"
)


def test_tags_from_ls_remote() -> None:
    assert tags_from_ls_remote(LS_REMOTE) == ["v4.8.0", "v4.9.0-rc1"]
    assert tags_from_ls_remote("") == []


def test_tags_from_tag_list() -> None:
    assert tags_from_tag_list("v1.0\n  v1.1 \n\nv2.0.0\n") == ["v1.0", "v1.1", "v2.0.0"]


def test_version_tags_sorts_and_skips_bad_tags(caplog) -> None:
    tags = version_tags(["v4.9.0", "v4.8.0", "v4.9.0-rc1", "nightly-2024", "4.10.0", "v4.8.0+build"])

    assert [t.tag for t in tags] == ["v4.8.0", "v4.8.0+build", "v4.9.0-rc1", "v4.9.0", "4.10.0"]
    assert tags[0].version.version == "4.8.0"
    assert "Skipping tag 'nightly-2024'" in caplog.text


def test_new_releases() -> None:
    upstream = version_tags(["v4.7.0", "v4.8.0", "v4.9.0-rc1", "v4.9.0"])
    ours = version_tags(["v4.7.0", "v4.8.0"])

    assert [r.tag for r in new_releases(upstream, ours)] == ["v4.9.0-rc1", "v4.9.0"]
    assert new_releases(upstream, version_tags(["v4.9.0"])) == []


def test_new_releases_without_own_releases(caplog) -> None:
    caplog.set_level(logging.INFO, logger="lakebump.releases")
    upstream = version_tags(["v4.8.0"])

    assert new_releases(upstream, []) == []
    assert "No releases found in the current project" in caplog.text
