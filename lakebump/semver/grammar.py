"""Regular-expression grammar for version and range text.

Every token is registered once, in dependency order, from a source string.
Each token is compiled twice: as written, and in a hardened form where the
unbounded `*` / `+` repetition of whitespace, digits and identifier
characters is capped. Parsing inside this package only uses the hardened
patterns; the plain ones are exposed for callers that want them.
"""

from __future__ import annotations

import re
from typing import Pattern

from .constants import MAX_LENGTH, MAX_SAFE_BUILD_LENGTH, MAX_SAFE_COMPONENT_LENGTH


LETTERDASHNUMBER = "[a-zA-Z0-9-]"

# (token, cap) pairs rewritten by harden().
SAFE_REGEX_REPLACEMENTS: tuple[tuple[str, int], ...] = (
    (r"\s", MAX_LENGTH),
    (r"\d", MAX_LENGTH),
    (LETTERDASHNUMBER, MAX_SAFE_BUILD_LENGTH),
)

# Replacement templates paired with the *TRIM tokens.
COMPARATOR_TRIM_REPLACE = r"\1\2\3"
TILDE_TRIM_REPLACE = r"\1~"
CARET_TRIM_REPLACE = r"\1^"


def harden(value: str) -> str:
    """Replace greedy repetition of the dangerous tokens with bounded repetition."""

    for token, cap in SAFE_REGEX_REPLACEMENTS:
        value = value.replace(f"{token}*", f"{token}{{0,{cap}}}")
        value = value.replace(f"{token}+", f"{token}{{1,{cap}}}")
    return value


class Grammar:
    """Registry of named grammar tokens.

    Built once; read-only afterwards and safe to share between threads.
    """

    def __init__(self) -> None:
        self._src: dict[str, str] = {}
        self._safe_src: dict[str, str] = {}
        self._re: dict[str, Pattern[str]] = {}
        self._safe_re: dict[str, Pattern[str]] = {}
        self._build()

    def _token(self, name: str, value: str) -> None:
        safe = harden(value)
        self._src[name] = value
        self._safe_src[name] = safe
        self._re[name] = re.compile(value, re.ASCII)
        self._safe_re[name] = re.compile(safe, re.ASCII)

    def src(self, name: str) -> str:
        return self._src[name]

    def safe_src(self, name: str) -> str:
        return self._safe_src[name]

    def re(self, name: str) -> Pattern[str]:
        return self._re[name]

    def safe(self, name: str) -> Pattern[str]:
        return self._safe_re[name]

    def names(self) -> list[str]:
        return list(self._src)

    def _build(self) -> None:
        t = self._token
        s = self._src

        # A single `0`, or a non-zero digit followed by more digits.
        t("NUMERICIDENTIFIER", r"0|[1-9]\d*")
        t("NUMERICIDENTIFIERLOOSE", r"\d+")

        # Digits, then a letter or hyphen, then letters, digits or hyphens.
        t("NONNUMERICIDENTIFIER", rf"\d*[a-zA-Z-]{LETTERDASHNUMBER}*")

        t(
            "MAINVERSION",
            rf"({s['NUMERICIDENTIFIER']})\.({s['NUMERICIDENTIFIER']})\.({s['NUMERICIDENTIFIER']})",
        )
        t(
            "MAINVERSIONLOOSE",
            rf"({s['NUMERICIDENTIFIERLOOSE']})\.({s['NUMERICIDENTIFIERLOOSE']})\.({s['NUMERICIDENTIFIERLOOSE']})",
        )

        # Non-numeric identifiers must come first: they can be longer.
        t("PRERELEASEIDENTIFIER", rf"(?:{s['NONNUMERICIDENTIFIER']}|{s['NUMERICIDENTIFIER']})")
        t(
            "PRERELEASEIDENTIFIERLOOSE",
            rf"(?:{s['NONNUMERICIDENTIFIER']}|{s['NUMERICIDENTIFIERLOOSE']})",
        )

        t(
            "PRERELEASE",
            rf"(?:-({s['PRERELEASEIDENTIFIER']}(?:\.{s['PRERELEASEIDENTIFIER']})*))",
        )
        t(
            "PRERELEASELOOSE",
            rf"(?:-?({s['PRERELEASEIDENTIFIERLOOSE']}(?:\.{s['PRERELEASEIDENTIFIERLOOSE']})*))",
        )

        t("BUILDIDENTIFIER", f"{LETTERDASHNUMBER}+")
        t("BUILD", rf"(?:\+({s['BUILDIDENTIFIER']}(?:\.{s['BUILDIDENTIFIER']})*))")

        # Only major, minor, patch, prerelease and build are capturing groups.
        t("FULLPLAIN", f"v?{s['MAINVERSION']}{s['PRERELEASE']}?{s['BUILD']}?")
        t("FULL", f"^{s['FULLPLAIN']}$")

        # Also accepts v1.2.3, =1.2.3 and 1.0.0alpha1.
        t("LOOSEPLAIN", rf"[v=\s]*{s['MAINVERSIONLOOSE']}{s['PRERELEASELOOSE']}?{s['BUILD']}?")
        t("LOOSE", f"^{s['LOOSEPLAIN']}$")

        t("GTLT", "((?:<|>)?=?)")

        # "2.*", "1.2.x", "x.x"; only the first part is required.
        t("XRANGEIDENTIFIERLOOSE", rf"{s['NUMERICIDENTIFIERLOOSE']}|x|X|\*")
        t("XRANGEIDENTIFIER", rf"{s['NUMERICIDENTIFIER']}|x|X|\*")

        t(
            "XRANGEPLAIN",
            rf"[v=\s]*({s['XRANGEIDENTIFIER']})"
            rf"(?:\.({s['XRANGEIDENTIFIER']})"
            rf"(?:\.({s['XRANGEIDENTIFIER']})"
            rf"(?:{s['PRERELEASE']})?{s['BUILD']}?"
            r")?)?",
        )
        t(
            "XRANGEPLAINLOOSE",
            rf"[v=\s]*({s['XRANGEIDENTIFIERLOOSE']})"
            rf"(?:\.({s['XRANGEIDENTIFIERLOOSE']})"
            rf"(?:\.({s['XRANGEIDENTIFIERLOOSE']})"
            rf"(?:{s['PRERELEASELOOSE']})?{s['BUILD']}?"
            r")?)?",
        )

        t("XRANGE", rf"^{s['GTLT']}\s*{s['XRANGEPLAIN']}$")
        t("XRANGELOOSE", rf"^{s['GTLT']}\s*{s['XRANGEPLAINLOOSE']}$")

        # Anything that could conceivably be part of a version.
        n = MAX_SAFE_COMPONENT_LENGTH
        t(
            "COERCEPLAIN",
            rf"(^|[^\d])(\d{{1,{n}}})(?:\.(\d{{1,{n}}}))?(?:\.(\d{{1,{n}}}))?",
        )
        t("COERCE", rf"{s['COERCEPLAIN']}(?:$|[^\d])")
        t(
            "COERCEFULL",
            rf"{s['COERCEPLAIN']}(?:{s['PRERELEASE']})?(?:{s['BUILD']})?(?:$|[^\d])",
        )

        # "Reasonably at or greater than".
        t("LONETILDE", "(?:~>?)")
        t("TILDETRIM", rf"(\s*){s['LONETILDE']}\s+")
        t("TILDE", f"^{s['LONETILDE']}{s['XRANGEPLAIN']}$")
        t("TILDELOOSE", f"^{s['LONETILDE']}{s['XRANGEPLAINLOOSE']}$")

        # "At least and backwards compatible with".
        t("LONECARET", r"(?:\^)")
        t("CARETTRIM", rf"(\s*){s['LONECARET']}\s+")
        t("CARET", f"^{s['LONECARET']}{s['XRANGEPLAIN']}$")
        t("CARETLOOSE", f"^{s['LONECARET']}{s['XRANGEPLAINLOOSE']}$")

        # A gt/lt/eq operator and a version, or "" for any version.
        t("COMPARATORLOOSE", rf"^{s['GTLT']}\s*({s['LOOSEPLAIN']})$|^$")
        t("COMPARATOR", rf"^{s['GTLT']}\s*({s['FULLPLAIN']})$|^$")

        # Strips whitespace between an operator and its operand: `> 1.2.3` -> `>1.2.3`.
        t("COMPARATORTRIM", rf"(\s*){s['GTLT']}\s*({s['LOOSEPLAIN']}|{s['XRANGEPLAIN']})")

        # `1.2.3 - 1.2.4`
        t(
            "HYPHENRANGE",
            rf"^\s*({s['XRANGEPLAIN']})\s+-\s+({s['XRANGEPLAIN']})\s*$",
        )
        t(
            "HYPHENRANGELOOSE",
            rf"^\s*({s['XRANGEPLAINLOOSE']})\s+-\s+({s['XRANGEPLAINLOOSE']})\s*$",
        )

        t("STAR", r"(<|>)?=?\s*\*")
        # >=0.0.0 is like a star.
        t("GTE0", r"^\s*>=\s*0\.0\.0\s*$")
        t("GTE0PRE", r"^\s*>=\s*0\.0\.0-0\s*$")


GRAMMAR = Grammar()
