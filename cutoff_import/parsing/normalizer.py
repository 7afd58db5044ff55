from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

from .vocabulary import DEFAULT_TYPO_FIXES

"""Lexical repair of raw cell text before classification.

Steps, applied in order and repeated until the text stops changing:

a. a 5-digit run, whitespace, then more digits is joined ("10248 0" -> "102480")
b. any other whitespace inside a pure-digit token is removed ("1024 8" -> "10248")
c. typo dictionary substitution on whole words ("MANAGE MENT" -> "MANAGEMENT")
d. a duplicated leading header segment is collapsed ("A, A, B" -> "A, B")

Every step that changes the text makes it strictly shorter, so the loop
terminates and normalize() is idempotent.
"""

__all__ = [
    "Normalizer",
    "TypoTableError",
]

_SPLIT_RANK = re.compile(r"^(\d{5})\s+(\d+)$")
_SPACED_DIGITS = re.compile(r"^\d+(?:\s+\d+)+$")
_WHITESPACE = re.compile(r"\s+")
_DUPLICATED_SEGMENT = re.compile(r"^([^,]+?)\s*,\s*\1\s*,")


class TypoTableError(ValueError):
    """Raised when a typo table entry could make normalization loop."""


def _join_split_rank(text: str) -> str:
    m = _SPLIT_RANK.match(text.strip())
    if m:
        return m.group(1) + m.group(2)
    return text


def _join_digit_groups(text: str) -> str:
    stripped = text.strip()
    if _SPACED_DIGITS.match(stripped):
        return _WHITESPACE.sub("", stripped)
    return text


def _collapse_duplicated_segment(text: str) -> str:
    m = _DUPLICATED_SEGMENT.match(text)
    if m:
        return f"{m.group(1)},{text[m.end():]}"
    return text


class Normalizer:
    """Pure text normalizer configured with a typo dictionary."""

    def __init__(self, typo_fixes: Mapping[str, str] | None = None) -> None:
        fixes = dict(DEFAULT_TYPO_FIXES)
        if typo_fixes:
            fixes.update(typo_fixes)
        for typo, fix in fixes.items():
            if not typo:
                raise TypoTableError("typo entries must not be empty")
            if len(fix) >= len(typo):
                raise TypoTableError(
                    f"typo replacement must be shorter than the typo: {typo!r} -> {fix!r}"
                )
        self.typo_fixes: Mapping[str, str] = MappingProxyType(fixes)
        self._typo_re: re.Pattern[str] | None = None
        if fixes:
            # longest first so "MANAGE MENT/PAI D" wins over "MANAGE MENT"
            alternation = "|".join(
                re.escape(t) for t in sorted(fixes, key=len, reverse=True)
            )
            self._typo_re = re.compile(rf"(?<!\w)(?:{alternation})(?!\w)")

    def _fix_typos(self, text: str) -> str:
        if self._typo_re is None:
            return text
        return self._typo_re.sub(lambda m: self.typo_fixes[m.group(0)], text)

    def _single_pass(self, text: str) -> str:
        text = _join_split_rank(text)
        text = _join_digit_groups(text)
        text = self._fix_typos(text)
        return _collapse_duplicated_segment(text)

    def normalize(self, text: str) -> str:
        current = text
        while True:
            nxt = self._single_pass(current)
            if nxt == current:
                return current
            current = nxt
