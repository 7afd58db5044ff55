from __future__ import annotations

import re
from dataclasses import dataclass

from ..models.config_models import ProfileConfig
from ..models.records import ClassifiedRow, RowKind
from .vocabulary import (
    DEFAULT_CATEGORY_TOKENS,
    DEFAULT_PROGRAM_PATTERNS,
    DEFAULT_QUOTA_MARKERS,
)

"""Row classifier.

Rule sets are evaluated in a fixed order: Program, Category, Quota, Rank.
Quota markers are loose substrings ("STATE", "PAID") that also occur inside
program names, so programs and exact category tokens are checked first.
Anything left over is Unknown; classify() never raises.
"""

__all__ = [
    "ClassifierRules",
    "RowClassifier",
]

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ClassifierRules:
    """Immutable pattern tables for one vocabulary profile."""
    program_patterns: tuple[str, ...] = DEFAULT_PROGRAM_PATTERNS
    category_tokens: tuple[str, ...] = DEFAULT_CATEGORY_TOKENS
    quota_markers: tuple[str, ...] = DEFAULT_QUOTA_MARKERS

    @classmethod
    def for_profile(cls, profile: ProfileConfig | None) -> ClassifierRules:
        if profile is None:
            return cls()
        return cls(
            program_patterns=profile.program_patterns or DEFAULT_PROGRAM_PATTERNS,
            category_tokens=profile.category_tokens or DEFAULT_CATEGORY_TOKENS,
            quota_markers=profile.quota_markers or DEFAULT_QUOTA_MARKERS,
        )


def _fold(text: str) -> str:
    return _WHITESPACE.sub(" ", text.strip()).upper()


class RowClassifier:
    def __init__(self, rules: ClassifierRules | None = None) -> None:
        self.rules = rules or ClassifierRules()
        # re.error propagates: bad patterns are a configuration problem
        self._programs = tuple(
            re.compile(p, re.IGNORECASE) for p in self.rules.program_patterns
        )
        self._categories = frozenset(_fold(t) for t in self.rules.category_tokens)
        self._quota_markers = tuple(_fold(m) for m in self.rules.quota_markers if m.strip())

    def kind_of(self, text: str) -> RowKind:
        if not isinstance(text, str):
            return RowKind.UNKNOWN
        stripped = text.strip()
        if not stripped:
            return RowKind.UNKNOWN
        if any(p.match(stripped) for p in self._programs):
            return RowKind.PROGRAM
        folded = _fold(stripped)
        if folded in self._categories:
            return RowKind.CATEGORY
        if any(marker in folded for marker in self._quota_markers):
            return RowKind.QUOTA
        if stripped.isdigit():
            return RowKind.RANK
        return RowKind.UNKNOWN

    def classify(self, text: str, row: int) -> ClassifiedRow:
        collapsed = _WHITESPACE.sub(" ", text.strip()) if isinstance(text, str) else ""
        return ClassifiedRow(kind=self.kind_of(text), text=collapsed, row=row)
