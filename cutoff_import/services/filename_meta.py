from __future__ import annotations

import re
from pathlib import Path

from ..models.records import ImportContext

"""Import context from the source system's file naming.

AIQ_PG_2023_R3.xlsx                  -> AIQ_PG 2023 round 3
AIQ_UG_2024_SPECIAL_STRAY.xlsx       -> AIQ_UG 2024 round SPECIAL_STRAY
KEA_2024_MEDICAL_R1_CLEANED.xlsx     -> KEA_MEDICAL 2024 round 1
KEA_2023_DENTAL_MOPUP_CLEANED.xlsx   -> KEA_DENTAL 2023 round MOPUP
"""

__all__ = [
    "parse_import_context",
]

# Named rounds: longer labels first so SPECIAL_STRAY is not read as STRAY.
_NAMED_ROUND = r"(?P<named>SPECIAL_STRAY|EXTENDED_STRAY|STRAY|MOPUP)"
_ROUND = rf"(?:R(?P<num>\d+)|{_NAMED_ROUND})"

_PATTERNS = (
    re.compile(rf"^AIQ_(?P<level>PG|UG)_(?P<year>\d{{4}})_{_ROUND}(?:_|$)", re.IGNORECASE),
    re.compile(
        rf"^KEA_(?P<year>\d{{4}})_(?P<stream>MEDICAL|DENTAL)_{_ROUND}(?:_|$)", re.IGNORECASE
    ),
)


def parse_import_context(filename: str) -> ImportContext | None:
    """Return the file's import context, or None for an unrecognized name."""
    stem = Path(filename).stem
    for pattern in _PATTERNS:
        m = pattern.match(stem)
        if not m:
            continue
        groups = m.groupdict()
        if groups.get("level"):
            counselling_type = f"AIQ_{groups['level'].upper()}"
        else:
            counselling_type = f"KEA_{groups['stream'].upper()}"
        round_label = groups["num"] if groups.get("num") else groups["named"].upper()
        return ImportContext(
            counselling_type=counselling_type,
            year=int(groups["year"]),
            round=str(int(round_label)) if round_label.isdigit() else round_label,
        )
    return None
