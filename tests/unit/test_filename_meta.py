from __future__ import annotations

import pytest

from cutoff_import.models.records import ImportContext
from cutoff_import.services.filename_meta import parse_import_context


@pytest.mark.parametrize(
    "name, expected",
    [
        ("AIQ_PG_2023_R3.xlsx", ImportContext("AIQ_PG", 2023, "3")),
        ("AIQ_UG_2024_R01.xlsx", ImportContext("AIQ_UG", 2024, "1")),
        ("aiq_pg_2024_special_stray.xlsx", ImportContext("AIQ_PG", 2024, "SPECIAL_STRAY")),
        ("AIQ_PG_2024_STRAY_final.xlsx", ImportContext("AIQ_PG", 2024, "STRAY")),
        ("KEA_2024_MEDICAL_R1_CLEANED.xlsx", ImportContext("KEA_MEDICAL", 2024, "1")),
        ("KEA_2023_DENTAL_MOPUP_CLEANED.xlsx", ImportContext("KEA_DENTAL", 2023, "MOPUP")),
        ("KEA_2023_DENTAL_EXTENDED_STRAY.xlsx", ImportContext("KEA_DENTAL", 2023, "EXTENDED_STRAY")),
    ],
)
def test_recognized_names(name: str, expected: ImportContext):
    assert parse_import_context(name) == expected


@pytest.mark.parametrize(
    "name",
    [
        "cutoffs.xlsx",
        "AIQ_PG_23_R1.xlsx",
        "AIQ_MD_2023_R1.xlsx",
        "KEA_2024_AYUSH_R1.xlsx",
        "AIQ_PG_2023_R3X.xlsx",
        "AIQ_PG_2023.xlsx",
    ],
)
def test_unrecognized_names(name: str):
    assert parse_import_context(name) is None


def test_label():
    assert ImportContext("AIQ_PG", 2023, "3").label() == "AIQ_PG 2023 round=3"
