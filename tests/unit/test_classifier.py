from __future__ import annotations

import re

import pytest

from cutoff_import.models.config_models import ProfileConfig
from cutoff_import.models.records import RowKind
from cutoff_import.parsing.classifier import ClassifierRules, RowClassifier


@pytest.fixture()
def classifier() -> RowClassifier:
    return RowClassifier()


@pytest.mark.parametrize(
    "text, kind",
    [
        ("M.D. General Medicine", RowKind.PROGRAM),
        ("MS ORTHOPAEDICS", RowKind.PROGRAM),
        ("MBBS", RowKind.PROGRAM),
        ("OPEN", RowKind.CATEGORY),
        ("obc  pwd", RowKind.CATEGORY),
        ("ALL INDIA QUOTA", RowKind.QUOTA),
        ("MANAGEMENT/PAID SEATS QUOTA", RowKind.QUOTA),
        ("10248", RowKind.RANK),
        ("0", RowKind.RANK),
        ("Remarks", RowKind.UNKNOWN),
        ("-12", RowKind.UNKNOWN),
        ("", RowKind.UNKNOWN),
        ("   ", RowKind.UNKNOWN),
    ],
)
def test_kind_of(classifier: RowClassifier, text: str, kind: RowKind):
    assert classifier.kind_of(text) is kind


def test_program_wins_over_category_and_quota(classifier: RowClassifier):
    # GENERAL is a category token, STATE a quota marker
    assert classifier.kind_of("GENERAL MEDICINE") is RowKind.PROGRAM
    assert classifier.kind_of("M.D. STATE QUOTA MEDICINE") is RowKind.PROGRAM


def test_category_is_exact_match_only(classifier: RowClassifier):
    assert classifier.kind_of("OPEN QUOTA") is RowKind.QUOTA
    assert classifier.kind_of("OPENING") is RowKind.UNKNOWN


@pytest.mark.parametrize(
    "text",
    ["", "x", "1 2", "¹²", "OPEN\n", "\t", "M.D.", "QUOTA 123", "🙂", "None"],
)
def test_classification_is_total(classifier: RowClassifier, text: str):
    kinds = [k for k in RowKind if classifier.kind_of(text) is k]
    assert len(kinds) == 1


def test_non_string_input_is_unknown(classifier: RowClassifier):
    assert classifier.kind_of(None) is RowKind.UNKNOWN  # type: ignore[arg-type]


def test_classify_keeps_row_and_strips_text(classifier: RowClassifier):
    row = classifier.classify("  OPEN ", 7)
    assert row.kind is RowKind.CATEGORY
    assert row.text == "OPEN"
    assert row.row == 7


@pytest.mark.parametrize(
    "text",
    [
        "(NBEMS) Diploma in Family Medicine",
        "(NBEMS- Diploma) Anaesthesiology",
    ],
)
def test_parenthesised_nbems_is_program(classifier: RowClassifier, text: str):
    assert classifier.kind_of(text) is RowKind.PROGRAM


@pytest.mark.parametrize(
    "text",
    [
        "NON-RESIDENT INDIAN",
        "MUSLIM MINORITY",
        "FOREIGN",
        "OVERSEAS",
        "INTERNATIONAL",
        "NRI QUOTA",
    ],
)
def test_extra_quota_markers(classifier: RowClassifier, text: str):
    assert classifier.kind_of(text) is RowKind.QUOTA


def test_classify_collapses_inner_whitespace(classifier: RowClassifier):
    row = classifier.classify(" OBC   PWD ", 3)
    assert row.kind is RowKind.CATEGORY
    assert row.text == "OBC PWD"


def test_profile_overrides_vocabulary():
    profile = ProfileConfig(name="KEA", quota_markers=("KEA",), category_tokens=("GM",))
    classifier = RowClassifier(ClassifierRules.for_profile(profile))
    assert classifier.kind_of("GM") is RowKind.CATEGORY
    assert classifier.kind_of("OPEN") is RowKind.UNKNOWN
    assert classifier.kind_of("KEA SEATS") is RowKind.QUOTA
    assert classifier.kind_of("ALL INDIA QUOTA") is RowKind.UNKNOWN
    # unset tables fall back to the built-ins
    assert classifier.kind_of("MBBS") is RowKind.PROGRAM


def test_invalid_program_pattern_raises():
    with pytest.raises(re.error):
        RowClassifier(ClassifierRules(program_patterns=("M.D.(",)))
