from __future__ import annotations

import pytest

from cutoff_import.parsing.normalizer import Normalizer, TypoTableError


@pytest.fixture()
def normalizer() -> Normalizer:
    return Normalizer()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10248 0", "102480"),  # five digits, stray space
        ("1024 8", "10248"),
        ("1 2 3", "123"),
        ("MANAGE MENT", "MANAGEMENT"),
        ("MANAGE MENT/PAI D SEATS QUOTA", "MANAGEMENT/PAID SEATS QUOTA"),
        ("Example College, Example College, City", "Example College, City"),
        ("Example College, City, State", "Example College, City, State"),
        ("M.D. General Medicine", "M.D. General Medicine"),
        ("", ""),
    ],
)
def test_normalize_examples(normalizer: Normalizer, raw: str, expected: str):
    assert normalizer.normalize(raw) == expected


def test_typos_only_replace_whole_words(normalizer: Normalizer):
    # "PAI D" inside a longer token is not a split word
    assert normalizer.normalize("XPAI DX") == "XPAI DX"


def test_digits_mixed_with_text_are_left_alone(normalizer: Normalizer):
    assert normalizer.normalize("R 12 34") == "R 12 34"


@pytest.mark.parametrize(
    "raw",
    [
        "10248 0",
        "1 0 2 4 8",
        "MANAGE MENT/PAI D SEATS QUOTA",
        "A, A, A, B",
        "  OPEN  ",
        "Dup, Dup, MANAGE MENT, rest",
        "12345 6789 0",
        "ünïcödé, ünïcödé, x",
    ],
)
def test_normalize_is_idempotent(normalizer: Normalizer, raw: str):
    once = normalizer.normalize(raw)
    assert normalizer.normalize(once) == once


def test_user_typo_fixes_merge_over_defaults():
    n = Normalizer({"GENER AL": "GENERAL"})
    assert n.normalize("GENER AL") == "GENERAL"
    assert n.normalize("MANAGE MENT") == "MANAGEMENT"
    assert "GENER AL" in n.typo_fixes


def test_typo_replacement_must_shrink():
    with pytest.raises(TypoTableError):
        Normalizer({"AB": "ABC"})


def test_empty_typo_rejected():
    with pytest.raises(TypoTableError):
        Normalizer({"": ""})
