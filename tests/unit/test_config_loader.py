from __future__ import annotations

from pathlib import Path

import pytest

from cutoff_import.config.loader import SCHEMA_PATH, ConfigError, load_config
from cutoff_import.models.records import RowKind
from cutoff_import.parsing.classifier import ClassifierRules, RowClassifier


def test_load_config_sample(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_directory == "./data"
    assert cfg.batch_size == 100
    assert cfg.keep_na_strings == ("NA",)
    assert cfg.typo_fixes == {"GENER AL": "GENERAL"}
    assert cfg.profiles["KEA"].header_strategy == "full"
    assert cfg.profiles["KEA"].quota_markers is None
    assert cfg.database.port == 5432
    assert cfg.timezone == "UTC"


def test_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("source_directory: ./data\n", encoding="utf-8")
    cfg = load_config(p)
    assert cfg.recursive is False
    assert cfg.workers == 1
    assert cfg.batch_size == 1000
    assert cfg.profiles == {}
    assert cfg.database.dsn is None


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "missing.yml")


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("source_directory: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


@pytest.mark.parametrize(
    "body",
    [
        "workers: 2\n",  # source_directory missing
        "source_directory: ./data\nworkers: 0\n",
        "source_directory: ./data\nunknown_key: 1\n",
        "source_directory: ./data\nprofiles:\n  AIQ:\n    header_strategy: last\n",
        "source_directory: ./data\ndatabase:\n  port: not-a-port\n",
    ],
)
def test_schema_violations(temp_workdir: Path, body: str):
    p = temp_workdir / "config" / "import.yml"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(p)


def test_bad_program_pattern(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text(
        "source_directory: ./data\nprofiles:\n  AIQ:\n    program_patterns: ['M.D.(']\n",
        encoding="utf-8",
    )
    with pytest.raises(ConfigError, match="invalid program pattern"):
        load_config(p)


def test_growing_typo_fix_rejected(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("source_directory: ./data\ntypo_fixes:\n  MD: M.D.\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="typo_fixes"):
        load_config(p)


def test_profile_for_longest_prefix(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text(
        "source_directory: ./data\n"
        "profiles:\n"
        "  KEA: {header_strategy: first_segment}\n"
        "  KEA_DENTAL: {header_strategy: full}\n",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.profile_for("KEA_DENTAL").name == "KEA_DENTAL"
    assert cfg.profile_for("kea_medical").name == "KEA"
    assert cfg.profile_for("AIQ_PG") is None


def test_schema_ships_with_package():
    assert SCHEMA_PATH.name == "config_schema.json"
    assert SCHEMA_PATH.exists()


def test_unknown_timezone_rejected(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("source_directory: ./data\ntimezone: Mars/Olympus\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="unknown timezone"):
        load_config(p)


def test_shipped_kea_profile_keeps_state_and_deemed_quotas():
    cfg = load_config(Path(__file__).resolve().parents[2] / "config" / "import.yml")
    classifier = RowClassifier(ClassifierRules.for_profile(cfg.profile_for("KEA_MEDICAL")))
    for label in ["STATE QUOTA", "DEEMED", "CENTRAL", "ALL INDIA", "PAID SEATS", "KEA GOVERNMENT"]:
        assert classifier.kind_of(label) is RowKind.QUOTA, label
