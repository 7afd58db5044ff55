from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..logging.error_log import resolve_timezone
from ..models.config_models import DatabaseConfig, ImportConfig, ProfileConfig
from ..parsing.headers import get_header_strategy
from ..parsing.normalizer import Normalizer, TypoTableError

"""YAML config loader.

Structural checks come from config_schema.json (shipped with the package);
semantic checks that JSON schema cannot express (regex syntax, typo table
shape) are done here so a bad config fails before any file is touched.
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config validation failed at {location}: {e.message}") from e


def _optional_tuple(values: list[str] | None) -> tuple[str, ...] | None:
    return tuple(values) if values else None


def _build_profile(name: str, raw: dict[str, Any]) -> ProfileConfig:
    profile = ProfileConfig(
        name=name,
        header_strategy=raw.get("header_strategy", "first_segment"),
        program_patterns=_optional_tuple(raw.get("program_patterns")),
        category_tokens=_optional_tuple(raw.get("category_tokens")),
        quota_markers=_optional_tuple(raw.get("quota_markers")),
    )
    try:
        get_header_strategy(profile.header_strategy)
    except ValueError as e:
        raise ConfigError(f"profile {name}: {e}") from e
    for pattern in profile.program_patterns or ():
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"profile {name}: invalid program pattern {pattern!r}: {e}") from e
    return profile


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    typo_fixes = dict(data.get("typo_fixes") or {})
    try:
        Normalizer(typo_fixes)
    except TypoTableError as e:
        raise ConfigError(f"typo_fixes: {e}") from e

    timezone = data.get("timezone", "UTC")
    try:
        resolve_timezone(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {timezone!r}") from e

    profiles = {
        name: _build_profile(name, raw or {})
        for name, raw in (data.get("profiles") or {}).items()
    }

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        source_directory=data["source_directory"],
        recursive=data.get("recursive", False),
        workers=data.get("workers", 1),
        batch_size=data.get("batch_size", 1000),
        keep_na_strings=tuple(data.get("keep_na_strings") or ()),
        typo_fixes=typo_fixes,
        profiles=profiles,
        timezone=timezone,
        database=db,
    )
