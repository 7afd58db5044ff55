from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the cutoff importer.

The loader in cutoff_import.config.loader builds these from YAML; everything
downstream only sees these frozen objects.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback.

    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ProfileConfig:
    """Vocabulary and header strategy for one counselling-type family.

    A None vocabulary field falls back to the built-in table for that kind.
    """
    name: str
    header_strategy: str = "first_segment"
    program_patterns: tuple[str, ...] | None = None
    category_tokens: tuple[str, ...] | None = None
    quota_markers: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    source_directory: str
    recursive: bool = False
    workers: int = 1
    batch_size: int = 1000
    keep_na_strings: tuple[str, ...] = ()
    typo_fixes: dict[str, str] = field(default_factory=dict)  # merged over built-ins
    profiles: dict[str, ProfileConfig] = field(default_factory=dict)
    timezone: str = "UTC"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def profile_for(self, counselling_type: str) -> ProfileConfig | None:
        """Longest profile key that prefixes the counselling type, if any."""
        best: ProfileConfig | None = None
        best_len = -1
        upper = counselling_type.upper()
        for key, profile in self.profiles.items():
            if upper.startswith(key.upper()) and len(key) > best_len:
                best = profile
                best_len = len(key)
        return best
