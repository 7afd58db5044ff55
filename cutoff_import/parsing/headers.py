from __future__ import annotations

from collections.abc import Callable

"""Institution-name extraction from a column's header cell."""

__all__ = [
    "HEADER_STRATEGIES",
    "get_header_strategy",
]


def first_segment(header: str) -> str:
    """Text before the first comma ("College, City, State" -> "College")."""
    return header.split(",", 1)[0].strip()


def full_header(header: str) -> str:
    return header.strip()


HEADER_STRATEGIES: dict[str, Callable[[str], str]] = {
    "first_segment": first_segment,
    "full": full_header,
}


def get_header_strategy(name: str) -> Callable[[str], str]:
    try:
        return HEADER_STRATEGIES[name]
    except KeyError:
        raise ValueError(f"unknown header strategy: {name}") from None
