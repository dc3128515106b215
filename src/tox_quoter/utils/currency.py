"""Korean won currency formatting for quote previews and printed documents."""

from __future__ import annotations

__all__ = [
    "FULL_SUFFIX",
    "SHORT_SUFFIX",
    "SHORT_UNIT",
    "format_full",
    "format_short",
]

FULL_SUFFIX = "원"
SHORT_SUFFIX = "만원"
SHORT_UNIT = 10_000


def format_full(amount: int) -> str:
    """Return ``amount`` with grouped digits, e.g. ``79000000`` -> ``"79,000,000원"``."""

    return f"{int(amount):,}{FULL_SUFFIX}"


def format_short(amount: int) -> str:
    """Return ``amount`` in units of 10,000 won, e.g. ``79000000`` -> ``"7,900만원"``."""

    return f"{int(amount) // SHORT_UNIT:,}{SHORT_SUFFIX}"
