"""Utilities for accessing packaged resource files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

_RESOURCE_ROOT = Path(__file__).resolve().parent


def _build_path(parts: Iterable[str]) -> Path:
    path = _RESOURCE_ROOT.joinpath(*parts)
    if not path.exists():
        raise FileNotFoundError(f"Resource not found: {path}")
    return path


def resource_path(*parts: str) -> Path:
    """Return the path to a resource stored alongside the package.

    Parameters
    ----------
    parts:
        One or more path components relative to the resources directory.
    """

    return _build_path(parts)


def default_pricing_settings_json() -> Path:
    """Return the bundled pricing settings JSON file."""

    return resource_path("pricing_settings.json")


__all__ = [
    "default_pricing_settings_json",
    "resource_path",
]
