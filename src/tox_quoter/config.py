"""Configuration helpers for the toxicity quotation pricing engine."""
from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from tox_quoter.domain import FormulationFees
from tox_quoter.resources import default_pricing_settings_json

DEFAULT_VERSION = 1
PRICING_SETTINGS_ENV_VAR = "TOX_QUOTER_PRICING_SETTINGS"
LOGGER_NAME = "tox_quoter"
_SETTINGS_CACHE: dict[str, Any] | None = None


def get_logger(*names: str) -> logging.Logger:
    """Return a logger under the shared ``tox_quoter`` namespace."""

    if not names:
        return logging.getLogger(LOGGER_NAME)
    qualified = ".".join((LOGGER_NAME, *names))
    return logging.getLogger(qualified)


logger = get_logger()


class ConfigError(RuntimeError):
    """Raised when configuration data cannot be loaded or validated."""


def _load_json_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Malformed JSON in {path.name}: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise ConfigError(f"Configuration root must be an object in {path.name}")

    return dict(raw)


def _merge_mappings(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if key in base and isinstance(base[key], Mapping) and isinstance(value, Mapping):
            base[key] = _merge_mappings(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _load_settings_raw() -> dict[str, Any]:
    base = _load_json_mapping(default_pricing_settings_json())

    override_raw = os.getenv(PRICING_SETTINGS_ENV_VAR)
    if override_raw:
        override_path = Path(override_raw).expanduser()
        if override_path.exists():
            try:
                override = _load_json_mapping(override_path)
            except ConfigError as exc:
                raise ConfigError(f"Failed to load override settings: {exc}") from exc
            base = _merge_mappings(base, override)
        else:
            logger.warning("Override settings path does not exist: %s", override_path)

    version = base.get("version", DEFAULT_VERSION)
    if version != DEFAULT_VERSION:
        raise ConfigError(
            f"Unsupported settings version: {version!r}; expected {DEFAULT_VERSION}"
        )
    return base


def load_pricing_settings(*, reload: bool = False) -> dict[str, Any]:
    """Return the merged pricing settings, applying the optional override file."""

    global _SETTINGS_CACHE
    if reload or _SETTINGS_CACHE is None:
        _SETTINGS_CACHE = _load_settings_raw()

    return copy.deepcopy(_SETTINGS_CACHE)


def _section(name: str, *, reload: bool = False) -> dict[str, Any]:
    section = load_pricing_settings(reload=reload).get(name)
    if not isinstance(section, Mapping):
        raise ConfigError(f"Missing configuration section in pricing settings: {name}")
    return dict(section)


def _whole_won(section: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{section}.{key} must be a number, got {value!r}")
    if value < 0 or int(value) != value:
        raise ConfigError(f"{section}.{key} must be a non-negative whole amount, got {value!r}")
    return int(value)


def load_formulation_fees(*, reload: bool = False) -> FormulationFees:
    """Return the formulation fee schedule from the pricing settings."""

    section = _section("formulation_fees", reload=reload)
    defaults = FormulationFees()
    values: dict[str, int] = {}
    for key in ("assay_base_fee", "content_fee_per_cycle", "hf_formulation_fee"):
        if key not in section:
            values[key] = getattr(defaults, key)
            continue
        values[key] = _whole_won("formulation_fees", key, section[key])
    return FormulationFees(**values)


def load_quote_defaults(*, reload: bool = False) -> dict[str, Any]:
    """Return default route, pricing mode, combo arity and discount for new quotes."""

    return _section("quote_defaults", reload=reload)


__all__ = [
    "ConfigError",
    "DEFAULT_VERSION",
    "LOGGER_NAME",
    "PRICING_SETTINGS_ENV_VAR",
    "get_logger",
    "load_formulation_fees",
    "load_pricing_settings",
    "load_quote_defaults",
    "logger",
]
