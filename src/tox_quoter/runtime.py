from __future__ import annotations
from dataclasses import dataclass
import os
import logging

from tox_quoter.config import LOGGER_NAME, PRICING_SETTINGS_ENV_VAR


@dataclass(frozen=True)
class RuntimeConfig:
    """Configuration derived from environment variables for embedding callers."""

    log_level: str = "WARNING"
    settings_path: str | None = None


def build_config(env: dict[str, str] | None = None) -> RuntimeConfig:
    """Build a :class:`RuntimeConfig` from ``env`` and configure package logging."""

    e = env if env is not None else os.environ
    cfg = RuntimeConfig(
        log_level=e.get("TOX_QUOTER_LOG_LEVEL", "WARNING"),
        settings_path=e.get(PRICING_SETTINGS_ENV_VAR) or None,
    )
    configure_logging(cfg.log_level)
    return cfg


def configure_logging(level: str) -> None:
    numeric = getattr(logging, str(level).upper(), logging.WARNING)
    logging.basicConfig(level=numeric, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger(LOGGER_NAME).setLevel(numeric)
