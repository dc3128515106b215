"""Presentation helpers shared by the quote preview and document renderers."""
from __future__ import annotations

from .currency import format_full, format_short

__all__ = ["format_full", "format_short"]
