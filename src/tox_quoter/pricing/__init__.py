"""Toxicity-study pricing engine: price resolution, surcharges and totals."""
from __future__ import annotations

from .duration import count_cycles
from .formulation import compute_formulation_cost
from .resolver import first_defined, overlay_price, resolve_combo_price, resolve_price
from .totals import aggregate_total, discount_for

__all__ = [
    "aggregate_total",
    "compute_formulation_cost",
    "count_cycles",
    "discount_for",
    "first_defined",
    "overlay_price",
    "resolve_combo_price",
    "resolve_price",
]
