"""Pricing engine for toxicity-study quotations."""
from __future__ import annotations

from .domain import (
    CatalogItem,
    ComboCatalogItem,
    FormulationCategory,
    FormulationCost,
    FormulationFees,
    InvalidEnumerationError,
    OverlayEntry,
    PricingMode,
    QuoteTotals,
    Route,
    SelectedLine,
    SimpleCatalogItem,
    TestClassification,
)
from .pricing import (
    aggregate_total,
    compute_formulation_cost,
    count_cycles,
    resolve_combo_price,
    resolve_price,
)
from .utils.currency import format_full, format_short

__all__ = [
    "CatalogItem",
    "ComboCatalogItem",
    "FormulationCategory",
    "FormulationCost",
    "FormulationFees",
    "InvalidEnumerationError",
    "OverlayEntry",
    "PricingMode",
    "QuoteTotals",
    "Route",
    "SelectedLine",
    "SimpleCatalogItem",
    "TestClassification",
    "aggregate_total",
    "compute_formulation_cost",
    "count_cycles",
    "format_full",
    "format_short",
    "resolve_combo_price",
    "resolve_price",
]
