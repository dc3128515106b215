"""Aggregate line prices and formulation surcharges into quote totals."""
from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction
from typing import Any, Sequence

from tox_quoter.config import get_logger
from tox_quoter.domain import QuoteTotals, SelectedLine

logger = get_logger("pricing")


def _as_fraction(value: Any) -> Fraction:
    if isinstance(value, bool):
        raise ValueError(f"discount percent must be numeric, got {value!r}")
    if isinstance(value, (int, Fraction, Decimal)):
        return Fraction(value)
    if isinstance(value, float):
        # repr() keeps 7.5 as 15/2 instead of the nearest binary fraction
        return Fraction(repr(value))
    try:
        return Fraction(str(value).strip())
    except (TypeError, ValueError, ZeroDivisionError):
        raise ValueError(f"discount percent must be numeric, got {value!r}") from None


def discount_for(amount: int, discount_percent: Any) -> int:
    """Return ``floor(amount * discount_percent / 100)`` computed exactly."""

    pct = _as_fraction(discount_percent or 0)
    if pct < 0 or pct > 100:
        raise ValueError(f"discount percent must be between 0 and 100, got {discount_percent!r}")
    return math.floor(Fraction(amount) * pct / 100)


def aggregate_total(
    selected_lines: Sequence[SelectedLine],
    formulation_subtotal: int,
    discount_percent: Any = 0,
) -> QuoteTotals:
    """Return the test subtotal, formulation subtotal, discount and final total.

    Every selected line counts toward the test subtotal, option lines included.
    A line's ``custom_price`` replaces its resolved price when set.
    """

    if formulation_subtotal < 0:
        raise ValueError(f"formulation subtotal must be non-negative, got {formulation_subtotal!r}")

    subtotal_test = sum(line.effective_price for line in selected_lines or ())
    subtotal_formulation = int(formulation_subtotal)
    discount_amount = discount_for(subtotal_test + subtotal_formulation, discount_percent)
    total_amount = subtotal_test + subtotal_formulation - discount_amount

    logger.debug(
        "quote totals: test=%s formulation=%s discount=%s total=%s",
        subtotal_test,
        subtotal_formulation,
        discount_amount,
        total_amount,
    )
    return QuoteTotals(
        subtotal_test=subtotal_test,
        subtotal_formulation=subtotal_formulation,
        discount_amount=discount_amount,
        total_amount=total_amount,
    )


__all__ = ["aggregate_total", "discount_for"]
