"""Plain-text totals block for quote previews."""

from __future__ import annotations

from typing import Callable

from tox_quoter.domain import FormulationCost, QuoteTotals
from tox_quoter.utils.currency import format_full, format_short

LABEL_SUBTOTAL_TEST = "시험비 소계"
LABEL_FORMULATION = "조제물분석비"
LABEL_ASSAY_BASE = "분석법 Validation"
LABEL_CONTENT = "함량분석"
LABEL_HF_FORMULATION = "건기식 조제물분석"
LABEL_DISCOUNT = "할인"
LABEL_TOTAL = "총액"


def render_kv_line(label: str, value_text: str, page_width: int, indent: str = "") -> str:
    """Return ``label`` and ``value_text`` padded to ``page_width`` columns."""

    left = f"{indent}{label}"
    pad = max(1, page_width - len(left) - len(value_text))
    return f"{left}{' ' * pad}{value_text}"


def render_totals(
    totals: QuoteTotals,
    formulation: FormulationCost | None = None,
    *,
    page_width: int = 48,
    short: bool = False,
) -> list[str]:
    """Return the totals block as text lines.

    When ``formulation`` is given, its non-zero components are listed under the
    formulation subtotal. ``short`` switches amounts to the 10,000-won unit used
    on narrow screens.
    """

    width = max(20, int(page_width or 0))
    fmt: Callable[[int], str] = format_short if short else format_full
    divider = "-" * width

    lines = [render_kv_line(LABEL_SUBTOTAL_TEST, fmt(totals.subtotal_test), width)]
    lines.append(render_kv_line(LABEL_FORMULATION, fmt(totals.subtotal_formulation), width))
    if formulation is not None:
        for label, amount in (
            (LABEL_ASSAY_BASE, formulation.assay_base),
            (LABEL_CONTENT, formulation.content_total),
            (LABEL_HF_FORMULATION, formulation.hf_formulation),
        ):
            if amount:
                lines.append(render_kv_line(label, fmt(amount), width, indent="  "))
    if totals.discount_amount:
        lines.append(render_kv_line(LABEL_DISCOUNT, f"-{fmt(totals.discount_amount)}", width))
    lines.append(divider)
    lines.append(render_kv_line(LABEL_TOTAL, fmt(totals.total_amount), width))
    return lines


__all__ = ["render_kv_line", "render_totals"]
