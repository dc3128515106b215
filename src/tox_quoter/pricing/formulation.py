"""Formulation and assay surcharges for a quotation's selected studies.

Drug quotations (``drug_single``) pay a validation base fee per assay family
present in the selection (in vivo and in vitro are billed independently) plus a
per-cycle content-analysis fee for every study flagged for content analysis.
Health-functional-food quotations pay a single flat formulation fee once any
study is selected. The remaining categories already carry their formulation
work inside each study's price and add nothing.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from tox_quoter.config import get_logger
from tox_quoter.domain import (
    CatalogItem,
    FormulationCategory,
    FormulationCost,
    FormulationFees,
    InvalidEnumerationError,
    SelectedLine,
    TestClassification,
)

from .duration import count_cycles

logger = get_logger("pricing")

ClassificationTable = Mapping[int, Any]
CatalogLike = Mapping[int, CatalogItem] | Iterable[CatalogItem]

_ZERO = FormulationCost()


def _catalog_index(catalog: CatalogLike | None) -> Mapping[int, CatalogItem]:
    if catalog is None:
        return {}
    if isinstance(catalog, Mapping):
        return catalog
    return {item.id: item for item in catalog}


def _classification_for(
    classification: ClassificationTable | None, item_id: int
) -> TestClassification | None:
    if not classification:
        return None
    raw = classification.get(item_id)
    if raw is None:
        return None
    return TestClassification.coerce(raw)


def _drug_single_cost(
    selected_lines: Sequence[SelectedLine],
    catalog: Mapping[int, CatalogItem],
    classification: ClassificationTable | None,
    fees: FormulationFees,
) -> FormulationCost:
    has_in_vivo = False
    has_in_vitro = False
    content_total = 0

    for line in selected_lines:
        info = _classification_for(classification, line.item_id)
        if info is None:
            continue
        if info.is_in_vivo:
            has_in_vivo = True
        elif info.is_in_vitro:
            has_in_vitro = True

        if not info.content_analysis:
            continue
        item = catalog.get(line.item_id)
        if item is None:
            logger.warning("content analysis flagged for unknown catalog item %s", line.item_id)
            continue
        content_total += count_cycles(item.duration) * fees.content_fee_per_cycle

    assay_base = (fees.assay_base_fee if has_in_vivo else 0) + (
        fees.assay_base_fee if has_in_vitro else 0
    )
    return FormulationCost(assay_base=assay_base, content_total=content_total)


def compute_formulation_cost(
    selected_lines: Sequence[SelectedLine],
    category: FormulationCategory | str,
    catalog: CatalogLike | None = None,
    classification: ClassificationTable | None = None,
    *,
    fees: FormulationFees | None = None,
) -> FormulationCost:
    """Return the formulation surcharge for ``selected_lines`` under ``category``.

    ``catalog`` may be a mapping keyed by item id or any iterable of catalog
    items; ``classification`` maps item ids to :class:`TestClassification`
    records or raw ``(test_type, content_analysis)`` pairs. ``fees`` defaults to
    the standard fee schedule.
    """

    kind = FormulationCategory.parse(category)
    fee_schedule = fees or FormulationFees()
    lines = list(selected_lines or ())

    if not lines:
        return _ZERO

    if kind is FormulationCategory.DRUG_SINGLE:
        return _drug_single_cost(lines, _catalog_index(catalog), classification, fee_schedule)
    if kind in (FormulationCategory.HF_INDV, FormulationCategory.HF_PROB):
        return FormulationCost(hf_formulation=fee_schedule.hf_formulation_fee)
    if kind in (
        FormulationCategory.DRUG_COMBO,
        FormulationCategory.DRUG_VACCINE,
        FormulationCategory.MD_BIO,
    ):
        return _ZERO
    raise InvalidEnumerationError(f"Unsupported formulation category: {category!r}")


__all__ = [
    "ClassificationTable",
    "compute_formulation_cost",
]
