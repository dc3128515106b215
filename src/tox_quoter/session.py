"""Quote-session bookkeeping around the pricing engine.

:class:`QuoteSession` keeps the selected lines of one quotation in sync with
the current route, pricing mode and combination arity, and exposes the
engine's surcharge and total figures for that state. It is a single-caller
helper for the quotation wizard; every calculation is delegated to
:mod:`tox_quoter.pricing`.
"""
from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Callable

from tox_quoter.catalog import CatalogSnapshot
from tox_quoter.config import get_logger, load_formulation_fees, load_quote_defaults
from tox_quoter.domain import (
    FormulationCategory,
    FormulationCost,
    FormulationFees,
    InvalidEnumerationError,
    PricingMode,
    QuoteTotals,
    Route,
    SelectedLine,
)
from tox_quoter.pricing import (
    aggregate_total,
    compute_formulation_cost,
    discount_for,
    resolve_combo_price,
    resolve_price,
)
from tox_quoter.pricing.resolver import COMBO_ARITIES
from tox_quoter.render import render_totals

logger = get_logger("session")


class PriceUnavailableError(LookupError):
    """Raised when a study is not offered for the requested route."""


def _new_line_id() -> str:
    return uuid.uuid4().hex


class QuoteSession:
    """Mutable selection state for one quotation."""

    def __init__(
        self,
        snapshot: CatalogSnapshot,
        category: FormulationCategory | str,
        *,
        route: Route | str = Route.ORAL,
        pricing_mode: PricingMode | str = PricingMode.STANDARD,
        combo_arity: int = 2,
        discount_percent: Any = 0,
        fees: FormulationFees | None = None,
        id_factory: Callable[[], str] = _new_line_id,
    ) -> None:
        self.snapshot = snapshot
        self.category = FormulationCategory.parse(category)
        self.route = Route.parse(route)
        self.pricing_mode = PricingMode.parse(pricing_mode)
        self.combo_arity = self._checked_arity(combo_arity)
        self.fees = fees or FormulationFees()
        self._id_factory = id_factory
        self._lines: list[SelectedLine] = []
        self.discount_percent = 0
        self.set_discount(discount_percent)

    @classmethod
    def from_settings(
        cls,
        snapshot: CatalogSnapshot,
        category: FormulationCategory | str,
        **overrides: Any,
    ) -> "QuoteSession":
        """Create a session seeded with the configured quote defaults and fees."""

        defaults = load_quote_defaults()
        params: dict[str, Any] = {
            "route": defaults.get("route", Route.ORAL),
            "pricing_mode": defaults.get("pricing_mode", PricingMode.STANDARD),
            "combo_arity": defaults.get("combo_arity", 2),
            "discount_percent": defaults.get("discount_percent", 0),
            "fees": load_formulation_fees(),
        }
        params.update(overrides)
        return cls(snapshot, category, **params)

    # ------------------------------------------------------------------
    # selection
    @property
    def lines(self) -> tuple[SelectedLine, ...]:
        return tuple(self._lines)

    def line(self, line_id: str) -> SelectedLine:
        for line in self._lines:
            if line.id == line_id:
                return line
        raise KeyError(f"Unknown quote line: {line_id}")

    def line_price(self, item_id: int) -> int | None:
        """Return the current price of catalog ``item_id`` for this session's category."""

        return self._price_for(item_id, self.route, self.pricing_mode, self.combo_arity)

    def _price_for(
        self, item_id: int, route: Route, pricing_mode: PricingMode, combo_arity: int
    ) -> int | None:
        kind = self.category
        if kind is FormulationCategory.DRUG_SINGLE:
            return resolve_price(
                self.snapshot.item(item_id),
                route,
                pricing_mode,
                self.snapshot.primary_overlay,
                self.snapshot.secondary_overlay,
            )
        if kind is FormulationCategory.DRUG_COMBO:
            return resolve_combo_price(self.snapshot.combo_item(item_id), combo_arity)
        if kind in (
            FormulationCategory.DRUG_VACCINE,
            FormulationCategory.HF_INDV,
            FormulationCategory.HF_PROB,
            FormulationCategory.MD_BIO,
        ):
            return self.snapshot.simple_item(item_id).price
        raise InvalidEnumerationError(f"Unsupported formulation category: {kind!r}")

    def _describe(self, item_id: int) -> tuple[str, str]:
        kind = self.category
        if kind is FormulationCategory.DRUG_SINGLE:
            item: Any = self.snapshot.item(item_id)
        elif kind is FormulationCategory.DRUG_COMBO:
            item = self.snapshot.combo_item(item_id)
        else:
            item = self.snapshot.simple_item(item_id)
        return item.name, item.category

    def _make_line(self, item_id: int, *, parent_id: str | None = None) -> SelectedLine:
        price = self.line_price(item_id)
        if price is None:
            raise PriceUnavailableError(
                f"Item {item_id} is not offered for route {self.route.value!r}"
            )
        name, category = self._describe(item_id)
        return SelectedLine(
            id=self._id_factory(),
            item_id=item_id,
            name=name,
            category=category,
            price=price,
            is_option=parent_id is not None,
            parent_id=parent_id,
        )

    def add(self, item_id: int) -> SelectedLine:
        """Add catalog ``item_id`` as a primary line and return it."""

        line = self._make_line(item_id)
        self._lines.append(line)
        logger.debug("added line %s for item %s at %s", line.id, item_id, line.price)
        return line

    def add_option(self, parent_line_id: str, item_id: int) -> SelectedLine:
        """Add ``item_id`` as an option line (recovery group, TK) of a primary line."""

        parent = self.line(parent_line_id)
        if parent.is_option:
            raise ValueError(f"Options must attach to a primary line, not {parent_line_id}")
        line = self._make_line(item_id, parent_id=parent.id)
        self._lines.append(line)
        return line

    def toggle(self, item_id: int) -> SelectedLine | None:
        """Select ``item_id`` or, if already selected as a primary line, remove it.

        Returns the new line when one was added and ``None`` when removed.
        """

        for line in self._lines:
            if line.item_id == item_id and not line.is_option:
                self.remove(line.id)
                return None
        return self.add(item_id)

    def remove(self, line_id: str) -> None:
        """Remove ``line_id`` together with every option attached to it."""

        self.line(line_id)
        before = len(self._lines)
        self._lines = [
            line for line in self._lines if line.id != line_id and line.parent_id != line_id
        ]
        logger.debug("removed line %s (%d lines dropped)", line_id, before - len(self._lines))

    def clear(self) -> None:
        self._lines = []

    def set_custom_price(self, line_id: str, amount: int) -> SelectedLine:
        """Override the price of ``line_id`` with a manually entered amount."""

        if isinstance(amount, bool) or int(amount) != amount or amount < 0:
            raise ValueError(f"custom price must be a non-negative whole amount, got {amount!r}")
        return self._replace(line_id, custom_price=int(amount))

    def clear_custom_price(self, line_id: str) -> SelectedLine:
        return self._replace(line_id, custom_price=None)

    def _replace(self, line_id: str, **changes: Any) -> SelectedLine:
        for index, line in enumerate(self._lines):
            if line.id == line_id:
                updated = replace(line, **changes)
                self._lines[index] = updated
                return updated
        raise KeyError(f"Unknown quote line: {line_id}")

    # ------------------------------------------------------------------
    # options that change prices
    @staticmethod
    def _checked_arity(arity: Any) -> int:
        if isinstance(arity, bool) or arity not in COMBO_ARITIES:
            raise InvalidEnumerationError(
                f"Unsupported combination arity: {arity!r} (expected one of {COMBO_ARITIES})"
            )
        return int(arity)

    def set_route(self, route: Route | str) -> None:
        """Switch the administration route, repricing drug lines.

        Raises :class:`PriceUnavailableError` and leaves the session untouched
        when a selected study is not offered for the new route.
        """

        route_value = Route.parse(route)
        self._reprice(route_value, self.pricing_mode, self.combo_arity)
        self.route = route_value

    def set_pricing_mode(self, pricing_mode: PricingMode | str) -> None:
        mode = PricingMode.parse(pricing_mode)
        self._reprice(self.route, mode, self.combo_arity)
        self.pricing_mode = mode

    def set_combo_arity(self, arity: int) -> None:
        checked = self._checked_arity(arity)
        self._reprice(self.route, self.pricing_mode, checked)
        self.combo_arity = checked

    def set_discount(self, discount_percent: Any) -> None:
        discount_for(0, discount_percent)
        self.discount_percent = discount_percent or 0

    def _reprice(self, route: Route, pricing_mode: PricingMode, combo_arity: int) -> None:
        if self.category not in (FormulationCategory.DRUG_SINGLE, FormulationCategory.DRUG_COMBO):
            return
        repriced: list[SelectedLine] = []
        missing: list[int] = []
        for line in self._lines:
            price = self._price_for(line.item_id, route, pricing_mode, combo_arity)
            if price is None:
                missing.append(line.item_id)
                continue
            repriced.append(line.with_price(price))
        if missing:
            raise PriceUnavailableError(
                f"Items {missing} are not offered for route {route.value!r}"
            )
        self._lines = repriced

    # ------------------------------------------------------------------
    # figures
    def formulation(self) -> FormulationCost:
        return compute_formulation_cost(
            self._lines,
            self.category,
            self.snapshot.items,
            self.snapshot.classification,
            fees=self.fees,
        )

    def totals(self) -> QuoteTotals:
        return aggregate_total(self._lines, self.formulation().total, self.discount_percent)

    def summary_lines(self, *, page_width: int = 48, short: bool = False) -> list[str]:
        return render_totals(
            self.totals(), self.formulation(), page_width=page_width, short=short
        )


__all__ = ["PriceUnavailableError", "QuoteSession"]
