"""Catalog price resolution under the standard and OECD-adjusted regimes."""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from tox_quoter.config import get_logger
from tox_quoter.domain import (
    CatalogItem,
    ComboCatalogItem,
    InvalidEnumerationError,
    OverlayEntry,
    PricingMode,
    Route,
)

logger = get_logger("pricing")

OverlayTable = Mapping[int, OverlayEntry]
PriceLookup = Callable[[], int | None]

COMBO_ARITIES = (2, 3, 4)


def first_defined(lookups: Iterable[PriceLookup]) -> int | None:
    """Return the first non-``None`` result from ``lookups``, evaluated lazily."""

    for lookup in lookups:
        value = lookup()
        if value is not None:
            return value
    return None


def overlay_price(overlay: OverlayTable | None, item_id: int, route: Route) -> int | None:
    """Return the override for ``item_id`` on ``route`` from ``overlay``, if defined.

    An entry that only defines the other route's field yields ``None`` so the
    caller falls through to the next source.
    """

    if not overlay:
        return None
    entry = overlay.get(item_id)
    if entry is None:
        return None
    if isinstance(entry, Mapping):
        key = "oop" if route is Route.ORAL else "oip"
        return entry.get(key)
    return entry.for_route(route)


def resolve_price(
    item: CatalogItem,
    route: Route | str,
    pricing_mode: PricingMode | str,
    primary_overlay: OverlayTable | None = None,
    secondary_overlay: OverlayTable | None = None,
) -> int | None:
    """Return the price of ``item`` for ``route`` under ``pricing_mode``.

    ``None`` means the route is not offered for this item and must be shown as
    unavailable rather than zero. Under :attr:`PricingMode.OECD_ADJUSTED` the
    primary overlay wins over the secondary overlay, which wins over the base
    price.
    """

    route_value = Route.parse(route)
    mode = PricingMode.parse(pricing_mode)

    if mode is PricingMode.STANDARD:
        return item.base_price(route_value)

    if mode is PricingMode.OECD_ADJUSTED:
        price = first_defined(
            (
                lambda: overlay_price(primary_overlay, item.id, route_value),
                lambda: overlay_price(secondary_overlay, item.id, route_value),
                lambda: item.base_price(route_value),
            )
        )
        logger.debug(
            "resolved OECD price for item %s (%s): %s", item.id, route_value.value, price
        )
        return price

    raise InvalidEnumerationError(f"Unsupported pricing mode: {pricing_mode!r}")


def resolve_combo_price(item: ComboCatalogItem, arity: Any) -> int:
    """Return the price tier of ``item`` for a ``arity``-component combination."""

    if isinstance(arity, bool):
        raise InvalidEnumerationError(f"Unsupported combination arity: {arity!r}")
    try:
        count = int(arity)
    except (TypeError, ValueError, OverflowError):
        raise InvalidEnumerationError(f"Unsupported combination arity: {arity!r}") from None
    if count != arity and not isinstance(arity, str):
        raise InvalidEnumerationError(f"Unsupported combination arity: {arity!r}")

    if count == 2:
        return item.price_p2
    if count == 3:
        return item.price_p3
    if count == 4:
        return item.price_p4
    raise InvalidEnumerationError(
        f"Unsupported combination arity: {arity!r} (expected one of {COMBO_ARITIES})"
    )


__all__ = [
    "COMBO_ARITIES",
    "OverlayTable",
    "first_defined",
    "overlay_price",
    "resolve_combo_price",
    "resolve_price",
]
