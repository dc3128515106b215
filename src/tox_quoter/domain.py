"""Domain types shared by the toxicity-study pricing engine."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping, Tuple


class InvalidEnumerationError(ValueError):
    """Raised when a value falls outside one of the closed pricing enumerations."""


class Route(str, Enum):
    """Administration route used to pick the base catalog price."""

    ORAL = "oral"
    IV = "iv"

    @classmethod
    def parse(cls, value: Any) -> "Route":
        return _parse_enum(cls, value, aliases={"po": "oral", "intravenous": "iv"})


class PricingMode(str, Enum):
    """Regulatory pricing regime (GLP alone or GLP with OECD overlays)."""

    STANDARD = "standard"
    OECD_ADJUSTED = "oecd_adjusted"

    @classmethod
    def parse(cls, value: Any) -> "PricingMode":
        return _parse_enum(
            cls,
            value,
            aliases={
                "kglp": "standard",
                "kglp_oecd": "oecd_adjusted",
                "oecd-adjusted": "oecd_adjusted",
            },
        )


class FormulationCategory(str, Enum):
    """Product category of a quotation; selects the surcharge formula."""

    DRUG_SINGLE = "drug_single"
    DRUG_COMBO = "drug_combo"
    DRUG_VACCINE = "drug_vaccine"
    HF_INDV = "hf_indv"
    HF_PROB = "hf_prob"
    MD_BIO = "md_bio"

    @classmethod
    def parse(cls, value: Any) -> "FormulationCategory":
        return _parse_enum(cls, value)


class TestType(int, Enum):
    """Classification code separating in-vivo from in-vitro studies."""

    __test__ = False

    IN_VIVO = 1
    IN_VITRO = 2


def _parse_enum(enum_cls: Any, value: Any, *, aliases: Mapping[str, str] | None = None) -> Any:
    if isinstance(value, enum_cls):
        return value
    key = str(value or "").strip().lower()
    if aliases and key in aliases:
        key = aliases[key]
    try:
        return enum_cls(key)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise InvalidEnumerationError(
            f"{value!r} is not a valid {enum_cls.__name__} (expected one of: {choices})"
        ) from None


@dataclass(frozen=True)
class CatalogItem:
    """One toxicity-study offering with route-specific prices.

    ``price_oral`` / ``price_iv`` are ``None`` when the route is not offered.
    Route/week/description fields are carried for display only.
    """

    id: int
    category: str
    species: str
    duration: str
    price_oral: int | None
    price_iv: int | None
    name: str = ""
    num: int | None = None
    route_oral: str = ""
    route_iv: str = ""
    weeks_oral: int | str | None = None
    weeks_iv: int | str | None = None
    description: str = ""
    formal_name: str = ""
    guideline: Tuple[str, ...] = ()
    note: str = ""

    def base_price(self, route: Route) -> int | None:
        if route is Route.ORAL:
            return self.price_oral
        if route is Route.IV:
            return self.price_iv
        raise InvalidEnumerationError(f"Unsupported route: {route!r}")


@dataclass(frozen=True)
class ComboCatalogItem:
    """Combination-drug study priced by the number of active components."""

    id: int
    category: str
    species: str
    duration: str
    price_p2: int
    price_p3: int
    price_p4: int
    name: str = ""
    num: int | None = None
    formal_name: str = ""
    description: str = ""
    weeks: int | str | None = None
    guideline: Tuple[str, ...] = ()
    note: str = ""


@dataclass(frozen=True)
class SimpleCatalogItem:
    """Single-price study used by the vaccine, health-food and device catalogs."""

    id: int
    category: str
    species: str
    duration: str
    price: int
    name: str = ""
    num: int | None = None
    formal_name: str = ""
    description: str = ""
    weeks: int | str | None = None
    guideline: Tuple[str, ...] = ()
    note: str = ""


@dataclass(frozen=True)
class OverlayEntry:
    """OECD override prices for one catalog item (``oop`` oral, ``oip`` iv)."""

    oop: int | None = None
    oip: int | None = None

    def for_route(self, route: Route) -> int | None:
        if route is Route.ORAL:
            return self.oop
        if route is Route.IV:
            return self.oip
        raise InvalidEnumerationError(f"Unsupported route: {route!r}")


@dataclass(frozen=True)
class TestClassification:
    """Test-type code and content-analysis flag for one catalog item."""

    __test__ = False

    test_type: int
    content_analysis: bool

    @property
    def is_in_vivo(self) -> bool:
        return self.test_type == TestType.IN_VIVO

    @property
    def is_in_vitro(self) -> bool:
        return self.test_type == TestType.IN_VITRO

    @classmethod
    def coerce(cls, value: Any) -> "TestClassification":
        """Accept either a classification or a raw ``(code, flag)`` pair."""

        if isinstance(value, cls):
            return value
        code, flag = value
        return cls(test_type=int(code), content_analysis=bool(int(flag)))


@dataclass(frozen=True)
class SelectedLine:
    """A quotation line chosen by the user.

    ``is_option`` marks dependent add-on lines (recovery groups, TK sampling)
    that are linked to a primary line through ``parent_id``. When
    ``custom_price`` is set it replaces ``price`` in every total.
    """

    id: str
    item_id: int
    name: str
    category: str
    price: int
    is_option: bool = False
    parent_id: str | None = None
    custom_price: int | None = None

    @property
    def effective_price(self) -> int:
        if self.custom_price is not None:
            return self.custom_price
        return self.price

    def with_price(self, price: int) -> "SelectedLine":
        return replace(self, price=price)


@dataclass(frozen=True)
class FormulationFees:
    """Fee schedule for the formulation surcharges, in won."""

    assay_base_fee: int = 10_000_000
    content_fee_per_cycle: int = 1_000_000
    hf_formulation_fee: int = 26_000_000


@dataclass(frozen=True)
class FormulationCost:
    """Formulation/assay surcharge broken into its three components."""

    assay_base: int = 0
    content_total: int = 0
    hf_formulation: int = 0

    @property
    def total(self) -> int:
        return self.assay_base + self.content_total + self.hf_formulation


@dataclass(frozen=True)
class QuoteTotals:
    """Aggregate quote figures produced by :func:`aggregate_total`."""

    subtotal_test: int = 0
    subtotal_formulation: int = 0
    discount_amount: int = 0
    total_amount: int = 0


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
    "TestType",
]
