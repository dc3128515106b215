from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Iterator

import pytest

from tox_quoter import config
from tox_quoter.catalog import CatalogSnapshot
from tox_quoter.domain import (
    CatalogItem,
    ComboCatalogItem,
    SelectedLine,
    SimpleCatalogItem,
)


_BASE_ITEM = CatalogItem(
    id=12,
    num=12,
    name="설치류 4주 반복투여 독성",
    category="반복투여독성",
    species="SD rat",
    duration="4주",
    price_oral=79_000_000,
    price_iv=86_000_000,
    route_oral="경구",
    route_iv="정맥",
    weeks_oral=22,
    weeks_iv=22,
)

_BASE_COMBO = ComboCatalogItem(
    id=1,
    num=1,
    name="복합제 4주 반복투여 독성(설치류)",
    category="반복투여독성",
    species="SD rat",
    duration="4주",
    price_p2=100_000_000,
    price_p3=120_000_000,
    price_p4=140_000_000,
    weeks=22,
)

_BASE_SELECTED = SelectedLine(
    id="test-1",
    item_id=12,
    name="설치류 4주 반복투여 독성",
    category="반복투여독성",
    price=79_000_000,
)


@pytest.fixture(autouse=True)
def _fresh_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv(config.PRICING_SETTINGS_ENV_VAR, raising=False)
    monkeypatch.setattr(config, "_SETTINGS_CACHE", None)
    yield


@pytest.fixture
def make_item() -> Callable[..., CatalogItem]:
    def _make(**overrides: Any) -> CatalogItem:
        return replace(_BASE_ITEM, **overrides)

    return _make


@pytest.fixture
def make_combo_item() -> Callable[..., ComboCatalogItem]:
    def _make(**overrides: Any) -> ComboCatalogItem:
        return replace(_BASE_COMBO, **overrides)

    return _make


@pytest.fixture
def make_selected() -> Callable[..., SelectedLine]:
    def _make(**overrides: Any) -> SelectedLine:
        return replace(_BASE_SELECTED, **overrides)

    return _make


@pytest.fixture
def sample_snapshot(make_item: Callable[..., CatalogItem]) -> CatalogSnapshot:
    """Small catalog covering in-vivo/in-vitro studies, options and overlays."""

    items = [
        make_item(id=6, name="설치류 2주 반복투여 독성", duration="2주", price_oral=73_000_000, price_iv=80_000_000),
        make_item(id=7, name="설치류 2주 회복시험", duration="2주", price_oral=20_000_000, price_iv=24_000_000),
        make_item(id=8, name="TK 채혈+분석 6pt", duration="2주", price_oral=15_000_000, price_iv=None),
        make_item(id=18, name="설치류 13주 반복투여 독성", duration="13주", price_oral=112_000_000, price_iv=130_000_000),
        make_item(id=71, name="복귀돌연변이시험", category="유전독성", species="-", duration="-", price_oral=6_500_000, price_iv=6_500_000),
    ]
    combos = [_BASE_COMBO]
    simple = [
        SimpleCatalogItem(
            id=2,
            name="급성 경구독성시험",
            category="단회투여독성",
            species="SD rat",
            duration="1회",
            price=2_700_000,
        ),
        SimpleCatalogItem(
            id=4,
            name="설치류 13주 반복투여 독성",
            category="반복투여독성",
            species="SD rat",
            duration="13주",
            price=92_000_000,
        ),
    ]
    return CatalogSnapshot.from_records(
        items=items,
        combo_items=combos,
        simple_items=simple,
        primary_overlay={18: {"oop": 150_000_000}},
        secondary_overlay={18: {"oop": 999_000_000, "oip": 170_000_000}},
        classification={6: (1, 1), 7: (1, 0), 8: (1, 0), 18: (1, 1), 71: (2, 0)},
    )


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    counter = {"n": 0}

    def _next() -> str:
        counter["n"] += 1
        return f"line-{counter['n']}"

    return _next
