from __future__ import annotations

import json

import pytest

from tox_quoter import config
from tox_quoter.domain import (
    FormulationCost,
    FormulationFees,
    InvalidEnumerationError,
    PricingMode,
    QuoteTotals,
    Route,
)
from tox_quoter.session import PriceUnavailableError, QuoteSession


@pytest.fixture
def drug_session(sample_snapshot, sequential_ids) -> QuoteSession:
    return QuoteSession(sample_snapshot, "drug_single", id_factory=sequential_ids)


def test_add_prices_line_from_catalog(drug_session: QuoteSession) -> None:
    line = drug_session.add(6)

    assert line.id == "line-1"
    assert line.price == 73_000_000
    assert line.name == "설치류 2주 반복투여 독성"
    assert not line.is_option
    assert drug_session.lines == (line,)


def test_toggle_adds_then_removes(drug_session: QuoteSession) -> None:
    added = drug_session.toggle(6)
    assert added is not None
    assert drug_session.toggle(6) is None
    assert drug_session.lines == ()


def test_removing_primary_line_drops_its_options(drug_session: QuoteSession) -> None:
    main = drug_session.add(6)
    drug_session.add_option(main.id, 7)
    drug_session.add_option(main.id, 8)
    other = drug_session.add(18)

    drug_session.remove(main.id)

    assert [line.id for line in drug_session.lines] == [other.id]


def test_option_lines_link_to_parent(drug_session: QuoteSession) -> None:
    main = drug_session.add(6)
    option = drug_session.add_option(main.id, 7)

    assert option.is_option
    assert option.parent_id == main.id
    with pytest.raises(ValueError):
        drug_session.add_option(option.id, 8)


def test_unknown_line_raises(drug_session: QuoteSession) -> None:
    with pytest.raises(KeyError):
        drug_session.remove("missing")


def test_unknown_catalog_item_raises(drug_session: QuoteSession) -> None:
    with pytest.raises(KeyError):
        drug_session.add(404)


def test_unoffered_route_cannot_be_added(sample_snapshot, sequential_ids) -> None:
    session = QuoteSession(sample_snapshot, "drug_single", route="iv", id_factory=sequential_ids)
    with pytest.raises(PriceUnavailableError):
        session.add(8)
    assert session.lines == ()


def test_route_change_reprices_lines(drug_session: QuoteSession) -> None:
    drug_session.add(6)
    drug_session.add(18)

    drug_session.set_route("iv")

    assert drug_session.route is Route.IV
    assert [line.price for line in drug_session.lines] == [80_000_000, 130_000_000]


def test_route_change_is_rejected_when_a_line_is_unoffered(drug_session: QuoteSession) -> None:
    drug_session.add(6)
    drug_session.add(8)
    before = drug_session.lines

    with pytest.raises(PriceUnavailableError, match=r"\[8\]"):
        drug_session.set_route(Route.IV)

    assert drug_session.route is Route.ORAL
    assert drug_session.lines == before


def test_pricing_mode_applies_overlays(drug_session: QuoteSession) -> None:
    drug_session.add(18)

    drug_session.set_pricing_mode("kglp_oecd")
    assert drug_session.pricing_mode is PricingMode.OECD_ADJUSTED
    assert drug_session.lines[0].price == 150_000_000

    drug_session.set_route("iv")
    assert drug_session.lines[0].price == 170_000_000

    drug_session.set_pricing_mode("standard")
    assert drug_session.lines[0].price == 130_000_000


def test_custom_price_survives_repricing(drug_session: QuoteSession) -> None:
    line = drug_session.add(6)
    drug_session.set_custom_price(line.id, 60_000_000)

    drug_session.set_route("iv")

    repriced = drug_session.line(line.id)
    assert repriced.price == 80_000_000
    assert repriced.effective_price == 60_000_000
    assert drug_session.clear_custom_price(line.id).effective_price == 80_000_000


@pytest.mark.parametrize("amount", [-1, 1.5, True])
def test_invalid_custom_price_is_rejected(drug_session: QuoteSession, amount) -> None:
    line = drug_session.add(6)
    with pytest.raises(ValueError):
        drug_session.set_custom_price(line.id, amount)


def test_drug_single_figures(drug_session: QuoteSession) -> None:
    main = drug_session.add(6)
    drug_session.add_option(main.id, 7)
    drug_session.add(18)
    drug_session.add(71)
    drug_session.set_discount(10)

    assert drug_session.formulation() == FormulationCost(
        assay_base=20_000_000, content_total=5_000_000
    )
    assert drug_session.totals() == QuoteTotals(
        subtotal_test=211_500_000,
        subtotal_formulation=25_000_000,
        discount_amount=23_650_000,
        total_amount=212_850_000,
    )


def test_invalid_discount_leaves_previous_value(drug_session: QuoteSession) -> None:
    drug_session.set_discount(5)
    with pytest.raises(ValueError):
        drug_session.set_discount(120)
    assert drug_session.discount_percent == 5


def test_combo_session_reprices_on_arity(sample_snapshot, sequential_ids) -> None:
    session = QuoteSession(sample_snapshot, "drug_combo", id_factory=sequential_ids)
    session.add(1)
    assert session.lines[0].price == 100_000_000

    session.set_combo_arity(4)

    assert session.combo_arity == 4
    assert session.lines[0].price == 140_000_000
    assert session.formulation().total == 0
    with pytest.raises(InvalidEnumerationError):
        session.set_combo_arity(5)
    assert session.combo_arity == 4


def test_health_food_session_adds_flat_fee(sample_snapshot, sequential_ids) -> None:
    session = QuoteSession(sample_snapshot, "hf_indv", id_factory=sequential_ids)
    assert session.totals() == QuoteTotals()

    session.add(2)
    session.add(4)
    session.set_route("iv")

    assert [line.price for line in session.lines] == [2_700_000, 92_000_000]
    assert session.totals().subtotal_formulation == 26_000_000
    assert session.totals().total_amount == 120_700_000


def test_clear_empties_selection(drug_session: QuoteSession) -> None:
    drug_session.add(6)
    drug_session.clear()
    assert drug_session.totals() == QuoteTotals()


def test_summary_lines(drug_session: QuoteSession) -> None:
    drug_session.add(6)

    lines = drug_session.summary_lines(page_width=30, short=True)

    assert lines[0].startswith("시험비 소계")
    assert lines[0].endswith("7,300만원")
    assert lines[-1].endswith("8,400만원")


def test_from_settings_uses_configured_defaults(
    monkeypatch: pytest.MonkeyPatch, tmp_path, sample_snapshot
) -> None:
    override = tmp_path / "settings.json"
    override.write_text(
        json.dumps(
            {
                "formulation_fees": {"hf_formulation_fee": 30_000_000},
                "quote_defaults": {"route": "iv", "discount_percent": 5},
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv(config.PRICING_SETTINGS_ENV_VAR, str(override))

    session = QuoteSession.from_settings(sample_snapshot, "hf_prob", pricing_mode="kglp_oecd")

    assert session.route is Route.IV
    assert session.pricing_mode is PricingMode.OECD_ADJUSTED
    assert session.discount_percent == 5
    assert session.fees == FormulationFees(hf_formulation_fee=30_000_000)


def test_unknown_category_is_rejected(sample_snapshot) -> None:
    with pytest.raises(InvalidEnumerationError):
        QuoteSession(sample_snapshot, "hf_temp")
