"""
Tests for session edits in carcass_engines.pricing.

Covers:
- Macro/sub-cut exclusivity in both directions
- Single active currency slot
- Fixed-cost cuts ignore manual prices
- Business selection and reset
- Scalar input validation
"""

from decimal import Decimal

import pytest

from carcass_engines.pricing import (
    reset_session,
    select_business,
    set_cut_currency,
    set_cut_notes,
    set_cut_price,
    set_exchange_rate,
    set_usd_per_kg,
    set_weight,
)
from carcass_kernel.domain.values import Currency, PriceSlots
from carcass_kernel.exceptions import InvalidPriceError


def prices(session, cut_id):
    return session.state_for(cut_id).prices


class TestSetCutPrice:
    """Tests for set_cut_price."""

    def test_sets_active_slot(self, session):
        updated = set_cut_price(session, "nalga", "12.5")
        assert prices(updated, "nalga") == PriceSlots(usd=Decimal("12.5"))

    def test_returns_new_session(self, session):
        updated = set_cut_price(session, "nalga", 10)
        assert prices(session, "nalga").is_zero
        assert updated is not session

    def test_sub_cut_price_zeroes_macro(self, session):
        session = set_cut_price(session, "ral", 8)
        session = set_cut_currency(session, "ral", Currency.ARS)
        session = set_cut_price(session, "ral", 9000)
        updated = set_cut_price(session, "bola", 11)

        assert prices(updated, "ral") == PriceSlots()
        assert prices(updated, "bola").usd == Decimal("11")

    def test_macro_price_zeroes_all_children(self, session):
        session = set_cut_price(session, "nalga", 10)
        session = set_cut_price(session, "bola", 12, currency=Currency.ARS)
        updated = set_cut_price(session, "ral", 9)

        for child in ("nalga", "bola", "manipuleo_ral"):
            assert prices(updated, child).is_zero
        assert prices(updated, "ral").usd == Decimal("9")

    def test_siblings_are_untouched(self, session):
        session = set_cut_price(session, "nalga", 10)
        updated = set_cut_price(session, "bola", 12)
        assert prices(updated, "nalga").usd == Decimal("10")

    def test_zero_price_does_not_clear_family(self, session):
        session = set_cut_price(session, "ral", 8)
        updated = set_cut_price(session, "nalga", 0)
        assert prices(updated, "ral").usd == Decimal("8")

    def test_other_macros_untouched(self, session):
        session = set_cut_price(session, "rueda", 7)
        updated = set_cut_price(session, "nalga", 10)
        assert prices(updated, "rueda").usd == Decimal("7")

    def test_currency_argument_switches_first(self, session):
        session = set_cut_price(session, "asado", 5)
        updated = set_cut_price(session, "asado", 8000, currency="ARS")
        state = updated.state_for("asado")
        assert state.currency is Currency.ARS
        assert state.prices == PriceSlots(ars=Decimal("8000"))

    def test_negative_price_rejected(self, session):
        with pytest.raises(InvalidPriceError):
            set_cut_price(session, "nalga", -1)

    def test_fixed_cost_cut_ignores_price(self, session):
        updated = set_cut_price(session, "manipuleo_ral", 3)
        assert updated is session

    def test_unknown_cut_is_logged_and_ignored(self, session, captured_logs):
        updated = set_cut_price(session, "ghost", 3)
        assert updated is session
        assert any(r["message"] == "cut_not_in_session" for r in captured_logs())


class TestSetCutCurrency:
    def test_keeps_only_new_slot(self, session):
        session = set_cut_price(session, "paleta", 6)
        updated = set_cut_currency(session, "paleta", Currency.ARS_WITH_VAT)
        state = updated.state_for("paleta")
        assert state.currency is Currency.ARS_WITH_VAT
        assert state.prices.is_zero

    def test_accepts_label(self, session):
        updated = set_cut_currency(session, "paleta", "ARS + IVA")
        assert updated.state_for("paleta").currency is Currency.ARS_WITH_VAT


class TestSetCutNotes:
    def test_notes_truncated(self, session):
        updated = set_cut_notes(session, "aguja", "x" * 20, max_length=5)
        assert updated.state_for("aguja").notes == "xxxxx"

    def test_none_notes_become_empty(self, session):
        updated = set_cut_notes(session, "aguja", None)
        assert updated.state_for("aguja").notes == ""


class TestBusinessAndInputs:
    """Tests for business selection, scalar inputs and reset."""

    def test_select_business_resets_prices(self, session, butcher):
        session = set_cut_price(session, "rueda", 7)
        updated = select_business(session, butcher)
        assert updated.business == butcher
        assert all(s.prices.is_zero for s in updated.cut_states)

    def test_select_none_clears_business(self, session, butcher):
        session = select_business(session, butcher)
        assert select_business(session, None).business is None

    def test_scalar_inputs(self, session):
        session = set_weight(session, "300")
        session = set_usd_per_kg(session, 4)
        assert session.total_weight == Decimal("300")
        assert session.usd_per_kg == Decimal("4")

    @pytest.mark.parametrize("setter", [set_weight, set_usd_per_kg])
    def test_negative_scalar_rejected(self, session, setter):
        with pytest.raises(InvalidPriceError):
            setter(session, -1)

    def test_exchange_rate_can_be_withdrawn(self, session):
        updated = set_exchange_rate(session, None)
        assert updated.exchange_rate is None
        assert set_exchange_rate(updated, "1185", "2026-10-17 10:00").exchange_rate == Decimal("1185")

    def test_reset_keeps_catalog_and_rate(self, session, wholesale):
        session = select_business(session, wholesale)
        session = set_weight(session, 100)
        session = set_cut_price(session, "rueda", 7)
        fresh = reset_session(session)
        assert fresh.business is None
        assert fresh.total_weight == Decimal("0")
        assert fresh.exchange_rate == Decimal("1000")
        assert fresh.catalog is session.catalog
        assert all(s.prices.is_zero for s in fresh.cut_states)
