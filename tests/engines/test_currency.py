"""
Tests for the currency normalizer.

Covers:
- USD passthrough
- ARS and ARS + IVA conversion
- Degraded behavior while no exchange rate is loaded
- Only the active slot is normalized
"""

from decimal import Decimal

import pytest

from carcass_engines.currency import VAT_DIVISOR, active_usd, has_usable_rate, to_usd
from carcass_kernel.domain.values import Currency, PriceSlots

RATE = Decimal("1000")


class TestToUsd:
    """Tests for to_usd."""

    def test_usd_is_unchanged(self):
        assert to_usd(Decimal("12.34"), Currency.USD, RATE) == Decimal("12.34")

    def test_usd_is_unchanged_without_rate(self):
        assert to_usd(Decimal("12.34"), Currency.USD, None) == Decimal("12.34")

    def test_ars_divides_by_rate(self):
        assert to_usd(Decimal("5000"), Currency.ARS, RATE) == Decimal("5")

    def test_ars_with_vat_removes_vat_first(self):
        result = to_usd(Decimal("1105"), Currency.ARS_WITH_VAT, RATE)
        assert result == Decimal("1")

    def test_default_vat_divisor(self):
        assert VAT_DIVISOR == Decimal("1.105")

    def test_custom_vat_divisor(self):
        result = to_usd(Decimal("1210"), Currency.ARS_WITH_VAT, RATE, vat_divisor=Decimal("1.21"))
        assert result == Decimal("1")

    @pytest.mark.parametrize("rate", [None, Decimal("0"), Decimal("-5")])
    def test_missing_rate_zeroes_peso_amounts(self, rate):
        assert to_usd(Decimal("5000"), Currency.ARS, rate) == Decimal("0")
        assert to_usd(Decimal("5000"), Currency.ARS_WITH_VAT, rate) == Decimal("0")

    @pytest.mark.parametrize(
        "amount,rate",
        [
            (Decimal("1"), Decimal("1200.5")),
            (Decimal("987654.32"), Decimal("1185.25")),
            (Decimal("0.01"), Decimal("3")),
        ],
    )
    def test_ars_round_trip(self, amount, rate):
        """Converting to USD and back recovers the peso amount."""
        back = to_usd(amount, Currency.ARS, rate) * rate
        assert abs(back - amount) < Decimal("1e-15")

    def test_string_amount_is_coerced(self):
        assert to_usd("2000", Currency.ARS, RATE) == Decimal("2")

    def test_int_and_float_rates_are_coerced(self):
        assert to_usd(Decimal("1000"), Currency.ARS, 1000) == Decimal("1")
        assert to_usd(Decimal("1000"), Currency.ARS, 1000.0) == Decimal("1")
        assert to_usd(Decimal("1105"), Currency.ARS_WITH_VAT, 1000.0) == Decimal("1")

    def test_string_rate_is_coerced(self):
        assert to_usd(Decimal("500"), Currency.ARS, "250") == Decimal("2")


class TestRateAvailability:
    def test_positive_rate_is_usable(self):
        assert has_usable_rate(Decimal("0.5"))

    def test_none_and_zero_are_not_usable(self):
        assert not has_usable_rate(None)
        assert not has_usable_rate(Decimal("0"))

    def test_plain_number_rates(self):
        assert has_usable_rate(1200.5)
        assert has_usable_rate(1000)
        assert not has_usable_rate(0.0)


class TestActiveUsd:
    """Only the amount under the active currency is normalized."""

    def test_inactive_slots_ignored(self):
        prices = PriceSlots(ars=Decimal("3000"), ars_with_vat=Decimal("9999"), usd=Decimal("7"))
        assert active_usd(prices, Currency.ARS, RATE) == Decimal("3")
        assert active_usd(prices, Currency.USD, RATE) == Decimal("7")

    def test_zero_slot_yields_zero(self):
        assert active_usd(PriceSlots(), Currency.ARS_WITH_VAT, RATE) == Decimal("0")
