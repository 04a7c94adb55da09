"""
Tests for the variance reporter.

Covers:
- Difference and percentage against the bulk valuation
- Loss / gain sign convention
- With-costs variant
- Zero initial valuation short-circuits to 0
"""

from decimal import Decimal

from carcass_engines.variance import (
    VarianceOutcome,
    VarianceReporter,
    difference_percentage,
)


def report(initial, cuts, costs="0"):
    return VarianceReporter().report(
        total_initial_usd=Decimal(initial),
        total_cuts_usd=Decimal(cuts),
        total_costs_usd=Decimal(costs),
    )


class TestDifference:
    """Tests for difference_usd and its sign."""

    def test_cuts_below_initial_is_loss(self):
        """300 kg at 4.00 USD/kg against cuts worth 1000 USD."""
        result = report("1200", "1000")
        assert result.difference_usd == Decimal("200")
        assert result.difference_percentage == Decimal("16.67")
        assert result.outcome is VarianceOutcome.LOSS
        assert result.display_sign == "-"
        assert result.absolute_difference_usd == Decimal("200")

    def test_cuts_above_initial_is_gain(self):
        result = report("1000", "1100")
        assert result.difference_usd == Decimal("-100")
        assert result.difference_percentage == Decimal("-10.00")
        assert result.outcome is VarianceOutcome.GAIN
        assert result.display_sign == "+"
        assert result.absolute_difference_usd == Decimal("100")

    def test_even(self):
        result = report("500", "500")
        assert result.outcome is VarianceOutcome.EVEN
        assert result.display_sign == ""

    def test_zero_initial_gives_zero_percentage(self):
        result = report("0", "350")
        assert result.difference_percentage == Decimal("0")
        assert result.difference_with_costs_percentage == Decimal("0")

    def test_percentage_helper_rounds_half_up(self):
        assert difference_percentage(Decimal("1"), Decimal("8")) == Decimal("12.50")
        assert difference_percentage(Decimal("1"), Decimal("0")) == Decimal("0")


class TestWithCosts:
    """Tests for the with-costs variant."""

    def test_negative_costs_subtracted(self):
        result = report("1200", "1000", costs="-50")
        assert result.difference_with_costs_usd == Decimal("250")
        assert result.difference_with_costs_percentage == Decimal("20.83")
        assert result.outcome_with_costs is VarianceOutcome.LOSS

    def test_costs_can_flip_outcome(self):
        result = report("1000", "1020", costs="-30")
        assert result.outcome is VarianceOutcome.GAIN
        assert result.outcome_with_costs is VarianceOutcome.LOSS

    def test_report_logged(self, captured_logs):
        report("1200", "1000")
        logged = [r for r in captured_logs() if r["message"] == "variance_reported"]
        assert logged[0]["outcome"] == "loss"
