"""
Tests for the stored quotation comparison.

Covers:
- Labels, order and indicators
- Selection bounds and unknown ids
"""

from datetime import datetime
from decimal import Decimal

import pytest

from carcass_engines.comparison import MAX_SELECTION, NO_BUSINESS_LABEL, compare_quotations
from carcass_kernel.domain.records import QuotationRecord, StoredQuotation


def stored(qid, difference, business=None, weight="200"):
    record = QuotationRecord(
        business_id=None,
        media_res_weight=Decimal(weight),
        usd_per_kg=Decimal("4"),
        dollar_rate=Decimal("1000"),
        total_initial_usd=Decimal("800"),
        total_cuts_usd=Decimal("800") - Decimal(difference),
        total_costs_usd=Decimal("0"),
        difference_usd=Decimal(difference),
        difference_percentage=Decimal("0"),
        difference_with_costs_usd=Decimal(difference),
        difference_with_costs_percentage=Decimal("0"),
    )
    return StoredQuotation(
        id=qid,
        created_at=datetime(2026, 3, int(qid[1:])),
        record=record,
        business_name=business,
    )


@pytest.fixture
def history():
    return (
        stored("q3", "-40", business="Carnicería Sur"),
        stored("q2", "25.5"),
        stored("q1", "0", business="Mayorista Norte", weight="180"),
    )


class TestCompare:
    """Tests for compare_quotations."""

    def test_rows_follow_history_order(self, history):
        rows = compare_quotations(history, ["q1", "q3"])
        assert [r.quotation_id for r in rows] == ["q3", "q1"]
        assert [r.label for r in rows] == ["#1 - Carnicería Sur", "#2 - Mayorista Norte"]

    def test_missing_business_label(self, history):
        rows = compare_quotations(history, ["q2", "q3"])
        assert rows[1].label == f"#2 - {NO_BUSINESS_LABEL}"

    def test_indicators(self, history):
        rows = {r.quotation_id: r for r in compare_quotations(history, ["q1", "q2", "q3"])}
        assert rows["q3"].net_result_usd == Decimal("40")
        assert rows["q3"].absolute_difference_usd == Decimal("40")
        assert rows["q2"].net_result_usd == Decimal("-25.5")
        assert rows["q1"].media_res_weight == Decimal("180")
        assert rows["q1"].usd_per_kg == Decimal("4")
        assert rows["q1"].created_at == datetime(2026, 3, 1)

    def test_even_net_result_is_unsigned_zero(self, history):
        rows = compare_quotations(history, ["q1", "q2"])
        assert not rows[-1].net_result_usd.is_signed()

    def test_duplicates_collapse(self, history):
        with pytest.raises(ValueError):
            compare_quotations(history, ["q1", "q1"])

    @pytest.mark.parametrize("count", [0, 1, MAX_SELECTION + 1])
    def test_selection_bounds(self, count):
        quotations = tuple(stored(f"q{i}", "1") for i in range(1, 8))
        with pytest.raises(ValueError):
            compare_quotations(quotations, [q.id for q in quotations[:count]])

    def test_unknown_id(self, history):
        with pytest.raises(ValueError, match="q9"):
            compare_quotations(history, ["q1", "q9"])
