"""
Tests for the valuation engine.

Covers:
- Per-cut kg and USD value
- Currency normalization of cut prices
- Unpriced cuts contribute zero
- Aggregates and the soft percentage sum
- Stale display ids are skipped
"""

from decimal import Decimal

from carcass_engines.pricing import set_cut_currency, set_cut_price
from carcass_engines.valuation import ValuationEngine, initial_valuation

WHOLE = ("ral", "rueda", "parrillero", "delantero", "frio")


def value(session, display=WHOLE, weight="200", usd_per_kg="4", rate=Decimal("1000")):
    return ValuationEngine().value_cuts(
        catalog=session.catalog,
        display_cut_ids=display,
        cut_states=session.states_by_id,
        total_weight=Decimal(weight),
        usd_per_kg=Decimal(usd_per_kg),
        exchange_rate=rate,
    )


class TestCutValues:
    """Tests for per-cut valuation lines."""

    def test_kg_from_percentage(self, session):
        result = value(session)
        assert result.line_for("ral").kg == Decimal("50")
        assert result.line_for("parrillero").kg == Decimal("60")
        assert result.line_for("frio").kg == Decimal("0")

    def test_usd_price_times_kg(self, session):
        session = set_cut_price(session, "ral", "3.5")
        line = value(session).line_for("ral")
        assert line.value_usd == Decimal("175.0")
        assert line.usd_per_kg == Decimal("3.5")

    def test_ars_price_normalized(self, session):
        session = set_cut_price(session, "rueda", 4000, currency="ARS")
        line = value(session).line_for("rueda")
        assert line.usd_per_kg == Decimal("4")
        assert line.value_usd == Decimal("200")

    def test_ars_with_vat_price_normalized(self, session):
        session = set_cut_price(session, "delantero", 3315, currency="ARS + IVA")
        line = value(session).line_for("delantero")
        assert line.usd_per_kg == Decimal("3")
        assert line.value_usd == Decimal("120")

    def test_unpriced_cut_is_zero(self, session):
        assert value(session).line_for("rueda").value_usd == Decimal("0")

    def test_peso_price_without_rate_is_zero(self, session):
        session = set_cut_price(session, "rueda", 4000, currency="ARS")
        assert value(session, rate=None).line_for("rueda").value_usd == Decimal("0")

    def test_inactive_slot_ignored(self, session):
        session = set_cut_price(session, "rueda", 5)
        session = set_cut_currency(session, "rueda", "ARS")
        assert value(session).line_for("rueda").value_usd == Decimal("0")


class TestAggregates:
    """Tests for totals."""

    def test_total_cuts_is_sum_of_lines(self, session):
        session = set_cut_price(session, "ral", 4)
        session = set_cut_price(session, "rueda", 4)
        session = set_cut_price(session, "parrillero", 3)
        session = set_cut_price(session, "delantero", 2)
        result = value(session)
        # 50*4 + 50*4 + 60*3 + 40*2
        assert result.total_cuts_usd == Decimal("660")
        assert result.total_cuts_usd == sum(line.value_usd for line in result.lines)

    def test_initial_valuation(self, session):
        assert value(session, weight="300", usd_per_kg="4").total_initial_usd == Decimal("1200")
        assert initial_valuation(Decimal("0"), Decimal("9")) == Decimal("0")

    def test_total_percentage_is_reported(self, session):
        result = value(session, display=("ral", "rueda"))
        assert result.total_percentage == Decimal("50")
        assert result.percentage_gap == Decimal("50")

    def test_stale_display_id_skipped(self, session, captured_logs):
        result = value(session, display=("ral", "ghost"))
        assert [line.cut_id for line in result.lines] == ["ral"]
        assert any(r["message"] == "valuation_cut_skipped" for r in captured_logs())

    def test_engine_trace_emitted(self, session, captured_logs):
        value(session)
        traces = [r for r in captured_logs() if r["message"] == "CARCASS_ENGINE_TRACE"]
        assert traces[0]["engine_name"] == "valuation"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_unrounded_totals(self, session):
        session = set_cut_price(session, "ral", "3.333")
        result = value(session, weight="1")
        assert result.total_cuts_usd == Decimal("0.83325")
