"""
Tests for the cost allocation engine and cost row edits.

Covers:
- Row costs normalized to USD and the negative total
- Total-cost mode split across sibling rows (exactness of the sum)
- Bulk add never duplicating or overwriting pairs
- Orphaned override cleanup on row removal
- Cost item grouping and assignable cuts
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from carcass_engines.cost_allocation import (
    CostAllocationEngine,
    add_cost_selection,
    add_costs_to_session,
    assignable_cut_ids,
    clear_cost_total_override,
    cost_item_groups,
    effective_price,
    remove_cost_from_session,
    remove_cost_row,
    set_cost_row_currency,
    set_cost_row_notes,
    set_cost_row_price,
    set_cost_total_override,
    set_total_cost_mode,
)
from carcass_engines.currency import to_usd
from carcass_kernel.domain.session import CostRow, CostTotalOverride
from carcass_kernel.domain.values import Currency, PriceSlots
from carcass_kernel.exceptions import CostRowNotFoundError, InvalidPriceError

RATE = Decimal("1000")


def allocate(session):
    return CostAllocationEngine().allocate(
        catalog=session.catalog,
        cost_rows=session.cost_rows,
        cost_overrides=session.cost_overrides,
        use_total_cost_mode=session.use_total_cost_mode,
        exchange_rate=session.exchange_rate,
    )


class TestAllocate:
    """Tests for CostAllocationEngine.allocate."""

    def test_no_rows_total_is_zero(self, session):
        result = allocate(session)
        assert result.lines == ()
        assert result.total_costs_usd == Decimal("0")
        assert not result.total_costs_usd.is_signed()

    def test_total_is_negated_sum(self, session):
        session = add_costs_to_session(session, ["ral", "rueda"], ["faena"])
        session = set_cost_row_price(session, "ral", "faena", 10)
        session = set_cost_row_currency(session, "rueda", "faena", Currency.ARS)
        session = set_cost_row_price(session, "rueda", "faena", 5000)
        result = allocate(session)

        assert result.line_for("ral", "faena").cost_usd == Decimal("10")
        assert result.line_for("rueda", "faena").cost_usd == Decimal("5")
        assert result.total_costs_usd == Decimal("-15")
        assert result.cost_for_cut("rueda") == Decimal("5")
        assert result.costs_by_cut == {"ral": Decimal("10"), "rueda": Decimal("5")}

    def test_peso_costs_without_rate_are_zero(self, session):
        session = replace(session, exchange_rate=None)
        session = add_costs_to_session(session, ["ral"], ["faena"])
        session = set_cost_row_currency(session, "ral", "faena", "ARS + IVA")
        session = set_cost_row_price(session, "ral", "faena", 1105)
        assert allocate(session).total_costs_usd == Decimal("0")

    def test_override_ignored_outside_total_mode(self, session):
        session = add_costs_to_session(session, ["ral", "rueda"], ["flete"])
        session = set_cost_row_price(session, "ral", "flete", 2)
        session = set_cost_total_override(session, "flete", 90)
        result = allocate(session)
        assert result.total_costs_usd == Decimal("-2")
        assert not result.line_for("ral", "flete").from_override

    def test_rows_for_unknown_cuts_are_skipped(self, session, captured_logs):
        session = add_costs_to_session(session, ["ral"], ["faena"])
        session = set_cost_row_price(session, "ral", "faena", 10)
        stale = CostRow("no-such-cut", "faena", prices=PriceSlots(usd=Decimal("50")))
        session = replace(session, cost_rows=session.cost_rows + (stale,))

        result = allocate(session)

        assert result.total_costs_usd == Decimal("-10")
        assert result.line_for("no-such-cut", "faena") is None
        skipped = [r for r in captured_logs() if r["message"] == "cost_row_skipped"]
        assert skipped[0]["cut_id"] == "no-such-cut"

    def test_fingerprint_tracks_row_prices(self, session, captured_logs):
        session = add_costs_to_session(session, ["ral"], ["faena"])
        allocate(set_cost_row_price(session, "ral", "faena", 1))
        allocate(set_cost_row_price(session, "ral", "faena", 2))

        traces = [
            r
            for r in captured_logs()
            if r["message"] == "CARCASS_ENGINE_TRACE" and r["engine_name"] == "cost_allocation"
        ]
        assert len(traces) == 2
        assert traces[0]["input_fingerprint"] != traces[1]["input_fingerprint"]


class TestTotalCostMode:
    """Tests for the divide-by-count override split."""

    def _three_rows(self, session):
        session = add_costs_to_session(session, ["ral", "rueda", "parrillero"], ["flete"])
        session = set_total_cost_mode(session, True)
        return set_cost_total_override(session, "flete", 100)

    def test_split_sum_is_exact(self, session):
        session = self._three_rows(session)
        result = allocate(session)
        total = sum(line.cost_usd for line in result.lines)
        assert abs(total - Decimal("100")) < Decimal("1e-20")
        assert all(line.from_override for line in result.lines)

    def test_split_in_override_currency(self, session):
        session = self._three_rows(session)
        session = set_cost_total_override(session, "flete", 30000, currency=Currency.ARS)
        result = allocate(session)
        expected = to_usd(Decimal("30000"), Currency.ARS, RATE)
        total = sum(line.cost_usd for line in result.lines)
        assert abs(total - expected) < Decimal("1e-20")
        assert result.line_for("ral", "flete").effective_currency is Currency.ARS
        assert result.line_for("ral", "flete").effective_price == Decimal("10000")

    def test_removing_sibling_changes_every_share(self, session):
        session = self._three_rows(session)
        session = remove_cost_from_session(session, "parrillero", "flete")
        result = allocate(session)
        assert result.line_for("ral", "flete").cost_usd == Decimal("50")
        assert result.line_for("rueda", "flete").cost_usd == Decimal("50")

    def test_unknown_cut_row_takes_no_share(self, session):
        session = self._three_rows(session)
        session = replace(
            session, cost_rows=session.cost_rows + (CostRow("no-such-cut", "flete"),)
        )
        result = allocate(session)
        assert result.line_for("ral", "flete").cost_usd == Decimal("100") / 3
        assert len(result.lines) == 3
        assert result.line_for("no-such-cut", "flete") is None

    def test_items_without_override_use_row_price(self, session):
        session = self._three_rows(session)
        session = add_costs_to_session(session, ["ral"], ["faena"])
        session = set_cost_row_price(session, "ral", "faena", 7)
        line = allocate(session).line_for("ral", "faena")
        assert line.cost_usd == Decimal("7")
        assert not line.from_override

    def test_effective_price_helper(self):
        rows = (CostRow("a", "i"), CostRow("b", "i"))
        overrides = (CostTotalOverride("i", Decimal("10")),)
        assert effective_price(rows[0], rows, overrides, True) == (
            Decimal("5"),
            Currency.USD,
            True,
        )
        assert effective_price(rows[0], rows, overrides, False)[2] is False


class TestRowSet:
    """Tests for bulk add and removal."""

    def test_bulk_add_cartesian(self):
        rows = add_cost_selection((), ["a", "b"], ["x", "y"])
        assert [r.key for r in rows] == [("a", "x"), ("a", "y"), ("b", "x"), ("b", "y")]
        assert all(r.currency is Currency.USD and r.prices.is_zero for r in rows)

    def test_bulk_add_never_overwrites(self):
        existing = (CostRow("a", "x", prices=PriceSlots(usd=Decimal("9")), notes="keep"),)
        rows = add_cost_selection(existing, ["a", "b"], ["x"])
        assert rows[0] is existing[0]
        assert [r.key for r in rows] == [("a", "x"), ("b", "x")]

    def test_bulk_add_ignores_duplicate_selection(self):
        rows = add_cost_selection((), ["a", "a"], ["x", "x"])
        assert len(rows) == 1

    def test_bulk_add_ignores_unknown_cuts(self):
        rows = add_cost_selection((), ["a", "gone"], ["x"], known_cut_ids={"a"})
        assert [r.key for r in rows] == [("a", "x")]

    def test_session_add_ignores_cuts_outside_catalog(self, session):
        session = add_costs_to_session(session, ["ral", "no-such-cut"], ["faena"])
        assert [r.key for r in session.cost_rows] == [("ral", "faena")]

    def test_remove_missing_row_raises(self):
        with pytest.raises(CostRowNotFoundError):
            remove_cost_row((), (), "a", "x")

    def test_removing_last_row_drops_override(self, captured_logs):
        rows = (CostRow("a", "x"), CostRow("a", "y"))
        overrides = (CostTotalOverride("x", Decimal("5")), CostTotalOverride("y", Decimal("3")))
        remaining, kept = remove_cost_row(rows, overrides, "a", "x")
        assert [r.key for r in remaining] == [("a", "y")]
        assert [o.cost_item_id for o in kept] == ["y"]
        assert any(r["message"] == "cost_override_orphan_removed" for r in captured_logs())

    def test_override_kept_while_sibling_remains(self):
        rows = (CostRow("a", "x"), CostRow("b", "x"))
        overrides = (CostTotalOverride("x", Decimal("5")),)
        _, kept = remove_cost_row(rows, overrides, "a", "x")
        assert kept == overrides

    def test_orphan_cleanup_through_session(self, session):
        session = add_costs_to_session(session, ["ral"], ["flete"])
        session = set_cost_total_override(session, "flete", 50)
        session = remove_cost_from_session(session, "ral", "flete")
        assert session.cost_rows == ()
        assert session.override_for("flete") is None


class TestRowEdits:
    """Tests for per-row setters and override management."""

    def test_price_on_unknown_row_raises(self, session):
        with pytest.raises(CostRowNotFoundError):
            set_cost_row_price(session, "ral", "faena", 1)

    def test_negative_price_rejected(self, session):
        session = add_costs_to_session(session, ["ral"], ["faena"])
        with pytest.raises(InvalidPriceError):
            set_cost_row_price(session, "ral", "faena", -1)

    def test_currency_switch_keeps_only_new_slot(self, session):
        session = add_costs_to_session(session, ["ral"], ["faena"])
        session = set_cost_row_price(session, "ral", "faena", 4)
        session = set_cost_row_currency(session, "ral", "faena", "ARS")
        row = session.cost_row("ral", "faena")
        assert row.currency is Currency.ARS
        assert row.prices.is_zero

    def test_notes_truncated(self, session):
        session = add_costs_to_session(session, ["ral"], ["faena"])
        session = set_cost_row_notes(session, "ral", "faena", "abcdef", max_length=3)
        assert session.cost_row("ral", "faena").notes == "abc"

    def test_override_without_rows_ignored(self, session):
        assert set_cost_total_override(session, "flete", 10) is session

    def test_override_replaced_not_duplicated(self, session):
        session = add_costs_to_session(session, ["ral"], ["flete"])
        session = set_cost_total_override(session, "flete", 10)
        session = set_cost_total_override(session, "flete", 20)
        assert len(session.cost_overrides) == 1
        assert session.override_for("flete").value == Decimal("20")

    def test_negative_override_rejected(self, session):
        session = add_costs_to_session(session, ["ral"], ["flete"])
        with pytest.raises(InvalidPriceError):
            set_cost_total_override(session, "flete", -10)

    def test_clear_override(self, session):
        session = add_costs_to_session(session, ["ral"], ["flete"])
        session = set_cost_total_override(session, "flete", 10)
        assert clear_cost_total_override(session, "flete").cost_overrides == ()


class TestGroupingAndAssignable:
    def test_groups_sorted_with_default_category(self, cost_items):
        groups = cost_item_groups(cost_items)
        assert list(groups) == ["Logística", "Mano de obra", "Otros"]
        assert [i.name for i in groups["Mano de obra"]] == ["Despostada", "Faena"]
        assert [i.id for i in groups["Otros"]] == ["bolsas"]

    def test_assignable_excludes_exempt(self):
        assert assignable_cut_ids(("ral", "frio", "rueda"), {"frio"}) == ("ral", "rueda")
