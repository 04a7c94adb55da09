"""
carcass_engines.cost_allocation -- Allocate operational costs across cuts.

Responsibility:
    Compute each cost assignment's effective price (its own, or an even
    share of a per-item total in total-cost mode), normalize it to USD and
    aggregate the cost total.  Also owns the cost-row set operations:
    bulk add of (cut x cost item) selections, row removal with override
    cleanup, and row price / currency / notes edits on a session.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on ``carcass_engines.currency``.

Invariants enforced:
    - Split is derived, never stored: an override's per-row share is
      recomputed from the current row set on every call, so adding or
      removing a sibling row changes every sibling's effective price.
    - Split exactness: the shares of one override sum to the override's
      USD value (up to Decimal precision).
    - Sign convention: ``total_costs_usd`` is the NEGATED sum of row costs.
    - No orphans: removing the last row for an item drops its override.
    - Bulk add never duplicates or overwrites an existing (cut, item) pair.
    - Rows naming a cut the catalog no longer has are skipped (logged as
      ``cost_row_skipped``) and take no part in totals or override splits.

Failure modes:
    - CostRowNotFoundError when editing a row that does not exist.
    - InvalidPriceError for negative row prices or override values.

Usage:
    from carcass_engines.cost_allocation import CostAllocationEngine

    result = CostAllocationEngine().allocate(
        catalog=session.catalog,
        cost_rows=session.cost_rows,
        cost_overrides=session.cost_overrides,
        use_total_cost_mode=session.use_total_cost_mode,
        exchange_rate=session.exchange_rate,
    )
    result.total_costs_usd  # negative
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Container, Iterable, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from carcass_engines.currency import VAT_DIVISOR, to_usd
from carcass_engines.tracer import traced_engine
from carcass_kernel.domain.catalog import CostItem, CutCatalog
from carcass_kernel.domain.session import (
    CostRow,
    CostTotalOverride,
    QuotationSession,
)
from carcass_kernel.domain.values import ZERO, Currency, to_decimal
from carcass_kernel.exceptions import CostRowNotFoundError, InvalidPriceError
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.cost_allocation")

DEFAULT_COST_CATEGORY = "Otros"


@dataclass(frozen=True)
class CostRowAllocation:
    """Outcome for one cost assignment."""

    cut_id: str
    cost_item_id: str
    effective_price: Decimal
    effective_currency: Currency
    cost_usd: Decimal
    from_override: bool


@dataclass(frozen=True)
class CostAllocationResult:
    """
    All row allocations plus the aggregate.

    ``total_costs_usd`` is negative (costs reduce net value).
    """

    lines: tuple[CostRowAllocation, ...]
    total_costs_usd: Decimal

    def cost_for_cut(self, cut_id: str) -> Decimal:
        """Positive USD cost attributed to ``cut_id``."""
        return sum((line.cost_usd for line in self.lines if line.cut_id == cut_id), ZERO)

    @property
    def costs_by_cut(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self.lines:
            totals[line.cut_id] += line.cost_usd
        return dict(totals)

    def line_for(self, cut_id: str, cost_item_id: str) -> CostRowAllocation | None:
        for line in self.lines:
            if (line.cut_id, line.cost_item_id) == (cut_id, cost_item_id):
                return line
        return None


def rows_sharing_item(rows: Sequence[CostRow], cost_item_id: str) -> int:
    return sum(1 for r in rows if r.cost_item_id == cost_item_id)


def known_cost_rows(rows: Sequence[CostRow], catalog: CutCatalog) -> tuple[CostRow, ...]:
    """Rows whose cut is still in ``catalog``; the others are logged and dropped."""
    kept = []
    for row in rows:
        if row.cut_id in catalog:
            kept.append(row)
        else:
            logger.warning(
                "cost_row_skipped",
                extra={"cut_id": row.cut_id, "cost_item_id": row.cost_item_id},
            )
    return tuple(kept)


def _override_index(overrides: Iterable[CostTotalOverride]) -> dict[str, CostTotalOverride]:
    return {o.cost_item_id: o for o in overrides}


def effective_price(
    row: CostRow,
    rows: Sequence[CostRow],
    overrides: Iterable[CostTotalOverride],
    use_total_cost_mode: bool,
) -> tuple[Decimal, Currency, bool]:
    """
    Price and currency a row contributes with.

    Returns:
        ``(price, currency, from_override)``.  In total-cost mode with an
        override for the row's item, price is ``override.value`` divided by
        the number of rows currently sharing the item.
    """
    if use_total_cost_mode:
        override = _override_index(overrides).get(row.cost_item_id)
        if override is not None:
            count = rows_sharing_item(rows, row.cost_item_id)
            if count > 0:
                return override.value / count, override.currency, True
    return row.active_price, row.currency, False


class CostAllocationEngine:
    """
    Allocate cost items across cuts.

    Contract:
        Pure function over the current row set.  No I/O.
    Guarantees:
        - One ``CostRowAllocation`` per row whose cut is in the catalog,
          in row order.
        - ``total_costs_usd == -sum(cost_usd)``.
    """

    @traced_engine(
        "cost_allocation",
        "1.0",
        fingerprint_fields=(
            "cost_rows",
            "cost_overrides",
            "use_total_cost_mode",
            "exchange_rate",
        ),
    )
    def allocate(
        self,
        *,
        catalog: CutCatalog,
        cost_rows: Sequence[CostRow],
        cost_overrides: Sequence[CostTotalOverride] = (),
        use_total_cost_mode: bool = False,
        exchange_rate: Decimal | None,
        vat_divisor: Decimal = VAT_DIVISOR,
    ) -> CostAllocationResult:
        """
        Args:
            catalog: Cuts a row may reference.
            cost_rows: Current (cut, cost item) assignments.
            cost_overrides: Per-item totals, keyed by cost item id.
            use_total_cost_mode: When True, overrides replace row prices.
            exchange_rate: Pesos per dollar, or ``None`` while unavailable.
            vat_divisor: Divisor removing VAT from ARS + IVA amounts.
        """
        rows = known_cost_rows(cost_rows, catalog)
        lines: list[CostRowAllocation] = []
        total = ZERO
        for row in rows:
            price, currency, from_override = effective_price(
                row, rows, cost_overrides, use_total_cost_mode
            )
            cost_usd = to_usd(price, currency, exchange_rate, vat_divisor)
            lines.append(
                CostRowAllocation(
                    cut_id=row.cut_id,
                    cost_item_id=row.cost_item_id,
                    effective_price=price,
                    effective_currency=currency,
                    cost_usd=cost_usd,
                    from_override=from_override,
                )
            )
            total += cost_usd

        result = CostAllocationResult(lines=tuple(lines), total_costs_usd=ZERO - total)
        logger.info(
            "cost_allocation_completed",
            extra={
                "row_count": len(lines),
                "override_count": len(cost_overrides),
                "use_total_cost_mode": use_total_cost_mode,
                "total_costs_usd": str(result.total_costs_usd),
            },
        )
        return result


# ---------------------------------------------------------------------------
# Row-set operations
# ---------------------------------------------------------------------------


def add_cost_selection(
    rows: Sequence[CostRow],
    cut_ids: Iterable[str],
    cost_item_ids: Iterable[str],
    known_cut_ids: Container[str] | None = None,
) -> tuple[CostRow, ...]:
    """
    Append one new row per selected (cut, cost item) pair not yet present.

    New rows start in USD with zero prices and empty notes.  Existing rows
    are kept untouched, in their original order.  When ``known_cut_ids``
    is given, selected cuts outside it are ignored.
    """
    item_ids = list(dict.fromkeys(cost_item_ids))
    existing = {r.key for r in rows}
    added: list[CostRow] = []
    for cut_id in dict.fromkeys(cut_ids):
        if known_cut_ids is not None and cut_id not in known_cut_ids:
            logger.warning("cost_selection_unknown_cut", extra={"cut_id": cut_id})
            continue
        for item_id in item_ids:
            if (cut_id, item_id) in existing:
                continue
            existing.add((cut_id, item_id))
            added.append(CostRow(cut_id=cut_id, cost_item_id=item_id))
    if added:
        logger.debug("cost_rows_added", extra={"added_count": len(added)})
    return tuple(rows) + tuple(added)


def remove_cost_row(
    rows: Sequence[CostRow],
    overrides: Sequence[CostTotalOverride],
    cut_id: str,
    cost_item_id: str,
) -> tuple[tuple[CostRow, ...], tuple[CostTotalOverride, ...]]:
    """Drop a row; drop the item's override too when no sibling row remains."""
    remaining = tuple(r for r in rows if r.key != (cut_id, cost_item_id))
    if len(remaining) == len(rows):
        raise CostRowNotFoundError(cut_id, cost_item_id)
    kept_overrides = tuple(
        o
        for o in overrides
        if o.cost_item_id != cost_item_id or rows_sharing_item(remaining, cost_item_id) > 0
    )
    if len(kept_overrides) != len(overrides):
        logger.info("cost_override_orphan_removed", extra={"cost_item_id": cost_item_id})
    return remaining, kept_overrides


def cost_item_groups(
    items: Iterable[CostItem],
    default_category: str = DEFAULT_COST_CATEGORY,
) -> dict[str, tuple[CostItem, ...]]:
    """Cost items grouped by category, categories and names sorted."""
    groups: dict[str, list[CostItem]] = defaultdict(list)
    for item in items:
        category = (item.category or "").strip() or default_category
        groups[category].append(item)
    return {
        category: tuple(sorted(groups[category], key=lambda i: i.name))
        for category in sorted(groups)
    }


def assignable_cut_ids(
    display_cut_ids: Iterable[str],
    exempt_cut_ids: Iterable[str],
) -> tuple[str, ...]:
    """Displayed cuts that may receive costs (placeholder cuts excluded)."""
    exempt = frozenset(exempt_cut_ids)
    return tuple(c for c in display_cut_ids if c not in exempt)


# ---------------------------------------------------------------------------
# Session edits
# ---------------------------------------------------------------------------


def add_costs_to_session(
    session: QuotationSession,
    cut_ids: Iterable[str],
    cost_item_ids: Iterable[str],
) -> QuotationSession:
    return replace(
        session,
        cost_rows=add_cost_selection(
            session.cost_rows, cut_ids, cost_item_ids, known_cut_ids=session.catalog
        ),
    )


def remove_cost_from_session(
    session: QuotationSession,
    cut_id: str,
    cost_item_id: str,
) -> QuotationSession:
    rows, overrides = remove_cost_row(
        session.cost_rows, session.cost_overrides, cut_id, cost_item_id
    )
    return replace(session, cost_rows=rows, cost_overrides=overrides)


def _replace_row(session: QuotationSession, row: CostRow) -> QuotationSession:
    return replace(
        session,
        cost_rows=tuple(row if r.key == row.key else r for r in session.cost_rows),
    )


def _require_row(session: QuotationSession, cut_id: str, cost_item_id: str) -> CostRow:
    row = session.cost_row(cut_id, cost_item_id)
    if row is None:
        raise CostRowNotFoundError(cut_id, cost_item_id)
    return row


def set_cost_row_price(
    session: QuotationSession,
    cut_id: str,
    cost_item_id: str,
    amount: Decimal | int | float | str,
) -> QuotationSession:
    """Store ``amount`` in the row's active currency slot."""
    price = to_decimal(amount, "price")
    if price < ZERO:
        raise InvalidPriceError("price", amount)
    row = _require_row(session, cut_id, cost_item_id)
    return _replace_row(session, replace(row, prices=row.prices.with_amount(row.currency, price)))


def set_cost_row_currency(
    session: QuotationSession,
    cut_id: str,
    cost_item_id: str,
    currency: Currency | str,
) -> QuotationSession:
    """Switch the row's currency, zeroing the other two slots."""
    row = _require_row(session, cut_id, cost_item_id)
    target = Currency.parse(currency)
    return _replace_row(
        session, replace(row, currency=target, prices=row.prices.keep_only(target))
    )


def set_cost_row_notes(
    session: QuotationSession,
    cut_id: str,
    cost_item_id: str,
    notes: str,
    max_length: int = 500,
) -> QuotationSession:
    row = _require_row(session, cut_id, cost_item_id)
    return _replace_row(session, replace(row, notes=(notes or "")[:max_length]))


def set_cost_total_override(
    session: QuotationSession,
    cost_item_id: str,
    value: Decimal | int | float | str,
    currency: Currency | str = Currency.USD,
) -> QuotationSession:
    """Enter one total for a cost item; ignored when no row uses the item."""
    amount = to_decimal(value, "value")
    if amount < ZERO:
        raise InvalidPriceError("value", value)
    if rows_sharing_item(session.cost_rows, cost_item_id) == 0:
        logger.warning("cost_override_without_rows", extra={"cost_item_id": cost_item_id})
        return session
    override = CostTotalOverride(
        cost_item_id=cost_item_id, value=amount, currency=Currency.parse(currency)
    )
    others = tuple(o for o in session.cost_overrides if o.cost_item_id != cost_item_id)
    return replace(session, cost_overrides=others + (override,))


def clear_cost_total_override(session: QuotationSession, cost_item_id: str) -> QuotationSession:
    return replace(
        session,
        cost_overrides=tuple(
            o for o in session.cost_overrides if o.cost_item_id != cost_item_id
        ),
    )


def set_total_cost_mode(session: QuotationSession, enabled: bool) -> QuotationSession:
    return replace(session, use_total_cost_mode=bool(enabled))
