"""
carcass_engines.cost_insights -- Usage statistics over persisted cost lines.

Responsibility:
    Summarize how cost items were used across saved quotations in a date
    window: per item (uses, distinct quotations, totals and per-currency
    averages), per category (total, average ticket, share and half-window
    growth in one chosen denomination), overall totals and per-day totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Input rows come from ``QuotationService.cost_usage_rows``.

Invariants enforced:
    - Amounts are summed as stored; no currency conversion happens here.
    - Averages per currency only consider rows whose active currency is
      that currency.
    - Division-by-zero safe: empty buckets average, share and grow at 0.

Failure modes:
    - ValueError when the date window is inverted for ``daily_totals``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from carcass_kernel.domain.catalog import CostItem
from carcass_kernel.domain.records import CostUsageRow
from carcass_kernel.domain.values import ZERO, Currency, PriceSlots
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.cost_insights")

UNKNOWN_ITEM_NAME = "(Desconocido)"
UNCATEGORIZED = "Sin categoría"
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ItemUsage:
    """Usage of one cost item."""

    cost_item_id: str
    name: str
    category: str | None
    uses: int
    quotation_count: int
    totals: PriceSlots
    averages: PriceSlots


@dataclass(frozen=True)
class CategoryUsage:
    """Usage of one cost category in a single denomination."""

    name: str
    uses: int
    total: Decimal
    average_ticket: Decimal
    quotation_count: int
    item_count: int
    share: Decimal
    growth: Decimal


@dataclass(frozen=True)
class UsageTotals:
    totals: PriceSlots
    row_count: int
    quotation_count: int


def _sum_slots(rows: Iterable[CostUsageRow]) -> PriceSlots:
    ars = ars_with_vat = usd = ZERO
    for row in rows:
        ars += row.prices.ars
        ars_with_vat += row.prices.ars_with_vat
        usd += row.prices.usd
    return PriceSlots(ars=ars, ars_with_vat=ars_with_vat, usd=usd)


def _average_active(rows: Sequence[CostUsageRow], currency: Currency) -> Decimal:
    matching = [r.prices.get(currency) for r in rows if r.currency is currency]
    if not matching:
        return ZERO
    return sum(matching, ZERO) / len(matching)


def summarize_by_item(
    rows: Iterable[CostUsageRow],
    cost_items: Iterable[CostItem],
) -> tuple[ItemUsage, ...]:
    """Per cost item aggregates, highest USD total first."""
    items = {item.id: item for item in cost_items}
    buckets: dict[str, list[CostUsageRow]] = defaultdict(list)
    for row in rows:
        buckets[row.cost_item_id].append(row)

    result = []
    for item_id, bucket in buckets.items():
        meta = items.get(item_id)
        result.append(
            ItemUsage(
                cost_item_id=item_id,
                name=meta.name if meta else UNKNOWN_ITEM_NAME,
                category=meta.category if meta else None,
                uses=len(bucket),
                quotation_count=len({r.quotation_id for r in bucket}),
                totals=_sum_slots(bucket),
                averages=PriceSlots(
                    ars=_average_active(bucket, Currency.ARS),
                    ars_with_vat=_average_active(bucket, Currency.ARS_WITH_VAT),
                    usd=_average_active(bucket, Currency.USD),
                ),
            )
        )
    # Stable sort keeps first-seen order among equal totals
    result.sort(key=lambda usage: usage.totals.usd, reverse=True)
    return tuple(result)


def _category_of(item: CostItem | None) -> str:
    category = (item.category or "").strip() if item else ""
    return category or UNCATEGORIZED


def _window_midpoint(date_from: date, date_to: date) -> datetime:
    start = datetime.combine(date_from, time.min)
    end = datetime.combine(date_to, time(23, 59, 59))
    if end <= start:
        return start
    return start + (end - start) / 2


def _growth(first_half: Decimal, second_half: Decimal) -> Decimal:
    if first_half:
        return (second_half - first_half) / first_half * HUNDRED
    return HUNDRED if second_half > ZERO else ZERO


def summarize_by_category(
    rows: Iterable[CostUsageRow],
    cost_items: Iterable[CostItem],
    currency: Currency,
    date_from: date,
    date_to: date,
) -> tuple[CategoryUsage, ...]:
    """
    Per category aggregates in ``currency``, largest total first.

    Rows dated at or before the middle of the window count toward the
    first half; later rows toward the second.
    """
    items = {item.id: item for item in cost_items}
    midpoint = _window_midpoint(date_from, date_to)

    uses: dict[str, int] = defaultdict(int)
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    halves: dict[str, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    quotations: dict[str, set[str]] = defaultdict(set)
    item_ids: dict[str, set[str]] = defaultdict(set)

    for row in rows:
        name = _category_of(items.get(row.cost_item_id))
        value = row.prices.get(currency)
        uses[name] += 1
        totals[name] += value
        quotations[name].add(row.quotation_id)
        item_ids[name].add(row.cost_item_id)
        if datetime.combine(row.quotation_date, time.min) <= midpoint:
            halves[name][0] += value
        else:
            halves[name][1] += value

    universe = sum(totals.values(), ZERO)
    result = [
        CategoryUsage(
            name=name,
            uses=uses[name],
            total=totals[name],
            average_ticket=totals[name] / uses[name] if uses[name] else ZERO,
            quotation_count=len(quotations[name]),
            item_count=len(item_ids[name]),
            share=totals[name] / universe * HUNDRED if universe else ZERO,
            growth=_growth(*halves[name]),
        )
        for name in uses
    ]
    result.sort(key=lambda usage: usage.total, reverse=True)
    return tuple(result)


def filter_categories(
    categories: Iterable[CategoryUsage],
    category: str | None = None,
    min_uses: int = 0,
    limit: int | None = None,
) -> tuple[CategoryUsage, ...]:
    """Keep one category (or all) with at least ``min_uses`` uses."""
    kept = [
        c
        for c in categories
        if (category is None or c.name == category) and c.uses >= min_uses
    ]
    return tuple(kept if limit is None else kept[:limit])


def overall_totals(rows: Iterable[CostUsageRow]) -> UsageTotals:
    rows = list(rows)
    return UsageTotals(
        totals=_sum_slots(rows),
        row_count=len(rows),
        quotation_count=len({r.quotation_id for r in rows}),
    )


def daily_totals(
    rows: Iterable[CostUsageRow],
    date_from: date,
    date_to: date,
    cost_item_id: str | None = None,
) -> dict[date, PriceSlots]:
    """
    Slot totals for every day in the window (days without rows are zero).

    Rows outside the window are ignored.  ``cost_item_id`` narrows the
    series to one item.
    """
    if date_to < date_from:
        raise ValueError(f"Inverted date window: {date_from} > {date_to}")
    days = (date_to - date_from).days + 1
    buckets: dict[date, list[CostUsageRow]] = {
        date_from + timedelta(days=i): [] for i in range(days)
    }
    skipped = 0
    for row in rows:
        if cost_item_id is not None and row.cost_item_id != cost_item_id:
            continue
        bucket = buckets.get(row.quotation_date)
        if bucket is None:
            skipped += 1
            continue
        bucket.append(row)
    if skipped:
        logger.debug("cost_usage_outside_window", extra={"skipped_count": skipped})
    return {day: _sum_slots(bucket) for day, bucket in buckets.items()}
