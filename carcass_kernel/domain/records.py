"""
Module: carcass_kernel.domain.records
Responsibility:
    Frozen payloads handed to the persistence sink when a quotation is
    saved (the header with computed totals plus one line per displayed cut
    and one line per cost assignment), and the read models returned when
    stored quotations and their cost lines are loaded back.

Architecture position:
    Kernel > Domain.  Built by ``carcass_engines.quotation`` and consumed by
    ``carcass_kernel.services.quotation_service``.

Invariants enforced:
    - Line items are complete snapshots; an edit replaces all of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from carcass_kernel.domain.values import Currency, PriceSlots


@dataclass(frozen=True)
class QuotationCutRecord:
    """Frozen price, currency and notes of one displayed cut."""

    cut_id: str
    prices: PriceSlots
    currency: Currency
    notes: str = ""


@dataclass(frozen=True)
class QuotationCutCostRecord:
    """Frozen cost assignment (effective price when total-cost mode is on)."""

    cut_id: str
    cost_item_id: str
    prices: PriceSlots
    currency: Currency
    notes: str = ""


@dataclass(frozen=True)
class QuotationRecord:
    """Quotation header plus its line items."""

    business_id: str | None
    media_res_weight: Decimal
    usd_per_kg: Decimal
    dollar_rate: Decimal
    total_initial_usd: Decimal
    total_cuts_usd: Decimal
    total_costs_usd: Decimal
    difference_usd: Decimal
    difference_percentage: Decimal
    difference_with_costs_usd: Decimal
    difference_with_costs_percentage: Decimal
    cuts: tuple[QuotationCutRecord, ...] = ()
    cut_costs: tuple[QuotationCutCostRecord, ...] = ()


@dataclass(frozen=True)
class StoredQuotation:
    """A persisted quotation as read back from the store."""

    id: str
    created_at: datetime
    record: QuotationRecord
    business_name: str | None = None


@dataclass(frozen=True)
class CostUsageRow:
    """One persisted cost line with the date of its quotation."""

    cost_item_id: str
    currency: Currency
    prices: PriceSlots
    quotation_id: str
    quotation_date: date
