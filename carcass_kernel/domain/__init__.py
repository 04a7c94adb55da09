"""Pure domain records for the carcass kernel (no ORM, no I/O)."""

from carcass_kernel.domain.catalog import Business, CostItem, Cut, CutCatalog
from carcass_kernel.domain.records import (
    CostUsageRow,
    QuotationCutCostRecord,
    QuotationCutRecord,
    QuotationRecord,
    StoredQuotation,
)
from carcass_kernel.domain.session import (
    CostRow,
    CostTotalOverride,
    CutPricingState,
    QuotationSession,
    new_session,
)
from carcass_kernel.domain.values import Currency, PriceSlots, round2, to_decimal

__all__ = [
    "Business",
    "CostItem",
    "CostRow",
    "CostTotalOverride",
    "CostUsageRow",
    "Currency",
    "Cut",
    "CutCatalog",
    "CutPricingState",
    "PriceSlots",
    "QuotationCutCostRecord",
    "QuotationCutRecord",
    "QuotationRecord",
    "QuotationSession",
    "StoredQuotation",
    "new_session",
    "round2",
    "to_decimal",
]
