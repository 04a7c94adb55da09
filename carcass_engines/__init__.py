"""
Module: carcass_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (carcass_services, carcass_config.bridges).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import carcass_kernel (domain, exceptions, logging) and sibling
    engine modules.  MUST NOT import carcass_services or carcass_config.

Invariants enforced:
    - Purity: engines never read the clock, the environment or the
      database.  Settings and exchange rates are passed in explicitly.
    - Decimal-only arithmetic: every monetary amount is a ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - InvalidPriceError / CostRowNotFoundError from session edit functions.
    - ValueError from comparison and insight helpers on invalid windows.

Audit relevance:
    Every engine entry point is traced via ``@traced_engine`` (see
    ``carcass_engines.tracer``), emitting CARCASS_ENGINE_TRACE records with
    engine name, version, input fingerprint and duration.

Usage:
    from carcass_engines.quotation import evaluate_quotation
    from carcass_engines.pricing import set_cut_price
    from carcass_engines.cost_allocation import add_costs_to_session
"""

from carcass_kernel.logging_config import get_logger

logger = get_logger("engines")

from carcass_engines.comparison import ComparisonRow, compare_quotations
from carcass_engines.cost_allocation import (
    CostAllocationEngine,
    CostAllocationResult,
    CostRowAllocation,
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
from carcass_engines.cost_insights import (
    CategoryUsage,
    ItemUsage,
    UsageTotals,
    daily_totals,
    filter_categories,
    overall_totals,
    summarize_by_category,
    summarize_by_item,
)
from carcass_engines.currency import VAT_DIVISOR, active_usd, to_usd
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
from carcass_engines.quotation import (
    EvaluationSettings,
    QuotationEvaluation,
    build_quotation_record,
    evaluate_quotation,
)
from carcass_engines.taxonomy import TaxonomyResolver, total_percentage
from carcass_engines.tracer import traced_engine
from carcass_engines.validation import (
    ValidationEngine,
    ValidationOutcome,
    has_cost_coverage,
    missing_price_cuts,
)
from carcass_engines.valuation import (
    CutValuation,
    ValuationEngine,
    ValuationResult,
    initial_valuation,
)
from carcass_engines.variance import (
    VarianceOutcome,
    VarianceReport,
    VarianceReporter,
)

__all__ = [
    # Comparison
    "ComparisonRow",
    "compare_quotations",
    # Cost allocation
    "CostAllocationEngine",
    "CostAllocationResult",
    "CostRowAllocation",
    "add_cost_selection",
    "add_costs_to_session",
    "assignable_cut_ids",
    "clear_cost_total_override",
    "cost_item_groups",
    "effective_price",
    "remove_cost_from_session",
    "remove_cost_row",
    "set_cost_row_currency",
    "set_cost_row_notes",
    "set_cost_row_price",
    "set_cost_total_override",
    "set_total_cost_mode",
    # Cost insights
    "CategoryUsage",
    "ItemUsage",
    "UsageTotals",
    "daily_totals",
    "filter_categories",
    "overall_totals",
    "summarize_by_category",
    "summarize_by_item",
    # Currency
    "VAT_DIVISOR",
    "active_usd",
    "to_usd",
    # Pricing
    "reset_session",
    "select_business",
    "set_cut_currency",
    "set_cut_notes",
    "set_cut_price",
    "set_exchange_rate",
    "set_usd_per_kg",
    "set_weight",
    # Quotation
    "EvaluationSettings",
    "QuotationEvaluation",
    "build_quotation_record",
    "evaluate_quotation",
    # Taxonomy
    "TaxonomyResolver",
    "total_percentage",
    # Tracer
    "traced_engine",
    # Validation
    "ValidationEngine",
    "ValidationOutcome",
    "has_cost_coverage",
    "missing_price_cuts",
    # Valuation
    "CutValuation",
    "ValuationEngine",
    "ValuationResult",
    "initial_valuation",
    # Variance
    "VarianceOutcome",
    "VarianceReport",
    "VarianceReporter",
]
