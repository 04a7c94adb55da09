"""
carcass_engines.quotation -- One-shot evaluation of a quotation session.

Responsibility:
    Run display resolution, valuation, cost allocation, validation and
    variance over a ``QuotationSession`` and bundle the results; freeze an
    evaluated session into the ``QuotationRecord`` handed to persistence.

Architecture position:
    Engines -- pure orchestration over sibling engines, zero I/O.
    Settings arrive as an ``EvaluationSettings`` value; the engines never
    read configuration themselves (``carcass_config.bridges`` builds it).

Invariants enforced:
    - Idempotent: evaluating an unchanged session twice yields equal
      results (no counters, no caches).
    - Every stage reads the same display resolution.
    - Stored totals are rounded to 2 places; evaluation values are not.
    - In total-cost mode the persisted cost lines carry the effective
      (split) price in the override's currency.

Failure modes:
    - None during evaluation.  ``build_quotation_record`` does not check
      the save gate; callers decide (see ``QuotationWorkbench.save``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from carcass_engines.cost_allocation import (
    DEFAULT_COST_CATEGORY,
    CostAllocationEngine,
    CostAllocationResult,
    known_cost_rows,
)
from carcass_engines.currency import VAT_DIVISOR
from carcass_engines.pricing import DEFAULT_NOTES_MAX_LENGTH
from carcass_engines.taxonomy import TaxonomyResolver
from carcass_engines.validation import ValidationEngine, ValidationOutcome
from carcass_engines.valuation import ValuationEngine, ValuationResult
from carcass_engines.variance import VarianceReport, VarianceReporter
from carcass_kernel.domain.records import (
    QuotationCutCostRecord,
    QuotationCutRecord,
    QuotationRecord,
)
from carcass_kernel.domain.session import QuotationSession
from carcass_kernel.domain.values import PriceSlots, round2
from carcass_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.quotation")

DEFAULT_MACRO_NAMES = ("Ral", "Rueda", "Parrillero", "Delantero")
DEFAULT_UTILITY_CUT_NAME = "Frío"
DEFAULT_FALLBACK_EXCHANGE_RATE = Decimal("1200.5")


@dataclass(frozen=True)
class EvaluationSettings:
    """Engine parameters for one evaluation."""

    macro_names: tuple[str, ...] = DEFAULT_MACRO_NAMES
    utility_cut_name: str | None = DEFAULT_UTILITY_CUT_NAME
    exempt_cut_names: frozenset[str] = field(default_factory=frozenset)
    vat_divisor: Decimal = VAT_DIVISOR
    fallback_exchange_rate: Decimal = DEFAULT_FALLBACK_EXCHANGE_RATE
    notes_max_length: int = DEFAULT_NOTES_MAX_LENGTH
    default_cost_category: str = DEFAULT_COST_CATEGORY


@dataclass(frozen=True)
class QuotationEvaluation:
    """Everything a caller renders for the current session."""

    display_cut_ids: tuple[str, ...]
    exempt_cut_ids: frozenset[str]
    valuation: ValuationResult
    costs: CostAllocationResult
    validation: ValidationOutcome
    variance: VarianceReport

    @property
    def can_save(self) -> bool:
        return self.validation.can_save


def evaluate_quotation(
    session: QuotationSession,
    settings: EvaluationSettings | None = None,
) -> QuotationEvaluation:
    """Recompute every derived value of ``session``."""
    settings = settings or EvaluationSettings()
    catalog = session.catalog
    business_cut_ids = session.business.cut_ids if session.business else None

    with LogContext.bind(
        quotation_id=session.quotation_id,
        business_id=session.business.id if session.business else None,
    ):
        display_ids = TaxonomyResolver().resolve_display_cuts(
            catalog=catalog,
            macro_names=settings.macro_names,
            business_cut_ids=business_cut_ids,
            utility_cut_name=settings.utility_cut_name,
        )
        exempt_ids = catalog.ids_for_names(settings.exempt_cut_names)
        states = session.states_by_id

        valuation = ValuationEngine().value_cuts(
            catalog=catalog,
            display_cut_ids=display_ids,
            cut_states=states,
            total_weight=session.total_weight,
            usd_per_kg=session.usd_per_kg,
            exchange_rate=session.exchange_rate,
            vat_divisor=settings.vat_divisor,
        )
        costs = CostAllocationEngine().allocate(
            catalog=catalog,
            cost_rows=session.cost_rows,
            cost_overrides=session.cost_overrides,
            use_total_cost_mode=session.use_total_cost_mode,
            exchange_rate=session.exchange_rate,
            vat_divisor=settings.vat_divisor,
        )
        validation = ValidationEngine().validate(
            catalog=catalog,
            display_cut_ids=display_ids,
            cut_states=states,
            cost_rows=session.cost_rows,
            exempt_cut_ids=exempt_ids,
        )
        variance = VarianceReporter().report(
            total_initial_usd=valuation.total_initial_usd,
            total_cuts_usd=valuation.total_cuts_usd,
            total_costs_usd=costs.total_costs_usd,
        )

    return QuotationEvaluation(
        display_cut_ids=display_ids,
        exempt_cut_ids=exempt_ids,
        valuation=valuation,
        costs=costs,
        validation=validation,
        variance=variance,
    )


def build_quotation_record(
    session: QuotationSession,
    evaluation: QuotationEvaluation,
    fallback_exchange_rate: Decimal = DEFAULT_FALLBACK_EXCHANGE_RATE,
) -> QuotationRecord:
    """
    Freeze the session and its evaluation into a persistence payload.

    One cut line per displayed cut (catalog-order of the display
    resolution) and one cost line per cost row whose cut is still in the
    catalog (row order).
    """
    states = session.states_by_id
    cut_lines = []
    for cut_id in evaluation.display_cut_ids:
        state = states.get(cut_id)
        if state is None:
            continue
        cut_lines.append(
            QuotationCutRecord(
                cut_id=cut_id,
                prices=state.prices,
                currency=state.currency,
                notes=state.notes,
            )
        )

    cost_lines = []
    for row in known_cost_rows(session.cost_rows, session.catalog):
        prices, currency = row.prices, row.currency
        allocation = evaluation.costs.line_for(row.cut_id, row.cost_item_id)
        if allocation is not None and allocation.from_override:
            currency = allocation.effective_currency
            prices = PriceSlots.only(currency, allocation.effective_price)
        cost_lines.append(
            QuotationCutCostRecord(
                cut_id=row.cut_id,
                cost_item_id=row.cost_item_id,
                prices=prices,
                currency=currency,
                notes=row.notes,
            )
        )

    rate = session.exchange_rate
    if not rate:
        logger.info(
            "fallback_exchange_rate_used",
            extra={"dollar_rate": str(fallback_exchange_rate)},
        )
        rate = fallback_exchange_rate

    variance = evaluation.variance
    return QuotationRecord(
        business_id=session.business.id if session.business else None,
        media_res_weight=session.total_weight,
        usd_per_kg=session.usd_per_kg,
        dollar_rate=rate,
        total_initial_usd=round2(variance.total_initial_usd),
        total_cuts_usd=round2(variance.total_cuts_usd),
        total_costs_usd=round2(variance.total_costs_usd),
        difference_usd=round2(variance.difference_usd),
        difference_percentage=variance.difference_percentage,
        difference_with_costs_usd=round2(variance.difference_with_costs_usd),
        difference_with_costs_percentage=variance.difference_with_costs_percentage,
        cuts=tuple(cut_lines),
        cut_costs=tuple(cost_lines),
    )
