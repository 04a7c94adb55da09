"""
carcass_services.workbench -- Stateful quotation editing surface.

Responsibility:
    Hold one ``QuotationSession`` for a user, route every edit through the
    pure engine functions, re-evaluate on demand and push a finished
    quotation through the save gate into ``QuotationService``.  Also serves
    the history-side views (comparison, cost usage insights) that read
    stored quotations back through the engines.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    The only layer that combines engine evaluation with a database session.
    Receives its ``Session`` and ``EvaluationSettings`` by constructor
    injection; never reads configuration itself.

Invariants enforced:
    - Nothing is persisted while the save gate fails.
    - Saving a loaded quotation replaces it (same id); saving a new one
      creates it and the workbench remembers the new id.
    - The workbench flushes through the services and never commits.

Failure modes:
    - QuotationIncompleteError from ``save`` when prices or cost
      assignments are missing.
    - QuotationNotFoundError / BusinessNotFoundError from ``load`` and
      ``select_business``.
    - InvalidPriceError / CostRowNotFoundError from the edit functions.

Usage:
    from carcass_config import get_active_config
    from carcass_config.bridges import to_evaluation_settings
    from carcass_kernel.db import session_scope
    from carcass_services import QuotationWorkbench

    with session_scope() as db:
        bench = QuotationWorkbench.open(
            db,
            settings=to_evaluation_settings(get_active_config()),
            exchange_rate="1185.50",
        )
        bench.set_weight(100)
        bench.set_usd_per_kg(3)
        ...
        stored = bench.save()
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from carcass_engines import cost_allocation, pricing
from carcass_engines.comparison import ComparisonRow, compare_quotations
from carcass_engines.cost_insights import (
    CategoryUsage,
    ItemUsage,
    UsageTotals,
    daily_totals,
    overall_totals,
    summarize_by_category,
    summarize_by_item,
)
from carcass_engines.quotation import (
    EvaluationSettings,
    QuotationEvaluation,
    build_quotation_record,
    evaluate_quotation,
)
from carcass_kernel.domain.catalog import CostItem, CutCatalog
from carcass_kernel.domain.records import StoredQuotation
from carcass_kernel.domain.session import QuotationSession, new_session
from carcass_kernel.domain.values import Currency, PriceSlots
from carcass_kernel.exceptions import QuotationIncompleteError
from carcass_kernel.logging_config import LogContext, get_logger
from carcass_kernel.services.business_service import BusinessService
from carcass_kernel.services.catalog_service import CatalogService
from carcass_kernel.services.quotation_service import QuotationService

logger = get_logger("services.workbench")

Amount = Decimal | int | float | str


@dataclass(frozen=True)
class CostUsageReport:
    """Cost usage insights for one date window."""

    date_from: date
    date_to: date
    currency: Currency
    items: tuple[ItemUsage, ...]
    categories: tuple[CategoryUsage, ...]
    totals: UsageTotals
    daily: dict[date, PriceSlots]


class QuotationWorkbench:
    """
    One user's quotation editor.

    Contract:
        Every edit method replaces ``self.state`` with the session returned
        by the engines and returns it.  ``evaluate`` is side-effect free.
    Guarantees:
        - ``save`` runs the validation gate on a fresh evaluation.
        - ``state.quotation_id`` is set after the first successful save.
    Non-goals:
        - Does not fetch exchange rates; callers pass them in.
        - Does not commit; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        catalog: CutCatalog,
        settings: EvaluationSettings | None = None,
        exchange_rate: Amount | None = None,
        exchange_rate_updated_at: str | None = None,
        actor_id: UUID | None = None,
    ):
        self._settings = settings or EvaluationSettings()
        self._actor_id = actor_id
        self._catalog_service = CatalogService(session)
        self._businesses = BusinessService(session)
        self._quotations = QuotationService(session)
        self.state: QuotationSession = new_session(
            catalog, exchange_rate, exchange_rate_updated_at
        )

    @classmethod
    def open(
        cls,
        session: Session,
        settings: EvaluationSettings | None = None,
        exchange_rate: Amount | None = None,
        exchange_rate_updated_at: str | None = None,
        actor_id: UUID | None = None,
    ) -> QuotationWorkbench:
        """Workbench over the catalog currently stored in ``session``."""
        catalog = CatalogService(session).get_catalog()
        return cls(
            session,
            catalog,
            settings=settings,
            exchange_rate=exchange_rate,
            exchange_rate_updated_at=exchange_rate_updated_at,
            actor_id=actor_id,
        )

    @property
    def settings(self) -> EvaluationSettings:
        return self._settings

    @property
    def catalog(self) -> CutCatalog:
        return self.state.catalog

    def _apply(self, state: QuotationSession) -> QuotationSession:
        self.state = state
        return state

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def new(self) -> QuotationSession:
        """Start a fresh, unsaved quotation (keeps the exchange rate)."""
        return self._apply(replace(pricing.reset_session(self.state), quotation_id=None))

    def load(self, quotation_id: str) -> QuotationSession:
        """Continue editing a stored quotation."""
        state = self._quotations.load_session(quotation_id, self.catalog)
        logger.info("quotation_loaded", extra={"quotation_id": quotation_id})
        return self._apply(state)

    def select_business(self, business_id: str | None) -> QuotationSession:
        business = (
            self._businesses.get_business(business_id) if business_id is not None else None
        )
        return self._apply(pricing.select_business(self.state, business))

    # ------------------------------------------------------------------
    # Scalar inputs and cut pricing
    # ------------------------------------------------------------------

    def set_weight(self, total_weight: Amount) -> QuotationSession:
        return self._apply(pricing.set_weight(self.state, total_weight))

    def set_usd_per_kg(self, usd_per_kg: Amount) -> QuotationSession:
        return self._apply(pricing.set_usd_per_kg(self.state, usd_per_kg))

    def set_exchange_rate(
        self,
        exchange_rate: Amount | None,
        updated_at: str | None = None,
    ) -> QuotationSession:
        return self._apply(pricing.set_exchange_rate(self.state, exchange_rate, updated_at))

    def set_cut_price(
        self,
        cut_id: str,
        amount: Amount,
        currency: Currency | str | None = None,
    ) -> QuotationSession:
        return self._apply(pricing.set_cut_price(self.state, cut_id, amount, currency))

    def set_cut_currency(self, cut_id: str, currency: Currency | str) -> QuotationSession:
        return self._apply(pricing.set_cut_currency(self.state, cut_id, currency))

    def set_cut_notes(self, cut_id: str, notes: str) -> QuotationSession:
        return self._apply(
            pricing.set_cut_notes(
                self.state, cut_id, notes, max_length=self._settings.notes_max_length
            )
        )

    # ------------------------------------------------------------------
    # Costs
    # ------------------------------------------------------------------

    def cost_item_groups(self) -> dict[str, tuple[CostItem, ...]]:
        """Cost items for the picker, grouped by category."""
        return cost_allocation.cost_item_groups(
            self._catalog_service.list_cost_items(),
            default_category=self._settings.default_cost_category,
        )

    def assignable_cut_ids(self) -> tuple[str, ...]:
        evaluation = self.evaluate()
        return cost_allocation.assignable_cut_ids(
            evaluation.display_cut_ids, evaluation.exempt_cut_ids
        )

    def add_costs(
        self,
        cut_ids: Iterable[str],
        cost_item_ids: Iterable[str],
    ) -> QuotationSession:
        return self._apply(
            cost_allocation.add_costs_to_session(self.state, cut_ids, cost_item_ids)
        )

    def remove_cost(self, cut_id: str, cost_item_id: str) -> QuotationSession:
        return self._apply(
            cost_allocation.remove_cost_from_session(self.state, cut_id, cost_item_id)
        )

    def set_cost_price(self, cut_id: str, cost_item_id: str, amount: Amount) -> QuotationSession:
        return self._apply(
            cost_allocation.set_cost_row_price(self.state, cut_id, cost_item_id, amount)
        )

    def set_cost_currency(
        self,
        cut_id: str,
        cost_item_id: str,
        currency: Currency | str,
    ) -> QuotationSession:
        return self._apply(
            cost_allocation.set_cost_row_currency(self.state, cut_id, cost_item_id, currency)
        )

    def set_cost_notes(self, cut_id: str, cost_item_id: str, notes: str) -> QuotationSession:
        return self._apply(
            cost_allocation.set_cost_row_notes(
                self.state,
                cut_id,
                cost_item_id,
                notes,
                max_length=self._settings.notes_max_length,
            )
        )

    def set_cost_total(
        self,
        cost_item_id: str,
        value: Amount,
        currency: Currency | str = Currency.USD,
    ) -> QuotationSession:
        return self._apply(
            cost_allocation.set_cost_total_override(self.state, cost_item_id, value, currency)
        )

    def clear_cost_total(self, cost_item_id: str) -> QuotationSession:
        return self._apply(cost_allocation.clear_cost_total_override(self.state, cost_item_id))

    def set_total_cost_mode(self, enabled: bool) -> QuotationSession:
        return self._apply(cost_allocation.set_total_cost_mode(self.state, enabled))

    # ------------------------------------------------------------------
    # Evaluation and persistence
    # ------------------------------------------------------------------

    def evaluate(self) -> QuotationEvaluation:
        return evaluate_quotation(self.state, self._settings)

    def save(self) -> StoredQuotation:
        """
        Persist the current session.

        Raises:
            QuotationIncompleteError: If the save gate fails; nothing is
                written.
        """
        state = self.state
        with LogContext.bind(
            quotation_id=state.quotation_id,
            business_id=state.business.id if state.business else None,
            actor_id=str(self._actor_id) if self._actor_id else None,
        ):
            evaluation = self.evaluate()
            outcome = evaluation.validation
            if not outcome.can_save:
                logger.warning(
                    "quotation_save_blocked",
                    extra={
                        "missing_price_cut_names": list(outcome.missing_price_cut_names),
                        "missing_costs": outcome.missing_costs,
                    },
                )
                raise QuotationIncompleteError(
                    list(outcome.missing_price_cut_names),
                    outcome.missing_costs,
                )

            record = build_quotation_record(
                state, evaluation, self._settings.fallback_exchange_rate
            )
            if state.quotation_id is None:
                stored = self._quotations.create_quotation(record, actor_id=self._actor_id)
            else:
                stored = self._quotations.replace_quotation(state.quotation_id, record)

        self._apply(replace(state, quotation_id=stored.id))
        return stored

    def delete(self, quotation_id: str) -> None:
        """Delete a stored quotation; the open session starts over if it was that one."""
        self._quotations.delete_quotation(quotation_id)
        if self.state.quotation_id == quotation_id:
            self.new()

    # ------------------------------------------------------------------
    # History views
    # ------------------------------------------------------------------

    def history(
        self,
        newest_first: bool = True,
        limit: int | None = None,
        offset: int = 0,
        business_name: str | None = None,
    ) -> tuple[StoredQuotation, ...]:
        return self._quotations.list_quotations(
            newest_first=newest_first,
            limit=limit,
            offset=offset,
            business_name=business_name,
        )

    def compare(
        self,
        quotation_ids: Iterable[str],
        newest_first: bool = True,
    ) -> tuple[ComparisonRow, ...]:
        """Comparison rows for 2-5 stored quotations, in history order."""
        return compare_quotations(self.history(newest_first=newest_first), quotation_ids)

    def cost_usage(
        self,
        date_from: date,
        date_to: date,
        currency: Currency | str = Currency.USD,
    ) -> CostUsageReport:
        """
        Raises:
            ValueError: If ``date_to`` precedes ``date_from``.
        """
        if date_to < date_from:
            raise ValueError(f"Empty window: {date_from} > {date_to}")
        target = Currency.parse(currency)
        rows = self._quotations.cost_usage_rows(date_from, date_to)
        items = self._catalog_service.list_cost_items()
        return CostUsageReport(
            date_from=date_from,
            date_to=date_to,
            currency=target,
            items=summarize_by_item(rows, items),
            categories=summarize_by_category(rows, items, target, date_from, date_to),
            totals=overall_totals(rows),
            daily=daily_totals(rows, date_from, date_to),
        )
