"""
QuotationService -- persistence sink for evaluated quotations.

Responsibility:
    Store a frozen ``QuotationRecord`` (header + cut lines + cost lines),
    replace one on edit, read quotations back, and rebuild an editing
    session from a stored quotation.  Also serves the persisted cost lines
    used by the cost usage insights.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes records built by
    ``carcass_engines.quotation.build_quotation_record``; never computes
    totals itself.

Invariants enforced:
    - Edits are full replacements: every existing line item is deleted
      (and flushed) before the new ones are inserted.
    - Line order is preserved through ``position``.
    - The service flushes and never commits.

Failure modes:
    - QuotationNotFoundError for unknown quotation ids.
    - BusinessNotFoundError when the record names an unknown business.
    - IntegrityError (propagated) for lines naming unknown cuts or cost
      items.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from uuid import UUID

from sqlalchemy import select

from carcass_kernel.domain.catalog import Business, CutCatalog
from carcass_kernel.domain.records import (
    CostUsageRow,
    QuotationCutCostRecord,
    QuotationCutRecord,
    QuotationRecord,
    StoredQuotation,
)
from carcass_kernel.domain.session import (
    CostRow,
    CutPricingState,
    QuotationSession,
    initial_cut_states,
)
from carcass_kernel.domain.values import Currency, PriceSlots
from carcass_kernel.exceptions import BusinessNotFoundError, QuotationNotFoundError
from carcass_kernel.logging_config import LogContext, get_logger
from carcass_kernel.models.business import BusinessModel
from carcass_kernel.models.quotation import (
    QuotationCutCostModel,
    QuotationCutModel,
    QuotationModel,
)
from carcass_kernel.services.base import BaseService, parse_id

logger = get_logger("services.quotation")


def _prices(model: QuotationCutModel | QuotationCutCostModel) -> PriceSlots:
    return PriceSlots(
        ars=model.price_ars,
        ars_with_vat=model.price_ars_iva,
        usd=model.price_usd,
    )


class QuotationService(BaseService[QuotationModel]):
    """
    Store and load quotations.

    Contract:
        All public methods return frozen domain records.
    """

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def _to_record(self, model: QuotationModel) -> QuotationRecord:
        return QuotationRecord(
            business_id=str(model.business_id) if model.business_id else None,
            media_res_weight=model.media_res_weight,
            usd_per_kg=model.usd_per_kg,
            dollar_rate=model.dollar_rate,
            total_initial_usd=model.total_initial_usd,
            total_cuts_usd=model.total_cuts_usd,
            total_costs_usd=model.total_costs_usd,
            difference_usd=model.difference_usd,
            difference_percentage=model.difference_percentage,
            difference_with_costs_usd=model.difference_with_costs_usd,
            difference_with_costs_percentage=model.difference_with_costs_percentage,
            cuts=tuple(
                QuotationCutRecord(
                    cut_id=str(line.cut_id),
                    prices=_prices(line),
                    currency=Currency.parse(line.currency),
                    notes=line.notes or "",
                )
                for line in model.cuts
            ),
            cut_costs=tuple(
                QuotationCutCostRecord(
                    cut_id=str(line.cut_id),
                    cost_item_id=str(line.cost_item_id),
                    prices=_prices(line),
                    currency=Currency.parse(line.currency),
                    notes=line.notes or "",
                )
                for line in model.cut_costs
            ),
        )

    def _to_stored(self, model: QuotationModel) -> StoredQuotation:
        return StoredQuotation(
            id=str(model.id),
            created_at=model.created_at,
            record=self._to_record(model),
            business_name=model.business.name if model.business else None,
        )

    def _get_model(self, quotation_id: str) -> QuotationModel:
        model = self.session.get(
            QuotationModel, parse_id(quotation_id, QuotationNotFoundError)
        )
        if model is None:
            raise QuotationNotFoundError(quotation_id)
        return model

    def _business_uuid(self, business_id: str | None) -> UUID | None:
        if business_id is None:
            return None
        uuid = parse_id(business_id, BusinessNotFoundError)
        if self.session.get(BusinessModel, uuid) is None:
            raise BusinessNotFoundError(business_id)
        return uuid

    @staticmethod
    def _apply_header(model: QuotationModel, record: QuotationRecord) -> None:
        model.media_res_weight = record.media_res_weight
        model.usd_per_kg = record.usd_per_kg
        model.dollar_rate = record.dollar_rate
        model.total_initial_usd = record.total_initial_usd
        model.total_cuts_usd = record.total_cuts_usd
        model.total_costs_usd = record.total_costs_usd
        model.difference_usd = record.difference_usd
        model.difference_percentage = record.difference_percentage
        model.difference_with_costs_usd = record.difference_with_costs_usd
        model.difference_with_costs_percentage = record.difference_with_costs_percentage

    @staticmethod
    def _build_lines(
        record: QuotationRecord,
    ) -> tuple[list[QuotationCutModel], list[QuotationCutCostModel]]:
        cuts = [
            QuotationCutModel(
                cut_id=UUID(line.cut_id),
                price_ars=line.prices.ars,
                price_ars_iva=line.prices.ars_with_vat,
                price_usd=line.prices.usd,
                currency=line.currency.value,
                notes=line.notes,
                position=i,
            )
            for i, line in enumerate(record.cuts)
        ]
        costs = [
            QuotationCutCostModel(
                cut_id=UUID(line.cut_id),
                cost_item_id=UUID(line.cost_item_id),
                price_ars=line.prices.ars,
                price_ars_iva=line.prices.ars_with_vat,
                price_usd=line.prices.usd,
                currency=line.currency.value,
                notes=line.notes,
                position=i,
            )
            for i, line in enumerate(record.cut_costs)
        ]
        return cuts, costs

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_quotation(
        self,
        record: QuotationRecord,
        actor_id: UUID | None = None,
    ) -> StoredQuotation:
        """
        Insert a quotation and all its line items.

        Raises:
            BusinessNotFoundError: If ``record.business_id`` is unknown.
        """
        model = QuotationModel(
            business_id=self._business_uuid(record.business_id),
            created_by_id=actor_id,
        )
        self._apply_header(model, record)
        model.cuts, model.cut_costs = self._build_lines(record)
        self.session.add(model)
        self.session.flush()
        self.session.refresh(model)

        with LogContext.bind(quotation_id=str(model.id), business_id=record.business_id):
            logger.info(
                "quotation_created",
                extra={
                    "cut_line_count": len(record.cuts),
                    "cost_line_count": len(record.cut_costs),
                    "difference_usd": str(record.difference_usd),
                },
            )
        return self._to_stored(model)

    def replace_quotation(self, quotation_id: str, record: QuotationRecord) -> StoredQuotation:
        """
        Update the header and replace every line item.

        Raises:
            QuotationNotFoundError: If the quotation doesn't exist.
            BusinessNotFoundError: If ``record.business_id`` is unknown.
        """
        model = self._get_model(quotation_id)
        model.business_id = self._business_uuid(record.business_id)
        self._apply_header(model, record)

        # Delete all, then insert
        model.cuts.clear()
        model.cut_costs.clear()
        self.session.flush()
        model.cuts, model.cut_costs = self._build_lines(record)
        self.session.flush()
        self.session.refresh(model)

        with LogContext.bind(quotation_id=quotation_id, business_id=record.business_id):
            logger.info(
                "quotation_replaced",
                extra={
                    "cut_line_count": len(record.cuts),
                    "cost_line_count": len(record.cut_costs),
                },
            )
        return self._to_stored(model)

    def delete_quotation(self, quotation_id: str) -> None:
        """
        Raises:
            QuotationNotFoundError: If the quotation doesn't exist.
        """
        model = self._get_model(quotation_id)
        self.session.delete(model)
        self.session.flush()
        logger.info("quotation_deleted", extra={"quotation_id": quotation_id})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_quotation(self, quotation_id: str) -> StoredQuotation:
        """
        Raises:
            QuotationNotFoundError: If the quotation doesn't exist.
        """
        return self._to_stored(self._get_model(quotation_id))

    def list_quotations(
        self,
        newest_first: bool = True,
        limit: int | None = None,
        offset: int = 0,
        business_name: str | None = None,
    ) -> tuple[StoredQuotation, ...]:
        """
        Stored quotations ordered by creation time.

        Args:
            newest_first: Descending creation order when True.
            limit: Page size; ``None`` returns everything after ``offset``.
            offset: Rows to skip.
            business_name: Case-insensitive substring filter on the
                business name.
        """
        # id breaks ties between quotations saved within the same second
        if newest_first:
            order = (QuotationModel.created_at.desc(), QuotationModel.id.desc())
        else:
            order = (QuotationModel.created_at.asc(), QuotationModel.id.asc())
        stmt = select(QuotationModel).order_by(*order)
        if business_name:
            stmt = stmt.join(BusinessModel, QuotationModel.business_id == BusinessModel.id).where(
                BusinessModel.name.ilike(f"%{business_name}%")
            )
        stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        models = self.session.execute(stmt).unique().scalars().all()
        return tuple(self._to_stored(m) for m in models)

    def cost_usage_rows(self, date_from: date, date_to: date) -> tuple[CostUsageRow, ...]:
        """Cost lines of quotations created between both dates (inclusive)."""
        start = datetime.combine(date_from, time.min)
        end = datetime.combine(date_to + timedelta(days=1), time.min)
        stmt = (
            select(QuotationCutCostModel, QuotationModel.created_at)
            .join(QuotationModel, QuotationCutCostModel.quotation_id == QuotationModel.id)
            .where(QuotationModel.created_at >= start, QuotationModel.created_at < end)
            .order_by(
                QuotationModel.created_at,
                QuotationModel.id,
                QuotationCutCostModel.position,
            )
        )
        return tuple(
            CostUsageRow(
                cost_item_id=str(line.cost_item_id),
                currency=Currency.parse(line.currency),
                prices=_prices(line),
                quotation_id=str(line.quotation_id),
                quotation_date=created_at.date(),
            )
            for line, created_at in self.session.execute(stmt).all()
        )

    def load_session(self, quotation_id: str, catalog: CutCatalog) -> QuotationSession:
        """
        Rebuild an editing session from a stored quotation.

        Stored cut lines overlay the initial cut states; cuts that are not
        in the catalog any more are skipped.  Cost lines come back as plain
        rows carrying the prices that were saved, so total-cost mode starts
        off.

        Raises:
            QuotationNotFoundError: If the quotation doesn't exist.
        """
        model = self._get_model(quotation_id)
        record = self._to_record(model)

        business = None
        if model.business is not None:
            business = Business(
                id=str(model.business.id),
                name=model.business.name,
                cut_ids=frozenset(str(c) for c in model.business.cut_ids),
            )

        states = {s.cut_id: s for s in initial_cut_states(catalog)}
        skipped = 0
        for line in record.cuts:
            if line.cut_id not in states:
                skipped += 1
                continue
            states[line.cut_id] = CutPricingState(
                cut_id=line.cut_id,
                prices=line.prices,
                currency=line.currency,
                notes=line.notes,
            )
        cost_rows = []
        for line in record.cut_costs:
            if line.cut_id not in states:
                skipped += 1
                continue
            cost_rows.append(
                CostRow(
                    cut_id=line.cut_id,
                    cost_item_id=line.cost_item_id,
                    currency=line.currency,
                    prices=line.prices,
                    notes=line.notes,
                )
            )
        if skipped:
            logger.warning(
                "stale_lines_skipped",
                extra={"quotation_id": quotation_id, "skipped_count": skipped},
            )

        return QuotationSession(
            catalog=catalog,
            cut_states=tuple(states[c.id] for c in catalog),
            business=business,
            total_weight=record.media_res_weight,
            usd_per_kg=record.usd_per_kg,
            exchange_rate=record.dollar_rate,
            cost_rows=tuple(cost_rows),
            quotation_id=str(model.id),
        )
