"""
Service layer for business pricing profiles.

A business is a named selection of cut ids: for every macro-cut, selecting
any of its sub-cuts makes quotations for that business price the macro
broken down into sub-cuts.

Returns ``Business`` domain records instead of ORM entities.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, select

from carcass_kernel.domain.catalog import Business
from carcass_kernel.exceptions import (
    BusinessNotFoundError,
    BusinessReferencedError,
    CutNotFoundError,
    InvalidBusinessNameError,
)
from carcass_kernel.logging_config import get_logger
from carcass_kernel.models.business import BusinessCutModel, BusinessModel
from carcass_kernel.models.catalog import CutModel
from carcass_kernel.models.quotation import QuotationModel
from carcass_kernel.services.base import BaseService, parse_id

logger = get_logger("services.business")


class BusinessService(BaseService[BusinessModel]):
    """
    CRUD over businesses and their cut selections.

    Guarantees:
        - Names are stripped and never blank.
        - Updates replace the whole cut selection.
        - A business referenced by any quotation is never deleted.
    """

    def _to_domain(self, model: BusinessModel) -> Business:
        return Business(
            id=str(model.id),
            name=model.name,
            cut_ids=frozenset(str(c) for c in model.cut_ids),
        )

    def _get_model(self, business_id: str) -> BusinessModel:
        model = self.session.get(
            BusinessModel, parse_id(business_id, BusinessNotFoundError)
        )
        if model is None:
            raise BusinessNotFoundError(business_id)
        return model

    @staticmethod
    def _clean_name(name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidBusinessNameError(name)
        return cleaned

    def _resolve_cut_ids(self, cut_ids: Iterable[str]) -> list[UUID]:
        """Parse and check every id; unknown cuts raise CutNotFoundError."""
        wanted = {parse_id(c, CutNotFoundError): str(c) for c in cut_ids}
        if not wanted:
            return []
        found = set(
            self.session.execute(
                select(CutModel.id).where(CutModel.id.in_(list(wanted)))
            ).scalars()
        )
        for uuid, raw in wanted.items():
            if uuid not in found:
                raise CutNotFoundError(raw)
        return sorted(wanted, key=str)

    def create_business(
        self,
        name: str,
        cut_ids: Iterable[str] = (),
        actor_id: UUID | None = None,
    ) -> Business:
        """
        Raises:
            InvalidBusinessNameError: If ``name`` is blank.
            CutNotFoundError: If a selected cut doesn't exist.
        """
        model = BusinessModel(name=self._clean_name(name), created_by_id=actor_id)
        model.business_cuts = [
            BusinessCutModel(cut_id=c) for c in self._resolve_cut_ids(cut_ids)
        ]
        self.session.add(model)
        self.session.flush()
        logger.info(
            "business_created",
            extra={"business_id": str(model.id), "cut_count": len(model.business_cuts)},
        )
        return self._to_domain(model)

    def update_business(
        self,
        business_id: str,
        name: str,
        cut_ids: Iterable[str],
    ) -> Business:
        """
        Rename the business and replace its cut selection.

        Raises:
            BusinessNotFoundError: If the business doesn't exist.
            InvalidBusinessNameError: If ``name`` is blank.
            CutNotFoundError: If a selected cut doesn't exist.
        """
        model = self._get_model(business_id)
        cleaned = self._clean_name(name)
        resolved = self._resolve_cut_ids(cut_ids)

        model.name = cleaned
        model.business_cuts.clear()
        # Flush the deletes before re-inserting the same pairs
        self.session.flush()
        model.business_cuts.extend(BusinessCutModel(cut_id=c) for c in resolved)
        self.session.flush()
        logger.info(
            "business_updated",
            extra={"business_id": business_id, "cut_count": len(resolved)},
        )
        return self._to_domain(model)

    def get_business(self, business_id: str) -> Business:
        """
        Raises:
            BusinessNotFoundError: If the business doesn't exist.
        """
        return self._to_domain(self._get_model(business_id))

    def list_businesses(self) -> tuple[Business, ...]:
        stmt = select(BusinessModel).order_by(BusinessModel.name)
        return tuple(
            self._to_domain(m) for m in self.session.execute(stmt).scalars().all()
        )

    def quotation_count(self, business_id: str) -> int:
        stmt = select(func.count(QuotationModel.id)).where(
            QuotationModel.business_id == parse_id(business_id, BusinessNotFoundError)
        )
        return self.session.execute(stmt).scalar_one()

    def delete_business(self, business_id: str) -> None:
        """
        Delete a business that no quotation references.

        Raises:
            BusinessNotFoundError: If the business doesn't exist.
            BusinessReferencedError: If quotations reference it; nothing is
                changed.
        """
        model = self._get_model(business_id)
        count = self.quotation_count(business_id)
        if count:
            logger.warning(
                "business_delete_refused",
                extra={"business_id": business_id, "quotation_count": count},
            )
            raise BusinessReferencedError(business_id, count)
        self.session.delete(model)
        self.session.flush()
        logger.info("business_deleted", extra={"business_id": business_id})
