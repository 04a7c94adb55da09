"""
Service layer for the reference catalogs.

Serves the cut catalog and the cost item list to quotation sessions, and
seeds both for a fresh installation.

Returns domain records (``CutCatalog``, ``CostItem``) instead of ORM
entities.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import select

from carcass_kernel.domain.catalog import CostItem, Cut, CutCatalog
from carcass_kernel.domain.values import to_decimal
from carcass_kernel.exceptions import CostItemNotFoundError, CutNotFoundError
from carcass_kernel.logging_config import get_logger
from carcass_kernel.models.catalog import CostItemModel, CutModel
from carcass_kernel.services.base import BaseService, parse_id

logger = get_logger("services.catalog")


class CatalogService(BaseService[CutModel]):
    """
    Read access to cuts and cost items, plus idempotent seeding.

    The catalog is read-only from the quotation engine's point of view;
    it is fetched once per session.
    """

    @staticmethod
    def _cut_to_domain(model: CutModel) -> Cut:
        return Cut(
            id=str(model.id),
            name=model.name,
            percentage=model.percentage,
            macro=model.macro,
            is_fixed_cost=model.is_fixed_cost,
        )

    @staticmethod
    def _cost_item_to_domain(model: CostItemModel) -> CostItem:
        return CostItem(
            id=str(model.id),
            name=model.name,
            category=model.category,
            description=model.description,
        )

    def get_catalog(self) -> CutCatalog:
        """Every cut, in catalog order."""
        stmt = select(CutModel).order_by(CutModel.position, CutModel.name)
        models = self.session.execute(stmt).scalars().all()
        return CutCatalog(self._cut_to_domain(m) for m in models)

    def get_cut(self, cut_id: str) -> Cut:
        """
        Raises:
            CutNotFoundError: If the cut doesn't exist.
        """
        model = self.session.get(CutModel, parse_id(cut_id, CutNotFoundError))
        if model is None:
            raise CutNotFoundError(cut_id)
        return self._cut_to_domain(model)

    def list_cost_items(self) -> tuple[CostItem, ...]:
        """Cost items ordered by category (uncategorized last), then name."""
        stmt = select(CostItemModel).order_by(
            CostItemModel.category.is_(None),
            CostItemModel.category,
            CostItemModel.name,
        )
        models = self.session.execute(stmt).scalars().all()
        return tuple(self._cost_item_to_domain(m) for m in models)

    def get_cost_item(self, cost_item_id: str) -> CostItem:
        """
        Raises:
            CostItemNotFoundError: If the cost item doesn't exist.
        """
        model = self.session.get(
            CostItemModel, parse_id(cost_item_id, CostItemNotFoundError)
        )
        if model is None:
            raise CostItemNotFoundError(cost_item_id)
        return self._cost_item_to_domain(model)

    def seed_cuts(self, cuts: Iterable[Mapping[str, Any]]) -> CutCatalog:
        """
        Insert the cuts that do not exist yet (matched by name).

        Each mapping needs ``name`` and ``percentage`` and may carry
        ``macro`` and ``is_fixed_cost``.  Supplied order becomes catalog
        order, after any cuts already stored.

        Returns:
            The full catalog after seeding.
        """
        existing = {
            name: position
            for name, position in self.session.execute(
                select(CutModel.name, CutModel.position)
            )
        }
        position = max(existing.values(), default=-1) + 1
        added = 0
        for data in cuts:
            if data["name"] in existing:
                continue
            self.session.add(
                CutModel(
                    name=data["name"],
                    percentage=to_decimal(data["percentage"], "percentage"),
                    macro=data.get("macro"),
                    is_fixed_cost=bool(data.get("is_fixed_cost", False)),
                    position=position,
                )
            )
            existing[data["name"]] = position
            position += 1
            added += 1
        self.session.flush()
        logger.info("cuts_seeded", extra={"added_count": added})
        return self.get_catalog()

    def seed_cost_items(self, items: Iterable[Mapping[str, Any]]) -> tuple[CostItem, ...]:
        """Insert the cost items that do not exist yet (matched by name)."""
        existing = set(self.session.execute(select(CostItemModel.name)).scalars())
        added = 0
        for data in items:
            if data["name"] in existing:
                continue
            self.session.add(
                CostItemModel(
                    name=data["name"],
                    category=data.get("category"),
                    description=data.get("description"),
                )
            )
            existing.add(data["name"])
            added += 1
        self.session.flush()
        logger.info("cost_items_seeded", extra={"added_count": added})
        return self.list_cost_items()
