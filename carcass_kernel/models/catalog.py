"""
Module: carcass_kernel.models.catalog
Responsibility: ORM persistence for the reference catalogs: the cuts of a
    half carcass (with their macro/sub-cut relationship) and the cost items
    that can be attached to them.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, domain/, or outer layers.

Invariants enforced:
    - Cut names are unique (uq_cut_name); the macro relationship is stored
      by the parent's name, as the catalog provider delivers it.
    - ``position`` preserves catalog order across loads.

Failure modes:
    - IntegrityError on duplicate cut name.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from carcass_kernel.db.base import Base


class CutModel(Base):
    """
    One cut of the half carcass.

    Guarantees:
        - percentage is the share of total carcass weight (0-100).
        - macro is NULL for macro-cuts and cuts outside every macro.
    """

    __tablename__ = "cuts"

    __table_args__ = (
        UniqueConstraint("name", name="uq_cut_name"),
        Index("idx_cut_macro", "macro"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    percentage: Mapped[Decimal] = mapped_column(nullable=False)

    # Parent macro-cut name
    macro: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Priced elsewhere, never manually
    is_fixed_cost: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CutModel {self.name} ({self.percentage}%)>"


class CostItemModel(Base):
    """A named operational cost (labor, freezing, freight...)."""

    __tablename__ = "cost_items"

    __table_args__ = (
        UniqueConstraint("name", name="uq_cost_item_name"),
        Index("idx_cost_item_category", "category"),
    )

    name: Mapped[str] = mapped_column(String(150), nullable=False)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<CostItemModel {self.name}>"
