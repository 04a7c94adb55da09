"""
Module: carcass_kernel.models.quotation
Responsibility: ORM persistence for saved quotations: the header with the
    computed totals and differences, one line per displayed cut and one line
    per cost assignment.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Line items belong to exactly one quotation and are replaced as a
      whole on edit (delete-orphan cascade).
    - Each price line stores all three denomination slots plus the active
      currency, mirroring ``PriceSlots``.
    - ``position`` preserves display and row order.

Failure modes:
    - IntegrityError when a line references a cut or cost item that does
      not exist.
"""

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carcass_kernel.db.base import Base, TrackedBase, UUIDString

if TYPE_CHECKING:
    from carcass_kernel.models.business import BusinessModel


class QuotationModel(TrackedBase):
    """
    A saved half-carcass quotation.

    Guarantees:
        - Totals are stored rounded to 2 places.
        - dollar_rate is never NULL (the fallback rate applies on save).
    """

    __tablename__ = "quotations"

    __table_args__ = (
        Index("idx_quotation_business", "business_id"),
        Index("idx_quotation_created", "created_at"),
    )

    business_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=True,
    )

    media_res_weight: Mapped[Decimal] = mapped_column(nullable=False)
    usd_per_kg: Mapped[Decimal] = mapped_column(nullable=False)
    dollar_rate: Mapped[Decimal] = mapped_column(nullable=False)

    total_initial_usd: Mapped[Decimal] = mapped_column(nullable=False)
    total_cuts_usd: Mapped[Decimal] = mapped_column(nullable=False)
    total_costs_usd: Mapped[Decimal] = mapped_column(nullable=False)
    difference_usd: Mapped[Decimal] = mapped_column(nullable=False)
    difference_percentage: Mapped[Decimal] = mapped_column(nullable=False)
    difference_with_costs_usd: Mapped[Decimal] = mapped_column(nullable=False)
    difference_with_costs_percentage: Mapped[Decimal] = mapped_column(nullable=False)

    business: Mapped["BusinessModel | None"] = relationship(lazy="joined")

    cuts: Mapped[list["QuotationCutModel"]] = relationship(
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationCutModel.position",
        lazy="selectin",
    )

    cut_costs: Mapped[list["QuotationCutCostModel"]] = relationship(
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationCutCostModel.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<QuotationModel {self.id} diff={self.difference_usd}>"


class QuotationCutModel(Base):
    """Price of one displayed cut in a saved quotation."""

    __tablename__ = "quotation_cuts"

    __table_args__ = (Index("idx_quotation_cut_quotation", "quotation_id"),)

    quotation_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("quotations.id"),
        nullable=False,
    )

    cut_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("cuts.id"),
        nullable=False,
    )

    price_ars: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    price_ars_iva: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    price_usd: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Currency.value ("USD", "ARS", "ARS + IVA")
    currency: Mapped[str] = mapped_column(String(20), nullable=False)

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quotation: Mapped[QuotationModel] = relationship(back_populates="cuts")


class QuotationCutCostModel(Base):
    """A cost item assigned to a cut in a saved quotation."""

    __tablename__ = "quotation_cut_costs"

    __table_args__ = (
        Index("idx_quotation_cut_cost_quotation", "quotation_id"),
        Index("idx_quotation_cut_cost_item", "cost_item_id"),
    )

    quotation_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("quotations.id"),
        nullable=False,
    )

    cut_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("cuts.id"),
        nullable=False,
    )

    cost_item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("cost_items.id"),
        nullable=False,
    )

    price_ars: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    price_ars_iva: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    price_usd: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    currency: Mapped[str] = mapped_column(String(20), nullable=False)

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quotation: Mapped[QuotationModel] = relationship(back_populates="cut_costs")
