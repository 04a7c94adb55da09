"""
Module: carcass_kernel.models.business
Responsibility: ORM persistence for business pricing profiles and the set of
    cuts each business prices individually.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A (business, cut) pair appears at most once (uq_business_cut).
    - The cut set is owned by the business: replacing it deletes the old
      rows (delete-orphan cascade).
    - Deleting a business referenced by a quotation is refused by
      ``BusinessService.delete_business`` before the database is touched;
      the foreign key on quotations backs this up.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carcass_kernel.db.base import Base, TrackedBase, UUIDString


class BusinessModel(TrackedBase):
    """A customer profile: which macros it buys broken down into sub-cuts."""

    __tablename__ = "businesses"

    __table_args__ = (Index("idx_business_name", "name"),)

    name: Mapped[str] = mapped_column(String(150), nullable=False)

    business_cuts: Mapped[list["BusinessCutModel"]] = relationship(
        back_populates="business",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def cut_ids(self) -> frozenset[UUID]:
        return frozenset(bc.cut_id for bc in self.business_cuts)

    def __repr__(self) -> str:
        return f"<BusinessModel {self.name}>"


class BusinessCutModel(Base):
    """Membership of one cut in a business's selection."""

    __tablename__ = "business_cuts"

    __table_args__ = (
        UniqueConstraint("business_id", "cut_id", name="uq_business_cut"),
    )

    business_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=False,
    )

    cut_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("cuts.id"),
        nullable=False,
    )

    business: Mapped[BusinessModel] = relationship(back_populates="business_cuts")
