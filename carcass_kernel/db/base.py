"""
Module: carcass_kernel.db.base
Responsibility: Declarative bases shared by the quotation store tables:
    string-stored UUID keys, the column type map for money and weights,
    and the audit columns of user-created rows (businesses, quotations).
Architecture position: Kernel > DB.  Imported by every model module;
    imports nothing from the project.

Invariants enforced:
    - Every row has a uuid4 primary key, exposed to the domain as ``str``.
    - ``Decimal`` columns are Numeric(38, 9): prices, weights, rates and
      totals never pass through float.
    - created_at is set by the database and never rewritten.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID column stored as its 36-character text form (SQLite and PostgreSQL alike)."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        # Services pass either UUIDs or already-validated id strings
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Rows a user creates and may later edit.

    ``created_by_id`` is whoever the surrounding application says saved the
    row; the engine has no users of its own, so it may be NULL.
    ``created_at`` orders the quotation history and bounds the cost usage
    window.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    created_by_id: Mapped[PyUUID | None] = mapped_column(UUIDString(), nullable=True)


UUID = PyUUID
