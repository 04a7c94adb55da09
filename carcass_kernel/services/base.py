"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every persistence service.  All concrete services inherit from
    BaseService, receiving a SQLAlchemy ``Session`` that they use via
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell around the pure engines.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (``session_scope()``, the workbench or a test harness) owns
      commit/rollback.
    - Services return frozen domain records, never ORM entities.

Failure modes:
    - If a subclass calls ``session.commit()``, the atomicity of a
      multi-step save (header + line items) is broken.
"""

from abc import ABC
from collections.abc import Callable
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from carcass_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


def parse_id(value: str | UUID, not_found: Callable[[str], Exception]) -> UUID:
    """
    Read a domain id (string) as the UUID primary key.

    An id that is not a UUID cannot exist in the store, so it raises the
    caller's not-found error.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise not_found(str(value)) from None


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        """
        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session
