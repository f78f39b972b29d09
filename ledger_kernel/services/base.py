"""
BaseService -- abstract base for all kernel services.

Services receive a SQLAlchemy ``Session`` (normally ``UnitOfWork.session``)
and persist through ``session.flush()`` -- never ``session.commit()``.  The
transaction scope that created the session owns commit and rollback, so a
journal or period mutation and its audit record always land together.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Read-only reporting queries belong in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
