"""
BaseSelector -- read-only query side of the kernel.

Selectors accept a Session from the caller, run read-only queries and
return frozen DTOs.  They never add, delete, flush or commit, and all
totals are derived from journal lines at query time: there are no stored
balances.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Abstract base class for all selectors."""

    def __init__(self, session: Session):
        self.session = session
