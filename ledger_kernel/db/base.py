"""
Declarative base for the ledger tables.

All models import from here and nothing here imports a model.  Column
conventions:

    - ids are uuid4 values stored as String(36) so SQLite and PostgreSQL
      share one schema;
    - money is Money (exact NUMERIC(38, 9), see db/types.py) and never float;
    - timestamps are UTCDateTime, always aware UTC.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from ledger_kernel.db.types import Money, UTCDateTime


class UUIDString(TypeDecorator):
    """UUID in Python, 36-character string in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Root of every ledger model; supplies the uuid4 primary key."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Money(),
        datetime: UTCDateTime(),
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds created_at / updated_at row metadata.

    updated_at may still change on a posted journal: the immutability
    listeners exempt it.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
