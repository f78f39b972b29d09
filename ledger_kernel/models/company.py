"""
Module: ledger_kernel.models.company
Responsibility: ORM persistence for tenants.  Every other ledger row is owned
    by exactly one Company; company scoping is how tenant isolation works.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Company(TrackedBase):
    """A tenant of the ledger."""

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    vat_number: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    # ISO 4217 reporting currency
    base_currency: Mapped[str] = mapped_column(
        String(3),
        default="EUR",
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Company {self.name}>"
