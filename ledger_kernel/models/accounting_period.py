"""
Module: ledger_kernel.models.accounting_period
Responsibility: ORM persistence for accounting periods -- the date ranges
    journals are filed against and that can be closed to stop postings.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced (by PeriodLifecycleService, not this model):
    - end > start.
    - Periods of the same company do not overlap ([start, end] inclusive).
    - Reopen only when no later period of the company is closed.
    - Delete only while open and unreferenced by journal entries.

Audit relevance:
    Create, close, reopen and delete each append one AuditLog row.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import UTCDateTime


class AccountingPeriod(TrackedBase):
    """
    Accounting period of a company.

    Contract:
        Created open.  Open -> Closed via close(); Closed -> Open via reopen().
        While closed, no journal can be created in or posted to the period.
    """

    __tablename__ = "accounting_periods"

    __table_args__ = (
        Index("idx_period_company_range", "company_id", "start", "end"),
        Index("idx_period_company_closed", "company_id", "is_closed"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    # Period boundaries (inclusive)
    start: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    end: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    is_closed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    closed_by: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"<AccountingPeriod {self.start:%Y-%m-%d}..{self.end:%Y-%m-%d}: {state}>"
