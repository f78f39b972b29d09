"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    single source of financial truth in the ledger.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, or domain/.

Invariants enforced:
    - Balance: sum(debit) == sum(credit) per entry (checked by
      JournalPostingService at create and post).
    - Amounts are Money: exact on every backend.
    - Immutability: once POSTED, the entry and its lines cannot be updated
      or deleted (ORM listeners in db/immutability.py).
    - Ownership: lines have no lifecycle of their own (cascade delete-orphan).

Audit relevance:
    JournalEntry and JournalLine rows are the authoritative financial record.
    Trial balances derive exclusively from POSTED rows -- there are no stored
    balances.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import Money, UTCDateTime

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class JournalStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Contract: DRAFT -> POSTED is the only transition; POSTED is terminal.
    """

    DRAFT = "draft"
    POSTED = "posted"


class JournalEntry(TrackedBase):
    """
    Journal entry header -- the atomic unit of double-entry accounting.

    Contract:
        Filed against one AccountingPeriod of its company.  Once status is
        POSTED, the row and all child JournalLines are immutable.

    Non-goals:
        - exchange_rate is recorded, never applied (no currency conversion).
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        Index("idx_journal_company_status_date", "company_id", "status", "entry_date"),
        Index("idx_journal_period_status", "period_id", "status"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    period_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounting_periods.id"),
        nullable=False,
    )

    # Transaction date; drives trial balance inclusion
    entry_date: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(500),
        default="",
        nullable=False,
    )

    reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        default="EUR",
        nullable=False,
    )

    # Rate to the company base currency
    exchange_rate: Mapped[Decimal] = mapped_column(
        Money(),
        default=Decimal("1"),
        nullable=False,
    )

    status: Mapped[JournalStatus] = mapped_column(
        String(10),
        default=JournalStatus.DRAFT,
        nullable=False,
    )

    created_by: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    posted_by: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_seq",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.id} status={self.status}>"

    @property
    def is_posted(self) -> bool:
        return self.status == JournalStatus.POSTED


class JournalLine(TrackedBase):
    """
    Individual movement within a journal entry.

    Contract:
        References exactly one Account and optionally one AnalysisCenter.
        debit and credit are both non-negative; in normal use exactly one
        of them is non-zero.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
        Index("idx_line_analysis_center", "analysis_center_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    # Position within the entry
    line_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
    )

    analysis_center_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("analysis_centers.id", ondelete="RESTRICT"),
        nullable=True,
    )

    debit: Mapped[Decimal] = mapped_column(
        Money(),
        default=Decimal("0"),
        nullable=False,
    )

    credit: Mapped[Decimal] = mapped_column(
        Money(),
        default=Decimal("0"),
        nullable=False,
    )

    narrative: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship()

    def __repr__(self) -> str:
        return f"<JournalLine Dr {self.debit} Cr {self.credit}>"
