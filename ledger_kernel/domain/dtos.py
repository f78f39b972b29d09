"""
DTOs -- immutable data transfer objects for the ledger kernel.

Responsibility:
    Input structures handed to the services (JournalEntryInput,
    PeriodInput) and the read-side records they return (JournalEntryInfo,
    PeriodInfo, AccountBalance, BatchPostResult, ...).

Architecture position:
    Kernel > Domain -- no database access.  from_model() class methods are
    boundary converters invoked only from the service layer, so callers
    never hold ORM instances bound to a closed session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from ledger_kernel.models.accounting_period import (
        AccountingPeriod as AccountingPeriodModel,
    )
    from ledger_kernel.models.journal import JournalEntry as JournalEntryModel
    from ledger_kernel.models.journal import JournalLine as JournalLineModel


def _as_utc(moment: datetime | None) -> datetime | None:
    """Express a timestamp in UTC; naive values are UTC already."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JournalLineInput:
    """One debit-or-credit movement requested by a caller."""

    account_id: UUID
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    analysis_center_id: UUID | None = None
    narrative: str | None = None


@dataclass(frozen=True)
class JournalEntryInput:
    """
    A journal entry requested by a caller.

    Contract:
        Structural checks (non-empty lines, non-negative amounts) and the
        balance check happen in JournalPostingService, which raises typed
        errors; construction itself never fails.
    """

    company_id: UUID
    period_id: UUID
    entry_date: datetime
    lines: tuple[JournalLineInput, ...]
    description: str = ""
    reference: str | None = None
    currency: str = "EUR"
    exchange_rate: Decimal = Decimal("1")

    def __post_init__(self) -> None:
        # Accept any iterable of lines but store a tuple
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class PeriodInput:
    """An accounting period requested by a caller."""

    company_id: UUID
    start: datetime
    end: datetime
    name: str | None = None


# ---------------------------------------------------------------------------
# Journal records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JournalLineInfo:
    id: UUID
    line_seq: int
    account_id: UUID
    analysis_center_id: UUID | None
    debit: Decimal
    credit: Decimal
    narrative: str | None = None

    @classmethod
    def from_model(cls, model: JournalLineModel) -> JournalLineInfo:
        return cls(
            id=model.id,
            line_seq=model.line_seq,
            account_id=model.account_id,
            analysis_center_id=model.analysis_center_id,
            debit=Decimal(model.debit),
            credit=Decimal(model.credit),
            narrative=model.narrative,
        )


@dataclass(frozen=True)
class JournalEntryInfo:
    """
    Read-side snapshot of a journal entry and its lines.

    Guarantees:
        - Immutable (frozen dataclass).
        - lines are ordered by line_seq.
    """

    id: UUID
    company_id: UUID
    period_id: UUID
    entry_date: datetime
    description: str
    reference: str | None
    currency: str
    exchange_rate: Decimal
    status: str
    created_by: str
    posted_at: datetime | None
    posted_by: str | None
    lines: tuple[JournalLineInfo, ...] = field(default_factory=tuple)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))

    @property
    def is_posted(self) -> bool:
        return self.status == "posted"

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryInfo:
        lines = tuple(
            JournalLineInfo.from_model(line)
            for line in sorted(model.lines, key=lambda x: x.line_seq)
        )
        status = model.status
        return cls(
            id=model.id,
            company_id=model.company_id,
            period_id=model.period_id,
            entry_date=_as_utc(model.entry_date),
            description=model.description,
            reference=model.reference,
            currency=model.currency,
            exchange_rate=Decimal(model.exchange_rate),
            status=getattr(status, "value", status),
            created_by=model.created_by,
            posted_at=_as_utc(model.posted_at),
            posted_by=model.posted_by,
            lines=lines,
        )


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodInfo:
    """
    Read-side snapshot of an accounting period.

    Non-goals:
        - Does NOT enforce period rules (PeriodLifecycleService does that).
    """

    id: UUID
    company_id: UUID
    name: str | None
    start: datetime
    end: datetime
    is_closed: bool
    closed_at: datetime | None = None
    closed_by: str | None = None

    @property
    def is_open(self) -> bool:
        return not self.is_closed

    @classmethod
    def from_model(cls, model: AccountingPeriodModel) -> PeriodInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            name=model.name,
            start=_as_utc(model.start),
            end=_as_utc(model.end),
            is_closed=model.is_closed,
            closed_at=_as_utc(model.closed_at),
            closed_by=model.closed_by,
        )


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisCenterBalance:
    """Posted totals of one account within one analysis center."""

    analysis_center_id: UUID
    code: str
    name: str
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class AccountBalance:
    """
    One trial balance row.

    analysis_centers is empty unless a breakdown was requested.  Lines
    without an analysis center count in the account totals only.
    """

    account_id: UUID
    code: str
    name: str
    category: str
    total_debit: Decimal
    total_credit: Decimal
    analysis_centers: tuple[AnalysisCenterBalance, ...] = ()

    @property
    def net_balance(self) -> Decimal:
        return self.total_debit - self.total_credit


@dataclass(frozen=True)
class AnalysisCenterReportLine:
    """Posted totals of one analysis center across all accounts."""

    analysis_center_id: UUID
    code: str
    name: str
    center_type: str
    total_debit: Decimal
    total_credit: Decimal
    line_count: int

    @property
    def net_balance(self) -> Decimal:
        return self.total_debit - self.total_credit


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one journal within a batch."""

    journal_id: UUID
    posted: bool
    error_code: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class BatchPostResult:
    """
    Outcome of a batch post.

    Guarantees:
        - posted_count + failed_count == len(items).
        - errors holds one "Journal {id}: {message}" string per failure, in
          input order.
    """

    posted_count: int
    failed_count: int
    errors: tuple[str, ...]
    items: tuple[BatchItemResult, ...] = ()
