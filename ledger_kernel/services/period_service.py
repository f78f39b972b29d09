"""
PeriodLifecycleService -- accounting period creation, close, reopen, delete.

Responsibility:
    Owns every period-state rule: valid ranges, no overlap within a company,
    no close while draft journals remain, reopen in reverse-chronological
    order, delete only while open and unreferenced.

Architecture position:
    Kernel > Services -- imperative shell.  Read by JournalPostingService
    (period existence and open state); writes nothing outside
    accounting_periods and audit_logs.

Invariants enforced:
    - end > start.
    - Periods of one company never overlap ([start, end] inclusive on both
      ends, so a period may begin the instant after its neighbour ends).
    - A closed period holds no draft journals.
    - A period is reopened only if no later period of the company is closed.

Failure modes:
    - CompanyNotFoundError, InvalidPeriodRangeError, PeriodOverlapError on
      create.
    - PeriodNotFoundError, PeriodAlreadyClosedError, DraftJournalsExistError
      on close.
    - PeriodNotFoundError, PeriodNotClosedError, LaterPeriodClosedError on
      reopen.
    - PeriodNotFoundError, CannotDeleteClosedPeriodError, PeriodInUseError
      on delete.

Audit relevance:
    Each successful mutation appends exactly one AuditLog row
    (CreatePeriod, ClosePeriod, ReopenPeriod, DeletePeriod) in the same
    unit of work.  Mutations lock the period row with SELECT ... FOR UPDATE
    so concurrent close/reopen/delete attempts serialize.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import PeriodInfo, PeriodInput
from ledger_kernel.exceptions import (
    CannotDeleteClosedPeriodError,
    ClosedPeriodError,
    DraftJournalsExistError,
    InvalidPeriodRangeError,
    LaterPeriodClosedError,
    PeriodAlreadyClosedError,
    PeriodInUseError,
    PeriodNotClosedError,
    PeriodNotFoundError,
    PeriodOverlapError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.audit_log import AuditAction
from ledger_kernel.models.journal import JournalEntry, JournalStatus
from ledger_kernel.services.audit_service import AuditLogService, describe_period
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.reference_validators import CompanyExistenceValidator

logger = get_logger("services.period")


class PeriodLifecycleService(BaseService[AccountingPeriod]):
    """
    Service for managing the accounting period lifecycle.

    Contract:
        Lifecycle methods flush within the caller's unit of work and return
        frozen ``PeriodInfo`` DTOs.  Rule violations raise typed
        exceptions before anything is written.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT post, move or delete journals.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        audit: AuditLogService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._audit = audit or AuditLogService(session, self._clock)
        self._companies = CompanyExistenceValidator(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, period_id: UUID, company_id: UUID | None = None) -> PeriodInfo | None:
        """Period by id; a period of another company is treated as absent."""
        period = self._get_period(period_id, company_id)
        if period is None:
            return None
        return PeriodInfo.from_model(period)

    def list_by_company(self, company_id: UUID) -> list[PeriodInfo]:
        """All periods of a company, most recent start first."""
        periods = self.session.execute(
            select(AccountingPeriod)
            .where(AccountingPeriod.company_id == company_id)
            .order_by(AccountingPeriod.start.desc())
        ).scalars().all()
        return [PeriodInfo.from_model(p) for p in periods]

    def get_open_period(
        self,
        period_id: UUID,
        company_id: UUID,
        lock: bool = False,
    ) -> AccountingPeriod:
        """
        Load a period of the company for journal writes.

        With ``lock`` the row is read FOR SHARE: journal writers do not block
        each other but do serialize with close(), which takes FOR UPDATE.

        Raises:
            PeriodNotFoundError: No such period for the company.
            ClosedPeriodError: The period is closed.
        """
        period = self._get_period(period_id, company_id, lock=lock)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        if period.is_closed:
            logger.warning(
                "period_closed_for_posting",
                extra={"period_id": str(period_id), "company_id": str(company_id)},
            )
            raise ClosedPeriodError(str(period_id))
        return period

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, period: PeriodInput, actor_id: str) -> PeriodInfo:
        """
        Create an open accounting period.

        Raises:
            ValidationError: Missing company or a naive timestamp.
            CompanyNotFoundError: Company does not exist.
            InvalidPeriodRangeError: end is not after start.
            PeriodOverlapError: Range intersects an existing period of the
                same company.
        """
        if period.company_id is None:
            raise ValidationError("company_id", "is required")
        if period.start.tzinfo is None or period.end.tzinfo is None:
            raise ValidationError("start/end", "must be timezone-aware")

        self._companies.validate(period.company_id)

        if period.end <= period.start:
            raise InvalidPeriodRangeError(period.start.isoformat(), period.end.isoformat())

        self._validate_no_overlap(period)

        model = AccountingPeriod(
            company_id=period.company_id,
            name=period.name,
            start=period.start,
            end=period.end,
            is_closed=False,
        )
        self.session.add(model)
        self.session.flush()

        self._audit.log(
            actor_id,
            AuditAction.CREATE_PERIOD,
            f"{describe_period(model.id, period.start, period.end)} "
            f"created for company {period.company_id}",
        )

        logger.info(
            "period_created",
            extra={
                "period_id": str(model.id),
                "company_id": str(period.company_id),
                "start": period.start.isoformat(),
                "end": period.end.isoformat(),
            },
        )
        return PeriodInfo.from_model(model)

    def _validate_no_overlap(self, period: PeriodInput) -> None:
        """
        Two ranges overlap if: start1 <= end2 AND start2 <= end1.

        Raises:
            PeriodOverlapError: naming the earliest overlapping period.
        """
        overlapping = self.session.execute(
            select(AccountingPeriod)
            .where(
                AccountingPeriod.company_id == period.company_id,
                AccountingPeriod.start <= period.end,
                AccountingPeriod.end >= period.start,
            )
            .order_by(AccountingPeriod.start)
            .limit(1)
        ).scalar_one_or_none()

        if overlapping is not None:
            logger.warning(
                "period_overlap_rejected",
                extra={
                    "company_id": str(period.company_id),
                    "existing_period_id": str(overlapping.id),
                },
            )
            raise PeriodOverlapError(
                existing_period_id=str(overlapping.id),
                existing_start=overlapping.start.isoformat(),
                existing_end=overlapping.end.isoformat(),
            )

    def close(self, period_id: UUID, actor_id: str) -> PeriodInfo:
        """
        Close an open period.

        Postconditions:
            - ``is_closed`` is True, ``closed_at`` is the clock time and
              ``closed_by`` is ``actor_id``.
            - New journals can neither be created in nor posted to it.

        Raises:
            PeriodNotFoundError, PeriodAlreadyClosedError,
            DraftJournalsExistError.
        """
        period = self._get_period_for_update(period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        if period.is_closed:
            raise PeriodAlreadyClosedError(str(period_id))

        draft_count = self._count_journals(period_id, JournalStatus.DRAFT)
        if draft_count:
            logger.warning(
                "period_close_blocked_by_drafts",
                extra={"period_id": str(period_id), "draft_count": draft_count},
            )
            raise DraftJournalsExistError(str(period_id), draft_count)

        period.is_closed = True
        period.closed_at = self._clock.now()
        period.closed_by = actor_id
        self.session.flush()

        self._audit.log(
            actor_id,
            AuditAction.CLOSE_PERIOD,
            f"{describe_period(period.id, period.start, period.end)} closed",
        )
        logger.info("period_closed", extra={"period_id": str(period_id)})
        return PeriodInfo.from_model(period)

    def reopen(self, period_id: UUID, actor_id: str) -> PeriodInfo:
        """
        Reopen a closed period.

        Periods are reopened in reverse-chronological order: any other
        closed period of the company starting after this one ends blocks
        the reopen.

        Raises:
            PeriodNotFoundError, PeriodNotClosedError, LaterPeriodClosedError.
        """
        period = self._get_period_for_update(period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        if not period.is_closed:
            raise PeriodNotClosedError(str(period_id))

        later_closed = self.session.execute(
            select(AccountingPeriod.id)
            .where(
                AccountingPeriod.company_id == period.company_id,
                AccountingPeriod.id != period.id,
                AccountingPeriod.start > period.end,
                AccountingPeriod.is_closed.is_(True),
            )
            .order_by(AccountingPeriod.start)
            .limit(1)
        ).scalar_one_or_none()
        if later_closed is not None:
            logger.warning(
                "period_reopen_blocked",
                extra={"period_id": str(period_id), "later_period_id": str(later_closed)},
            )
            raise LaterPeriodClosedError(str(period_id), str(later_closed))

        period.is_closed = False
        period.closed_at = None
        period.closed_by = None
        self.session.flush()

        self._audit.log(
            actor_id,
            AuditAction.REOPEN_PERIOD,
            f"{describe_period(period.id, period.start, period.end)} reopened",
        )
        logger.info("period_reopened", extra={"period_id": str(period_id)})
        return PeriodInfo.from_model(period)

    def delete(self, period_id: UUID, actor_id: str) -> None:
        """
        Delete an open period that no journal references.

        Raises:
            PeriodNotFoundError, CannotDeleteClosedPeriodError,
            PeriodInUseError.
        """
        period = self._get_period_for_update(period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        if period.is_closed:
            raise CannotDeleteClosedPeriodError(str(period_id))

        journal_count = self._count_journals(period_id)
        if journal_count:
            raise PeriodInUseError(str(period_id), journal_count)

        details = f"{describe_period(period.id, period.start, period.end)} deleted"
        self.session.delete(period)
        self.session.flush()

        self._audit.log(actor_id, AuditAction.DELETE_PERIOD, details)
        logger.info("period_deleted", extra={"period_id": str(period_id)})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_period(
        self,
        period_id: UUID,
        company_id: UUID | None = None,
        lock: bool = False,
    ) -> AccountingPeriod | None:
        stmt = select(AccountingPeriod).where(AccountingPeriod.id == period_id)
        if company_id is not None:
            stmt = stmt.where(AccountingPeriod.company_id == company_id)
        if lock:
            stmt = stmt.with_for_update(read=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def _get_period_for_update(self, period_id: UUID) -> AccountingPeriod | None:
        """Load a period with a row-level lock (SELECT ... FOR UPDATE)."""
        return self.session.execute(
            select(AccountingPeriod)
            .where(AccountingPeriod.id == period_id)
            .with_for_update()
        ).scalar_one_or_none()

    def _count_journals(self, period_id: UUID, status: JournalStatus | None = None) -> int:
        stmt = select(func.count(JournalEntry.id)).where(JournalEntry.period_id == period_id)
        if status is not None:
            stmt = stmt.where(JournalEntry.status == status.value)
        return self.session.execute(stmt).scalar_one()
