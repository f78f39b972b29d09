"""
JournalPostingService -- draft creation and posting of journal entries.

Responsibility:
    Records balanced journal entries as drafts and transitions them to
    posted, consuming the reference validators and the period lifecycle
    service.

Architecture position:
    Kernel > Services -- imperative shell.  Called by the facade directly
    and by BatchPostingService once per batch item.

Invariants enforced:
    - sum(debit) == sum(credit) exactly, at create and again at post.
    - Journals are only created in, and posted to, open periods of their
      own company.
    - DRAFT -> POSTED is the only transition; posting twice fails.
    - A journal and its audit record are flushed in the same unit of work.

Failure modes:
    - ValidationError: no lines, a line without an account, a naive
      entry_date, negative or non-Decimal amounts.
    - UnbalancedEntryError, PeriodNotFoundError, ClosedPeriodError,
      AccountsNotFoundError, InvalidAnalysisCentersError on create.
    - JournalNotFoundError, AlreadyPostedError, UnbalancedEntryError,
      InvalidAnalysisCentersError, ClosedPeriodError on post.

Audit relevance:
    CreateJournal and PostJournal audit rows, one per successful call.
    post() locks the journal row (SELECT ... FOR UPDATE) so two concurrent
    posts of the same journal serialize and the loser sees AlreadyPosted.
    Both writes hold a shared lock on the period row (FOR SHARE), so a
    concurrent close either waits for the journal to commit and then sees
    it, or commits first and the journal write sees the period closed.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.balance import ensure_balanced, validate_line_amounts
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import JournalEntryInfo, JournalEntryInput
from ledger_kernel.exceptions import (
    AlreadyPostedError,
    JournalNotFoundError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.audit_log import AuditAction
from ledger_kernel.models.journal import JournalEntry, JournalLine, JournalStatus
from ledger_kernel.services.audit_service import AuditLogService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.period_service import PeriodLifecycleService
from ledger_kernel.services.reference_validators import (
    AccountExistenceValidator,
    AnalysisCenterValidator,
)

logger = get_logger("services.journal")


class JournalPostingService(BaseService[JournalEntry]):
    """
    Creates draft journals and posts them.

    Contract:
        Flushes within the caller's unit of work and returns frozen
        ``JournalEntryInfo`` DTOs.  Every rule is checked before the first
        write, so a rejected call leaves nothing behind.

    Non-goals:
        - No reversal or cancellation of posted entries.
        - exchange_rate is stored, never applied.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        audit: AuditLogService | None = None,
        periods: PeriodLifecycleService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._audit = audit or AuditLogService(session, self._clock)
        self._periods = periods or PeriodLifecycleService(
            session, self._clock, self._audit
        )
        self._accounts = AccountExistenceValidator(session)
        self._analysis_centers = AnalysisCenterValidator(session)

    def get_by_id(
        self,
        journal_id: UUID,
        company_id: UUID | None = None,
    ) -> JournalEntryInfo | None:
        """Journal by id; a journal of another company is treated as absent."""
        stmt = select(JournalEntry).where(JournalEntry.id == journal_id)
        if company_id is not None:
            stmt = stmt.where(JournalEntry.company_id == company_id)
        entry = self.session.execute(stmt).scalar_one_or_none()
        if entry is None:
            return None
        return JournalEntryInfo.from_model(entry)

    def create_draft(self, entry: JournalEntryInput, actor_id: str) -> JournalEntryInfo:
        """
        Validate and persist a journal entry with status draft.

        Returns:
            The persisted entry, identity assigned, status ``draft``.
        """
        if entry.company_id is None:
            raise ValidationError("company_id", "is required")
        if entry.period_id is None:
            raise ValidationError("period_id", "is required")
        if not entry.lines:
            raise ValidationError("lines", "journal entry must have at least one line")
        if entry.entry_date is None:
            raise ValidationError("entry_date", "is required")
        if entry.entry_date.tzinfo is None:
            raise ValidationError("entry_date", "must be timezone-aware")
        for index, line in enumerate(entry.lines):
            if line.account_id is None:
                raise ValidationError(f"lines[{index}].account_id", "is required")

        validate_line_amounts(entry.lines)
        debits, credits = ensure_balanced(entry.lines)

        self._periods.get_open_period(entry.period_id, entry.company_id, lock=True)
        self._accounts.validate(
            entry.company_id, (line.account_id for line in entry.lines)
        )
        self._analysis_centers.validate(
            entry.company_id, (line.analysis_center_id for line in entry.lines)
        )

        model = JournalEntry(
            company_id=entry.company_id,
            period_id=entry.period_id,
            entry_date=entry.entry_date,
            description=entry.description or "",
            reference=entry.reference,
            currency=entry.currency,
            exchange_rate=entry.exchange_rate,
            status=JournalStatus.DRAFT.value,
            created_by=actor_id,
        )
        model.lines = [
            JournalLine(
                line_seq=seq,
                account_id=line.account_id,
                analysis_center_id=line.analysis_center_id,
                debit=line.debit,
                credit=line.credit,
                narrative=line.narrative,
            )
            for seq, line in enumerate(entry.lines)
        ]
        self.session.add(model)
        self.session.flush()

        self._audit.log(actor_id, AuditAction.CREATE_JOURNAL, f"Journal {model.id} created")

        logger.info(
            "journal_draft_created",
            extra={
                "journal_id": str(model.id),
                "company_id": str(entry.company_id),
                "period_id": str(entry.period_id),
                "line_count": len(model.lines),
                "total_debit": str(debits),
                "total_credit": str(credits),
            },
        )
        return JournalEntryInfo.from_model(model)

    def post(self, journal_id: UUID, actor_id: str) -> JournalEntryInfo:
        """
        Transition a draft journal to posted.

        Balance, analysis centers and the period's open state are checked
        again: reference data may have changed since the draft was made.

        Postconditions:
            status is ``posted``; posted_at and posted_by are set.
        """
        entry = self._get_for_update(journal_id)
        if entry is None:
            raise JournalNotFoundError(str(journal_id))
        if entry.status == JournalStatus.POSTED:
            logger.warning("journal_already_posted", extra={"journal_id": str(journal_id)})
            raise AlreadyPostedError(str(journal_id))
        if not entry.lines:
            raise ValidationError("lines", "journal entry must have at least one line")

        ensure_balanced(entry.lines)
        self._analysis_centers.validate(
            entry.company_id, (line.analysis_center_id for line in entry.lines)
        )
        self._periods.get_open_period(entry.period_id, entry.company_id, lock=True)

        entry.status = JournalStatus.POSTED.value
        entry.posted_at = self._clock.now()
        entry.posted_by = actor_id
        self.session.flush()

        self._audit.log(actor_id, AuditAction.POST_JOURNAL, f"Journal {entry.id} posted")

        logger.info(
            "journal_posted",
            extra={
                "journal_id": str(entry.id),
                "company_id": str(entry.company_id),
                "period_id": str(entry.period_id),
                "line_count": len(entry.lines),
            },
        )
        return JournalEntryInfo.from_model(entry)

    def _get_for_update(self, journal_id: UUID) -> JournalEntry | None:
        """Load a journal with a row-level lock (SELECT ... FOR UPDATE)."""
        return self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.id == journal_id)
            .with_for_update()
        ).scalar_one_or_none()
