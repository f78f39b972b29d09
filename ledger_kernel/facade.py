"""
ledger_kernel.facade -- the public entry point of the ledger kernel.

Responsibility:
    Runs every ledger operation in its own unit of work (one
    ``transaction_scope`` per call) and wires the kernel services for it.
    Callers never see a Session or an ORM instance: every method takes
    plain values or input DTOs and returns frozen DTOs.

Transactions:
    - Single operations get ``operation_timeout_seconds`` (default 30 s).
    - ``post_batch`` gets ``batch_timeout_seconds`` (default 120 s) for the
      whole batch, with one SAVEPOINT per journal.
    - A rejected operation rolls back completely: the mutation and its
      audit record commit together or not at all.

Errors:
    Lookups return ``None`` when the entity is absent or belongs to another
    company.  Mutations raise the typed errors of ``ledger_kernel.exceptions``.

Usage:
    from ledger_kernel.facade import LedgerFacade

    ledger = LedgerFacade()
    period = ledger.create_period(PeriodInput(company_id, start, end), "alice")
    draft = ledger.create_journal(entry, "alice")
    ledger.post_journal(draft.id, "alice")
    rows = ledger.get_trial_balance(company_id, period.id)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.config import LedgerSettings, load_settings
from ledger_kernel.db.engine import (
    UnitOfWork,
    get_session_factory,
    init_engine_from_url,
    transaction_scope,
)
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountBalance,
    AnalysisCenterReportLine,
    BatchPostResult,
    JournalEntryInfo,
    JournalEntryInput,
    PeriodInfo,
    PeriodInput,
)
from ledger_kernel.exceptions import ValidationError
from ledger_kernel.logging_config import LogContext, configure_logging, get_logger
from ledger_kernel.models.analysis_center import AnalysisCenterType
from ledger_kernel.selectors.trial_balance_selector import TrialBalanceSelector
from ledger_kernel.services.audit_service import AuditLogService
from ledger_kernel.services.batch_service import BatchPostingService
from ledger_kernel.services.journal_service import JournalPostingService
from ledger_kernel.services.period_service import PeriodLifecycleService

logger = get_logger("facade")

_NIL_UUID = UUID(int=0)


def _require_id(value: UUID | None, field: str) -> UUID:
    if value is None or value == _NIL_UUID:
        raise ValidationError(field, "must be a non-empty id")
    return value


def _require_actor(actor_id: str | None) -> str:
    if actor_id is None or not str(actor_id).strip():
        raise ValidationError("actor_id", "is required")
    return str(actor_id)


def clean_batch_ids(journal_ids: Iterable[UUID | None], max_size: int) -> list[UUID]:
    """
    Drop empty ids and duplicates (first occurrence wins, order kept).

    Raises:
        ValidationError: nothing left, or more than ``max_size`` ids.
    """
    cleaned: dict[UUID, None] = {}
    for journal_id in journal_ids:
        if journal_id is None or journal_id == _NIL_UUID:
            continue
        cleaned.setdefault(journal_id, None)
    if not cleaned:
        raise ValidationError("journal_ids", "at least one journal id is required")
    if len(cleaned) > max_size:
        raise ValidationError(
            "journal_ids",
            f"batch of {len(cleaned)} exceeds the limit of {max_size}",
        )
    return list(cleaned)


class _LedgerServices:
    """Kernel services wired around one unit of work."""

    def __init__(self, uow: UnitOfWork, clock: Clock, settings: LedgerSettings):
        session = uow.session
        self.audit = AuditLogService(session, clock)
        self.periods = PeriodLifecycleService(session, clock, self.audit)
        self.journals = JournalPostingService(session, clock, self.audit, self.periods)
        self.batch = BatchPostingService(
            session,
            self.journals,
            max_batch_size=settings.batch_max_size,
            check_deadline=uow.check_deadline,
        )
        self.trial_balance = TrialBalanceSelector(session)


class LedgerFacade:
    """
    Double-entry ledger and accounting period operations.

    Args:
        session_factory: Factory for new sessions.  Defaults to the
            process-wide factory, initializing the engine from
            ``settings.database_url`` when none exists yet.
        settings: Timeouts and batch limit.  Defaults to ``load_settings()``.
        clock: Time source for posted_at, closed_at and audit timestamps.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
    ):
        self.settings = settings or load_settings()
        configure_logging(level=self.settings.log_level)
        if session_factory is None:
            try:
                session_factory = get_session_factory()
            except RuntimeError:
                init_engine_from_url(self.settings.database_url, echo=self.settings.echo_sql)
                session_factory = get_session_factory()
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        register_immutability_listeners()

    def _run(self, operation: str, fn, timeout_seconds: float | None = None, **context):
        """Run ``fn(services)`` in a fresh unit of work with bound log context."""
        timeout = timeout_seconds or self.settings.operation_timeout_seconds
        with LogContext.bind(correlation_id=uuid4(), **context):
            logger.debug("operation_started", extra={"operation": operation})
            with transaction_scope(timeout, self._session_factory) as uow:
                return fn(_LedgerServices(uow, self._clock, self.settings))

    # ------------------------------------------------------------------
    # Journals
    # ------------------------------------------------------------------

    def create_journal(self, entry: JournalEntryInput, actor_id: str) -> JournalEntryInfo:
        actor_id = _require_actor(actor_id)
        _require_id(entry.company_id, "company_id")
        _require_id(entry.period_id, "period_id")
        return self._run(
            "create_journal",
            lambda s: s.journals.create_draft(entry, actor_id),
            actor_id=actor_id,
            company_id=entry.company_id,
            period_id=entry.period_id,
        )

    def get_journal_by_id(
        self,
        journal_id: UUID,
        company_id: UUID | None = None,
    ) -> JournalEntryInfo | None:
        _require_id(journal_id, "journal_id")
        return self._run(
            "get_journal_by_id",
            lambda s: s.journals.get_by_id(journal_id, company_id),
            journal_id=journal_id,
        )

    def post_journal(self, journal_id: UUID, actor_id: str) -> JournalEntryInfo:
        actor_id = _require_actor(actor_id)
        _require_id(journal_id, "journal_id")
        return self._run(
            "post_journal",
            lambda s: s.journals.post(journal_id, actor_id),
            actor_id=actor_id,
            journal_id=journal_id,
        )

    def post_batch(self, journal_ids: Iterable[UUID | None], actor_id: str) -> BatchPostResult:
        """
        Post many journals, best effort per item.

        Input is cleaned first: empty ids and duplicates are dropped, and an
        empty or oversized list is rejected with ValidationError.
        """
        actor_id = _require_actor(actor_id)
        ids = clean_batch_ids(journal_ids, self.settings.batch_max_size)
        return self._run(
            "post_batch",
            lambda s: s.batch.post_batch(ids, actor_id),
            timeout_seconds=self.settings.batch_timeout_seconds,
            actor_id=actor_id,
        )

    # ------------------------------------------------------------------
    # Periods
    # ------------------------------------------------------------------

    def create_period(self, period: PeriodInput, actor_id: str) -> PeriodInfo:
        actor_id = _require_actor(actor_id)
        _require_id(period.company_id, "company_id")
        return self._run(
            "create_period",
            lambda s: s.periods.create(period, actor_id),
            actor_id=actor_id,
            company_id=period.company_id,
        )

    def get_period_by_id(
        self,
        period_id: UUID,
        company_id: UUID | None = None,
    ) -> PeriodInfo | None:
        _require_id(period_id, "period_id")
        return self._run(
            "get_period_by_id",
            lambda s: s.periods.get_by_id(period_id, company_id),
            period_id=period_id,
        )

    def get_periods_by_company(self, company_id: UUID) -> list[PeriodInfo]:
        _require_id(company_id, "company_id")
        return self._run(
            "get_periods_by_company",
            lambda s: s.periods.list_by_company(company_id),
            company_id=company_id,
        )

    def close_period(self, period_id: UUID, actor_id: str) -> PeriodInfo:
        actor_id = _require_actor(actor_id)
        _require_id(period_id, "period_id")
        return self._run(
            "close_period",
            lambda s: s.periods.close(period_id, actor_id),
            actor_id=actor_id,
            period_id=period_id,
        )

    def reopen_period(self, period_id: UUID, actor_id: str) -> PeriodInfo:
        actor_id = _require_actor(actor_id)
        _require_id(period_id, "period_id")
        return self._run(
            "reopen_period",
            lambda s: s.periods.reopen(period_id, actor_id),
            actor_id=actor_id,
            period_id=period_id,
        )

    def delete_period(self, period_id: UUID, actor_id: str) -> None:
        actor_id = _require_actor(actor_id)
        _require_id(period_id, "period_id")
        self._run(
            "delete_period",
            lambda s: s.periods.delete(period_id, actor_id),
            actor_id=actor_id,
            period_id=period_id,
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_trial_balance(self, company_id: UUID, period_id: UUID) -> list[AccountBalance]:
        _require_id(company_id, "company_id")
        _require_id(period_id, "period_id")
        return self._run(
            "get_trial_balance",
            lambda s: s.trial_balance.trial_balance(company_id, period_id),
            company_id=company_id,
            period_id=period_id,
        )

    def get_trial_balance_with_analysis_centers(
        self,
        company_id: UUID,
        period_id: UUID,
        include_breakdown: bool = False,
    ) -> list[AccountBalance]:
        _require_id(company_id, "company_id")
        _require_id(period_id, "period_id")
        return self._run(
            "get_trial_balance_with_analysis_centers",
            lambda s: s.trial_balance.trial_balance_with_analysis_centers(
                company_id, period_id, include_breakdown
            ),
            company_id=company_id,
            period_id=period_id,
        )

    def get_analysis_center_report(
        self,
        company_id: UUID,
        period_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        analysis_center_id: UUID | None = None,
        center_type: AnalysisCenterType | str | None = None,
    ) -> list[AnalysisCenterReportLine]:
        _require_id(company_id, "company_id")
        return self._run(
            "get_analysis_center_report",
            lambda s: s.trial_balance.analysis_center_report(
                company_id,
                period_id=period_id,
                start=start,
                end=end,
                analysis_center_id=analysis_center_id,
                center_type=center_type,
            ),
            company_id=company_id,
            period_id=period_id,
        )
