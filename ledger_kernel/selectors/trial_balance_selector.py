"""
TrialBalanceSelector -- per-account and per-analysis-center aggregates.

Responsibility:
    Sums debits and credits of POSTED journal lines at the database layer,
    grouped by account (and optionally by analysis center).

Inclusion rule:
    A line is counted when its journal is posted, belongs to the company
    and has an entry_date within [period.start, period.end].  The journal's
    own period_id is NOT consulted: a back-dated entry filed against one
    period is reported under whichever period its date falls in.  When such
    a disagreement is detected it is logged (``trial_balance_period_mismatch``)
    and left unreconciled.

Failure modes:
    - PeriodNotFoundError when the period does not exist for the company.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select

from ledger_kernel.db.types import money_sum
from ledger_kernel.domain.dtos import (
    AccountBalance,
    AnalysisCenterBalance,
    AnalysisCenterReportLine,
)
from ledger_kernel.exceptions import PeriodNotFoundError, ValidationError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.analysis_center import AnalysisCenter, AnalysisCenterType
from ledger_kernel.models.journal import JournalEntry, JournalLine, JournalStatus
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.trial_balance")

_ZERO = Decimal("0")


def _amount(value) -> Decimal:
    if value is None:
        return _ZERO
    return Decimal(value)


def _enum_value(value) -> str:
    return getattr(value, "value", value)


class TrialBalanceSelector(BaseSelector[JournalLine]):
    """
    Read-only trial balance queries.

    Guarantees:
        - One row per account touched, ordered by account code.
        - Over a balanced ledger, sum(total_debit) == sum(total_credit).
    """

    def trial_balance(self, company_id: UUID, period_id: UUID) -> list[AccountBalance]:
        """Per-account posted totals for a period of the company."""
        return self.trial_balance_with_analysis_centers(
            company_id, period_id, include_breakdown=False
        )

    def trial_balance_with_analysis_centers(
        self,
        company_id: UUID,
        period_id: UUID,
        include_breakdown: bool = False,
    ) -> list[AccountBalance]:
        """
        Per-account posted totals, optionally with a per-center breakdown.

        Lines without an analysis center are excluded from the breakdown
        but still counted in the account totals.
        """
        period = self._get_period(company_id, period_id)
        self._log_period_mismatch(company_id, period)

        stmt = (
            select(
                Account.id.label("account_id"),
                Account.code,
                Account.name,
                Account.category,
                money_sum(JournalLine.debit).label("total_debit"),
                money_sum(JournalLine.credit).label("total_credit"),
            )
            .join(JournalLine, JournalLine.account_id == Account.id)
            .group_by(Account.id, Account.code, Account.name, Account.category)
            .order_by(Account.code)
        )
        rows = self.session.execute(
            self._posted_in_range(stmt, company_id, period.start, period.end)
        ).all()

        breakdown: dict[UUID, list[AnalysisCenterBalance]] = {}
        if include_breakdown:
            breakdown = self._center_breakdown(company_id, period.start, period.end)

        balances = [
            AccountBalance(
                account_id=row.account_id,
                code=row.code,
                name=row.name,
                category=_enum_value(row.category),
                total_debit=_amount(row.total_debit),
                total_credit=_amount(row.total_credit),
                analysis_centers=tuple(breakdown.get(row.account_id, ())),
            )
            for row in rows
        ]

        logger.info(
            "trial_balance_computed",
            extra={
                "company_id": str(company_id),
                "period_id": str(period_id),
                "account_count": len(balances),
                "include_breakdown": include_breakdown,
            },
        )
        return balances

    def analysis_center_report(
        self,
        company_id: UUID,
        period_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        analysis_center_id: UUID | None = None,
        center_type: AnalysisCenterType | str | None = None,
    ) -> list[AnalysisCenterReportLine]:
        """
        Posted totals per analysis center across all accounts.

        The date window is either a period of the company or an explicit
        start/end (each optional); supplying both is a ValidationError.
        """
        if period_id is not None:
            if start is not None or end is not None:
                raise ValidationError("period_id", "cannot be combined with start/end")
            period = self._get_period(company_id, period_id)
            start, end = period.start, period.end

        stmt = (
            select(
                AnalysisCenter.id.label("analysis_center_id"),
                AnalysisCenter.code,
                AnalysisCenter.name,
                AnalysisCenter.center_type,
                money_sum(JournalLine.debit).label("total_debit"),
                money_sum(JournalLine.credit).label("total_credit"),
                func.count(JournalLine.id).label("line_count"),
            )
            .join(JournalLine, JournalLine.analysis_center_id == AnalysisCenter.id)
            .where(AnalysisCenter.company_id == company_id)
            .group_by(
                AnalysisCenter.id,
                AnalysisCenter.code,
                AnalysisCenter.name,
                AnalysisCenter.center_type,
            )
            .order_by(AnalysisCenter.code)
        )
        if analysis_center_id is not None:
            stmt = stmt.where(AnalysisCenter.id == analysis_center_id)
        if center_type is not None:
            stmt = stmt.where(AnalysisCenter.center_type == _enum_value(center_type))

        rows = self.session.execute(
            self._posted_in_range(stmt, company_id, start, end)
        ).all()
        return [
            AnalysisCenterReportLine(
                analysis_center_id=row.analysis_center_id,
                code=row.code,
                name=row.name,
                center_type=_enum_value(row.center_type),
                total_debit=_amount(row.total_debit),
                total_credit=_amount(row.total_credit),
                line_count=row.line_count,
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_period(self, company_id: UUID, period_id: UUID) -> AccountingPeriod:
        period = self.session.execute(
            select(AccountingPeriod).where(
                AccountingPeriod.id == period_id,
                AccountingPeriod.company_id == company_id,
            )
        ).scalar_one_or_none()
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    @staticmethod
    def _posted_in_range(
        stmt: Select,
        company_id: UUID,
        start: datetime | None,
        end: datetime | None,
    ) -> Select:
        stmt = stmt.join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id).where(
            JournalEntry.company_id == company_id,
            JournalEntry.status == JournalStatus.POSTED.value,
        )
        if start is not None:
            stmt = stmt.where(JournalEntry.entry_date >= start)
        if end is not None:
            stmt = stmt.where(JournalEntry.entry_date <= end)
        return stmt

    def _center_breakdown(
        self,
        company_id: UUID,
        start: datetime,
        end: datetime,
    ) -> dict[UUID, list[AnalysisCenterBalance]]:
        stmt = (
            select(
                JournalLine.account_id,
                AnalysisCenter.id.label("analysis_center_id"),
                AnalysisCenter.code,
                AnalysisCenter.name,
                money_sum(JournalLine.debit).label("total_debit"),
                money_sum(JournalLine.credit).label("total_credit"),
            )
            .select_from(JournalLine)
            .join(AnalysisCenter, JournalLine.analysis_center_id == AnalysisCenter.id)
            .group_by(
                JournalLine.account_id,
                AnalysisCenter.id,
                AnalysisCenter.code,
                AnalysisCenter.name,
            )
            .order_by(AnalysisCenter.code)
        )
        breakdown: dict[UUID, list[AnalysisCenterBalance]] = {}
        for row in self.session.execute(self._posted_in_range(stmt, company_id, start, end)):
            breakdown.setdefault(row.account_id, []).append(
                AnalysisCenterBalance(
                    analysis_center_id=row.analysis_center_id,
                    code=row.code,
                    name=row.name,
                    total_debit=_amount(row.total_debit),
                    total_credit=_amount(row.total_credit),
                )
            )
        return breakdown

    def _log_period_mismatch(self, company_id: UUID, period: AccountingPeriod) -> None:
        """Log posted entries whose date and period_id disagree about this period."""
        dated_elsewhere = self.session.execute(
            select(func.count(JournalEntry.id)).where(
                JournalEntry.company_id == company_id,
                JournalEntry.status == JournalStatus.POSTED.value,
                JournalEntry.entry_date >= period.start,
                JournalEntry.entry_date <= period.end,
                JournalEntry.period_id != period.id,
            )
        ).scalar_one()
        filed_here_dated_outside = self.session.execute(
            select(func.count(JournalEntry.id)).where(
                JournalEntry.company_id == company_id,
                JournalEntry.status == JournalStatus.POSTED.value,
                JournalEntry.period_id == period.id,
                (JournalEntry.entry_date < period.start) | (JournalEntry.entry_date > period.end),
            )
        ).scalar_one()
        if dated_elsewhere or filed_here_dated_outside:
            logger.warning(
                "trial_balance_period_mismatch",
                extra={
                    "company_id": str(company_id),
                    "period_id": str(period.id),
                    "included_from_other_periods": dated_elsewhere,
                    "excluded_from_this_period": filed_here_dated_outside,
                },
            )
