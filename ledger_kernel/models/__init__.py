"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountCategory
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.analysis_center import AnalysisCenter, AnalysisCenterType
from ledger_kernel.models.audit_log import AuditAction, AuditLog
from ledger_kernel.models.company import Company
from ledger_kernel.models.journal import JournalEntry, JournalLine, JournalStatus

__all__ = [
    "Account",
    "AccountCategory",
    "AccountingPeriod",
    "AnalysisCenter",
    "AnalysisCenterType",
    "AuditAction",
    "AuditLog",
    "Company",
    "JournalEntry",
    "JournalLine",
    "JournalStatus",
]
