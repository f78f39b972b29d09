"""Write-side services.  Each flushes within the caller's unit of work."""

from ledger_kernel.services.audit_service import AuditLogService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.batch_service import BatchPostingService
from ledger_kernel.services.journal_service import JournalPostingService
from ledger_kernel.services.period_service import PeriodLifecycleService
from ledger_kernel.services.reference_validators import (
    AccountExistenceValidator,
    AnalysisCenterValidator,
    CompanyExistenceValidator,
)

__all__ = [
    "AccountExistenceValidator",
    "AnalysisCenterValidator",
    "AuditLogService",
    "BaseService",
    "BatchPostingService",
    "CompanyExistenceValidator",
    "JournalPostingService",
    "PeriodLifecycleService",
]
