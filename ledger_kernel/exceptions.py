"""
Typed exception hierarchy for the ledger kernel.

Every error a caller can act on has its own class with:
  1. a ``code`` class attribute (machine-readable, API-safe),
  2. a ``kind`` class attribute (``ErrorKind``) naming its category,
  3. structured attributes carrying the offending ids / amounts.

Callers branch on the type, the code, or the kind -- never on the message:

    try:
        facade.close_period(period_id, actor_id)
    except DraftJournalsExistError as e:
        notify(f"{e.draft_count} draft journal(s) remain in {e.period_id}")
    except LedgerKernelError as e:
        if e.kind is ErrorKind.NOT_FOUND:
            return 404
        return 409

Hierarchy:

    LedgerKernelError
    |
    +-- ValidationError                      (VALIDATION)
    |
    +-- NotFoundError                        (NOT_FOUND)
    |   +-- JournalNotFoundError
    |   +-- PeriodNotFoundError
    |   +-- CompanyNotFoundError
    |
    +-- PostingError                         (BUSINESS_RULE)
    |   +-- UnbalancedEntryError
    |   +-- AlreadyPostedError
    |   +-- AccountsNotFoundError
    |   +-- InvalidAnalysisCentersError
    |
    +-- PeriodError                          (BUSINESS_RULE)
    |   +-- ClosedPeriodError
    |   +-- InvalidPeriodRangeError
    |   +-- PeriodOverlapError
    |   +-- PeriodAlreadyClosedError
    |   +-- PeriodNotClosedError
    |   +-- DraftJournalsExistError
    |   +-- LaterPeriodClosedError
    |   +-- CannotDeleteClosedPeriodError
    |   +-- PeriodInUseError
    |
    +-- ImmutabilityViolationError           (BUSINESS_RULE)
    |
    +-- TransactionTimeoutError              (INFRASTRUCTURE)
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category tag carried by every ledger kernel error."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"
    INFRASTRUCTURE = "infrastructure"


class LedgerKernelError(Exception):
    """Base exception for all ledger kernel errors."""

    code: str = "LEDGER_KERNEL_ERROR"
    kind: ErrorKind = ErrorKind.BUSINESS_RULE


# Validation


class ValidationError(LedgerKernelError):
    """Caller-supplied data is structurally invalid."""

    code: str = "VALIDATION_ERROR"
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Not found


class NotFoundError(LedgerKernelError):
    """Base exception for missing (or out-of-scope) entities."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND


class JournalNotFoundError(NotFoundError):
    """Journal entry does not exist (or belongs to another company)."""

    code: str = "JOURNAL_NOT_FOUND"

    def __init__(self, journal_id: str):
        self.journal_id = journal_id
        super().__init__(f"Journal not found: {journal_id}")


class PeriodNotFoundError(NotFoundError):
    """Accounting period does not exist (or belongs to another company)."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period not found: {period_id}")


class CompanyNotFoundError(NotFoundError):
    """Company does not exist."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Company {company_id} not found")


# Posting


class PostingError(LedgerKernelError):
    """Base exception for journal creation and posting rules."""

    code: str = "POSTING_ERROR"


class UnbalancedEntryError(PostingError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Debits must equal credits: debits={debits}, credits={credits}"
        )


class AlreadyPostedError(PostingError):
    """Journal entry is already posted."""

    code: str = "ALREADY_POSTED"

    def __init__(self, journal_id: str):
        self.journal_id = journal_id
        super().__init__(f"Journal {journal_id} is already posted")


class AccountsNotFoundError(PostingError):
    """One or more referenced accounts do not exist for the company."""

    code: str = "ACCOUNTS_NOT_FOUND"

    def __init__(self, company_id: str, account_ids: list[str]):
        self.company_id = company_id
        self.account_ids = account_ids
        super().__init__(f"Account not found: {', '.join(account_ids)}")


class InvalidAnalysisCentersError(PostingError):
    """Referenced analysis centers are missing, inactive, or foreign."""

    code: str = "INVALID_ANALYSIS_CENTERS"

    def __init__(self, company_id: str, analysis_center_ids: list[str]):
        self.company_id = company_id
        self.analysis_center_ids = analysis_center_ids
        super().__init__(
            "Analysis centers not found, inactive or not owned by company "
            f"{company_id}: {', '.join(analysis_center_ids)}"
        )


# Period


class PeriodError(LedgerKernelError):
    """Base exception for accounting period rules."""

    code: str = "PERIOD_ERROR"


class ClosedPeriodError(PeriodError):
    """Attempt to record or post into a closed period."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period {period_id} is closed")


class InvalidPeriodRangeError(PeriodError):
    """Period end is not after its start."""

    code: str = "INVALID_PERIOD_RANGE"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(
            f"Period end date must be after start date (start={start}, end={end})"
        )


class PeriodOverlapError(PeriodError):
    """New period overlaps an existing period of the same company."""

    code: str = "PERIOD_OVERLAP"

    def __init__(
        self,
        existing_period_id: str,
        existing_start: str,
        existing_end: str,
    ):
        self.existing_period_id = existing_period_id
        self.existing_start = existing_start
        self.existing_end = existing_end
        super().__init__(
            f"Period overlaps with existing period {existing_period_id} "
            f"({existing_start} to {existing_end})"
        )


class PeriodAlreadyClosedError(PeriodError):
    """Period is already closed."""

    code: str = "PERIOD_ALREADY_CLOSED"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period {period_id} is already closed")


class PeriodNotClosedError(PeriodError):
    """Reopen attempted on a period that is open."""

    code: str = "PERIOD_NOT_CLOSED"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period {period_id} is not closed")


class DraftJournalsExistError(PeriodError):
    """Period still holds draft journal entries."""

    code: str = "DRAFT_JOURNALS_EXIST"

    def __init__(self, period_id: str, draft_count: int):
        self.period_id = period_id
        self.draft_count = draft_count
        super().__init__(
            f"Cannot close period {period_id} with {draft_count} draft journal "
            "entries. Post all journals first."
        )


class LaterPeriodClosedError(PeriodError):
    """A later period of the same company is closed."""

    code: str = "LATER_PERIOD_CLOSED"

    def __init__(self, period_id: str, later_period_id: str):
        self.period_id = period_id
        self.later_period_id = later_period_id
        super().__init__(
            f"Cannot reopen period {period_id} while later period "
            f"{later_period_id} is closed"
        )


class CannotDeleteClosedPeriodError(PeriodError):
    """Delete attempted on a closed period."""

    code: str = "CANNOT_DELETE_CLOSED_PERIOD"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(
            f"Cannot delete closed period {period_id}. Reopen it first."
        )


class PeriodInUseError(PeriodError):
    """Delete attempted on a period referenced by journal entries."""

    code: str = "PERIOD_IN_USE"

    def __init__(self, period_id: str, journal_count: int):
        self.period_id = period_id
        self.journal_count = journal_count
        super().__init__(
            f"Cannot delete period {period_id} with {journal_count} existing "
            "journal entries"
        )


# Immutability


class ImmutabilityViolationError(LedgerKernelError):
    """Attempt to modify a posted journal entry or an audit record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")


# Infrastructure


class TransactionTimeoutError(LedgerKernelError):
    """Unit of work exceeded its wall-clock budget and was rolled back."""

    code: str = "TRANSACTION_TIMEOUT"
    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(self, timeout_seconds: float, elapsed_seconds: float):
        self.timeout_seconds = timeout_seconds
        self.elapsed_seconds = elapsed_seconds
        super().__init__(
            f"Transaction exceeded {timeout_seconds}s "
            f"(elapsed {elapsed_seconds:.3f}s)"
        )
