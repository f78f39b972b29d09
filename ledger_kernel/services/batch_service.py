"""
BatchPostingService -- best-effort posting of many journals.

Responsibility:
    Posts a list of journal ids through JournalPostingService, collecting
    per-item success and failure instead of stopping at the first error.

Architecture position:
    Kernel > Services -- imperative shell.  Runs inside ONE unit of work
    supplied by the caller.

Semantics (best effort per item):
    Each item runs inside its own SAVEPOINT.  A LedgerKernelError (business
    rule, not found, validation) rolls back only that savepoint, is counted
    as a failure and recorded as ``"Journal {id}: {message}"``; iteration
    continues.  Every successful item is committed with the outer unit of
    work regardless of sibling failures.  Any other exception (database
    failure, programming error) or an exhausted time budget escapes the
    loop, and the caller's scope rolls back the whole batch.

Preconditions:
    journal_ids is deduplicated, non-empty and size-bounded (the facade
    cleans raw input).  Violations raise ValidationError.
"""

from collections.abc import Callable, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import BatchItemResult, BatchPostResult
from ledger_kernel.exceptions import LedgerKernelError, ValidationError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.services.journal_service import JournalPostingService

logger = get_logger("services.batch")

DEFAULT_MAX_BATCH_SIZE = 1000


class BatchPostingService:
    """
    Posts journals one savepoint at a time.

    Guarantees:
        - posted_count + failed_count == len(journal_ids).
        - One error message per failing id, in input order.
    """

    def __init__(
        self,
        session: Session,
        journals: JournalPostingService,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        check_deadline: Callable[[], None] | None = None,
    ):
        self.session = session
        self._journals = journals
        self._max_batch_size = max_batch_size
        self._check_deadline = check_deadline

    def post_batch(self, journal_ids: Sequence[UUID], actor_id: str) -> BatchPostResult:
        if not journal_ids:
            raise ValidationError("journal_ids", "at least one journal id is required")
        if len(journal_ids) > self._max_batch_size:
            raise ValidationError(
                "journal_ids",
                f"batch of {len(journal_ids)} exceeds the limit of {self._max_batch_size}",
            )
        if len(set(journal_ids)) != len(journal_ids):
            raise ValidationError("journal_ids", "duplicate journal ids")

        logger.info(
            "batch_post_started",
            extra={"item_count": len(journal_ids), "actor_id": actor_id},
        )

        items: list[BatchItemResult] = []
        errors: list[str] = []

        for journal_id in journal_ids:
            if self._check_deadline is not None:
                self._check_deadline()

            with LogContext.bind(journal_id=journal_id):
                items.append(self._post_one(journal_id, actor_id))
            if not items[-1].posted:
                errors.append(f"Journal {journal_id}: {items[-1].error_message}")

        result = BatchPostResult(
            posted_count=sum(1 for item in items if item.posted),
            failed_count=len(errors),
            errors=tuple(errors),
            items=tuple(items),
        )
        logger.info(
            "batch_post_completed",
            extra={
                "posted_count": result.posted_count,
                "failed_count": result.failed_count,
            },
        )
        return result

    def _post_one(self, journal_id: UUID, actor_id: str) -> BatchItemResult:
        """Post one journal inside its own SAVEPOINT."""
        savepoint = self.session.begin_nested()
        try:
            self._journals.post(journal_id, actor_id)
        except LedgerKernelError as exc:
            savepoint.rollback()
            logger.warning(
                "batch_item_failed",
                extra={"journal_id": str(journal_id), "error_code": exc.code},
            )
            return BatchItemResult(
                journal_id=journal_id,
                posted=False,
                error_code=exc.code,
                error_message=str(exc),
            )
        except Exception:
            savepoint.rollback()
            raise
        savepoint.commit()
        return BatchItemResult(journal_id=journal_id, posted=True)
