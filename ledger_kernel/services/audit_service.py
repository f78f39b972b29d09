"""
AuditLogService -- append-only audit sink.

Every successful ledger mutation calls ``log(actor_id, action, details)``
exactly once, inside the same unit of work as the mutation itself.  The
row is flushed immediately so a failing audit write aborts the mutation.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.audit_log import AuditAction, AuditLog
from ledger_kernel.services.base import BaseService

logger = get_logger("services.audit")


def _day(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def describe_period(period_id: UUID, start: datetime, end: datetime) -> str:
    """'Period <id> (YYYY-MM-DD to YYYY-MM-DD)' as used in audit details."""
    return f"Period {period_id} ({_day(start)} to {_day(end)})"


class AuditLogService(BaseService[AuditLog]):
    """Appends AuditLog rows; never updates or deletes them."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def log(self, actor_id: str, action: AuditAction, details: str) -> AuditLog:
        """Append one audit record and flush it."""
        record = AuditLog(
            actor_id=actor_id,
            action=action.value,
            details=details,
            occurred_at=self._clock.now(),
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "audit_recorded",
            extra={
                "audit_id": str(record.id),
                "action": action.value,
                "actor_id": actor_id,
            },
        )
        return record

    def history(self, actor_id: str | None = None, limit: int = 100) -> list[AuditLog]:
        """Most recent audit records first, optionally for one actor."""
        stmt = select(AuditLog)
        if actor_id is not None:
            stmt = stmt.where(AuditLog.actor_id == actor_id)
        stmt = stmt.order_by(AuditLog.occurred_at.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().all())
