"""
Module: ledger_kernel.models.audit_log
Responsibility: ORM persistence for the append-only audit log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Audit rows are append-only; no UPDATE or DELETE (ORM listeners in
      db/immutability.py).

Audit relevance:
    AuditLog IS the audit trail.  Each successful ledger mutation writes
    exactly one row in the same transaction as the mutation:
    CreateJournal, PostJournal, CreatePeriod, ClosePeriod, ReopenPeriod,
    DeletePeriod.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.db.types import UTCDateTime


class AuditAction(str, Enum):
    """Types of auditable actions."""

    CREATE_JOURNAL = "CreateJournal"
    POST_JOURNAL = "PostJournal"
    CREATE_PERIOD = "CreatePeriod"
    CLOSE_PERIOD = "ClosePeriod"
    REOPEN_PERIOD = "ReopenPeriod"
    DELETE_PERIOD = "DeletePeriod"


class AuditLog(Base):
    """
    One immutable audit record.

    Contract:
        Written by AuditLogService only.  ``details`` is a human-readable
        sentence naming the affected entity.
    """

    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("idx_audit_actor_time", "actor_id", "occurred_at"),
        Index("idx_audit_time", "occurred_at"),
    )

    actor_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    action: Mapped[AuditAction] = mapped_column(
        String(50),
        nullable=False,
    )

    details: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} by {self.actor_id}>"
