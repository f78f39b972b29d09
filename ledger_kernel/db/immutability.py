"""
ORM-level immutability enforcement.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners below reject them for:

Entity         | When immutable
---------------|--------------------------------
JournalEntry   | After status = POSTED
JournalLine    | When parent entry is POSTED
AuditLog       | Always (from creation)

The DRAFT -> POSTED transition itself is allowed: the entry check looks at
the attribute history of ``status`` to tell "being posted" from "already
posted".  ``updated_at`` is row metadata and may change.

Usage:

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

Tests that must bypass the rules call ``unregister_immutability_listeners``.
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_MUTABLE_METADATA = ("updated_at",)


def _blocked(entity_type: str, entity_id, operation: str, reason: str, **extra):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            **extra,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _is_posted(status) -> bool:
    from ledger_kernel.models.journal import JournalStatus

    return status == JournalStatus.POSTED or status == JournalStatus.POSTED.value


def _check_journal_entry_update(mapper, connection, target):
    """
    Prevent updates to posted JournalEntry records.

    1. status changing FROM posted: block.
    2. status unchanged and posted: block any other field change.
    3. status changing TO posted: allow (this is the posting).
    """
    status_history = get_history(target, "status")

    if status_history.deleted:
        was_posted_before = _is_posted(status_history.deleted[0])
    elif not status_history.added:
        was_posted_before = _is_posted(target.status)
    else:
        was_posted_before = False

    if not was_posted_before:
        return

    for attr in inspect(target).attrs:
        if attr.key in _MUTABLE_METADATA:
            continue
        if attr.history.has_changes():
            _blocked(
                "JournalEntry",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on posted journal entry",
                field=attr.key,
            )


def _check_journal_entry_delete(mapper, connection, target):
    if _is_posted(target.status):
        _blocked(
            "JournalEntry",
            target.id,
            "DELETE",
            "Posted journal entries cannot be deleted",
        )


def _check_journal_line_update(mapper, connection, target):
    if target.entry is not None and _is_posted(target.entry.status):
        _blocked(
            "JournalLine",
            target.id,
            "UPDATE",
            "Journal lines cannot be modified after parent entry is posted",
        )


def _check_journal_line_delete(mapper, connection, target):
    if target.entry is not None and _is_posted(target.entry.status):
        _blocked(
            "JournalLine",
            target.id,
            "DELETE",
            "Journal lines cannot be deleted after parent entry is posted",
        )


def _check_audit_log_update(mapper, connection, target):
    _blocked("AuditLog", target.id, "UPDATE", "Audit records are append-only")


def _check_audit_log_delete(mapper, connection, target):
    _blocked("AuditLog", target.id, "DELETE", "Audit records are append-only")


def _listeners():
    from ledger_kernel.models.audit_log import AuditLog
    from ledger_kernel.models.journal import JournalEntry, JournalLine

    return [
        (JournalEntry, "before_update", _check_journal_entry_update),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalLine, "before_update", _check_journal_line_update),
        (JournalLine, "before_delete", _check_journal_line_delete),
        (AuditLog, "before_update", _check_audit_log_update),
        (AuditLog, "before_delete", _check_audit_log_delete),
    ]


def register_immutability_listeners() -> None:
    """Register all immutability listeners.  Safe to call more than once."""
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners() -> None:
    """
    Remove immutability listeners.

    WARNING: Only use this in tests that must violate the rules on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
    logger.debug("immutability_listeners_unregistered")
