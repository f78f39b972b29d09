"""
ORM immutability tests.

Verifies:
- Posted journal entries and their lines reject UPDATE and DELETE
- The DRAFT -> POSTED transition itself is allowed
- Drafts stay editable
- Audit records are append-only
- Unregistering the listeners lifts the rules
"""

import pytest
from sqlalchemy import select

from ledger_kernel.db.immutability import unregister_immutability_listeners
from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.models.audit_log import AuditLog
from ledger_kernel.models.journal import JournalEntry, JournalStatus


@pytest.fixture
def posted_id(facade, make_entry, test_actor_id):
    draft = facade.create_journal(make_entry(), test_actor_id)
    return facade.post_journal(draft.id, test_actor_id).id


@pytest.fixture
def draft_id(facade, make_entry, test_actor_id):
    return facade.create_journal(make_entry(), test_actor_id).id


class TestPostedJournalEntry:
    """Posted entries are frozen."""

    def test_field_update_blocked(self, session, posted_id):
        entry = session.get(JournalEntry, posted_id)
        entry.description = "rewritten"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "JournalEntry"
        assert "description" in exc_info.value.reason

    def test_unposting_blocked(self, session, posted_id):
        entry = session.get(JournalEntry, posted_id)
        entry.status = JournalStatus.DRAFT.value

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, posted_id):
        session.delete(session.get(JournalEntry, posted_id))

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_line_update_blocked(self, session, posted_id):
        entry = session.get(JournalEntry, posted_id)
        entry.lines[0].narrative = "edited after posting"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "JournalLine"

    def test_violation_is_logged(self, session, posted_id, captured_logs):
        session.get(JournalEntry, posted_id).reference = "X-1"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

        blocked = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert blocked[0]["field"] == "reference"
        assert blocked[0]["operation"] == "UPDATE"


class TestDraftJournalEntry:
    """Drafts remain mutable until posted."""

    def test_draft_update_allowed(self, session, draft_id):
        entry = session.get(JournalEntry, draft_id)
        entry.description = "corrected"
        entry.lines[0].narrative = "corrected line"
        session.flush()

    def test_posting_transition_allowed(self, session, draft_id, deterministic_clock):
        entry = session.get(JournalEntry, draft_id)
        entry.status = JournalStatus.POSTED.value
        entry.posted_at = deterministic_clock.now()
        entry.posted_by = "poster"
        session.flush()

        entry.description = "after the fact"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestAuditLog:
    """Audit records are append-only."""

    def test_update_blocked(self, session, january):
        record = session.execute(select(AuditLog)).scalars().first()
        record.details = "tampered"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, january):
        session.delete(session.execute(select(AuditLog)).scalars().first())

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestUnregister:
    def test_unregistered_listeners_allow_changes(self, session, posted_id):
        unregister_immutability_listeners()

        entry = session.get(JournalEntry, posted_id)
        entry.description = "maintenance fix"
        session.flush()

        assert session.get(JournalEntry, posted_id).description == "maintenance fix"
