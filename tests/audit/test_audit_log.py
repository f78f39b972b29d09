"""
Audit trail tests.

Verifies:
- Records carry actor, action, details and the clock's timestamp
- history() returns newest first, optionally filtered by actor
- Period and journal operations write the expected descriptions
"""

from uuid import uuid4

from ledger_kernel.models.audit_log import AuditAction
from ledger_kernel.services.audit_service import AuditLogService, describe_period


class TestAuditLogService:
    def test_log_uses_clock(self, session, deterministic_clock):
        audit = AuditLogService(session, deterministic_clock)

        record = audit.log("alice", AuditAction.CREATE_JOURNAL, "Journal x created")

        assert record.id is not None
        assert record.action == "CreateJournal"
        assert record.occurred_at == deterministic_clock.now()

    def test_history_newest_first_and_filtered(self, session, deterministic_clock):
        audit = AuditLogService(session, deterministic_clock)
        audit.log("alice", AuditAction.CREATE_PERIOD, "first")
        deterministic_clock.advance(60)
        audit.log("bob", AuditAction.CLOSE_PERIOD, "second")
        deterministic_clock.advance(60)
        audit.log("alice", AuditAction.REOPEN_PERIOD, "third")

        assert [r.details for r in audit.history()] == ["third", "second", "first"]
        assert [r.details for r in audit.history(actor_id="alice")] == ["third", "first"]
        assert len(audit.history(limit=1)) == 1


class TestAuditDetails:
    def test_describe_period(self, january):
        text = describe_period(january.id, january.start, january.end)
        assert text == f"Period {january.id} (2024-01-01 to 2024-01-31)"

    def test_operations_write_descriptions(
        self, facade, session, deterministic_clock, january, make_entry, test_actor_id
    ):
        draft = facade.create_journal(make_entry(), test_actor_id)
        facade.post_journal(draft.id, test_actor_id)

        details = [r.details for r in AuditLogService(session).history(actor_id=test_actor_id)]

        assert f"Journal {draft.id} created" in details
        assert f"Journal {draft.id} posted" in details
        assert any(d.endswith(f"created for company {january.company_id}") for d in details)

    def test_unknown_actor_has_no_history(self, session, db_engine):
        assert AuditLogService(session).history(actor_id=str(uuid4())) == []
