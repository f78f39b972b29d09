"""
Accounting period lifecycle tests.

Verifies:
- Valid ranges only; no overlap within a company, adjacent periods allowed
- Close is blocked while draft journals remain
- Reopen proceeds in reverse-chronological order
- Delete only while open and unreferenced
- One audit record per successful mutation, none on failure
"""

from datetime import UTC, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import PeriodInput
from ledger_kernel.exceptions import (
    CannotDeleteClosedPeriodError,
    CompanyNotFoundError,
    DraftJournalsExistError,
    ErrorKind,
    InvalidPeriodRangeError,
    LaterPeriodClosedError,
    PeriodAlreadyClosedError,
    PeriodError,
    PeriodInUseError,
    PeriodNotClosedError,
    PeriodNotFoundError,
    PeriodOverlapError,
    ValidationError,
)
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.audit_log import AuditLog

JAN_START = datetime(2024, 1, 1, tzinfo=UTC)
JAN_END = datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC)
FEB_START = datetime(2024, 2, 1, tzinfo=UTC)
FEB_END = datetime(2024, 2, 29, 23, 59, 59, tzinfo=UTC)
MAR_START = datetime(2024, 3, 1, tzinfo=UTC)
MAR_END = datetime(2024, 3, 31, 23, 59, 59, tzinfo=UTC)
PLUS_FIVE = timezone(timedelta(hours=5))


@pytest.fixture
def create_period(facade, company_id, test_actor_id):
    def _create(start, end, company=None, name=None):
        return facade.create_period(
            PeriodInput(company_id=company or company_id, start=start, end=end, name=name),
            test_actor_id,
        )

    return _create


class TestCreatePeriod:
    """Range and overlap rules."""

    def test_period_created_open(self, create_period, company_id):
        period = create_period(JAN_START, JAN_END, name="2024-01")

        assert period.company_id == company_id
        assert period.name == "2024-01"
        assert period.is_open
        assert period.closed_at is None

    def test_end_must_be_after_start(self, create_period):
        with pytest.raises(InvalidPeriodRangeError):
            create_period(JAN_END, JAN_START)

    def test_zero_length_period_rejected(self, create_period):
        with pytest.raises(InvalidPeriodRangeError):
            create_period(JAN_START, JAN_START)

    def test_naive_bounds_rejected(self, create_period):
        with pytest.raises(ValidationError):
            create_period(datetime(2024, 1, 1), JAN_END)
        with pytest.raises(ValidationError):
            create_period(datetime(2024, 1, 1), datetime(2024, 1, 31))

    def test_offset_bounds_stored_as_utc(self, create_period):
        period = create_period(
            datetime(2024, 1, 1, 5, 0, tzinfo=PLUS_FIVE),
            datetime(2024, 2, 1, 4, 59, 59, tzinfo=PLUS_FIVE),
        )
        assert period.start == JAN_START
        assert period.start.tzinfo is UTC
        assert period.end == JAN_END

    def test_overlap_detected_across_offsets(self, create_period):
        create_period(JAN_START, JAN_END)
        # 2024-01-31 19:00 UTC, inside January
        with pytest.raises(PeriodOverlapError):
            create_period(datetime(2024, 2, 1, tzinfo=PLUS_FIVE), FEB_END)

    def test_unknown_company_rejected(self, create_period, db_engine):
        with pytest.raises(CompanyNotFoundError):
            create_period(JAN_START, JAN_END, company=uuid4())

    def test_overlap_rejected(self, create_period):
        january = create_period(JAN_START, JAN_END)

        with pytest.raises(PeriodOverlapError) as exc_info:
            create_period(datetime(2024, 1, 15, tzinfo=UTC), FEB_END)

        assert exc_info.value.existing_period_id == str(january.id)

    def test_containing_range_rejected(self, create_period):
        create_period(FEB_START, FEB_END)
        with pytest.raises(PeriodOverlapError):
            create_period(JAN_START, MAR_END)

    def test_shared_boundary_instant_overlaps(self, create_period):
        create_period(JAN_START, JAN_END)
        with pytest.raises(PeriodOverlapError):
            create_period(JAN_END, FEB_END)

    def test_adjacent_periods_allowed(self, create_period):
        create_period(JAN_START, JAN_END)
        february = create_period(JAN_END + timedelta(seconds=1), FEB_END)
        assert february.start == FEB_START

    def test_overlap_only_checked_within_company(self, create_period, other_company_id):
        create_period(JAN_START, JAN_END)
        foreign = create_period(JAN_START, JAN_END, company=other_company_id)
        assert foreign.company_id == other_company_id

    def test_create_appends_one_audit_record(self, create_period, count_rows, company_id):
        before = count_rows(AuditLog)
        create_period(JAN_START, JAN_END)
        assert count_rows(AuditLog) == before + 1

    def test_failed_create_writes_nothing(self, create_period, count_rows):
        create_period(JAN_START, JAN_END)
        periods_before = count_rows(AccountingPeriod)
        audit_before = count_rows(AuditLog)

        with pytest.raises(PeriodOverlapError):
            create_period(JAN_START, FEB_END)

        assert count_rows(AccountingPeriod) == periods_before
        assert count_rows(AuditLog) == audit_before


class TestClosePeriod:
    """Close rules."""

    def test_close_sets_closed_fields(self, facade, january, deterministic_clock):
        closed = facade.close_period(january.id, "closer")

        assert closed.is_closed
        assert closed.closed_by == "closer"
        assert closed.closed_at == deterministic_clock.now()

    def test_close_blocked_by_draft_then_allowed_after_post(
        self, facade, january, make_entry, test_actor_id
    ):
        draft = facade.create_journal(make_entry(), test_actor_id)

        with pytest.raises(DraftJournalsExistError) as exc_info:
            facade.close_period(january.id, test_actor_id)

        assert exc_info.value.draft_count == 1
        assert "draft journal" in str(exc_info.value)
        assert facade.get_period_by_id(january.id).is_open

        facade.post_journal(draft.id, test_actor_id)
        assert facade.close_period(january.id, test_actor_id).is_closed

    def test_close_twice_rejected(self, facade, january, test_actor_id):
        facade.close_period(january.id, test_actor_id)
        with pytest.raises(PeriodAlreadyClosedError):
            facade.close_period(january.id, test_actor_id)

    def test_close_unknown_period(self, facade, db_engine, test_actor_id):
        with pytest.raises(PeriodNotFoundError):
            facade.close_period(uuid4(), test_actor_id)


class TestReopenPeriod:
    """Reverse-chronological reopen."""

    def test_reopen_clears_closed_fields(self, facade, january, test_actor_id):
        facade.close_period(january.id, test_actor_id)
        reopened = facade.reopen_period(january.id, test_actor_id)

        assert reopened.is_open
        assert reopened.closed_at is None
        assert reopened.closed_by is None

    def test_reopen_open_period_rejected(self, facade, january, test_actor_id):
        with pytest.raises(PeriodNotClosedError):
            facade.reopen_period(january.id, test_actor_id)

    def test_reopen_blocked_by_later_closed_period(
        self, facade, create_period, january, test_actor_id
    ):
        february = create_period(FEB_START, FEB_END)
        facade.close_period(january.id, test_actor_id)
        facade.close_period(february.id, test_actor_id)

        with pytest.raises(LaterPeriodClosedError) as exc_info:
            facade.reopen_period(january.id, test_actor_id)
        assert exc_info.value.later_period_id == str(february.id)

        facade.reopen_period(february.id, test_actor_id)
        assert facade.reopen_period(january.id, test_actor_id).is_open

    def test_earlier_closed_period_does_not_block(
        self, facade, create_period, january, test_actor_id
    ):
        february = create_period(FEB_START, FEB_END)
        facade.close_period(january.id, test_actor_id)
        facade.close_period(february.id, test_actor_id)

        assert facade.reopen_period(february.id, test_actor_id).is_open

    def test_other_company_closed_period_does_not_block(
        self, facade, create_period, january, other_company_id, test_actor_id
    ):
        foreign_feb = create_period(FEB_START, FEB_END, company=other_company_id)
        facade.close_period(january.id, test_actor_id)
        facade.close_period(foreign_feb.id, test_actor_id)

        assert facade.reopen_period(january.id, test_actor_id).is_open


class TestDeletePeriod:
    """Delete rules."""

    def test_delete_open_unused_period(self, facade, january, test_actor_id, count_rows):
        audit_before = count_rows(AuditLog)
        facade.delete_period(january.id, test_actor_id)

        assert facade.get_period_by_id(january.id) is None
        assert count_rows(AuditLog) == audit_before + 1

    def test_delete_closed_period_rejected(self, facade, january, test_actor_id):
        facade.close_period(january.id, test_actor_id)
        with pytest.raises(CannotDeleteClosedPeriodError):
            facade.delete_period(january.id, test_actor_id)

    def test_delete_referenced_period_rejected(
        self, facade, january, make_entry, test_actor_id
    ):
        facade.create_journal(make_entry(), test_actor_id)

        with pytest.raises(PeriodInUseError) as exc_info:
            facade.delete_period(january.id, test_actor_id)

        assert exc_info.value.journal_count == 1
        assert facade.get_period_by_id(january.id) is not None

    def test_delete_unknown_period(self, facade, db_engine, test_actor_id):
        with pytest.raises(PeriodNotFoundError):
            facade.delete_period(uuid4(), test_actor_id)


class TestPeriodQueries:
    """Lookups."""

    def test_company_filter_hides_foreign_period(
        self, facade, january, company_id, other_company_id
    ):
        assert facade.get_period_by_id(january.id, company_id).id == january.id
        assert facade.get_period_by_id(january.id, other_company_id) is None

    def test_list_by_company_newest_first(self, facade, create_period, company_id, other_company_id):
        create_period(JAN_START, JAN_END)
        create_period(MAR_START, MAR_END)
        create_period(FEB_START, FEB_END)
        create_period(JAN_START, JAN_END, company=other_company_id)

        periods = facade.get_periods_by_company(company_id)

        assert [p.start for p in periods] == [MAR_START, FEB_START, JAN_START]

    def test_period_errors_share_a_kind(self):
        assert issubclass(LaterPeriodClosedError, PeriodError)
        assert PeriodInUseError.kind is ErrorKind.BUSINESS_RULE
        assert PeriodNotFoundError.kind is ErrorKind.NOT_FOUND
