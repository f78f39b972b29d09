"""Clock tests."""

from datetime import UTC, datetime

from ledger_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_now_is_stable(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()
        assert clock.now().tzinfo is UTC

    def test_advance_and_tick(self):
        clock = DeterministicClock(datetime(2024, 6, 30, 23, 59, 58, tzinfo=UTC))
        clock.advance(1)
        assert clock.tick() == datetime(2024, 7, 1, tzinfo=UTC)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(3600)
        target = datetime(2025, 1, 1, tzinfo=UTC)
        clock.set_time(target)
        assert clock.now() == target


class TestSystemClock:
    def test_returns_aware_utc(self):
        now = SystemClock().now()
        assert now.tzinfo is UTC
