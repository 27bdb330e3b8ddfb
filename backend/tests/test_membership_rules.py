# Overview: Pytest coverage for membership date arithmetic.

from datetime import datetime, timedelta

from gymdesk.membership_rules import (
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_EXPIRED,
    STATUS_FROZEN,
    calculate_end_date,
    days_remaining,
    effective_status,
    frozen_days_between,
    is_membership_expired,
)


NOW = datetime(2026, 3, 15, 10, 30, 0)


class TestEndDate:
    def test_adds_exact_duration(self):
        assert calculate_end_date(NOW, 30) == datetime(2026, 4, 14, 10, 30, 0)

    def test_crosses_year_boundary(self):
        start = datetime(2026, 12, 20, 8, 0, 0)
        assert calculate_end_date(start, 365) == datetime(2027, 12, 20, 8, 0, 0)


class TestDaysRemaining:
    def test_one_second_left_counts_as_a_day(self):
        assert days_remaining(NOW + timedelta(seconds=1), NOW) == 1

    def test_whole_days(self):
        assert days_remaining(NOW + timedelta(days=30), NOW) == 30

    def test_partial_day_rounds_up(self):
        assert days_remaining(NOW + timedelta(days=2, hours=1), NOW) == 3

    def test_never_negative(self):
        assert days_remaining(NOW - timedelta(days=4), NOW) == 0


class TestStatus:
    def test_expired_only_after_end(self):
        assert not is_membership_expired(NOW, NOW)
        assert is_membership_expired(NOW - timedelta(seconds=1), NOW)

    def test_active_past_end_reads_expired(self):
        assert effective_status(STATUS_ACTIVE, NOW - timedelta(days=1), NOW) == STATUS_EXPIRED

    def test_active_before_end_stays_active(self):
        assert effective_status(STATUS_ACTIVE, NOW + timedelta(days=1), NOW) == STATUS_ACTIVE

    def test_other_statuses_unchanged(self):
        past = NOW - timedelta(days=1)
        assert effective_status(STATUS_FROZEN, past, NOW) == STATUS_FROZEN
        assert effective_status(STATUS_CANCELLED, past, NOW) == STATUS_CANCELLED


class TestFrozenDays:
    def test_whole_days_only(self):
        assert frozen_days_between(NOW - timedelta(days=5, hours=23), NOW) == 5

    def test_future_freeze_is_zero(self):
        assert frozen_days_between(NOW + timedelta(hours=1), NOW) == 0
