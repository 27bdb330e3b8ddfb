"""
Membership lifecycle rules.

Pure date arithmetic shared by models, services and the scheduler.
All datetimes are naive UTC (see time_utils.utcnow).
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from .time_utils import utcnow


STATUS_ACTIVE = "ACTIVE"
STATUS_EXPIRED = "EXPIRED"
STATUS_FROZEN = "FROZEN"
STATUS_CANCELLED = "CANCELLED"

MEMBERSHIP_STATUSES = (STATUS_ACTIVE, STATUS_EXPIRED, STATUS_FROZEN, STATUS_CANCELLED)

SECONDS_PER_DAY = 24 * 60 * 60


def calculate_end_date(start_date: datetime, duration_days: int) -> datetime:
    """end_date = start_date + duration_days, to the second."""
    return start_date + timedelta(days=duration_days)


def is_membership_expired(end_date: datetime, now: datetime | None = None) -> bool:
    now = now or utcnow()
    return end_date < now


def days_remaining(end_date: datetime, now: datetime | None = None) -> int:
    """
    Whole days left, rounded up: max(0, ceil((end_date - now) / 1 day)).

    A membership ending in 1 second still has 1 day remaining.
    """
    now = now or utcnow()
    seconds = (end_date - now).total_seconds()
    return max(0, math.ceil(seconds / SECONDS_PER_DAY))


def effective_status(status: str, end_date: datetime, now: datetime | None = None) -> str:
    """
    Stored status corrected for time: an ACTIVE membership past its
    end date reads as EXPIRED even before the nightly job updates it.
    """
    if status == STATUS_ACTIVE and is_membership_expired(end_date, now):
        return STATUS_EXPIRED
    return status


def frozen_days_between(frozen_at: datetime, now: datetime | None = None) -> int:
    now = now or utcnow()
    if now <= frozen_at:
        return 0
    return int((now - frozen_at).total_seconds() // SECONDS_PER_DAY)
