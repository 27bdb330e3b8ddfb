# Overview: Aggregates for the admin dashboard and the member portal home page.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import Member, Membership, Payment
from ..models.payments import PAYMENT_COMPLETED, PAYMENT_PENDING
from ..membership_rules import STATUS_ACTIVE, STATUS_EXPIRED
from . import attendance_service, payment_service, progress_service, workout_service
from .membership_service import current_membership
from gymdesk.time_utils import previous_month_start, start_of_month, utcnow


RECENT_PAYMENTS = 5
EXPIRING_WITHIN_DAYS = 7
MEMBER_RECENT_ATTENDANCE = 5
MEMBER_RECENT_PROGRESS = 5


def revenue_between(start, end) -> int:
    """Sum of COMPLETED payments with paid_at in [start, end), in paise."""
    total = (
        db.session.query(db.func.coalesce(db.func.sum(Payment.amount_cents), 0))
        .filter(
            Payment.status == PAYMENT_COMPLETED,
            Payment.paid_at >= start,
            Payment.paid_at < end,
        )
        .scalar()
    )
    return int(total or 0)


def growth_percent(this_month: int, last_month: int) -> float:
    if last_month == 0:
        return 100.0 if this_month > 0 else 0.0
    return round((this_month - last_month) / last_month * 100, 1)


def _member_counts(now) -> dict:
    def with_membership(*criteria):
        return (
            db.session.query(db.func.count(db.distinct(Membership.member_id)))
            .filter(*criteria)
            .scalar()
        ) or 0

    active = with_membership(Membership.status == STATUS_ACTIVE, Membership.end_date >= now)
    lapsed = db.session.query(Membership.member_id).filter(
        db.or_(
            Membership.status == STATUS_EXPIRED,
            db.and_(Membership.status == STATUS_ACTIVE, Membership.end_date < now),
        )
    )
    still_active = db.session.query(Membership.member_id).filter(
        Membership.status == STATUS_ACTIVE, Membership.end_date >= now
    )
    expired = (
        db.session.query(db.func.count(Member.id))
        .filter(Member.id.in_(lapsed), ~Member.id.in_(still_active))
        .scalar()
    ) or 0

    return {
        "total": db.session.query(db.func.count(Member.id)).scalar() or 0,
        "active": active,
        "expired": expired,
        "new_this_month": (
            db.session.query(db.func.count(Member.id))
            .filter(Member.join_date >= start_of_month(now))
            .scalar()
        ) or 0,
    }


def expiring_memberships(now=None, days: int = EXPIRING_WITHIN_DAYS) -> list[Membership]:
    now = now or utcnow()
    return (
        db.session.query(Membership)
        .filter(
            Membership.status == STATUS_ACTIVE,
            Membership.end_date >= now,
            Membership.end_date <= now + timedelta(days=days),
        )
        .order_by(Membership.end_date.asc(), Membership.id.asc())
        .all()
    )


def admin_dashboard(now=None) -> dict:
    now = now or utcnow()
    this_start = start_of_month(now)
    last_start = previous_month_start(now)

    this_month = revenue_between(this_start, now + timedelta(seconds=1))
    last_month = revenue_between(last_start, this_start)

    recent = (
        db.session.query(Payment)
        .filter(Payment.status != PAYMENT_PENDING)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .limit(RECENT_PAYMENTS)
        .all()
    )

    expiring = []
    for membership in expiring_memberships(now):
        row = membership.to_dict(now=now, include_plan=False)
        row["member"] = membership.member.to_dict(include_user=True)
        expiring.append(row)

    return {
        "members": _member_counts(now),
        "attendance": attendance_service.today_summary(now),
        "revenue": {
            "this_month": this_month,
            "last_month": last_month,
            "growth": growth_percent(this_month, last_month),
        },
        "recent_payments": [p.to_dict(include_member=True) for p in recent],
        "expiring_memberships": expiring,
    }


def member_dashboard(member: Member, now=None) -> dict:
    now = now or utcnow()
    membership = current_membership(member)
    workout = workout_service.active_workout(member.id)
    recent = attendance_service.member_history(member_id=member.id, page=1, limit=MEMBER_RECENT_ATTENDANCE)

    return {
        "member": member.to_dict(include_user=True),
        "membership": membership.to_dict(now=now) if membership else None,
        "attendance": {
            "this_month": attendance_service.count_for_member_since(member.id, start_of_month(now)),
            "recent": recent["items"],
        },
        "progress": [
            r.to_dict() for r in progress_service.list_records(member_id=member.id, limit=MEMBER_RECENT_PROGRESS)
        ],
        "workout": workout.to_dict() if workout else None,
        "payments": [p.to_dict() for p in payment_service.member_payments(member_id=member.id)],
    }
