# Overview: Service-layer operations for membership lifecycle (freeze, cancel, expiry).

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Member, Membership
from ..membership_rules import (
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_EXPIRED,
    STATUS_FROZEN,
    calculate_end_date,
    frozen_days_between,
    is_membership_expired,
)
from ..validation import NotFoundError
from .concurrency import lock_for_update, run_with_retry
from gymdesk.time_utils import utcnow


logger = logging.getLogger(__name__)


class MembershipStateError(ValueError):
    """Transition not allowed from the membership's current status."""


def get_membership(membership_id: int) -> Membership:
    membership = db.session.get(Membership, membership_id)
    if not membership:
        raise NotFoundError("Membership not found")
    return membership


def current_membership(member: Member, now=None) -> Membership | None:
    """
    Most recent ACTIVE or FROZEN membership of a member.

    An ACTIVE row past its end date still counts here; callers read
    effective_status() to present it as EXPIRED.
    """
    return (
        db.session.query(Membership)
        .filter(
            Membership.member_id == member.id,
            Membership.status.in_((STATUS_ACTIVE, STATUS_FROZEN)),
        )
        .order_by(Membership.start_date.desc(), Membership.id.desc())
        .first()
    )


def create_membership(*, member: Member, plan, start_date=None) -> Membership:
    """
    Add an ACTIVE membership for member on plan. Does not commit.

    end_date = start_date + plan.duration_days exactly.
    """
    start = start_date or utcnow()
    membership = Membership(
        member_id=member.id,
        plan_id=plan.id,
        plan_name=plan.name,
        duration_days=plan.duration_days,
        start_date=start,
        end_date=calculate_end_date(start, plan.duration_days),
        status=STATUS_ACTIVE,
        frozen_days=0,
    )
    db.session.add(membership)
    db.session.flush()
    return membership


def freeze_membership(*, membership_id: int) -> Membership:
    """ACTIVE -> FROZEN. The freeze clock starts now."""
    def _op():
        membership = lock_for_update(
            db.session.query(Membership).filter_by(id=membership_id)
        ).first()
        if not membership:
            raise NotFoundError("Membership not found")
        now = utcnow()
        if membership.status != STATUS_ACTIVE or is_membership_expired(membership.end_date, now):
            raise MembershipStateError("Only active memberships can be frozen")
        membership.status = STATUS_FROZEN
        membership.frozen_at = now
        db.session.commit()
        return membership

    return run_with_retry(_op)


def unfreeze_membership(*, membership_id: int) -> Membership:
    """
    FROZEN -> ACTIVE.

    The end date moves forward by the whole days spent frozen and the
    days are added to frozen_days.
    """
    def _op():
        membership = lock_for_update(
            db.session.query(Membership).filter_by(id=membership_id)
        ).first()
        if not membership:
            raise NotFoundError("Membership not found")
        if membership.status != STATUS_FROZEN:
            raise MembershipStateError("Only frozen memberships can be unfrozen")
        days = frozen_days_between(membership.frozen_at, utcnow()) if membership.frozen_at else 0
        membership.end_date = calculate_end_date(membership.end_date, days)
        membership.frozen_days = (membership.frozen_days or 0) + days
        membership.frozen_at = None
        membership.status = STATUS_ACTIVE
        db.session.commit()
        return membership

    return run_with_retry(_op)


def cancel_membership(*, membership_id: int, commit: bool = True) -> Membership:
    membership = get_membership(membership_id)
    if membership.status == STATUS_CANCELLED:
        raise MembershipStateError("Membership is already cancelled")
    membership.status = STATUS_CANCELLED
    membership.frozen_at = None
    if commit:
        db.session.commit()
    return membership


def expire_lapsed_memberships(now=None) -> int:
    """Mark ACTIVE memberships whose end_date has passed as EXPIRED."""
    now = now or utcnow()
    updated = (
        db.session.query(Membership)
        .filter(Membership.status == STATUS_ACTIVE, Membership.end_date < now)
        .update({Membership.status: STATUS_EXPIRED}, synchronize_session=False)
    )
    db.session.commit()
    if updated:
        logger.info("Expired %d lapsed memberships", updated)
    return updated
