# Overview: Service-layer operations for attendance; QR toggling, manual check-in/out and listings.

"""
Attendance

DESIGN:
- A visit is one Attendance row; check_out_time stays NULL while the
  member is inside.
- Only check-ins opened today (UTC) count as open. A row left open on an
  earlier day never blocks a new visit.
- Checking in needs a current ACTIVE, unexpired membership. Checking out
  never does.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Attendance, Member
from ..models.attendance import METHOD_MANUAL, METHOD_QR
from ..membership_rules import STATUS_ACTIVE, is_membership_expired
from ..pagination import paginate
from ..validation import NotFoundError, ValidationError
from . import qr_service
from .membership_service import current_membership
from gymdesk.time_utils import end_of_day, parse_iso_datetime, start_of_day, utcnow


ACTION_CHECK_IN = "CHECK_IN"
ACTION_CHECK_OUT = "CHECK_OUT"


class AttendanceError(ValueError):
    """Check-in or check-out not allowed in the member's current state."""


def _get_member(member_id) -> Member:
    member = db.session.get(Member, member_id) if member_id is not None else None
    if not member:
        raise NotFoundError("Member not found")
    return member


def open_checkin(member_id: int, now=None) -> Attendance | None:
    now = now or utcnow()
    return (
        db.session.query(Attendance)
        .filter(
            Attendance.member_id == member_id,
            Attendance.check_out_time.is_(None),
            Attendance.check_in_time >= start_of_day(now),
        )
        .order_by(Attendance.check_in_time.desc())
        .first()
    )


def _require_active_membership(member: Member, now) -> None:
    membership = current_membership(member)
    if (
        membership is None
        or membership.status != STATUS_ACTIVE
        or is_membership_expired(membership.end_date, now)
    ):
        raise AttendanceError("No active membership")


def check_in(*, member_id: int, method: str = METHOD_MANUAL) -> Attendance:
    member = _get_member(member_id)
    now = utcnow()
    if open_checkin(member.id, now):
        raise AttendanceError("Member is already checked in")
    _require_active_membership(member, now)

    attendance = Attendance(member_id=member.id, check_in_time=now, method=method)
    db.session.add(attendance)
    db.session.commit()
    return attendance


def check_out(*, member_id: int) -> Attendance:
    member = _get_member(member_id)
    attendance = open_checkin(member.id)
    if not attendance:
        raise AttendanceError("Member is not checked in")
    attendance.check_out_time = utcnow()
    db.session.commit()
    return attendance


def scan_qr(*, payload) -> tuple[Attendance, str]:
    """
    Toggle attendance from a scanned code.

    Returns (attendance, action) where action is CHECK_IN or CHECK_OUT.
    """
    data = qr_service.parse_qr_payload(payload)
    member = db.session.query(Member).filter_by(id=data["memberId"], uuid=data["uuid"]).first()
    if not member:
        raise qr_service.QRCodeError("Invalid QR code")

    if open_checkin(member.id):
        return check_out(member_id=member.id), ACTION_CHECK_OUT
    return check_in(member_id=member.id, method=METHOD_QR), ACTION_CHECK_IN


def _parse_range(start_date: str | None, end_date: str | None):
    try:
        start = parse_iso_datetime(start_date)
        end = parse_iso_datetime(end_date)
    except ValueError:
        raise ValidationError("start_date and end_date must be ISO-8601 dates")
    if end is not None and end_date and len(end_date.strip()) == 10:
        end = end_of_day(end)
    return start, end


def list_attendance(
    *,
    member_id: int | None = None,
    date: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    query = db.session.query(Attendance)

    if member_id is not None:
        query = query.filter(Attendance.member_id == member_id)

    if date:
        day, _ = _parse_range(date, None)
        query = query.filter(
            Attendance.check_in_time >= start_of_day(day),
            Attendance.check_in_time <= end_of_day(day),
        )
    else:
        start, end = _parse_range(start_date, end_date)
        if start is not None:
            query = query.filter(Attendance.check_in_time >= start)
        if end is not None:
            query = query.filter(Attendance.check_in_time <= end)

    query = query.order_by(Attendance.check_in_time.desc(), Attendance.id.desc())
    return paginate(query, page=page, limit=limit, serialize=lambda a: a.to_dict(include_member=True))


def member_history(*, member_id: int, page: int | None = None, limit: int | None = None) -> dict:
    query = (
        db.session.query(Attendance)
        .filter(Attendance.member_id == member_id)
        .order_by(Attendance.check_in_time.desc(), Attendance.id.desc())
    )
    return paginate(query, page=page, limit=limit, serialize=lambda a: a.to_dict())


def today_summary(now=None) -> dict:
    """{"today": visits started today, "currently_in": of those, still open}."""
    now = now or utcnow()
    base = db.session.query(Attendance).filter(Attendance.check_in_time >= start_of_day(now))
    return {
        "today": base.count(),
        "currently_in": base.filter(Attendance.check_out_time.is_(None)).count(),
    }


def count_for_member_since(member_id: int, since) -> int:
    return (
        db.session.query(Attendance)
        .filter(Attendance.member_id == member_id, Attendance.check_in_time >= since)
        .count()
    )
