# Overview: Daily expiry reminder job; texts (and optionally emails) members whose membership ends soon.

"""
Expiry reminders.

WHY: Members renew more reliably when warned a few days ahead. The job runs
once a day from the scheduler and can be re-run by hand (CLI) without
double-texting anyone.

DESIGN:
- Nothing happens unless settings.notification_settings.smsAlerts is on.
- Window: the whole UTC day EXPIRY_REMINDER_DAYS from today.
- Each membership is claimed with a conditional UPDATE of
  last_notification_date before sending, so two workers running the job
  at once cannot both text the same member. A row already stamped today
  is skipped.
- A failed send is logged and recorded; the membership is left unstamped
  so the next run retries it (the claim is released). Other members are
  still processed.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Membership
from ..membership_rules import STATUS_ACTIVE
from ..models.notifications import NOTIFICATION_SENT
from . import notification_service, settings_service
from .notification_service import NotificationError
from gymdesk.time_utils import end_of_day, format_date_indian, start_of_day, utcnow


logger = logging.getLogger(__name__)

KIND_EXPIRY_REMINDER = "EXPIRY_REMINDER"


def reminder_window(now=None, days: int | None = None):
    now = now or utcnow()
    if days is None:
        days = current_app.config.get("EXPIRY_REMINDER_DAYS", 3)
    target = now + timedelta(days=days)
    return start_of_day(target), end_of_day(target)


def build_message(*, member_name: str, plan_name: str, gym_name: str, end_date) -> str:
    return (
        f"Hi {member_name}, your {plan_name} at {gym_name} expires on "
        f"{format_date_indian(end_date)}. Please renew to continue your fitness journey!"
    )


def claim_for_today(membership_id: int, now) -> bool:
    """
    Stamp last_notification_date = now unless the row was stamped today.

    Returns False when another run already claimed it.
    """
    claimed = (
        db.session.query(Membership)
        .filter(
            Membership.id == membership_id,
            db.or_(
                Membership.last_notification_date.is_(None),
                Membership.last_notification_date < start_of_day(now),
            ),
        )
        .update({Membership.last_notification_date: now}, synchronize_session=False)
    )
    db.session.commit()
    return claimed == 1


def release_claim(membership_id: int, now, previous) -> None:
    """Undo claim_for_today after a send that did not go out."""
    db.session.query(Membership).filter(
        Membership.id == membership_id,
        Membership.last_notification_date == now,
    ).update({Membership.last_notification_date: previous}, synchronize_session=False)
    db.session.commit()


def find_expiring_memberships(now=None, days: int | None = None) -> list[Membership]:
    start, end = reminder_window(now, days)
    return (
        db.session.query(Membership)
        .filter(
            Membership.status == STATUS_ACTIVE,
            Membership.end_date >= start,
            Membership.end_date <= end,
        )
        .order_by(Membership.end_date.asc(), Membership.id.asc())
        .all()
    )


def run_expiry_reminders(now=None) -> dict:
    """
    Send reminders for memberships ending EXPIRY_REMINDER_DAYS from now.

    Returns {"checked", "sent", "skipped", "failed"}; "enabled" is False
    when SMS alerts are switched off in settings.
    """
    now = now or utcnow()
    summary = {"enabled": True, "checked": 0, "sent": 0, "skipped": 0, "failed": 0}

    flags = settings_service.notification_flags()
    if not flags.get("smsAlerts"):
        logger.info("SMS alerts are disabled. Skipping expiry reminders.")
        summary["enabled"] = False
        return summary

    gym_name = settings_service.gym_identity()["gym_name"]
    memberships = find_expiring_memberships(now)
    summary["checked"] = len(memberships)
    logger.info("Found %d memberships expiring on %s", len(memberships), reminder_window(now)[0].date())

    for membership in memberships:
        previous = membership.last_notification_date
        if not claim_for_today(membership.id, now):
            summary["skipped"] += 1
            continue

        user = membership.member.user
        message = build_message(
            member_name=user.full_name,
            plan_name=membership.plan_name,
            gym_name=gym_name,
            end_date=membership.end_date,
        )

        try:
            result = notification_service.send_sms(
                to=user.mobile,
                message=message,
                kind=KIND_EXPIRY_REMINDER,
                membership_id=membership.id,
            )
        except NotificationError:
            release_claim(membership.id, now, previous)
            summary["failed"] += 1
            continue

        if result.status != NOTIFICATION_SENT:
            release_claim(membership.id, now, previous)
            summary["skipped"] += 1
            continue

        if flags.get("emailAlerts") and user.email:
            try:
                notification_service.send_email(
                    to=user.email,
                    subject=f"Your {membership.plan_name} expires soon",
                    body=message,
                    kind=KIND_EXPIRY_REMINDER,
                    membership_id=membership.id,
                )
            except NotificationError:
                # SMS already went out; the email failure is on record
                pass

        summary["sent"] += 1

    logger.info(
        "Expiry reminders: checked=%d sent=%d skipped=%d failed=%d",
        summary["checked"], summary["sent"], summary["skipped"], summary["failed"],
    )
    return summary
