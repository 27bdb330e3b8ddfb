# Overview: Outbound SMS (Twilio REST via httpx) and email (Flask-Mail), logged as Notification rows.

"""
Notification delivery.

DESIGN:
- deliver_sms / deliver_email only talk to the provider and raise
  NotificationError on failure.
- send_sms / send_email wrap them and always leave a Notification row:
  SENT, FAILED (with the error) or SKIPPED when the channel has no
  credentials configured.
"""

from __future__ import annotations

import logging

import httpx
from flask import current_app
from flask_mail import Message

from ..extensions import db, mail
from ..models import Notification
from ..models.notifications import (
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    NOTIFICATION_FAILED,
    NOTIFICATION_SENT,
    NOTIFICATION_SKIPPED,
)


logger = logging.getLogger(__name__)

SMS_TIMEOUT = 15.0


class NotificationError(Exception):
    """The provider rejected the message or could not be reached."""
    pass


def sms_configured() -> bool:
    cfg = current_app.config
    return bool(cfg.get("TWILIO_ACCOUNT_SID") and cfg.get("TWILIO_AUTH_TOKEN") and cfg.get("TWILIO_PHONE_NUMBER"))


def email_configured() -> bool:
    cfg = current_app.config
    return bool(cfg.get("MAIL_SERVER") and cfg.get("MAIL_DEFAULT_SENDER"))


def deliver_sms(to: str, message: str) -> str:
    """POST to Twilio Messages.json. Returns the provider message sid."""
    cfg = current_app.config
    sid = cfg["TWILIO_ACCOUNT_SID"]
    url = f"{cfg.get('TWILIO_API_URL', 'https://api.twilio.com/2010-04-01').rstrip('/')}/Accounts/{sid}/Messages.json"

    try:
        response = httpx.post(
            url,
            data={"To": to, "From": cfg["TWILIO_PHONE_NUMBER"], "Body": message},
            auth=(sid, cfg["TWILIO_AUTH_TOKEN"]),
            timeout=SMS_TIMEOUT,
        )
    except httpx.HTTPError as exc:
        raise NotificationError(f"SMS gateway unreachable: {exc}") from exc

    if response.status_code >= 400:
        raise NotificationError(f"SMS gateway returned {response.status_code}: {response.text[:200]}")
    return response.json().get("sid", "")


def deliver_email(to: str, subject: str, body: str) -> None:
    try:
        mail.send(Message(subject=subject, recipients=[to], body=body))
    except Exception as exc:
        # smtplib and socket errors share no common base worth narrowing to
        raise NotificationError(f"Email delivery failed: {exc}") from exc


def _record(**fields) -> Notification:
    notification = Notification(**fields)
    db.session.add(notification)
    db.session.commit()
    return notification


def send_sms(*, to: str, message: str, kind: str = "GENERAL", membership_id: int | None = None) -> Notification:
    """
    Send one SMS and log it. Raises NotificationError after logging a FAILED row.
    """
    if not sms_configured():
        logger.info("SMS not configured; skipping message to %s", to)
        return _record(channel=CHANNEL_SMS, kind=kind, recipient=to, message=message,
                       status=NOTIFICATION_SKIPPED, membership_id=membership_id)

    try:
        provider_ref = deliver_sms(to, message)
    except NotificationError as exc:
        logger.exception("Failed to send SMS to %s", to)
        _record(channel=CHANNEL_SMS, kind=kind, recipient=to, message=message,
                status=NOTIFICATION_FAILED, error=str(exc), membership_id=membership_id)
        raise

    return _record(channel=CHANNEL_SMS, kind=kind, recipient=to, message=message,
                   status=NOTIFICATION_SENT, provider_ref=provider_ref or None, membership_id=membership_id)


def send_email(
    *,
    to: str,
    subject: str,
    body: str,
    kind: str = "GENERAL",
    membership_id: int | None = None,
) -> Notification:
    if not email_configured():
        logger.info("Email not configured; skipping message to %s", to)
        return _record(channel=CHANNEL_EMAIL, kind=kind, recipient=to, subject=subject, message=body,
                       status=NOTIFICATION_SKIPPED, membership_id=membership_id)

    try:
        deliver_email(to, subject, body)
    except NotificationError as exc:
        logger.exception("Failed to send email to %s", to)
        _record(channel=CHANNEL_EMAIL, kind=kind, recipient=to, subject=subject, message=body,
                status=NOTIFICATION_FAILED, error=str(exc), membership_id=membership_id)
        raise

    return _record(channel=CHANNEL_EMAIL, kind=kind, recipient=to, subject=subject, message=body,
                   status=NOTIFICATION_SENT, membership_id=membership_id)


def list_notifications(*, limit: int = 50) -> list[Notification]:
    return (
        db.session.query(Notification)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(min(max(limit, 1), 200))
        .all()
    )
