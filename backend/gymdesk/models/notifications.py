from __future__ import annotations

from ..extensions import db
from gymdesk.time_utils import to_utc_z


CHANNEL_SMS = "SMS"
CHANNEL_EMAIL = "EMAIL"

NOTIFICATION_SENT = "SENT"
NOTIFICATION_FAILED = "FAILED"
NOTIFICATION_SKIPPED = "SKIPPED"


class Notification(db.Model):
    """
    Outbound message log (SMS and email).

    SKIPPED means the channel was not configured; the message is still
    recorded so admins can see what would have gone out.
    """
    __tablename__ = "notifications"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    channel = db.Column(db.String(8), nullable=False)
    kind = db.Column(db.String(32), nullable=False)
    recipient = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(8), nullable=False)
    error = db.Column(db.Text, nullable=True)
    provider_ref = db.Column(db.String(64), nullable=True)
    membership_id = db.Column(db.Integer, db.ForeignKey("memberships.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "channel": self.channel,
            "kind": self.kind,
            "recipient": self.recipient,
            "subject": self.subject,
            "message": self.message,
            "status": self.status,
            "error": self.error,
            "provider_ref": self.provider_ref,
            "membership_id": self.membership_id,
            "created_at": to_utc_z(self.created_at),
        }
