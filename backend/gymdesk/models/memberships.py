from __future__ import annotations

from ..extensions import db
from gymdesk.membership_rules import STATUS_ACTIVE, days_remaining, effective_status
from gymdesk.pricing import bps_to_percent
from gymdesk.time_utils import to_utc_z


class MembershipPlan(db.Model):
    """
    Catalog entry a member subscribes to.

    final_price_cents is stored, not derived on read, so historical
    pricing survives GST configuration changes.
    """
    __tablename__ = "membership_plans"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    duration_days = db.Column(db.Integer, nullable=False)
    base_price_cents = db.Column(db.Integer, nullable=False)
    gst_bps = db.Column(db.Integer, nullable=False, default=0)
    final_price_cents = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=True)
    features = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    memberships = db.relationship("Membership", back_populates="plan", lazy=True)
    payments = db.relationship("Payment", back_populates="plan", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "duration_days": self.duration_days,
            "base_price_cents": self.base_price_cents,
            "gst_percent": bps_to_percent(self.gst_bps or 0),
            "final_price_cents": self.final_price_cents,
            "description": self.description,
            "features": list(self.features or []),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Membership(db.Model):
    """
    A member's subscription to a plan for [start_date, end_date).

    plan_name and duration_days are copied from the plan at purchase so
    receipts stay printable after a plan is edited or deleted.
    """
    __tablename__ = "memberships"
    __table_args__ = (
        db.Index("ix_memberships_status_end", "status", "end_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("membership_plans.id", ondelete="SET NULL"), nullable=True, index=True)
    plan_name = db.Column(db.String(120), nullable=False)
    duration_days = db.Column(db.Integer, nullable=False)

    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_ACTIVE)

    frozen_days = db.Column(db.Integer, nullable=False, default=0)
    frozen_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Expiry reminder dedup
    last_notification_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    member = db.relationship("Member", back_populates="memberships")
    plan = db.relationship("MembershipPlan", back_populates="memberships")
    payments = db.relationship("Payment", back_populates="membership", lazy=True, cascade="all, delete-orphan")

    def to_dict(self, now=None, include_plan: bool = True) -> dict:
        data = {
            "id": self.id,
            "member_id": self.member_id,
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "duration_days": self.duration_days,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "status": effective_status(self.status, self.end_date, now),
            "frozen_days": self.frozen_days,
            "days_remaining": days_remaining(self.end_date, now),
            "last_notification_date": to_utc_z(self.last_notification_date),
        }
        if include_plan:
            data["plan"] = self.plan.to_dict() if self.plan else None
        return data
