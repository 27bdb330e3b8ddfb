from __future__ import annotations

from ..extensions import db
from gymdesk.time_utils import to_utc_z


PAYMENT_METHODS = ("RAZORPAY", "UPI", "CASH", "BANK_TRANSFER")
MANUAL_PAYMENT_METHODS = ("UPI", "CASH", "BANK_TRANSFER")

PAYMENT_PENDING = "PENDING"
PAYMENT_COMPLETED = "COMPLETED"
PAYMENT_FAILED = "FAILED"
PAYMENT_REFUNDED = "REFUNDED"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_COMPLETED, PAYMENT_FAILED, PAYMENT_REFUNDED)


class Payment(db.Model):
    """
    One row per money movement for a membership.

    invoice_number is unique; numbers are allocated from the sequences
    table, never derived from the last stored invoice.
    A gateway checkout starts as a PENDING row holding the order, member,
    plan and amount; it gets its invoice number and membership only once
    the checkout verifies. gst_bps is the rate charged, kept for the invoice.
    gateway_payment_id is unique so a verified gateway payment can only
    be recorded once.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), nullable=True, unique=True, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    membership_id = db.Column(db.Integer, db.ForeignKey("memberships.id", ondelete="CASCADE"), nullable=True, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("membership_plans.id", ondelete="SET NULL"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    gst_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    gst_bps = db.Column(db.Integer, nullable=False, default=0)
    payment_method = db.Column(db.String(16), nullable=False)

    gateway_order_id = db.Column(db.String(64), nullable=True, unique=True, index=True)
    gateway_payment_id = db.Column(db.String(64), nullable=True, unique=True)

    status = db.Column(db.String(16), nullable=False, default=PAYMENT_PENDING)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    member = db.relationship("Member", back_populates="payments")
    membership = db.relationship("Membership", back_populates="payments")
    plan = db.relationship("MembershipPlan", back_populates="payments")

    def to_dict(self, include_member: bool = False, include_membership: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "member_id": self.member_id,
            "membership_id": self.membership_id,
            "plan_id": self.plan_id,
            "amount_cents": self.amount_cents,
            "gst_amount_cents": self.gst_amount_cents,
            "gst_bps": self.gst_bps,
            "payment_method": self.payment_method,
            "gateway_order_id": self.gateway_order_id,
            "gateway_payment_id": self.gateway_payment_id,
            "status": self.status,
            "paid_at": to_utc_z(self.paid_at),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "refunded_at": to_utc_z(self.refunded_at),
        }
        if include_member and self.member:
            data["member"] = self.member.to_dict(include_user=True)
        if include_membership and self.membership:
            data["membership"] = self.membership.to_dict()
        return data


class Sequence(db.Model):
    """
    Named, atomically incremented counters.

    WHY: Invoice numbers and member codes must never repeat, even when two
    requests allocate at the same moment. Each allocation is a single
    UPDATE ... SET next_number = next_number + 1 on one row.

    Names: "INVOICE-<year>" (one counter per calendar year) and "MEMBER".
    """
    __tablename__ = "sequences"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_sequences_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
