# Overview: Service-layer operations for payments; encapsulates business logic and database work.

"""
Payment recording.

WHY: A payment always buys a membership. The membership, the invoice
number and the payment row are written in one transaction so a receipt
never exists without the membership it paid for (and vice versa).

DESIGN:
- Manual payments (CASH / UPI / BANK_TRANSFER) are recorded by an admin.
- A gateway checkout is recorded as a PENDING payment when the order is
  created. The order row fixes member, plan and amount; verification
  completes that row and never reads plan or member from the callback.
- Gateway payments complete only after the Razorpay signature verifies;
  an order completes once and gateway_payment_id is unique, so a replayed
  callback is rejected instead of granting a second membership.
- Invoice numbers come from sequence_service (atomic per-year counter).
  The write retries on lock and unique conflicts.
"""

from __future__ import annotations

import time

from flask import current_app

from ..extensions import db
from ..models import Member, MembershipPlan, Payment
from ..models.payments import (
    MANUAL_PAYMENT_METHODS,
    PAYMENT_COMPLETED,
    PAYMENT_PENDING,
    PAYMENT_REFUNDED,
    PAYMENT_STATUSES,
)
from ..membership_rules import STATUS_CANCELLED
from ..pagination import paginate
from ..validation import ConflictError, NotFoundError, ValidationError, require_choice
from . import gateway_service, sequence_service
from .concurrency import UNIQUE_CONFLICT_ERRORS, lock_for_update, run_with_retry
from .membership_service import create_membership
from gymdesk.time_utils import end_of_day, parse_iso_datetime, utcnow


METHOD_RAZORPAY = "RAZORPAY"
DEFAULT_MANUAL_METHOD = "CASH"


class PaymentError(ValueError):
    """Payment request rejected (inactive plan, wrong state, bad method)."""


def _load_member(member_id) -> Member:
    member = db.session.get(Member, member_id) if member_id is not None else None
    if not member:
        raise NotFoundError("Member not found")
    return member


def get_purchasable_plan(plan_id) -> MembershipPlan:
    plan = db.session.get(MembershipPlan, plan_id) if plan_id is not None else None
    if not plan:
        raise NotFoundError("Plan not found")
    if not plan.is_active:
        raise PaymentError("Plan is not available for purchase")
    return plan


def _complete(payment: Payment, *, member: Member, plan: MembershipPlan) -> Payment:
    """Attach a fresh membership and invoice number to payment. Does not commit."""
    now = utcnow()
    membership = create_membership(member=member, plan=plan, start_date=now)
    payment.membership_id = membership.id
    payment.invoice_number = sequence_service.next_invoice_number(now.year)
    payment.status = PAYMENT_COMPLETED
    payment.paid_at = now
    return payment


def _record(
    *,
    member_id: int,
    plan_id: int,
    payment_method: str,
    notes: str | None = None,
    recorded_by_user_id: int | None = None,
) -> Payment:
    """Create membership + payment atomically. Caller has validated inputs."""
    sequence_service.ensure_sequence(sequence_service.invoice_sequence_name(utcnow().year))

    def _op() -> Payment:
        member = _load_member(member_id)
        plan = get_purchasable_plan(plan_id)

        payment = Payment(
            member_id=member.id,
            plan_id=plan.id,
            amount_cents=plan.final_price_cents,
            gst_amount_cents=plan.final_price_cents - plan.base_price_cents,
            gst_bps=plan.gst_bps,
            payment_method=payment_method,
            notes=notes,
            recorded_by_user_id=recorded_by_user_id,
        )
        _complete(payment, member=member, plan=plan)
        db.session.add(payment)
        db.session.commit()
        return payment

    return run_with_retry(_op, retry_on=UNIQUE_CONFLICT_ERRORS)


def record_manual_payment(
    *,
    member_id: int,
    plan_id: int,
    payment_method: str | None = None,
    notes: str | None = None,
    recorded_by_user_id: int | None = None,
) -> Payment:
    method = require_choice("payment_method", payment_method or DEFAULT_MANUAL_METHOD, MANUAL_PAYMENT_METHODS)
    _load_member(member_id)
    get_purchasable_plan(plan_id)
    notes = (notes or "").strip() or None

    payment = _record(
        member_id=member_id,
        plan_id=plan_id,
        payment_method=method,
        notes=notes,
        recorded_by_user_id=recorded_by_user_id,
    )
    current_app.logger.info("Recorded %s payment %s for member %s", method, payment.invoice_number, member_id)
    return payment


def create_gateway_order(*, member_id: int, plan_id: int) -> dict:
    """
    Create a Razorpay order for the plan's final price and keep it as a
    PENDING payment.

    Returns what the browser checkout needs: order id, amount in paise,
    currency, public key id and the member's contact details.
    """
    if not gateway_service.is_configured():
        raise gateway_service.GatewayNotConfiguredError()

    plan = get_purchasable_plan(plan_id)
    member = _load_member(member_id)

    order = gateway_service.create_order(
        amount_cents=plan.final_price_cents,
        receipt=f"NAZ_{int(time.time() * 1000)}",
        notes={
            "member_id": str(member.id),
            "plan_id": str(plan.id),
            "member_name": member.user.full_name,
        },
    )

    pending = Payment(
        member_id=member.id,
        plan_id=plan.id,
        amount_cents=plan.final_price_cents,
        gst_amount_cents=plan.final_price_cents - plan.base_price_cents,
        gst_bps=plan.gst_bps,
        payment_method=METHOD_RAZORPAY,
        gateway_order_id=order["id"],
        status=PAYMENT_PENDING,
    )
    db.session.add(pending)
    db.session.commit()

    return {
        "order_id": order["id"],
        "payment_id": pending.id,
        "amount_cents": pending.amount_cents,
        "currency": "INR",
        "key_id": gateway_service.public_key_id(),
        "member_name": member.user.full_name,
        "member_email": member.user.email,
        "member_phone": member.user.mobile,
    }


def verify_gateway_payment(
    *,
    order_id: str,
    payment_id: str,
    signature: str,
    member_id: int | None = None,
) -> Payment:
    """
    Verify the checkout signature, then complete the PENDING payment
    created for order_id.

    Member, plan and amount come from the stored order. member_id, when
    given, must own the order (members verify their own checkouts).

    Raises SignatureError (bad signature), NotFoundError (unknown order or
    not the caller's), ConflictError (order or payment id already
    recorded), PaymentError (plan deleted since the order was created).
    """
    gateway_service.verify_signature(order_id=order_id, payment_id=payment_id, signature=signature)
    sequence_service.ensure_sequence(sequence_service.invoice_sequence_name(utcnow().year))

    def _op() -> Payment:
        payment = lock_for_update(
            db.session.query(Payment).filter_by(gateway_order_id=order_id)
        ).first()
        if not payment or (member_id is not None and payment.member_id != member_id):
            raise NotFoundError("Payment order not found")
        if payment.status != PAYMENT_PENDING:
            raise ConflictError("Payment already recorded")
        seen = db.session.query(Payment.id).filter_by(gateway_payment_id=payment_id).first()
        if seen:
            raise ConflictError("Payment already recorded")
        if payment.plan is None:
            raise PaymentError("Plan is no longer available")

        payment.gateway_payment_id = payment_id
        _complete(payment, member=payment.member, plan=payment.plan)
        db.session.commit()
        return payment

    payment = run_with_retry(_op, retry_on=UNIQUE_CONFLICT_ERRORS)
    current_app.logger.info("Verified gateway payment %s (%s)", payment.invoice_number, payment_id)
    return payment

def get_payment(payment_id: int) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def refund_payment(*, payment_id: int) -> Payment:
    """COMPLETED -> REFUNDED; the membership it bought is cancelled."""
    payment = get_payment(payment_id)
    if payment.status != PAYMENT_COMPLETED:
        raise PaymentError("Only completed payments can be refunded")

    payment.status = PAYMENT_REFUNDED
    payment.refunded_at = utcnow()
    if payment.membership and payment.membership.status != STATUS_CANCELLED:
        payment.membership.status = STATUS_CANCELLED
        payment.membership.frozen_at = None
    db.session.commit()
    return payment


def delete_payment(*, payment_id: int) -> None:
    payment = get_payment(payment_id)
    db.session.delete(payment)
    db.session.commit()


def list_payments(
    *,
    member_id: int | None = None,
    status: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    query = db.session.query(Payment)

    if member_id is not None:
        query = query.filter(Payment.member_id == member_id)
    if status:
        query = query.filter(Payment.status == require_choice("status", status, PAYMENT_STATUSES))

    try:
        start = parse_iso_datetime(start_date)
        end = parse_iso_datetime(end_date)
    except ValueError:
        raise ValidationError("start_date and end_date must be ISO-8601 dates")
    if start is not None:
        query = query.filter(Payment.created_at >= start)
    if end is not None:
        # A bare date includes the whole day
        if end_date and len(end_date.strip()) == 10:
            end = end_of_day(end)
        query = query.filter(Payment.created_at <= end)

    query = query.order_by(Payment.created_at.desc(), Payment.id.desc())
    return paginate(
        query,
        page=page,
        limit=limit,
        serialize=lambda p: p.to_dict(include_member=True, include_membership=True),
    )


def member_payments(*, member_id: int) -> list[Payment]:
    return (
        db.session.query(Payment)
        .filter(Payment.member_id == member_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
