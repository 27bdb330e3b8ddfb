# Overview: Flask API routes for payments operations; parses input and returns JSON responses.

# backend/gymdesk/routes/payments.py
"""
Payment routes.

SECURITY:
- Manual payments, refunds, deletes and the full listing are admin-only
- A member may create a gateway order and verify it for their own
  profile, list their own payments and download their own invoices
- Gateway payments are recorded only after the signature verifies
"""

from flask import Blueprint, Response, current_app, g, request

from ..decorators import can_access_member, is_admin, require_admin, require_auth
from ..responses import created, fail, internal_error, ok
from ..services import invoice_service, payment_service
from ..services.gateway_service import GatewayError, GatewayNotConfiguredError, SignatureError
from ..services.payment_service import PaymentError
from ..validation import ConflictError, NotFoundError, ValidationError


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _target_member_id(data: dict):
    """Admins name the member; members always pay for themselves."""
    if is_admin():
        return data.get("member_id")
    member = g.current_user.member
    return member.id if member else None


@payments_bp.get("")
@require_auth
@require_admin
def list_payments_route():
    """
    Query params: member_id, status, start_date, end_date (ISO dates), page, limit.
    """
    try:
        result = payment_service.list_payments(
            member_id=request.args.get("member_id", type=int),
            status=request.args.get("status"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return fail(str(e), 400)
    return ok(result)


@payments_bp.get("/my")
@require_auth
def my_payments_route():
    member = g.current_user.member
    if not member:
        return fail("Member profile not found", 404)
    payments = payment_service.member_payments(member_id=member.id)
    return ok([p.to_dict(include_membership=True) for p in payments])


@payments_bp.get("/<int:payment_id>")
@require_auth
def get_payment_route(payment_id: int):
    try:
        payment = payment_service.get_payment(payment_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    if not can_access_member(payment.member_id):
        return fail("Access denied", 403)
    return ok(payment.to_dict(include_member=True, include_membership=True))


@payments_bp.post("/manual")
@require_auth
@require_admin
def manual_payment_route():
    """
    Record a CASH / UPI / BANK_TRANSFER payment; creates the membership.

    Body: member_id, plan_id, payment_method?, notes?
    """
    data = request.get_json(silent=True) or {}
    try:
        payment = payment_service.record_manual_payment(
            member_id=data.get("member_id"),
            plan_id=data.get("plan_id"),
            payment_method=data.get("payment_method"),
            notes=data.get("notes"),
            recorded_by_user_id=g.current_user.id,
        )
    except NotFoundError as e:
        return fail(str(e), 404)
    except (ValidationError, PaymentError) as e:
        return fail(str(e), 400)
    except ConflictError as e:
        return fail(str(e), 409)
    except Exception:
        current_app.logger.exception("Failed to record manual payment")
        return internal_error()

    return created(
        payment.to_dict(include_member=True, include_membership=True),
        "Payment recorded successfully",
    )


@payments_bp.post("/create-order")
@require_auth
def create_order_route():
    """Create a gateway order for plan_id. 503 when online payments are off."""
    data = request.get_json(silent=True) or {}
    try:
        order = payment_service.create_gateway_order(
            member_id=_target_member_id(data),
            plan_id=data.get("plan_id"),
        )
    except GatewayNotConfiguredError as e:
        return fail(str(e), 503)
    except NotFoundError as e:
        return fail(str(e), 404)
    except PaymentError as e:
        return fail(str(e), 400)
    except GatewayError as e:
        current_app.logger.warning("Gateway order failed: %s", e)
        return fail("Payment gateway unavailable. Please try again.", 502)
    except Exception:
        current_app.logger.exception("Failed to create payment order")
        return internal_error()

    return ok(order)


@payments_bp.post("/verify")
@require_auth
def verify_payment_route():
    """
    Body: razorpay_order_id, razorpay_payment_id, razorpay_signature.

    Member, plan and amount come from the order created by create-order;
    members can only complete their own orders. 400 on a bad signature,
    404 for an unknown order, 409 when the order was already recorded.
    """
    data = request.get_json(silent=True) or {}
    order_id = data.get("razorpay_order_id")
    payment_id = data.get("razorpay_payment_id")
    signature = data.get("razorpay_signature")
    if not order_id or not payment_id or not signature:
        return fail("razorpay_order_id, razorpay_payment_id and razorpay_signature are required", 400)

    owner_id = None
    if not is_admin():
        member = g.current_user.member
        if not member:
            return fail("Member profile not found", 404)
        owner_id = member.id

    try:
        payment = payment_service.verify_gateway_payment(
            order_id=order_id,
            payment_id=payment_id,
            signature=signature,
            member_id=owner_id,
        )
    except GatewayNotConfiguredError as e:
        return fail(str(e), 503)
    except SignatureError as e:
        current_app.logger.warning("Rejected gateway callback for order %s: bad signature", order_id)
        return fail(str(e), 400)
    except ConflictError as e:
        return fail(str(e), 409)
    except NotFoundError as e:
        return fail(str(e), 404)
    except PaymentError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to verify gateway payment")
        return internal_error()

    return ok(payment.to_dict(include_membership=True), "Payment successful")


@payments_bp.post("/<int:payment_id>/refund")
@require_auth
@require_admin
def refund_payment_route(payment_id: int):
    try:
        payment = payment_service.refund_payment(payment_id=payment_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except PaymentError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to refund payment")
        return internal_error()
    return ok(payment.to_dict(include_membership=True), "Payment refunded")


@payments_bp.delete("/<int:payment_id>")
@require_auth
@require_admin
def delete_payment_route(payment_id: int):
    try:
        payment_service.delete_payment(payment_id=payment_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to delete payment")
        return internal_error()
    return ok(None, "Payment deleted successfully")


@payments_bp.get("/<int:payment_id>/invoice")
@require_auth
def download_invoice_route(payment_id: int):
    """Invoice PDF as an attachment."""
    try:
        payment = payment_service.get_payment(payment_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    if not can_access_member(payment.member_id):
        return fail("Access denied", 403)
    if not payment.invoice_number:
        return fail("Invoice not available for a pending payment", 400)

    try:
        pdf = invoice_service.render_invoice_pdf(payment)
    except Exception:
        current_app.logger.exception("Failed to render invoice %s", payment.invoice_number)
        return internal_error()

    return Response(
        pdf,
        mimetype="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={invoice_service.invoice_filename(payment)}"},
    )
