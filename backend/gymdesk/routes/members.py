# Overview: Flask API routes for members operations; parses input and returns JSON responses.

# backend/gymdesk/routes/members.py
"""
Member management routes.

SECURITY: All routes require authentication.
- Listing, creating, updating and deleting members is admin-only
- A member may read their own profile and QR code
"""

from flask import Blueprint, current_app, g, request

from ..decorators import can_access_member, require_admin, require_auth
from ..responses import created, fail, internal_error, ok
from ..services import member_service, qr_service
from ..services.auth_service import PasswordValidationError
from ..services.payment_service import PaymentError
from ..validation import ConflictError, NotFoundError, ValidationError


members_bp = Blueprint("members", __name__, url_prefix="/api/members")


@members_bp.get("")
@require_auth
@require_admin
def list_members_route():
    """
    Query params:
    - search: matches name, mobile, email or member code
    - status: ACTIVE | EXPIRED | FROZEN | CANCELLED | NONE
    - page, limit
    """
    try:
        result = member_service.list_members(
            search=request.args.get("search"),
            status=request.args.get("status"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return fail(str(e), 400)
    return ok(result)


@members_bp.post("")
@require_auth
@require_admin
def create_member_route():
    """
    Create a member (user + profile). With plan_id the first membership is
    paid for at once (payment_method defaults to CASH).
    """
    payload = request.get_json(silent=True) or {}

    try:
        member = member_service.create_member(payload=payload, recorded_by_user_id=g.current_user.id)
    except ConflictError as e:
        return fail(str(e), 409)
    except NotFoundError as e:
        return fail(str(e), 404)
    except (ValidationError, PasswordValidationError, PaymentError, ValueError) as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to create member")
        return internal_error()

    return created(member_service.member_detail(member), "Member created successfully")


@members_bp.get("/me")
@require_auth
def my_profile_route():
    try:
        member = member_service.get_member_for_user(g.current_user)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(member_service.member_detail(member))


@members_bp.get("/<int:member_id>")
@require_auth
def get_member_route(member_id: int):
    if not can_access_member(member_id):
        return fail("Access denied", 403)
    try:
        member = member_service.get_member(member_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(member_service.member_detail(member))


@members_bp.put("/<int:member_id>")
@require_auth
@require_admin
def update_member_route(member_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        member = member_service.update_member(member_id=member_id, payload=payload)
    except NotFoundError as e:
        return fail(str(e), 404)
    except ConflictError as e:
        return fail(str(e), 409)
    except ValueError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to update member")
        return internal_error()

    return ok(member_service.member_detail(member), "Member updated successfully")


@members_bp.delete("/<int:member_id>")
@require_auth
@require_admin
def delete_member_route(member_id: int):
    try:
        member_service.delete_member(member_id=member_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to delete member")
        return internal_error()
    return ok(None, "Member deleted successfully")


@members_bp.get("/<int:member_id>/qr")
@require_auth
def member_qr_route(member_id: int):
    """Check-in QR code as a PNG data URL."""
    if not can_access_member(member_id):
        return fail("Access denied", 403)
    try:
        member = member_service.get_member(member_id)
    except NotFoundError as e:
        return fail(str(e), 404)

    return ok({
        "member_id": member.id,
        "member_code": member.member_code,
        "qr_code": qr_service.member_qr_data_url(member),
    })
