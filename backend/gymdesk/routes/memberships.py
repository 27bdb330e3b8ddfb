# Overview: Flask API routes for membership lifecycle actions (freeze, unfreeze, cancel).

from flask import Blueprint, current_app

from ..decorators import can_access_member, require_admin, require_auth
from ..responses import fail, internal_error, ok
from ..services import membership_service
from ..services.membership_service import MembershipStateError
from ..validation import NotFoundError


memberships_bp = Blueprint("memberships", __name__, url_prefix="/api/memberships")


@memberships_bp.get("/<int:membership_id>")
@require_auth
def get_membership_route(membership_id: int):
    try:
        membership = membership_service.get_membership(membership_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    if not can_access_member(membership.member_id):
        return fail("Access denied", 403)
    return ok(membership.to_dict())


def _transition(action, membership_id: int, message: str):
    try:
        membership = action(membership_id=membership_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except MembershipStateError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to update membership %s", membership_id)
        return internal_error()
    return ok(membership.to_dict(), message)


@memberships_bp.post("/<int:membership_id>/freeze")
@require_auth
@require_admin
def freeze_route(membership_id: int):
    return _transition(membership_service.freeze_membership, membership_id, "Membership frozen")


@memberships_bp.post("/<int:membership_id>/unfreeze")
@require_auth
@require_admin
def unfreeze_route(membership_id: int):
    """End date moves forward by the whole days spent frozen."""
    return _transition(membership_service.unfreeze_membership, membership_id, "Membership unfrozen")


@memberships_bp.post("/<int:membership_id>/cancel")
@require_auth
@require_admin
def cancel_route(membership_id: int):
    return _transition(membership_service.cancel_membership, membership_id, "Membership cancelled")
