# Overview: Flask API routes for progress records; members manage their own, admins any.

from flask import Blueprint, current_app, g, request

from ..decorators import can_access_member, is_admin, require_auth
from ..responses import created, fail, internal_error, ok
from ..services import progress_service
from ..validation import NotFoundError, ValidationError


progress_bp = Blueprint("progress", __name__, url_prefix="/api/progress")


def _own_member_id():
    member = g.current_user.member
    return member.id if member else None


@progress_bp.post("")
@require_auth
def create_progress_route():
    """Admins pass member_id; members always record for themselves."""
    payload = dict(request.get_json(silent=True) or {})
    requested = payload.pop("member_id", None)

    if is_admin():
        if requested is None:
            return fail("member_id is required", 400)
        member_id = requested
    else:
        member_id = _own_member_id()
        if member_id is None:
            return fail("Member profile not found", 404)

    try:
        record = progress_service.create_record(member_id=member_id, payload=payload)
    except NotFoundError as e:
        return fail(str(e), 404)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to create progress record")
        return internal_error()
    return created(record.to_dict(), "Progress recorded")


@progress_bp.get("/my")
@require_auth
def my_progress_route():
    member_id = _own_member_id()
    if member_id is None:
        return fail("Member profile not found", 404)
    return ok([r.to_dict() for r in progress_service.list_records(member_id=member_id)])


@progress_bp.get("/member/<int:member_id>")
@require_auth
def member_progress_route(member_id: int):
    if not can_access_member(member_id):
        return fail("Access denied", 403)
    return ok([r.to_dict() for r in progress_service.list_records(member_id=member_id)])


@progress_bp.put("/<int:record_id>")
@require_auth
def update_progress_route(record_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        record = progress_service.get_record(record_id)
        if not can_access_member(record.member_id):
            return fail("Access denied", 403)
        record = progress_service.update_record(record_id=record_id, payload=payload)
    except NotFoundError as e:
        return fail(str(e), 404)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to update progress record")
        return internal_error()
    return ok(record.to_dict(), "Progress updated")


@progress_bp.delete("/<int:record_id>")
@require_auth
def delete_progress_route(record_id: int):
    try:
        record = progress_service.get_record(record_id)
        if not can_access_member(record.member_id):
            return fail("Access denied", 403)
        progress_service.delete_record(record_id=record_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(None, "Progress record deleted")
