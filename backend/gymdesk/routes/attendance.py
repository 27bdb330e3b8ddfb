# Overview: Flask API routes for attendance operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, request

from ..decorators import can_access_member, require_admin, require_auth
from ..responses import fail, internal_error, ok
from ..services import attendance_service
from ..services.attendance_service import ACTION_CHECK_IN, AttendanceError
from ..services.qr_service import QRCodeError
from ..validation import NotFoundError, ValidationError


attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


@attendance_bp.post("/scan")
@require_auth
@require_admin
def scan_route():
    """
    Front-desk scanner. Body: {"qr_data": "<scanned text>"}.

    Checks the member in, or out when they already checked in today.
    """
    data = request.get_json(silent=True) or {}
    try:
        attendance, action = attendance_service.scan_qr(payload=data.get("qr_data"))
    except QRCodeError as e:
        return fail(str(e), 400)
    except AttendanceError as e:
        return fail(str(e), 400)
    except NotFoundError as e:
        return fail(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to process QR scan")
        return internal_error()

    message = "Checked in successfully" if action == ACTION_CHECK_IN else "Checked out successfully"
    body = attendance.to_dict(include_member=True)
    body["action"] = action
    return ok(body, message)


@attendance_bp.post("/checkin")
@require_auth
@require_admin
def manual_checkin_route():
    data = request.get_json(silent=True) or {}
    try:
        attendance = attendance_service.check_in(member_id=data.get("member_id"))
    except NotFoundError as e:
        return fail(str(e), 404)
    except AttendanceError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to check member in")
        return internal_error()
    return ok(attendance.to_dict(include_member=True), "Checked in successfully")


@attendance_bp.post("/checkout")
@require_auth
@require_admin
def manual_checkout_route():
    data = request.get_json(silent=True) or {}
    try:
        attendance = attendance_service.check_out(member_id=data.get("member_id"))
    except NotFoundError as e:
        return fail(str(e), 404)
    except AttendanceError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to check member out")
        return internal_error()
    return ok(attendance.to_dict(include_member=True), "Checked out successfully")


@attendance_bp.get("")
@require_auth
@require_admin
def list_attendance_route():
    """Query params: member_id, date | start_date + end_date, page, limit."""
    try:
        result = attendance_service.list_attendance(
            member_id=request.args.get("member_id", type=int),
            date=request.args.get("date"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return fail(str(e), 400)
    return ok(result)


@attendance_bp.get("/today")
@require_auth
@require_admin
def today_route():
    return ok(attendance_service.today_summary())


@attendance_bp.get("/my")
@require_auth
def my_attendance_route():
    member = g.current_user.member
    if not member:
        return fail("Member profile not found", 404)
    return ok(attendance_service.member_history(
        member_id=member.id,
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    ))


@attendance_bp.get("/member/<int:member_id>")
@require_auth
def member_attendance_route(member_id: int):
    if not can_access_member(member_id):
        return fail("Access denied", 403)
    return ok(attendance_service.member_history(
        member_id=member_id,
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    ))
