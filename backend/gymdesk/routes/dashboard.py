# Overview: Flask API routes for the admin dashboard and member home page.

from flask import Blueprint, current_app, g

from ..decorators import require_admin, require_auth
from ..responses import fail, internal_error, ok
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/admin")
@require_auth
@require_admin
def admin_dashboard_route():
    try:
        return ok(dashboard_service.admin_dashboard())
    except Exception:
        current_app.logger.exception("Failed to build admin dashboard")
        return internal_error()


@dashboard_bp.get("/member")
@require_auth
def member_dashboard_route():
    member = g.current_user.member
    if not member:
        return fail("Member profile not found", 404)
    try:
        return ok(dashboard_service.member_dashboard(member))
    except Exception:
        current_app.logger.exception("Failed to build member dashboard")
        return internal_error()
