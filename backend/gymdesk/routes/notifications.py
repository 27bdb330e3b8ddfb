# Overview: Admin view of outbound SMS/email history and a manual reminder run.

from flask import Blueprint, current_app, request

from ..decorators import require_admin, require_auth
from ..responses import internal_error, ok
from ..services import notification_service, reminder_service


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
@require_admin
def list_notifications_route():
    limit = request.args.get("limit", default=50, type=int)
    return ok([n.to_dict() for n in notification_service.list_notifications(limit=limit)])


@notifications_bp.post("/expiry-reminders/run")
@require_auth
@require_admin
def run_reminders_route():
    """Same job the scheduler runs daily; memberships stamped today are skipped."""
    try:
        summary = reminder_service.run_expiry_reminders()
    except Exception:
        current_app.logger.exception("Failed to run expiry reminders")
        return internal_error()
    return ok(summary, "Expiry reminders processed")
