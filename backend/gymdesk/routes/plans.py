# Overview: Flask API routes for membership plans; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..decorators import require_admin, require_auth
from ..responses import created, fail, internal_error, ok
from ..services import plan_service
from ..services.plan_service import PlanInUseError
from ..validation import NotFoundError, ValidationError


plans_bp = Blueprint("plans", __name__, url_prefix="/api/plans")


def _active_arg():
    value = request.args.get("active")
    if value is None:
        return None
    return value.strip().lower() == "true"


@plans_bp.get("")
def list_plans_route():
    """Public catalog. ?active=true|false filters by availability."""
    plans = plan_service.list_plans(active=_active_arg())
    return ok([p.to_dict() for p in plans])


@plans_bp.get("/<int:plan_id>")
def get_plan_route(plan_id: int):
    try:
        plan = plan_service.get_plan(plan_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(plan.to_dict())


@plans_bp.post("")
@require_auth
@require_admin
def create_plan_route():
    """
    Body: name, duration_days, base_price (rupees), description?, features?,
    is_active?, gst_percent? (ignored unless GST is enabled).
    """
    payload = request.get_json(silent=True) or {}
    try:
        plan = plan_service.create_plan(payload=payload)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to create plan")
        return internal_error()
    return created(plan.to_dict(), "Plan created successfully")


@plans_bp.put("/<int:plan_id>")
@require_auth
@require_admin
def update_plan_route(plan_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        plan = plan_service.update_plan(plan_id=plan_id, payload=payload)
    except NotFoundError as e:
        return fail(str(e), 404)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to update plan")
        return internal_error()
    return ok(plan.to_dict(), "Plan updated successfully")


@plans_bp.delete("/<int:plan_id>")
@require_auth
@require_admin
def delete_plan_route(plan_id: int):
    """Rejected with 400 while any ACTIVE membership uses the plan."""
    try:
        plan_service.delete_plan(plan_id=plan_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except PlanInUseError as e:
        return fail(str(e), 400, active_memberships=e.active_count)
    except Exception:
        current_app.logger.exception("Failed to delete plan")
        return internal_error()
    return ok(None, "Plan deleted successfully")
