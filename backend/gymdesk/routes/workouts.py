# Overview: Flask API routes for workout plans and assignments.

from flask import Blueprint, current_app, g, request

from ..decorators import can_access_member, is_admin, require_admin, require_auth
from ..responses import created, fail, internal_error, ok
from ..services import workout_service
from ..validation import NotFoundError, ValidationError


workouts_bp = Blueprint("workouts", __name__, url_prefix="/api/workouts")


@workouts_bp.get("")
@require_auth
def list_workouts_route():
    """Admins see every template; members only active ones."""
    active = None if is_admin() else True
    return ok([w.to_dict() for w in workout_service.list_workout_plans(active=active)])


@workouts_bp.get("/<int:plan_id>")
@require_auth
def get_workout_route(plan_id: int):
    try:
        plan = workout_service.get_workout_plan(plan_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(plan.to_dict())


@workouts_bp.post("")
@require_auth
@require_admin
def create_workout_route():
    payload = request.get_json(silent=True) or {}
    try:
        plan = workout_service.create_workout_plan(payload=payload)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to create workout plan")
        return internal_error()
    return created(plan.to_dict(), "Workout plan created successfully")


@workouts_bp.put("/<int:plan_id>")
@require_auth
@require_admin
def update_workout_route(plan_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        plan = workout_service.update_workout_plan(plan_id=plan_id, payload=payload)
    except NotFoundError as e:
        return fail(str(e), 404)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to update workout plan")
        return internal_error()
    return ok(plan.to_dict(), "Workout plan updated successfully")


@workouts_bp.delete("/<int:plan_id>")
@require_auth
@require_admin
def delete_workout_route(plan_id: int):
    try:
        workout_service.delete_workout_plan(plan_id=plan_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(None, "Workout plan deleted successfully")


@workouts_bp.post("/assign")
@require_auth
@require_admin
def assign_workout_route():
    """Body: member_id, workout_plan_id. Replaces the member's active workout."""
    data = request.get_json(silent=True) or {}
    try:
        assignment = workout_service.assign_workout(
            member_id=data.get("member_id"),
            workout_plan_id=data.get("workout_plan_id"),
        )
    except NotFoundError as e:
        return fail(str(e), 404)
    except ValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to assign workout")
        return internal_error()
    return created(assignment.to_dict(), "Workout assigned successfully")


@workouts_bp.get("/my")
@require_auth
def my_workout_route():
    member = g.current_user.member
    if not member:
        return fail("Member profile not found", 404)
    assignment = workout_service.active_workout(member.id)
    return ok(assignment.to_dict() if assignment else None)


@workouts_bp.get("/member/<int:member_id>")
@require_auth
def member_workout_route(member_id: int):
    if not can_access_member(member_id):
        return fail("Access denied", 403)
    assignment = workout_service.active_workout(member_id)
    return ok(assignment.to_dict() if assignment else None)
