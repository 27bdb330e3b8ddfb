# Overview: Service-layer operations for workout plans and member assignments.

from __future__ import annotations

from ..extensions import db
from ..models import Member, MemberWorkout, WorkoutPlan
from ..models.workouts import WORKOUT_TYPES
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    parse_positive_int,
    require_choice,
    validate_payload,
)
from gymdesk.time_utils import utcnow


WORKOUT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "type", "description", "exercises", "days_per_week", "is_active"},
    required_on_create={"name", "exercises"},
)

MAX_DAYS = 7
MAX_EXERCISES_PER_DAY = 50
MAX_SETS = 100


def validate_exercises(value) -> list[dict]:
    """
    Normalize the day list:
    [{"day": str, "exercises": [{"name": str, "sets": int, "reps": str, "muscle": str}]}]
    """
    if not isinstance(value, list) or not value:
        raise ValidationError("exercises must be a non-empty list of days")
    if len(value) > MAX_DAYS:
        raise ValidationError(f"exercises cannot have more than {MAX_DAYS} days")

    days = []
    for i, day in enumerate(value, start=1):
        if not isinstance(day, dict):
            raise ValidationError(f"Day {i} must be an object")
        label = str(day.get("day") or "").strip()
        if not label:
            raise ValidationError(f"Day {i} is missing a name")
        items = day.get("exercises")
        if not isinstance(items, list) or not items:
            raise ValidationError(f"{label} must list at least one exercise")
        if len(items) > MAX_EXERCISES_PER_DAY:
            raise ValidationError(f"{label} has too many exercises")

        exercises = []
        for item in items:
            if not isinstance(item, dict):
                raise ValidationError(f"{label}: each exercise must be an object")
            name = str(item.get("name") or "").strip()
            if not name:
                raise ValidationError(f"{label}: exercise name is required")
            exercises.append({
                "name": name,
                "sets": parse_positive_int(f"{label}: {name} sets", item.get("sets"), maximum=MAX_SETS),
                "reps": str(item.get("reps") or "").strip(),
                "muscle": str(item.get("muscle") or "").strip(),
            })
        days.append({"day": label, "exercises": exercises})
    return days


def _workout_patch(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=WorkoutPlan, payload=payload, policy=WORKOUT_POLICY, partial=partial)
    if "type" in patch:
        patch["type"] = require_choice("type", patch["type"], WORKOUT_TYPES)
    if "exercises" in patch:
        patch["exercises"] = validate_exercises(patch["exercises"])
    if "days_per_week" in patch:
        patch["days_per_week"] = parse_positive_int("days_per_week", patch["days_per_week"], maximum=MAX_DAYS)
    return patch


def list_workout_plans(*, active: bool | None = None) -> list[WorkoutPlan]:
    query = db.session.query(WorkoutPlan)
    if active is not None:
        query = query.filter(WorkoutPlan.is_active.is_(active))
    return query.order_by(WorkoutPlan.name.asc(), WorkoutPlan.id.asc()).all()


def get_workout_plan(plan_id: int) -> WorkoutPlan:
    plan = db.session.get(WorkoutPlan, plan_id)
    if not plan:
        raise NotFoundError("Workout plan not found")
    return plan


def create_workout_plan(*, payload: dict) -> WorkoutPlan:
    patch = _workout_patch(payload, partial=False)
    patch.setdefault("type", "CUSTOM")
    patch.setdefault("days_per_week", len(patch["exercises"]))
    plan = WorkoutPlan(**patch)
    db.session.add(plan)
    db.session.commit()
    return plan


def update_workout_plan(*, plan_id: int, payload: dict) -> WorkoutPlan:
    plan = get_workout_plan(plan_id)
    patch = _workout_patch(payload, partial=True)
    for key, value in patch.items():
        setattr(plan, key, value)
    db.session.commit()
    return plan


def delete_workout_plan(*, plan_id: int) -> None:
    """Removes the template and every assignment of it."""
    plan = get_workout_plan(plan_id)
    db.session.delete(plan)
    db.session.commit()


def assign_workout(*, member_id: int, workout_plan_id: int) -> MemberWorkout:
    """Make workout_plan_id the member's only active workout."""
    member = db.session.get(Member, member_id) if member_id is not None else None
    if not member:
        raise NotFoundError("Member not found")
    plan = get_workout_plan(workout_plan_id)
    if not plan.is_active:
        raise ValidationError("Workout plan is not active")

    (
        db.session.query(MemberWorkout)
        .filter(MemberWorkout.member_id == member.id, MemberWorkout.is_active.is_(True))
        .update({MemberWorkout.is_active: False}, synchronize_session="fetch")
    )
    assignment = MemberWorkout(
        member_id=member.id,
        workout_plan_id=plan.id,
        assigned_at=utcnow(),
        is_active=True,
    )
    db.session.add(assignment)
    db.session.commit()
    return assignment


def active_workout(member_id: int) -> MemberWorkout | None:
    return (
        db.session.query(MemberWorkout)
        .filter(MemberWorkout.member_id == member_id, MemberWorkout.is_active.is_(True))
        .order_by(MemberWorkout.assigned_at.desc(), MemberWorkout.id.desc())
        .first()
    )
