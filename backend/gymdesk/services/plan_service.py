# Overview: Service-layer operations for membership plans; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Membership, MembershipPlan
from ..membership_rules import STATUS_ACTIVE
from ..pricing import calculate_gst, percent_to_bps
from ..validation import (
    MAX_DURATION_DAYS,
    NotFoundError,
    ValidationError,
    parse_positive_int,
    parse_price_cents,
)
from .concurrency import lock_for_update, run_with_retry


class PlanInUseError(ValueError):
    """Plan still referenced by ACTIVE memberships."""

    def __init__(self, active_count: int):
        self.active_count = active_count
        super().__init__(
            f"Cannot delete plan. {active_count} active memberships are using this plan."
        )


def _resolve_gst_bps(payload: dict, current_bps: int | None = None) -> int:
    """
    GST is off unless GST_ENABLED; then the request's gst_percent wins,
    falling back to the plan's current rate or DEFAULT_GST_PERCENT.
    """
    if not current_app.config.get("GST_ENABLED", False):
        return 0
    if payload.get("gst_percent") is not None:
        try:
            percent = float(payload["gst_percent"])
        except (TypeError, ValueError):
            raise ValidationError("gst_percent must be a number")
        if percent < 0 or percent > 100:
            raise ValidationError("gst_percent must be between 0 and 100")
        return percent_to_bps(percent)
    if current_bps is not None:
        return current_bps
    return percent_to_bps(current_app.config.get("DEFAULT_GST_PERCENT", 18))


def _clean_features(value) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("features must be a list of strings")
    return [str(item).strip() for item in value if str(item).strip()]


def list_plans(*, active: bool | None = None) -> list[MembershipPlan]:
    query = db.session.query(MembershipPlan)
    if active is not None:
        query = query.filter(MembershipPlan.is_active.is_(active))
    return query.order_by(MembershipPlan.duration_days.asc(), MembershipPlan.id.asc()).all()


def get_plan(plan_id: int) -> MembershipPlan:
    plan = db.session.get(MembershipPlan, plan_id)
    if not plan:
        raise NotFoundError("Plan not found")
    return plan


def create_plan(*, payload: dict) -> MembershipPlan:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    if len(name) > 120:
        raise ValidationError("name exceeds max length 120")

    duration_days = parse_positive_int("duration_days", payload.get("duration_days"), maximum=MAX_DURATION_DAYS)
    base_price_cents = parse_price_cents("base_price", payload.get("base_price"))
    gst = calculate_gst(
        base_price_cents,
        _resolve_gst_bps(payload),
        enabled=current_app.config.get("GST_ENABLED", False),
    )

    plan = MembershipPlan(
        name=name,
        duration_days=duration_days,
        base_price_cents=gst.base_cents,
        gst_bps=gst.gst_bps,
        final_price_cents=gst.total_cents,
        description=(payload.get("description") or "").strip() or None,
        features=_clean_features(payload.get("features")),
        is_active=bool(payload.get("is_active", True)),
    )
    db.session.add(plan)
    db.session.commit()
    return plan


def update_plan(*, plan_id: int, payload: dict) -> MembershipPlan:
    """
    Partial update. Any change to base price or GST recomputes final price.
    """
    plan = get_plan(plan_id)
    changes: dict = {}

    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationError("name cannot be blank")
        if len(name) > 120:
            raise ValidationError("name exceeds max length 120")
        changes["name"] = name
    if "duration_days" in payload:
        changes["duration_days"] = parse_positive_int(
            "duration_days", payload.get("duration_days"), maximum=MAX_DURATION_DAYS
        )
    if "description" in payload:
        changes["description"] = (payload.get("description") or "").strip() or None
    if "features" in payload:
        changes["features"] = _clean_features(payload.get("features"))
    if "is_active" in payload:
        changes["is_active"] = bool(payload.get("is_active"))

    if "base_price" in payload or "gst_percent" in payload:
        base = (
            parse_price_cents("base_price", payload.get("base_price"))
            if "base_price" in payload
            else plan.base_price_cents
        )
        gst = calculate_gst(
            base,
            _resolve_gst_bps(payload, plan.gst_bps),
            enabled=current_app.config.get("GST_ENABLED", False),
        )
        changes["base_price_cents"] = gst.base_cents
        changes["gst_bps"] = gst.gst_bps
        changes["final_price_cents"] = gst.total_cents

    for key, value in changes.items():
        setattr(plan, key, value)
    db.session.commit()
    return plan


def count_active_memberships(plan_id: int) -> int:
    return db.session.query(Membership).filter(
        Membership.plan_id == plan_id,
        Membership.status == STATUS_ACTIVE,
    ).count()


def delete_plan(*, plan_id: int) -> None:
    """
    Delete a plan unless ACTIVE memberships reference it.

    The plan row is locked and the count and delete share one transaction,
    so a membership created concurrently cannot slip in between. Past
    memberships keep their plan_name snapshot and lose the reference.
    """
    def _op():
        plan = lock_for_update(
            db.session.query(MembershipPlan).filter_by(id=plan_id)
        ).first()
        if not plan:
            raise NotFoundError("Plan not found")

        active = count_active_memberships(plan_id)
        if active:
            db.session.rollback()
            raise PlanInUseError(active)

        db.session.delete(plan)
        db.session.commit()

    run_with_retry(_op)
