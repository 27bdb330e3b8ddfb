# Overview: Service-layer operations for members; encapsulates business logic and database work.

"""
Member management.

A member is a MEMBER-role User plus a Member profile, always created and
deleted together. Member codes (NAZ-001, ...) come from the MEMBER sequence.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Member, Membership, User
from ..models.auth import ROLE_MEMBER, USER_STATUSES
from ..models.members import GENDERS
from ..models.payments import MANUAL_PAYMENT_METHODS
from ..membership_rules import (
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_EXPIRED,
    STATUS_FROZEN,
)
from ..pagination import paginate
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_member,
    require_choice,
    validate_payload,
)
from . import auth_service, payment_service, sequence_service
from .concurrency import UNIQUE_CONFLICT_ERRORS, run_with_retry
from .membership_service import current_membership
from gymdesk.time_utils import utcnow


MEMBER_POLICY = ModelValidationPolicy(
    writable_fields={
        "gender",
        "date_of_birth",
        "height_cm",
        "weight_kg",
        "fitness_goal",
        "medical_notes",
        "emergency_contact",
    },
    required_on_create=set(),
)

USER_FIELDS = {"full_name", "mobile", "email", "password", "status", "profile_photo"}
STATUS_NONE = "NONE"
MEMBER_STATUS_FILTERS = (STATUS_ACTIVE, STATUS_EXPIRED, STATUS_FROZEN, STATUS_CANCELLED, STATUS_NONE)


def _split_payload(payload: dict) -> tuple[dict, dict]:
    user_part = {k: v for k, v in payload.items() if k in USER_FIELDS}
    member_part = {k: v for k, v in payload.items() if k not in USER_FIELDS and k != "plan_id" and k != "payment_method"}
    return user_part, member_part


def _member_patch(member_part: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Member, payload=member_part, policy=MEMBER_POLICY, partial=partial)
    if patch.get("gender") is not None:
        patch["gender"] = require_choice("gender", patch["gender"], GENDERS)
    enforce_rules_member(patch)
    return patch


def get_member(member_id: int) -> Member:
    member = db.session.get(Member, member_id)
    if not member:
        raise NotFoundError("Member not found")
    return member


def get_member_for_user(user: User) -> Member:
    if not user.member:
        raise NotFoundError("Member profile not found")
    return user.member


def member_summary(member: Member, now=None) -> dict:
    now = now or utcnow()
    data = member.to_dict(include_user=True)
    current = current_membership(member)
    data["current_membership"] = current.to_dict(now=now) if current else None
    return data


def member_detail(member: Member, now=None) -> dict:
    now = now or utcnow()
    data = member_summary(member, now)
    data["memberships"] = [m.to_dict(now=now, include_plan=False) for m in member.memberships]
    return data


def _status_filter(query, status: str, now):
    def has(*criteria):
        return db.session.query(Membership.id).filter(
            Membership.member_id == Member.id, *criteria
        ).exists()

    active = has(Membership.status == STATUS_ACTIVE, Membership.end_date >= now)
    frozen = has(Membership.status == STATUS_FROZEN)
    lapsed = has(db.or_(
        Membership.status == STATUS_EXPIRED,
        db.and_(Membership.status == STATUS_ACTIVE, Membership.end_date < now),
    ))
    cancelled = has(Membership.status == STATUS_CANCELLED)
    any_membership = has()

    if status == STATUS_ACTIVE:
        return query.filter(active)
    if status == STATUS_FROZEN:
        return query.filter(frozen, ~active)
    if status == STATUS_EXPIRED:
        return query.filter(lapsed, ~active, ~frozen)
    if status == STATUS_CANCELLED:
        return query.filter(cancelled, ~active, ~frozen, ~lapsed)
    return query.filter(~any_membership)


def list_members(
    *,
    search: str | None = None,
    status: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """
    Search by name, mobile, email or member code; filter by the status of
    the member's current membership (NONE = never had one).
    """
    now = utcnow()
    query = db.session.query(Member).join(User, Member.user_id == User.id)

    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(db.or_(
            db.func.lower(User.full_name).like(term),
            User.mobile.like(term),
            db.func.lower(User.email).like(term),
            db.func.lower(Member.member_code).like(term),
        ))

    if status:
        query = _status_filter(query, require_choice("status", status, MEMBER_STATUS_FILTERS), now)

    query = query.order_by(Member.join_date.desc(), Member.id.desc())
    return paginate(query, page=page, limit=limit, serialize=lambda m: member_summary(m, now))


def create_member(*, payload: dict, recorded_by_user_id: int | None = None) -> Member:
    """
    Create user + member in one transaction. The initial password defaults
    to the mobile number. With plan_id, a manual payment buys the first
    membership right away.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    user_part, member_part = _split_payload(payload)
    patch = _member_patch(member_part, partial=False)

    full_name = (user_part.get("full_name") or "").strip()
    mobile = str(user_part.get("mobile") or "").strip()
    if not full_name:
        raise ValidationError("full_name is required")
    if not mobile:
        raise ValidationError("mobile is required")
    password = user_part.get("password") or mobile
    auth_service.validate_password_strength(password)

    plan_id = payload.get("plan_id")
    payment_method = None
    if plan_id is not None:
        # Fail before creating anything when the plan or method is unusable
        payment_service.get_purchasable_plan(plan_id)
        payment_method = require_choice(
            "payment_method",
            payload.get("payment_method") or payment_service.DEFAULT_MANUAL_METHOD,
            MANUAL_PAYMENT_METHODS,
        )

    sequence_service.ensure_sequence(sequence_service.MEMBER_SEQUENCE)

    def _op() -> Member:
        try:
            user = auth_service.create_user(
                full_name=full_name,
                mobile=mobile,
                email=user_part.get("email"),
                password=password,
                role=ROLE_MEMBER,
                commit=False,
            )
            member = Member(user_id=user.id, member_code=sequence_service.next_member_code(), **patch)
            db.session.add(member)
            db.session.commit()
        except ValueError:
            db.session.rollback()
            raise
        return member

    member = run_with_retry(_op, retry_on=UNIQUE_CONFLICT_ERRORS)

    if plan_id is not None:
        payment_service.record_manual_payment(
            member_id=member.id,
            plan_id=plan_id,
            payment_method=payment_method,
            recorded_by_user_id=recorded_by_user_id,
        )
    return member


def update_member(*, member_id: int, payload: dict) -> Member:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    member = get_member(member_id)
    user_part, member_part = _split_payload(payload)
    patch = _member_patch(member_part, partial=True)

    if "password" in user_part:
        raise ValidationError("Field not allowed: password")
    if "status" in user_part:
        require_choice("status", user_part["status"], USER_STATUSES)

    profile_patch = {k: v for k, v in user_part.items() if k != "status"}
    if profile_patch:
        # Commits the user changes; runs first so a clash leaves nothing half-applied
        auth_service.update_profile(user=member.user, patch=profile_patch)
    if "status" in user_part:
        member.user.status = require_choice("status", user_part["status"], USER_STATUSES)

    for key, value in patch.items():
        setattr(member, key, value)
    db.session.commit()
    return member


def delete_member(*, member_id: int) -> None:
    """Delete the member's user; profile, memberships, payments and history cascade."""
    member = get_member(member_id)
    db.session.delete(member.user)
    db.session.commit()
