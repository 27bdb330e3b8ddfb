# Overview: Service-layer operations for body-metric progress records.

from __future__ import annotations

from ..extensions import db
from ..models import Member, ProgressRecord
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_progress,
    validate_payload,
)
from gymdesk.time_utils import utcnow


MEASUREMENTS = ("weight", "body_fat", "chest", "waist", "hips", "arms", "thighs")

PROGRESS_POLICY = ModelValidationPolicy(
    writable_fields={*MEASUREMENTS, "photo", "notes", "recorded_at"},
    required_on_create=set(),
)


def _progress_patch(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=ProgressRecord, payload=payload, policy=PROGRESS_POLICY, partial=partial)
    if "recorded_at" in patch and patch["recorded_at"] is None:
        raise ValidationError("recorded_at cannot be null")
    enforce_rules_progress(patch)
    return patch


def create_record(*, member_id: int, payload: dict) -> ProgressRecord:
    member = db.session.get(Member, member_id) if member_id is not None else None
    if not member:
        raise NotFoundError("Member not found")

    patch = _progress_patch(payload, partial=False)
    if not any(patch.get(key) is not None for key in MEASUREMENTS):
        raise ValidationError("At least one measurement is required")
    patch.setdefault("recorded_at", utcnow())

    record = ProgressRecord(member_id=member.id, **patch)
    db.session.add(record)
    db.session.commit()
    return record


def get_record(record_id: int) -> ProgressRecord:
    record = db.session.get(ProgressRecord, record_id)
    if not record:
        raise NotFoundError("Progress record not found")
    return record


def list_records(*, member_id: int, limit: int | None = None) -> list[ProgressRecord]:
    query = (
        db.session.query(ProgressRecord)
        .filter(ProgressRecord.member_id == member_id)
        .order_by(ProgressRecord.recorded_at.desc(), ProgressRecord.id.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def update_record(*, record_id: int, payload: dict) -> ProgressRecord:
    record = get_record(record_id)
    patch = _progress_patch(payload, partial=True)
    for key, value in patch.items():
        setattr(record, key, value)
    db.session.commit()
    return record


def delete_record(*, record_id: int) -> None:
    record = get_record(record_id)
    db.session.delete(record)
    db.session.commit()
