from __future__ import annotations

import uuid

from ..extensions import db
from gymdesk.time_utils import to_iso_date, to_utc_z


GENDERS = ("MALE", "FEMALE", "OTHER")


def _new_uuid() -> str:
    return str(uuid.uuid4())


class Member(db.Model):
    """
    Member profile attached to a MEMBER user.

    member_code is the human-facing id printed on receipts (NAZ-001);
    uuid is the secret half of the QR check-in payload.
    """
    __tablename__ = "members"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    member_code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    uuid = db.Column(db.String(36), nullable=False, unique=True, default=_new_uuid)

    gender = db.Column(db.String(8), nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)
    height_cm = db.Column(db.Float, nullable=True)
    weight_kg = db.Column(db.Float, nullable=True)
    fitness_goal = db.Column(db.String(255), nullable=True)
    medical_notes = db.Column(db.Text, nullable=True)
    emergency_contact = db.Column(db.String(120), nullable=True)

    join_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", back_populates="member")
    memberships = db.relationship(
        "Membership",
        back_populates="member",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Membership.start_date.desc()",
    )
    payments = db.relationship("Payment", back_populates="member", lazy=True, cascade="all, delete-orphan")
    attendance = db.relationship("Attendance", back_populates="member", lazy=True, cascade="all, delete-orphan")
    progress_records = db.relationship("ProgressRecord", back_populates="member", lazy=True, cascade="all, delete-orphan")
    workouts = db.relationship("MemberWorkout", back_populates="member", lazy=True, cascade="all, delete-orphan")

    def to_dict(self, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "member_code": self.member_code,
            "gender": self.gender,
            "date_of_birth": to_iso_date(self.date_of_birth),
            "height_cm": self.height_cm,
            "weight_kg": self.weight_kg,
            "fitness_goal": self.fitness_goal,
            "medical_notes": self.medical_notes,
            "emergency_contact": self.emergency_contact,
            "join_date": to_utc_z(self.join_date),
        }
        if include_user and self.user:
            data["full_name"] = self.user.full_name
            data["mobile"] = self.user.mobile
            data["email"] = self.user.email
            data["status"] = self.user.status
        return data
