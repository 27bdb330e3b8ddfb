from __future__ import annotations

from ..extensions import db
from gymdesk.time_utils import to_utc_z


WORKOUT_TYPES = ("PUSH_PULL_LEGS", "BRO_SPLIT", "FULL_BODY", "UPPER_LOWER", "CUSTOM")


class WorkoutPlan(db.Model):
    """
    Workout template.

    exercises is an ordered list of days:
    [{"day": "Day 1 - Push", "exercises": [{"name", "sets", "reps", "muscle"}]}]
    """
    __tablename__ = "workout_plans"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(32), nullable=False, default="CUSTOM")
    description = db.Column(db.Text, nullable=True)
    exercises = db.Column(db.JSON, nullable=False, default=list)
    days_per_week = db.Column(db.Integer, nullable=False, default=3)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    assignments = db.relationship("MemberWorkout", back_populates="workout_plan", lazy=True, cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "exercises": self.exercises or [],
            "days_per_week": self.days_per_week,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class MemberWorkout(db.Model):
    """Assignment of a workout plan to a member; at most one active per member."""
    __tablename__ = "member_workouts"
    __table_args__ = (
        db.Index("ix_member_workouts_member_active", "member_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    workout_plan_id = db.Column(db.Integer, db.ForeignKey("workout_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    member = db.relationship("Member", back_populates="workouts")
    workout_plan = db.relationship("WorkoutPlan", back_populates="assignments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "member_id": self.member_id,
            "workout_plan_id": self.workout_plan_id,
            "assigned_at": to_utc_z(self.assigned_at),
            "is_active": self.is_active,
            "workout_plan": self.workout_plan.to_dict() if self.workout_plan else None,
        }
