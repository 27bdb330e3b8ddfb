from __future__ import annotations

from ..extensions import db
from gymdesk.time_utils import to_utc_z


class ProgressRecord(db.Model):
    """Body-metric snapshot. Measurements in kg / % / cm."""
    __tablename__ = "progress_records"
    __table_args__ = (
        db.Index("ix_progress_member_recorded", "member_id", "recorded_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    weight = db.Column(db.Float, nullable=True)
    body_fat = db.Column(db.Float, nullable=True)
    chest = db.Column(db.Float, nullable=True)
    waist = db.Column(db.Float, nullable=True)
    hips = db.Column(db.Float, nullable=True)
    arms = db.Column(db.Float, nullable=True)
    thighs = db.Column(db.Float, nullable=True)
    photo = db.Column(db.String(512), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    recorded_at = db.Column(db.DateTime(timezone=True), nullable=False)

    member = db.relationship("Member", back_populates="progress_records")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "member_id": self.member_id,
            "weight": self.weight,
            "body_fat": self.body_fat,
            "chest": self.chest,
            "waist": self.waist,
            "hips": self.hips,
            "arms": self.arms,
            "thighs": self.thighs,
            "photo": self.photo,
            "notes": self.notes,
            "recorded_at": to_utc_z(self.recorded_at),
        }
