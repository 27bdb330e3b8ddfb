from __future__ import annotations

from ..extensions import db
from gymdesk.time_utils import to_utc_z


METHOD_QR = "QR"
METHOD_MANUAL = "MANUAL"
ATTENDANCE_METHODS = (METHOD_QR, METHOD_MANUAL)


class Attendance(db.Model):
    """A single gym visit. check_out_time is NULL while the member is inside."""
    __tablename__ = "attendance"
    __table_args__ = (
        db.Index("ix_attendance_member_check_in", "member_id", "check_in_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    check_in_time = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    check_out_time = db.Column(db.DateTime(timezone=True), nullable=True)
    method = db.Column(db.String(8), nullable=False, default=METHOD_MANUAL)

    member = db.relationship("Member", back_populates="attendance")

    def to_dict(self, include_member: bool = False) -> dict:
        duration_minutes = None
        if self.check_out_time is not None:
            duration_minutes = int((self.check_out_time - self.check_in_time).total_seconds() // 60)
        data = {
            "id": self.id,
            "member_id": self.member_id,
            "check_in_time": to_utc_z(self.check_in_time),
            "check_out_time": to_utc_z(self.check_out_time),
            "method": self.method,
            "duration_minutes": duration_minutes,
        }
        if include_member and self.member:
            data["member"] = self.member.to_dict(include_user=True)
        return data
