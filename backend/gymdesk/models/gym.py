from __future__ import annotations

from ..extensions import db
from gymdesk.time_utils import to_utc_z


IMAGE_CATEGORIES = ("EXTERIOR", "INTERIOR", "EQUIPMENT", "GALLERY", "TRANSFORMATION")
VISIBILITY_PUBLIC = "PUBLIC"
VISIBILITY_ADMIN_ONLY = "ADMIN_ONLY"
IMAGE_VISIBILITIES = (VISIBILITY_PUBLIC, VISIBILITY_ADMIN_ONLY)

DEFAULT_NOTIFICATION_SETTINGS = {
    "emailAlerts": True,
    "smsAlerts": False,
    "marketingEmails": False,
}


class GymSettings(db.Model):
    """
    Singleton row with the gym's identity and preferences.

    Created on first read (see settings_service.get_settings).
    """
    __tablename__ = "gym_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    gym_name = db.Column(db.String(200), nullable=False)
    tagline = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    gstin = db.Column(db.String(32), nullable=True)
    logo = db.Column(db.String(512), nullable=True)
    currency = db.Column(db.String(8), nullable=False, default="INR")
    timezone = db.Column(db.String(64), nullable=False, default="Asia/Kolkata")
    working_hours = db.Column(db.JSON, nullable=True)
    social_links = db.Column(db.JSON, nullable=True)
    notification_settings = db.Column(db.JSON, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def notification_flags(self) -> dict:
        flags = dict(DEFAULT_NOTIFICATION_SETTINGS)
        flags.update(self.notification_settings or {})
        return flags

    def to_public_dict(self) -> dict:
        return {
            "gym_name": self.gym_name,
            "tagline": self.tagline,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "logo": self.logo,
            "currency": self.currency,
            "timezone": self.timezone,
            "working_hours": self.working_hours,
            "social_links": self.social_links,
        }

    def to_dict(self) -> dict:
        data = self.to_public_dict()
        data.update({
            "id": self.id,
            "gstin": self.gstin,
            "notification_settings": self.notification_flags(),
            "updated_at": to_utc_z(self.updated_at),
        })
        return data


class GymImage(db.Model):
    """Gallery image metadata; the file itself lives under UPLOAD_DIR."""
    __tablename__ = "gym_images"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(16), nullable=False, default="GALLERY")
    image_url = db.Column(db.String(512), nullable=False)
    file_name = db.Column(db.String(255), nullable=True)
    visibility = db.Column(db.String(16), nullable=False, default=VISIBILITY_PUBLIC)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    uploaded_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "image_url": self.image_url,
            "visibility": self.visibility,
            "sort_order": self.sort_order,
            "uploaded_at": to_utc_z(self.uploaded_at),
        }
