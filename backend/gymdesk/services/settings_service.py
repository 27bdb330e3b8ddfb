from __future__ import annotations

import re

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import GymSettings
from ..models.gym import DEFAULT_NOTIFICATION_SETTINGS


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Fields an admin may change through PUT /api/settings
WRITABLE_TEXT_FIELDS = {
    "gym_name": 200,
    "tagline": 255,
    "address": None,
    "phone": 32,
    "email": 255,
    "website": 255,
    "gstin": 32,
    "logo": 512,
    "currency": 8,
    "timezone": 64,
}
WRITABLE_JSON_FIELDS = {"working_hours", "social_links"}
REQUIRED_FIELDS = {"gym_name", "address", "currency", "timezone"}


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


def _defaults() -> dict:
    cfg = current_app.config
    return {
        "gym_name": cfg.get("GYM_NAME") or "Gym",
        "address": cfg.get("GYM_ADDRESS") or "",
        "phone": cfg.get("GYM_PHONE") or None,
        "gstin": cfg.get("GYM_GSTIN") or None,
        "currency": "INR",
        "timezone": "Asia/Kolkata",
        "notification_settings": dict(DEFAULT_NOTIFICATION_SETTINGS),
    }


def get_settings() -> GymSettings:
    """
    Return the singleton settings row, creating it from config on first read.
    """
    settings = db.session.query(GymSettings).order_by(GymSettings.id.asc()).first()
    if settings:
        return settings

    settings = GymSettings(**_defaults())
    db.session.add(settings)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        settings = db.session.query(GymSettings).order_by(GymSettings.id.asc()).first()
    return settings


def notification_flags() -> dict:
    return get_settings().notification_flags()


def gym_identity() -> dict:
    """Name/address/phone/GSTIN for receipts and messages, config as fallback."""
    settings = db.session.query(GymSettings).order_by(GymSettings.id.asc()).first()
    defaults = _defaults()
    if settings is None:
        return {key: defaults.get(key) for key in ("gym_name", "address", "phone", "gstin")}
    return {
        "gym_name": settings.gym_name or defaults["gym_name"],
        "address": settings.address or defaults["address"],
        "phone": settings.phone or defaults["phone"],
        "gstin": settings.gstin or defaults["gstin"],
    }


def update_settings(*, payload: dict) -> GymSettings:
    """
    Apply an allowlisted patch. notification_settings is merged key by key,
    everything else replaces the stored value.
    """
    if not isinstance(payload, dict):
        raise SettingsValidationError("Invalid JSON payload")

    allowed = set(WRITABLE_TEXT_FIELDS) | WRITABLE_JSON_FIELDS | {"notification_settings"}
    unknown = sorted(k for k in payload if k not in allowed)
    if unknown:
        raise SettingsValidationError(f"Field not allowed: {', '.join(unknown)}")

    settings = get_settings()
    changes: dict = {}

    for key, max_len in WRITABLE_TEXT_FIELDS.items():
        if key not in payload:
            continue
        value = payload[key]
        value = str(value).strip() if value is not None else ""
        if key in REQUIRED_FIELDS and not value:
            raise SettingsValidationError(f"{key} cannot be blank")
        if max_len and len(value) > max_len:
            raise SettingsValidationError(f"{key} exceeds max length {max_len}")
        if key == "email" and value and not EMAIL_RE.match(value):
            raise SettingsValidationError("email is not a valid address")
        changes[key] = value or None

    for key in WRITABLE_JSON_FIELDS:
        if key not in payload:
            continue
        value = payload[key]
        if value is not None and not isinstance(value, (dict, list)):
            raise SettingsValidationError(f"{key} must be an object")
        changes[key] = value

    if "notification_settings" in payload:
        incoming = payload["notification_settings"] or {}
        if not isinstance(incoming, dict):
            raise SettingsValidationError("notification_settings must be an object")
        merged = settings.notification_flags()
        for key, value in incoming.items():
            if key not in DEFAULT_NOTIFICATION_SETTINGS:
                raise SettingsValidationError(f"Unknown notification setting: {key}")
            if not isinstance(value, bool):
                raise SettingsValidationError(f"notification_settings.{key} must be true or false")
            merged[key] = value
        # Reassign so the JSON column is marked dirty
        changes["notification_settings"] = merged

    # Nothing is applied until the whole patch validated
    for key, value in changes.items():
        setattr(settings, key, value)
    db.session.commit()
    return settings
