from __future__ import annotations

from flask import Blueprint, current_app, request

from ..decorators import is_admin, optional_auth, require_admin, require_auth
from ..responses import fail, internal_error, ok
from ..services import settings_service
from ..services.settings_service import SettingsValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@optional_auth
def get_settings_route():
    """Public subset for everyone; admins also get GSTIN and notification flags."""
    settings = settings_service.get_settings()
    return ok(settings.to_dict() if is_admin() else settings.to_public_dict())


@settings_bp.put("")
@require_auth
@require_admin
def update_settings_route():
    payload = request.get_json(silent=True)
    try:
        settings = settings_service.update_settings(payload=payload if payload is not None else {})
    except SettingsValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return internal_error()
    return ok(settings.to_dict(), "Settings updated successfully")
