# backend/gymdesk/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import Member, SessionToken, User
from ..services import gateway_service, notification_service
from gymdesk.time_utils import utcnow


API_VERSION = "1.0.0"

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """Check database connectivity with a few cheap counts."""
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        member_count = db.session.query(Member).count()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "members": member_count,
                "active_sessions": active_sessions,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def integrations_status() -> dict:
    """Which outbound channels have credentials. Unconfigured is not unhealthy."""
    return {
        "payments": gateway_service.is_configured(),
        "sms": notification_service.sms_configured(),
        "email": notification_service.email_configured(),
        "scheduler": bool(current_app.config.get("SCHEDULER_ENABLED")) and not current_app.testing,
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    body = {
        "success": healthy,
        "message": "ULIFTS API is running" if healthy else "Database unavailable",
        "data": {
            "status": database_health["status"],
            "timestamp": utcnow().isoformat() + "Z",
            "checks": {"database": database_health},
            "integrations": integrations_status(),
        },
    }
    return body, 200 if healthy else 503


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information."""
    env = "production" if not current_app.debug else "development"
    return {
        "success": True,
        "data": {
            "api_version": API_VERSION,
            "environment": env,
            "python_version": sys.version.split()[0],
            "server_time": utcnow().isoformat() + "Z",
        },
    }
