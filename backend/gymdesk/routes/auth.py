# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/gymdesk/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Login by mobile number or email
- Login throttling to prevent brute-force attacks
- Account lockout after repeated failed attempts
- Session management with token-based auth
- Password change revokes every other session
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..responses import fail, internal_error, ok
from ..services import auth_service, login_throttle_service, session_service
from ..services.auth_service import AuthError, PasswordValidationError
from ..validation import ConflictError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.

    SECURITY:
    - Checks for account lockout before attempting authentication
    - Records failed attempts for throttling
    - Records successful logins for audit trail
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("mobile") or data.get("email") or data.get("identifier")
        password = data.get("password")

        if not identifier or not password:
            return fail("Mobile/email and password required", 400)

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        is_locked, seconds_remaining = login_throttle_service.is_account_locked(identifier)
        if is_locked:
            minutes_remaining = (seconds_remaining // 60) + 1 if seconds_remaining else 15
            return fail(
                "Account temporarily locked due to too many failed login attempts",
                429,
                retry_after_seconds=seconds_remaining,
                retry_after_minutes=minutes_remaining,
            )

        user = auth_service.authenticate(identifier, password)

        if not user:
            failed_count = login_throttle_service.record_failed_attempt(
                identifier=identifier,
                ip_address=ip_address,
                user_agent=user_agent,
                reason="Invalid credentials",
            )
            remaining = login_throttle_service.MAX_FAILED_ATTEMPTS - failed_count

            if remaining <= 0:
                return fail(
                    "Account locked due to too many failed login attempts",
                    429,
                    retry_after_minutes=15,
                )
            if remaining <= 3:
                return fail(
                    "Invalid credentials",
                    401,
                    warning=f"{remaining} attempts remaining before account lockout",
                )
            return fail("Invalid credentials", 401)

        login_throttle_service.record_successful_login(
            user_id=user.id,
            identifier=identifier,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address,
        )

        return ok(
            {
                "user": user.to_dict(include_member=True),
                "token": token,
                "session": session.to_dict(),
            },
            "Login successful",
        )

    except Exception:
        current_app.logger.exception("Failed to login user")
        return internal_error()


@auth_bp.get("/lockout-status/<identifier>")
def lockout_status_route(identifier: str):
    return ok(login_throttle_service.get_lockout_status(identifier))


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token used for this request."""
    token = request.headers.get("Authorization").split(" ", 1)[1]
    session_service.revoke_session(token, reason="User logout")
    return ok(None, "Logout successful")


@auth_bp.get("/me")
@require_auth
def me_route():
    return ok(g.current_user.to_dict(include_member=True))


@auth_bp.put("/profile")
@require_auth
def update_profile_route():
    payload = request.get_json(silent=True) or {}
    allowed = {"full_name", "email", "mobile", "profile_photo"}
    unknown = sorted(set(payload) - allowed)
    if unknown:
        return fail(f"Field not allowed: {unknown[0]}", 400)

    try:
        user = auth_service.update_profile(user=g.current_user, patch=payload)
    except ConflictError as e:
        return fail(str(e), 409)
    except ValueError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return internal_error()

    return ok(user.to_dict(include_member=True), "Profile updated")


@auth_bp.put("/password")
@require_auth
def change_password_route():
    """
    Change the caller's password.

    SECURITY: Every other session of the user is revoked; the session
    used for this request stays valid.
    """
    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not current_password or not new_password:
        return fail("current_password and new_password are required", 400)

    try:
        auth_service.change_password(
            user=g.current_user,
            current_password=current_password,
            new_password=new_password,
        )
    except AuthError as e:
        return fail(str(e), 400)
    except PasswordValidationError as e:
        return fail(str(e), 400)

    session_service.revoke_all_user_sessions(
        g.current_user.id,
        reason="Password changed",
        except_session_id=g.session.id,
    )
    return ok(None, "Password changed successfully")
