# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every admin action and every member portal call must be attributable
to a user. Uses bcrypt for password hashing.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters (members are issued their mobile number as the
  initial password)
- Login by mobile number or email
- Session tokens managed separately (see session_service.py)
"""

import bcrypt

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_MEMBER, ROLES, USER_ACTIVE
from ..validation import ConflictError
from gymdesk.time_utils import utcnow


MIN_PASSWORD_LENGTH = 6


class PasswordValidationError(Exception):
    """Raised when password doesn't meet length requirements."""
    pass


class AuthError(Exception):
    """Raised when credentials or account state reject a request."""
    pass


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for length before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def normalize_identifier(identifier: str) -> str:
    return (identifier or "").strip().lower()


def find_user_by_identifier(identifier: str) -> User | None:
    """Look up a user by mobile number or (case-insensitive) email."""
    ident = normalize_identifier(identifier)
    if not ident:
        return None
    return db.session.query(User).filter(
        db.or_(User.mobile == ident, db.func.lower(User.email) == ident)
    ).first()


def create_user(
    *,
    full_name: str,
    mobile: str,
    password: str,
    email: str | None = None,
    role: str = ROLE_MEMBER,
    commit: bool = True,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Mobile and email must be unique or ConflictError will be raised.
    Pass commit=False to create the user inside a caller's transaction
    (member creation adds the Member row in the same commit).
    """
    full_name = (full_name or "").strip()
    mobile = (mobile or "").strip()
    email = (email or "").strip().lower() or None

    if not full_name:
        raise ValueError("full_name is required")
    if not mobile:
        raise ValueError("mobile is required")
    if role not in ROLES:
        raise ValueError(f"role must be one of: {', '.join(ROLES)}")

    existing = db.session.query(User).filter(User.mobile == mobile).first()
    if existing:
        raise ConflictError("Mobile number already registered")
    if email:
        existing = db.session.query(User).filter(db.func.lower(User.email) == email).first()
        if existing:
            raise ConflictError("Email already registered")

    user = User(
        full_name=full_name,
        mobile=mobile,
        email=email,
        password_hash=hash_password(password),
        role=role,
        status=USER_ACTIVE,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """
    Authenticate user by mobile/email and password.

    Returns User if credentials valid and account active, None otherwise.
    Updates last_login_at on success.
    """
    user = find_user_by_identifier(identifier)
    if not user:
        return None

    if not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def update_profile(*, user: User, patch: dict) -> User:
    """
    Update a user's own name, email, mobile or profile photo.

    Raises ConflictError when the new mobile or email belongs to someone else.
    """
    changes: dict = {}

    if "full_name" in patch:
        name = (patch.get("full_name") or "").strip()
        if not name:
            raise ValueError("full_name cannot be blank")
        changes["full_name"] = name

    if "mobile" in patch:
        mobile = (patch.get("mobile") or "").strip()
        if not mobile:
            raise ValueError("mobile cannot be blank")
        clash = db.session.query(User).filter(User.mobile == mobile, User.id != user.id).first()
        if clash:
            raise ConflictError("Mobile number already registered")
        changes["mobile"] = mobile

    if "email" in patch:
        email = (patch.get("email") or "").strip().lower() or None
        if email:
            clash = db.session.query(User).filter(
                db.func.lower(User.email) == email, User.id != user.id
            ).first()
            if clash:
                raise ConflictError("Email already registered")
        changes["email"] = email

    if "profile_photo" in patch:
        changes["profile_photo"] = (patch.get("profile_photo") or "").strip() or None

    for key, value in changes.items():
        setattr(user, key, value)
    db.session.commit()
    return user


def change_password(*, user: User, current_password: str, new_password: str) -> None:
    """
    Change password after verifying the current one.

    Raises AuthError for a wrong current password and
    PasswordValidationError for a too-short new one.
    """
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.session.commit()
