# Overview: Password hashing and credential checks.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for password hashing;
plaintext passwords are never stored or logged.

MULTI-TENANT: Email is globally unique, so a login identifies exactly one
user (and therefore one restaurant) without asking for a tenant.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12, lowered in tests)
- Minimum 6 characters required
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import User
from ..time_utils import utcnow

MIN_PASSWORD_LENGTH = 6


def validate_password_strength(password) -> None:
    """Raises ValidationError if the password is too short."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor from BCRYPT_ROUNDS, default 12).

    Password is validated for length before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash verifies as False rather than raising.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
