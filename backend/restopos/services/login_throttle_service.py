"""
Login Throttling

Repeated failed logins for one email lock that email out for a while.
Failures are not kept in a separate table: they are the LOGIN_FAILED rows
of the security event log, keyed by the normalized email in 'action'.

Limits come from config (LOGIN_MAX_FAILED_ATTEMPTS, LOGIN_LOCKOUT_MINUTES);
the window that failures are counted over and the lockout share one length.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import SecurityEvent, User
from ..permissions import TenantScope
from ..time_utils import utcnow
from .permission_service import log_security_event
from .tenant_service import scoped_query

MAX_FAILED_ATTEMPTS = 10
LOCKOUT_MINUTES = 15
WARN_WHEN_REMAINING = 3


@dataclass(frozen=True)
class LockoutStatus:
    failed_attempts: int
    max_attempts: int
    seconds_until_unlock: int | None = None

    @property
    def locked(self) -> bool:
        return self.seconds_until_unlock is not None

    @property
    def remaining(self) -> int:
        return max(self.max_attempts - self.failed_attempts, 0)

    def to_dict(self) -> dict:
        return {
            "locked": self.locked,
            "failed_attempts": self.failed_attempts,
            "max_attempts": self.max_attempts,
            "seconds_until_unlock": self.seconds_until_unlock,
        }


def _max_attempts() -> int:
    return current_app.config.get("LOGIN_MAX_FAILED_ATTEMPTS", MAX_FAILED_ATTEMPTS)


def _lockout() -> timedelta:
    return timedelta(minutes=current_app.config.get("LOGIN_LOCKOUT_MINUTES", LOCKOUT_MINUTES))


def _normalize(email: str | None) -> str:
    return (email or "").strip().lower()


def _recent_failures(email: str):
    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == "LOGIN_FAILED",
        SecurityEvent.action == email,
        SecurityEvent.occurred_at >= utcnow() - _lockout(),
    )


def lockout_status(email: str) -> LockoutStatus:
    """Failures inside the window, and seconds left if the email is locked."""
    email = _normalize(email)
    failures = _recent_failures(email)
    count = failures.count()
    limit = _max_attempts()
    if count < limit:
        return LockoutStatus(count, limit)

    latest = failures.order_by(SecurityEvent.occurred_at.desc()).first()
    unlock_at = latest.occurred_at + _lockout()
    seconds = int((unlock_at - utcnow()).total_seconds())
    return LockoutStatus(count, limit, max(seconds, 1))


def lockout_status_in_scope(scope: TenantScope, email: str) -> LockoutStatus:
    """Lockout status of a user the scope can see; NotFoundError for any other email."""
    email = _normalize(email)
    if scoped_query(User, scope).filter(User.email == email).first() is None:
        raise NotFoundError("User not found")
    return lockout_status(email)


def record_failed_attempt(email: str, reason: str = "Invalid credentials") -> LockoutStatus:
    """Log one failure and return the status that results from it."""
    email = _normalize(email)
    user = db.session.query(User).filter_by(email=email).first()
    log_security_event(
        user_id=user.id if user else None,
        restaurant_id=user.restaurant_id if user else None,
        event_type="LOGIN_FAILED",
        success=False,
        action=email,
        reason=reason,
    )
    return lockout_status(email)


def record_successful_login(user: User) -> None:
    log_security_event(
        user_id=user.id,
        restaurant_id=user.restaurant_id,
        event_type="LOGIN_SUCCESS",
        success=True,
        action=user.email,
    )
