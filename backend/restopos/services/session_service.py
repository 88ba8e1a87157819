# Overview: Service-layer operations for sessions and the active tenant scope.

"""
Sessions and Active Scope

A login yields an opaque bearer token. Only its SHA-256 digest is stored;
the token itself has 256 bits of entropy, so a slow hash buys nothing.

A session dies when any of these hold:
- it is older than SESSION_ABSOLUTE_TIMEOUT_HOURS
- it has been idle for SESSION_IDLE_TIMEOUT_HOURS (it is revoked on sight)
- it was revoked (logout, password change, user deleted)

Each session also carries the restaurant the user is working in
(active_restaurant_id). NULL there means "all restaurants" and only ever
takes effect for superadmins; resolve_scope pins everyone else to their
own restaurant whatever the session says.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..errors import NotFoundError, PermissionDeniedError
from ..extensions import db
from ..models import Restaurant, SessionToken, User
from ..permissions import ALL_TENANTS_TOKEN, Actor, TenantScope, resolve_scope
from ..time_utils import utcnow

TOKEN_BYTES = 32
PURGE_AFTER = timedelta(days=30)


@dataclass
class SessionContext:
    """What require_auth hands to a request: the user, their session and policy view."""
    user: User
    session: SessionToken
    actor: Actor

    @property
    def active_scope(self) -> TenantScope:
        return scope_for_request(self, None)


def _hours(key: str, default: int) -> timedelta:
    return timedelta(hours=current_app.config.get(key, default))


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(token_hash=hash_token(token), is_revoked=False).first()


def create_session(
    user_id: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Open a session for the user and return (record, plaintext token).

    Superadmins start on all restaurants, everyone else on their own.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    token = generate_token()
    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(token),
        active_restaurant_id=None if Actor.from_user(user).is_superadmin else user.restaurant_id,
        created_at=now,
        last_used_at=now,
        expires_at=now + _hours("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24),
        user_agent=user_agent,
        ip_address=ip_address,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Look up a live session for the token and touch its last_used_at.

    None for unknown, revoked, expired or idle tokens.
    """
    if not token:
        return None

    session = _live_session(token)
    if session is None or session.user is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None
    if now - session.last_used_at > _hours("SESSION_IDLE_TIMEOUT_HOURS", 2):
        session.revoke("Idle timeout")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=session.user, session=session, actor=Actor.from_user(session.user))


def scope_for_request(context: SessionContext, requested: str | None) -> TenantScope:
    """
    Scope for one request: the ?scope= value if given, else the session's
    active restaurant (NULL read as "all").
    """
    if not requested:
        requested = context.session.active_restaurant_id or ALL_TENANTS_TOKEN
    return resolve_scope(context.actor, requested)


def switch_scope(context: SessionContext, requested: str | None) -> TenantScope:
    """
    Persist a new active restaurant on the session.

    Superadmins: "all" or any existing restaurant (NotFoundError otherwise).
    Others: only their own restaurant; "all" quietly narrows to it and any
    other id is a PermissionDeniedError.
    """
    actor = context.actor
    wants_all = requested in (None, "", ALL_TENANTS_TOKEN)

    if not actor.is_superadmin:
        if not wants_all and requested != actor.restaurant_id:
            raise PermissionDeniedError("You can only work in your own restaurant")
        context.session.active_restaurant_id = actor.restaurant_id
    elif wants_all:
        context.session.active_restaurant_id = None
    else:
        if db.session.get(Restaurant, requested) is None:
            raise NotFoundError("Restaurant not found")
        context.session.active_restaurant_id = requested

    db.session.commit()
    return scope_for_request(context, None)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """False when there was no live session for the token."""
    session = _live_session(token)
    if session is None:
        return False
    session.revoke(reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: str, reason: str = "Revoke all sessions") -> int:
    """
    Revoke every live session of a user, e.g. after a password change.

    Leaves the commit to the caller's transaction.
    """
    sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for session in sessions:
        session.revoke(reason)
    return len(sessions)


def cleanup_expired_sessions() -> int:
    """Delete dead sessions created more than PURGE_AFTER ago; returns the count."""
    now = utcnow()
    deleted = db.session.query(SessionToken).filter(
        db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
        SessionToken.created_at < now - PURGE_AFTER,
    ).delete(synchronize_session=False)
    db.session.commit()
    current_app.logger.info("session cleanup removed %s rows", deleted)
    return deleted
