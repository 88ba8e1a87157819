# Overview: Staff account management within the tenant directory.

"""
User Directory Service

MULTI-TENANT: A user belongs to exactly one restaurant for its whole life;
restaurant_id is set at creation and never written again. Email is unique
across every restaurant.

Every function here takes the acting user and applies the authorization
policy itself (role assignment, admin-on-admin edits, last superadmin,
last restaurant user), because those rules depend on the target user.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..extensions import db
from ..models import User
from ..permissions import (
    ROLE_RANK,
    Action,
    Actor,
    TenantScope,
    UserFacts,
    check_role_assignment,
    check_superadmin_demotion,
    check_user_deletion,
    check_user_management,
    parse_role,
)
from ..validation import ModelValidationPolicy, validate_payload
from .auth_service import hash_password
from .concurrency import atomic, lock_for_update
from .permission_service import enforce, log_security_event, require_action
from .restaurant_service import count_superadmins, email_in_use
from .session_service import revoke_all_user_sessions
from .tenant_service import get_in_scope, owner_for_create, require_restaurant_in_scope, scoped_query

USER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "role"},
    required_on_create={"name", "email", "role"},
    min_lengths={"name": 2},
    email_fields={"email"},
)


def _facts(user: User) -> UserFacts:
    return UserFacts(id=user.id, role=parse_role(user.role), restaurant_id=user.restaurant_id)


def _validate_role(data: dict) -> None:
    if "role" in data and parse_role(data["role"]) is None:
        raise ValidationError(f"Unknown role: {data['role']}")


def _rank(user: User) -> int:
    role = parse_role(user.role)
    return ROLE_RANK.get(role, 0) if role else 0


def list_users(scope: TenantScope) -> list[User]:
    """Users visible in the scope, highest role first, then by name."""
    users = scoped_query(User, scope).all()
    return sorted(users, key=lambda u: (-_rank(u), u.name.lower()))


def get_user(scope: TenantScope, user_id: str) -> User:
    return get_in_scope(User, scope, user_id, label="User")


def _clean_fields(fields) -> tuple[dict, str | None, str | None]:
    if not isinstance(fields, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(fields)
    password = fields.pop("password", None)
    restaurant_id = fields.pop("restaurant_id", None)
    return fields, password, restaurant_id


def add_user(actor: Actor, scope: TenantScope, fields: dict) -> User:
    """
    Create a user in the scope's restaurant (or, under AllTenants, in the
    restaurant named by fields["restaurant_id"]).

    Raises:
        PermissionDeniedError: role may not manage users or assign this role
        ValidationError: bad fields or short password
        ConflictError: email already in use anywhere
    """
    fields, password, requested_restaurant_id = _clean_fields(fields)
    restaurant_id = owner_for_create(scope, requested_restaurant_id)
    require_restaurant_in_scope(scope, restaurant_id)

    require_action(actor, Action.MANAGE_USERS, restaurant_id)

    data = validate_payload(model=User, payload=fields, policy=USER_POLICY, partial=False)
    _validate_role(data)
    enforce(actor, check_role_assignment(actor, data["role"]), action=Action.MANAGE_USERS.value)
    if password is None:
        raise ValidationError("Missing required fields: password")
    password_hash = hash_password(password)

    with atomic():
        if email_in_use(data["email"]):
            raise ConflictError("This email is already in use")
        user = User(restaurant_id=restaurant_id, password_hash=password_hash, **data)
        db.session.add(user)

    current_app.logger.info("user created id=%s role=%s restaurant=%s by=%s", user.id, user.role, restaurant_id, actor.id)
    return user


def update_user(actor: Actor, scope: TenantScope, user_id: str, fields: dict) -> User:
    """
    Update name, email, role and/or password of a user in scope.

    Email must stay globally unique (the user's own current email is fine).
    Changing the role of the only superadmin is a ConflictError.
    """
    fields, password, requested_restaurant_id = _clean_fields(fields)
    if requested_restaurant_id is not None:
        raise ValidationError("Field not allowed: restaurant_id")

    target = get_user(scope, user_id)
    enforce(actor, check_user_management(actor, _facts(target)), action=Action.MANAGE_USERS.value,
            restaurant_id=target.restaurant_id)

    data = validate_payload(model=User, payload=fields, policy=USER_POLICY, partial=True)
    _validate_role(data)
    if "role" in data and data["role"] != target.role:
        if target.id == actor.id:
            raise PermissionDeniedError("You cannot change your own role")
        enforce(actor, check_role_assignment(actor, data["role"]), action=Action.MANAGE_USERS.value)
    password_hash = hash_password(password) if password else None

    with atomic():
        user = lock_for_update(db.session.query(User).filter_by(id=target.id)).first()

        if "role" in data and data["role"] != user.role:
            check_superadmin_demotion(
                _facts(user), data["role"], count_superadmins(for_update=True)
            ).raise_for_denial()

        if "email" in data and email_in_use(data["email"], exclude_user_id=user.id):
            raise ConflictError("This email is already in use by another user")

        for key, value in data.items():
            setattr(user, key, value)
        if password_hash:
            user.password_hash = password_hash
            if user.id != actor.id:
                revoke_all_user_sessions(user.id, reason="Password changed by administrator")

    db.session.refresh(user)
    return user


def delete_user(actor: Actor, scope: TenantScope, user_id: str) -> None:
    """
    Delete a user of the scope after the deletion policy passes.

    Users outside the scope are reported as not found, like every other
    scoped lookup. The counts the policy needs are read under row locks in
    the same transaction as the delete.
    """
    with atomic():
        target = lock_for_update(scoped_query(User, scope).filter(User.id == user_id)).first()
        if target is not None:
            facts = _facts(target)
            restaurant_user_count = len(
                lock_for_update(db.session.query(User.id).filter_by(restaurant_id=target.restaurant_id)).all()
            )
            decision = check_user_deletion(
                actor,
                facts,
                superadmin_count=count_superadmins(for_update=True),
                restaurant_user_count=restaurant_user_count,
            )
            if decision.allowed:
                db.session.delete(target)

    if target is None:
        # Logs ids owned by another tenant before raising.
        get_in_scope(User, scope, user_id, label="User", actor_id=actor.id)
        raise NotFoundError("User not found")

    if not decision.allowed:
        enforce(actor, decision, action="DELETE_USER", restaurant_id=facts.restaurant_id)

    current_app.logger.info("user deleted id=%s role=%s by=%s", facts.id, facts.role.value, actor.id)
    log_security_event(
        user_id=actor.id,
        event_type="USER_DELETED",
        success=True,
        action="DELETE",
        reason=f"User {facts.id} ({facts.role.value}) deleted",
        restaurant_id=facts.restaurant_id,
    )

