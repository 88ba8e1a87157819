# Overview: Pure authorization decisions over (actor, action, target, scope).

"""
Authorization Policy

Every data operation is gated here before it reaches the directory or the
scoped store. Functions are pure: they take the facts they need (including
any counts read from storage) and return a Decision, never touching the
database themselves.

Decision.kind tells callers which typed error a denial maps to:
- "permission": the actor's role lacks the capability (PermissionDeniedError)
- "not_found":  the target does not exist (NotFoundError)
- "conflict":   allowed in principle, but a structural invariant blocks it
                (ConflictError), e.g. last superadmin, last restaurant user
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConflictError, NotFoundError, PermissionDeniedError
from .roles import ASSIGNABLE_ROLES, POLICY_TABLE, Action, Grant, Role, parse_role
from .scope import ALL_TENANTS_TOKEN, _ALL_TENANTS_KEY, AllTenants, Scoped, TenantScope


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as resolved by the session layer."""
    id: str
    role: Role
    restaurant_id: str

    @classmethod
    def from_user(cls, user) -> "Actor":
        role = parse_role(user.role)
        if role is None:
            raise PermissionDeniedError(f"Unknown role: {user.role}")
        return cls(id=user.id, role=role, restaurant_id=user.restaurant_id)

    @property
    def is_superadmin(self) -> bool:
        return self.role is Role.SUPERADMIN


@dataclass(frozen=True)
class UserFacts:
    """What the policy needs to know about a user that is the target of an action."""
    id: str
    role: Role
    restaurant_id: str


@dataclass(frozen=True)
class Decision:
    allowed: bool
    kind: str | None = None
    reason: str | None = None

    def raise_for_denial(self) -> None:
        if self.allowed:
            return
        if self.kind == "not_found":
            raise NotFoundError(self.reason or "Not found")
        if self.kind == "conflict":
            raise ConflictError(self.reason or "Conflict")
        raise PermissionDeniedError(self.reason or "Permission denied")


ALLOW = Decision(True)


def _deny(reason: str) -> Decision:
    return Decision(False, "permission", reason)


def _conflict(reason: str) -> Decision:
    return Decision(False, "conflict", reason)


def _not_found(reason: str) -> Decision:
    return Decision(False, "not_found", reason)


# -- SCOPE --

def resolve_scope(actor: Actor, requested: str | None = None) -> TenantScope:
    """
    Turn a requested scope value into the scope the actor is allowed to use.

    Superadmins get AllTenants for "all" (or no request) and Scoped(id) for a
    specific restaurant. Every other role is pinned to its own restaurant and
    the requested value is ignored.
    """
    if not actor.is_superadmin:
        return Scoped(actor.restaurant_id)

    if requested is None or requested == "" or requested == ALL_TENANTS_TOKEN:
        return AllTenants(_ALL_TENANTS_KEY)
    return Scoped(str(requested))


def scope_allows(scope: TenantScope, restaurant_id: str | None) -> bool:
    return scope.includes(restaurant_id)


# -- ACTIONS --

def authorize(actor: Actor, action: Action, owner_restaurant_id: str | None = None) -> Decision:
    """
    Evaluate the policy table for (actor.role, action).

    owner_restaurant_id is the restaurant that owns the target resource.
    When omitted, only the role capability is checked (collection-level
    access, which is then narrowed by the resolved scope).
    """
    grant = POLICY_TABLE.get(action, {}).get(actor.role, Grant.DENY)

    if grant is Grant.DENY:
        return _deny(f"Role '{actor.role.value}' cannot perform {action.value}")

    if grant is Grant.OWN_TENANT and owner_restaurant_id is not None:
        if owner_restaurant_id != actor.restaurant_id:
            return _deny(f"{action.value} is limited to your own restaurant")

    return ALLOW


def check_role_assignment(actor: Actor, role) -> Decision:
    """May the actor create a user with (or change a user to) this role?"""
    target_role = parse_role(role)
    if target_role is None:
        return Decision(False, "permission", f"Unknown role: {role}")
    if target_role not in ASSIGNABLE_ROLES.get(actor.role, frozenset()):
        return _deny(f"Role '{actor.role.value}' cannot assign role '{target_role.value}'")
    return ALLOW


def check_user_management(actor: Actor, target: UserFacts) -> Decision:
    """May the actor edit this user at all (before field-level checks)?"""
    decision = authorize(actor, Action.MANAGE_USERS, target.restaurant_id)
    if not decision.allowed:
        return decision
    if actor.role is Role.ADMIN and target.role in (Role.SUPERADMIN, Role.ADMIN) and target.id != actor.id:
        return _deny("Admins cannot modify other administrators")
    return ALLOW


def check_superadmin_demotion(target: UserFacts, new_role, superadmin_count: int) -> Decision:
    """Changing the role of the last superadmin would leave the system without one."""
    new = parse_role(new_role)
    if target.role is Role.SUPERADMIN and new is not Role.SUPERADMIN and superadmin_count <= 1:
        return _conflict("Cannot change the role of the only superadmin in the system")
    return ALLOW


def check_user_deletion(
    actor: Actor,
    target: UserFacts | None,
    *,
    superadmin_count: int,
    restaurant_user_count: int,
) -> Decision:
    """
    User deletion rules.

    - Nobody deletes themselves.
    - The target must exist.
    - Superadmin: anyone, but never the last superadmin of the system.
    - Admin: only seller/waiter of their own restaurant.
    - Neither may remove the last remaining user of a restaurant (delete the
      restaurant instead).
    - Everyone else: denied.
    """
    if target is not None and target.id == actor.id:
        return _deny("You cannot delete your own account")

    if target is None:
        return _not_found("The user you are trying to delete does not exist")

    if actor.role is Role.SUPERADMIN:
        if target.role is Role.SUPERADMIN and superadmin_count <= 1:
            return _conflict("Cannot delete the only superadmin in the system")
        if restaurant_user_count <= 1:
            return _conflict(
                "Cannot delete the only user of a restaurant. Delete the restaurant instead."
            )
        return ALLOW

    if actor.role is Role.ADMIN:
        if target.restaurant_id != actor.restaurant_id:
            return _deny("You can only delete users of your own restaurant")
        if target.role in (Role.ADMIN, Role.SUPERADMIN):
            return _deny("You do not have permission to delete an administrator")
        if restaurant_user_count <= 1:
            return _conflict(
                "Cannot delete the only user of a restaurant. Delete the restaurant instead."
            )
        return ALLOW

    return _deny("You do not have permission to delete users")


def check_restaurant_deletion(restaurant_superadmins: int, total_superadmins: int) -> Decision:
    """A restaurant whose users include every remaining superadmin cannot be deleted."""
    if restaurant_superadmins > 0 and total_superadmins - restaurant_superadmins < 1:
        return _conflict(
            "Cannot delete the restaurant that holds the only superadmin in the system"
        )
    return ALLOW
