# Overview: Authorization policy package.
# Re-exports the public API so callers import from restopos.permissions.

from .roles import (
    ASSIGNABLE_ROLES,
    POLICY_TABLE,
    ROLE_RANK,
    ROLE_VALUES,
    Action,
    Grant,
    Role,
    parse_role,
)
from .scope import ALL_TENANTS_TOKEN, AllTenants, Scoped, TenantScope
from .policy import (
    Actor,
    Decision,
    UserFacts,
    authorize,
    check_restaurant_deletion,
    check_role_assignment,
    check_superadmin_demotion,
    check_user_deletion,
    check_user_management,
    resolve_scope,
    scope_allows,
)

__all__ = [
    "ASSIGNABLE_ROLES",
    "POLICY_TABLE",
    "ROLE_RANK",
    "ROLE_VALUES",
    "Action",
    "Grant",
    "Role",
    "parse_role",
    "ALL_TENANTS_TOKEN",
    "AllTenants",
    "Scoped",
    "TenantScope",
    "Actor",
    "Decision",
    "UserFacts",
    "authorize",
    "check_restaurant_deletion",
    "check_role_assignment",
    "check_superadmin_demotion",
    "check_user_deletion",
    "check_user_management",
    "resolve_scope",
    "scope_allows",
]
