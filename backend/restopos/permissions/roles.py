# Overview: Roles, actions and the role x action policy table.

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    SELLER = "seller"
    WAITER = "waiter"


ROLE_VALUES = tuple(role.value for role in Role)

# Capability ordering, not inheritance: a higher rank never implies a grant.
ROLE_RANK = {
    Role.SUPERADMIN: 4,
    Role.ADMIN: 3,
    Role.SELLER: 2,
    Role.WAITER: 1,
}


class Action(str, Enum):
    VIEW_RESTAURANTS = "VIEW_RESTAURANTS"
    VIEW_OWN_RESTAURANT = "VIEW_OWN_RESTAURANT"
    MANAGE_RESTAURANTS = "MANAGE_RESTAURANTS"

    VIEW_USERS = "VIEW_USERS"
    MANAGE_USERS = "MANAGE_USERS"

    VIEW_PRODUCTS = "VIEW_PRODUCTS"
    MANAGE_PRODUCTS = "MANAGE_PRODUCTS"
    VIEW_CATEGORIES = "VIEW_CATEGORIES"
    MANAGE_CATEGORIES = "MANAGE_CATEGORIES"
    VIEW_CUSTOMERS = "VIEW_CUSTOMERS"
    MANAGE_CUSTOMERS = "MANAGE_CUSTOMERS"
    VIEW_PURCHASES = "VIEW_PURCHASES"
    MANAGE_PURCHASES = "MANAGE_PURCHASES"

    VIEW_SALES = "VIEW_SALES"
    CREATE_SALE = "CREATE_SALE"
    EDIT_SALE = "EDIT_SALE"
    UPDATE_SALE_STATUS = "UPDATE_SALE_STATUS"
    DELETE_SALES = "DELETE_SALES"

    VIEW_REPORTS = "VIEW_REPORTS"


class Grant(str, Enum):
    """How far a role's permission for an action reaches."""
    ANY_TENANT = "ANY_TENANT"
    OWN_TENANT = "OWN_TENANT"
    DENY = "DENY"


_ANY = Grant.ANY_TENANT
_OWN = Grant.OWN_TENANT
_NO = Grant.DENY


def _row(superadmin: Grant, admin: Grant, seller: Grant, waiter: Grant) -> dict[Role, Grant]:
    return {
        Role.SUPERADMIN: superadmin,
        Role.ADMIN: admin,
        Role.SELLER: seller,
        Role.WAITER: waiter,
    }


POLICY_TABLE: dict[Action, dict[Role, Grant]] = {
    # -- DIRECTORY --
    Action.VIEW_RESTAURANTS: _row(_ANY, _NO, _NO, _NO),
    Action.VIEW_OWN_RESTAURANT: _row(_ANY, _OWN, _OWN, _OWN),
    Action.MANAGE_RESTAURANTS: _row(_ANY, _NO, _NO, _NO),
    Action.VIEW_USERS: _row(_ANY, _OWN, _NO, _NO),
    Action.MANAGE_USERS: _row(_ANY, _OWN, _NO, _NO),

    # -- CATALOG --
    Action.VIEW_PRODUCTS: _row(_ANY, _OWN, _OWN, _OWN),
    Action.MANAGE_PRODUCTS: _row(_ANY, _OWN, _NO, _NO),
    Action.VIEW_CATEGORIES: _row(_ANY, _OWN, _OWN, _OWN),
    Action.MANAGE_CATEGORIES: _row(_ANY, _OWN, _NO, _NO),
    Action.VIEW_CUSTOMERS: _row(_ANY, _OWN, _OWN, _NO),
    Action.MANAGE_CUSTOMERS: _row(_ANY, _OWN, _OWN, _NO),
    Action.VIEW_PURCHASES: _row(_ANY, _OWN, _OWN, _NO),
    Action.MANAGE_PURCHASES: _row(_ANY, _OWN, _OWN, _NO),

    # -- SALES --
    Action.VIEW_SALES: _row(_ANY, _OWN, _OWN, _OWN),
    Action.CREATE_SALE: _row(_ANY, _OWN, _OWN, _OWN),
    Action.EDIT_SALE: _row(_ANY, _OWN, _OWN, _NO),
    Action.UPDATE_SALE_STATUS: _row(_ANY, _OWN, _OWN, _OWN),
    Action.DELETE_SALES: _row(_ANY, _OWN, _NO, _NO),

    # -- REPORTS --
    Action.VIEW_REPORTS: _row(_ANY, _OWN, _OWN, _NO),
}

# Roles each role may hand out when creating or editing users.
ASSIGNABLE_ROLES: dict[Role, frozenset[Role]] = {
    Role.SUPERADMIN: frozenset(Role),
    Role.ADMIN: frozenset({Role.SELLER, Role.WAITER}),
    Role.SELLER: frozenset(),
    Role.WAITER: frozenset(),
}


def parse_role(value) -> Role | None:
    """Return the Role for a raw value, or None if it is not a known role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None
