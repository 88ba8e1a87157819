# Overview: Tenant scope values: one restaurant, or every restaurant.

from __future__ import annotations

from dataclasses import dataclass

ALL_TENANTS_TOKEN = "all"

# Only resolve_scope() holds this key, so AllTenants cannot be built elsewhere.
_ALL_TENANTS_KEY = object()


@dataclass(frozen=True)
class Scoped:
    """Operations are confined to a single restaurant."""
    restaurant_id: str

    def includes(self, restaurant_id: str | None) -> bool:
        return restaurant_id == self.restaurant_id

    def to_dict(self) -> dict:
        return {"kind": "restaurant", "restaurant_id": self.restaurant_id}


class AllTenants:
    """Operations span every restaurant. Granted to superadmins only."""

    __slots__ = ()
    _instance = None

    def __new__(cls, key=None):
        if key is not _ALL_TENANTS_KEY:
            raise TypeError("AllTenants is granted by resolve_scope(), not constructed directly")
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def includes(self, restaurant_id: str | None) -> bool:
        return True

    def to_dict(self) -> dict:
        return {"kind": ALL_TENANTS_TOKEN, "restaurant_id": None}

    def __repr__(self) -> str:
        return "AllTenants()"


TenantScope = Scoped | AllTenants
