"""
Multi-Tenant Service: Scope Filtering Helpers

WHY: Centralize tenant filtering so every store operation applies the same
rule: Scoped(r) sees only rows with restaurant_id == r, AllTenants sees all.

SECURITY INVARIANTS:
1. Every store query goes through scoped_query() or get_in_scope()
2. Rows outside the scope are reported as not found, never as forbidden
   (don't reveal that they exist in another tenant)
3. Cross-tenant access attempts are logged as security events
4. The owning restaurant of a new row comes from the scope, not the payload

USAGE:
    from restopos.services.tenant_service import scoped_query, get_in_scope

    products = scoped_query(Product, scope).order_by(Product.name).all()
    product = get_in_scope(Product, scope, product_id, label="Product")
"""

from __future__ import annotations

from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..extensions import db
from ..models import Restaurant
from ..permissions import AllTenants, Scoped, TenantScope
from .permission_service import log_security_event


def scoped_query(model, scope: TenantScope):
    """
    Base query for a tenant-owned model, filtered by scope.

    Args:
        model: SQLAlchemy model class with a restaurant_id column
        scope: Scoped(restaurant_id) or AllTenants

    Returns:
        SQLAlchemy query; unfiltered for AllTenants
    """
    query = db.session.query(model)
    if isinstance(scope, AllTenants):
        return query
    return query.filter(model.restaurant_id == scope.restaurant_id)


def get_in_scope(model, scope: TenantScope, record_id: str, *, label: str | None = None, actor_id: str | None = None):
    """
    Fetch one row by id, constrained to the scope.

    Raises NotFoundError if the row doesn't exist or belongs to another
    tenant. The second case is logged as a cross-tenant access attempt.
    """
    label = label or model.__name__
    record = scoped_query(model, scope).filter(model.id == record_id).first()
    if record is not None:
        return record

    if isinstance(scope, Scoped):
        foreign = db.session.query(model.restaurant_id).filter(model.id == record_id).first()
        if foreign is not None:
            log_security_event(
                user_id=actor_id,
                event_type="CROSS_TENANT_ACCESS_DENIED",
                success=False,
                action=label.upper(),
                reason=f"{label} {record_id} belongs to restaurant {foreign[0]}, not {scope.restaurant_id}",
                restaurant_id=scope.restaurant_id,
            )

    raise NotFoundError(f"{label} not found")


def owner_for_create(scope: TenantScope, requested_restaurant_id: str | None) -> str:
    """
    Decide which restaurant owns a row being created.

    Scoped: always the scope's restaurant; naming a different one is denied.
    AllTenants: the caller must name an existing restaurant explicitly.
    """
    if isinstance(scope, Scoped):
        if requested_restaurant_id and requested_restaurant_id != scope.restaurant_id:
            raise PermissionDeniedError("Cannot create records for another restaurant")
        return scope.restaurant_id

    if not requested_restaurant_id:
        raise ValidationError("restaurant_id is required when working across all restaurants")
    restaurant = db.session.query(Restaurant).filter_by(id=requested_restaurant_id).first()
    if restaurant is None:
        raise NotFoundError("Restaurant not found")
    return restaurant.id


def require_restaurant_in_scope(scope: TenantScope, restaurant_id: str) -> Restaurant:
    """Validate that a restaurant exists and is visible from the scope."""
    restaurant = db.session.query(Restaurant).filter_by(id=restaurant_id).first()
    if restaurant is None or not scope.includes(restaurant.id):
        raise NotFoundError("Restaurant not found")
    return restaurant
