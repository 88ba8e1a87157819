# Overview: Tenant-scoped CRUD for products, categories, customers and purchases.

"""
Catalog Store

Every operation takes an explicit tenant scope and filters by it; role
checks happen before a call reaches this module (see routes/catalog.py),
so the store never re-derives role logic.

Each resource is described once in RESOURCES: model, validation policy,
list ordering and the actions that gate viewing and managing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import Category, Customer, Product, Purchase
from ..permissions import Action, TenantScope
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_positive_quantity,
    validate_payload,
)
from .concurrency import atomic
from .tenant_service import get_in_scope, owner_for_create, scoped_query


@dataclass(frozen=True)
class CatalogResource:
    name: str
    label: str
    model: type
    policy: ModelValidationPolicy
    view_action: Action
    manage_action: Action
    order_by: Callable
    rules: tuple[Callable[[dict], None], ...] = field(default_factory=tuple)


RESOURCES: dict[str, CatalogResource] = {
    "products": CatalogResource(
        name="products",
        label="Product",
        model=Product,
        policy=ModelValidationPolicy(
            writable_fields={"name", "price", "category"},
            required_on_create={"name", "price", "category"},
        ),
        view_action=Action.VIEW_PRODUCTS,
        manage_action=Action.MANAGE_PRODUCTS,
        order_by=lambda: (Product.name.asc(),),
    ),
    "categories": CatalogResource(
        name="categories",
        label="Category",
        model=Category,
        policy=ModelValidationPolicy(
            writable_fields={"name"},
            required_on_create={"name"},
        ),
        view_action=Action.VIEW_CATEGORIES,
        manage_action=Action.MANAGE_CATEGORIES,
        order_by=lambda: (Category.name.asc(),),
    ),
    "customers": CatalogResource(
        name="customers",
        label="Customer",
        model=Customer,
        policy=ModelValidationPolicy(
            writable_fields={"name", "email", "phone"},
            required_on_create={"name"},
            email_fields={"email"},
            blank_to_null={"email", "phone"},
        ),
        view_action=Action.VIEW_CUSTOMERS,
        manage_action=Action.MANAGE_CUSTOMERS,
        order_by=lambda: (Customer.name.asc(),),
    ),
    "purchases": CatalogResource(
        name="purchases",
        label="Purchase",
        model=Purchase,
        policy=ModelValidationPolicy(
            writable_fields={"product_name", "supplier", "quantity", "unit_price", "purchase_date"},
            required_on_create={"product_name", "quantity", "unit_price"},
        ),
        view_action=Action.VIEW_PURCHASES,
        manage_action=Action.MANAGE_PURCHASES,
        order_by=lambda: (Purchase.purchase_date.desc(), Purchase.id.asc()),
        rules=(enforce_rules_positive_quantity,),
    ),
}


def get_resource(name: str) -> CatalogResource:
    resource = RESOURCES.get(name)
    if resource is None:
        raise ValueError(f"Unknown catalog resource: {name}")
    return resource


def _clean(resource: CatalogResource, fields, *, partial: bool) -> tuple[dict, str | None]:
    if fields is None:
        fields = {}
    if not isinstance(fields, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(fields)
    requested_restaurant_id = fields.pop("restaurant_id", None)
    if partial and requested_restaurant_id is not None:
        raise ValidationError("Field not allowed: restaurant_id")

    patch = validate_payload(model=resource.model, payload=fields, policy=resource.policy, partial=partial)
    for rule in resource.rules:
        rule(patch)
    return patch, requested_restaurant_id


def list_records(name: str, scope: TenantScope) -> list:
    """All rows of the resource in scope (every restaurant for AllTenants)."""
    resource = get_resource(name)
    return scoped_query(resource.model, scope).order_by(*resource.order_by()).all()


def get_record(name: str, scope: TenantScope, record_id: str, *, actor_id: str | None = None):
    resource = get_resource(name)
    return get_in_scope(resource.model, scope, record_id, label=resource.label, actor_id=actor_id)


def create_record(name: str, scope: TenantScope, fields: dict):
    """
    Insert a row owned by the scope's restaurant.

    Under AllTenants fields must name an existing restaurant_id.
    """
    resource = get_resource(name)
    patch, requested_restaurant_id = _clean(resource, fields, partial=False)
    restaurant_id = owner_for_create(scope, requested_restaurant_id)

    with atomic():
        record = resource.model(restaurant_id=restaurant_id, **patch)
        db.session.add(record)

    current_app.logger.debug("%s created id=%s restaurant=%s", resource.label, record.id, restaurant_id)
    return record


def update_record(name: str, scope: TenantScope, record_id: str, fields: dict, *, actor_id: str | None = None):
    """Apply a partial update; restaurant_id is never writable."""
    resource = get_resource(name)
    patch, _ = _clean(resource, fields, partial=True)

    record = get_record(name, scope, record_id, actor_id=actor_id)
    with atomic():
        for key, value in patch.items():
            setattr(record, key, value)

    db.session.refresh(record)
    return record


def delete_record(name: str, scope: TenantScope, record_id: str, *, actor_id: str | None = None) -> None:
    resource = get_resource(name)
    record = get_record(name, scope, record_id, actor_id=actor_id)
    with atomic():
        db.session.delete(record)
    current_app.logger.debug("%s deleted id=%s", resource.label, record_id)
