# Overview: Tenant-scoped sales (orders) with snapshot line items.

"""
Sales Store

Line items are copied into sale_items at write time (product id, name,
unit price, quantity) so later product edits never rewrite history.

TOTALS: total_price must equal the sum of price x quantity over the items.
It is computed when the caller omits it and rejected when it disagrees.

Like the catalog store, every function takes an explicit tenant scope and
only filters by it; role checks happen in the routes.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import SALE_STATUSES, Sale, SaleItem, User
from ..money import MAX_AMOUNT, ZERO, line_total, to_money
from ..permissions import TenantScope
from ..validation import ModelValidationPolicy, coerce_int, validate_payload
from .concurrency import atomic, lock_for_update
from .tenant_service import get_in_scope, owner_for_create, scoped_query

SALE_POLICY = ModelValidationPolicy(
    writable_fields={"customer_name", "table_number", "status", "sale_date"},
    required_on_create={"customer_name", "table_number"},
)


def _validate_status(status) -> str:
    if status not in SALE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(SALE_STATUSES)}")
    return status


def _parse_items(raw_items) -> list[SaleItem]:
    """Turn the request's item list into unsaved snapshot rows, in order."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items = []
    for position, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{position}] must be an object")

        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"items[{position}].name is required")

        price = to_money(raw.get("price"), field=f"items[{position}].price")
        if price < 0 or price > MAX_AMOUNT:
            raise ValidationError(f"items[{position}].price is out of range")

        quantity = coerce_int(f"items[{position}].quantity", raw.get("quantity"))
        if quantity <= 0:
            raise ValidationError(f"items[{position}].quantity must be > 0")

        product_id = raw.get("product_id")
        if product_id is not None and not isinstance(product_id, str):
            raise ValidationError(f"items[{position}].product_id must be a string")

        items.append(SaleItem(
            position=position,
            product_id=product_id,
            name=name.strip(),
            unit_price=price,
            quantity=quantity,
        ))
    return items


def items_total(items: list[SaleItem]) -> Decimal:
    return sum((line_total(item.unit_price, item.quantity) for item in items), ZERO)


def _resolve_total(items: list[SaleItem], raw_total) -> Decimal:
    expected = items_total(items)
    if expected > MAX_AMOUNT:
        raise ValidationError("total_price is out of range")
    if raw_total is None:
        return expected
    total = to_money(raw_total, field="total_price")
    if total != expected:
        raise ValidationError(
            f"total_price {total} does not match the items total {expected}",
            details={"expected": str(expected), "received": str(total)},
        )
    return total


def _split(fields) -> tuple[dict, object, object, str | None]:
    if not isinstance(fields, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(fields)
    items = fields.pop("items", None)
    total = fields.pop("total_price", None)
    restaurant_id = fields.pop("restaurant_id", None)
    return fields, items, total, restaurant_id


def list_sales(scope: TenantScope, *, status: str | None = None) -> list[Sale]:
    query = scoped_query(Sale, scope).options(db.selectinload(Sale.items))
    if status is not None:
        query = query.filter(Sale.status == _validate_status(status))
    return query.order_by(Sale.sale_date.desc(), Sale.id.asc()).all()


def get_sale(scope: TenantScope, sale_id: str, *, actor_id: str | None = None) -> Sale:
    return get_in_scope(Sale, scope, sale_id, label="Sale", actor_id=actor_id)


def create_sale(scope: TenantScope, fields: dict, *, recorded_by: User) -> Sale:
    """
    Record a sale and its item snapshot in one transaction.

    recorded_by is the authenticated user; their id and current name are
    stored on the sale.
    """
    fields, raw_items, raw_total, requested_restaurant_id = _split(fields)
    data = validate_payload(model=Sale, payload=fields, policy=SALE_POLICY, partial=False)
    if "status" in data:
        _validate_status(data["status"])
    items = _parse_items(raw_items)
    total = _resolve_total(items, raw_total)
    restaurant_id = owner_for_create(scope, requested_restaurant_id)

    with atomic():
        sale = Sale(
            restaurant_id=restaurant_id,
            total_price=total,
            user_id=recorded_by.id,
            user_name=recorded_by.name,
            items=items,
            **data,
        )
        db.session.add(sale)

    current_app.logger.info("sale recorded id=%s restaurant=%s total=%s", sale.id, restaurant_id, total)
    return sale


def update_sale(scope: TenantScope, sale_id: str, fields: dict, *, actor_id: str | None = None) -> Sale:
    """
    Edit a sale. Replacing items replaces the whole snapshot and recomputes
    the total; restaurant_id and the recording user are never writable.
    """
    fields, raw_items, raw_total, requested_restaurant_id = _split(fields)
    if requested_restaurant_id is not None:
        raise ValidationError("Field not allowed: restaurant_id")
    data = validate_payload(model=Sale, payload=fields, policy=SALE_POLICY, partial=True)
    if "status" in data:
        _validate_status(data["status"])
    items = _parse_items(raw_items) if raw_items is not None else None

    with atomic():
        sale = get_sale(scope, sale_id, actor_id=actor_id)

        if items is not None:
            sale.total_price = _resolve_total(items, raw_total)
            # Old rows must be gone before new ones reuse their positions.
            sale.items.clear()
            db.session.flush()
            sale.items.extend(items)
        elif raw_total is not None:
            sale.total_price = _resolve_total(list(sale.items), raw_total)

        for key, value in data.items():
            setattr(sale, key, value)

    db.session.refresh(sale)
    return sale


def update_sale_status(scope: TenantScope, sale_id: str, status, *, actor_id: str | None = None) -> Sale:
    """Change only the status (pending or paid)."""
    status = _validate_status(status)
    with atomic():
        sale = get_sale(scope, sale_id, actor_id=actor_id)
        sale.status = status
    db.session.refresh(sale)
    return sale


def bulk_delete_sales(scope: TenantScope, ids) -> int:
    """
    Delete many sales in one transaction.

    Ids outside the scope (or unknown) are skipped, not reported. An empty
    list is a no-op. Returns the number of sales removed.
    """
    if ids is None:
        ids = []
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise ValidationError("ids must be a list of sale ids")
    if not ids:
        return 0

    with atomic():
        visible_ids = [
            row.id
            for row in lock_for_update(scoped_query(Sale, scope).with_entities(Sale.id).filter(Sale.id.in_(ids))).all()
        ]
        if not visible_ids:
            return 0

        db.session.query(SaleItem).filter(SaleItem.sale_id.in_(visible_ids)).delete(synchronize_session=False)
        deleted = db.session.query(Sale).filter(Sale.id.in_(visible_ids)).delete(synchronize_session=False)

    current_app.logger.info("bulk deleted %s sales (requested %s)", deleted, len(ids))
    return deleted


def delete_sale(scope: TenantScope, sale_id: str, *, actor_id: str | None = None) -> None:
    """Delete one sale; its items go in the same transaction."""
    sale = get_sale(scope, sale_id, actor_id=actor_id)
    with atomic():
        db.session.delete(sale)
