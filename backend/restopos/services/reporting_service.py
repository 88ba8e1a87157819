# Overview: Read-only sales and spend summaries over a tenant scope.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..models import Customer, Product, Purchase, Sale
from ..money import CENT, ZERO, line_total
from ..permissions import TenantScope
from ..time_utils import to_utc_z
from .tenant_service import scoped_query

UNKNOWN_CATEGORY = "Unknown"
TOP_PRODUCTS = 5


def _in_range(query, column, start: datetime | None, end: datetime | None):
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column < end)
    return query


def sales_summary(scope: TenantScope, start: datetime | None = None, end: datetime | None = None) -> dict:
    """
    KPI summary for the reports page.

    Product ranking is by sold amount (price x quantity from the item
    snapshots). Category totals only count items whose product still exists
    in scope; items of deleted products fall under "Unknown".
    """
    sales = _in_range(
        scoped_query(Sale, scope).options(db.selectinload(Sale.items)), Sale.sale_date, start, end
    ).all()
    purchases = _in_range(scoped_query(Purchase, scope), Purchase.purchase_date, start, end).all()
    customer_count = scoped_query(Customer, scope).count()
    categories = dict(scoped_query(Product, scope).with_entities(Product.id, Product.category).all())

    total_revenue = ZERO
    paid_revenue = ZERO
    pending_amount = ZERO
    paid_count = 0
    products: dict[str, dict] = {}
    by_category: dict[str, Decimal] = {}

    for sale in sales:
        total_revenue += sale.total_price
        if sale.status == "paid":
            paid_count += 1
            paid_revenue += sale.total_price
        else:
            pending_amount += sale.total_price

        for item in sale.items:
            amount = line_total(item.unit_price, item.quantity)
            key = item.product_id or f"name:{item.name}"
            entry = products.setdefault(key, {
                "product_id": item.product_id,
                "name": item.name,
                "category": categories.get(item.product_id, UNKNOWN_CATEGORY),
                "quantity": 0,
                "amount": ZERO,
            })
            entry["quantity"] += item.quantity
            entry["amount"] += amount

            category = categories.get(item.product_id, UNKNOWN_CATEGORY)
            by_category[category] = by_category.get(category, ZERO) + amount

    ranked = sorted(products.values(), key=lambda p: (-p["amount"], p["name"]))
    sale_count = len(sales)
    average_ticket = (total_revenue / sale_count).quantize(CENT) if sale_count else ZERO

    return {
        "scope": scope.to_dict(),
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "sale_count": sale_count,
        "paid_count": paid_count,
        "pending_count": sale_count - paid_count,
        "total_revenue": total_revenue,
        "paid_revenue": paid_revenue,
        "pending_amount": pending_amount,
        "average_ticket": average_ticket,
        "purchase_spend": sum((p.total_cost for p in purchases), ZERO),
        "customer_count": customer_count,
        "best_selling_products": ranked[:TOP_PRODUCTS],
        "least_selling_products": list(reversed(ranked[TOP_PRODUCTS:]))[:TOP_PRODUCTS],
        "sales_by_category": [
            {"category": name, "amount": amount}
            for name, amount in sorted(by_category.items(), key=lambda kv: (-kv[1], kv[0]))
        ],
    }
