"""
Sales summary tests.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from restopos.extensions import db
from restopos.models import Customer, Product, Purchase
from restopos.services import reporting_service, sales_service
from restopos.time_utils import parse_report_window

from conftest import all_tenants, scope_of


def item(name, price, quantity, product=None):
    return {
        "product_id": product.id if product else None,
        "name": name,
        "price": price,
        "quantity": quantity,
    }


@pytest.fixture
def menu(restaurant_a):
    products = {
        "paella": Product(restaurant_id=restaurant_a.id, name="Paella", price="12.00", category="Mains"),
        "flan": Product(restaurant_id=restaurant_a.id, name="Flan", price="4.00", category="Desserts"),
        "water": Product(restaurant_id=restaurant_a.id, name="Water", price="1.50", category="Drinks"),
    }
    db.session.add_all(products.values())
    db.session.commit()
    return products


@pytest.fixture
def activity(restaurant_a, seller_a, menu):
    scope = scope_of(restaurant_a)
    first = sales_service.create_sale(scope, {
        "customer_name": "Ana", "table_number": "1", "sale_date": "2026-03-01T12:00:00Z",
        "items": [item("Paella", "12.00", 2, menu["paella"]), item("Water", "1.50", 2, menu["water"])],
    }, recorded_by=seller_a)
    sales_service.update_sale_status(scope, first.id, "paid")
    sales_service.create_sale(scope, {
        "customer_name": "Luis", "table_number": "2", "sale_date": "2026-03-02T20:00:00Z",
        "items": [item("Flan", "4.00", 1, menu["flan"]), item("Daily special", "9.00", 1)],
    }, recorded_by=seller_a)
    db.session.add_all([
        Customer(restaurant_id=restaurant_a.id, name="Ana"),
        Purchase(restaurant_id=restaurant_a.id, product_name="Rice", quantity=4, unit_price="2.50",
                 purchase_date=datetime(2026, 3, 1, 9, 0)),
    ])
    db.session.commit()


class TestSalesSummary:

    def test_totals(self, restaurant_a, activity):
        summary = reporting_service.sales_summary(scope_of(restaurant_a))

        assert summary["sale_count"] == 2
        assert summary["paid_count"] == 1
        assert summary["pending_count"] == 1
        assert summary["total_revenue"] == Decimal("40.00")
        assert summary["paid_revenue"] == Decimal("27.00")
        assert summary["pending_amount"] == Decimal("13.00")
        assert summary["average_ticket"] == Decimal("20.00")
        assert summary["purchase_spend"] == Decimal("10.00")
        assert summary["customer_count"] == 1

    def test_products_ranked_by_amount(self, restaurant_a, activity):
        summary = reporting_service.sales_summary(scope_of(restaurant_a))

        names = [p["name"] for p in summary["best_selling_products"]]
        assert names == ["Paella", "Daily special", "Flan", "Water"]
        assert summary["best_selling_products"][0]["quantity"] == 2
        assert summary["least_selling_products"] == []

    def test_sales_by_category(self, restaurant_a, activity):
        summary = reporting_service.sales_summary(scope_of(restaurant_a))

        assert summary["sales_by_category"] == [
            {"category": "Mains", "amount": Decimal("24.00")},
            {"category": "Unknown", "amount": Decimal("9.00")},
            {"category": "Desserts", "amount": Decimal("4.00")},
            {"category": "Drinks", "amount": Decimal("3.00")},
        ]

    def test_date_range(self, restaurant_a, activity):
        summary = reporting_service.sales_summary(
            scope_of(restaurant_a), start=datetime(2026, 3, 2), end=datetime(2026, 3, 3)
        )
        assert summary["sale_count"] == 1
        assert summary["total_revenue"] == Decimal("13.00")
        assert summary["purchase_spend"] == Decimal("0.00")
        assert summary["start"] == "2026-03-02T00:00:00Z"

    def test_other_tenant_sees_nothing(self, restaurant_b, activity):
        summary = reporting_service.sales_summary(scope_of(restaurant_b))

        assert summary["sale_count"] == 0
        assert summary["average_ticket"] == Decimal("0.00")
        assert summary["best_selling_products"] == []

    def test_all_tenants(self, superadmin, activity):
        summary = reporting_service.sales_summary(all_tenants(superadmin))
        assert summary["scope"] == {"kind": "all", "restaurant_id": None}
        assert summary["sale_count"] == 2

    def test_least_selling_beyond_top_five(self, restaurant_a, seller_a):
        items = [item(f"Dish {n}", f"{n}.00", 1) for n in range(1, 9)]
        sales_service.create_sale(
            scope_of(restaurant_a),
            {"customer_name": "Big table", "table_number": "10", "items": items},
            recorded_by=seller_a,
        )

        summary = reporting_service.sales_summary(scope_of(restaurant_a))
        assert [p["name"] for p in summary["best_selling_products"]] == [
            "Dish 8", "Dish 7", "Dish 6", "Dish 5", "Dish 4",
        ]
        assert [p["name"] for p in summary["least_selling_products"]] == ["Dish 1", "Dish 2", "Dish 3"]


class TestReportWindow:

    def test_date_only_end_includes_the_day(self):
        start, end = parse_report_window("2026-03-02", "2026-03-02")
        assert start == datetime(2026, 3, 2)
        assert end == datetime(2026, 3, 3)

    def test_offsets_are_converted_to_utc(self):
        start, end = parse_report_window("2026-03-02T10:00:00+02:00", None)
        assert start == datetime(2026, 3, 2, 8, 0)
        assert end is None

    def test_inverted_window_rejected(self):
        with pytest.raises(ValueError):
            parse_report_window("2026-03-05", "2026-03-01T00:00")
