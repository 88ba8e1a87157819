"""
Sales store tests: snapshot items, totals, status changes and bulk deletion.
"""

from decimal import Decimal

import pytest

from restopos.errors import NotFoundError, ValidationError
from restopos.extensions import db
from restopos.models import Product, Sale, SaleItem
from restopos.services import catalog_service, sales_service

from conftest import all_tenants, scope_of


def sale_fields(product, quantity=2, **extra):
    fields = {
        "customer_name": "Ana",
        "table_number": "7",
        "items": [
            {"product_id": product.id, "name": product.name, "price": str(product.price), "quantity": quantity},
        ],
    }
    fields.update(extra)
    return fields


@pytest.fixture
def sale_a(restaurant_a, seller_a, product_a):
    return sales_service.create_sale(scope_of(restaurant_a), sale_fields(product_a), recorded_by=seller_a)


@pytest.fixture
def sale_b(restaurant_b, admin_b, product_b):
    return sales_service.create_sale(scope_of(restaurant_b), sale_fields(product_b), recorded_by=admin_b)


class TestCreateSale:

    def test_total_computed_from_items(self, sale_a, seller_a):
        assert sale_a.total_price == Decimal("25.00")
        assert sale_a.status == "pending"
        assert sale_a.user_id == seller_a.id
        assert sale_a.user_name == "Sam Seller"

    def test_matching_total_accepted(self, restaurant_a, seller_a, product_a):
        sale = sales_service.create_sale(
            scope_of(restaurant_a), sale_fields(product_a, total_price="25.00"), recorded_by=seller_a
        )
        assert sale.total_price == Decimal("25.00")

    def test_mismatched_total_rejected(self, restaurant_a, seller_a, product_a):
        with pytest.raises(ValidationError) as excinfo:
            sales_service.create_sale(
                scope_of(restaurant_a), sale_fields(product_a, total_price="20.00"), recorded_by=seller_a
            )
        assert excinfo.value.details == {"expected": "25.00", "received": "20.00"}
        assert db.session.query(Sale).count() == 0

    def test_items_required(self, restaurant_a, seller_a):
        with pytest.raises(ValidationError):
            sales_service.create_sale(
                scope_of(restaurant_a),
                {"customer_name": "Ana", "table_number": "7", "items": []},
                recorded_by=seller_a,
            )

    @pytest.mark.parametrize("item", [
        {"name": "", "price": "1.00", "quantity": 1},
        {"name": "Tea", "price": "-1.00", "quantity": 1},
        {"name": "Tea", "price": "1.00", "quantity": 0},
        {"name": "Tea", "price": "1.00", "quantity": 1.5},
        {"name": "Tea", "price": "1.00", "quantity": 1, "product_id": 42},
    ])
    def test_bad_items(self, restaurant_a, seller_a, item):
        with pytest.raises(ValidationError):
            sales_service.create_sale(
                scope_of(restaurant_a),
                {"customer_name": "Ana", "table_number": "7", "items": [item]},
                recorded_by=seller_a,
            )

    def test_invalid_status(self, restaurant_a, seller_a, product_a):
        with pytest.raises(ValidationError):
            sales_service.create_sale(
                scope_of(restaurant_a), sale_fields(product_a, status="cancelled"), recorded_by=seller_a
            )

    def test_items_keep_order(self, restaurant_a, seller_a):
        sale = sales_service.create_sale(
            scope_of(restaurant_a),
            {
                "customer_name": "Ana",
                "table_number": "7",
                "items": [
                    {"name": "Water", "price": "1.50", "quantity": 2},
                    {"name": "Coffee", "price": "1.20", "quantity": 1},
                ],
            },
            recorded_by=seller_a,
        )
        db.session.expire_all()
        sale = db.session.get(Sale, sale.id)
        assert [item.name for item in sale.items] == ["Water", "Coffee"]
        assert sale.total_price == Decimal("4.20")

    def test_all_tenants_needs_restaurant(self, superadmin, product_a):
        with pytest.raises(ValidationError):
            sales_service.create_sale(all_tenants(superadmin), sale_fields(product_a), recorded_by=superadmin)


class TestSnapshot:

    def test_product_edit_does_not_rewrite_sale(self, restaurant_a, sale_a, product_a):
        catalog_service.update_record("products", scope_of(restaurant_a), product_a.id, {"price": "99.00"})

        db.session.expire_all()
        sale = db.session.get(Sale, sale_a.id)
        assert sale.items[0].unit_price == Decimal("12.50")
        assert sale.total_price == Decimal("25.00")

    def test_product_delete_keeps_item(self, restaurant_a, sale_a, product_a):
        product_id = product_a.id
        catalog_service.delete_record("products", scope_of(restaurant_a), product_id)

        db.session.expire_all()
        item = db.session.get(Sale, sale_a.id).items[0]
        assert item.product_id == product_id
        assert item.name == "Paella"
        assert db.session.get(Product, product_id) is None


class TestUpdateSale:

    def test_replace_items_recomputes_total(self, restaurant_a, sale_a):
        sale = sales_service.update_sale(
            scope_of(restaurant_a),
            sale_a.id,
            {"items": [{"name": "Sangria", "price": "18.00", "quantity": 1}], "table_number": "9"},
        )

        assert sale.total_price == Decimal("18.00")
        assert sale.table_number == "9"
        assert [item.name for item in sale.items] == ["Sangria"]
        assert db.session.query(SaleItem).count() == 1

    def test_total_only_must_match_existing_items(self, restaurant_a, sale_a):
        with pytest.raises(ValidationError):
            sales_service.update_sale(scope_of(restaurant_a), sale_a.id, {"total_price": "1.00"})

    def test_restaurant_id_not_writable(self, restaurant_a, restaurant_b, sale_a):
        with pytest.raises(ValidationError):
            sales_service.update_sale(scope_of(restaurant_a), sale_a.id, {"restaurant_id": restaurant_b.id})

    def test_recording_user_not_writable(self, restaurant_a, sale_a, admin_a):
        with pytest.raises(ValidationError):
            sales_service.update_sale(scope_of(restaurant_a), sale_a.id, {"user_id": admin_a.id})

    def test_foreign_sale_not_found(self, restaurant_a, sale_b):
        with pytest.raises(NotFoundError):
            sales_service.update_sale(scope_of(restaurant_a), sale_b.id, {"table_number": "1"})


class TestStatus:

    def test_mark_paid(self, restaurant_a, sale_a):
        sale = sales_service.update_sale_status(scope_of(restaurant_a), sale_a.id, "paid")
        assert sale.status == "paid"

    def test_invalid_status(self, restaurant_a, sale_a):
        with pytest.raises(ValidationError):
            sales_service.update_sale_status(scope_of(restaurant_a), sale_a.id, "void")

    def test_filter_by_status(self, restaurant_a, sale_a, seller_a, product_a):
        other = sales_service.create_sale(scope_of(restaurant_a), sale_fields(product_a), recorded_by=seller_a)
        sales_service.update_sale_status(scope_of(restaurant_a), other.id, "paid")

        paid = sales_service.list_sales(scope_of(restaurant_a), status="paid")
        pending = sales_service.list_sales(scope_of(restaurant_a), status="pending")
        assert [s.id for s in paid] == [other.id]
        assert [s.id for s in pending] == [sale_a.id]


class TestDeleteSales:

    def test_bulk_delete_skips_foreign_ids(self, restaurant_a, sale_a, sale_b):
        deleted = sales_service.bulk_delete_sales(scope_of(restaurant_a), [sale_a.id, sale_b.id, "missing"])

        assert deleted == 1
        assert db.session.query(Sale).count() == 1
        assert db.session.query(SaleItem).count() == 1

    def test_bulk_delete_empty_list(self, restaurant_a, sale_a):
        assert sales_service.bulk_delete_sales(scope_of(restaurant_a), []) == 0
        assert db.session.query(Sale).count() == 1

    def test_bulk_delete_all_tenants(self, superadmin, sale_a, sale_b):
        assert sales_service.bulk_delete_sales(all_tenants(superadmin), [sale_a.id, sale_b.id]) == 2

    def test_bulk_delete_rejects_bad_ids(self, restaurant_a):
        with pytest.raises(ValidationError):
            sales_service.bulk_delete_sales(scope_of(restaurant_a), "not-a-list")

    def test_delete_one(self, restaurant_a, sale_a):
        sales_service.delete_sale(scope_of(restaurant_a), sale_a.id)
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0

    def test_delete_foreign(self, restaurant_a, sale_b):
        with pytest.raises(NotFoundError):
            sales_service.delete_sale(scope_of(restaurant_a), sale_b.id)
