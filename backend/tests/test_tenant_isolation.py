# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two restaurants, each with its own admin, then verify:
1. An admin of restaurant A cannot read or write data of restaurant B
2. Naming a foreign restaurant_id on create is rejected
3. Foreign rows answer 404 (never revealing they exist elsewhere)
4. Cross-tenant access attempts are logged as security events
5. Superadmins choose their scope: one restaurant or all of them
"""

import pytest

from restopos.extensions import db
from restopos.models import Product, Sale, SecurityEvent, User
from restopos.services import sales_service

from conftest import login, scope_of


@pytest.fixture
def sale_b(restaurant_b, admin_b, product_b):
    return sales_service.create_sale(scope_of(restaurant_b), {
        "customer_name": "Bea",
        "table_number": "2",
        "items": [{"product_id": product_b.id, "name": "Ratatouille", "price": "9.00", "quantity": 1}],
    }, recorded_by=admin_b)


class TestScopedAdmin:
    """An admin only ever sees their own restaurant."""

    def test_list_products_only_own(self, client, admin_a, product_a, product_b):
        resp = client.get("/api/products", headers=login(client, admin_a))
        assert [p["name"] for p in resp.json] == ["Paella"]

    def test_scope_all_is_ignored(self, client, admin_a, product_a, product_b):
        resp = client.get("/api/products", query_string={"scope": "all"}, headers=login(client, admin_a))
        assert [p["name"] for p in resp.json] == ["Paella"]

    def test_scope_other_restaurant_is_ignored(self, client, admin_a, restaurant_b, product_a, product_b):
        resp = client.get(
            "/api/products", query_string={"scope": restaurant_b.id}, headers=login(client, admin_a)
        )
        assert [p["name"] for p in resp.json] == ["Paella"]

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_foreign_product_is_not_found(self, client, admin_a, product_b, method):
        kwargs = {"json": {"name": "Stolen"}} if method == "put" else {}
        resp = getattr(client, method)(f"/api/products/{product_b.id}", headers=login(client, admin_a), **kwargs)
        assert resp.status_code == 404

        db.session.expire_all()
        assert db.session.get(Product, product_b.id).name == "Ratatouille"

    def test_cross_tenant_attempt_is_logged(self, client, admin_a, product_b):
        client.get(f"/api/products/{product_b.id}", headers=login(client, admin_a))

        event = db.session.query(SecurityEvent).filter_by(event_type="CROSS_TENANT_ACCESS_DENIED").one()
        assert event.user_id == admin_a.id
        assert event.resource == f"/api/products/{product_b.id}"

    def test_create_for_foreign_restaurant_denied(self, client, admin_a, restaurant_b):
        resp = client.post("/api/categories", json={"name": "Drinks", "restaurant_id": restaurant_b.id},
                           headers=login(client, admin_a))
        assert resp.status_code == 403

    def test_foreign_sale_is_not_found(self, client, admin_a, sale_b):
        headers = login(client, admin_a)
        assert client.get(f"/api/sales/{sale_b.id}", headers=headers).status_code == 404
        resp = client.put(f"/api/sales/{sale_b.id}/status", json={"status": "paid"}, headers=headers)
        assert resp.status_code == 404

    def test_bulk_delete_ignores_foreign_sales(self, client, admin_a, sale_b):
        resp = client.post("/api/sales/bulk-delete", json={"ids": [sale_b.id]}, headers=login(client, admin_a))
        assert resp.status_code == 200
        assert resp.json == {"deleted": 0}
        assert db.session.get(Sale, sale_b.id) is not None

    def test_foreign_user_is_not_found(self, client, admin_a, admin_b):
        headers = login(client, admin_a)
        assert client.get(f"/api/users/{admin_b.id}", headers=headers).status_code == 404
        resp = client.put(f"/api/users/{admin_b.id}", json={"name": "Hijacked"}, headers=headers)
        assert resp.status_code == 404
        assert client.delete(f"/api/users/{admin_b.id}", headers=headers).status_code == 404

        db.session.expire_all()
        assert db.session.get(User, admin_b.id) is not None

    def test_user_list_only_own(self, client, admin_a, admin_b, waiter_a):
        resp = client.get("/api/users", headers=login(client, admin_a))
        assert [u["email"] for u in resp.json] == ["admin@alfa.test", "waiter@alfa.test"]

    def test_reports_only_own(self, client, admin_a, sale_b):
        resp = client.get("/api/reports/summary", headers=login(client, admin_a))
        assert resp.json["sale_count"] == 0


class TestSuperadminScope:
    """A superadmin works across tenants, or narrows to one."""

    def test_all_tenants_by_default(self, client, superadmin, product_a, product_b):
        resp = client.get("/api/products", headers=login(client, superadmin))
        assert [p["name"] for p in resp.json] == ["Paella", "Ratatouille"]

    def test_single_restaurant_by_query(self, client, superadmin, restaurant_b, product_a, product_b):
        resp = client.get(
            "/api/products", query_string={"scope": restaurant_b.id}, headers=login(client, superadmin)
        )
        assert [p["name"] for p in resp.json] == ["Ratatouille"]

    def test_scoped_superadmin_cannot_reach_other_restaurant_row(
        self, client, superadmin, restaurant_b, product_a
    ):
        resp = client.get(
            f"/api/products/{product_a.id}", query_string={"scope": restaurant_b.id},
            headers=login(client, superadmin),
        )
        assert resp.status_code == 404

    def test_create_across_tenants_needs_restaurant_id(self, client, superadmin, restaurant_b):
        headers = login(client, superadmin)
        resp = client.post("/api/categories", json={"name": "Wines"}, headers=headers)
        assert resp.status_code == 400

        resp = client.post("/api/categories", json={"name": "Wines", "restaurant_id": restaurant_b.id},
                           headers=headers)
        assert resp.status_code == 201
        assert resp.json["restaurant_id"] == restaurant_b.id

    def test_create_in_scoped_restaurant(self, client, superadmin, restaurant_b):
        resp = client.post(
            "/api/categories", query_string={"scope": restaurant_b.id}, json={"name": "Wines"},
            headers=login(client, superadmin),
        )
        assert resp.status_code == 201
        assert resp.json["restaurant_id"] == restaurant_b.id

    def test_edit_sale_of_any_restaurant(self, client, superadmin, sale_b):
        resp = client.put(f"/api/sales/{sale_b.id}", json={"customer_name": "Beatriz"},
                          headers=login(client, superadmin))
        assert resp.status_code == 200
        assert resp.json["customer_name"] == "Beatriz"

    def test_user_list_across_tenants(self, client, superadmin, admin_a, admin_b):
        resp = client.get("/api/users", headers=login(client, superadmin))
        assert len(resp.json) == 3
        assert resp.json[0]["role"] == "superadmin"
