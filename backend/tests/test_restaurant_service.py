"""
Tenant directory tests: registration, editing and deletion of restaurants.
"""

import pytest

from restopos.errors import ConflictError, NotFoundError, ValidationError
from restopos.extensions import db
from restopos.models import (
    Category, Customer, Product, Purchase, Restaurant, Sale, SaleItem, SecurityEvent, SessionToken, User,
)
from restopos.services import restaurant_service, session_service

from conftest import PASSWORD, make_user, register, user_by_email


class TestRegistration:

    def test_first_restaurant_gets_superadmin(self, db_session):
        restaurant = register("Headquarters", "root@hq.test")

        assert restaurant.is_bootstrap is True
        assert user_by_email("root@hq.test").role == "superadmin"

    def test_later_restaurants_get_admin(self, hq):
        restaurant = register("Casa Alfa", "admin@alfa.test")

        assert restaurant.is_bootstrap is False
        user = user_by_email("admin@alfa.test")
        assert user.role == "admin"
        assert user.restaurant_id == restaurant.id

    def test_email_is_normalized(self, hq):
        register("Casa Alfa", "  Admin@Alfa.TEST ")
        assert user_by_email("admin@alfa.test").role == "admin"

    def test_duplicate_email_across_restaurants(self, restaurant_a):
        with pytest.raises(ConflictError):
            register("Another Place", "ADMIN@alfa.test")

        assert db.session.query(Restaurant).count() == 2

    def test_missing_restaurant_field(self, db_session):
        with pytest.raises(ValidationError, match="phone"):
            restaurant_service.create_restaurant(
                {"name": "Casa", "address": "Main Street 1"},
                {"name": "Admin", "email": "a@a.test", "password": PASSWORD},
            )

    def test_short_phone_rejected(self, db_session):
        with pytest.raises(ValidationError):
            register("Casa Alfa", "admin@alfa.test", phone="123")

    def test_short_password_rejected(self, db_session):
        with pytest.raises(ValidationError):
            restaurant_service.create_restaurant(
                {"name": "Casa", "address": "Main Street 1", "phone": "600123456"},
                {"name": "Admin", "email": "a@a.test", "password": "123"},
            )
        assert db.session.query(Restaurant).count() == 0

    def test_unknown_fields_rejected(self, db_session):
        with pytest.raises(ValidationError, match="is_bootstrap"):
            restaurant_service.create_restaurant(
                {"name": "Casa", "address": "Main Street 1", "phone": "600123456", "is_bootstrap": True},
                {"name": "Admin", "email": "a@a.test", "password": PASSWORD},
            )

    def test_list_all_includes_users(self, restaurant_a, restaurant_b):
        restaurants = restaurant_service.list_all()
        assert [r.name for r in restaurants] == ["Bistro Beta", "Casa Alfa", "Headquarters"]
        assert [u.email for u in restaurants[1].users] == ["admin@alfa.test"]


class TestUpdateRestaurant:

    def test_update_details(self, restaurant_a):
        updated = restaurant_service.update_restaurant(restaurant_a.id, {"name": "Casa Alfa II"})
        assert updated.name == "Casa Alfa II"
        assert updated.phone == "600123456"

    def test_update_admin_email(self, restaurant_a, admin_a):
        restaurant_service.update_restaurant(
            restaurant_a.id, admin_fields={"id": admin_a.id, "email": "boss@alfa.test"}
        )
        db.session.expire_all()
        assert db.session.get(User, admin_a.id).email == "boss@alfa.test"

    def test_admin_email_taken_by_other_user(self, restaurant_a, admin_a, restaurant_b):
        with pytest.raises(ConflictError):
            restaurant_service.update_restaurant(
                restaurant_a.id, admin_fields={"id": admin_a.id, "email": "admin@beta.test"}
            )

    def test_keeping_own_email_is_fine(self, restaurant_a, admin_a):
        restaurant_service.update_restaurant(
            restaurant_a.id, admin_fields={"id": admin_a.id, "email": "admin@alfa.test", "name": "New Name"}
        )
        db.session.expire_all()
        assert db.session.get(User, admin_a.id).name == "New Name"

    def test_admin_from_other_restaurant(self, restaurant_a, admin_b):
        with pytest.raises(NotFoundError):
            restaurant_service.update_restaurant(
                restaurant_a.id, admin_fields={"id": admin_b.id, "name": "Hijacked"}
            )

    def test_admin_fields_require_id(self, restaurant_a):
        with pytest.raises(ValidationError):
            restaurant_service.update_restaurant(restaurant_a.id, admin_fields={"name": "Nobody"})

    def test_empty_password_keeps_current(self, restaurant_a, admin_a):
        old_hash = admin_a.password_hash
        restaurant_service.update_restaurant(
            restaurant_a.id, admin_fields={"id": admin_a.id, "password": ""}
        )
        db.session.expire_all()
        assert db.session.get(User, admin_a.id).password_hash == old_hash

    def test_short_password_is_ignored_but_other_changes_apply(self, restaurant_a, admin_a):
        old_hash = admin_a.password_hash
        restaurant_service.update_restaurant(
            restaurant_a.id,
            restaurant_fields={"name": "Renamed Alfa"},
            admin_fields={"id": admin_a.id, "name": "Alfa Boss", "password": "abc"},
        )

        db.session.expire_all()
        assert db.session.get(Restaurant, restaurant_a.id).name == "Renamed Alfa"
        admin = db.session.get(User, admin_a.id)
        assert admin.name == "Alfa Boss"
        assert admin.password_hash == old_hash

    def test_password_change_revokes_sessions(self, restaurant_a, admin_a):
        session, token = session_service.create_session(admin_a.id)

        restaurant_service.update_restaurant(
            restaurant_a.id, admin_fields={"id": admin_a.id, "password": "brand-new-pass"}
        )

        assert session_service.validate_session(token) is None
        db.session.expire_all()
        assert db.session.get(SessionToken, session.id).revoked_reason == "Password changed"

    def test_unknown_restaurant(self, db_session):
        with pytest.raises(NotFoundError):
            restaurant_service.update_restaurant("missing", {"name": "Ghost"})


class TestDeleteRestaurant:

    def test_delete_cascades_everything(self, restaurant_a, seller_a, product_a):
        sale = Sale(
            restaurant_id=restaurant_a.id,
            customer_name="Ana",
            table_number="4",
            total_price="12.50",
            user_id=seller_a.id,
            user_name=seller_a.name,
            items=[SaleItem(position=0, product_id=product_a.id, name="Paella", unit_price="12.50", quantity=1)],
        )
        db.session.add(sale)
        db.session.commit()
        restaurant_id = restaurant_a.id

        restaurant_service.delete_restaurant(restaurant_id)

        assert db.session.get(Restaurant, restaurant_id) is None
        assert db.session.query(User).filter_by(restaurant_id=restaurant_id).count() == 0
        assert db.session.query(Product).filter_by(restaurant_id=restaurant_id).count() == 0
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0

    def test_delete_removes_categories_customers_and_purchases(self, restaurant_a):
        restaurant_id = restaurant_a.id
        db.session.add_all([
            Category(restaurant_id=restaurant_id, name="Mains"),
            Customer(restaurant_id=restaurant_id, name="Lucia"),
            Purchase(restaurant_id=restaurant_id, product_name="Rice", quantity=3, unit_price="2.10"),
        ])
        db.session.commit()

        restaurant_service.delete_restaurant(restaurant_id)

        for model in (Category, Customer, Purchase):
            assert db.session.query(model).filter_by(restaurant_id=restaurant_id).count() == 0, model

    def test_storage_refuses_removing_last_superadmin(self, superadmin):
        db.session.delete(superadmin)
        with pytest.raises(ConflictError):
            db.session.commit()
        db.session.rollback()

        assert restaurant_service.count_superadmins() == 1

    def test_delete_leaves_other_tenants_alone(self, restaurant_a, restaurant_b, product_b):
        restaurant_service.delete_restaurant(restaurant_a.id)

        assert db.session.query(Product).filter_by(restaurant_id=restaurant_b.id).count() == 1
        assert user_by_email("admin@beta.test") is not None

    def test_cannot_delete_restaurant_of_last_superadmin(self, hq):
        with pytest.raises(ConflictError):
            restaurant_service.delete_restaurant(hq.id)

        assert db.session.get(Restaurant, hq.id) is not None

    def test_bootstrap_restaurant_can_go_when_superadmin_elsewhere(self, hq, restaurant_a):
        make_user(restaurant_a, "superadmin", "second@alfa.test", "Second Root")

        restaurant_service.delete_restaurant(hq.id)

        assert db.session.get(Restaurant, hq.id) is None

    def test_deletion_is_audited(self, superadmin, restaurant_a):
        restaurant_service.delete_restaurant(restaurant_a.id, actor_id=superadmin.id)

        event = db.session.query(SecurityEvent).filter_by(event_type="RESTAURANT_DELETED").one()
        assert event.user_id == superadmin.id
        assert event.restaurant_id == restaurant_a.id

    def test_unknown_restaurant(self, db_session):
        with pytest.raises(NotFoundError):
            restaurant_service.delete_restaurant("missing")
