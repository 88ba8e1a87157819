# Overview: Tenant directory operations for restaurants and their admin accounts.

"""
Restaurant Directory Service

MULTI-TENANT: A Restaurant is the tenant root. Registering one creates its
first user in the same transaction; deleting one removes every row it owns.

INVARIANTS:
- The first restaurant ever registered gets a superadmin, every later one an
  admin. A partial unique index on restaurants.is_bootstrap makes a second
  concurrent "first" registration fail; the loser retries once and then
  sees the existing restaurant.
- User email is unique across all restaurants (checked in the transaction,
  backed by a unique index).
- A restaurant holding every remaining superadmin cannot be deleted.

Authorization happens in the caller (routes or CLI); these functions trust
their inputs to have passed the policy.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, ConstraintViolation, NotFoundError, StorageUnavailableError, ValidationError
from ..extensions import db
from ..models import Restaurant, User
from ..permissions import Role, check_restaurant_deletion
from ..validation import ModelValidationPolicy, validate_payload
from .auth_service import MIN_PASSWORD_LENGTH, hash_password
from .concurrency import atomic, lock_for_update, run_with_retry
from .permission_service import log_security_event
from .session_service import revoke_all_user_sessions

RESTAURANT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "address", "phone"},
    required_on_create={"name", "address", "phone"},
    min_lengths={"name": 2, "address": 5, "phone": 7},
)

ADMIN_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email"},
    required_on_create={"name", "email"},
    min_lengths={"name": 2},
    email_fields={"email"},
)


def email_in_use(email: str, *, exclude_user_id: str | None = None) -> bool:
    """Global email check; the unique index is the final arbiter."""
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def count_superadmins(*, restaurant_id: str | None = None, for_update: bool = False) -> int:
    query = db.session.query(User).filter(User.role == Role.SUPERADMIN.value)
    if restaurant_id is not None:
        query = query.filter(User.restaurant_id == restaurant_id)
    if for_update:
        return len(lock_for_update(query).all())
    return query.count()


def list_all() -> list[Restaurant]:
    """Every restaurant, users loaded alongside."""
    return (
        db.session.query(Restaurant)
        .options(db.selectinload(Restaurant.users))
        .order_by(Restaurant.name.asc())
        .all()
    )


def get_by_id(restaurant_id: str) -> Restaurant:
    restaurant = db.session.query(Restaurant).filter_by(id=restaurant_id).first()
    if not restaurant:
        raise NotFoundError("Restaurant not found")
    return restaurant


def _split_password(fields: dict | None) -> tuple[dict, str | None]:
    if fields is None:
        return {}, None
    if not isinstance(fields, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(fields)
    return fields, fields.pop("password", None)


def create_restaurant(restaurant_fields: dict, admin_fields: dict) -> str:
    """
    Register a restaurant together with its first user.

    Returns the new restaurant id.

    Raises:
        ValidationError: missing or malformed fields, short password
        ConflictError: the admin email already belongs to some user
    """
    restaurant_data = validate_payload(
        model=Restaurant, payload=restaurant_fields, policy=RESTAURANT_POLICY, partial=False
    )
    admin_fields, password = _split_password(admin_fields)
    if password is None:
        raise ValidationError("Missing required fields: password")
    admin_data = validate_payload(model=User, payload=admin_fields, policy=ADMIN_POLICY, partial=False)
    password_hash = hash_password(password)

    def _op() -> tuple[str, str]:
        with atomic():
            if email_in_use(admin_data["email"]):
                raise ConflictError("This email is already registered")

            is_bootstrap = db.session.query(Restaurant.id).first() is None
            role = Role.SUPERADMIN if is_bootstrap else Role.ADMIN

            restaurant = Restaurant(is_bootstrap=is_bootstrap, **restaurant_data)
            db.session.add(restaurant)
            db.session.flush()

            db.session.add(User(
                restaurant_id=restaurant.id,
                password_hash=password_hash,
                role=role.value,
                **admin_data,
            ))
            created_id = restaurant.id
        return created_id, role.value

    # A losing bootstrap racer hits uq_restaurants_bootstrap; one retry
    # re-reads the table and registers as a plain admin.
    restaurant_id, role = run_with_retry(
        _op, attempts=2, retry_on=(ConstraintViolation, StorageUnavailableError)
    )
    current_app.logger.info("restaurant registered id=%s admin_role=%s", restaurant_id, role)
    return restaurant_id


def update_restaurant(
    restaurant_id: str,
    restaurant_fields: dict | None = None,
    admin_fields: dict | None = None,
) -> Restaurant:
    """
    Update restaurant details and, optionally, one of its users' login data.

    admin_fields: {"id": ..., "email"?: ..., "name"?: ..., "password"?: ...}.
    A password shorter than MIN_PASSWORD_LENGTH (empty included) is ignored
    and the current one stays; the other changes are still applied.

    Returns the refreshed restaurant; serialize with include_users=True.
    """
    restaurant_data = validate_payload(
        model=Restaurant, payload=restaurant_fields or {}, policy=RESTAURANT_POLICY, partial=True
    )

    admin_fields, password = _split_password(admin_fields)
    admin_id = admin_fields.pop("id", None)
    if admin_fields and not admin_id:
        raise ValidationError("admin.id is required to update the restaurant admin")
    admin_data = validate_payload(model=User, payload=admin_fields, policy=ADMIN_POLICY, partial=True)
    password_hash = None
    if isinstance(password, str) and len(password) >= MIN_PASSWORD_LENGTH:
        password_hash = hash_password(password)

    with atomic():
        restaurant = lock_for_update(db.session.query(Restaurant).filter_by(id=restaurant_id)).first()
        if not restaurant:
            raise NotFoundError("Restaurant not found")

        for key, value in restaurant_data.items():
            setattr(restaurant, key, value)

        if admin_id:
            admin = db.session.query(User).filter_by(id=admin_id, restaurant_id=restaurant.id).first()
            if not admin:
                raise NotFoundError("User not found in this restaurant")

            if "email" in admin_data and email_in_use(admin_data["email"], exclude_user_id=admin.id):
                raise ConflictError("This email is already registered by another user")

            for key, value in admin_data.items():
                setattr(admin, key, value)
            if password_hash:
                admin.password_hash = password_hash
                revoke_all_user_sessions(admin.id, reason="Password changed")

    db.session.refresh(restaurant)
    return restaurant


def delete_restaurant(restaurant_id: str, *, actor_id: str | None = None) -> None:
    """
    Delete a restaurant and, by cascade, every user, product, category,
    customer, purchase and sale it owns. Irreversible.

    Raises ConflictError if the restaurant holds the last superadmin(s).
    """
    restaurant = get_by_id(restaurant_id)
    name = restaurant.name

    with atomic():
        decision = check_restaurant_deletion(
            restaurant_superadmins=count_superadmins(restaurant_id=restaurant_id, for_update=True),
            total_superadmins=count_superadmins(for_update=True),
        )
        decision.raise_for_denial()
        db.session.delete(restaurant)

    current_app.logger.warning("restaurant deleted id=%s name=%s by=%s", restaurant_id, name, actor_id)
    log_security_event(
        user_id=actor_id,
        event_type="RESTAURANT_DELETED",
        success=True,
        action="DELETE",
        reason=f"Restaurant '{name}' and all its data were deleted",
        restaurant_id=restaurant_id,
    )
