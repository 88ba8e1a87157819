from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .types import new_id


class Restaurant(db.Model):
    """
    Multi-tenant root: every tenant is a Restaurant.

    All users, catalog rows, purchases and sales belong to exactly one
    restaurant and are deleted with it.

    is_bootstrap marks the first restaurant ever registered (the one whose
    admin became the system superadmin). The partial unique index allows at
    most one such row, which serializes concurrent first registrations.
    """
    __tablename__ = "restaurants"
    __table_args__ = (
        db.Index(
            "uq_restaurants_bootstrap",
            "is_bootstrap",
            unique=True,
            sqlite_where=db.text("is_bootstrap = 1"),
            postgresql_where=db.text("is_bootstrap = true"),
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=False)

    is_bootstrap = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    users = db.relationship(
        "User", back_populates="restaurant", cascade="all, delete-orphan", order_by="User.name"
    )
    categories = db.relationship("Category", back_populates="restaurant", cascade="all, delete-orphan")
    products = db.relationship("Product", back_populates="restaurant", cascade="all, delete-orphan")
    customers = db.relationship("Customer", back_populates="restaurant", cascade="all, delete-orphan")
    purchases = db.relationship("Purchase", back_populates="restaurant", cascade="all, delete-orphan")
    sales = db.relationship("Sale", back_populates="restaurant", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Restaurant id={self.id} name={self.name!r}>"

    def to_dict(self, include_users: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_users:
            data["users"] = [user.to_dict() for user in self.users]
        return data
