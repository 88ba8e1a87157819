from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .types import Money, new_id


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    restaurant_id = db.Column(
        db.String(36),
        db.ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    restaurant = db.relationship("Restaurant", back_populates="categories")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Menu item.

    category is a free label rather than a Category reference, so deleting
    a category never touches products or historical sales.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_nonnegative"),
        db.Index("ix_products_restaurant_name", "restaurant_id", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    restaurant_id = db.Column(
        db.String(36),
        db.ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    price = db.Column("price_cents", Money, nullable=False)
    category = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    restaurant = db.relationship("Restaurant", back_populates="products")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
