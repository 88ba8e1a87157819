from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .types import new_id


class Customer(db.Model):
    """
    Customer contact record, scoped to one restaurant.

    Email is not unique: the same person may be a customer of several
    restaurants, and customers are not accounts.
    """
    __tablename__ = "customers"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    restaurant_id = db.Column(
        db.String(36),
        db.ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    restaurant = db.relationship("Restaurant", back_populates="customers")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
