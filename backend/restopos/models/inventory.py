from __future__ import annotations

from ..extensions import db
from ..money import line_total
from ..time_utils import to_utc_z, utcnow
from .types import Money, new_id


class Purchase(db.Model):
    """
    Inventory intake record.

    product_name is free text (supplier naming rarely matches the menu),
    not a Product reference.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchases_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_purchases_unit_price_nonnegative"),
        db.Index("ix_purchases_restaurant_date", "restaurant_id", "purchase_date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    restaurant_id = db.Column(
        db.String(36),
        db.ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product_name = db.Column(db.String(255), nullable=False)
    supplier = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column("unit_price_cents", Money, nullable=False)
    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    restaurant = db.relationship("Restaurant", back_populates="purchases")

    @property
    def total_cost(self):
        return line_total(self.unit_price, self.quantity)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "product_name": self.product_name,
            "supplier": self.supplier,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_cost": self.total_cost,
            "purchase_date": to_utc_z(self.purchase_date),
        }
