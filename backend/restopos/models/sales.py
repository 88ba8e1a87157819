from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .types import Money, new_id

SALE_STATUSES = ("pending", "paid")


class Sale(db.Model):
    """
    Sale (order) document.

    Line items are stored as snapshot rows in sale_items: name and unit price
    are copied at sale time, so editing or deleting a product never rewrites
    history. user_name is snapshotted for the same reason.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("status IN ('pending', 'paid')", name="ck_sales_status"),
        db.CheckConstraint("total_price_cents >= 0", name="ck_sales_total_nonnegative"),
        db.Index("ix_sales_restaurant_status_date", "restaurant_id", "status", "sale_date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    restaurant_id = db.Column(
        db.String(36),
        db.ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    customer_name = db.Column(db.String(255), nullable=False)
    table_number = db.Column(db.String(64), nullable=False)
    total_price = db.Column("total_price_cents", Money, nullable=False)
    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    # User attribution; the row survives the user being deleted
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_name = db.Column(db.String(255), nullable=False)

    restaurant = db.relationship("Restaurant", back_populates="sales")
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.position",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "customer_name": self.customer_name,
            "table_number": self.table_number,
            "items": [item.to_dict() for item in self.items],
            "total_price": self.total_price,
            "sale_date": to_utc_z(self.sale_date),
            "status": self.status,
            "user_id": self.user_id,
            "user_name": self.user_name,
        }


class SaleItem(db.Model):
    """
    Snapshot line of a sale.

    product_id is kept for reference only; there is deliberately no foreign
    key to products.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "position", name="uq_sale_items_sale_position"),
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_sale_items_price_nonnegative"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(
        db.String(36),
        db.ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(36), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    unit_price = db.Column("unit_price_cents", Money, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.unit_price,
            "quantity": self.quantity,
        }
