from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

SALE_STATUSES = ("pending", "processing", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")


class Sale(db.Model):
    """
    Sale header.

    total_amount always equals the sum of quantity * unit_price over the
    persisted sale_items at the time of the last write.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("request_token", name="uq_sales_request_token"),
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    total_amount = db.Column(db.Float, nullable=False, default=0.0)

    # Operator-driven lifecycle; nothing transitions automatically
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # Client-generated idempotency key for create submissions
    request_token = db.Column(db.String(64), nullable=True)

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "total_amount": self.total_amount,
            "status": self.status,
            "payment_status": self.payment_status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "request_token": self.request_token,
        }


class SaleItem(db.Model):
    """One product/quantity/price line of a sale."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        db.CheckConstraint("unit_price >= 0", name="ck_sale_items_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Float, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
    product = db.relationship("Product")

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "created_at": to_utc_z(self.created_at),
        }
