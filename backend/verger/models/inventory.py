from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date


class InventoryRecord(db.Model):
    """
    On-hand quantity for one product (one record per product).

    Sales decrement `quantity` through a conditional update so that it never
    goes negative; restocking happens through inventory maintenance.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("product_id", name="uq_inventory_product"),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(32), nullable=False, default="kg")

    batch_number = db.Column(db.String(64), nullable=True)
    expiration_date = db.Column(db.Date, nullable=True)
    storage_location = db.Column(db.String(128), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("inventory", lazy=True, uselist=False))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit": self.unit,
            "batch_number": self.batch_number,
            "expiration_date": to_iso_date(self.expiration_date),
            "storage_location": self.storage_location,
            "updated_at": to_utc_z(self.updated_at),
        }
