from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Supplier(db.Model):
    """Grower or exporter the business buys fruit from."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_company_name", "company_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(255), nullable=False)
    contact_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    country = db.Column(db.String(64), nullable=True)

    # e.g. ["agrumes", "fruits exotiques"]
    product_categories = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_name": self.company_name,
            "contact_name": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "country": self.country,
            "product_categories": self.product_categories,
            "created_at": to_utc_z(self.created_at),
        }
