from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date

CLEARANCE_STATUSES = ("pending", "processing", "completed", "blocked")


class Shipment(db.Model):
    """Inbound shipment identified by its carrier tracking number."""
    __tablename__ = "shipments"
    __table_args__ = (
        db.UniqueConstraint("tracking_number", name="uq_shipments_tracking_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tracking_number = db.Column(db.String(64), nullable=False)
    carrier = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tracking_number": self.tracking_number,
            "carrier": self.carrier,
            "created_at": to_utc_z(self.created_at),
        }


class CustomsClearance(db.Model):
    """
    Customs declaration of one shipment.

    Status is set by the operator (pending, processing, completed, blocked);
    fees are never negative and documents are stored as a list of URLs.
    """
    __tablename__ = "customs_clearance"
    __table_args__ = (
        db.CheckConstraint("customs_fees IS NULL OR customs_fees >= 0", name="ck_customs_fees_non_negative"),
        db.Index("ix_customs_clearance_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shipment_id = db.Column(db.Integer, db.ForeignKey("shipments.id"), nullable=False, index=True)

    declaration_number = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    customs_fees = db.Column(db.Float, nullable=True)
    clearance_date = db.Column(db.Date, nullable=True)
    documents_url = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shipment = db.relationship("Shipment", backref=db.backref("clearances", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shipment_id": self.shipment_id,
            "declaration_number": self.declaration_number,
            "status": self.status,
            "customs_fees": self.customs_fees,
            "clearance_date": to_iso_date(self.clearance_date),
            "documents_url": self.documents_url,
            "created_at": to_utc_z(self.created_at),
            "shipment": {
                "tracking_number": self.shipment.tracking_number,
                "carrier": self.shipment.carrier,
            } if self.shipment else None,
        }
