# Overview: Sales analytics (daily revenue and revenue per product) for the dashboard charts.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Product, Sale, SaleItem


def daily_sales(start: datetime, end: datetime) -> list[dict]:
    """Sum of sale totals per calendar day, inclusive window, oldest first."""
    sales = (
        db.session.query(Sale.created_at, Sale.total_amount)
        .filter(Sale.created_at >= start, Sale.created_at <= end)
        .order_by(Sale.created_at.asc())
        .all()
    )
    totals: dict[str, float] = {}
    for created_at, total_amount in sales:
        day = created_at.date().isoformat()
        totals[day] = totals.get(day, 0.0) + total_amount
    return [{"date": day, "total": total} for day, total in totals.items()]


def product_sales(start: datetime, end: datetime) -> list[dict]:
    """
    Revenue (quantity * unit_price) per product for items created in the window.

    Rows are keyed by product id; two products sharing a name stay separate.
    """
    rows = (
        db.session.query(Product.id, Product.name, SaleItem.quantity, SaleItem.unit_price)
        .join(Product, Product.id == SaleItem.product_id)
        .filter(SaleItem.created_at >= start, SaleItem.created_at <= end)
        .order_by(SaleItem.id.asc())
        .all()
    )
    names: dict[int, str] = {}
    revenue: dict[int, float] = {}
    for product_id, name, quantity, unit_price in rows:
        names[product_id] = name
        revenue[product_id] = revenue.get(product_id, 0.0) + quantity * unit_price
    return [
        {"product_id": product_id, "product": names[product_id], "revenue": amount}
        for product_id, amount in revenue.items()
    ]


def sales_analytics(start: datetime, end: datetime) -> dict:
    if start > end:
        raise ValueError("start must be before end")
    return {
        "daily": daily_sales(start, end),
        "products": product_sales(start, end),
    }
