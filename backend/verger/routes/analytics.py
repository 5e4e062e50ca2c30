# Overview: Flask API routes for sales analytics.

from datetime import timedelta

from flask import Blueprint, request, jsonify

from ..services import analytics_service
from ..time_utils import parse_iso_datetime, utcnow
from ..decorators import require_auth

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


@analytics_bp.get("/sales")
@require_auth
def sales_analytics_route():
    """
    Daily revenue and revenue per product.

    Query params:
    - start: ISO-8601 datetime (default: 30 days ago)
    - end: ISO-8601 datetime, a bare date includes that whole day (default: now)
    """
    try:
        end = parse_iso_datetime(request.args.get("end"), end_of_day=True) or utcnow()
        start = parse_iso_datetime(request.args.get("start")) or (end - timedelta(days=30))
        data = analytics_service.sales_analytics(start, end)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(data), 200
