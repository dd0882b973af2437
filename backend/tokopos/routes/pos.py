# Overview: Flask API routes for the POS terminal; parses input and returns JSON responses.

# backend/tokopos/routes/pos.py
"""POS API routes: catalogue lookup, sale creation/cancellation, history, summary"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import SaleNotFound
from ..services import products_service, reporting_service, sales_service
from ..services.reporting_service import ReportError
from ..validation import ValidationError, parse_int_arg, parse_pagination


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


def _error(message: str, status: int, error: str | None = None, details: dict | None = None):
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    if details:
        body["details"] = details
    return jsonify(body), status


@pos_bp.get("/products")
@require_auth
def list_products_route():
    """In-stock products. Query: search, category, page, limit."""
    try:
        page, limit = parse_pagination(request.args, default_limit=20)
        data = products_service.list_pos_products(
            search=request.args.get("search"),
            category=request.args.get("category"),
            page=page,
            limit=limit,
        )
        return jsonify({"success": True, "data": data}), 200
    except ValidationError as e:
        return _error(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to fetch POS products")
        return _error("Internal server error", 500)


@pos_bp.post("/sales")
@require_auth
def create_sale_route():
    """
    Create a completed sale from a cart.

    The cashier is the authenticated user. Totals are computed server-side;
    only item unit prices are taken from the request.
    """
    try:
        result = sales_service.create_sale(request.get_json(silent=True), g.current_user.id)
        if not result.ok:
            e = result.error
            return _error("Error creating sale", e.status_code, error=e.message, details=e.details)

        return jsonify({
            "success": True,
            "message": "Sale created successfully",
            "data": result.sale.to_dict(),
        }), 201

    except Exception:
        current_app.logger.exception("Failed to create sale")
        return _error("Internal server error", 500)


@pos_bp.get("/sales")
@require_auth
def list_sales_route():
    """Sale history. Query: page, limit, startDate, endDate, status, search, cashier."""
    try:
        page, limit = parse_pagination(request.args, default_limit=10)
        data = sales_service.list_sales(
            page=page,
            limit=limit,
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            status=request.args.get("status") or None,
            cashier_id=parse_int_arg(request.args, "cashier"),
            search=request.args.get("search"),
        )
        return jsonify({"success": True, "data": data}), 200
    except ValidationError as e:
        return _error(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to fetch sales")
        return _error("Internal server error", 500)


@pos_bp.get("/sales/summary")
@require_auth
def sales_summary_route():
    try:
        period = request.args.get("period") or "today"
        data = reporting_service.sales_summary(period)
        return jsonify({"success": True, "data": data}), 200
    except ReportError as e:
        return _error(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to fetch sales summary")
        return _error("Internal server error", 500)


@pos_bp.get("/sales/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    if not sale:
        e = SaleNotFound(sale_id)
        return _error(e.message, e.status_code)
    return jsonify({"success": True, "data": sale.to_dict()}), 200


@pos_bp.put("/sales/<int:sale_id>/cancel")
@require_auth
def cancel_sale_route(sale_id: int):
    """Cancel a completed sale and restore its stock. Body: {reason?}"""
    try:
        data = request.get_json(silent=True) or {}
        reason = data.get("reason") if isinstance(data, dict) else None
        result = sales_service.cancel_sale(sale_id, reason)
        if not result.ok:
            e = result.error
            return _error(e.message, e.status_code, error=e.message, details=e.details)

        return jsonify({
            "success": True,
            "message": "Sale cancelled successfully",
            "data": result.sale.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to cancel sale")
        return _error("Internal server error", 500)
