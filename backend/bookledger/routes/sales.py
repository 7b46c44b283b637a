# Overview: Flask API routes for sales documents; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..errors import NotFound
from ..services import sales_service
from ..services.inventory_service import InventoryError
from ..services.sales_service import SaleError

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("/")
@require_account
def list_sales_route():
    customer_id = request.args.get("customer_id", type=int)
    sales = sales_service.list_sales(g.account_id, customer_id=customer_id)
    return jsonify({"sales": [s.to_dict() for s in sales]}), 200


@sales_bp.post("/")
@require_account
def add_sale_route():
    """
    Record a sale.

    Request body:
    {
        "customer_id": 1,
        "lines": [{"item_id": 1, "quantity": 2, "unit_price_cents": 35000}],
        "payment_method": "SPLIT",
        "discount_cents": 5000,  (optional)
        "credit_applied_cents": 0,  (optional)
        "amount_paid_cents": 30000,  (SPLIT only)
        "split_payment_method": "CASH",  (SPLIT only)
        "occurred_at": "2024-03-15T10:00:00Z",  (optional, default now)
        "due_date": "2024-04-15"  (optional, DUE/SPLIT)
    }

    Returns:
        201: Sale created
        400: Validation failed (nothing written)
        404: Customer not found
    """
    try:
        data = request.get_json() or {}
        customer_id = data.get("customer_id")
        if not customer_id:
            return jsonify({"error": "customer_id is required"}), 400

        sale = sales_service.add_sale(
            g.account_id,
            customer_id=customer_id,
            lines=data.get("lines") or [],
            payment_method=data.get("payment_method"),
            discount_cents=data.get("discount_cents", 0),
            credit_applied_cents=data.get("credit_applied_cents", 0),
            amount_paid_cents=data.get("amount_paid_cents"),
            split_payment_method=data.get("split_payment_method"),
            occurred_at=data.get("occurred_at"),
            due_date=data.get("due_date"),
        )
        return jsonify({"sale": sale.to_dict()}), 201
    except (SaleError, InventoryError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_account
def get_sale_route(sale_id: int):
    try:
        return jsonify({"sale": sales_service.get_sale(g.account_id, sale_id).to_dict()}), 200
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
