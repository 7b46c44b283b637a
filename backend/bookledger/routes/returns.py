# Overview: Flask API routes for sales returns; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..errors import NotFound
from ..services import return_service
from ..services.inventory_service import InventoryError
from ..services.return_service import ReturnError

returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


@returns_bp.get("/")
@require_account
def list_returns_route():
    returns = return_service.list_sales_returns(g.account_id)
    return jsonify({"returns": [r.to_dict() for r in returns]}), 200


@returns_bp.post("/")
@require_account
def add_return_route():
    """
    Request body:
    {
        "customer_id": 1,
        "lines": [{"item_id": 1, "quantity": 1, "unit_price_cents": 35000}],
        "refund_method": "ADJUST_DUE",
        "reason": "Damaged copy",  (optional)
        "occurred_at": "2024-03-21T12:00:00Z"  (optional)
    }

    REFUND METHODS:
    - ADJUST_DUE: credited against the customer's due balance
    - CASH / BANK: paid back from that account
    """
    try:
        data = request.get_json() or {}
        customer_id = data.get("customer_id")
        if not customer_id:
            return jsonify({"error": "customer_id is required"}), 400

        sales_return = return_service.add_sales_return(
            g.account_id,
            customer_id=customer_id,
            lines=data.get("lines") or [],
            refund_method=data.get("refund_method"),
            reason=data.get("reason"),
            occurred_at=data.get("occurred_at"),
        )
        return jsonify({"return": sales_return.to_dict()}), 201
    except (ReturnError, InventoryError) as e:
        return jsonify({"error": str(e)}), 400
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to record sales return")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.get("/<int:return_id>")
@require_account
def get_return_route(return_id: int):
    try:
        return jsonify({"return": return_service.get_sales_return(g.account_id, return_id).to_dict()}), 200
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
