# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..errors import FetchFailure, NotFound
from ..services import customer_service, payment_service
from ..services.customer_service import CustomerError

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/")
@require_account
def list_customers_route():
    customers = customer_service.list_customers(g.account_id)
    return jsonify({"customers": [c.to_dict() for c in customers]}), 200


@customers_bp.post("/")
@require_account
def add_customer_route():
    """
    Request body:
    {
        "name": "Rahim Books",
        "phone": "01700000000",  (optional)
        "address": "Dhaka",  (optional)
        "opening_balance_cents": 150000  (optional, owed before day zero)
    }
    """
    try:
        data = request.get_json() or {}
        customer = customer_service.add_customer(
            g.account_id,
            name=data.get("name"),
            phone=data.get("phone"),
            address=data.get("address"),
            opening_balance_cents=data.get("opening_balance_cents", 0),
        )
        return jsonify({"customer": customer.to_dict()}), 201
    except CustomerError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>")
@require_account
def get_customer_route(customer_id: int):
    """Customer with its receivable statement lines."""
    try:
        customer = customer_service.get_customer(g.account_id, customer_id)
        lines = payment_service.list_transactions(g.account_id, customer_id=customer_id)
        return jsonify({
            "customer": customer.to_dict(),
            "transactions": [t.to_dict() for t in lines],
        }), 200
    except NotFound as e:
        return jsonify({"error": str(e)}), 404


@customers_bp.patch("/<int:customer_id>")
@require_account
def update_customer_route(customer_id: int):
    try:
        data = request.get_json() or {}
        customer = customer_service.update_customer(g.account_id, customer_id, **data)
        return jsonify({"customer": customer.to_dict()}), 200
    except CustomerError as e:
        return jsonify({"error": str(e)}), 400
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.post("/reconcile")
@require_account
def reconcile_customers_route():
    """
    Compare cached due balances with the event-derived values.

    Query params:
    - fix: overwrite drifted balances (default: false)
    """
    try:
        fix = request.args.get("fix", "false").lower() == "true"
        drifts = customer_service.reconcile_customers(g.account_id, fix=fix)
        return jsonify({"fixed": fix, "drifts": [d.to_dict() for d in drifts]}), 200
    except FetchFailure as e:
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to reconcile customers")
        return jsonify({"error": "Internal server error"}), 500
