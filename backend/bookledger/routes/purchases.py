# Overview: Flask API routes for purchases and payables; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..errors import NotFound
from ..services import payment_service, purchase_service
from ..services.inventory_service import InventoryError
from ..services.payment_service import PaymentError
from ..services.purchase_service import PurchaseError
from ..services.records import KIND_PAYABLE

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api")


# =============================================================================
# PURCHASES
# =============================================================================

@purchases_bp.get("/purchases")
@require_account
def list_purchases_route():
    purchases = purchase_service.list_purchases(g.account_id)
    return jsonify({"purchases": [p.to_dict() for p in purchases]}), 200


@purchases_bp.post("/purchases")
@require_account
def add_purchase_route():
    """
    Request body:
    {
        "supplier": "Prothoma Prokashon",
        "lines": [
            {"category": "BOOK", "item_id": 1, "quantity": 10, "unit_cost_cents": 20000},
            {"category": "OFFICE_ASSET", "description": "Bookshelf", "quantity": 1, "unit_cost_cents": 800000}
        ],
        "payment_method": "SPLIT",  (CASH, BANK, DUE or SPLIT)
        "amount_paid_cents": 100000,  (SPLIT only)
        "split_payment_method": "BANK",  (SPLIT only)
        "due_date": "2024-04-30"  (optional, DUE/SPLIT)
    }
    """
    try:
        data = request.get_json() or {}
        purchase = purchase_service.add_purchase(
            g.account_id,
            supplier=data.get("supplier"),
            lines=data.get("lines") or [],
            payment_method=data.get("payment_method"),
            amount_paid_cents=data.get("amount_paid_cents"),
            split_payment_method=data.get("split_payment_method"),
            due_date=data.get("due_date"),
            occurred_at=data.get("occurred_at"),
        )
        return jsonify({"purchase": purchase.to_dict()}), 201
    except (PurchaseError, InventoryError) as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to record purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/purchases/<int:purchase_id>")
@require_account
def get_purchase_route(purchase_id: int):
    try:
        return jsonify({"purchase": purchase_service.get_purchase(g.account_id, purchase_id).to_dict()}), 200
    except NotFound as e:
        return jsonify({"error": str(e)}), 404


# =============================================================================
# PAYABLES
# =============================================================================

@purchases_bp.get("/payables")
@require_account
def list_payables_route():
    status = request.args.get("status")
    payables = payment_service.list_transactions(g.account_id, kind=KIND_PAYABLE, status=status)
    return jsonify({"payables": [p.to_dict() for p in payables]}), 200


@purchases_bp.post("/payables")
@require_account
def add_payable_route():
    """
    Request body:
    {"counterparty": "Printer Co", "amount_cents": 250000, "description": "Flyers", "due_date": "2024-05-01"}
    """
    try:
        data = request.get_json() or {}
        payable = purchase_service.add_payable(
            g.account_id,
            counterparty=data.get("counterparty"),
            amount_cents=data.get("amount_cents"),
            description=data.get("description"),
            due_date=data.get("due_date"),
            occurred_at=data.get("occurred_at"),
        )
        return jsonify({"payable": payable.to_dict()}), 201
    except PurchaseError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to add payable")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.post("/payables/<int:transaction_id>/settle")
@require_account
def settle_payable_route(transaction_id: int):
    """Request body: {"payment_method": "CASH", "paid_at": "..."}"""
    try:
        data = request.get_json() or {}
        payable = purchase_service.settle_payable(
            g.account_id,
            transaction_id,
            payment_method=data.get("payment_method"),
            paid_at=data.get("paid_at"),
        )
        return jsonify({"payable": payable.to_dict()}), 200
    except (PurchaseError, PaymentError) as e:
        return jsonify({"error": str(e)}), 400
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to settle payable")
        return jsonify({"error": "Internal server error"}), 500
