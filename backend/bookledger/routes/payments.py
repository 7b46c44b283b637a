# Overview: Flask API routes for customer payments; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..errors import NotFound
from ..services import payment_service
from ..services.payment_service import PaymentError

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.post("/")
@require_account
def add_payment_route():
    """
    Receive money from a customer.

    Request body:
    {
        "customer_id": 1,
        "amount_cents": 50000,
        "payment_method": "CASH",
        "occurred_at": "2024-03-20T09:00:00Z",  (optional)
        "note": "March installment"  (optional)
    }

    Returns:
        201: Payment recorded, with the DUE lines it settled
    """
    try:
        data = request.get_json() or {}
        customer_id = data.get("customer_id")
        if not customer_id:
            return jsonify({"error": "customer_id is required"}), 400

        payment, settled = payment_service.add_payment(
            g.account_id,
            customer_id=customer_id,
            amount_cents=data.get("amount_cents"),
            payment_method=data.get("payment_method"),
            occurred_at=data.get("occurred_at"),
            note=data.get("note"),
        )
        return jsonify({
            "payment": payment.to_dict(),
            "settled": [t.to_dict() for t in settled],
        }), 201
    except PaymentError as e:
        return jsonify({"error": str(e)}), 400
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to add payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/transactions")
@require_account
def list_transactions_route():
    """
    Receivable/payable lines.

    Query params: customer_id, kind, status (all optional)
    """
    lines = payment_service.list_transactions(
        g.account_id,
        customer_id=request.args.get("customer_id", type=int),
        kind=request.args.get("kind"),
        status=request.args.get("status"),
    )
    return jsonify({"transactions": [t.to_dict() for t in lines]}), 200
