# Overview: Flask API routes for cash/bank transfers; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..services import transfer_service
from ..services.transfer_service import TransferError

transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


@transfers_bp.get("/")
@require_account
def list_transfers_route():
    transfers = transfer_service.list_transfers(g.account_id)
    return jsonify({"transfers": [t.to_dict() for t in transfers]}), 200


@transfers_bp.post("/")
@require_account
def record_transfer_route():
    """
    Request body:
    {"from_account": "CASH", "to_account": "BANK", "amount_cents": 200000, "note": "Daily deposit"}
    """
    try:
        data = request.get_json() or {}
        transfer = transfer_service.record_transfer(
            g.account_id,
            from_account=data.get("from_account"),
            to_account=data.get("to_account"),
            amount_cents=data.get("amount_cents"),
            occurred_at=data.get("occurred_at"),
            note=data.get("note"),
        )
        return jsonify({"transfer": transfer.to_dict()}), 201
    except TransferError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to record transfer")
        return jsonify({"error": "Internal server error"}), 500
