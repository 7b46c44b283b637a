# Overview: Flask API routes for expenses, donations and capital; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..services import cashbook_service
from ..services.cashbook_service import CashbookError

cashbook_bp = Blueprint("cashbook", __name__, url_prefix="/api")


# =============================================================================
# EXPENSES
# =============================================================================

@cashbook_bp.get("/expenses")
@require_account
def list_expenses_route():
    expenses = cashbook_service.list_expenses(g.account_id)
    return jsonify({"expenses": [e.to_dict() for e in expenses]}), 200


@cashbook_bp.post("/expenses")
@require_account
def add_expense_route():
    """
    Request body:
    {"description": "Shop rent", "amount_cents": 1500000, "payment_method": "BANK", "occurred_at": "..."}
    """
    try:
        data = request.get_json() or {}
        expense = cashbook_service.add_expense(
            g.account_id,
            description=data.get("description"),
            amount_cents=data.get("amount_cents"),
            payment_method=data.get("payment_method", "CASH"),
            occurred_at=data.get("occurred_at"),
        )
        return jsonify({"expense": expense.to_dict()}), 201
    except CashbookError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to add expense")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# DONATIONS
# =============================================================================

@cashbook_bp.get("/donations")
@require_account
def list_donations_route():
    donations = cashbook_service.list_donations(g.account_id)
    return jsonify({"donations": [d.to_dict() for d in donations]}), 200


@cashbook_bp.post("/donations")
@require_account
def add_donation_route():
    try:
        data = request.get_json() or {}
        donation = cashbook_service.add_donation(
            g.account_id,
            donor_name=data.get("donor_name"),
            amount_cents=data.get("amount_cents"),
            payment_method=data.get("payment_method"),
            occurred_at=data.get("occurred_at"),
        )
        return jsonify({"donation": donation.to_dict()}), 201
    except CashbookError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to add donation")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CAPITAL
# =============================================================================

@cashbook_bp.get("/capital")
@require_account
def list_capital_route():
    capital = cashbook_service.list_capital(g.account_id)
    return jsonify({"capital": [c.to_dict() for c in capital]}), 200


@cashbook_bp.post("/capital")
@require_account
def add_capital_route():
    """
    Request body:
    {
        "amount_cents": 5000000,
        "payment_method": "CASH",  (CASH, BANK or ASSET)
        "initial": true,  (optional, day-zero opening balance)
        "description": "Opening float"  (optional)
    }
    """
    try:
        data = request.get_json() or {}
        capital = cashbook_service.add_capital(
            g.account_id,
            amount_cents=data.get("amount_cents"),
            payment_method=data.get("payment_method"),
            occurred_at=data.get("occurred_at"),
            description=data.get("description"),
            initial=bool(data.get("initial", False)),
        )
        return jsonify({"capital": capital.to_dict()}), 201
    except CashbookError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except Exception:
        current_app.logger.exception("Failed to add capital")
        return jsonify({"error": "Internal server error"}), 500
