# Overview: Flask API routes for accounts; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import account_service
from ..services.account_service import AccountError

accounts_bp = Blueprint("accounts", __name__, url_prefix="/api/accounts")


@accounts_bp.get("/")
def list_accounts_route():
    accounts = account_service.list_accounts()
    return jsonify({"accounts": [a.to_dict() for a in accounts]}), 200


@accounts_bp.post("/")
def create_account_route():
    """
    Create an account (a bookstore's books).

    Request body: {"name": "Main Street Books", "code": "MSB"}
    """
    try:
        data = request.get_json() or {}
        account = account_service.create_account(data.get("name"), data.get("code"))
        return jsonify({"account": account.to_dict()}), 201
    except AccountError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create account")
        return jsonify({"error": "Internal server error"}), 500
