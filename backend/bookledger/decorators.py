# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .extensions import db
from .models import Account

ACCOUNT_HEADER = "X-Account-Id"


def require_account(f):
    """
    Establish the account (tenant) context for a request.

    MULTI-TENANT: Sets g.account_id from the X-Account-Id header. Every
    service call in the route is scoped to it; no route reads across
    accounts.

    Returns 400 if the header is missing or not an integer, 404 if the
    account does not exist or is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get(ACCOUNT_HEADER)
        if not raw:
            return jsonify({"error": f"{ACCOUNT_HEADER} header required"}), 400
        try:
            account_id = int(raw)
        except ValueError:
            return jsonify({"error": f"{ACCOUNT_HEADER} must be an integer"}), 400

        account = db.session.get(Account, account_id)
        if account is None or not account.is_active:
            return jsonify({"error": f"Account {account_id} not found"}), 404

        g.account_id = account.id
        return f(*args, **kwargs)

    return decorated_function
