# Overview: Service-layer operations for accounts (one bookstore's books each).

from __future__ import annotations

import logging

from ..errors import InvariantViolation
from ..extensions import db
from ..models import Account

logger = logging.getLogger(__name__)


class AccountError(InvariantViolation):
    """Raised for account errors."""
    pass


def create_account(name: str, code: str) -> Account:
    name = (name or "").strip()
    code = (code or "").strip().upper()
    if not name:
        raise AccountError("name is required")
    if not code:
        raise AccountError("code is required")
    if db.session.query(Account).filter_by(code=code).first():
        raise AccountError(f"Account code {code} already exists")

    account = Account(name=name, code=code, is_active=True)
    db.session.add(account)
    db.session.commit()
    logger.info("Created account %s (%s)", account.id, code)
    return account


def list_accounts(include_inactive: bool = False) -> list[Account]:
    query = db.session.query(Account)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Account.id.asc()).all()
