# Overview: Service-layer operations for expenses, donations and owner capital.

"""
Cashbook entries are single-row, append-only records written through the
generic record store. Validation lives here; classification decides their
money effect when a snapshot is built.
"""

from __future__ import annotations

import logging

from ..errors import InvariantViolation
from ..extensions import db
from ..models import Capital, Donation, Expense
from ..time_utils import parse_occurred_at
from . import record_store
from .records import (
    CAPITAL_PAYMENT_METHODS,
    INITIAL_CAPITAL_SOURCE,
    MONEY_ACCOUNTS,
    STORE_CAPITAL,
    STORE_DONATIONS,
    STORE_EXPENSES,
)

logger = logging.getLogger(__name__)

OWNER_CAPITAL_SOURCE = "Owner Investment"


class CashbookError(InvariantViolation):
    """Raised for expense, donation and capital errors."""
    pass


def _positive_cents(value) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise CashbookError("amount_cents must be a positive integer (cents)")
    return value


def _money_account(value) -> str:
    if value not in MONEY_ACCOUNTS:
        raise CashbookError(f"Invalid payment method: {value}. Must be one of {list(MONEY_ACCOUNTS)}")
    return value


def add_expense(
    account_id: int,
    description: str,
    amount_cents: int,
    payment_method: str = "CASH",
    occurred_at=None,
    purchase_id: int | None = None,
    transaction_id: int | None = None,
    commit: bool = True,
) -> Expense:
    """
    Record money paid out.

    commit=False lets purchase and payable settlement write the expense
    inside their own transaction.
    """
    description = (description or "").strip()
    if not description:
        raise CashbookError("description is required")
    expense_id = record_store.append_record(
        STORE_EXPENSES,
        account_id,
        occurred_at=parse_occurred_at(occurred_at),
        description=description,
        amount_cents=_positive_cents(amount_cents),
        payment_method=_money_account(payment_method),
        purchase_id=purchase_id,
        transaction_id=transaction_id,
    )
    if commit:
        db.session.commit()
    logger.info("Recorded expense %s of %s (%s) for account %s", expense_id, amount_cents, payment_method, account_id)
    return db.session.get(Expense, expense_id)


def add_donation(
    account_id: int,
    donor_name: str,
    amount_cents: int,
    payment_method: str,
    occurred_at=None,
    source: str | None = None,
) -> Donation:
    donor_name = (donor_name or "").strip()
    if not donor_name:
        raise CashbookError("donor_name is required")
    donation_id = record_store.append_record(
        STORE_DONATIONS,
        account_id,
        occurred_at=parse_occurred_at(occurred_at),
        donor_name=donor_name,
        amount_cents=_positive_cents(amount_cents),
        payment_method=_money_account(payment_method),
        source=source,
    )
    db.session.commit()
    logger.info("Recorded donation %s of %s from %s", donation_id, amount_cents, donor_name)
    return db.session.get(Donation, donation_id)


def add_capital(
    account_id: int,
    amount_cents: int,
    payment_method: str,
    occurred_at=None,
    description: str | None = None,
    initial: bool = False,
) -> Capital:
    """
    Record owner capital.

    initial=True marks the day-zero opening balance, which every snapshot
    includes regardless of its as-of date. payment_method ASSET brings an
    existing asset into the business (other assets, no cash).
    """
    if payment_method not in CAPITAL_PAYMENT_METHODS:
        raise CashbookError(
            f"Invalid payment method: {payment_method}. Must be one of {list(CAPITAL_PAYMENT_METHODS)}"
        )
    capital_id = record_store.append_record(
        STORE_CAPITAL,
        account_id,
        occurred_at=parse_occurred_at(occurred_at),
        source=INITIAL_CAPITAL_SOURCE if initial else OWNER_CAPITAL_SOURCE,
        amount_cents=_positive_cents(amount_cents),
        payment_method=payment_method,
        description=description,
    )
    db.session.commit()
    logger.info("Recorded capital %s of %s (%s) for account %s", capital_id, amount_cents, payment_method, account_id)
    return db.session.get(Capital, capital_id)


def list_expenses(account_id: int) -> list[Expense]:
    return (
        db.session.query(Expense)
        .filter_by(account_id=account_id)
        .order_by(Expense.occurred_at.desc(), Expense.id.desc())
        .all()
    )


def list_donations(account_id: int) -> list[Donation]:
    return (
        db.session.query(Donation)
        .filter_by(account_id=account_id)
        .order_by(Donation.occurred_at.desc(), Donation.id.desc())
        .all()
    )


def list_capital(account_id: int) -> list[Capital]:
    return (
        db.session.query(Capital)
        .filter_by(account_id=account_id)
        .order_by(Capital.occurred_at.desc(), Capital.id.desc())
        .all()
    )
