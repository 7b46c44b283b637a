# Overview: Service-layer operations for customer payments and receivable settlement.

"""
Customer Payments

WHY: Customers buying on DUE (or SPLIT) settle later. A payment is an
immutable CUSTOMER_PAYMENT transaction line; it is the only receivable
line that moves money.

DESIGN PRINCIPLES:
- The payment lowers the cached due balance by the full amount. Paying
  more than is owed leaves a negative balance, which is store credit.
- Pending DUE lines are settled oldest-first, whole lines only, while the
  customer's unallocated credits cover them. Allocation is recomputed
  from the stores (payments plus ADJUST_DUE returns, minus the opening
  balance and already-settled dues), so a partial payment today plus
  another tomorrow settles the line tomorrow.
- A line goes PENDING -> PAID exactly once. PAID is terminal.
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..errors import InvariantViolation, LedgerError
from ..extensions import db
from ..models import Customer, LedgerTransaction, SalesReturn
from ..time_utils import parse_occurred_at
from .concurrency import lock_for_update, run_with_retry
from .record_store import get_scoped
from .records import (
    KIND_CUSTOMER_PAYMENT,
    KIND_DUE,
    MONEY_ACCOUNTS,
    REFUND_ADJUST_DUE,
    STATUS_PAID,
    STATUS_PENDING,
    TYPE_RECEIVABLE,
)

logger = logging.getLogger(__name__)


class PaymentError(InvariantViolation):
    """Raised for payment operation errors."""
    pass


# =============================================================================
# STATUS TRANSITION
# =============================================================================

def mark_transaction_paid(txn: LedgerTransaction, *, payment_method: str | None, paid_at) -> LedgerTransaction:
    """Flip a PENDING line to PAID. Refuses a second transition."""
    if txn.status == STATUS_PAID:
        raise PaymentError(f"Transaction {txn.id} is already PAID")
    if txn.status != STATUS_PENDING:
        raise PaymentError(f"Transaction {txn.id} has unknown status {txn.status}")
    txn.status = STATUS_PAID
    txn.paid_at = paid_at
    if payment_method:
        txn.payment_method = payment_method
    return txn


# =============================================================================
# PAYMENT CREATION
# =============================================================================

def _sum_amount(account_id: int, customer_id: int, kind: str, status: str) -> int:
    return (
        db.session.query(func.coalesce(func.sum(LedgerTransaction.amount_cents), 0))
        .filter(
            LedgerTransaction.account_id == account_id,
            LedgerTransaction.customer_id == customer_id,
            LedgerTransaction.kind == kind,
            LedgerTransaction.status == status,
        )
        .scalar()
    )


def _adjust_due_credits(account_id: int, customer_id: int) -> int:
    return (
        db.session.query(func.coalesce(func.sum(SalesReturn.total_return_value_cents), 0))
        .filter(
            SalesReturn.account_id == account_id,
            SalesReturn.customer_id == customer_id,
            SalesReturn.refund_method == REFUND_ADJUST_DUE,
        )
        .scalar()
    )


def _settle_pending_dues(customer: Customer, *, payment_method: str, paid_at) -> list[LedgerTransaction]:
    """
    Settle whole DUE lines, oldest first, while unallocated credits cover them.

    The opening balance is the oldest debt, so it is covered before any line.
    """
    account_id, customer_id = customer.account_id, customer.id
    unallocated = (
        _sum_amount(account_id, customer_id, KIND_CUSTOMER_PAYMENT, STATUS_PAID)
        + _adjust_due_credits(account_id, customer_id)
        - customer.opening_balance_cents
        - _sum_amount(account_id, customer_id, KIND_DUE, STATUS_PAID)
    )

    pending = lock_for_update(
        db.session.query(LedgerTransaction)
        .filter_by(account_id=account_id, customer_id=customer_id, kind=KIND_DUE, status=STATUS_PENDING)
        .order_by(LedgerTransaction.due_date.asc(), LedgerTransaction.id.asc())
    ).all()

    settled = []
    for txn in pending:
        if txn.amount_cents > unallocated:
            break
        mark_transaction_paid(txn, payment_method=payment_method, paid_at=paid_at)
        unallocated -= txn.amount_cents
        settled.append(txn)
    return settled


def add_payment(
    account_id: int,
    customer_id: int,
    amount_cents: int,
    payment_method: str,
    occurred_at=None,
    note: str | None = None,
) -> tuple[LedgerTransaction, list[LedgerTransaction]]:
    """
    Record money received from a customer.

    Returns:
        (payment line, DUE lines settled by this payment)

    Raises:
        PaymentError: invalid amount or method, nothing written
        NotFound: customer does not belong to the account
    """
    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool) or amount_cents <= 0:
        raise PaymentError("Payment amount must be a positive integer (cents)")
    if payment_method not in MONEY_ACCOUNTS:
        raise PaymentError(f"Invalid payment method: {payment_method}. Must be one of {list(MONEY_ACCOUNTS)}")
    when = parse_occurred_at(occurred_at)

    def _op():
        customer = get_scoped(Customer, account_id, customer_id, lock=True)

        description = f"Payment from customer {customer.name}"
        if note:
            description = f"{description}: {note}"

        payment = LedgerTransaction(
            account_id=account_id,
            customer_id=customer.id,
            type=TYPE_RECEIVABLE,
            kind=KIND_CUSTOMER_PAYMENT,
            description=description,
            amount_cents=amount_cents,
            status=STATUS_PAID,
            payment_method=payment_method,
            due_date=when,
            recorded_at=when,
            paid_at=when,
        )
        db.session.add(payment)
        db.session.flush()

        customer.due_balance_cents -= amount_cents
        settled = _settle_pending_dues(customer, payment_method=payment_method, paid_at=when)

        db.session.commit()
        logger.info(
            "Recorded payment %s of %s from customer %s (settled %d due lines)",
            payment.id, amount_cents, customer.id, len(settled),
        )
        return payment, settled

    try:
        return run_with_retry(_op)
    except LedgerError:
        db.session.rollback()
        raise


# =============================================================================
# QUERIES
# =============================================================================

def list_transactions(
    account_id: int,
    *,
    customer_id: int | None = None,
    kind: str | None = None,
    status: str | None = None,
) -> list[LedgerTransaction]:
    query = db.session.query(LedgerTransaction).filter_by(account_id=account_id)
    if customer_id is not None:
        query = query.filter_by(customer_id=customer_id)
    if kind is not None:
        query = query.filter_by(kind=kind)
    if status is not None:
        query = query.filter_by(status=status)
    return query.order_by(LedgerTransaction.recorded_at.asc(), LedgerTransaction.id.asc()).all()
