# Overview: Service-layer operations for supplier purchases and payables.

"""
Purchases & Payables

A purchase (PUR-0001 numbering) is split into its money parts at write
time so the snapshot never has to read purchase payment fields:
- BOOK lines add to item stock; OFFICE_ASSET lines are capitalized
- the paid part (CASH/BANK, or SPLIT amount_paid) becomes an Expense
  linked by purchase_id
- the unpaid part (DUE, or SPLIT remainder) becomes a PENDING PAYABLE line

settle_payable flips a PAYABLE line to PAID and writes the outflow as an
Expense linked by transaction_id (and purchase_id when the payable came
from a purchase). Expenses carrying a purchase_id are stock/asset
acquisitions, not operating expenses, in the monthly report.
"""

from __future__ import annotations

import logging

from ..errors import InvariantViolation, LedgerError
from ..extensions import db
from ..models import LedgerTransaction, Purchase, PurchaseLine
from ..time_utils import parse_occurred_at
from .cashbook_service import add_expense
from .concurrency import run_with_retry
from .document_service import DOC_PURCHASE, allocate
from .inventory_service import lock_items, put_stock
from .payment_service import mark_transaction_paid
from .record_store import get_scoped
from .records import (
    CATEGORY_BOOK,
    CATEGORY_OFFICE_ASSET,
    KIND_PAYABLE,
    MONEY_ACCOUNTS,
    PAYMENT_DUE,
    PAYMENT_SPLIT,
    PURCHASE_LINE_CATEGORIES,
    PURCHASE_PAYMENT_METHODS,
    STATUS_PENDING,
    TYPE_PAYABLE,
)

logger = logging.getLogger(__name__)


class PurchaseError(InvariantViolation):
    """Raised for purchase and payable errors."""
    pass


def _positive_int(name: str, value) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise PurchaseError(f"{name} must be a positive integer")
    return value


def _validate_lines(lines) -> list[dict]:
    if not lines:
        raise PurchaseError("A purchase needs at least one line")
    normalized = []
    for idx, line in enumerate(lines, start=1):
        category = line.get("category") or CATEGORY_BOOK
        if category not in PURCHASE_LINE_CATEGORIES:
            raise PurchaseError(f"Line {idx}: category must be one of {list(PURCHASE_LINE_CATEGORIES)}")
        item_id = line.get("item_id")
        if category == CATEGORY_BOOK and not item_id:
            raise PurchaseError(f"Line {idx}: BOOK lines need an item_id")
        if category == CATEGORY_OFFICE_ASSET and not (line.get("description") or "").strip():
            raise PurchaseError(f"Line {idx}: OFFICE_ASSET lines need a description")
        unit_cost = line.get("unit_cost_cents")
        if not isinstance(unit_cost, int) or isinstance(unit_cost, bool) or unit_cost < 0:
            raise PurchaseError(f"Line {idx}: unit_cost_cents must be a non-negative integer")
        normalized.append({
            "category": category,
            "item_id": item_id if category == CATEGORY_BOOK else None,
            "description": (line.get("description") or "").strip(),
            "quantity": _positive_int(f"Line {idx}: quantity", line.get("quantity")),
            "unit_cost_cents": unit_cost,
        })
    return normalized


def _payable_line(account_id: int, *, amount_cents: int, counterparty: str, description: str,
                  due_date, recorded_at, purchase_id: int | None = None) -> LedgerTransaction:
    txn = LedgerTransaction(
        account_id=account_id,
        type=TYPE_PAYABLE,
        kind=KIND_PAYABLE,
        description=description,
        amount_cents=amount_cents,
        status=STATUS_PENDING,
        due_date=due_date,
        recorded_at=recorded_at,
        purchase_id=purchase_id,
        counterparty=counterparty,
    )
    db.session.add(txn)
    return txn


# =============================================================================
# PURCHASES
# =============================================================================

def add_purchase(
    account_id: int,
    supplier: str,
    lines: list[dict],
    payment_method: str,
    amount_paid_cents: int | None = None,
    split_payment_method: str | None = None,
    due_date=None,
    occurred_at=None,
) -> Purchase:
    """
    Record goods bought from a supplier.

    Args:
        lines: [{"category": "BOOK", "item_id": 1, "quantity": 10, "unit_cost_cents": 20000},
                {"category": "OFFICE_ASSET", "description": "Shelf", "quantity": 1, "unit_cost_cents": 500000}]
        payment_method: CASH, BANK, DUE or SPLIT
    """
    supplier = (supplier or "").strip()
    if not supplier:
        raise PurchaseError("supplier is required")
    if payment_method not in PURCHASE_PAYMENT_METHODS:
        raise PurchaseError(
            f"Invalid payment method: {payment_method}. Must be one of {list(PURCHASE_PAYMENT_METHODS)}"
        )
    normalized = _validate_lines(lines)
    total = sum(line["quantity"] * line["unit_cost_cents"] for line in normalized)

    paid_method = payment_method
    paid = total
    if payment_method == PAYMENT_DUE:
        paid_method = None
        paid = 0
    elif payment_method == PAYMENT_SPLIT:
        if split_payment_method not in MONEY_ACCOUNTS:
            raise PurchaseError("SPLIT purchases need split_payment_method CASH or BANK")
        paid = _positive_int("amount_paid_cents", amount_paid_cents)
        if paid >= total:
            raise PurchaseError("SPLIT amount paid must be less than the purchase total")
        paid_method = split_payment_method

    when = parse_occurred_at(occurred_at)
    due_at = parse_occurred_at(due_date) if due_date is not None else when

    def _op():
        book_ids = [line["item_id"] for line in normalized if line["category"] == CATEGORY_BOOK]
        items = lock_items(account_id, book_ids) if book_ids else {}

        purchase = Purchase(
            account_id=account_id,
            document_number=allocate(account_id, DOC_PURCHASE),
            occurred_at=when,
            supplier=supplier,
            total_cents=total,
            payment_method=payment_method,
            split_payment_method=split_payment_method if payment_method == PAYMENT_SPLIT else None,
            amount_paid_cents=paid,
            due_date=due_at if paid < total else None,
        )
        db.session.add(purchase)
        db.session.flush()

        for line in normalized:
            description = line["description"]
            if line["category"] == CATEGORY_BOOK:
                item = items[line["item_id"]]
                put_stock(item, line["quantity"])
                description = description or item.title
            db.session.add(PurchaseLine(
                purchase_id=purchase.id,
                item_id=line["item_id"],
                category=line["category"],
                description=description,
                quantity=line["quantity"],
                unit_cost_cents=line["unit_cost_cents"],
            ))

        if paid > 0:
            add_expense(
                account_id,
                description=f"Purchase {purchase.document_number} from {supplier}",
                amount_cents=paid,
                payment_method=paid_method,
                occurred_at=when,
                purchase_id=purchase.id,
                commit=False,
            )
        if paid < total:
            _payable_line(
                account_id,
                amount_cents=total - paid,
                counterparty=supplier,
                description=f"Payable for {purchase.document_number} to {supplier}",
                due_date=due_at,
                recorded_at=when,
                purchase_id=purchase.id,
            )

        db.session.commit()
        db.session.refresh(purchase)
        logger.info("Recorded purchase %s for account %s (total %s, paid %s)",
                    purchase.document_number, account_id, total, paid)
        return purchase

    try:
        return run_with_retry(_op)
    except LedgerError:
        db.session.rollback()
        raise


def get_purchase(account_id: int, purchase_id: int) -> Purchase:
    return get_scoped(Purchase, account_id, purchase_id)


def list_purchases(account_id: int) -> list[Purchase]:
    return (
        db.session.query(Purchase)
        .filter_by(account_id=account_id)
        .order_by(Purchase.occurred_at.desc(), Purchase.id.desc())
        .all()
    )


# =============================================================================
# PAYABLES
# =============================================================================

def add_payable(
    account_id: int,
    counterparty: str,
    amount_cents: int,
    description: str,
    due_date=None,
    occurred_at=None,
) -> LedgerTransaction:
    """Record a supplier bill that is not tied to a purchase document."""
    counterparty = (counterparty or "").strip()
    if not counterparty:
        raise PurchaseError("counterparty is required")
    description = (description or "").strip()
    if not description:
        raise PurchaseError("description is required")
    amount_cents = _positive_int("amount_cents", amount_cents)
    when = parse_occurred_at(occurred_at)

    txn = _payable_line(
        account_id,
        amount_cents=amount_cents,
        counterparty=counterparty,
        description=description,
        due_date=parse_occurred_at(due_date) if due_date is not None else when,
        recorded_at=when,
    )
    db.session.commit()
    logger.info("Recorded payable %s of %s to %s", txn.id, amount_cents, counterparty)
    return txn


def settle_payable(account_id: int, transaction_id: int, payment_method: str, paid_at=None) -> LedgerTransaction:
    """
    Pay a PENDING payable in full from cash or bank.

    Raises:
        PurchaseError: not a payable or invalid method
        PaymentError: already PAID
        NotFound: no such line in the account
    """
    if payment_method not in MONEY_ACCOUNTS:
        raise PurchaseError(f"Invalid payment method: {payment_method}. Must be one of {list(MONEY_ACCOUNTS)}")
    when = parse_occurred_at(paid_at)

    def _op():
        txn = get_scoped(LedgerTransaction, account_id, transaction_id, lock=True)
        if txn.type != TYPE_PAYABLE:
            raise PurchaseError(f"Transaction {transaction_id} is not a payable")
        mark_transaction_paid(txn, payment_method=payment_method, paid_at=when)
        add_expense(
            account_id,
            description=f"Payment to {txn.counterparty or 'supplier'}: {txn.description}",
            amount_cents=txn.amount_cents,
            payment_method=payment_method,
            occurred_at=when,
            purchase_id=txn.purchase_id,
            transaction_id=txn.id,
            commit=False,
        )
        db.session.commit()
        logger.info("Settled payable %s (%s) from %s", txn.id, txn.amount_cents, payment_method)
        return txn

    try:
        return run_with_retry(_op)
    except LedgerError:
        db.session.rollback()
        raise
