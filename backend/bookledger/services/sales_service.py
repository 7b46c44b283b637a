# Overview: Service-layer operations for sales; validates, writes the sale document and its side effects.

"""
Sales (authoritative)

One add_sale call writes, in a single DB transaction:
1. The Sale document (SALE-0001 numbering) and its lines. Each line keeps
   the item's production price as unit_cost_cents (COGS).
2. Stock decrements (items locked; stock never goes negative).
3. The customer's cached due balance, moved by sale_due_delta, the same
   rule the snapshot uses for receivables.
4. Receivable lines:
   - DUE (PENDING) for the unpaid part of a DUE or SPLIT sale
   - SALE_PAYMENT (PAID) for the paid part of a SPLIT sale; statement
     only, the cash is counted through the sale itself

Nothing is written when any validation fails.
"""

from __future__ import annotations

import logging

from ..errors import InvariantViolation, LedgerError
from ..extensions import db
from ..models import Customer, LedgerTransaction, Sale, SaleLine
from ..time_utils import parse_occurred_at
from .classification import sale_due_delta
from .concurrency import run_with_retry
from .document_service import DOC_SALE, allocate
from .inventory_service import lock_items, take_stock
from .record_store import get_scoped
from .records import (
    KIND_DUE,
    KIND_SALE_PAYMENT,
    MONEY_ACCOUNTS,
    PAYMENT_BY_CREDIT,
    PAYMENT_DUE,
    PAYMENT_SPLIT,
    SALE_PAYMENT_METHODS,
    STATUS_PAID,
    STATUS_PENDING,
    TYPE_RECEIVABLE,
    sale_from_row,
)

logger = logging.getLogger(__name__)


class SaleError(InvariantViolation):
    """Raised for sale validation errors."""
    pass


def _as_cents(name: str, value, *, default: int = 0) -> int:
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise SaleError(f"{name} must be a non-negative integer (cents)")
    return value


def _normalize_lines(lines) -> list[dict]:
    if not lines:
        raise SaleError("A sale needs at least one line")
    normalized = []
    for idx, line in enumerate(lines, start=1):
        item_id = line.get("item_id")
        quantity = line.get("quantity")
        if not item_id:
            raise SaleError(f"Line {idx}: item_id is required")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise SaleError(f"Line {idx}: quantity must be a positive integer")
        normalized.append({
            "item_id": item_id,
            "quantity": quantity,
            "unit_price_cents": line.get("unit_price_cents"),
        })
    return normalized


def add_sale(
    account_id: int,
    customer_id: int,
    lines: list[dict],
    payment_method: str,
    discount_cents: int = 0,
    credit_applied_cents: int = 0,
    amount_paid_cents: int | None = None,
    split_payment_method: str | None = None,
    occurred_at=None,
    due_date=None,
) -> Sale:
    """
    Record a sale.

    Args:
        lines: [{"item_id": 1, "quantity": 2, "unit_price_cents": 50000}, ...]
            unit_price_cents defaults to the item's selling price
        payment_method: CASH, BANK, DUE, SPLIT or PAID_BY_CREDIT
        credit_applied_cents: store credit consumed (<= the customer's credit)
        amount_paid_cents / split_payment_method: SPLIT sales only

    Raises:
        SaleError / InventoryError: validation failed, nothing written
        NotFound: customer does not belong to the account
    """
    if payment_method not in SALE_PAYMENT_METHODS:
        raise SaleError(f"Invalid payment method: {payment_method}. Must be one of {list(SALE_PAYMENT_METHODS)}")
    normalized = _normalize_lines(lines)
    discount_cents = _as_cents("discount_cents", discount_cents)
    credit_applied_cents = _as_cents("credit_applied_cents", credit_applied_cents)
    when = parse_occurred_at(occurred_at)
    due_at = parse_occurred_at(due_date) if due_date is not None else when

    def _op():
        customer = get_scoped(Customer, account_id, customer_id, lock=True)
        items = lock_items(account_id, (line["item_id"] for line in normalized))

        subtotal = 0
        for line in normalized:
            item = items[line["item_id"]]
            price = _as_cents("unit_price_cents", line["unit_price_cents"], default=item.selling_price_cents)
            line["unit_price_cents"] = price
            line["line_total_cents"] = price * line["quantity"]
            subtotal += line["line_total_cents"]

        if discount_cents > subtotal:
            raise SaleError("Discount cannot exceed the subtotal")
        total = subtotal - discount_cents

        available_credit = max(0, -customer.due_balance_cents)
        if credit_applied_cents > available_credit:
            raise SaleError(
                f"Credit applied {credit_applied_cents} exceeds available credit {available_credit}",
                details={"available_credit_cents": available_credit},
            )
        if credit_applied_cents > total:
            raise SaleError("Credit applied cannot exceed the sale total")
        payable = total - credit_applied_cents

        method = payment_method
        if payable == 0 and credit_applied_cents > 0:
            method = PAYMENT_BY_CREDIT
        elif method == PAYMENT_BY_CREDIT:
            raise SaleError("PAID_BY_CREDIT requires store credit to cover the whole total")

        paid = None
        split_method = None
        if method == PAYMENT_SPLIT:
            if split_payment_method not in MONEY_ACCOUNTS:
                raise SaleError("SPLIT sales need split_payment_method CASH or BANK")
            paid = _as_cents("amount_paid_cents", amount_paid_cents)
            if not 0 < paid < payable:
                raise SaleError("SPLIT amount paid must be more than 0 and less than the amount due")
            split_method = split_payment_method

        # Stock last so a payment error never touches inventory
        for line in normalized:
            take_stock(items[line["item_id"]], line["quantity"])

        sale = Sale(
            account_id=account_id,
            customer_id=customer.id,
            document_number=allocate(account_id, DOC_SALE),
            occurred_at=when,
            subtotal_cents=subtotal,
            discount_cents=discount_cents,
            total_cents=total,
            credit_applied_cents=credit_applied_cents,
            payment_method=method,
            split_payment_method=split_method,
            amount_paid_cents=paid,
        )
        db.session.add(sale)
        db.session.flush()

        for line in normalized:
            db.session.add(SaleLine(
                sale_id=sale.id,
                item_id=line["item_id"],
                quantity=line["quantity"],
                unit_price_cents=line["unit_price_cents"],
                unit_cost_cents=items[line["item_id"]].production_price_cents,
                line_total_cents=line["line_total_cents"],
            ))
        db.session.flush()
        db.session.refresh(sale)

        record = sale_from_row(sale)
        customer.due_balance_cents += sale_due_delta(record)

        unpaid = 0
        if method == PAYMENT_DUE:
            unpaid = payable
        elif method == PAYMENT_SPLIT:
            unpaid = payable - paid
            db.session.add(LedgerTransaction(
                account_id=account_id,
                customer_id=customer.id,
                type=TYPE_RECEIVABLE,
                kind=KIND_SALE_PAYMENT,
                description=f"Partial payment for {sale.document_number}",
                amount_cents=paid,
                status=STATUS_PAID,
                payment_method=split_method,
                due_date=when,
                recorded_at=when,
                paid_at=when,
                sale_id=sale.id,
            ))

        if unpaid > 0:
            db.session.add(LedgerTransaction(
                account_id=account_id,
                customer_id=customer.id,
                type=TYPE_RECEIVABLE,
                kind=KIND_DUE,
                description=f"Due from {sale.document_number}",
                amount_cents=unpaid,
                status=STATUS_PENDING,
                due_date=due_at,
                recorded_at=when,
                sale_id=sale.id,
            ))

        db.session.commit()
        logger.info("Recorded sale %s for account %s (%s, total %s)",
                    sale.document_number, account_id, method, total)
        return sale

    try:
        return run_with_retry(_op)
    except LedgerError:
        db.session.rollback()
        raise


def get_sale(account_id: int, sale_id: int) -> Sale:
    return get_scoped(Sale, account_id, sale_id)


def list_sales(account_id: int, customer_id: int | None = None) -> list[Sale]:
    query = db.session.query(Sale).filter_by(account_id=account_id)
    if customer_id is not None:
        query = query.filter_by(customer_id=customer_id)
    return query.order_by(Sale.occurred_at.desc(), Sale.id.desc()).all()
