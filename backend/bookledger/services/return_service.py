# Overview: Service-layer operations for sales returns; restocks goods and refunds or credits the customer.

"""
Sales Returns

- Returned quantities go back into stock.
- ADJUST_DUE credits the value against the customer's due balance (no
  money moves). CASH / BANK pay the value back from that account and leave
  the due balance alone.
- Each line keeps the item's production price as unit_cost_cents so the
  monthly report can reverse COGS.
"""

from __future__ import annotations

import logging

from ..errors import InvariantViolation, LedgerError
from ..extensions import db
from ..models import Customer, SalesReturn, SalesReturnLine
from ..time_utils import parse_occurred_at
from .concurrency import run_with_retry
from .document_service import DOC_RETURN, allocate
from .inventory_service import lock_items, put_stock
from .record_store import get_scoped
from .records import REFUND_ADJUST_DUE, REFUND_METHODS

logger = logging.getLogger(__name__)


class ReturnError(InvariantViolation):
    """Raised for return operation errors."""
    pass


def add_sales_return(
    account_id: int,
    customer_id: int,
    lines: list[dict],
    refund_method: str,
    reason: str | None = None,
    occurred_at=None,
) -> SalesReturn:
    """
    Record goods coming back from a customer.

    Args:
        lines: [{"item_id": 1, "quantity": 1, "unit_price_cents": 50000}, ...]
            unit_price_cents defaults to the item's selling price
        refund_method: ADJUST_DUE, CASH or BANK
    """
    if refund_method not in REFUND_METHODS:
        raise ReturnError(f"Invalid refund method: {refund_method}. Must be one of {list(REFUND_METHODS)}")
    if not lines:
        raise ReturnError("A return needs at least one line")
    for idx, line in enumerate(lines, start=1):
        quantity = line.get("quantity")
        if not line.get("item_id"):
            raise ReturnError(f"Line {idx}: item_id is required")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ReturnError(f"Line {idx}: quantity must be a positive integer")
        price = line.get("unit_price_cents")
        if price is not None and (not isinstance(price, int) or isinstance(price, bool) or price < 0):
            raise ReturnError(f"Line {idx}: unit_price_cents must be a non-negative integer")
    when = parse_occurred_at(occurred_at)

    def _op():
        customer = get_scoped(Customer, account_id, customer_id, lock=True)
        items = lock_items(account_id, (line["item_id"] for line in lines))

        priced = []
        total = 0
        for line in lines:
            item = items[line["item_id"]]
            price = line.get("unit_price_cents")
            if price is None:
                price = item.selling_price_cents
            priced.append((item, line["quantity"], price))
            total += price * line["quantity"]

        sales_return = SalesReturn(
            account_id=account_id,
            customer_id=customer.id,
            document_number=allocate(account_id, DOC_RETURN),
            occurred_at=when,
            total_return_value_cents=total,
            refund_method=refund_method,
            reason=reason,
        )
        db.session.add(sales_return)
        db.session.flush()

        for item, quantity, price in priced:
            put_stock(item, quantity)
            db.session.add(SalesReturnLine(
                return_id=sales_return.id,
                item_id=item.id,
                quantity=quantity,
                unit_price_cents=price,
                unit_cost_cents=item.production_price_cents,
            ))

        if refund_method == REFUND_ADJUST_DUE:
            customer.due_balance_cents -= total

        db.session.commit()
        db.session.refresh(sales_return)
        logger.info("Recorded return %s for account %s (%s, value %s)",
                    sales_return.document_number, account_id, refund_method, total)
        return sales_return

    try:
        return run_with_retry(_op)
    except LedgerError:
        db.session.rollback()
        raise


def get_sales_return(account_id: int, return_id: int) -> SalesReturn:
    return get_scoped(SalesReturn, account_id, return_id)


def list_sales_returns(account_id: int) -> list[SalesReturn]:
    return (
        db.session.query(SalesReturn)
        .filter_by(account_id=account_id)
        .order_by(SalesReturn.occurred_at.desc(), SalesReturn.id.desc())
        .all()
    )
