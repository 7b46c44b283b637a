# Overview: Pure classification rules mapping one ledger record to its signed money effect.

"""
Classification Rules (authoritative)

Each rule maps ONE record to ONE Contribution:
    Contribution(cash_cents, bank_cents, receivable_cents, category)

- No state, no I/O. Same record in, same contribution out.
- Every record type has exactly one rule; the dispatcher never tries a
  second rule, so no record can be counted twice.
- Records with no money effect still return a Contribution (all zeros)
  so callers never need a special case.
- A record that cannot be placed under exactly one rule raises
  ClassificationAmbiguity. Callers skip and log it; they never guess.

Inclusion (as-of cutoff, inclusive):
- Capital: always when source is "Initial Capital", else occurred_at <= cutoff
- Transaction: due_date <= cutoff
- Everything else: occurred_at <= cutoff
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..errors import ClassificationAmbiguity
from .records import (
    BANK,
    CASH,
    KIND_CUSTOMER_PAYMENT,
    KIND_DUE,
    KIND_PAYABLE,
    KIND_SALE_PAYMENT,
    PAYMENT_ASSET,
    PAYMENT_BY_CREDIT,
    PAYMENT_DUE,
    PAYMENT_SPLIT,
    REFUND_ADJUST_DUE,
    STATUS_PAID,
    TYPE_PAYABLE,
    TYPE_RECEIVABLE,
    CapitalRecord,
    DonationRecord,
    ExpenseRecord,
    SaleRecord,
    SalesReturnRecord,
    TransactionRecord,
    TransferRecord,
)


# =============================================================================
# FLOW CATEGORIES
# =============================================================================

FLOW_CAPITAL = "capital"
FLOW_DONATIONS = "donations"
FLOW_SALES = "sales"
FLOW_CUSTOMER_PAYMENTS = "customer_payments"
FLOW_EXPENSES = "expenses"
FLOW_TRANSFERS = "transfers"
FLOW_SALES_RETURNS = "sales_returns"
FLOW_NONE = "none"

FLOW_CATEGORIES = (
    FLOW_CAPITAL,
    FLOW_DONATIONS,
    FLOW_SALES,
    FLOW_CUSTOMER_PAYMENTS,
    FLOW_EXPENSES,
    FLOW_TRANSFERS,
    FLOW_SALES_RETURNS,
)

_KIND_TYPES = {
    KIND_DUE: TYPE_RECEIVABLE,
    KIND_SALE_PAYMENT: TYPE_RECEIVABLE,
    KIND_CUSTOMER_PAYMENT: TYPE_RECEIVABLE,
    KIND_PAYABLE: TYPE_PAYABLE,
}


@dataclass(frozen=True)
class Contribution:
    cash_cents: int = 0
    bank_cents: int = 0
    receivable_cents: int = 0
    category: str = FLOW_NONE

    @property
    def is_zero(self) -> bool:
        return not (self.cash_cents or self.bank_cents or self.receivable_cents)


NO_EFFECT = Contribution()


def _money(store_name: str, record_id: int, method: Optional[str], amount_cents: int,
           category: str, receivable_cents: int = 0) -> Contribution:
    if method == CASH:
        return Contribution(cash_cents=amount_cents, receivable_cents=receivable_cents, category=category)
    if method == BANK:
        return Contribution(bank_cents=amount_cents, receivable_cents=receivable_cents, category=category)
    raise ClassificationAmbiguity(
        store_name,
        record_id,
        f"{store_name} record {record_id} has no cash/bank account for method {method!r}",
    )


# =============================================================================
# RULES
# =============================================================================

def classify_capital(record: CapitalRecord) -> Contribution:
    if record.payment_method == PAYMENT_ASSET:
        return Contribution(category=FLOW_CAPITAL)
    return _money(record.store, record.id, record.payment_method, record.amount_cents, FLOW_CAPITAL)


def classify_donation(record: DonationRecord) -> Contribution:
    # Seeding markers are capital, not operating donations
    if record.is_seeding_marker:
        return NO_EFFECT
    return _money(record.store, record.id, record.payment_method, record.amount_cents, FLOW_DONATIONS)


def sale_due_delta(record: SaleRecord) -> int:
    """
    Change in the customer's due balance caused by a sale.

    Consuming store credit raises the balance back toward zero; the unpaid
    part of the payable amount raises it further.
    """
    if record.payment_method == PAYMENT_DUE:
        unpaid = record.payable_cents
    elif record.payment_method == PAYMENT_SPLIT:
        unpaid = record.payable_cents - record.amount_paid_cents
    else:
        unpaid = 0
    return record.credit_applied_cents + unpaid


def classify_sale(record: SaleRecord) -> Contribution:
    due_delta = sale_due_delta(record)
    method = record.payment_method

    if method in (CASH, BANK):
        return _money(record.store, record.id, method, record.payable_cents, FLOW_SALES, due_delta)
    if method == PAYMENT_SPLIT:
        return _money(record.store, record.id, record.split_payment_method, record.amount_paid_cents,
                      FLOW_SALES, due_delta)
    if method in (PAYMENT_DUE, PAYMENT_BY_CREDIT):
        # Cash arrives later through a CUSTOMER_PAYMENT transaction
        return Contribution(receivable_cents=due_delta, category=FLOW_SALES)

    raise ClassificationAmbiguity(record.store, record.id, f"Sale {record.id} has unknown payment method {method!r}")


def resolve_transaction_kind(record: TransactionRecord) -> str:
    """Return the explicit kind, or raise if it is missing or contradicts the type."""
    kind = record.kind
    if kind is None:
        raise ClassificationAmbiguity(
            record.store,
            record.id,
            f"Transaction {record.id} has no kind; cannot tell a due line from a payment",
        )
    expected_type = _KIND_TYPES.get(kind)
    if expected_type is None:
        raise ClassificationAmbiguity(record.store, record.id, f"Transaction {record.id} has unknown kind {kind!r}")
    if expected_type != record.type:
        raise ClassificationAmbiguity(
            record.store,
            record.id,
            f"Transaction {record.id} kind {kind} does not match type {record.type}",
        )
    return kind


def classify_transaction(record: TransactionRecord) -> Contribution:
    kind = resolve_transaction_kind(record)
    if kind != KIND_CUSTOMER_PAYMENT or record.status != STATUS_PAID:
        # DUE lines mirror a sale, SALE_PAYMENT lines mirror a split sale's
        # paid part, PAYABLE lines are liabilities: none of them move money.
        return NO_EFFECT
    return _money(record.store, record.id, record.payment_method, record.amount_cents,
                  FLOW_CUSTOMER_PAYMENTS, -record.amount_cents)


def classify_expense(record: ExpenseRecord) -> Contribution:
    if record.payment_method == BANK:
        return Contribution(bank_cents=-record.amount_cents, category=FLOW_EXPENSES)
    return Contribution(cash_cents=-record.amount_cents, category=FLOW_EXPENSES)


def classify_transfer(record: TransferRecord) -> Contribution:
    if record.from_account == record.to_account or {record.from_account, record.to_account} != {CASH, BANK}:
        raise ClassificationAmbiguity(
            record.store,
            record.id,
            f"Transfer {record.id} must move money between CASH and BANK",
        )
    amount = record.amount_cents
    if record.from_account == CASH:
        return Contribution(cash_cents=-amount, bank_cents=amount, category=FLOW_TRANSFERS)
    return Contribution(cash_cents=amount, bank_cents=-amount, category=FLOW_TRANSFERS)


def classify_sales_return(record: SalesReturnRecord) -> Contribution:
    if record.refund_method == REFUND_ADJUST_DUE:
        return Contribution(receivable_cents=-record.total_return_value_cents, category=FLOW_SALES_RETURNS)
    return _money(record.store, record.id, record.refund_method, -record.total_return_value_cents,
                  FLOW_SALES_RETURNS)


_RULES: dict[type, Callable] = {
    CapitalRecord: classify_capital,
    DonationRecord: classify_donation,
    SaleRecord: classify_sale,
    TransactionRecord: classify_transaction,
    ExpenseRecord: classify_expense,
    TransferRecord: classify_transfer,
    SalesReturnRecord: classify_sales_return,
}


def classify(record) -> Contribution:
    """Dispatch a record to the single rule for its type."""
    rule = _RULES.get(type(record))
    if rule is None:
        raise TypeError(f"No classification rule for {type(record).__name__}")
    return rule(record)


# =============================================================================
# CUTOFF INCLUSION
# =============================================================================

def effective_date(record) -> datetime:
    """The date a record is filtered on."""
    if isinstance(record, TransactionRecord):
        return record.due_date
    return record.occurred_at


def is_included(record, cutoff: Optional[datetime]) -> bool:
    if isinstance(record, CapitalRecord) and record.is_initial:
        return True
    if cutoff is None:
        return True
    when = effective_date(record)
    if when is None:
        return False
    return when <= cutoff


def is_in_window(record, start: Optional[datetime], end: Optional[datetime]) -> bool:
    """
    True when moving the cutoff from start to end newly includes the record.

    start is exclusive, end inclusive. Initial capital is never "new": it is
    part of every snapshot.
    """
    if isinstance(record, CapitalRecord) and record.is_initial:
        return start is None and is_included(record, end)
    if not is_included(record, end):
        return False
    if start is None:
        return True
    return effective_date(record) > start
