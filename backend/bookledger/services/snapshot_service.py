# Overview: As-of-date balance snapshots and cash-flow windows built from the event stores.

"""
Snapshot Aggregator (authoritative)

build_snapshot(account_id, as_of) -> BalanceSnapshot

1. Read every store for the account (list_records, paginated). Any read
   failure raises FetchFailure and no snapshot is produced.
2. Keep the records included by the cutoff (classification.is_included).
3. Classify each record exactly once and add its Contribution to the
   cash / bank / receivable accumulators (integer cents, so the order of
   summation never changes the result).
4. Receivables come from ONE source: customer opening balances plus the
   receivable part of each classified record (sale dues, customer
   payments, ADJUST_DUE returns). Pending DUE transaction lines are a
   settlement view of the same money and are never summed here.
5. Payables: PAYABLE lines recorded on/before the cutoff and not yet paid
   at the cutoff.
6. Stock value: current stock rolled back over sales, purchases and
   returns after the cutoff, valued at production price. Best effort: a
   record edited or deleted after the fact is not recoverable.
7. equity = total assets - total liabilities.

as_of=None is a live snapshot: records are filtered on the current time, so
future-dated records stay out, and as_of is reported as None.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional

from ..errors import ClassificationAmbiguity
from ..time_utils import CutoffInput, resolve_cutoff, to_utc_z
from . import record_store
from .classification import (
    FLOW_CATEGORIES,
    FLOW_NONE,
    classify,
    is_in_window,
    is_included,
)
from .records import (
    CATEGORY_BOOK,
    CATEGORY_OFFICE_ASSET,
    PAYMENT_ASSET,
    STATUS_PENDING,
    STORE_CAPITAL,
    STORE_CUSTOMERS,
    STORE_DONATIONS,
    STORE_EXPENSES,
    STORE_ITEMS,
    STORE_PURCHASES,
    STORE_SALES,
    STORE_SALES_RETURNS,
    STORE_TRANSACTIONS,
    STORE_TRANSFERS,
    TYPE_PAYABLE,
    CapitalRecord,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerData:
    """Everything the aggregator reads for one account."""
    items: tuple = ()
    customers: tuple = ()
    sales: tuple = ()
    expenses: tuple = ()
    donations: tuple = ()
    capital: tuple = ()
    transfers: tuple = ()
    transactions: tuple = ()
    sales_returns: tuple = ()
    purchases: tuple = ()

    def money_records(self) -> Iterable:
        """Records that have a classification rule."""
        yield from self.capital
        yield from self.donations
        yield from self.sales
        yield from self.transactions
        yield from self.expenses
        yield from self.transfers
        yield from self.sales_returns


@dataclass(frozen=True)
class SkippedRecord:
    store: str
    record_id: Optional[int]
    reason: str

    def to_dict(self) -> dict:
        return {"store": self.store, "record_id": self.record_id, "reason": self.reason}


@dataclass(frozen=True)
class BalanceSnapshot:
    as_of: Optional[datetime]
    cash_cents: int
    bank_cents: int
    receivables_cents: int
    payables_cents: int
    stock_value_cents: int
    office_assets_value_cents: int
    other_assets_cents: int
    skipped_records: tuple = ()

    @property
    def total_assets_cents(self) -> int:
        return (
            self.cash_cents
            + self.bank_cents
            + self.receivables_cents
            + self.stock_value_cents
            + self.office_assets_value_cents
            + self.other_assets_cents
        )

    @property
    def total_liabilities_cents(self) -> int:
        return self.payables_cents

    @property
    def equity_cents(self) -> int:
        return self.total_assets_cents - self.total_liabilities_cents

    def to_dict(self) -> dict:
        return {
            "as_of": to_utc_z(self.as_of) if self.as_of else None,
            "cash_cents": self.cash_cents,
            "bank_cents": self.bank_cents,
            "receivables_cents": self.receivables_cents,
            "payables_cents": self.payables_cents,
            "stock_value_cents": self.stock_value_cents,
            "office_assets_value_cents": self.office_assets_value_cents,
            "other_assets_cents": self.other_assets_cents,
            "total_assets_cents": self.total_assets_cents,
            "total_liabilities_cents": self.total_liabilities_cents,
            "equity_cents": self.equity_cents,
            "skipped_records": [s.to_dict() for s in self.skipped_records],
        }


@dataclass(frozen=True)
class CashFlow:
    """Money moved by records newly included between two cutoffs."""
    start: Optional[datetime]
    end: Optional[datetime]
    cash_by_category: dict = field(default_factory=dict)
    bank_by_category: dict = field(default_factory=dict)
    receivables_delta_cents: int = 0
    skipped_records: tuple = ()

    @property
    def cash_delta_cents(self) -> int:
        return sum(self.cash_by_category.values())

    @property
    def bank_delta_cents(self) -> int:
        return sum(self.bank_by_category.values())

    def to_dict(self) -> dict:
        return {
            "start": to_utc_z(self.start) if self.start else None,
            "end": to_utc_z(self.end) if self.end else None,
            "cash_by_category": dict(self.cash_by_category),
            "bank_by_category": dict(self.bank_by_category),
            "cash_delta_cents": self.cash_delta_cents,
            "bank_delta_cents": self.bank_delta_cents,
            "receivables_delta_cents": self.receivables_delta_cents,
            "skipped_records": [s.to_dict() for s in self.skipped_records],
        }


# =============================================================================
# LOADING
# =============================================================================

def load_ledger(account_id: int, *, page_size: int | None = None) -> LedgerData:
    """
    Read every event store of an account.

    Raises:
        FetchFailure: if any store cannot be read (nothing partial is returned)
    """
    def _all(store_name: str) -> tuple:
        return tuple(record_store.list_records(store_name, account_id, page_size=page_size))

    return LedgerData(
        items=_all(STORE_ITEMS),
        customers=_all(STORE_CUSTOMERS),
        sales=_all(STORE_SALES),
        expenses=_all(STORE_EXPENSES),
        donations=_all(STORE_DONATIONS),
        capital=_all(STORE_CAPITAL),
        transfers=_all(STORE_TRANSFERS),
        transactions=_all(STORE_TRANSACTIONS),
        sales_returns=_all(STORE_SALES_RETURNS),
        purchases=_all(STORE_PURCHASES),
    )


# =============================================================================
# PURE AGGREGATION
# =============================================================================

def _skip(skipped: list, exc: ClassificationAmbiguity) -> None:
    logger.warning("Skipping ambiguous %s record %s: %s", exc.store_name, exc.record_id, exc)
    skipped.append(SkippedRecord(store=exc.store_name, record_id=exc.record_id, reason=str(exc)))


def payable_outstanding_at(record: TransactionRecord, cutoff: Optional[datetime]) -> bool:
    if record.type != TYPE_PAYABLE:
        return False
    if cutoff is None:
        return record.status == STATUS_PENDING
    if record.recorded_at > cutoff:
        return False
    if record.status == STATUS_PENDING:
        return True
    # Paid lines without a paid_at predate settlement tracking; treat as settled
    return record.paid_at is not None and record.paid_at > cutoff


def closing_stock(data: LedgerData, cutoff: Optional[datetime]) -> dict[int, int]:
    """
    Reconstruct each item's stock at the cutoff from today's stock.

    closing = stock + sold after cutoff - purchased after cutoff - returned after cutoff
    """
    stock = {item.id: item.stock for item in data.items}
    if cutoff is None:
        return stock

    for sale in data.sales:
        if sale.occurred_at > cutoff:
            for line in sale.lines:
                if line.item_id in stock:
                    stock[line.item_id] += line.quantity

    for purchase in data.purchases:
        if purchase.occurred_at > cutoff:
            for line in purchase.lines:
                if line.category == CATEGORY_BOOK and line.item_id in stock:
                    stock[line.item_id] -= line.quantity

    for ret in data.sales_returns:
        if ret.occurred_at > cutoff:
            for line in ret.lines:
                if line.item_id in stock:
                    stock[line.item_id] -= line.quantity

    return stock


def compute_snapshot(data: LedgerData, cutoff: Optional[datetime]) -> BalanceSnapshot:
    """Pure function of the fetched data and the cutoff."""
    cash = 0
    bank = 0
    other_assets = 0
    receivables = sum(customer.opening_balance_cents for customer in data.customers)
    skipped: list[SkippedRecord] = []

    for record in data.money_records():
        if not is_included(record, cutoff):
            continue
        try:
            contribution = classify(record)
        except ClassificationAmbiguity as exc:
            _skip(skipped, exc)
            continue
        cash += contribution.cash_cents
        bank += contribution.bank_cents
        receivables += contribution.receivable_cents
        if isinstance(record, CapitalRecord) and record.payment_method == PAYMENT_ASSET:
            other_assets += record.amount_cents

    payables = sum(t.amount_cents for t in data.transactions if payable_outstanding_at(t, cutoff))

    stock = closing_stock(data, cutoff)
    stock_value = sum(
        max(0, stock[item.id]) * item.production_price_cents
        for item in data.items
    )

    office_assets = sum(
        line.quantity * line.unit_cost_cents
        for purchase in data.purchases
        if cutoff is None or purchase.occurred_at <= cutoff
        for line in purchase.lines
        if line.category == CATEGORY_OFFICE_ASSET
    )

    return BalanceSnapshot(
        as_of=cutoff,
        cash_cents=cash,
        bank_cents=bank,
        receivables_cents=receivables,
        payables_cents=payables,
        stock_value_cents=stock_value,
        office_assets_value_cents=office_assets,
        other_assets_cents=other_assets,
        skipped_records=tuple(skipped),
    )


def compute_cash_flow(data: LedgerData, start: Optional[datetime], end: Optional[datetime]) -> CashFlow:
    """
    Contributions of the records that moving the cutoff from start to end
    newly includes. snapshot(start) + flow == snapshot(end) for cash and bank.
    """
    cash_by = defaultdict(int)
    bank_by = defaultdict(int)
    receivables = 0
    skipped: list[SkippedRecord] = []

    for record in data.money_records():
        if not is_in_window(record, start, end):
            continue
        try:
            contribution = classify(record)
        except ClassificationAmbiguity as exc:
            _skip(skipped, exc)
            continue
        if contribution.category == FLOW_NONE:
            continue
        cash_by[contribution.category] += contribution.cash_cents
        bank_by[contribution.category] += contribution.bank_cents
        receivables += contribution.receivable_cents

    ordered = [c for c in FLOW_CATEGORIES if c in cash_by]
    return CashFlow(
        start=start,
        end=end,
        cash_by_category={c: cash_by[c] for c in ordered},
        bank_by_category={c: bank_by[c] for c in ordered},
        receivables_delta_cents=receivables,
        skipped_records=tuple(skipped),
    )


# =============================================================================
# SERVICE ENTRY POINTS
# =============================================================================

def build_snapshot(account_id: int, as_of: CutoffInput = None) -> BalanceSnapshot:
    """
    Balance snapshot for an account as of a date (default: now).

    Raises:
        FetchFailure: if any store cannot be read
    """
    cutoff = resolve_cutoff(as_of)
    data = load_ledger(account_id)
    snapshot = compute_snapshot(data, cutoff)
    if as_of is None:
        snapshot = replace(snapshot, as_of=None)
    logger.debug(
        "Snapshot for account %s as of %s: cash=%s bank=%s skipped=%d",
        account_id, cutoff, snapshot.cash_cents, snapshot.bank_cents, len(snapshot.skipped_records),
    )
    return snapshot


def build_cash_flow(account_id: int, start: CutoffInput, end: CutoffInput) -> CashFlow:
    start_dt = resolve_cutoff(start) if start is not None else None
    end_dt = resolve_cutoff(end)
    return compute_cash_flow(load_ledger(account_id), start_dt, end_dt)


def account_balances(account_id: int) -> dict:
    """Live cash and bank balances (the transfer screen's header)."""
    snapshot = build_snapshot(account_id)
    return {"cash_cents": snapshot.cash_cents, "bank_cents": snapshot.bank_cents}
