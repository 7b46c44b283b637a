# Overview: Immutable ledger records read from the event stores; one type per store.

"""
Ledger record types (tagged union)

WHY: The balance engine must not reach into ORM rows or re-derive defaults
at each call site. Every store row is converted once, here, into a frozen
record with explicit required/optional fields. All amounts are integer
cents.

DEFAULT-VALUE POLICY (the only place these defaults are applied):
- Expense.payment_method missing -> CASH (legacy records)
- Sale.credit_applied_cents missing -> 0
- Sale.amount_paid_cents missing -> 0 (only meaningful for SPLIT)
- Sale.split_payment_method missing on a SPLIT sale -> CASH
- Donation.source missing -> "" (not a seeding marker)
- Transaction.kind missing -> None (left unresolved; never inferred here)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


# =============================================================================
# STORE NAMES
# =============================================================================

STORE_ITEMS = "items"
STORE_CUSTOMERS = "customers"
STORE_SALES = "sales"
STORE_EXPENSES = "expenses"
STORE_DONATIONS = "donations"
STORE_CAPITAL = "capital"
STORE_TRANSFERS = "transfers"
STORE_TRANSACTIONS = "transactions"
STORE_SALES_RETURNS = "sales_returns"
STORE_PURCHASES = "purchases"


# =============================================================================
# MONEY ACCOUNTS & PAYMENT METHODS (CONSTANTS)
# =============================================================================

CASH = "CASH"
BANK = "BANK"
MONEY_ACCOUNTS = (CASH, BANK)

PAYMENT_CASH = CASH
PAYMENT_BANK = BANK
PAYMENT_DUE = "DUE"
PAYMENT_SPLIT = "SPLIT"
PAYMENT_BY_CREDIT = "PAID_BY_CREDIT"
PAYMENT_ASSET = "ASSET"

SALE_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_BANK, PAYMENT_DUE, PAYMENT_SPLIT, PAYMENT_BY_CREDIT)
PURCHASE_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_BANK, PAYMENT_DUE, PAYMENT_SPLIT)
CAPITAL_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_BANK, PAYMENT_ASSET)

REFUND_ADJUST_DUE = "ADJUST_DUE"
REFUND_CASH = CASH
REFUND_BANK = BANK
REFUND_METHODS = (REFUND_ADJUST_DUE, REFUND_CASH, REFUND_BANK)


# =============================================================================
# TRANSACTION TYPES, KINDS, STATUS (CONSTANTS)
# =============================================================================

TYPE_RECEIVABLE = "RECEIVABLE"
TYPE_PAYABLE = "PAYABLE"

KIND_DUE = "DUE"
KIND_SALE_PAYMENT = "SALE_PAYMENT"
KIND_CUSTOMER_PAYMENT = "CUSTOMER_PAYMENT"
KIND_PAYABLE = "PAYABLE"
TRANSACTION_KINDS = (KIND_DUE, KIND_SALE_PAYMENT, KIND_CUSTOMER_PAYMENT, KIND_PAYABLE)

STATUS_PENDING = "PENDING"
STATUS_PAID = "PAID"


# =============================================================================
# SEEDING MARKERS
# =============================================================================

INITIAL_CAPITAL_SOURCE = "Initial Capital"
INTERNAL_TRANSFER_DONOR = "Internal Transfer"

CATEGORY_BOOK = "BOOK"
CATEGORY_OFFICE_ASSET = "OFFICE_ASSET"
PURCHASE_LINE_CATEGORIES = (CATEGORY_BOOK, CATEGORY_OFFICE_ASSET)


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class LineRecord:
    item_id: Optional[int]
    quantity: int
    unit_price_cents: int = 0
    unit_cost_cents: int = 0
    category: str = CATEGORY_BOOK


@dataclass(frozen=True)
class ItemRecord:
    id: int
    title: str
    production_price_cents: int
    selling_price_cents: int
    stock: int

    store = STORE_ITEMS


@dataclass(frozen=True)
class CustomerRecord:
    id: int
    name: str
    opening_balance_cents: int
    due_balance_cents: int

    store = STORE_CUSTOMERS


@dataclass(frozen=True)
class SaleRecord:
    id: int
    occurred_at: datetime
    customer_id: int
    total_cents: int
    payment_method: str
    subtotal_cents: int = 0
    discount_cents: int = 0
    credit_applied_cents: int = 0
    amount_paid_cents: int = 0
    split_payment_method: Optional[str] = None
    document_number: str = ""
    lines: tuple[LineRecord, ...] = field(default_factory=tuple)

    store = STORE_SALES

    @property
    def payable_cents(self) -> int:
        """What the customer still had to settle after store credit."""
        return self.total_cents - self.credit_applied_cents


@dataclass(frozen=True)
class ExpenseRecord:
    id: int
    occurred_at: datetime
    amount_cents: int
    payment_method: str = CASH
    description: str = ""
    purchase_id: Optional[int] = None
    transaction_id: Optional[int] = None

    store = STORE_EXPENSES


@dataclass(frozen=True)
class DonationRecord:
    id: int
    occurred_at: datetime
    amount_cents: int
    payment_method: str
    donor_name: str = ""
    source: str = ""

    store = STORE_DONATIONS

    @property
    def is_seeding_marker(self) -> bool:
        return self.source == INITIAL_CAPITAL_SOURCE or self.donor_name == INTERNAL_TRANSFER_DONOR


@dataclass(frozen=True)
class CapitalRecord:
    id: int
    occurred_at: datetime
    amount_cents: int
    payment_method: str
    source: str = ""

    store = STORE_CAPITAL

    @property
    def is_initial(self) -> bool:
        return self.source == INITIAL_CAPITAL_SOURCE


@dataclass(frozen=True)
class TransferRecord:
    id: int
    occurred_at: datetime
    from_account: str
    to_account: str
    amount_cents: int

    store = STORE_TRANSFERS


@dataclass(frozen=True)
class TransactionRecord:
    id: int
    type: str
    kind: Optional[str]
    amount_cents: int
    status: str
    due_date: datetime
    recorded_at: datetime
    customer_id: Optional[int] = None
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None
    description: str = ""
    sale_id: Optional[int] = None
    purchase_id: Optional[int] = None

    store = STORE_TRANSACTIONS


@dataclass(frozen=True)
class SalesReturnRecord:
    id: int
    occurred_at: datetime
    customer_id: int
    total_return_value_cents: int
    refund_method: str
    lines: tuple[LineRecord, ...] = field(default_factory=tuple)

    store = STORE_SALES_RETURNS


@dataclass(frozen=True)
class PurchaseRecord:
    id: int
    occurred_at: datetime
    supplier: str
    total_cents: int
    lines: tuple[LineRecord, ...] = field(default_factory=tuple)

    store = STORE_PURCHASES


# =============================================================================
# ROW -> RECORD CONVERSION
# =============================================================================

def item_from_row(row) -> ItemRecord:
    return ItemRecord(
        id=row.id,
        title=row.title,
        production_price_cents=row.production_price_cents or 0,
        selling_price_cents=row.selling_price_cents or 0,
        stock=row.stock or 0,
    )


def customer_from_row(row) -> CustomerRecord:
    return CustomerRecord(
        id=row.id,
        name=row.name,
        opening_balance_cents=row.opening_balance_cents or 0,
        due_balance_cents=row.due_balance_cents or 0,
    )


def sale_from_row(row) -> SaleRecord:
    split_method = row.split_payment_method
    if row.payment_method == PAYMENT_SPLIT and not split_method:
        split_method = CASH
    return SaleRecord(
        id=row.id,
        occurred_at=row.occurred_at,
        customer_id=row.customer_id,
        total_cents=row.total_cents,
        payment_method=row.payment_method,
        subtotal_cents=row.subtotal_cents or 0,
        discount_cents=row.discount_cents or 0,
        credit_applied_cents=row.credit_applied_cents or 0,
        amount_paid_cents=row.amount_paid_cents or 0,
        split_payment_method=split_method,
        document_number=row.document_number or "",
        lines=tuple(
            LineRecord(
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                unit_cost_cents=line.unit_cost_cents or 0,
            )
            for line in row.lines
        ),
    )


def expense_from_row(row) -> ExpenseRecord:
    return ExpenseRecord(
        id=row.id,
        occurred_at=row.occurred_at,
        amount_cents=row.amount_cents,
        payment_method=row.payment_method or CASH,
        description=row.description or "",
        purchase_id=row.purchase_id,
        transaction_id=row.transaction_id,
    )


def donation_from_row(row) -> DonationRecord:
    return DonationRecord(
        id=row.id,
        occurred_at=row.occurred_at,
        amount_cents=row.amount_cents,
        payment_method=row.payment_method,
        donor_name=row.donor_name or "",
        source=row.source or "",
    )


def capital_from_row(row) -> CapitalRecord:
    return CapitalRecord(
        id=row.id,
        occurred_at=row.occurred_at,
        amount_cents=row.amount_cents,
        payment_method=row.payment_method,
        source=row.source or "",
    )


def transfer_from_row(row) -> TransferRecord:
    return TransferRecord(
        id=row.id,
        occurred_at=row.occurred_at,
        from_account=row.from_account,
        to_account=row.to_account,
        amount_cents=row.amount_cents,
    )


def transaction_from_row(row) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        type=row.type,
        kind=row.kind or None,
        amount_cents=row.amount_cents,
        status=row.status,
        due_date=row.due_date,
        recorded_at=row.recorded_at,
        customer_id=row.customer_id,
        payment_method=row.payment_method,
        paid_at=row.paid_at,
        description=row.description or "",
        sale_id=row.sale_id,
        purchase_id=row.purchase_id,
    )


def sales_return_from_row(row) -> SalesReturnRecord:
    return SalesReturnRecord(
        id=row.id,
        occurred_at=row.occurred_at,
        customer_id=row.customer_id,
        total_return_value_cents=row.total_return_value_cents,
        refund_method=row.refund_method,
        lines=tuple(
            LineRecord(
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                unit_cost_cents=line.unit_cost_cents or 0,
            )
            for line in row.lines
        ),
    )


def purchase_from_row(row) -> PurchaseRecord:
    return PurchaseRecord(
        id=row.id,
        occurred_at=row.occurred_at,
        supplier=row.supplier,
        total_cents=row.total_cents,
        lines=tuple(
            LineRecord(
                item_id=line.item_id,
                quantity=line.quantity,
                unit_cost_cents=line.unit_cost_cents,
                category=line.category or CATEGORY_BOOK,
            )
            for line in row.lines
        ),
    )
