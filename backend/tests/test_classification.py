"""
Classification rule tests.

Pure functions: no database, no app context.
"""

from datetime import datetime

import pytest

from bookledger.errors import ClassificationAmbiguity
from bookledger.services.classification import (
    FLOW_CAPITAL,
    FLOW_CUSTOMER_PAYMENTS,
    FLOW_EXPENSES,
    FLOW_SALES,
    FLOW_TRANSFERS,
    NO_EFFECT,
    classify,
    is_in_window,
    is_included,
    sale_due_delta,
)
from bookledger.services.records import (
    CapitalRecord,
    DonationRecord,
    ExpenseRecord,
    SaleRecord,
    SalesReturnRecord,
    TransactionRecord,
    TransferRecord,
    expense_from_row,
)

WHEN = datetime(2024, 12, 10, 12, 0, 0)


def _sale(**overrides):
    fields = dict(id=1, occurred_at=WHEN, customer_id=1, total_cents=1000, payment_method="CASH")
    fields.update(overrides)
    return SaleRecord(**fields)


def _txn(**overrides):
    fields = dict(
        id=1, type="RECEIVABLE", kind="CUSTOMER_PAYMENT", amount_cents=500, status="PAID",
        due_date=WHEN, recorded_at=WHEN, customer_id=1, payment_method="CASH",
    )
    fields.update(overrides)
    return TransactionRecord(**fields)


class _LegacyExpenseRow:
    """An expense row written before payment_method existed."""
    id = 9
    occurred_at = WHEN
    amount_cents = 200
    payment_method = None
    description = "Tea"
    purchase_id = None
    transaction_id = None


# =============================================================================
# SALES
# =============================================================================

def test_split_sale_cash_and_receivable():
    """SPLIT sale: paid part to the split account, rest to receivables."""
    sale = _sale(payment_method="SPLIT", amount_paid_cents=400, split_payment_method="CASH")

    contribution = classify(sale)

    assert contribution.cash_cents == 400
    assert contribution.bank_cents == 0
    assert contribution.receivable_cents == 600
    assert contribution.category == FLOW_SALES


def test_split_sale_into_bank():
    sale = _sale(payment_method="SPLIT", amount_paid_cents=250, split_payment_method="BANK")

    contribution = classify(sale)

    assert contribution.bank_cents == 250
    assert contribution.cash_cents == 0
    assert contribution.receivable_cents == 750


def test_cash_sale_nets_out_store_credit():
    sale = _sale(total_cents=1000, credit_applied_cents=300)

    contribution = classify(sale)

    assert contribution.cash_cents == 700
    # Consuming 300 of credit moves the due balance back toward zero
    assert contribution.receivable_cents == 300
    assert sale_due_delta(sale) == 300


def test_due_sale_moves_only_receivables():
    contribution = classify(_sale(payment_method="DUE"))

    assert contribution.cash_cents == 0
    assert contribution.bank_cents == 0
    assert contribution.receivable_cents == 1000


def test_paid_by_credit_sale_has_no_money_effect():
    sale = _sale(payment_method="PAID_BY_CREDIT", credit_applied_cents=1000)

    contribution = classify(sale)

    assert contribution.cash_cents == 0
    assert contribution.bank_cents == 0
    assert contribution.receivable_cents == 1000


def test_unknown_sale_method_is_ambiguous():
    with pytest.raises(ClassificationAmbiguity) as exc:
        classify(_sale(payment_method="CHEQUE"))
    assert exc.value.store_name == "sales"
    assert exc.value.record_id == 1


# =============================================================================
# TRANSFERS / EXPENSES / CAPITAL / DONATIONS
# =============================================================================

def test_cash_to_bank_transfer():
    transfer = TransferRecord(id=1, occurred_at=WHEN, from_account="CASH", to_account="BANK", amount_cents=500)

    contribution = classify(transfer)

    assert contribution.cash_cents == -500
    assert contribution.bank_cents == 500
    assert contribution.cash_cents + contribution.bank_cents == 0
    assert contribution.category == FLOW_TRANSFERS


def test_same_account_transfer_is_ambiguous():
    transfer = TransferRecord(id=2, occurred_at=WHEN, from_account="CASH", to_account="CASH", amount_cents=500)
    with pytest.raises(ClassificationAmbiguity):
        classify(transfer)


def test_legacy_expense_without_method_is_cash():
    expense = expense_from_row(_LegacyExpenseRow())

    contribution = classify(expense)

    assert expense.payment_method == "CASH"
    assert contribution.cash_cents == -200
    assert contribution.bank_cents == 0
    assert contribution.category == FLOW_EXPENSES


def test_bank_expense():
    expense = ExpenseRecord(id=1, occurred_at=WHEN, amount_cents=750, payment_method="BANK")
    assert classify(expense).bank_cents == -750


def test_asset_capital_moves_no_money():
    capital = CapitalRecord(id=1, occurred_at=WHEN, amount_cents=90000, payment_method="ASSET")

    contribution = classify(capital)

    assert contribution.is_zero
    assert contribution.category == FLOW_CAPITAL


@pytest.mark.parametrize("donor, source", [
    ("Owner", "Initial Capital"),
    ("Internal Transfer", ""),
])
def test_seeding_marker_donations_are_excluded(donor, source):
    donation = DonationRecord(id=1, occurred_at=WHEN, amount_cents=5000, payment_method="CASH",
                              donor_name=donor, source=source)
    assert classify(donation) == NO_EFFECT


def test_real_donation_counts():
    donation = DonationRecord(id=1, occurred_at=WHEN, amount_cents=2000, payment_method="BANK", donor_name="Karim")
    assert classify(donation).bank_cents == 2000


# =============================================================================
# TRANSACTIONS
# =============================================================================

def test_customer_payment_moves_money_and_receivables():
    contribution = classify(_txn())

    assert contribution.cash_cents == 500
    assert contribution.receivable_cents == -500
    assert contribution.category == FLOW_CUSTOMER_PAYMENTS


@pytest.mark.parametrize("kind, type_, status", [
    ("DUE", "RECEIVABLE", "PENDING"),
    ("DUE", "RECEIVABLE", "PAID"),
    ("SALE_PAYMENT", "RECEIVABLE", "PAID"),
    ("PAYABLE", "PAYABLE", "PENDING"),
    ("PAYABLE", "PAYABLE", "PAID"),
])
def test_non_payment_lines_have_no_effect(kind, type_, status):
    assert classify(_txn(kind=kind, type=type_, status=status)) == NO_EFFECT


def test_transaction_without_kind_is_ambiguous():
    with pytest.raises(ClassificationAmbiguity):
        classify(_txn(kind=None, description="Payment from customer Rahim"))


def test_kind_contradicting_type_is_ambiguous():
    with pytest.raises(ClassificationAmbiguity):
        classify(_txn(kind="PAYABLE", type="RECEIVABLE"))


# =============================================================================
# RETURNS
# =============================================================================

def test_adjust_due_return_only_reduces_receivables():
    ret = SalesReturnRecord(id=1, occurred_at=WHEN, customer_id=1, total_return_value_cents=350,
                            refund_method="ADJUST_DUE")

    contribution = classify(ret)

    assert contribution.cash_cents == 0
    assert contribution.receivable_cents == -350


def test_cash_refund_reduces_cash_only():
    ret = SalesReturnRecord(id=1, occurred_at=WHEN, customer_id=1, total_return_value_cents=350,
                            refund_method="CASH")

    contribution = classify(ret)

    assert contribution.cash_cents == -350
    assert contribution.receivable_cents == 0


# =============================================================================
# CUTOFF INCLUSION
# =============================================================================

def test_cutoff_is_inclusive():
    expense = ExpenseRecord(id=1, occurred_at=WHEN, amount_cents=1)
    assert is_included(expense, WHEN)
    assert not is_included(expense, datetime(2024, 12, 10, 11, 59, 59))


def test_initial_capital_is_always_included():
    capital = CapitalRecord(id=1, occurred_at=datetime(2025, 1, 1), amount_cents=100,
                            payment_method="CASH", source="Initial Capital")
    assert is_included(capital, datetime(2020, 1, 1))


def test_transactions_filter_on_due_date():
    txn = _txn(due_date=datetime(2025, 1, 5), recorded_at=datetime(2024, 12, 1))
    assert not is_included(txn, datetime(2024, 12, 31, 23, 59, 59))
    assert is_included(txn, datetime(2025, 1, 5, 23, 59, 59))


def test_window_is_start_exclusive_end_inclusive():
    start = datetime(2024, 11, 30, 23, 59, 59)
    end = datetime(2024, 12, 31, 23, 59, 59)
    at_start = ExpenseRecord(id=1, occurred_at=start, amount_cents=1)
    at_end = ExpenseRecord(id=2, occurred_at=end, amount_cents=1)

    assert not is_in_window(at_start, start, end)
    assert is_in_window(at_end, start, end)


def test_initial_capital_is_never_new_in_a_window():
    capital = CapitalRecord(id=1, occurred_at=WHEN, amount_cents=100, payment_method="CASH",
                            source="Initial Capital")
    assert not is_in_window(capital, datetime(2024, 1, 1), datetime(2024, 12, 31))
    assert is_in_window(capital, None, datetime(2024, 12, 31))
