"""
Snapshot aggregator tests.

Pure aggregation over hand-built LedgerData plus end-to-end snapshots
through the database.
"""

from datetime import datetime, timedelta

import pytest

from bookledger.errors import FetchFailure
from bookledger.extensions import db
from bookledger.models import Capital, Expense, LedgerTransaction, Transfer
from bookledger.services import snapshot_service
from bookledger.services.records import (
    CapitalRecord,
    CustomerRecord,
    DonationRecord,
    ExpenseRecord,
    ItemRecord,
    LineRecord,
    PurchaseRecord,
    SaleRecord,
    SalesReturnRecord,
    TransactionRecord,
    TransferRecord,
)
from bookledger.services.snapshot_service import LedgerData, compute_cash_flow, compute_snapshot
from bookledger.time_utils import month_bounds, resolve_cutoff, utcnow

DEC_END = resolve_cutoff("2024-12-31")


def _scenario_a() -> LedgerData:
    """December books of a shop that opened with 34,891 in cash."""
    return LedgerData(
        customers=(CustomerRecord(id=1, name="Rahim", opening_balance_cents=47770, due_balance_cents=0),),
        capital=(
            CapitalRecord(id=1, occurred_at=datetime(2024, 11, 1), amount_cents=34891,
                          payment_method="CASH", source="Initial Capital"),
        ),
        sales=(
            SaleRecord(id=1, occurred_at=datetime(2024, 12, 5, 10), customer_id=1,
                       total_cents=160, payment_method="CASH"),
        ),
        transactions=(
            TransactionRecord(id=1, type="RECEIVABLE", kind="CUSTOMER_PAYMENT", amount_cents=47770,
                              status="PAID", due_date=datetime(2024, 12, 12), recorded_at=datetime(2024, 12, 12),
                              customer_id=1, payment_method="CASH", paid_at=datetime(2024, 12, 12)),
        ),
        donations=(
            DonationRecord(id=1, occurred_at=datetime(2024, 12, 20), amount_cents=2000,
                           payment_method="CASH", donor_name="Karim"),
        ),
        expenses=(
            ExpenseRecord(id=1, occurred_at=datetime(2024, 12, 28), amount_cents=19630, payment_method="CASH"),
            # January: outside the December cutoff
            ExpenseRecord(id=2, occurred_at=datetime(2025, 1, 2), amount_cents=999, payment_method="CASH"),
        ),
    )


def _year_of_activity() -> LedgerData:
    """Mixed records spread over 2024 for partition tests."""
    sales, expenses, transfers, transactions, returns = [], [], [], [], []
    for month in range(1, 13):
        day = datetime(2024, month, 15, 9)
        sales.append(SaleRecord(id=month * 10 + 1, occurred_at=day, customer_id=1, total_cents=1000 + month,
                                payment_method="CASH"))
        sales.append(SaleRecord(id=month * 10 + 2, occurred_at=day, customer_id=1, total_cents=800,
                                payment_method="SPLIT", amount_paid_cents=300, split_payment_method="BANK"))
        expenses.append(ExpenseRecord(id=month, occurred_at=datetime(2024, month, 28), amount_cents=150 * month,
                                      payment_method="BANK" if month % 2 else "CASH"))
        transfers.append(TransferRecord(id=month, occurred_at=datetime(2024, month, 1, 8), from_account="CASH",
                                        to_account="BANK", amount_cents=100))
        transactions.append(TransactionRecord(id=month, type="RECEIVABLE", kind="CUSTOMER_PAYMENT",
                                              amount_cents=250, status="PAID", due_date=datetime(2024, month, 20),
                                              recorded_at=datetime(2024, month, 20), customer_id=1,
                                              payment_method="CASH"))
        returns.append(SalesReturnRecord(id=month, occurred_at=datetime(2024, month, 21), customer_id=1,
                                         total_return_value_cents=50, refund_method="CASH"))
    return LedgerData(
        customers=(CustomerRecord(id=1, name="Rahim", opening_balance_cents=5000, due_balance_cents=0),),
        capital=(CapitalRecord(id=1, occurred_at=datetime(2024, 1, 1), amount_cents=100000,
                               payment_method="CASH", source="Initial Capital"),),
        sales=tuple(sales),
        expenses=tuple(expenses),
        transfers=tuple(transfers),
        transactions=tuple(transactions),
        sales_returns=tuple(returns),
    )


# =============================================================================
# PURE AGGREGATION
# =============================================================================

def test_december_closing_cash():
    snapshot = compute_snapshot(_scenario_a(), DEC_END)
    assert snapshot.cash_cents == 34891 + 160 + 47770 + 2000 - 19630 == 65191


def test_customer_payment_clears_opening_receivable():
    snapshot = compute_snapshot(_scenario_a(), DEC_END)
    assert snapshot.receivables_cents == 0


def test_month_partitions_sum_to_whole_year():
    data = _year_of_activity()
    year_start = None
    year_end = resolve_cutoff("2024-12-31")

    whole = compute_cash_flow(data, year_start, year_end)

    cash_by_month = 0
    bank_by_month = 0
    for month in range(1, 13):
        start, end = month_bounds(2024, month)
        flow = compute_cash_flow(data, None if month == 1 else start, end)
        cash_by_month += flow.cash_delta_cents
        bank_by_month += flow.bank_delta_cents

    assert cash_by_month == whole.cash_delta_cents
    assert bank_by_month == whole.bank_delta_cents
    assert whole.cash_delta_cents == compute_snapshot(data, year_end).cash_cents


@pytest.mark.parametrize("first, second", [
    ("2024-03-31", "2024-07-15"),
    ("2024-01-01", "2024-12-31"),
    ("2024-06-15", "2024-06-16"),
])
def test_moving_the_cutoff_adds_exactly_the_window(first, second):
    data = _year_of_activity()
    c1, c2 = resolve_cutoff(first), resolve_cutoff(second)

    before = compute_snapshot(data, c1)
    after = compute_snapshot(data, c2)
    flow = compute_cash_flow(data, c1, c2)

    assert before.cash_cents + flow.cash_delta_cents == after.cash_cents
    assert before.bank_cents + flow.bank_delta_cents == after.bank_cents
    assert before.receivables_cents + flow.receivables_delta_cents == after.receivables_cents


def test_snapshot_is_deterministic():
    data = _year_of_activity()
    cutoff = resolve_cutoff("2024-09-30")
    assert compute_snapshot(data, cutoff) == compute_snapshot(data, cutoff)


def test_ambiguous_records_are_skipped_and_reported():
    data = LedgerData(
        transactions=(
            TransactionRecord(id=7, type="RECEIVABLE", kind=None, amount_cents=500, status="PAID",
                              due_date=datetime(2024, 5, 1), recorded_at=datetime(2024, 5, 1),
                              customer_id=1, payment_method="CASH", description="Payment from customer"),
        ),
        expenses=(ExpenseRecord(id=1, occurred_at=datetime(2024, 5, 2), amount_cents=100),),
    )

    snapshot = compute_snapshot(data, None)

    assert snapshot.cash_cents == -100
    assert len(snapshot.skipped_records) == 1
    assert snapshot.skipped_records[0].store == "transactions"
    assert snapshot.skipped_records[0].record_id == 7


def test_payables_as_of():
    payable = TransactionRecord(id=1, type="PAYABLE", kind="PAYABLE", amount_cents=900, status="PAID",
                                due_date=datetime(2024, 4, 30), recorded_at=datetime(2024, 4, 1),
                                paid_at=datetime(2024, 5, 10), payment_method="BANK")
    data = LedgerData(transactions=(payable,))

    assert compute_snapshot(data, resolve_cutoff("2024-03-31")).payables_cents == 0
    assert compute_snapshot(data, resolve_cutoff("2024-04-30")).payables_cents == 900
    assert compute_snapshot(data, resolve_cutoff("2024-05-10")).payables_cents == 0
    assert compute_snapshot(data, None).payables_cents == 0


def test_stock_value_rolls_back_later_movements():
    data = LedgerData(
        items=(ItemRecord(id=1, title="Gitanjali", production_price_cents=200, selling_price_cents=350, stock=7),),
        sales=(SaleRecord(id=1, occurred_at=datetime(2024, 6, 10), customer_id=1, total_cents=1050,
                          payment_method="CASH", lines=(LineRecord(item_id=1, quantity=3, unit_price_cents=350),)),),
        purchases=(PurchaseRecord(id=1, occurred_at=datetime(2024, 6, 5), supplier="Prothoma", total_cents=1000,
                                  lines=(LineRecord(item_id=1, quantity=5, unit_cost_cents=200),)),),
    )

    # Before the purchase: 7 + 3 sold - 5 bought = 5 copies
    assert compute_snapshot(data, resolve_cutoff("2024-06-01")).stock_value_cents == 5 * 200
    # Between purchase and sale: 7 + 3 = 10 copies
    assert compute_snapshot(data, resolve_cutoff("2024-06-07")).stock_value_cents == 10 * 200
    assert compute_snapshot(data, None).stock_value_cents == 7 * 200


def test_office_assets_and_asset_capital():
    data = LedgerData(
        capital=(CapitalRecord(id=1, occurred_at=datetime(2024, 2, 1), amount_cents=40000, payment_method="ASSET"),),
        purchases=(PurchaseRecord(id=1, occurred_at=datetime(2024, 3, 1), supplier="Furniture Co",
                                  total_cents=80000, lines=(LineRecord(item_id=None, quantity=2,
                                                                       unit_cost_cents=40000,
                                                                       category="OFFICE_ASSET"),)),),
    )

    early = compute_snapshot(data, resolve_cutoff("2024-02-15"))
    late = compute_snapshot(data, resolve_cutoff("2024-03-15"))

    assert early.other_assets_cents == 40000
    assert early.office_assets_value_cents == 0
    assert late.office_assets_value_cents == 80000
    assert late.equity_cents == late.total_assets_cents - late.total_liabilities_cents


# =============================================================================
# THROUGH THE DATABASE
# =============================================================================

def test_build_snapshot_reads_only_own_account(db_session, account, other_account):
    db_session.add(Capital(account_id=account.id, occurred_at=datetime(2024, 1, 1), source="Initial Capital",
                           amount_cents=5000, payment_method="CASH"))
    db_session.add(Capital(account_id=other_account.id, occurred_at=datetime(2024, 1, 1),
                           source="Initial Capital", amount_cents=7000, payment_method="BANK"))
    db_session.add(Expense(account_id=account.id, occurred_at=datetime(2024, 2, 1), description="Rent",
                           amount_cents=1500, payment_method=None))
    db_session.commit()

    snapshot = snapshot_service.build_snapshot(account.id, "2024-12-31")

    assert snapshot.cash_cents == 3500
    assert snapshot.bank_cents == 0


def test_build_snapshot_pages_through_stores(app, db_session, account):
    for i in range(7):
        db_session.add(Expense(account_id=account.id, occurred_at=datetime(2024, 1, i + 1),
                               description=f"Expense {i}", amount_cents=10, payment_method="CASH"))
    db_session.commit()

    data = snapshot_service.load_ledger(account.id, page_size=3)

    assert len(data.expenses) == 7
    assert [e.id for e in data.expenses] == sorted(e.id for e in data.expenses)


def test_build_snapshot_is_idempotent(db_session, account):
    db_session.add(Capital(account_id=account.id, occurred_at=datetime(2024, 1, 1), source="Initial Capital",
                           amount_cents=5000, payment_method="CASH"))
    db_session.commit()

    assert snapshot_service.build_snapshot(account.id, "2024-06-30") == \
        snapshot_service.build_snapshot(account.id, "2024-06-30")
    assert snapshot_service.build_snapshot(account.id) == snapshot_service.build_snapshot(account.id)


def test_live_snapshot_leaves_out_future_records(db_session, account):
    db_session.add(Capital(account_id=account.id, occurred_at=datetime(2024, 1, 1), source="Initial Capital",
                           amount_cents=100000, payment_method="CASH"))
    db_session.add(Expense(account_id=account.id, occurred_at=utcnow() + timedelta(days=365),
                           description="Next year's rent", amount_cents=40000, payment_method="CASH"))
    db_session.commit()

    live = snapshot_service.build_snapshot(account.id)

    assert live.as_of is None
    assert live.cash_cents == 100000
    assert live.cash_cents == snapshot_service.build_snapshot(account.id, utcnow()).cash_cents
    assert snapshot_service.account_balances(account.id) == {"cash_cents": 100000, "bank_cents": 0}


def test_legacy_row_is_skipped_not_guessed(db_session, account):
    db_session.add(LedgerTransaction(account_id=account.id, type="RECEIVABLE", kind=None,
                                     description="Payment from customer Rahim", amount_cents=700,
                                     status="PAID", payment_method="CASH", due_date=datetime(2024, 3, 1),
                                     recorded_at=datetime(2024, 3, 1)))
    db_session.commit()

    snapshot = snapshot_service.build_snapshot(account.id)

    assert snapshot.cash_cents == 0
    assert [s.record_id for s in snapshot.skipped_records] == [
        db_session.query(LedgerTransaction).one().id
    ]


def test_unreadable_store_aborts_snapshot(db_session, account):
    db_session.add(Capital(account_id=account.id, occurred_at=datetime(2024, 1, 1), source="Initial Capital",
                           amount_cents=5000, payment_method="CASH"))
    db_session.commit()

    Transfer.__table__.drop(db.engine)
    try:
        with pytest.raises(FetchFailure) as exc:
            snapshot_service.build_snapshot(account.id)
        assert exc.value.store_name == "transfers"
    finally:
        Transfer.__table__.create(db.engine)
