"""
Kind backfill tests for legacy transaction rows.
"""

from datetime import datetime

import pytest

from bookledger.errors import InvariantViolation
from bookledger.models import LedgerTransaction
from bookledger.services import maintenance_service, snapshot_service
from bookledger.services.record_store import update_fields
from bookledger.services.records import STORE_TRANSACTIONS

WHEN = datetime(2024, 2, 1)


def _legacy(account, type_, description, status="PAID", amount=1000, customer=None):
    return LedgerTransaction(
        account_id=account.id,
        customer_id=customer.id if customer else None,
        type=type_,
        kind=None,
        description=description,
        amount_cents=amount,
        status=status,
        payment_method="CASH" if status == "PAID" else None,
        due_date=WHEN,
        recorded_at=WHEN,
        paid_at=WHEN if status == "PAID" else None,
    )


@pytest.mark.parametrize("type_, description, expected", [
    ("RECEIVABLE", "Payment from customer Rahim", "CUSTOMER_PAYMENT"),
    ("RECEIVABLE", "Partial payment for SALE-0003", "SALE_PAYMENT"),
    ("RECEIVABLE", "Due from SALE-0003", "DUE"),
    ("PAYABLE", "Paper stock", "PAYABLE"),
    ("RECEIVABLE", "Misc adjustment", None),
    ("OTHER", "Payment from customer Rahim", None),
])
def test_infer_kind(type_, description, expected):
    assert maintenance_service.infer_kind(type_, description) == expected


def test_backfill_assigns_kinds(db_session, account, customer):
    rows = [
        _legacy(account, "RECEIVABLE", "Payment from customer Rahim", customer=customer),
        _legacy(account, "RECEIVABLE", "Misc adjustment", customer=customer),
    ]
    db_session.add_all(rows)
    db_session.commit()

    assignments = maintenance_service.backfill_transaction_kinds(account.id)

    assert [a.kind for a in assignments] == ["CUSTOMER_PAYMENT", None]
    kinds = {t.description: t.kind for t in db_session.query(LedgerTransaction).all()}
    assert kinds == {"Payment from customer Rahim": "CUSTOMER_PAYMENT", "Misc adjustment": None}


def test_dry_run_writes_nothing(db_session, account, customer):
    db_session.add(_legacy(account, "RECEIVABLE", "Payment from customer Rahim", customer=customer))
    db_session.commit()

    assignments = maintenance_service.backfill_transaction_kinds(account.id, dry_run=True)

    assert assignments[0].kind == "CUSTOMER_PAYMENT"
    assert db_session.query(LedgerTransaction).one().kind is None


def test_backfilled_payment_reaches_snapshot(db_session, account, customer):
    db_session.add(_legacy(account, "RECEIVABLE", "Payment from customer Rahim", amount=700, customer=customer))
    db_session.commit()

    before = snapshot_service.build_snapshot(account.id)
    assert before.cash_cents == 0
    assert len(before.skipped_records) == 1

    maintenance_service.backfill_transaction_kinds(account.id)

    after = snapshot_service.build_snapshot(account.id)
    assert after.cash_cents == 700
    assert after.receivables_cents == -700
    assert after.skipped_records == ()


def test_backfill_is_account_scoped(db_session, account, other_account):
    db_session.add(_legacy(account, "PAYABLE", "Paper", status="PENDING"))
    db_session.add(_legacy(other_account, "PAYABLE", "Ink", status="PENDING"))
    db_session.commit()

    assignments = maintenance_service.backfill_transaction_kinds(other_account.id)

    assert [a.description for a in assignments] == ["Ink"]


def test_unknown_kind_is_refused(db_session, account):
    db_session.add(_legacy(account, "RECEIVABLE", "Misc adjustment"))
    db_session.commit()
    txn = db_session.query(LedgerTransaction).one()

    with pytest.raises(InvariantViolation):
        update_fields(STORE_TRANSACTIONS, account.id, txn.id, kind="REFUND")

    assert db_session.query(LedgerTransaction).one().kind is None
