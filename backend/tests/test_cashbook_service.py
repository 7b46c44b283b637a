"""
Cashbook tests: expenses, donations, capital and cash/bank transfers.
"""

from datetime import datetime

import pytest

from bookledger.services import cashbook_service, snapshot_service, transfer_service
from bookledger.services.cashbook_service import CashbookError
from bookledger.services.transfer_service import TransferError


def test_capital_expense_transfer_flow(db_session, account):
    cashbook_service.add_capital(account.id, 100000, "CASH", occurred_at=datetime(2024, 1, 1), initial=True)
    cashbook_service.add_expense(account.id, "Rent", 30000, "CASH", occurred_at=datetime(2024, 1, 5))
    transfer_service.record_transfer(account.id, "CASH", "BANK", 50000, occurred_at=datetime(2024, 1, 6))
    cashbook_service.add_donation(account.id, "Karim", 5000, "BANK", occurred_at=datetime(2024, 1, 7))

    snap = snapshot_service.build_snapshot(account.id, "2024-01-31")

    assert snap.cash_cents == 20000
    assert snap.bank_cents == 55000
    assert snap.equity_cents == 75000


def test_initial_capital_uses_marker_source(db_session, account):
    initial = cashbook_service.add_capital(account.id, 100, "CASH", initial=True)
    later = cashbook_service.add_capital(account.id, 100, "BANK")

    assert initial.source == "Initial Capital"
    assert later.source == "Owner Investment"


def test_asset_capital_is_other_assets(db_session, account):
    cashbook_service.add_capital(account.id, 90000, "ASSET", occurred_at=datetime(2024, 1, 1),
                                 description="Delivery van")

    snap = snapshot_service.build_snapshot(account.id, "2024-01-31")

    assert snap.other_assets_cents == 90000
    assert snap.cash_cents == 0


def test_expense_defaults_to_cash(db_session, account):
    expense = cashbook_service.add_expense(account.id, "Tea", 200)
    assert expense.payment_method == "CASH"


@pytest.mark.parametrize("kwargs", [
    dict(description="", amount_cents=100, payment_method="CASH"),
    dict(description="Rent", amount_cents=0, payment_method="CASH"),
    dict(description="Rent", amount_cents=100, payment_method="ASSET"),
])
def test_invalid_expense_rejected(db_session, account, kwargs):
    with pytest.raises(CashbookError):
        cashbook_service.add_expense(account.id, **kwargs)
    assert cashbook_service.list_expenses(account.id) == []


def test_donation_needs_donor(db_session, account):
    with pytest.raises(CashbookError):
        cashbook_service.add_donation(account.id, " ", 100, "CASH")


@pytest.mark.parametrize("from_account, to_account, amount", [
    ("CASH", "CASH", 100),
    ("CASH", "SAFE", 100),
    ("BANK", "CASH", 0),
])
def test_invalid_transfer_rejected(db_session, account, from_account, to_account, amount):
    with pytest.raises(TransferError):
        transfer_service.record_transfer(account.id, from_account, to_account, amount)
    assert transfer_service.list_transfers(account.id) == []


def test_transfers_are_account_scoped(db_session, account, other_account):
    transfer_service.record_transfer(account.id, "BANK", "CASH", 100)
    assert transfer_service.list_transfers(other_account.id) == []
    assert len(transfer_service.list_transfers(account.id)) == 1
