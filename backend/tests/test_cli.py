# Overview: Pytest coverage for the flask CLI command groups.

import json
from datetime import datetime

from bookledger.models import Account, Capital, Customer, LedgerTransaction


def test_accounts_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["accounts", "create", "--name", "Harbor Books", "--code", "hrb"])
    assert result.exit_code == 0
    assert db_session.query(Account).filter_by(code="HRB").count() == 1

    duplicate = runner.invoke(args=["accounts", "create", "--name", "Again", "--code", "HRB"])
    assert duplicate.exit_code != 0

    listing = runner.invoke(args=["accounts", "list"])
    assert "HRB" in listing.output


def test_snapshot_json(app, db_session, account):
    db_session.add(Capital(account_id=account.id, occurred_at=datetime(2024, 1, 1), source="Initial Capital",
                           amount_cents=12345, payment_method="BANK"))
    db_session.commit()

    result = app.test_cli_runner().invoke(
        args=["ledger", "snapshot", "--account-id", str(account.id), "--as-of", "2024-01-31", "--json"]
    )

    assert result.exit_code == 0
    body = json.loads(result.output)
    assert body["bank_cents"] == 12345
    assert body["equity_cents"] == 12345


def test_snapshot_table_output(app, db_session, account):
    result = app.test_cli_runner().invoke(args=["ledger", "snapshot", "--account-id", str(account.id)])
    assert result.exit_code == 0
    assert "Total assets" in result.output


def test_reconcile_fix(app, db_session, account, customer):
    row = db_session.get(Customer, customer.id)
    row.due_balance_cents = 500
    db_session.commit()
    runner = app.test_cli_runner()

    report = runner.invoke(args=["ledger", "reconcile", "--account-id", str(account.id)])
    assert "DRIFT Rahim" in report.output

    fixed = runner.invoke(args=["ledger", "reconcile", "--account-id", str(account.id), "--fix"])
    assert "FIXED Rahim" in fixed.output
    assert db_session.get(Customer, customer.id).due_balance_cents == 0


def test_backfill_kinds_dry_run(app, db_session, account):
    db_session.add(LedgerTransaction(
        account_id=account.id, type="PAYABLE", kind=None, description="Paper", amount_cents=100,
        status="PENDING", due_date=datetime(2024, 1, 1), recorded_at=datetime(2024, 1, 1),
    ))
    db_session.commit()

    result = app.test_cli_runner().invoke(args=["ledger", "backfill-kinds", "--dry-run"])

    assert result.exit_code == 0
    assert "PAYABLE" in result.output
    assert "dry run" in result.output
    assert db_session.query(LedgerTransaction).one().kind is None
