# Overview: Flask CLI command groups for bootstrap, inspection, and ledger maintenance.

# backend/bookledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--name "Main Street Books" --code MSB]
#   Create tables and a default account (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask accounts list
# - python -m flask accounts create --name "Main Street Books" --code MSB
#
# Ledger:
# - python -m flask ledger snapshot --account-id 1 [--as-of 2024-03-31]
#   Print the balance snapshot as of a date (default: live).
# - python -m flask ledger reconcile --account-id 1 [--fix]
#   Compare cached customer due balances with the event-derived values.
# - python -m flask ledger backfill-kinds [--account-id 1] [--dry-run]
#   Assign kinds to legacy transaction rows from their descriptions.

import json

import click
from flask.cli import with_appcontext

from .errors import FetchFailure, InvariantViolation
from .extensions import db
from .models import Account
from .services import account_service, customer_service, maintenance_service, snapshot_service


def _cents(value: int) -> str:
    sign = "-" if value < 0 else ""
    value = abs(value)
    return f"{sign}{value // 100:,}.{value % 100:02d}"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--name', default='Default Bookstore', help='Account name')
@click.option('--code', default='DEFAULT', help='Account code')
@with_appcontext
def init_system(name, code):
    """Create all tables and a default account."""
    click.echo("START Initializing bookledger...")
    db.create_all()

    account = db.session.query(Account).filter_by(code=code.upper()).first()
    if account:
        click.echo(f"PASS Using existing account: {account.name} (ID: {account.id})")
    else:
        account = account_service.create_account(name, code)
        click.echo(f"PASS Created account: {account.name} (ID: {account.id}, Code: {account.code})")

    click.echo(f"\nUse header X-Account-Id: {account.id} for API calls.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('accounts')
def accounts_group():
    """Account management."""


@accounts_group.command('list')
@with_appcontext
def list_accounts():
    accounts = account_service.list_accounts(include_inactive=True)
    if not accounts:
        click.echo("No accounts found. Run 'python -m flask system init'.")
        return
    for account in accounts:
        status = "active" if account.is_active else "inactive"
        click.echo(f"{account.id:>4}  {account.code:<12} {account.name} ({status})")


@accounts_group.command('create')
@click.option('--name', required=True, help='Account name')
@click.option('--code', required=True, help='Unique account code')
@with_appcontext
def create_account(name, code):
    try:
        account = account_service.create_account(name, code)
    except InvariantViolation as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created account: {account.name} (ID: {account.id}, Code: {account.code})")


@click.group('ledger')
def ledger_group():
    """Balance snapshots and ledger maintenance."""


@ledger_group.command('snapshot')
@click.option('--account-id', type=int, required=True)
@click.option('--as-of', default=None, help='YYYY-MM-DD or ISO-8601 datetime (default: live)')
@click.option('--json', 'as_json', is_flag=True, help='Print raw JSON')
@with_appcontext
def snapshot(account_id, as_of, as_json):
    try:
        snap = snapshot_service.build_snapshot(account_id, as_of)
    except FetchFailure as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--as-of")

    if as_json:
        click.echo(json.dumps(snap.to_dict(), indent=2))
        return

    click.echo(f"Balance snapshot for account {account_id} as of {as_of or 'now (live)'}")
    rows = [
        ("Cash", snap.cash_cents),
        ("Bank", snap.bank_cents),
        ("Receivables", snap.receivables_cents),
        ("Stock", snap.stock_value_cents),
        ("Office assets", snap.office_assets_value_cents),
        ("Other assets", snap.other_assets_cents),
        ("Total assets", snap.total_assets_cents),
        ("Payables", snap.payables_cents),
        ("Equity", snap.equity_cents),
    ]
    for label, value in rows:
        click.echo(f"  {label:<14} {_cents(value):>16}")
    if snap.skipped_records:
        click.echo(f"\nWARN {len(snap.skipped_records)} ambiguous records skipped:")
        for skipped in snap.skipped_records:
            click.echo(f"  {skipped.store} #{skipped.record_id}: {skipped.reason}")


@ledger_group.command('reconcile')
@click.option('--account-id', type=int, required=True)
@click.option('--fix', is_flag=True, help='Overwrite drifted cached balances')
@with_appcontext
def reconcile(account_id, fix):
    try:
        drifts = customer_service.reconcile_customers(account_id, fix=fix)
    except FetchFailure as e:
        raise click.ClickException(str(e))

    if not drifts:
        click.echo("PASS All customer due balances match the ledger.")
        return
    for drift in drifts:
        click.echo(
            f"{'FIXED' if fix else 'DRIFT'} {drift.name} (#{drift.customer_id}): "
            f"cached {_cents(drift.cached_cents)} expected {_cents(drift.expected_cents)}"
        )
    if not fix:
        click.echo("\nRe-run with --fix to repair.")


@ledger_group.command('backfill-kinds')
@click.option('--account-id', type=int, default=None)
@click.option('--dry-run', is_flag=True, help='Show assignments without writing')
@with_appcontext
def backfill_kinds(account_id, dry_run):
    assignments = maintenance_service.backfill_transaction_kinds(account_id, dry_run=dry_run)
    if not assignments:
        click.echo("PASS No legacy transaction rows.")
        return
    for a in assignments:
        click.echo(f"{a.transaction_id:>6}  {a.kind or 'UNRESOLVED':<17} {a.description}")
    unresolved = sum(1 for a in assignments if a.kind is None)
    click.echo(f"\n{len(assignments) - unresolved} resolved, {unresolved} unresolved"
               f"{' (dry run, nothing written)' if dry_run else ''}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(accounts_group)
    app.cli.add_command(ledger_group)
