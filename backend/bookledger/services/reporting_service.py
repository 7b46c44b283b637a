# Overview: Service-layer operations for reporting; formats snapshots into balance sheets and monthly reports.

from __future__ import annotations

import logging
from datetime import date, datetime

from ..errors import InvariantViolation
from ..extensions import db
from ..models import LedgerTransaction
from ..time_utils import CutoffInput, month_bounds, parse_iso_datetime, resolve_cutoff, start_of_day, to_utc_z, utcnow
from .customer_service import compute_customer_dues
from .records import KIND_CUSTOMER_PAYMENT, STATUS_PAID
from .snapshot_service import (
    BalanceSnapshot,
    LedgerData,
    build_cash_flow,
    build_snapshot,
    closing_stock,
    compute_cash_flow,
    compute_snapshot,
    load_ledger,
)

logger = logging.getLogger(__name__)


class ReportError(InvariantViolation):
    """Raised when report parameters are invalid."""
    pass


def _cutoff_or_none(value: CutoffInput):
    return resolve_cutoff(value) if value is not None else None


def _period_start(value: CutoffInput) -> datetime | None:
    """Inclusive lower bound: a calendar date means the start of that day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return resolve_cutoff(value)
    if isinstance(value, date):
        return start_of_day(value)
    s = str(value).strip()
    if len(s) == 10:
        return start_of_day(date.fromisoformat(s))
    return parse_iso_datetime(s)


def _within(when: datetime | None, start: datetime, end: datetime) -> bool:
    return when is not None and start < when <= end


def _balance_sheet_sections(snapshot: BalanceSnapshot) -> dict:
    return {
        "as_of": to_utc_z(snapshot.as_of) if snapshot.as_of else None,
        "assets": {
            "cash_cents": snapshot.cash_cents,
            "bank_cents": snapshot.bank_cents,
            "receivables_cents": snapshot.receivables_cents,
            "stock_value_cents": snapshot.stock_value_cents,
            "office_assets_value_cents": snapshot.office_assets_value_cents,
            "other_assets_cents": snapshot.other_assets_cents,
            "total_cents": snapshot.total_assets_cents,
        },
        "liabilities": {
            "payables_cents": snapshot.payables_cents,
            "total_cents": snapshot.total_liabilities_cents,
        },
        "equity_cents": snapshot.equity_cents,
        "skipped_records": [s.to_dict() for s in snapshot.skipped_records],
    }


# =============================================================================
# BALANCE SHEET
# =============================================================================

def balance_sheet(account_id: int, as_of: CutoffInput = None) -> dict:
    return _balance_sheet_sections(build_snapshot(account_id, as_of))


# =============================================================================
# MONTHLY REPORT
# =============================================================================

def profit_and_loss(data: LedgerData, start: datetime, end: datetime) -> dict:
    """Period activity between two cutoffs (start exclusive, end inclusive)."""
    sales = [s for s in data.sales if _within(s.occurred_at, start, end)]
    returns = [r for r in data.sales_returns if _within(r.occurred_at, start, end)]

    total_sales = sum(s.total_cents for s in sales)
    total_returns = sum(r.total_return_value_cents for r in returns)
    net_sales = total_sales - total_returns

    cogs = sum(line.quantity * line.unit_cost_cents for s in sales for line in s.lines)
    returned_cogs = sum(line.quantity * line.unit_cost_cents for r in returns for line in r.lines)
    gross_profit = net_sales - (cogs - returned_cogs)

    # Purchase payments buy stock or office assets; they are not operating costs
    operating_expenses = sum(
        e.amount_cents for e in data.expenses
        if e.purchase_id is None and _within(e.occurred_at, start, end)
    )
    donations = sum(
        d.amount_cents for d in data.donations
        if not d.is_seeding_marker and _within(d.occurred_at, start, end)
    )
    received = sum(
        t.amount_cents for t in data.transactions
        if t.kind == KIND_CUSTOMER_PAYMENT and t.status == STATUS_PAID and _within(t.due_date, start, end)
    )

    return {
        "sales_count": len(sales),
        "total_sales_cents": total_sales,
        "total_returns_cents": total_returns,
        "net_sales_cents": net_sales,
        "cogs_cents": cogs,
        "returned_cogs_cents": returned_cogs,
        "gross_profit_cents": gross_profit,
        "operating_expenses_cents": operating_expenses,
        "donations_cents": donations,
        "received_payments_cents": received,
        "net_profit_cents": gross_profit - operating_expenses + donations,
    }


def monthly_report(account_id: int, year: int, month: int) -> dict:
    """
    Opening/closing balance sheets, the cash-flow between them and the
    month's profit and loss, all from one read of the stores.
    """
    try:
        opening_cutoff, closing_cutoff = month_bounds(int(year), int(month))
    except (TypeError, ValueError, OverflowError) as exc:
        raise ReportError(f"Invalid report period: {exc}")

    data = load_ledger(account_id)
    opening = compute_snapshot(data, opening_cutoff)
    closing = compute_snapshot(data, closing_cutoff)
    flow = compute_cash_flow(data, opening_cutoff, closing_cutoff)

    logger.info("Built monthly report %04d-%02d for account %s", int(year), int(month), account_id)
    return {
        "period": f"{int(year):04d}-{int(month):02d}",
        "opening": _balance_sheet_sections(opening),
        "closing": _balance_sheet_sections(closing),
        "cash_flow": flow.to_dict(),
        "profit_and_loss": profit_and_loss(data, opening_cutoff, closing_cutoff),
    }


# =============================================================================
# RECEIVABLES
# =============================================================================

def _receivable_rows(data: LedgerData, cutoff: datetime) -> list[dict]:
    dues = compute_customer_dues(data, cutoff)
    return [
        {"customer_id": c.id, "name": c.name, "due_cents": dues.get(c.id, 0)}
        for c in sorted(data.customers, key=lambda c: c.name)
        if dues.get(c.id, 0) != 0
    ]


def pending_receivables(account_id: int, as_of: CutoffInput = None) -> dict:
    """
    Customers with a non-zero due balance, rebuilt from the events included
    by the cutoff. Live (as_of=None) means now; future-dated events are left
    out and as_of is reported as None.
    """
    cutoff = resolve_cutoff(as_of)
    rows = _receivable_rows(load_ledger(account_id), cutoff)

    return {
        "as_of": to_utc_z(cutoff) if as_of is not None else None,
        "customers": rows,
        "total_due_cents": sum(r["due_cents"] for r in rows if r["due_cents"] > 0),
        "total_credit_cents": -sum(r["due_cents"] for r in rows if r["due_cents"] < 0),
    }


def received_payments(account_id: int, start: CutoffInput = None, end: CutoffInput = None) -> dict:
    """Customer payments received in [start, end] (calendar dates are whole days)."""
    start_dt = _period_start(start)
    end_dt = _cutoff_or_none(end)

    query = db.session.query(LedgerTransaction).filter(
        LedgerTransaction.account_id == account_id,
        LedgerTransaction.kind == KIND_CUSTOMER_PAYMENT,
        LedgerTransaction.status == STATUS_PAID,
    )
    if start_dt is not None:
        query = query.filter(LedgerTransaction.due_date >= start_dt)
    if end_dt is not None:
        query = query.filter(LedgerTransaction.due_date <= end_dt)

    payments = query.order_by(LedgerTransaction.due_date.asc(), LedgerTransaction.id.asc()).all()
    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "payments": [p.to_dict() for p in payments],
        "total_cents": sum(p.amount_cents for p in payments),
    }


# =============================================================================
# STOCK
# =============================================================================

def closing_stock_report(account_id: int, as_of: CutoffInput = None) -> dict:
    cutoff = resolve_cutoff(as_of)
    data = load_ledger(account_id)
    stock = closing_stock(data, cutoff)

    rows = []
    for item in sorted(data.items, key=lambda i: i.title):
        quantity = max(0, stock[item.id])
        rows.append({
            "item_id": item.id,
            "title": item.title,
            "closing_stock": quantity,
            "production_price_cents": item.production_price_cents,
            "value_cents": quantity * item.production_price_cents,
        })
    return {
        "as_of": to_utc_z(cutoff) if as_of is not None else None,
        "items": rows,
        "total_value_cents": sum(r["value_cents"] for r in rows),
    }


def cash_flow_report(account_id: int, start: CutoffInput, end: CutoffInput) -> dict:
    return build_cash_flow(account_id, start, end).to_dict()


# =============================================================================
# DASHBOARD
# =============================================================================

def dashboard_stats(account_id: int, now: datetime | None = None) -> dict:
    """
    Headline figures for the current month, from one read of the stores.

    Stock counts are today's item stock; the monthly figures come from
    profit_and_loss over the calendar month containing now; receivables
    are the live event-derived dues.
    """
    now = now or utcnow()
    opening_cutoff, closing_cutoff = month_bounds(now.year, now.month)
    data = load_ledger(account_id)

    pnl = profit_and_loss(data, opening_cutoff, closing_cutoff)
    owing = [r for r in _receivable_rows(data, now) if r["due_cents"] > 0]
    live = compute_snapshot(data, now)

    return {
        "period": f"{now.year:04d}-{now.month:02d}",
        "books_in_stock": sum(max(0, item.stock) for item in data.items),
        "book_titles": len(data.items),
        "monthly_sales_cents": pnl["total_sales_cents"],
        "monthly_sales_count": pnl["sales_count"],
        "monthly_expenses_cents": pnl["operating_expenses_cents"],
        "gross_profit_cents": pnl["gross_profit_cents"],
        "net_profit_cents": pnl["net_profit_cents"],
        "receivables_cents": sum(r["due_cents"] for r in owing),
        "pending_receivables_count": len(owing),
        "cash_cents": live.cash_cents,
        "bank_cents": live.bank_cents,
    }
