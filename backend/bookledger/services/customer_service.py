# Overview: Service-layer operations for customers and due-balance reconciliation.

"""
Customer due balances

due_balance_cents on Customer is a cache for live screens. The
authoritative value is rebuilt from the event stores:

    due = opening_balance
          + sum(sale due deltas)            (credit applied + unpaid part)
          - sum(paid customer payments)
          - sum(ADJUST_DUE sales returns)

This is the same receivable contribution the snapshot uses, so the sum of
reconciled customer dues always equals snapshot receivables.
A negative due is store credit owed to the customer.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..errors import ClassificationAmbiguity, InvariantViolation
from ..extensions import db
from ..models import Customer
from .classification import classify, is_included
from .concurrency import run_with_retry
from .record_store import get_scoped, update_fields
from .records import STORE_CUSTOMERS
from .snapshot_service import LedgerData, load_ledger

logger = logging.getLogger(__name__)


class CustomerError(InvariantViolation):
    """Raised for customer operation errors."""
    pass


@dataclass(frozen=True)
class DueDrift:
    customer_id: int
    name: str
    cached_cents: int
    expected_cents: int

    @property
    def drift_cents(self) -> int:
        return self.cached_cents - self.expected_cents

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "name": self.name,
            "cached_cents": self.cached_cents,
            "expected_cents": self.expected_cents,
            "drift_cents": self.drift_cents,
        }


# =============================================================================
# CUSTOMER MASTER DATA
# =============================================================================

def add_customer(
    account_id: int,
    name: str,
    phone: str | None = None,
    address: str | None = None,
    opening_balance_cents: int = 0,
) -> Customer:
    name = (name or "").strip()
    if not name:
        raise CustomerError("name is required")
    if not isinstance(opening_balance_cents, int) or isinstance(opening_balance_cents, bool):
        raise CustomerError("opening_balance_cents must be an integer (cents)")

    customer = Customer(
        account_id=account_id,
        name=name,
        phone=phone,
        address=address,
        opening_balance_cents=opening_balance_cents,
        due_balance_cents=opening_balance_cents,
    )
    db.session.add(customer)
    db.session.commit()
    logger.info("Added customer %s (%s) to account %s", customer.id, name, account_id)
    return customer


def update_customer(account_id: int, customer_id: int, **fields) -> Customer:
    allowed = {"name", "phone", "address"}
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise CustomerError(f"Cannot update fields: {unknown}")

    def _op():
        customer = get_scoped(Customer, account_id, customer_id, lock=True)
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise CustomerError("name is required")
            customer.name = name
        if "phone" in fields:
            customer.phone = fields["phone"]
        if "address" in fields:
            customer.address = fields["address"]
        db.session.commit()
        return customer

    return run_with_retry(_op)


def get_customer(account_id: int, customer_id: int) -> Customer:
    return get_scoped(Customer, account_id, customer_id)


def list_customers(account_id: int) -> list[Customer]:
    return db.session.query(Customer).filter_by(account_id=account_id).order_by(Customer.name.asc()).all()


# =============================================================================
# RECONCILIATION
# =============================================================================

def compute_customer_dues(data: LedgerData, cutoff: Optional[datetime] = None) -> dict[int, int]:
    """
    Rebuild every customer's due balance from the events included by cutoff.

    Ambiguous records are skipped here exactly as the snapshot skips them.
    """
    dues = defaultdict(int)
    for customer in data.customers:
        dues[customer.id] = customer.opening_balance_cents

    for record in data.money_records():
        customer_id = getattr(record, "customer_id", None)
        if customer_id is None or not is_included(record, cutoff):
            continue
        try:
            contribution = classify(record)
        except ClassificationAmbiguity as exc:
            logger.warning("Skipping ambiguous %s record %s in due rebuild: %s",
                           exc.store_name, exc.record_id, exc)
            continue
        if contribution.receivable_cents:
            dues[customer_id] += contribution.receivable_cents

    return dict(dues)


def reconcile_customers(account_id: int, *, fix: bool = False) -> list[DueDrift]:
    """
    Compare cached due balances with the event-derived values.

    Returns the customers whose cache drifted. With fix=True the cache is
    overwritten with the event-derived value and committed.
    """
    data = load_ledger(account_id)
    expected = compute_customer_dues(data)

    drifts = [
        DueDrift(
            customer_id=c.id,
            name=c.name,
            cached_cents=c.due_balance_cents,
            expected_cents=expected.get(c.id, c.opening_balance_cents),
        )
        for c in data.customers
        if c.due_balance_cents != expected.get(c.id, c.opening_balance_cents)
    ]

    if drifts and fix:
        def _op():
            for drift in drifts:
                update_fields(STORE_CUSTOMERS, account_id, drift.customer_id, due_balance_cents=drift.expected_cents)
            db.session.commit()
        run_with_retry(_op)
        logger.info("Repaired %d customer due balances for account %s", len(drifts), account_id)
    elif drifts:
        logger.warning("%d customer due balances drifted for account %s", len(drifts), account_id)

    return drifts
