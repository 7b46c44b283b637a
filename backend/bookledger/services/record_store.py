# Overview: Generic read/append/update contract over the per-account event stores.

"""
Event store access (authoritative)

- list_records(store_name, account_id) streams immutable records, keyset
  paginated by id so a full-history scan never loads a store in one query.
- append_record / update_fields are the generic write side used by the
  simple stores (expenses, donations, capital, transfers, transactions).
  Documents with lines (sales, returns, purchases) are written by their own
  services.
- Any database error while reading becomes FetchFailure. Callers must let
  it propagate; a snapshot is never built from a partial read.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import FetchFailure, InvariantViolation, NotFound
from ..extensions import db
from ..models import (
    Capital,
    Customer,
    Donation,
    Expense,
    Item,
    LedgerTransaction,
    Purchase,
    Sale,
    SalesReturn,
    Transfer,
)
from . import records
from .concurrency import lock_for_update

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 500

_STORES: dict[str, tuple[type, Callable]] = {
    records.STORE_ITEMS: (Item, records.item_from_row),
    records.STORE_CUSTOMERS: (Customer, records.customer_from_row),
    records.STORE_SALES: (Sale, records.sale_from_row),
    records.STORE_EXPENSES: (Expense, records.expense_from_row),
    records.STORE_DONATIONS: (Donation, records.donation_from_row),
    records.STORE_CAPITAL: (Capital, records.capital_from_row),
    records.STORE_TRANSFERS: (Transfer, records.transfer_from_row),
    records.STORE_TRANSACTIONS: (LedgerTransaction, records.transaction_from_row),
    records.STORE_SALES_RETURNS: (SalesReturn, records.sales_return_from_row),
    records.STORE_PURCHASES: (Purchase, records.purchase_from_row),
}

APPENDABLE_STORES = {
    records.STORE_EXPENSES,
    records.STORE_DONATIONS,
    records.STORE_CAPITAL,
    records.STORE_TRANSFERS,
    records.STORE_TRANSACTIONS,
}

# Only status/cached fields may change after a record is written
UPDATABLE_FIELDS = {
    records.STORE_TRANSACTIONS: {"status", "payment_method", "paid_at", "kind"},
    records.STORE_CUSTOMERS: {"due_balance_cents", "name", "phone", "address"},
    records.STORE_ITEMS: {"stock", "title", "author", "production_price_cents", "selling_price_cents"},
}


def store_model(store_name: str) -> type:
    try:
        return _STORES[store_name][0]
    except KeyError:
        raise ValueError(f"Unknown store: {store_name}")


def _page_size(page_size: int | None) -> int:
    if page_size:
        return page_size
    return int(current_app.config.get("LEDGER_PAGE_SIZE", DEFAULT_PAGE_SIZE))


def list_records(store_name: str, account_id: int, *, page_size: int | None = None) -> Iterator:
    """
    Yield every record of a store for one account, oldest id first.

    Raises:
        FetchFailure: if any page cannot be read
    """
    model, convert = _STORES.get(store_name, (None, None))
    if model is None:
        raise ValueError(f"Unknown store: {store_name}")

    size = _page_size(page_size)
    last_id = 0
    while True:
        try:
            rows = (
                db.session.query(model)
                .filter(model.account_id == account_id, model.id > last_id)
                .order_by(model.id.asc())
                .limit(size)
                .all()
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Reading store %s for account %s failed: %s", store_name, account_id, exc)
            raise FetchFailure(store_name) from exc

        for row in rows:
            yield convert(row)

        if len(rows) < size:
            return
        last_id = rows[-1].id


def get_scoped(model: type, account_id: int, record_id: int, *, lock: bool = False):
    """Load one row of the caller's account or raise NotFound."""
    query = db.session.query(model).filter_by(id=record_id, account_id=account_id)
    if lock:
        query = lock_for_update(query)
    row = query.first()
    if row is None:
        raise NotFound(f"{model.__name__} {record_id} not found")
    return row


def append_record(store_name: str, account_id: int, **fields) -> int:
    """
    Append a record to one of the simple stores and return its id.

    The caller owns the commit; validation belongs to the calling service.
    """
    if store_name not in APPENDABLE_STORES:
        raise ValueError(f"Store {store_name} is not appendable through the generic contract")
    model = store_model(store_name)

    try:
        row = model(account_id=account_id, **fields)
    except TypeError as exc:
        raise InvariantViolation(f"Invalid fields for {store_name}: {exc}")

    db.session.add(row)
    db.session.flush()  # ensures row.id is assigned without committing
    return row.id


def update_fields(store_name: str, account_id: int, record_id: int, **fields) -> None:
    """Partial update of status/cached fields on an existing record."""
    allowed = UPDATABLE_FIELDS.get(store_name, set())
    illegal = sorted(set(fields) - allowed)
    if illegal:
        raise InvariantViolation(
            f"Fields {illegal} of {store_name} cannot be changed once written",
            details={"fields": illegal},
        )
    if "kind" in fields and fields["kind"] not in records.TRANSACTION_KINDS:
        raise InvariantViolation(f"Unknown transaction kind: {fields['kind']}", details={"kind": fields["kind"]})

    row = get_scoped(store_model(store_name), account_id, record_id, lock=True)
    for name, value in fields.items():
        setattr(row, name, value)
    db.session.flush()
