# Overview: One-off repair operations over legacy ledger rows.

"""
Kind backfill

Rows imported before transactions carried an explicit kind are skipped by
every snapshot. backfill_transaction_kinds assigns a kind using ONE fixed
table of description prefixes, the descriptions the application itself
has always written:

    RECEIVABLE "Payment from customer..." -> CUSTOMER_PAYMENT
    RECEIVABLE "Partial payment for..."   -> SALE_PAYMENT
    RECEIVABLE "Due from..."              -> DUE
    PAYABLE    (any description)          -> PAYABLE

Rows that match nothing stay unresolved and keep being skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..extensions import db
from ..models import LedgerTransaction
from .record_store import update_fields
from .records import (
    KIND_CUSTOMER_PAYMENT,
    KIND_DUE,
    KIND_PAYABLE,
    KIND_SALE_PAYMENT,
    STORE_TRANSACTIONS,
    TYPE_PAYABLE,
    TYPE_RECEIVABLE,
)

logger = logging.getLogger(__name__)

RECEIVABLE_PREFIXES = (
    ("Payment from customer", KIND_CUSTOMER_PAYMENT),
    ("Partial payment for", KIND_SALE_PAYMENT),
    ("Due from", KIND_DUE),
)


@dataclass(frozen=True)
class KindAssignment:
    transaction_id: int
    account_id: int
    description: str
    kind: Optional[str]

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "account_id": self.account_id,
            "description": self.description,
            "kind": self.kind,
        }


def infer_kind(type_: str, description: str | None) -> Optional[str]:
    if type_ == TYPE_PAYABLE:
        return KIND_PAYABLE
    if type_ != TYPE_RECEIVABLE:
        return None
    text = (description or "").strip()
    for prefix, kind in RECEIVABLE_PREFIXES:
        if text.startswith(prefix):
            return kind
    return None


def backfill_transaction_kinds(account_id: int | None = None, *, dry_run: bool = False) -> list[KindAssignment]:
    """
    Assign kinds to legacy transaction rows.

    Returns one entry per legacy row; kind is None where nothing matched.
    With dry_run=True nothing is written.
    """
    query = db.session.query(LedgerTransaction).filter(
        (LedgerTransaction.kind.is_(None)) | (LedgerTransaction.kind == "")
    )
    if account_id is not None:
        query = query.filter(LedgerTransaction.account_id == account_id)

    assignments = []
    for txn in query.order_by(LedgerTransaction.id.asc()).all():
        kind = infer_kind(txn.type, txn.description)
        assignments.append(KindAssignment(txn.id, txn.account_id, txn.description, kind))
        if kind is None:
            logger.warning("Transaction %s (%r) matches no kind rule; left unresolved", txn.id, txn.description)
        elif not dry_run:
            update_fields(STORE_TRANSACTIONS, txn.account_id, txn.id, kind=kind)

    if dry_run:
        db.session.rollback()
    else:
        db.session.commit()

    resolved = sum(1 for a in assignments if a.kind)
    logger.info("Kind backfill: %d legacy rows, %d resolved%s",
                len(assignments), resolved, " (dry run)" if dry_run else "")
    return assignments
