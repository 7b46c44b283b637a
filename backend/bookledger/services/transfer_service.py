# backend/bookledger/services/transfer_service.py
"""
Cash <-> bank transfers.

WHY: Depositing the till or withdrawing from the bank moves money between
the two accounts without changing the business's total. A transfer is one
immutable record; the snapshot subtracts it from `from_account` and adds
it to `to_account`.
"""
from __future__ import annotations

import logging

from bookledger.errors import InvariantViolation
from bookledger.extensions import db
from bookledger.models import Transfer
from bookledger.time_utils import parse_occurred_at
from bookledger.services import record_store
from bookledger.services.records import MONEY_ACCOUNTS, STORE_TRANSFERS

logger = logging.getLogger(__name__)


class TransferError(InvariantViolation):
    """Raised when transfer operations fail."""
    pass


def record_transfer(
    account_id: int,
    from_account: str,
    to_account: str,
    amount_cents: int,
    occurred_at=None,
    note: str | None = None,
) -> Transfer:
    """
    Move money between CASH and BANK.

    Raises:
        TransferError: unknown account, same account on both sides, or a
            non-positive amount
    """
    if from_account not in MONEY_ACCOUNTS or to_account not in MONEY_ACCOUNTS:
        raise TransferError(f"Transfers move money between {list(MONEY_ACCOUNTS)}")
    if from_account == to_account:
        raise TransferError("Cannot transfer to the same account")
    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool) or amount_cents <= 0:
        raise TransferError("Transfer amount must be a positive integer (cents)")

    transfer_id = record_store.append_record(
        STORE_TRANSFERS,
        account_id,
        occurred_at=parse_occurred_at(occurred_at),
        from_account=from_account,
        to_account=to_account,
        amount_cents=amount_cents,
        note=note,
    )
    db.session.commit()
    logger.info("Transferred %s from %s to %s for account %s", amount_cents, from_account, to_account, account_id)
    return db.session.get(Transfer, transfer_id)


def list_transfers(account_id: int) -> list[Transfer]:
    return (
        db.session.query(Transfer)
        .filter_by(account_id=account_id)
        .order_by(Transfer.occurred_at.desc(), Transfer.id.desc())
        .all()
    )
