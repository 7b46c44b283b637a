# Overview: Per-account document numbering (SALE-0001, RTN-0001, PUR-0001).

from __future__ import annotations

from sqlalchemy import update

from ..errors import InvariantViolation
from ..extensions import db
from ..models import DocumentSequence

DOC_SALE = ("SALE", "SALE")
DOC_RETURN = ("RETURN", "RTN")
DOC_PURCHASE = ("PURCHASE", "PUR")


def _current_number(account_id: int, document_type: str) -> int:
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(account_id=account_id, document_type=document_type)
        .scalar()
    )


def next_document_number(*, account_id: int, document_type: str, prefix: str, pad: int = 4) -> str:
    """
    Allocate the next document number for an account/type.

    The increment is a single UPDATE so two sessions cannot hand out the same
    number. Runs inside the caller's transaction; the caller commits.
    """
    if not account_id:
        raise InvariantViolation("account_id is required")
    if not document_type:
        raise InvariantViolation("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.account_id == account_id,
            DocumentSequence.document_type == document_type,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        db.session.flush()
        next_num = _current_number(account_id, document_type) - 1
    else:
        # First document of this type; a concurrent first insert fails on
        # uq_doc_sequences_account_type and the whole mutation is rejected.
        seq = DocumentSequence(account_id=account_id, document_type=document_type, next_number=2)
        db.session.add(seq)
        db.session.flush()
        next_num = 1

    return f"{prefix}-{next_num:0{pad}d}"


def allocate(account_id: int, document: tuple[str, str]) -> str:
    document_type, prefix = document
    return next_document_number(account_id=account_id, document_type=document_type, prefix=prefix)
