from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class Account(db.Model):
    """
    A bookstore's books of account.

    MULTI-TENANT: Every event store row is scoped to exactly one account via
    account_id. Snapshots and reports never read across accounts.
    """
    __tablename__ = "accounts"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_accounts_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class DocumentSequence(db.Model):
    """
    Atomic per-account document sequences (SALE-0001, RTN-0001, PUR-0001).
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("account_id", "document_type", name="uq_doc_sequences_account_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "document_type": self.document_type,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
