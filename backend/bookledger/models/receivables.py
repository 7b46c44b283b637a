from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class LedgerTransaction(db.Model):
    """
    Receivable / payable ledger line.

    KINDS (explicit discriminant, written when the line is created):
    - DUE: amount a customer owes from a sale (RECEIVABLE)
    - SALE_PAYMENT: paid part of a SPLIT sale, recorded for the customer's
      statement only; the cash is already counted through the sale (RECEIVABLE)
    - CUSTOMER_PAYMENT: money received from a customer against dues (RECEIVABLE)
    - PAYABLE: amount the store owes a supplier (PAYABLE)

    LEGACY: kind is nullable only for rows imported before the discriminant
    existed. Such rows are skipped by the snapshot until
    `flask ledger backfill-kinds` assigns them a kind.

    LIFECYCLE: status PENDING -> PAID exactly once; PAID is terminal.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_account_type_status", "account_id", "type", "status"),
        db.Index("ix_transactions_account_customer", "account_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)

    type = db.Column(db.String(16), nullable=False)
    kind = db.Column(db.String(24), nullable=True)
    description = db.Column(db.String(255), nullable=False, default="")
    amount_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="PENDING")
    payment_method = db.Column(db.String(16), nullable=True)

    due_date = db.Column(db.DateTime(timezone=True), nullable=False)
    recorded_at = db.Column(db.DateTime(timezone=True), nullable=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=True, index=True)
    counterparty = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "customer_id": self.customer_id,
            "type": self.type,
            "kind": self.kind,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "status": self.status,
            "payment_method": self.payment_method,
            "due_date": to_utc_z(self.due_date),
            "recorded_at": to_utc_z(self.recorded_at),
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "sale_id": self.sale_id,
            "purchase_id": self.purchase_id,
            "counterparty": self.counterparty,
        }
