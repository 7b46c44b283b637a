from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data plus the cached due balance.

    WHY: due_balance_cents is a read optimization for live receivables
    screens. It is NOT authoritative: the ledger recomputes it from sales,
    payments and returns (see customer_service.reconcile_customers).
    A negative due balance is store credit owed to the customer.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_account_name", "account_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    opening_balance_cents = db.Column(db.Integer, nullable=False, default=0)
    due_balance_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "opening_balance_cents": self.opening_balance_cents,
            "due_balance_cents": self.due_balance_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
