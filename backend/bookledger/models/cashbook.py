from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class Expense(db.Model):
    """
    Money paid out of cash or bank.

    LEGACY: payment_method is nullable because early records never stored
    it. A missing payment method is read as CASH (see records.py).
    Purchase payments and payable settlements are written as expenses and
    keep a link back to their source document.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_account_occurred", "account_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=True)

    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=True, index=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "description": self.description,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "purchase_id": self.purchase_id,
            "transaction_id": self.transaction_id,
        }


class Donation(db.Model):
    """
    Money received as a donation.

    Rows whose source is "Initial Capital" or whose donor is
    "Internal Transfer" are seeding markers, not operating donations, and
    are excluded from cash-flow totals.
    """
    __tablename__ = "donations"
    __table_args__ = (
        db.Index("ix_donations_account_occurred", "account_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    donor_name = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)
    source = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "donor_name": self.donor_name,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "source": self.source,
        }


class Capital(db.Model):
    """
    Owner capital contributions.

    source == "Initial Capital" marks the day-zero opening balance; those
    rows are part of every snapshot regardless of the as-of date.
    payment_method ASSET records existing assets brought into the business.
    """
    __tablename__ = "capital"
    __table_args__ = (
        db.Index("ix_capital_account_occurred", "account_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    source = db.Column(db.String(64), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "source": self.source,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "description": self.description,
        }


class Transfer(db.Model):
    """Movement of money between the cash box and the bank account."""
    __tablename__ = "transfers"
    __table_args__ = (
        db.CheckConstraint("from_account <> to_account", name="ck_transfers_distinct_accounts"),
        db.CheckConstraint("amount_cents > 0", name="ck_transfers_positive_amount"),
        db.Index("ix_transfers_account_occurred", "account_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    from_account = db.Column(db.String(16), nullable=False)
    to_account = db.Column(db.String(16), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    note = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "from_account": self.from_account,
            "to_account": self.to_account,
            "amount_cents": self.amount_cents,
            "note": self.note,
        }
