from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class Purchase(db.Model):
    """
    Goods bought from a supplier.

    BOOK lines add to an item's stock. OFFICE_ASSET lines are capitalized
    as office assets on the balance sheet. The cash side of a purchase is
    never read from this table: the paid part is written as an Expense and
    the unpaid part as a PAYABLE transaction.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.UniqueConstraint("account_id", "document_number", name="uq_purchases_account_docnum"),
        db.Index("ix_purchases_account_occurred", "account_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    document_number = db.Column(db.String(64), nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    supplier = db.Column(db.String(255), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)
    split_payment_method = db.Column(db.String(16), nullable=True)
    amount_paid_cents = db.Column(db.Integer, nullable=True)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship("PurchaseLine", backref="purchase", lazy="selectin", order_by="PurchaseLine.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "document_number": self.document_number,
            "occurred_at": to_utc_z(self.occurred_at),
            "supplier": self.supplier,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "split_payment_method": self.split_payment_method,
            "amount_paid_cents": self.amount_paid_cents,
            "due_date": to_utc_z(self.due_date) if self.due_date else None,
            "lines": [line.to_dict() for line in self.lines],
        }


class PurchaseLine(db.Model):
    __tablename__ = "purchase_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=True, index=True)

    category = db.Column(db.String(16), nullable=False, default="BOOK")
    description = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "item_id": self.item_id,
            "category": self.category,
            "description": self.description,
            "quantity": self.quantity,
            "unit_cost_cents": self.unit_cost_cents,
        }
