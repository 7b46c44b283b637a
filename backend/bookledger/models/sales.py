from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class Sale(db.Model):
    """
    Sale document.

    PAYMENT METHODS:
    - CASH / BANK: fully paid into that account at the time of sale
    - DUE: nothing paid; the payable amount becomes the customer's due
    - SPLIT: amount_paid_cents paid into split_payment_method, rest due
    - PAID_BY_CREDIT: customer's store credit covered the whole total

    Invariants (enforced by sales_service before insert):
    - total_cents == subtotal_cents - discount_cents
    - SPLIT: 0 < amount_paid_cents < total_cents - credit_applied_cents
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("account_id", "document_number", name="uq_sales_account_docnum"),
        db.Index("ix_sales_account_occurred", "account_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    # Human-readable document number (e.g., "SALE-0001")
    document_number = db.Column(db.String(64), nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    # Amounts (all in cents)
    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)
    credit_applied_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False)
    split_payment_method = db.Column(db.String(16), nullable=True)
    amount_paid_cents = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    lines = db.relationship("SaleLine", backref="sale", lazy="selectin", order_by="SaleLine.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "customer_id": self.customer_id,
            "document_number": self.document_number,
            "occurred_at": to_utc_z(self.occurred_at),
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "credit_applied_cents": self.credit_applied_cents,
            "payment_method": self.payment_method,
            "split_payment_method": self.split_payment_method,
            "amount_paid_cents": self.amount_paid_cents,
            "lines": [line.to_dict() for line in self.lines],
        }


class SaleLine(db.Model):
    """Individual line items on a sale document."""
    __tablename__ = "sale_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    # Production price at the time of sale (COGS for the P&L)
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    line_total_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "item_id": self.item_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "unit_cost_cents": self.unit_cost_cents,
            "line_total_cents": self.line_total_cents,
        }
