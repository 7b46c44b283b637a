from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class SalesReturn(db.Model):
    """
    Goods returned by a customer.

    REFUND METHODS:
    - ADJUST_DUE: credited against the customer's due balance (no cash moves)
    - CASH / BANK: money paid back to the customer from that account
    """
    __tablename__ = "sales_returns"
    __table_args__ = (
        db.UniqueConstraint("account_id", "document_number", name="uq_sales_returns_account_docnum"),
        db.Index("ix_sales_returns_account_occurred", "account_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    document_number = db.Column(db.String(64), nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    total_return_value_cents = db.Column(db.Integer, nullable=False)
    refund_method = db.Column(db.String(16), nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship("SalesReturnLine", backref="sales_return", lazy="selectin", order_by="SalesReturnLine.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "customer_id": self.customer_id,
            "document_number": self.document_number,
            "occurred_at": to_utc_z(self.occurred_at),
            "total_return_value_cents": self.total_return_value_cents,
            "refund_method": self.refund_method,
            "reason": self.reason,
            "lines": [line.to_dict() for line in self.lines],
        }


class SalesReturnLine(db.Model):
    __tablename__ = "sales_return_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(db.Integer, db.ForeignKey("sales_returns.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    # Production price when the goods came back (reverses COGS in the P&L)
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "return_id": self.return_id,
            "item_id": self.item_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "unit_cost_cents": self.unit_cost_cents,
        }
