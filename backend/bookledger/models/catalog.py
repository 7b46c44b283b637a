from __future__ import annotations

from ..extensions import db
from bookledger.time_utils import to_utc_z


class Item(db.Model):
    """
    Book (or other stocked item) in the catalog.

    WHY: stock is a mutable on-hand quantity updated by sales, purchases and
    returns. It may never go negative; the mutation services check it under a
    row lock before writing, and the CHECK constraint backs that up.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
        db.Index("ix_items_account_title", "account_id", "title"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    title = db.Column(db.String(255), nullable=False)
    author = db.Column(db.String(255), nullable=True)

    production_price_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "title": self.title,
            "author": self.author,
            "production_price_cents": self.production_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
        }
