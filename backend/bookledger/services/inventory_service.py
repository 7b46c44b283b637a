# Overview: Service-layer operations for the book catalog and on-hand stock.

"""
Inventory invariants (authoritative)

- Item.stock is the mutable on-hand quantity. It may never go negative.
- Sales decrement stock, purchases (BOOK lines) and sales returns
  increment it. Every change happens under a row lock inside the caller's
  transaction so two concurrent sales cannot both take the last copy.
- Prices are integer cents; production price is the unit cost used for
  COGS and for stock valuation.
"""

from __future__ import annotations

import logging

from ..errors import InvariantViolation
from ..extensions import db
from ..models import Item
from .concurrency import lock_for_update, run_with_retry
from .record_store import get_scoped

logger = logging.getLogger(__name__)


class InventoryError(InvariantViolation):
    """Raised for catalog and stock errors."""
    pass


EDITABLE_ITEM_FIELDS = ("title", "author", "production_price_cents", "selling_price_cents")


def _validate_price(name: str, value) -> int:
    if value is None:
        return 0
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InventoryError(f"{name} must be a non-negative integer (cents)")
    return value


def add_item(
    account_id: int,
    title: str,
    author: str | None = None,
    production_price_cents: int = 0,
    selling_price_cents: int = 0,
    stock: int = 0,
) -> Item:
    """Create a catalog item with an opening stock quantity."""
    title = (title or "").strip()
    if not title:
        raise InventoryError("title is required")
    production_price_cents = _validate_price("production_price_cents", production_price_cents)
    selling_price_cents = _validate_price("selling_price_cents", selling_price_cents)
    if not isinstance(stock, int) or isinstance(stock, bool) or stock < 0:
        raise InventoryError("stock must be a non-negative integer")

    item = Item(
        account_id=account_id,
        title=title,
        author=author,
        production_price_cents=production_price_cents,
        selling_price_cents=selling_price_cents,
        stock=stock,
    )
    db.session.add(item)
    db.session.commit()
    logger.info("Added item %s (%s) to account %s", item.id, title, account_id)
    return item


def update_item(account_id: int, item_id: int, **fields) -> Item:
    """
    Edit catalog fields. Stock is not editable here; it only moves through
    sales, purchases and returns.
    """
    unknown = sorted(set(fields) - set(EDITABLE_ITEM_FIELDS))
    if unknown:
        raise InventoryError(f"Cannot update fields: {unknown}")

    def _op():
        item = get_scoped(Item, account_id, item_id, lock=True)
        if "title" in fields:
            title = (fields["title"] or "").strip()
            if not title:
                raise InventoryError("title is required")
            item.title = title
        if "author" in fields:
            item.author = fields["author"]
        for price_field in ("production_price_cents", "selling_price_cents"):
            if price_field in fields:
                setattr(item, price_field, _validate_price(price_field, fields[price_field]))
        db.session.commit()
        return item

    return run_with_retry(_op)


def get_item(account_id: int, item_id: int) -> Item:
    return get_scoped(Item, account_id, item_id)


def list_items(account_id: int) -> list[Item]:
    return db.session.query(Item).filter_by(account_id=account_id).order_by(Item.title.asc()).all()


def lock_items(account_id: int, item_ids) -> dict[int, Item]:
    """
    Lock every referenced item of the caller's account.

    Raises:
        InventoryError: if an item does not exist in the account
    """
    ids = sorted(set(item_ids))
    rows = lock_for_update(
        db.session.query(Item).filter(Item.account_id == account_id, Item.id.in_(ids))
    ).all()
    found = {row.id: row for row in rows}
    missing = [i for i in ids if i not in found]
    if missing:
        raise InventoryError(f"Items not found: {missing}", details={"item_ids": missing})
    return found


def take_stock(item: Item, quantity: int) -> None:
    """Remove quantity from a locked item, refusing to go below zero."""
    if quantity <= 0:
        raise InventoryError("quantity must be positive")
    if item.stock < quantity:
        raise InventoryError(
            f"Insufficient stock for '{item.title}': on hand {item.stock}, requested {quantity}",
            details={"item_id": item.id, "on_hand": item.stock, "requested": quantity},
        )
    item.stock -= quantity


def put_stock(item: Item, quantity: int) -> None:
    if quantity <= 0:
        raise InventoryError("quantity must be positive")
    item.stock += quantity
