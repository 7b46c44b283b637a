# Overview: Flask API routes for catalog items; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_account
from ..errors import NotFound
from ..services import inventory_service
from ..services.inventory_service import InventoryError

items_bp = Blueprint("items", __name__, url_prefix="/api/items")


@items_bp.get("/")
@require_account
def list_items_route():
    items = inventory_service.list_items(g.account_id)
    return jsonify({"items": [i.to_dict() for i in items]}), 200


@items_bp.post("/")
@require_account
def add_item_route():
    """
    Request body:
    {
        "title": "Gitanjali",
        "author": "Rabindranath Tagore",
        "production_price_cents": 20000,
        "selling_price_cents": 35000,
        "stock": 10
    }
    """
    try:
        data = request.get_json() or {}
        item = inventory_service.add_item(
            g.account_id,
            title=data.get("title"),
            author=data.get("author"),
            production_price_cents=data.get("production_price_cents", 0),
            selling_price_cents=data.get("selling_price_cents", 0),
            stock=data.get("stock", 0),
        )
        return jsonify({"item": item.to_dict()}), 201
    except InventoryError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.get("/<int:item_id>")
@require_account
def get_item_route(item_id: int):
    try:
        return jsonify({"item": inventory_service.get_item(g.account_id, item_id).to_dict()}), 200
    except NotFound as e:
        return jsonify({"error": str(e)}), 404


@items_bp.patch("/<int:item_id>")
@require_account
def update_item_route(item_id: int):
    try:
        data = request.get_json() or {}
        item = inventory_service.update_item(g.account_id, item_id, **data)
        return jsonify({"item": item.to_dict()}), 200
    except InventoryError as e:
        return jsonify({"error": str(e)}), 400
    except NotFound as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update item")
        return jsonify({"error": "Internal server error"}), 500
