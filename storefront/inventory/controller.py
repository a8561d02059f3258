from quart import Blueprint, jsonify

from .service import get_stock
from ..common.errors import NotFound

bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@bp.get("/<int:product_id>")
async def stock_get(product_id: int):
    stock = await get_stock(product_id)
    if stock is None:
        raise NotFound("Product not found")
    return jsonify({"product_id": product_id, "stock": stock})
