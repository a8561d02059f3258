from quart import Blueprint, jsonify

from .service import AddItemRequest, UpdateItemRequest, add_item, clear_cart, get_cart, remove_item, update_item
from ..auth.guards import current_identity, require_auth
from ..common.validation import validate_body

bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@bp.get("")
@require_auth
async def cart_get():
    return jsonify(await get_cart(current_identity().id))


@bp.post("/items")
@require_auth
async def cart_item_add():
    result = await validate_body(AddItemRequest)
    if not result.ok:
        raise result.to_error()
    return jsonify(await add_item(current_identity().id, result.value)), 201


@bp.patch("/items/<product_slug>")
@require_auth
async def cart_item_update(product_slug: str):
    result = await validate_body(UpdateItemRequest)
    if not result.ok:
        raise result.to_error()
    return jsonify(await update_item(current_identity().id, product_slug, result.value))


@bp.delete("/items/<product_slug>")
@require_auth
async def cart_item_remove(product_slug: str):
    return jsonify(await remove_item(current_identity().id, product_slug))


@bp.delete("")
@require_auth
async def cart_clear():
    await clear_cart(current_identity().id)
    return jsonify({"ok": True})
