from quart import Blueprint, jsonify

from .cancellation import cancel_order
from .checkout import place_order
from .schemas import CreateOrderRequest, UpdateOrderStatusRequest
from .service import get_order, list_orders, update_order_status
from ..auth.guards import current_identity, require_admin, require_auth
from ..common.validation import validate_body

bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@bp.post("")
@require_auth
async def order_create():
    result = await validate_body(CreateOrderRequest)
    if not result.ok:
        raise result.to_error()
    body = result.value
    address = body.shipping_address.model_dump(exclude_none=True) if body.shipping_address else None
    order = await place_order(current_identity().id, shipping_address=address, payment_method=body.payment_method)
    return jsonify({"order": order.to_dict()}), 201


@bp.get("")
@require_auth
async def my_orders():
    orders = await list_orders(user_id=current_identity().id)
    return jsonify({"items": [o.to_dict() for o in orders]})


@bp.get("/admin/all")
@require_auth
@require_admin
async def all_orders():
    orders = await list_orders()
    return jsonify({"items": [o.to_dict() for o in orders]})


@bp.get("/<int:order_id>")
@require_auth
async def order_detail(order_id: int):
    order = await get_order(order_id, current_identity())
    return jsonify({"order": order.to_dict()})


@bp.patch("/<int:order_id>/status")
@require_auth
@require_admin
async def order_status_patch(order_id: int):
    result = await validate_body(UpdateOrderStatusRequest)
    if not result.ok:
        raise result.to_error()
    order = await update_order_status(order_id, result.value.status, result.value.payment_status)
    return jsonify({"order": order.to_dict()})


@bp.delete("/<int:order_id>")
@require_auth
async def order_cancel(order_id: int):
    await cancel_order(order_id, current_identity())
    return jsonify({"ok": True})
