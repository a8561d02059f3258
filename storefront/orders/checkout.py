import logging
from typing import Any, Dict, Optional

import sqlalchemy as sa

from .builder import OrderDraft, build_draft
from .model import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from .snapshot import read_cart
from ..cart.model import Cart, CartItem
from ..common.database import session_scope
from ..common.db import utcnow
from ..common.errors import CheckoutFailed
from ..common.metrics import CHECKOUT_FAILURES, ORDERS_PLACED
from ..inventory import ledger
from ..inventory.service import publish_stock

_logger = logging.getLogger(__name__)


def _order_from_draft(draft: OrderDraft) -> Order:
    order = Order(
        user_id=draft.user_id,
        subtotal=draft.subtotal,
        shipping_fee=draft.shipping_fee,
        tax=draft.tax,
        grand_total=draft.grand_total,
        shipping_address=draft.shipping_address,
        payment_method=draft.payment_method,
        payment_status=PaymentStatus.UNPAID.value,
        status=OrderStatus.PENDING.value,
        cancelled=False,
    )
    order.items = [
        OrderItem(
            product_id=item.product_id,
            title=item.title,
            slug=item.slug,
            price=item.price,
            qty=item.qty,
            line_total=item.line_total,
        )
        for item in draft.items
    ]
    return order


async def commit_order(draft: OrderDraft) -> Order:
    """Decrement stock, persist the order and empty the cart in one transaction.

    Any failure rolls the whole transaction back and is re-raised as
    ``CheckoutFailed`` with the original exception as its cause.
    """
    try:
        async with session_scope() as session:
            async with session.begin():
                for item in draft.items:
                    await ledger.decrement(session, item.product_id, item.qty, slug=item.slug)

                order = _order_from_draft(draft)
                session.add(order)
                await session.flush()

                await session.execute(sa.delete(CartItem).where(CartItem.cart_id == draft.cart_id))
                await session.execute(sa.update(Cart).where(Cart.id == draft.cart_id).values(updated_at=utcnow()))
    except Exception as exc:
        CHECKOUT_FAILURES.labels(reason=type(exc).__name__).inc()
        _logger.warning("Checkout rolled back | user_id=%s cart_id=%s err=%s", draft.user_id, draft.cart_id, exc)
        raise CheckoutFailed(str(exc) or None) from exc

    ORDERS_PLACED.inc()
    _logger.info(
        "Order placed | order_id=%s user_id=%s items=%s grand_total=%s",
        order.id,
        order.user_id,
        len(draft.items),
        order.grand_total,
    )
    await publish_stock(item.product_id for item in draft.items)
    return order


async def place_order(
    user_id: int,
    shipping_address: Optional[Dict[str, Any]] = None,
    payment_method: Optional[PaymentMethod] = None,
) -> Order:
    snapshot = await read_cart(user_id)
    draft = build_draft(snapshot, shipping_address=shipping_address, payment_method=payment_method)
    return await commit_order(draft)
