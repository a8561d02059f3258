import logging
from typing import List, Optional

import sqlalchemy as sa

from .model import Order, OrderStatus, PaymentStatus
from ..auth.security import Identity
from ..common.database import session_scope
from ..common.errors import Forbidden, NotFound

_logger = logging.getLogger(__name__)


def ensure_can_view(order: Order, identity: Identity) -> None:
    if order.user_id != identity.id and not identity.is_admin:
        raise Forbidden()


async def get_order(order_id: int, identity: Identity) -> Order:
    async with session_scope() as session:
        order = await session.get(Order, order_id)
    if order is None:
        raise NotFound()
    ensure_can_view(order, identity)
    return order


async def list_orders(user_id: Optional[int] = None) -> List[Order]:
    """Newest first; every order when ``user_id`` is None."""
    stmt = sa.select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if user_id is not None:
        stmt = stmt.where(Order.user_id == user_id)
    async with session_scope() as session:
        res = await session.execute(stmt)
        return list(res.scalars().all())


async def update_order_status(
    order_id: int,
    status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
) -> Order:
    """Admin override. Any value may replace any other; no transition rules apply."""
    async with session_scope() as session:
        async with session.begin():
            order = await session.get(Order, order_id)
            if order is None:
                raise NotFound()
            if status is not None:
                order.status = status.value
            if payment_status is not None:
                order.payment_status = payment_status.value
        await session.refresh(order)
    _logger.info(
        "Order status updated | order_id=%s status=%s payment_status=%s",
        order.id,
        order.status,
        order.payment_status,
    )
    return order
