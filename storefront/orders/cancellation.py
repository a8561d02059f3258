import logging

import sqlalchemy as sa
from sqlalchemy.orm.attributes import set_committed_value

from .model import Order, OrderStatus, PaymentStatus
from .service import ensure_can_view
from ..auth.security import Identity
from ..common.database import session_scope
from ..common.db import utcnow
from ..common.errors import AlreadyCancelled, ApiError, CancelFailed, CancelNotAllowed, NotFound
from ..common.metrics import ORDERS_CANCELLED
from ..inventory import ledger
from ..inventory.service import publish_stock

_logger = logging.getLogger(__name__)


def check_cancellable(order: Order) -> None:
    if order.cancelled:
        raise AlreadyCancelled()
    if order.payment_status != PaymentStatus.UNPAID.value or order.status != OrderStatus.PENDING.value:
        raise CancelNotAllowed()


async def _mark_cancelled(session, order: Order) -> bool:
    # Conditional on the same eligibility rules, so concurrent cancels restore stock once
    now = utcnow()
    stmt = (
        sa.update(Order)
        .where(
            Order.id == order.id,
            Order.cancelled.is_(False),
            Order.status == OrderStatus.PENDING.value,
            Order.payment_status == PaymentStatus.UNPAID.value,
        )
        .values(cancelled=True, cancelled_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    if not res.rowcount:
        return False
    # mirror the row in memory; nothing is read back after commit
    for key, value in (("cancelled", True), ("cancelled_at", now), ("updated_at", now)):
        set_committed_value(order, key, value)
    return True


async def cancel_order(order_id: int, identity: Identity) -> Order:
    """Cancel a pending, unpaid order and put its quantities back in stock.

    Admins may cancel any order but are held to the same pending/unpaid rule.
    """
    try:
        async with session_scope() as session:
            async with session.begin():
                order = await session.get(Order, order_id)
                if order is None:
                    raise NotFound()
                ensure_can_view(order, identity)
                check_cancellable(order)

                if not await _mark_cancelled(session, order):
                    raise CancelFailed("Order changed while cancelling")
                for item in order.items:
                    await ledger.increment(session, item.product_id, item.qty)
    except ApiError:
        raise
    except Exception as exc:
        _logger.warning("Cancel rolled back | order_id=%s err=%s", order_id, exc)
        raise CancelFailed() from exc

    ORDERS_CANCELLED.inc()
    _logger.info("Order cancelled | order_id=%s by=%s items=%s", order.id, identity.id, len(order.items))
    await publish_stock(item.product_id for item in order.items)
    return order
