"""Stock mutations for checkout and cancellation.

Both operations run on the caller's session so they join its transaction.
Each is a single UPDATE statement; stock is never read and written back.
"""

import logging
from typing import Iterable, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from .model import Product
from ..common.errors import StockConflict

_logger = logging.getLogger(__name__)


async def try_decrement(session: AsyncSession, product_id: int, quantity: int) -> bool:
    """Atomically decrement stock if at least ``quantity`` is left. Returns True on success."""
    stmt = (
        sa.update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return (res.rowcount or 0) > 0


async def decrement(session: AsyncSession, product_id: int, quantity: int, slug: Optional[str] = None) -> None:
    if not await try_decrement(session, product_id, quantity):
        _logger.warning("Stock conflict | product_id=%s qty=%s", product_id, quantity)
        raise StockConflict(slug or str(product_id))


async def increment(session: AsyncSession, product_id: int, quantity: int) -> int:
    """Unconditionally add ``quantity`` back. Returns the number of rows touched."""
    stmt = (
        sa.update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount or 0


async def stock_levels(session: AsyncSession, product_ids: Iterable[int]) -> dict:
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    res = await session.execute(sa.select(Product.id, Product.stock).where(Product.id.in_(ids)))
    return {int(pid): int(stock) for pid, stock in res.all()}
