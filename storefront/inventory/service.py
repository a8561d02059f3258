from typing import Dict, Iterable, Optional
import json
import logging

import sqlalchemy as sa

from .ledger import stock_levels
from .model import Product
from ..common.config import settings
from ..common.database import session_scope
from ..common.redis_client import get_redis

_logger = logging.getLogger(__name__)


def redis_stock_key(product_id: int) -> str:
    return f"product:{product_id}:stock"


async def get_product_stock(product_id: int) -> Optional[int]:
    async with session_scope() as session:
        res = await session.execute(sa.select(Product.stock).where(Product.id == product_id))
        row = res.first()
        return int(row[0]) if row else None


async def get_stock(product_id: int) -> Optional[int]:
    try:
        r = await get_redis()
        cached = await r.get(redis_stock_key(product_id))
    except Exception as e:
        _logger.warning("Stock cache unavailable | product_id=%s err=%s", product_id, e)
        return await get_product_stock(product_id)
    if cached is not None:
        try:
            value = int(cached)
            _logger.debug("Cache hit: stock | product_id=%s stock=%s", product_id, value)
            return value
        except ValueError:
            pass
    # fallback to DB
    stock = await get_product_stock(product_id)
    _logger.info("DB get stock | product_id=%s stock=%s (cache miss)", product_id, stock)
    if stock is not None:
        try:
            await r.set(redis_stock_key(product_id), stock)
        except Exception as e:
            _logger.warning("Stock cache write failed | product_id=%s err=%s", product_id, e)
    return stock


async def publish_stock(product_ids: Iterable[int]) -> Dict[int, int]:
    """Refresh cached stock for ``product_ids`` and announce it on the stock channel.

    Runs after the database commit; failures are logged and swallowed so the
    committed change is never reported as failed.
    """
    ids = sorted(set(product_ids))
    levels: Dict[int, int] = {}
    try:
        async with session_scope() as session:
            levels = await stock_levels(session, ids)
        if not levels:
            return levels
        r = await get_redis()
        for product_id, stock in levels.items():
            await r.set(redis_stock_key(product_id), stock)
            await r.publish(settings.REDIS_STOCK_CHANNEL, json.dumps({"product_id": product_id, "stock": stock}))
        _logger.info("Published stock update via Redis | products=%s channel=%s", sorted(levels), settings.REDIS_STOCK_CHANNEL)
    except Exception as e:
        _logger.warning("Stock publish failed | products=%s err=%s", ids, e)
    return levels
