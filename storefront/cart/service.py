import logging
from decimal import Decimal
from typing import Any, Dict

import sqlalchemy as sa
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .model import Cart, CartItem
from ..common.database import session_scope
from ..common.db import utcnow
from ..common.errors import BadRequest, NotFound
from ..inventory.model import Product
from ..common.money import round2

_logger = logging.getLogger(__name__)

MAX_LINE_QTY = 999


class AddItemRequest(BaseModel):
    product_slug: str = Field(min_length=1)
    qty: int = Field(ge=1, le=MAX_LINE_QTY)


class UpdateItemRequest(BaseModel):
    qty: int = Field(ge=1, le=MAX_LINE_QTY)


async def _get_or_create_cart(session: AsyncSession, user_id: int) -> Cart:
    res = await session.execute(sa.select(Cart).where(Cart.user_id == user_id))
    cart = res.scalar_one_or_none()
    if cart is None:
        cart = Cart(user_id=user_id, items=[])
        session.add(cart)
        await session.flush()
    return cart


async def _find_product(session: AsyncSession, slug: str, active_only: bool = True) -> Product:
    stmt = sa.select(Product).where(Product.slug == slug)
    if active_only:
        stmt = stmt.where(Product.is_active.is_(True))
    res = await session.execute(stmt)
    product = res.scalar_one_or_none()
    if product is None:
        raise NotFound("Product not found")
    return product


def _find_line(cart: Cart, product_id: int) -> CartItem:
    for item in cart.items:
        if item.product_id == product_id:
            return item
    raise NotFound("Item not in cart")


def summarize(cart: Cart) -> Dict[str, Any]:
    """Cart view priced from live product data."""
    items = []
    running = Decimal("0")
    for item in cart.items:
        p = item.product
        line_total = round2(p.price * item.qty)
        running += line_total
        items.append(
            {
                "slug": p.slug,
                "title": p.title,
                "price": float(p.price),
                "stock": p.stock,
                "qty": item.qty,
                "line_total": float(line_total),
            }
        )
    return {"cart": {"items": items}, "subtotal": float(round2(running))}


async def get_cart(user_id: int) -> Dict[str, Any]:
    async with session_scope() as session:
        async with session.begin():
            cart = await _get_or_create_cart(session, user_id)
        return summarize(cart)


async def add_item(user_id: int, data: AddItemRequest) -> Dict[str, Any]:
    async with session_scope() as session:
        async with session.begin():
            product = await _find_product(session, data.product_slug)
            if product.stock < 1:
                raise BadRequest("Out of stock")
            cart = await _get_or_create_cart(session, user_id)
            existing = next((i for i in cart.items if i.product_id == product.id), None)
            new_qty = data.qty + (existing.qty if existing else 0)
            if new_qty > product.stock:
                raise BadRequest("Exceeds available stock")
            if existing:
                existing.qty = new_qty
            else:
                cart.items.append(CartItem(product_id=product.id, qty=new_qty, product=product))
            cart.updated_at = utcnow()
        _logger.info("Cart item added | user_id=%s product=%s qty=%s", user_id, product.slug, new_qty)
        return summarize(cart)


async def update_item(user_id: int, product_slug: str, data: UpdateItemRequest) -> Dict[str, Any]:
    async with session_scope() as session:
        async with session.begin():
            product = await _find_product(session, product_slug)
            if data.qty > product.stock:
                raise BadRequest("Exceeds available stock")
            cart = await _get_or_create_cart(session, user_id)
            _find_line(cart, product.id).qty = data.qty
            cart.updated_at = utcnow()
        return summarize(cart)


async def remove_item(user_id: int, product_slug: str) -> Dict[str, Any]:
    async with session_scope() as session:
        async with session.begin():
            product = await _find_product(session, product_slug, active_only=False)
            cart = await _get_or_create_cart(session, user_id)
            cart.items.remove(_find_line(cart, product.id))
            cart.updated_at = utcnow()
        return summarize(cart)


async def clear_cart(user_id: int) -> None:
    async with session_scope() as session:
        async with session.begin():
            cart = await _get_or_create_cart(session, user_id)
            cart.items.clear()
            cart.updated_at = utcnow()
    _logger.info("Cart cleared | user_id=%s", user_id)
