from dataclasses import dataclass
from typing import List

import sqlalchemy as sa

from ..cart.model import Cart
from ..common.database import session_scope
from ..common.errors import EmptyCart, InsufficientStock, ProductUnavailable
from ..inventory.model import Product


@dataclass(frozen=True)
class CartLine:
    product: Product
    qty: int


@dataclass(frozen=True)
class CartSnapshot:
    cart_id: int
    user_id: int
    lines: List[CartLine]


async def read_cart(user_id: int) -> CartSnapshot:
    """Load the user's cart with live product data and check it can be bought.

    Read-only. Stock is checked again by the conditional decrement at commit.
    """
    async with session_scope() as session:
        res = await session.execute(sa.select(Cart).where(Cart.user_id == user_id))
        cart = res.scalar_one_or_none()
        if cart is None or not cart.items:
            raise EmptyCart()

        lines: List[CartLine] = []
        for item in cart.items:
            product = item.product
            if product is None or not product.is_active:
                raise ProductUnavailable()
            if product.stock < item.qty:
                raise InsufficientStock(product.slug, item.qty, product.stock)
            lines.append(CartLine(product=product, qty=item.qty))
        return CartSnapshot(cart_id=cart.id, user_id=user_id, lines=lines)
