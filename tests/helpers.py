"""Shortcuts for putting rows in place and reading them back."""

from decimal import Decimal

import sqlalchemy as sa

from storefront.auth.model import ROLE_USER, User
from storefront.auth.security import Identity, hash_password, issue_token
from storefront.cart.model import Cart, CartItem
from storefront.common.database import session_scope
from storefront.inventory.model import Product
from storefront.orders.model import Order


async def make_user(email: str = "buyer@example.com", role: str = ROLE_USER, name: str = "Buyer") -> Identity:
    async with session_scope() as session:
        async with session.begin():
            user = User(name=name, email=email, password_hash=hash_password("secret123"), role=role)
            session.add(user)
            await session.flush()
    return Identity(id=user.id, role=user.role)


async def make_product(
    title: str = "Product A",
    slug: str = "product-a",
    price: str = "10.00",
    stock: int = 5,
    is_active: bool = True,
) -> int:
    async with session_scope() as session:
        async with session.begin():
            product = Product(title=title, slug=slug, price=Decimal(price), stock=stock, images=[], is_active=is_active)
            session.add(product)
            await session.flush()
    return product.id


async def fill_cart(user_id: int, *lines) -> int:
    """``lines`` are (product_id, qty) pairs."""
    async with session_scope() as session:
        async with session.begin():
            cart = Cart(user_id=user_id, items=[CartItem(product_id=pid, qty=qty) for pid, qty in lines])
            session.add(cart)
            await session.flush()
    return cart.id


async def stock_of(product_id: int) -> int:
    async with session_scope() as session:
        res = await session.execute(sa.select(Product.stock).where(Product.id == product_id))
        return res.scalar_one()


async def cart_size(user_id: int) -> int:
    async with session_scope() as session:
        res = await session.execute(
            sa.select(sa.func.count(CartItem.id)).join(Cart).where(Cart.user_id == user_id)
        )
        return res.scalar_one()


async def order_count() -> int:
    async with session_scope() as session:
        res = await session.execute(sa.select(sa.func.count(Order.id)))
        return res.scalar_one()


async def set_stock(product_id: int, stock: int) -> None:
    async with session_scope() as session:
        async with session.begin():
            await session.execute(sa.update(Product).where(Product.id == product_id).values(stock=stock))


async def set_price(product_id: int, price: str) -> None:
    async with session_scope() as session:
        async with session.begin():
            await session.execute(sa.update(Product).where(Product.id == product_id).values(price=Decimal(price)))


async def set_order_state(order_id: int, **values) -> None:
    async with session_scope() as session:
        async with session.begin():
            await session.execute(sa.update(Order).where(Order.id == order_id).values(**values))


def auth_headers(identity: Identity) -> dict:
    return {"Authorization": f"Bearer {issue_token(identity.id, identity.role)}"}
