import asyncio
import logging
from decimal import Decimal

import sqlalchemy as sa

from .auth.model import User, ROLE_ADMIN
from .auth.security import hash_password
from .catalog.model import Category
from .common.config import settings
from .common.database import init_db, session_scope
from .common.slugs import to_slug
from .inventory.model import Product
from .inventory.service import publish_stock

_logger = logging.getLogger(__name__)

SAMPLE_CATEGORIES = {
    "Electronics": ["Computers", "Audio", "Accessories"],
    "Home": ["Kitchen"],
}

SAMPLE_PRODUCTS = [
    {"title": "Laptop Pro 14", "stock": 20, "price": "1499.00", "category": "Electronics", "sub": "Computers"},
    {"title": "Wireless Mouse", "stock": 150, "price": "24.99", "category": "Electronics", "sub": "Accessories"},
    {"title": "Mechanical Keyboard", "stock": 80, "price": "89.99", "category": "Electronics", "sub": "Accessories"},
    {"title": "USB-C Hub", "stock": 120, "price": "39.99", "category": "Electronics", "sub": "Accessories"},
    {"title": "Noise-cancelling Headphones", "stock": 35, "price": "199.99", "category": "Electronics", "sub": "Audio"},
    {"title": "Bluetooth Speaker", "stock": 40, "price": "59.99", "category": "Electronics", "sub": "Audio"},
    {"title": "Chef Knife 8\"", "stock": 30, "price": "49.50", "category": "Home", "sub": "Kitchen"},
]


async def _ensure_admin(session) -> bool:
    email = settings.ADMIN_EMAIL.lower()
    res = await session.execute(sa.select(User.id).where(User.email == email))
    if res.first():
        return False
    session.add(
        User(
            name=settings.ADMIN_NAME,
            email=email,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role=ROLE_ADMIN,
        )
    )
    return True


async def _ensure_category(session, name: str, parent_id=None) -> Category:
    slug = to_slug(name)
    res = await session.execute(sa.select(Category).where(Category.slug == slug))
    category = res.scalar_one_or_none()
    if category is None:
        category = Category(name=name, slug=slug, parent_id=parent_id)
        session.add(category)
        await session.flush()
    return category


async def seed() -> int:
    await init_db()
    added = 0
    async with session_scope() as session:
        async with session.begin():
            if await _ensure_admin(session):
                _logger.info("Admin user created | email=%s", settings.ADMIN_EMAIL)

            by_name = {}
            for top, children in SAMPLE_CATEGORIES.items():
                parent = await _ensure_category(session, top)
                by_name[top] = parent
                for child in children:
                    by_name[child] = await _ensure_category(session, child, parent.id)

            for p in SAMPLE_PRODUCTS:
                slug = to_slug(p["title"])
                # avoid duplicates by slug
                res = await session.execute(sa.select(Product.id).where(Product.slug == slug))
                if res.first():
                    continue
                session.add(
                    Product(
                        title=p["title"],
                        slug=slug,
                        price=Decimal(p["price"]),
                        stock=p["stock"],
                        images=[],
                        category_id=by_name[p["category"]].id,
                        subcategory_id=by_name[p["sub"]].id,
                    )
                )
                added += 1
        res = await session.execute(sa.select(Product.id))
        product_ids = [row[0] for row in res.all()]
    _logger.info("Seed complete | added_products=%s", added)

    # Warm the stock cache
    await publish_stock(product_ids)
    return added


async def amain():
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    await seed()


if __name__ == "__main__":
    asyncio.run(amain())
