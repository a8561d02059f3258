import logging
from decimal import Decimal
from typing import List, Optional, Tuple

import sqlalchemy as sa
from pydantic import BaseModel, Field, HttpUrl
from sqlalchemy.ext.asyncio import AsyncSession

from .categories import find_active
from ..common.database import session_scope
from ..common.errors import BadRequest, NotFound
from ..common.money import round2
from ..common.slugs import to_slug, unique_slug
from ..inventory.model import Product
from ..inventory.service import publish_stock

_logger = logging.getLogger(__name__)


class CreateProductRequest(BaseModel):
    title: str = Field(min_length=2)
    slug: Optional[str] = Field(default=None, min_length=2)
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    images: List[HttpUrl] = Field(default_factory=list)
    category_slug: Optional[str] = None
    subcategory_slug: Optional[str] = None


class UpdateProductRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2)
    slug: Optional[str] = Field(default=None, min_length=2)
    regenerate_slug: Optional[bool] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    images: Optional[List[HttpUrl]] = None
    is_active: Optional[bool] = None
    category_slug: Optional[str] = None
    subcategory_slug: Optional[str] = None


async def resolve_category_refs(
    session: AsyncSession, category_slug: Optional[str], subcategory_slug: Optional[str]
) -> Tuple[Optional[int], Optional[int]]:
    """Map category/subcategory slugs to ids; the subcategory must sit under the category."""
    category = subcategory = None
    if category_slug:
        category = await find_active(session, category_slug)
        if category is None:
            raise BadRequest("category_slug not found")
    if subcategory_slug:
        subcategory = await find_active(session, subcategory_slug)
        if subcategory is None:
            raise BadRequest("subcategory_slug not found")
        if subcategory.parent_id is None:
            raise BadRequest("subcategory_slug is not a subcategory")
    if category and subcategory and subcategory.parent_id != category.id:
        raise BadRequest("subcategory does not belong to the given category")
    return (category.id if category else None, subcategory.id if subcategory else None)


async def _load(session: AsyncSession, product_id: int) -> Product:
    res = await session.execute(
        sa.select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    )
    return res.scalar_one()


async def list_products(category_slug: Optional[str] = None, subcategory_slug: Optional[str] = None) -> List[Product]:
    async with session_scope() as session:
        stmt = sa.select(Product).where(Product.is_active.is_(True))
        if category_slug:
            category = await find_active(session, category_slug)
            if category is None:
                raise BadRequest("category not found")
            stmt = stmt.where(Product.category_id == category.id)
        if subcategory_slug:
            subcategory = await find_active(session, subcategory_slug)
            if subcategory is None:
                raise BadRequest("subcategory not found")
            stmt = stmt.where(Product.subcategory_id == subcategory.id)
        res = await session.execute(stmt.order_by(Product.created_at.desc(), Product.id.desc()))
        return list(res.scalars().all())


async def get_product(slug: str) -> Product:
    async with session_scope() as session:
        res = await session.execute(
            sa.select(Product).where(Product.slug == slug, Product.is_active.is_(True))
        )
        product = res.scalar_one_or_none()
    if product is None:
        raise NotFound()
    return product


async def create_product(data: CreateProductRequest) -> Product:
    async with session_scope() as session:
        async with session.begin():
            base = to_slug(data.slug) if data.slug else data.title
            slug = await unique_slug(session, Product, base)
            category_id, subcategory_id = await resolve_category_refs(
                session, data.category_slug, data.subcategory_slug
            )
            product = Product(
                title=data.title,
                slug=slug,
                description=data.description,
                price=round2(data.price),
                stock=data.stock,
                images=[str(url) for url in data.images],
                category_id=category_id,
                subcategory_id=subcategory_id,
            )
            session.add(product)
            await session.flush()
            product = await _load(session, product.id)
    _logger.info("Product created | product_id=%s slug=%s stock=%s", product.id, product.slug, product.stock)
    return product


async def update_product(slug: str, data: UpdateProductRequest) -> Product:
    fields = data.model_dump(exclude_unset=True)
    async with session_scope() as session:
        async with session.begin():
            res = await session.execute(sa.select(Product).where(Product.slug == slug))
            current = res.scalar_one_or_none()
            if current is None:
                raise NotFound()

            if data.title is not None:
                current.title = data.title

            if data.slug:
                current.slug = await unique_slug(session, Product, data.slug, current.id)
            elif data.regenerate_slug and data.title:
                current.slug = await unique_slug(session, Product, data.title, current.id)

            if "category_slug" in fields or "subcategory_slug" in fields:
                current.category_id, current.subcategory_id = await resolve_category_refs(
                    session, data.category_slug, data.subcategory_slug
                )

            if data.description is not None:
                current.description = data.description
            if data.price is not None:
                current.price = round2(data.price)
            if data.stock is not None:
                # admin restock/correction, outside checkout and cancellation
                current.stock = data.stock
            if data.images is not None:
                current.images = [str(url) for url in data.images]
            if data.is_active is not None:
                current.is_active = data.is_active
            await session.flush()
            product = await _load(session, current.id)

    if data.stock is not None:
        await publish_stock([product.id])
    return product


async def delete_product(slug: str) -> None:
    """Soft delete; carts and past orders keep their reference."""
    async with session_scope() as session:
        async with session.begin():
            res = await session.execute(
                sa.update(Product).where(Product.slug == slug).values(is_active=False)
            )
            if not res.rowcount:
                raise NotFound()
    _logger.info("Product deactivated | slug=%s", slug)
