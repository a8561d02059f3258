import logging
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .model import Category
from ..common.database import session_scope
from ..common.errors import BadRequest, NotFound
from ..common.slugs import to_slug, unique_slug

_logger = logging.getLogger(__name__)


class CreateCategoryRequest(BaseModel):
    name: str = Field(min_length=2)
    slug: Optional[str] = Field(default=None, min_length=2)
    # present => create a subcategory
    parent_slug: Optional[str] = None


class UpdateCategoryRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    slug: Optional[str] = Field(default=None, min_length=2)
    is_active: Optional[bool] = None
    regenerate_slug: Optional[bool] = None
    # null or "" moves the category to the top level
    parent_slug: Optional[str] = None


async def find_active(session: AsyncSession, slug: str) -> Optional[Category]:
    res = await session.execute(
        sa.select(Category).where(Category.slug == slug, Category.is_active.is_(True))
    )
    return res.scalar_one_or_none()


async def list_categories() -> List[Category]:
    async with session_scope() as session:
        res = await session.execute(
            sa.select(Category)
            .where(Category.is_active.is_(True))
            # top-level (null parent) first, then by name
            .order_by(Category.parent_id.is_not(None), Category.parent_id, Category.name)
        )
        return list(res.scalars().all())


def build_tree(categories: List[Category]) -> List[Dict[str, Any]]:
    nodes = {c.id: {**c.to_dict(), "children": []} for c in categories}
    roots = []
    for c in categories:
        node = nodes[c.id]
        if c.parent_id is None:
            roots.append(node)
        elif c.parent_id in nodes:
            nodes[c.parent_id]["children"].append(node)
    return roots


async def category_tree() -> List[Dict[str, Any]]:
    async with session_scope() as session:
        res = await session.execute(
            sa.select(Category).where(Category.is_active.is_(True)).order_by(Category.name)
        )
        return build_tree(list(res.scalars().all()))


async def get_category(slug: str) -> Category:
    async with session_scope() as session:
        category = await find_active(session, slug)
    if category is None:
        raise NotFound()
    return category


async def list_subcategories(slug: str) -> List[Category]:
    async with session_scope() as session:
        parent = await find_active(session, slug)
        if parent is None:
            raise NotFound("Parent not found")
        res = await session.execute(
            sa.select(Category)
            .where(Category.parent_id == parent.id, Category.is_active.is_(True))
            .order_by(Category.name)
        )
        return list(res.scalars().all())


async def create_category(data: CreateCategoryRequest) -> Category:
    async with session_scope() as session:
        async with session.begin():
            parent_id = None
            if data.parent_slug:
                parent = await find_active(session, data.parent_slug)
                if parent is None:
                    raise BadRequest("Parent category not found")
                parent_id = parent.id

            base = to_slug(data.slug) if data.slug else data.name
            category = Category(
                name=data.name,
                slug=await unique_slug(session, Category, base),
                parent_id=parent_id,
            )
            session.add(category)
            await session.flush()
    _logger.info("Category created | slug=%s parent_id=%s", category.slug, category.parent_id)
    return category


async def update_category(slug: str, data: UpdateCategoryRequest) -> Category:
    fields = data.model_dump(exclude_unset=True)
    async with session_scope() as session:
        async with session.begin():
            res = await session.execute(sa.select(Category).where(Category.slug == slug))
            current = res.scalar_one_or_none()
            if current is None:
                raise NotFound()

            if data.name is not None:
                current.name = data.name

            if "parent_slug" in fields:
                if not data.parent_slug:
                    current.parent_id = None
                else:
                    parent = await find_active(session, data.parent_slug)
                    if parent is None:
                        raise BadRequest("Parent category not found")
                    if parent.id == current.id:
                        raise BadRequest("Category cannot be its own parent")
                    current.parent_id = parent.id

            if data.slug:
                current.slug = await unique_slug(session, Category, data.slug, current.id)
            elif data.regenerate_slug and data.name:
                current.slug = await unique_slug(session, Category, data.name, current.id)

            if data.is_active is not None:
                current.is_active = data.is_active
            await session.flush()
    return current


async def delete_category(slug: str) -> None:
    async with session_scope() as session:
        async with session.begin():
            res = await session.execute(
                sa.update(Category).where(Category.slug == slug).values(is_active=False)
            )
            if not res.rowcount:
                raise NotFound()
    _logger.info("Category deactivated | slug=%s", slug)
