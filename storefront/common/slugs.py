import re
import unicodedata
from typing import Optional, Type
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession


def to_slug(value: Optional[str]) -> str:
    condensed = " ".join(str(value or "").split()).lower()
    ascii_name = (
        unicodedata.normalize("NFKD", condensed)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name).strip("-")
    if not slug:
        slug = uuid4().hex
    return slug


async def unique_slug(
    session: AsyncSession, model: Type, base_text: str, exclude_id: Optional[int] = None
) -> str:
    """Slugify ``base_text`` and suffix -2, -3, ... until no other row of ``model`` uses it."""
    base = to_slug(base_text)
    candidate = base
    n = 2
    while True:
        stmt = sa.select(model.id).where(model.slug == candidate)
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        res = await session.execute(stmt)
        if res.first() is None:
            return candidate
        candidate = f"{base}-{n}"
        n += 1
