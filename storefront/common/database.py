from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from .config import settings
from .db import Base
from ..auth.model import User  # noqa: F401
from ..catalog.model import Category  # noqa: F401
from ..inventory.model import Product  # noqa: F401
from ..cart.model import Cart, CartItem  # noqa: F401
from ..orders.model import Order, OrderItem  # noqa: F401


def _engine_kwargs(url: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"future": True, "echo": settings.DB_ECHO}
    if url.startswith("sqlite"):
        # Writers queue on the database lock instead of failing fast
        kwargs["connect_args"] = {"timeout": 30}
    return kwargs


# Async SQLAlchemy engine and session factory
engine = create_async_engine(settings.DB_URL, **_engine_kwargs(settings.DB_URL))
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def session_scope() -> AsyncSession:
    """Open a session; use as ``async with session_scope() as session``."""
    return AsyncSessionLocal()
