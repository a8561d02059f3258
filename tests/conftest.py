import os
import tempfile
from pathlib import Path

# Must be in place before storefront builds its engine
_DB_DIR = Path(tempfile.mkdtemp(prefix="storefront-tests-"))
os.environ.setdefault("DB_URL", f"sqlite+aiosqlite:///{_DB_DIR / 'test.db'}")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-for-the-storefront-suite")

import pytest  # noqa: E402

from storefront.app import create_app  # noqa: E402
from storefront.auth.model import ROLE_ADMIN  # noqa: E402
from storefront.common import redis_client  # noqa: E402
from storefront.common.database import drop_db, engine, init_db  # noqa: E402
from tests.fakes import FakeRedis  # noqa: E402
from tests.helpers import make_user  # noqa: E402


@pytest.fixture(autouse=True)
async def database():
    """Fresh schema for every test."""
    await drop_db()
    await init_db()
    yield
    await engine.dispose()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_redis", fake)
    return fake


@pytest.fixture()
def app():
    return create_app()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
async def buyer():
    return await make_user()


@pytest.fixture()
async def other_buyer():
    return await make_user(email="other@example.com", name="Other")


@pytest.fixture()
async def admin():
    return await make_user(email="admin@example.com", role=ROLE_ADMIN, name="Admin")
