"""
Shared fixtures.

Configuration is read at import time, so the environment is set up before
anything from `app` is imported.
"""
import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="groups-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["SECRET_KEY"] = "test-secret"

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.core.database.engine import AsyncSessionLocal, drop_db, init_db  # noqa: E402
from app.main import app  # noqa: E402


@pytest_asyncio.fixture(autouse=True)
async def flushdb():
    """Start every test from empty tables."""
    await drop_db()
    await init_db()
    yield


@pytest_asyncio.fixture
async def db():
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client():
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
