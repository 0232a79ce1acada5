import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

# Must be set before the application (and its engine) is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_photo_ledger.db")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.db import models  # noqa: F401
from photo_ledger.db.base import Base
from photo_ledger.db.session import AsyncSessionLocal, engine
from photo_ledger.main import app

if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


@pytest_asyncio.fixture(scope="function", autouse=True)
async def recreate_schema() -> AsyncGenerator[None, None]:
    """Fresh schema per test for isolation."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest_asyncio.fixture(scope="function")
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Direct database access. End its transaction before issuing API calls."""
    async with AsyncSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def sample_photographer_id() -> str:
    return "pht_test_001"


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Actor-Id": "adm_001", "X-Actor-Role": "admin"}


@pytest.fixture
def owner_headers(sample_photographer_id: str) -> dict:
    return {"X-Actor-Id": sample_photographer_id, "X-Actor-Role": "photographer"}


@pytest.fixture
def matured_completion() -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=40)


@pytest.fixture
def recent_completion() -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=10)
