from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from growth_tracker.api.main import create_app
from growth_tracker.api.registry import ManagerRegistry
from growth_tracker.core.auth import create_access_token
from growth_tracker.infrastructure.db.base import Base
from growth_tracker.infrastructure.repositories.assessment_store import SqlAssessmentStore
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from tests.utils import FakeAssessmentStore


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    """File-backed SQLite database with the schema already created."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'growth.db'}"

    async def _init_db() -> None:
        engine = create_async_engine(url, poolclass=NullPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_init_db())
    return url


@pytest.fixture()
def test_client(database_url: str) -> Iterator[TestClient]:
    # NullPool keeps every connection inside the app's own event loop
    engine = create_async_engine(database_url, poolclass=NullPool)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    registry = ManagerRegistry(SqlAssessmentStore(session_factory))
    app = create_app(registry)

    with TestClient(app) as client:
        yield client


@pytest.fixture()
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """In-memory SQLite session factory for store tests."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
def fake_store() -> FakeAssessmentStore:
    return FakeAssessmentStore()


@pytest.fixture()
def member_token() -> str:
    """Generate member JWT token for testing."""
    return create_access_token("member-user", roles=["member"])
