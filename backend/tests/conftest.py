"""
Pytest configuration and fixtures for backend tests.

This module provides shared fixtures for:
- An in-memory SQLite database with the cellar schema
- Seeded cellars for two owners
- Mocked LLM service with canned responses
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cellar_ai.db.models import Base
from cellar_ai.db.queries import create_guest_user, save_cellar_data
from tests.fixtures.cellar_data import producer_ranking_rows, sample_inventory_rows

logger = logging.getLogger(__name__)


# ============================================================================
# Database fixtures
# ============================================================================


@pytest.fixture
async def db_engine():
    """
    In-memory SQLite engine with the cellar schema.

    StaticPool keeps a single connection so every session sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def _create_owner(session_factory, rows: list[dict[str, Any]]) -> str:
    async with session_factory() as session:
        user = await create_guest_user(session)
        if rows:
            await save_cellar_data(session, user.id, rows)
        await session.commit()
        return user.id


@pytest.fixture
async def owner_id(session_factory) -> str:
    """Guest user owning the sample inventory."""
    return await _create_owner(session_factory, sample_inventory_rows())


@pytest.fixture
async def other_owner_id(session_factory) -> str:
    """A second user whose bottles must never leak into the first user's results."""
    rows = [
        {**row, "iWine": f"9{row['iWine']}", "Producer": "Intruder Estate"}
        for row in sample_inventory_rows()
    ]
    return await _create_owner(session_factory, rows)


@pytest.fixture
async def ranked_owner_id(session_factory) -> str:
    """User whose producers have bottle counts 40, 35, 30, 12, 8, 6, 5, 4, 3, 2, 1, 1."""
    return await _create_owner(session_factory, producer_ranking_rows())


@pytest.fixture
async def empty_owner_id(session_factory) -> str:
    return await _create_owner(session_factory, [])


# ============================================================================
# Service mocks
# ============================================================================


@pytest.fixture
def mock_llm_service() -> Mock:
    """
    LLM service double.

    ``generate`` and ``generate_structured`` are AsyncMocks; tests set
    ``return_value`` or ``side_effect`` as needed.
    """
    service = Mock()
    service.provider = "openai"
    service.model = "test-model"
    service.generate = AsyncMock(return_value="Mocked LLM response for testing purposes.")
    service.generate_structured = AsyncMock()
    service.generate_with_tools = AsyncMock()
    return service


# ============================================================================
# Pytest hooks and configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests that wire several components together")
    config.addinivalue_line("markers", "security: read-only query guard and audit logging tests")


def pytest_collection_modifyitems(config, items):
    """Automatically apply markers based on test path."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "security" in path:
            item.add_marker(pytest.mark.security)
