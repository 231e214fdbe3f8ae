"""Shared test fixtures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lore_engine.api.deps import get_conversation_store, get_memory_store, get_state_store
from lore_engine.infra.auth import create_access_token
from lore_engine.infra.conversation_store import SqlConversationStore
from lore_engine.infra.memory_store import InMemoryMemoryStore
from lore_engine.infra.state_store import InMemoryStateStore
from lore_engine.main import app
from lore_engine.models.db_models import Base
from lore_engine.modules.llm.client import MockProvider, get_provider

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def conversation_store(session_factory):
    return SqlConversationStore(session_factory)


@pytest.fixture
def state_store():
    return InMemoryStateStore()


@pytest.fixture
def memory_store():
    return InMemoryMemoryStore()


@pytest.fixture
def provider():
    return MockProvider()


@pytest_asyncio.fixture
async def client(state_store, conversation_store, memory_store, provider):
    app.dependency_overrides[get_state_store] = lambda: state_store
    app.dependency_overrides[get_conversation_store] = lambda: conversation_store
    app.dependency_overrides[get_memory_store] = lambda: memory_store
    app.dependency_overrides[get_provider] = lambda: provider
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user id."""

    def _headers(user_id: str = "player-1") -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
