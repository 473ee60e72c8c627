"""Shared fixtures: a local store per test and an in-process score service."""
import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from daily_puzzle.score_client import ScoreServiceClient
from daily_puzzle.storage import LocalStore
from score_server.database import get_db
from score_server.main import app
from score_server.models import Base

SECRET = "test-secret"


@pytest.fixture
async def store(tmp_path):
    local = LocalStore(f"sqlite+aiosqlite:///{tmp_path / 'local.db'}")
    await local.async_open()
    yield local
    await local.async_close()


@pytest.fixture
async def service_app(tmp_path):
    """The score service wired to a throwaway database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture
async def http(service_app):
    transport = httpx.ASGITransport(app=service_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def score_client(service_app):
    return ScoreServiceClient(base_url="http://test", transport=httpx.ASGITransport(app=service_app))


@pytest.fixture
async def guest_id(http):
    response = await http.post("/guest")
    return response.json()["user"]["id"]
