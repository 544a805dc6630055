import os
import warnings

import pytest
from sqlalchemy import create_engine

# Set environment variables BEFORE importing app modules
os.environ["DATABASE_DSN"] = "sqlite+aiosqlite:///file:gifttracker_tests?mode=memory&cache=shared&uri=true"
os.environ["LOG_LEVEL"] = "WARNING"

warnings.filterwarnings("ignore", category=DeprecationWarning)

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from gifttracker.core.config import settings
from gifttracker.db.session import Base, get_db
from gifttracker.main import app


def pytest_configure(config):
    warnings.filterwarnings("ignore", category=DeprecationWarning)


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _create_schema(db_path) -> None:
    from gifttracker.models import models as models_module
    _ = models_module
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()


@pytest.fixture(autouse=True)
def sync_db_override(tmp_path):
    db_path = tmp_path / "sync-test.db"
    _create_schema(db_path)

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    async_session = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with async_session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()
    engine.sync_engine.dispose()


@pytest.fixture
async def db_session(tmp_path):
    """A session on its own database file, for driving the services directly."""
    db_path = tmp_path / "engine-test.db"
    _create_schema(db_path)

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    async_session = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    async with async_session() as session:
        yield session
    await engine.dispose()


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def test_client():
    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client


@pytest.fixture
def atomic_gift_writes():
    original = settings.atomic_gift_writes
    settings.atomic_gift_writes = True
    yield
    settings.atomic_gift_writes = original

