"""
Pytest configuration and fixtures for testing
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from database import Base, get_db
from utils.session_manager import InMemorySessionStore, get_session_store
from routers.projects_router import get_upload_dir
import database_models  # noqa: F401


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def sync_engine(db_path):
    """
    Synchronous engine on the same SQLite file the app uses during a test.
    Creates all tables; tests use it to seed and inspect rows directly.
    """
    engine = create_engine(f"sqlite:///{db_path}", poolclass=NullPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(sync_engine):
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def session_factory(sync_engine, db_path):
    """
    Async session factory for the test database.

    NullPool gives every session its own connection, so nothing is shared
    between the TestClient's event loop and the test's own loop.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=False,
        poolclass=NullPool,
    )
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """
    Fixture that provides an isolated async database session for each test.
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture
def session_store():
    return InMemorySessionStore(ttl_seconds=24 * 60 * 60)


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def client(session_factory, session_store, upload_dir):
    """FastAPI TestClient fixture with database, session store and upload dir overrides"""
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_upload_dir] = lambda: upload_dir

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
