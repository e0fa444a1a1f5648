"""Shared pytest fixtures for all tests."""
import os
import shutil
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment must be ready first
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="bookstore-tests-"))
TEST_DB_PATH = _TEST_DB_DIR / "bookstore_test.db"
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from bookstore.main import app
from bookstore.database import Base, get_db
from bookstore.models import Book, Genre, Transaction, TransactionLine, User


# ===== SESSION-SCOPED DATABASE SETUP =====

@pytest.fixture(scope="session")
def test_engine():
    """Create the schema in a fresh SQLite file, yield an async engine, then remove it."""
    sync_engine = create_engine(f"sqlite:///{TEST_DB_PATH}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    # NullPool: every session opens its own connection, so concurrent
    # sessions really compete for the database lock
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

    yield engine

    shutil.rmtree(_TEST_DB_DIR, ignore_errors=True)


@pytest.fixture(scope="session")
def TestSessionLocal(test_engine):
    """Create session maker for tests."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ===== DEPENDENCY OVERRIDE =====

@pytest.fixture(scope="session", autouse=True)
def override_get_db(TestSessionLocal):
    """Override FastAPI's get_db dependency and middleware database session."""
    async def _override_get_db():
        async with TestSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db

    from bookstore.core import middleware
    from bookstore import database
    original_session = database.AsyncSessionLocal
    database.AsyncSessionLocal = TestSessionLocal
    middleware.AsyncSessionLocal = TestSessionLocal

    yield

    app.dependency_overrides.clear()
    database.AsyncSessionLocal = original_session
    middleware.AsyncSessionLocal = original_session


# ===== FUNCTION-SCOPED CLEANUP =====

@pytest.fixture(scope="function", autouse=True)
async def cleanup_database(TestSessionLocal):
    """Clean all tables after each test (children before parents)."""
    yield

    async with TestSessionLocal() as session:
        async with session.begin():
            await session.execute(TransactionLine.__table__.delete())
            await session.execute(Transaction.__table__.delete())
            await session.execute(Book.__table__.delete())
            await session.execute(Genre.__table__.delete())
            await session.execute(User.__table__.delete())


# ===== SHARED FIXTURES =====

@pytest.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session(TestSessionLocal):
    """Get database session for direct DB access."""
    async with TestSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@pytest.fixture
async def registered_user(client: AsyncClient):
    """Register a user and return credentials plus the new user's id."""
    username = "testuser"
    email = "testuser@example.com"
    password = "TestPass123!"
    response = await client.post(
        "/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    assert response.status_code == 201
    return {
        "id": response.json()["data"]["id"],
        "username": username,
        "email": email,
        "password": password,
    }


@pytest.fixture
async def auth_token(registered_user: dict, client: AsyncClient):
    """Get JWT token for authenticated requests."""
    response = await client.post(
        "/auth/login",
        json={
            "email": registered_user["email"],
            "password": registered_user["password"],
        },
    )
    return response.json()["data"]["access_token"]


@pytest.fixture
def auth_headers(auth_token: str):
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def make_genre(client: AsyncClient, auth_headers: dict):
    """Factory creating a genre through the API and returning its payload."""
    async def _make_genre(name: str = "Fiction") -> dict:
        response = await client.post("/genre", json={"name": name}, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make_genre


@pytest.fixture
def make_book(client: AsyncClient, auth_headers: dict):
    """Factory creating a book through the API and returning its payload."""
    async def _make_book(genre_id: str, **overrides) -> dict:
        payload = {
            "title": "Laskar Pelangi",
            "writer": "Andrea Hirata",
            "publisher": "Bentang Pustaka",
            "publicationYear": 2005,
            "description": "A story about ten children in Belitung.",
            "price": 10.5,
            "stockQuantity": 5,
            "genreId": genre_id,
        }
        payload.update(overrides)
        response = await client.post("/books", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make_book
