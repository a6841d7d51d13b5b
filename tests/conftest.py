"""Shared fixtures: in-memory database, HTTP client and user factory."""
import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["OPENAI_API_KEY"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.configs.settings import settings
from app.database.database import Base, get_db
from app.middlewares.auth_middleware import AuthIdentity
from app.repositories.user_repository import UserRepository
from app.utils.security import hash_password
from app.utils.token import issue_access_token
from main import app, build_rate_limiters

DEFAULT_PASSWORD = "Secret123"


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(target))
    return target


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """
    Sessions on a file-backed database, each with its own connection, for
    tests that need truly concurrent transactions.
    """
    file_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}")
    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
    await file_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.rate_limiters = build_rate_limiters()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class UserHandle:
    """A persisted user together with ready-made credentials."""

    def __init__(self, user):
        self.id = user.id
        self.email = user.email
        self.role = user.role
        self.first_name = user.first_name
        self.last_name = user.last_name
        self.token = issue_access_token(user)
        self.headers = {"Authorization": f"Bearer {self.token}"}
        self.identity = AuthIdentity(id=user.id, email=user.email, role=user.role)


@pytest.fixture
def make_user(session_factory):
    """
    Create users directly in the database, bypassing the rate-limited
    registration endpoints.
    """
    counter = {"n": 0}

    async def _make(role: str = "customer", email: str = None, first_name: str = "Test", last_name: str = None, **extra):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@example.com"
        async with session_factory() as session:
            user = await UserRepository.create(
                session,
                email=email,
                hashed_password=hash_password(extra.pop("password", DEFAULT_PASSWORD)),
                first_name=first_name,
                last_name=last_name or f"{role.capitalize()}{counter['n']}",
                role=role,
                **extra,
            )
            return UserHandle(user)

    return _make
