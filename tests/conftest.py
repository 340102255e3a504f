import pytest
import pytest_asyncio
from dataclasses import replace
from datetime import datetime, timedelta, UTC
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator
import os
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
import sys

# Add the app directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.main import app
from app.models import Base
from app.db.database import get_db
from app.core.exceptions import DuplicateEmailError
from app.core.logging import setup_logging
from app.core.rate_limit import rate_limit_dependency
from app.core.security import PasswordHasher, TokenCodec, get_password_hasher, get_token_codec
from app.services.auth import AuthService
from app.services.credential_store import RefreshTokenRecord, UserRecord

# Let caplog see records on the named loggers
setup_logging("INFO", propagate=True)

# Use a separate test database
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,
    connect_args={"check_same_thread": False}
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)

async def override_get_db():
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        finally:
            await session.close()

class InMemoryCredentialStore:
    """Credential store fake with the same contract as the database store"""

    def __init__(self):
        self.users: dict[int, UserRecord] = {}
        self.refresh_tokens: list[RefreshTokenRecord] = []
        self._next_id = 1

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        return next((u for u in self.users.values() if u.email == email), None)

    async def create_user(self, email: str, hashed_password: str, name: str) -> UserRecord:
        if any(u.email == email for u in self.users.values()):
            raise DuplicateEmailError(email)
        user = UserRecord(id=self._next_id, email=email, hashed_password=hashed_password, name=name)
        self.users[user.id] = user
        self._next_id += 1
        return user

    async def update_user_password(self, user_id: int, hashed_password: str) -> None:
        self.users[user_id] = replace(self.users[user_id], hashed_password=hashed_password)

    async def create_refresh_token(self, token: str, user_id: int, expires_at: datetime) -> None:
        self.refresh_tokens.append(RefreshTokenRecord(token=token, user_id=user_id, expires_at=expires_at))

    async def find_refresh_token(self, token: str) -> RefreshTokenRecord | None:
        return next((t for t in self.refresh_tokens if t.token == token), None)

    async def delete_refresh_tokens_by_token(self, token: str) -> int:
        kept = [t for t in self.refresh_tokens if t.token != token]
        deleted = len(self.refresh_tokens) - len(kept)
        self.refresh_tokens = kept
        return deleted

    async def delete_refresh_tokens_by_user(self, user_id: int) -> int:
        kept = [t for t in self.refresh_tokens if t.user_id != user_id]
        deleted = len(self.refresh_tokens) - len(kept)
        self.refresh_tokens = kept
        return deleted

    def expire_refresh_token(self, token: str, expires_at: datetime) -> None:
        self.refresh_tokens = [
            replace(t, expires_at=expires_at) if t.token == token else t
            for t in self.refresh_tokens
        ]

class FakeClock:
    """Settable replacement for the service clock"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta

@pytest.fixture
def password_hasher() -> PasswordHasher:
    # Lowest bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)

@pytest.fixture
def token_codec() -> TokenCodec:
    return TokenCodec(
        access_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=7)
    )

@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.now(UTC))

@pytest.fixture
def auth_service(store, password_hasher, token_codec, clock) -> AuthService:
    return AuthService(store, password_hasher, token_codec, clock=clock)

@pytest_asyncio.fixture
async def setup_db():
    """Give each test a clean schema."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest_asyncio.fixture
async def db_session(setup_db) -> AsyncGenerator[AsyncSession, None]:
    """Get async database session for tests."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()

@pytest_asyncio.fixture
async def test_app(setup_db, password_hasher, token_codec) -> AsyncGenerator[FastAPI, None]:
    """Configure the application for testing."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[rate_limit_dependency] = lambda: True
    app.dependency_overrides[get_password_hasher] = lambda: password_hasher
    app.dependency_overrides[get_token_codec] = lambda: token_codec
    yield app
    app.dependency_overrides.clear()

@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        follow_redirects=True
    ) as ac:
        yield ac

@pytest_asyncio.fixture
async def registered_user(client: AsyncClient) -> dict:
    """Register a user through the API and return the response body."""
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "test@example.com", "password": "testpass123", "name": "Test User"}
    )
    assert response.status_code == 201
    return response.json()
