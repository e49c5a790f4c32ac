"""
Pytest fixtures for chatapp tests.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.database import build_engine, build_session_maker, init_db
from chatapp.kernel.identity.config import IdentityConfig
from chatapp.kernel.identity.identity_service import IdentityService
from chatapp.kernel.stores.memory import InMemoryUserStore


class FrozenClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def identity_config() -> IdentityConfig:
    """Identity configuration with a cheap bcrypt cost for tests."""
    return IdentityConfig(
        access_token_secret="test-access-secret-for-testing-only-000",
        refresh_token_secret="test-refresh-secret-for-testing-only-00",
        access_token_expire_minutes=15,
        refresh_token_expire_minutes=60 * 24,
        verification_token_expire_minutes=20,
        otp_expire_minutes=10,
        password_hash_rounds=4,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def identity_service(user_store, identity_config, clock) -> IdentityService:
    return IdentityService(user_store, identity_config, clock=clock)


@pytest_asyncio.fixture
async def alice(identity_service: IdentityService):
    """A registered user."""
    return await identity_service.register(
        username="alice",
        email="alice@x.com",
        phone_number="5551234567",
        password="secret123",
    )


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine so every connection sees the same tables."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return build_session_maker(db_engine)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()


class CapturingNotifier:
    """Keeps every secret it is asked to deliver."""

    def __init__(self):
        self.sent = []

    async def send_email_verification(self, record, token):
        self.sent.append(("email", record.id, token))

    async def send_phone_verification(self, record, otp):
        self.sent.append(("phone", record.id, otp))

    async def send_password_reset(self, record, token):
        self.sent.append(("reset", record.id, token))

    def last(self, kind: str) -> str:
        return [secret for sent_kind, _, secret in self.sent if sent_kind == kind][-1]


@pytest.fixture
def notifier() -> CapturingNotifier:
    return CapturingNotifier()


@pytest_asyncio.fixture
async def client(session_maker, identity_config, notifier):
    """API client wired to the test database and a capturing notifier."""
    from httpx import ASGITransport, AsyncClient

    from chatapp.api.deps import get_identity_config, get_notifier
    from chatapp.database import get_db
    from chatapp.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_config] = lambda: identity_config
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
