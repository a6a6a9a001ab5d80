"""Root conftest — shared settings, database, and context fixtures.

Invariants:
    - Every test that touches the store gets a fresh in-memory SQLite database
    - Tests never read a real .env secret: SESSION_SECRET is forced to a test value
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402

from switchyard.config import Settings  # noqa: E402
from switchyard.core.context import Context, deadline_after  # noqa: E402
from switchyard.infrastructure.database import DatabaseSessionManager  # noqa: E402
from switchyard.infrastructure.tokens import decode_session_token, mint_session_token  # noqa: E402
from switchyard.models.user import User  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        session_secret="test-session-secret-0123456789abcdef",
        request_timeout_seconds=5.0,
        log_format="text",
    )


@pytest.fixture
async def db_manager(settings):
    manager = DatabaseSessionManager(settings.database_url)
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def store(db_manager):
    return db_manager.store()


@pytest.fixture
async def seed_user(store) -> User:
    user = User(email="ada@example.com", name="Ada", post_count=0)
    await store.add(user)
    return user


@pytest.fixture
async def other_user(store) -> User:
    user = User(email="grace@example.com", name="Grace", post_count=0)
    await store.add(user)
    return user


@pytest.fixture
def token_for(settings):
    """Mint a session token for a User row."""
    def _mint(user: User) -> str:
        return mint_session_token(str(user.id), user.email, user.name, settings)
    return _mint


@pytest.fixture
def make_context(db_manager, settings):
    """Build a Context with a fresh store; pass a User to authenticate it."""
    def _make(user: User | None = None, timeout_seconds: float | None = None) -> Context:
        session = None
        if user is not None:
            token = mint_session_token(str(user.id), user.email, user.name, settings)
            session = decode_session_token(token, settings)
        return Context(
            store=db_manager.store(),
            session=session,
            deadline=deadline_after(timeout_seconds),
        )
    return _make
