"""Pytest configuration and fixtures for testing."""

import asyncio
import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment must be prepared
# before any application module is imported.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="leadbase-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL_ASYNC"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'app.db'}"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdef0123"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdef012"
os.environ.pop("GOOGLE_CLIENT_ID", None)
os.environ.pop("GOOGLE_CLIENT_SECRET", None)
os.environ.pop("MAIL_API_KEY", None)

import pytest  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402


class FakeMailer:
    """Records mails instead of sending them."""

    def __init__(self, succeed: bool = True):
        self.sent = []
        self.succeed = succeed

    async def send(self, address, kind, token):
        self.sent.append((address, kind, token))
        return self.succeed

    def last_token(self, kind):
        for _, sent_kind, token in reversed(self.sent):
            if sent_kind == kind:
                return token
        return None


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    """Create a session factory over a fresh SQLite database file."""
    from db.session import Base, build_engine, build_sessionmaker

    import models.auth  # noqa: F401

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())

    yield build_sessionmaker(engine)

    asyncio.run(engine.dispose())


@pytest.fixture
def codec():
    from core.tokens import TokenCodec

    return TokenCodec(
        access_secret="unit-access-secret-0123456789abcdef0123",
        refresh_secret="unit-refresh-secret-0123456789abcdef012",
    )


@pytest.fixture
def credentials(session_factory):
    from services.credential_store import CredentialStore

    return CredentialStore(session_factory)


@pytest.fixture
def ledger(session_factory):
    from services.token_ledger import TokenLedger

    return TokenLedger(session_factory)


@pytest.fixture
def session_manager(credentials, ledger, codec):
    from services.session_manager import SessionManager

    return SessionManager(credentials, ledger, codec)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def accounts(credentials, session_manager, mailer):
    from services.account_service import AccountService

    return AccountService(credentials, session_manager, mailer)


@pytest.fixture
def test_user(credentials):
    """Create a verified password user (password "Secret123!")."""
    from core.auth_helper import get_password_hash

    return asyncio.run(
        credentials.create(
            "alice@example.com",
            password_hash=get_password_hash("Secret123!"),
            name="Alice",
            is_verified=True,
        )
    )


def _app_client(raise_server_exceptions):
    from fastapi.testclient import TestClient
    from main import app

    db_file = _TEST_DB_DIR / "app.db"
    if db_file.exists():
        db_file.unlink()

    with TestClient(app, raise_server_exceptions=raise_server_exceptions) as test_client:
        test_client.app.state.account_service.mailer = FakeMailer()
        yield test_client


@pytest.fixture
def client():
    """Create a test client running the full application lifespan."""
    yield from _app_client(raise_server_exceptions=True)


@pytest.fixture
def server_error_client():
    """Like `client`, but unhandled errors come back as 500 responses."""
    yield from _app_client(raise_server_exceptions=False)
