"""
Shared test configuration and fixtures for grant store tests.

Provides database setup, session management, store backends and issuer
construction used across the test files. The SQL backend runs against an
in-memory SQLite database so tests need no external services.
"""

from typing import NamedTuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from social.graze.grantstore.issuer import CredentialIssuer, IssuerPolicy
from social.graze.grantstore.model.base import Base
from social.graze.grantstore.model.oauth import OAuthClient
from social.graze.grantstore.store.memory import (
    MemoryAuthorizationCodeStore,
    MemoryClientRegistry,
    MemoryTokenStore,
)
from social.graze.grantstore.store.sql import (
    SQLAuthorizationCodeStore,
    SQLClientRegistry,
    SQLTokenStore,
    create_session_maker,
)
from tests.test_helpers import FrozenClock, TokenSequence

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class Stores(NamedTuple):
    clients: object
    codes: object
    tokens: object


def create_test_engine():
    return create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Create async SQLAlchemy engine with all tables created."""
    engine = create_test_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def database_session_maker(engine):
    return create_session_maker(engine)


@pytest_asyncio.fixture(scope="function")
async def session(database_session_maker):
    """Create async database session for testing."""
    async with database_session_maker() as session:
        yield session


@pytest_asyncio.fixture(params=["sql", "memory"])
async def stores(request):
    """The three stores, once per backend."""
    if request.param == "memory":
        yield Stores(
            MemoryClientRegistry(), MemoryAuthorizationCodeStore(), MemoryTokenStore()
        )
        return

    engine = create_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    database_session_maker = create_session_maker(engine)

    yield Stores(
        SQLClientRegistry(database_session_maker),
        SQLAuthorizationCodeStore(database_session_maker),
        SQLTokenStore(database_session_maker),
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def file_stores(tmp_path):
    """SQL stores on a SQLite file, one connection per session.

    The in-memory engine shares a single connection between sessions, so
    concurrent transactions would not be isolated from each other there.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'grants.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    database_session_maker = create_session_maker(engine)

    yield Stores(
        SQLClientRegistry(database_session_maker),
        SQLAuthorizationCodeStore(database_session_maker),
        SQLTokenStore(database_session_maker),
    )

    await engine.dispose()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def token_sequence():
    return TokenSequence()


@pytest_asyncio.fixture
async def registered_clients(stores):
    """Register the clients used by the issuer tests."""
    await stores.clients.register_client(
        OAuthClient(
            client_id="c1",
            client_secret="s3cret",
            callback_url="https://client.example.com/callback",
            grants=["authorization_code", "refresh_token"],
        )
    )
    await stores.clients.register_client(
        OAuthClient(
            client_id="code-only",
            client_secret=None,
            callback_url="https://code-only.example.com/callback",
            grants=["authorization_code"],
        )
    )
    await stores.clients.register_client(
        OAuthClient(
            client_id="refresh-only",
            client_secret="other",
            callback_url="https://refresh-only.example.com/callback",
            grants=["refresh_token"],
        )
    )
    return stores


@pytest.fixture
def issuer(registered_clients, clock, token_sequence):
    """Issuer with static refresh tokens, a frozen clock and predictable tokens."""
    return CredentialIssuer(
        registered_clients.clients,
        registered_clients.codes,
        registered_clients.tokens,
        policy=IssuerPolicy(),
        token_generator=token_sequence,
        clock=clock,
    )
