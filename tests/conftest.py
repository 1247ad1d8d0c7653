"""
Test fixtures for the Bank Cards API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - cipher: Card field cipher with a fixed test secret
  - client: Async HTTP test client with the test database and cipher injected
  - member / second_member / admin: Users in the directory
  - member_headers / second_member_headers / admin_headers: Gateway identity
    headers for those users
  - make_card: Factory that inserts a card row directly (any status, any
    expiry date, any balance), bypassing issuance rules

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database; no state leaks between tests.
  - The in-memory database lives on one shared connection, so tests commit
    their setup through db_session before calling the API, and refresh
    objects before asserting on state the API changed.
  - We override FastAPI's get_db dependency to inject our test session,
    mirroring the production commit/rollback rules.
"""

import os

# Settings are read at import time; the secret is required.
os.environ.setdefault("CARD_ENCRYPTION_SECRET", "test-secret")

from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.database import Base, get_db
from app.exceptions import BankAPIError
from app.main import app
from app.models.card import Card, CardStatus
from app.models.user import User, UserRole
from app.security import CardFieldCipher, get_card_cipher
from app.utils.card_numbers import generate_card_number, generate_cvv


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_SECRET = "test-secret"


def headers_for(user: User) -> dict[str, str]:
    """Identity headers as the gateway would forward them."""
    return {"X-User-Id": str(user.id), "X-User-Role": user.role.value}


def future_date(days: int = 365) -> date:
    return date.today() + timedelta(days=days)


def past_date(days: int = 2) -> date:
    return date.today() - timedelta(days=days)


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest.fixture
def cipher():
    return CardFieldCipher(TEST_SECRET)


@pytest_asyncio.fixture
async def client(db_engine, cipher):
    """
    Async HTTP test client with the test database and cipher injected.

    The get_db override follows production: commit on success and on domain
    errors, roll back on anything else.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except BankAPIError:
                await session.commit()
                raise
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_card_cipher] = lambda: cipher

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session, username: str, role: UserRole = UserRole.USER) -> User:
    user = User(username=username, email=f"{username}@example.com", role=role)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def member(db_session):
    return await _create_user(db_session, "alice")


@pytest_asyncio.fixture
async def second_member(db_session):
    return await _create_user(db_session, "bob")


@pytest_asyncio.fixture
async def admin(db_session):
    return await _create_user(db_session, "admin", UserRole.ADMIN)


@pytest.fixture
def member_headers(member):
    return headers_for(member)


@pytest.fixture
def second_member_headers(second_member):
    return headers_for(second_member)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def make_card(db_session, cipher):
    """
    Insert a card row directly and commit it.

    Lets tests set up states issuance never produces, such as an ACTIVE
    card whose expiry date has already passed.
    """

    async def _make_card(
        owner: User,
        balance: Decimal | str = "0.00",
        status: CardStatus = CardStatus.ACTIVE,
        expiry_date: date | None = None,
        card_number: str | None = None,
    ) -> Card:
        card = Card(
            card_number=cipher.encrypt(card_number or generate_card_number()),
            card_holder=owner.username.upper(),
            expiry_date=expiry_date or future_date(),
            cvv=cipher.encrypt(generate_cvv()),
            status=status,
            balance=Decimal(balance),
            owner_id=owner.id,
        )
        db_session.add(card)
        await db_session.commit()
        return card

    return _make_card
