"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - engine: The async database engine (connection pool for production DBs)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request

Session lifecycle:
  Each API request gets its own session via get_db(). The session commits on
  success and on domain errors (so FAILED transfer audit entries survive),
  and rolls back on any unexpected exception.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.exceptions import BankAPIError


# echo=True in debug mode logs all SQL statements. Card fields are already
# ciphertext by the time they reach SQL, so no plaintext card data is echoed.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# expire_on_commit=False prevents lazy-load errors after commit: accessing
# attributes on a committed object would otherwise trigger a synchronous
# DB call, which fails in async context.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/cards")
        async def list_cards(db: AsyncSession = Depends(get_db)):
            ...

    The session is committed on success, committed on domain errors so that
    audit records written before the error (FAILED ledger entries, lazily
    recomputed card statuses) are persisted, and rolled back on anything else.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except BankAPIError:
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise
