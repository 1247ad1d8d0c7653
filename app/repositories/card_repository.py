"""
Card store: every query the card core runs against the cards table.

Services never build SQL for cards themselves; they go through these
functions so that locking, ordering and paging are decided in one place.
"""

import uuid
from decimal import Decimal

from sqlalchemy import delete as sql_delete, select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.card import Card, CardStatus
from app.models.types import ZERO


async def get(db: AsyncSession, card_id: uuid.UUID) -> Card | None:
    result = await db.execute(select(Card).where(Card.id == card_id))
    return result.scalar_one_or_none()


async def get_for_update(db: AsyncSession, card_id: uuid.UUID) -> Card | None:
    """
    Load a card and lock its row until the surrounding transaction ends.

    populate_existing refreshes an instance already in the identity map, so
    the caller always sees the balance as of the read. with_for_update() is
    a no-op on SQLite, which takes no lock for a plain read, so there the
    balance seen here may be stale by the time it is written. Balance
    changes go through debit() and credit(), which re-check their
    conditions inside the UPDATE itself.
    """
    result = await db.execute(
        select(Card)
        .where(Card.id == card_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_owned(
    db: AsyncSession,
    card_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> Card | None:
    """Load a card only if it belongs to owner_id."""
    result = await db.execute(
        select(Card).where(Card.id == card_id).where(Card.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def exists_by_number(db: AsyncSession, encrypted_number: str) -> bool:
    result = await db.execute(
        select(Card.id).where(Card.card_number == encrypted_number).limit(1)
    )
    return result.first() is not None


async def save(db: AsyncSession, card: Card) -> Card:
    db.add(card)
    await db.flush()
    return card


async def debit(db: AsyncSession, card_id: uuid.UUID, amount: Decimal) -> bool:
    """
    Subtract amount from an ACTIVE card whose balance covers it.

    The balance check and the subtraction are one UPDATE statement, so two
    concurrent debits can never both spend the same money. Returns False
    when no row qualified. Loaded Card instances are not synchronized;
    refresh them afterwards.
    """
    result = await db.execute(
        update(Card)
        .where(
            Card.id == card_id,
            Card.status == CardStatus.ACTIVE,
            Card.balance >= amount,
        )
        .values(balance=Card.balance - amount)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def credit(db: AsyncSession, card_id: uuid.UUID, amount: Decimal) -> bool:
    """Add amount to an ACTIVE card. Returns False when no row qualified."""
    result = await db.execute(
        update(Card)
        .where(Card.id == card_id, Card.status == CardStatus.ACTIVE)
        .values(balance=Card.balance + amount)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def delete_if_empty(db: AsyncSession, card: Card) -> bool:
    """
    Delete a card only while its stored balance is exactly zero.

    The zero check runs inside the DELETE, so a credit committed after the
    caller read the balance keeps the card alive. Returns False when the row
    no longer qualified.
    """
    result = await db.execute(
        sql_delete(Card)
        .where(Card.id == card.id, Card.balance == ZERO)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False
    db.expunge(card)
    return True


async def list_by_owner(
    db: AsyncSession,
    owner_id: uuid.UUID,
    limit: int,
    offset: int,
    status: CardStatus | None = None,
) -> tuple[list[Card], int]:
    """One page of an owner's cards, oldest first, plus the total count."""
    conditions = [Card.owner_id == owner_id]
    if status is not None:
        conditions.append(Card.status == status)

    total = await db.scalar(select(func.count()).select_from(Card).where(*conditions))
    result = await db.execute(
        select(Card)
        .where(*conditions)
        .order_by(Card.created_at, Card.id)
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total or 0


async def list_all_by_owner(db: AsyncSession, owner_id: uuid.UUID) -> list[Card]:
    result = await db.execute(
        select(Card).where(Card.owner_id == owner_id).order_by(Card.created_at, Card.id)
    )
    return list(result.scalars().all())


async def list_all(
    db: AsyncSession,
    limit: int,
    offset: int,
) -> tuple[list[Card], int]:
    total = await db.scalar(select(func.count()).select_from(Card))
    result = await db.execute(
        select(Card)
        .order_by(Card.created_at, Card.id)
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total or 0


async def ids_by_owner(db: AsyncSession, owner_id: uuid.UUID) -> list[uuid.UUID]:
    result = await db.execute(select(Card.id).where(Card.owner_id == owner_id))
    return list(result.scalars().all())
