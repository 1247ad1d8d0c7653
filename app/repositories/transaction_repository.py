"""
Transaction store: append and read the transfer ledger.

There is no update or delete here: ledger entries are
append-only (see the listeners in models/transaction.py).
"""

import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.transaction import Transaction


async def add(db: AsyncSession, txn: Transaction) -> Transaction:
    db.add(txn)
    await db.flush()
    return txn


async def list_for_cards(
    db: AsyncSession,
    card_ids: list[uuid.UUID],
    limit: int,
    offset: int,
) -> tuple[list[Transaction], int]:
    """
    Entries where either side is one of card_ids, newest first.

    A single OR query returns each row once, so a transfer between two of
    the given cards is not listed twice.
    """
    touches_cards = or_(
        Transaction.from_card_id.in_(card_ids),
        Transaction.to_card_id.in_(card_ids),
    )

    total = await db.scalar(
        select(func.count()).select_from(Transaction).where(touches_cards)
    )
    result = await db.execute(
        select(Transaction)
        .where(touches_cards)
        .order_by(Transaction.created_at.desc(), Transaction.id)
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total or 0
