"""
Transfer service: moving money between two cards of the same owner.

Pre-checks (nothing is written when one fails):
  1. Source and destination differ
  2. Amount is positive with at most 2 decimal places
  3. Both cards exist
  4. Both cards belong to the caller
  5. Neither card is blocked or expired
  6. Source balance covers the amount

Atomicity:
  The debit, the credit and the SUCCESS ledger entry are applied inside one
  SAVEPOINT (begin_nested()). If anything in there raises, the savepoint is
  rolled back so neither balance moves, a FAILED entry is recorded outside
  it, and TransferFailedError is raised. get_db() commits on domain errors,
  so the FAILED entry survives the error response.

Concurrency:
  The debit and the credit are single conditional UPDATEs computed by the
  database (balance = balance - amount WHERE balance >= amount AND status
  is ACTIVE), never absolute values computed from an earlier read. A
  concurrent transfer or block that invalidated the pre-checks makes the
  UPDATE match no row, which fails the transfer like any other error while
  applying it. This holds on SQLite, where with_for_update() takes no lock,
  as well as on PostgreSQL.

Deadlock prevention:
  On PostgreSQL both card rows are locked in sorted UUID order, so two
  concurrent transfers over the same pair of cards in opposite directions
  always take the locks in the same order.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    CardNotFoundError,
    CardStateConflictError,
    ForbiddenOperationError,
    InsufficientFundsError,
    InvalidOperationError,
    TransferFailedError,
)
from app.models.transaction import Transaction, TransactionStatus
from app.models.types import to_money
from app.repositories import card_repository, transaction_repository
from app.services import card_service


logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 255
FAILURE_PREFIX = "Transfer failed: "


def _failure_description(reason: str) -> str:
    return (FAILURE_PREFIX + reason)[:DESCRIPTION_MAX_LENGTH]


async def transfer(
    db: AsyncSession,
    from_card_id: uuid.UUID,
    to_card_id: uuid.UUID,
    amount: Decimal,
    owner_id: uuid.UUID,
    description: str | None = None,
) -> Transaction:
    """
    Move amount from one of the caller's cards to another.

    Args:
        db: Database session.
        from_card_id: Source card.
        to_card_id: Destination card.
        amount: Positive amount with at most 2 decimal places.
        owner_id: The caller; must own both cards.
        description: Optional memo, at most 255 characters.

    Returns:
        The SUCCESS ledger entry.

    Raises:
        InvalidOperationError: Same card, or amount not a positive 2dp value.
        CardNotFoundError: If either card does not exist.
        ForbiddenOperationError: If either card belongs to someone else.
        CardBlockedError: If either card is blocked or expired.
        InsufficientFundsError: If the source balance is below amount.
        TransferFailedError: If applying the transfer failed. A FAILED
            entry has been written.
    """
    if from_card_id == to_card_id:
        raise InvalidOperationError("Cannot transfer to the same card")

    try:
        amount = to_money(amount)
    except ValueError as exc:
        raise InvalidOperationError(str(exc)) from exc
    if amount <= 0:
        raise InvalidOperationError("Transfer amount must be positive")

    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise InvalidOperationError(
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )

    logger.info(
        "transfer_requested",
        extra={
            "from_card_id": str(from_card_id),
            "to_card_id": str(to_card_id),
            "amount": str(amount),
            "owner_id": str(owner_id),
        },
    )

    # Lock in consistent order (sorted by UUID) to prevent deadlocks
    locked = {}
    for card_id in sorted([from_card_id, to_card_id]):
        locked[card_id] = await card_repository.get_for_update(db, card_id)

    for card_id in (from_card_id, to_card_id):
        if locked[card_id] is None:
            raise CardNotFoundError(card_id)

    source = locked[from_card_id]
    dest = locked[to_card_id]

    if source.owner_id != owner_id or dest.owner_id != owner_id:
        raise ForbiddenOperationError("You can only transfer between your own cards")

    for card in (source, dest):
        card_service.update_status(card)
        card_service.validate_for_transaction(card)

    if source.balance < amount:
        logger.info(
            "transfer_rejected_insufficient_funds",
            extra={"from_card_id": str(from_card_id), "amount": str(amount)},
        )
        raise InsufficientFundsError(
            card_id=from_card_id,
            requested=amount,
            available=source.balance,
        )

    try:
        async with db.begin_nested():
            if not await card_repository.debit(db, from_card_id, amount):
                raise CardStateConflictError(
                    from_card_id, "Source card balance or status changed"
                )
            if not await card_repository.credit(db, to_card_id, amount):
                raise CardStateConflictError(
                    to_card_id, "Destination card status changed"
                )
            await db.refresh(source)
            await db.refresh(dest)

            txn = await transaction_repository.add(
                db,
                Transaction(
                    from_card_id=from_card_id,
                    to_card_id=to_card_id,
                    amount=amount,
                    status=TransactionStatus.SUCCESS,
                    description=description,
                ),
            )
    except Exception as exc:
        # Savepoint is rolled back; the cards are expired and reload on access
        reason = str(exc) or type(exc).__name__
        logger.error(
            "transfer_failed",
            extra={
                "from_card_id": str(from_card_id),
                "to_card_id": str(to_card_id),
                "amount": str(amount),
            },
            exc_info=True,
        )
        failed = await transaction_repository.add(
            db,
            Transaction(
                from_card_id=from_card_id,
                to_card_id=to_card_id,
                amount=amount,
                status=TransactionStatus.FAILED,
                description=_failure_description(reason),
            ),
        )
        raise TransferFailedError(failed.id, reason) from exc

    logger.info(
        "transfer_completed",
        extra={"transaction_id": str(txn.id), "amount": str(amount)},
    )
    return txn


async def get_user_transactions(
    db: AsyncSession,
    owner_id: uuid.UUID,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Transaction], int]:
    """
    Ledger entries touching any of the owner's cards, newest first.

    A transfer between two of the owner's cards is listed once.
    """
    card_ids = await card_repository.ids_by_owner(db, owner_id)
    if not card_ids:
        return [], 0

    return await transaction_repository.list_for_cards(db, card_ids, limit, offset)


async def get_card_transactions(
    db: AsyncSession,
    card_id: uuid.UUID,
    limit: int = 10,
    offset: int = 0,
    owner_id: uuid.UUID | None = None,
) -> tuple[list[Transaction], int]:
    """
    Ledger entries touching one card, newest first.

    When owner_id is given the card must exist and belong to it. Without
    owner_id (admin access) the card is not looked up at all, so the history
    of a deleted card stays readable.

    Raises:
        CardNotFoundError: If owner_id is given and the card is missing or
            not the owner's.
    """
    if owner_id is not None:
        card = await card_repository.get_owned(db, card_id, owner_id)
        if card is None:
            raise CardNotFoundError(card_id, "Card not found or doesn't belong to user")

    return await transaction_repository.list_for_cards(db, [card_id], limit, offset)
