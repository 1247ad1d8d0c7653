"""
Card service: card issuance, status transitions and per-card validation.

Issuance:
  1. Validate holder name, expiry date and opening balance
  2. Resolve the owner in the user directory
  3. Generate a Luhn-valid number; encrypt it; regenerate while the
     ciphertext is already taken (bounded by CARD_NUMBER_MAX_ATTEMPTS)
  4. Encrypt a fresh CVV, store the holder name upper-cased, force ACTIVE

Status:
  update_status() is the single automatic transition (ACTIVE -> EXPIRED once
  the expiry date has passed). It is applied every time a card is read through
  this service, so every status-sensitive decision sees the current state.
  The change is persisted when the request's session commits.

  block:   ACTIVE -> BLOCKED.  BLOCKED or EXPIRED -> CardStateConflictError
  unblock: BLOCKED -> ACTIVE.  Expired (by status or date) or not BLOCKED
           -> CardStateConflictError

Ownership:
  Owner-scoped lookups answer CardNotFoundError both when the card does not
  exist and when it belongs to someone else, so the existence of other
  owners' cards is never revealed.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    CardBlockedError,
    CardNotFoundError,
    CardNumberGenerationError,
    CardStateConflictError,
    InvalidOperationError,
)
from app.models.card import Card, CardStatus
from app.models.types import ZERO, to_money
from app.repositories import card_repository
from app.security import CardFieldCipher
from app.services import user_service
from app.utils.card_numbers import generate_card_number, generate_cvv


logger = logging.getLogger(__name__)

HOLDER_NAME_MIN_LENGTH = 3
HOLDER_NAME_MAX_LENGTH = 100


def _today() -> date:
    return datetime.now(timezone.utc).date()


# ---------------------------------------------------------------------------
# Status rules
# ---------------------------------------------------------------------------

def is_expired(card: Card, today: date | None = None) -> bool:
    """A card is expired strictly after its expiry date."""
    return (today or _today()) > card.expiry_date


def next_status(status: CardStatus, expiry_date: date, today: date) -> CardStatus:
    """
    Pure status rule: ACTIVE becomes EXPIRED once today is past expiry_date.

    Every other status is returned unchanged; the rule never reverses.
    """
    if status == CardStatus.ACTIVE and today > expiry_date:
        return CardStatus.EXPIRED
    return status


def update_status(card: Card, today: date | None = None) -> CardStatus:
    """Apply next_status() to a card in place. Idempotent."""
    new_status = next_status(card.status, card.expiry_date, today or _today())
    if new_status != card.status:
        logger.info(
            "card_expired",
            extra={"card_id": str(card.id), "expiry_date": card.expiry_date.isoformat()},
        )
        card.status = new_status
    return card.status


def validate_for_transaction(card: Card, today: date | None = None) -> None:
    """
    Ensure a card may take part in a balance-moving operation.

    The expiry date is checked as well as the status because the stored
    status may not have been recomputed yet.

    Raises:
        CardBlockedError: If the card is blocked or expired.
    """
    if card.status == CardStatus.BLOCKED:
        raise CardBlockedError(card.id, "Card is blocked")

    if card.status == CardStatus.EXPIRED or is_expired(card, today):
        raise CardBlockedError(card.id, "Card is expired")


def _block(card: Card) -> None:
    if card.status == CardStatus.BLOCKED:
        raise CardStateConflictError(card.id, "Card is already blocked")
    if card.status == CardStatus.EXPIRED:
        raise CardStateConflictError(card.id, "Cannot block expired card")
    card.status = CardStatus.BLOCKED


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------

async def _allocate_card_number(
    db: AsyncSession,
    cipher: CardFieldCipher,
    max_attempts: int,
) -> tuple[str, str]:
    """Return (plaintext, ciphertext) for a card number no stored card uses."""
    for attempt in range(1, max_attempts + 1):
        card_number = generate_card_number(settings.CARD_NUMBER_BIN)
        encrypted_number = cipher.encrypt(card_number)
        if not await card_repository.exists_by_number(db, encrypted_number):
            return card_number, encrypted_number
        logger.warning("card_number_collision", extra={"attempt": attempt})

    logger.error("card_number_allocation_exhausted", extra={"attempts": max_attempts})
    raise CardNumberGenerationError(max_attempts)


async def create_card(
    db: AsyncSession,
    cipher: CardFieldCipher,
    card_holder: str,
    expiry_date: date,
    owner_id: uuid.UUID,
    initial_balance: Decimal | None = None,
    max_attempts: int | None = None,
) -> tuple[Card, str]:
    """
    Issue a new ACTIVE card.

    Args:
        db: Database session.
        cipher: Card field cipher used for the number and CVV.
        card_holder: Name as embossed, 3-100 characters; stored upper-cased.
        expiry_date: Must be strictly in the future.
        owner_id: Must resolve in the user directory.
        initial_balance: Opening balance, >= 0 with at most 2 decimal places.
            Defaults to 0.
        max_attempts: Card-number allocation budget. Defaults to
            CARD_NUMBER_MAX_ATTEMPTS.

    Returns:
        Tuple of (Card, plaintext card number). The plaintext is handed back
        once so the caller can mask it for the issuance response; it is not
        stored anywhere.

    Raises:
        InvalidOperationError: If any field is out of range.
        UserNotFoundError: If the owner does not exist.
        CardNumberGenerationError: If no unused number was found.
        EncryptionError: If the cipher fails.
    """
    holder = (card_holder or "").strip()
    if not HOLDER_NAME_MIN_LENGTH <= len(holder) <= HOLDER_NAME_MAX_LENGTH:
        raise InvalidOperationError(
            f"Card holder name must be {HOLDER_NAME_MIN_LENGTH}-"
            f"{HOLDER_NAME_MAX_LENGTH} characters"
        )

    if expiry_date <= _today():
        raise InvalidOperationError("Expiry date must be in the future")

    try:
        balance = to_money(initial_balance if initial_balance is not None else ZERO)
    except ValueError as exc:
        raise InvalidOperationError(str(exc)) from exc
    if balance < 0:
        raise InvalidOperationError("Initial balance must not be negative")

    owner = await user_service.get_user(db, owner_id)
    logger.info("card_create_requested", extra={"owner_id": str(owner.id)})

    card_number, encrypted_number = await _allocate_card_number(
        db, cipher, max_attempts or settings.CARD_NUMBER_MAX_ATTEMPTS
    )

    card = Card(
        card_number=encrypted_number,
        card_holder=holder.upper(),
        expiry_date=expiry_date,
        cvv=cipher.encrypt(generate_cvv()),
        status=CardStatus.ACTIVE,
        balance=balance,
        owner_id=owner.id,
    )
    await card_repository.save(db, card)

    logger.info("card_created", extra={"card_id": str(card.id), "owner_id": str(owner.id)})
    return card, card_number


def reveal_card_number(card: Card, cipher: CardFieldCipher) -> str:
    """Decrypt a card's number for masked or authorized display."""
    return cipher.decrypt(card.card_number)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def get_card(db: AsyncSession, card_id: uuid.UUID) -> Card:
    """
    Get any card by id, with its status brought up to date.

    Raises:
        CardNotFoundError: If the card does not exist.
    """
    card = await card_repository.get(db, card_id)
    if card is None:
        raise CardNotFoundError(card_id)

    update_status(card)
    return card


async def list_owner_cards(
    db: AsyncSession,
    owner_id: uuid.UUID,
    limit: int = 10,
    offset: int = 0,
    status: CardStatus | None = None,
) -> tuple[list[Card], int]:
    """One page of an owner's cards, optionally filtered by stored status."""
    cards, total = await card_repository.list_by_owner(db, owner_id, limit, offset, status)
    for card in cards:
        update_status(card)
    return cards, total


async def list_all_owner_cards(db: AsyncSession, owner_id: uuid.UUID) -> list[Card]:
    """Every card an owner has, unpaged."""
    cards = await card_repository.list_all_by_owner(db, owner_id)
    for card in cards:
        update_status(card)
    return cards


async def list_all_cards(
    db: AsyncSession,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Card], int]:
    """[ADMIN] One page of all cards in the system."""
    cards, total = await card_repository.list_all(db, limit, offset)
    for card in cards:
        update_status(card)
    return cards, total


async def get_balance(
    db: AsyncSession,
    card_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> Decimal:
    """
    Balance of a card the caller owns.

    Raises:
        CardNotFoundError: If the card does not exist or is not the caller's.
    """
    card = await card_repository.get_owned(db, card_id, owner_id)
    if card is None:
        raise CardNotFoundError(card_id, "Card not found or doesn't belong to user")
    return card.balance


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

async def block_card(db: AsyncSession, card_id: uuid.UUID) -> Card:
    """
    [ADMIN] Block an active card.

    Raises:
        CardNotFoundError: If the card does not exist.
        CardStateConflictError: If the card is already blocked or expired.
    """
    logger.info("card_block_requested", extra={"card_id": str(card_id)})
    card = await get_card(db, card_id)
    _block(card)
    return await card_repository.save(db, card)


async def request_block_by_owner(
    db: AsyncSession,
    card_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> Card:
    """
    Let a card holder block their own card (lost or stolen).

    Raises:
        CardNotFoundError: If the card does not exist or is not the caller's.
        CardStateConflictError: If the card is already blocked or expired.
    """
    logger.info(
        "card_block_requested_by_owner",
        extra={"card_id": str(card_id), "owner_id": str(owner_id)},
    )
    card = await card_repository.get_owned(db, card_id, owner_id)
    if card is None:
        raise CardNotFoundError(card_id, "Card not found or doesn't belong to user")

    update_status(card)
    _block(card)
    return await card_repository.save(db, card)


async def unblock_card(db: AsyncSession, card_id: uuid.UUID) -> Card:
    """
    [ADMIN] Return a blocked card to ACTIVE.

    Raises:
        CardNotFoundError: If the card does not exist.
        CardStateConflictError: If the card is expired or not blocked.
    """
    logger.info("card_unblock_requested", extra={"card_id": str(card_id)})
    card = await get_card(db, card_id)

    if card.status == CardStatus.EXPIRED or is_expired(card):
        raise CardStateConflictError(card.id, "Cannot unblock expired card")
    if card.status != CardStatus.BLOCKED:
        raise CardStateConflictError(card.id, "Card is not blocked")

    card.status = CardStatus.ACTIVE
    return await card_repository.save(db, card)


async def delete_card(db: AsyncSession, card_id: uuid.UUID) -> None:
    """
    [ADMIN] Permanently delete a card with a zero balance.

    Its ledger entries are kept; they reference the card by id only. The
    row is read with a lock and the DELETE repeats the zero-balance check,
    so a transfer crediting the card cannot slip in between.

    Raises:
        CardNotFoundError: If the card does not exist.
        CardStateConflictError: If the balance is positive, including a
            credit that landed after the read.
    """
    logger.info("card_delete_requested", extra={"card_id": str(card_id)})
    card = await card_repository.get_for_update(db, card_id)
    if card is None:
        raise CardNotFoundError(card_id)

    if card.balance > 0 or not await card_repository.delete_if_empty(db, card):
        raise CardStateConflictError(card.id, "Cannot delete card with positive balance")

    logger.info("card_deleted", extra={"card_id": str(card_id)})
