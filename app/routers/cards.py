"""
Cards router: card issuance, lookup, blocking and deletion.

Endpoints:
  POST   /api/cards                          [ADMIN] Issue a card
  GET    /api/cards                          [ADMIN] List all cards
  GET    /api/cards/my-cards                 [USER]  List own cards (optional status filter)
  GET    /api/cards/user/{user_id}           [USER self / ADMIN] List a user's cards
  GET    /api/cards/{card_id}                [USER owner / ADMIN] Get one card
  PUT    /api/cards/{card_id}/block          [ADMIN] Block a card
  PUT    /api/cards/{card_id}/unblock        [ADMIN] Unblock a card
  POST   /api/cards/{card_id}/request-block  [USER]  Block own card (lost/stolen)
  GET    /api/cards/{card_id}/balance        [USER]  Balance of own card
  DELETE /api/cards/{card_id}                [ADMIN] Delete a zero-balance card

Static paths (/my-cards, /user/...) are declared before /{card_id} so they
are not captured by the parameterized route.

Card numbers are decrypted only to build the masked display form; the full
number and the CVV never leave the service.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Principal, get_current_principal, require_admin, require_user
from app.exceptions import CardNotFoundError, ForbiddenOperationError
from app.models.card import Card, CardStatus
from app.schemas.card import BalanceResponse, CardCreateRequest, CardResponse
from app.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page
from app.security import CardFieldCipher, get_card_cipher
from app.services import card_service

router = APIRouter()


def _to_response(card: Card, cipher: CardFieldCipher) -> CardResponse:
    return CardResponse.from_card(card, card_service.reveal_card_number(card, cipher))


def _to_page(
    cards: list[Card],
    total: int,
    limit: int,
    offset: int,
    cipher: CardFieldCipher,
) -> Page[CardResponse]:
    return Page[CardResponse](
        items=[_to_response(card, cipher) for card in cards],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Admin] Issue a card",
)
async def create_card(
    request: CardCreateRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    """
    Issue a new ACTIVE card for a user.

    - A Luhn-valid number and a CVV are generated and encrypted at rest
    - The holder name is stored upper-cased
    - Only the masked number is returned
    """
    card, card_number = await card_service.create_card(
        db=db,
        cipher=cipher,
        card_holder=request.card_holder,
        expiry_date=request.expiry_date,
        owner_id=request.owner_id,
        initial_balance=request.initial_balance,
    )
    return CardResponse.from_card(card, card_number)


@router.get(
    "",
    response_model=Page[CardResponse],
    summary="[Admin] List all cards",
)
async def list_all_cards(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    cards, total = await card_service.list_all_cards(db, limit, offset)
    return _to_page(cards, total, limit, offset, cipher)


@router.get(
    "/my-cards",
    response_model=Page[CardResponse],
    summary="List my cards",
)
async def list_my_cards(
    status_filter: CardStatus | None = Query(None, alias="status"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    """List the caller's cards, optionally only those with the given status."""
    cards, total = await card_service.list_owner_cards(
        db, principal.user_id, limit, offset, status_filter
    )
    return _to_page(cards, total, limit, offset, cipher)


@router.get(
    "/user/{user_id}",
    response_model=Page[CardResponse],
    summary="List a user's cards",
)
async def list_user_cards(
    user_id: uuid.UUID,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    """Users may list only their own cards; admins may list anyone's."""
    if not principal.is_admin and principal.user_id != user_id:
        raise ForbiddenOperationError("You can only view your own cards")

    cards, total = await card_service.list_owner_cards(db, user_id, limit, offset)
    return _to_page(cards, total, limit, offset, cipher)


@router.get(
    "/{card_id}",
    response_model=CardResponse,
    summary="Get card details (masked)",
)
async def get_card(
    card_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    """
    Get one card.

    A user asking for someone else's card gets the same 404 as for a card
    that does not exist.
    """
    card = await card_service.get_card(db, card_id)
    if not principal.is_admin and card.owner_id != principal.user_id:
        raise CardNotFoundError(card_id)
    return _to_response(card, cipher)


@router.put(
    "/{card_id}/block",
    response_model=CardResponse,
    summary="[Admin] Block a card",
)
async def block_card(
    card_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    card = await card_service.block_card(db, card_id)
    return _to_response(card, cipher)


@router.put(
    "/{card_id}/unblock",
    response_model=CardResponse,
    summary="[Admin] Unblock a card",
)
async def unblock_card(
    card_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    """Return a blocked card to ACTIVE. Expired cards cannot be unblocked."""
    card = await card_service.unblock_card(db, card_id)
    return _to_response(card, cipher)


@router.post(
    "/{card_id}/request-block",
    response_model=CardResponse,
    summary="Block my card",
)
async def request_block(
    card_id: uuid.UUID,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    cipher: CardFieldCipher = Depends(get_card_cipher),
):
    """Immediately block one of the caller's own cards, e.g. when it is lost."""
    card = await card_service.request_block_by_owner(db, card_id, principal.user_id)
    return _to_response(card, cipher)


@router.get(
    "/{card_id}/balance",
    response_model=BalanceResponse,
    summary="Get my card's balance",
)
async def get_balance(
    card_id: uuid.UUID,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    balance = await card_service.get_balance(db, card_id, principal.user_id)
    return BalanceResponse(card_id=card_id, balance=balance)


@router.delete(
    "/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Delete a card",
)
async def delete_card(
    card_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a card with a zero balance. Its ledger history is kept."""
    await card_service.delete_card(db, card_id)
