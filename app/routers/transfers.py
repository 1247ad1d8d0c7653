"""
Transfers router: money movement between a user's own cards.

Endpoints:
  POST /api/transfers                   Transfer between two of my cards
  GET  /api/transfers/my-transactions   Ledger entries for all my cards
  GET  /api/transfers/card/{card_id}    Ledger entries for one of my cards

Only users can initiate transfers (admins are blocked from member
endpoints). Both cards must belong to the caller.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Principal, require_user
from app.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page
from app.schemas.transaction import TransactionResponse, TransferRequest
from app.services import transfer_service

router = APIRouter()


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money between my cards",
)
async def create_transfer(
    request: TransferRequest,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Transfer money from one of the caller's cards to another.

    This is all-or-nothing: both balances change, or neither does.

    - **from_card_id** / **to_card_id**: both must belong to the caller
    - **amount**: positive, at most 2 decimal places (e.g. "100.50")
    - Blocked or expired cards cannot take part
    - If applying the transfer fails, a FAILED ledger entry is recorded
    """
    return await transfer_service.transfer(
        db=db,
        from_card_id=request.from_card_id,
        to_card_id=request.to_card_id,
        amount=request.amount,
        owner_id=principal.user_id,
        description=request.description,
    )


@router.get(
    "/my-transactions",
    response_model=Page[TransactionResponse],
    summary="List my transactions",
)
async def list_my_transactions(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Every ledger entry touching any of the caller's cards, newest first."""
    txns, total = await transfer_service.get_user_transactions(
        db, principal.user_id, limit, offset
    )
    return Page[TransactionResponse](
        items=[TransactionResponse.model_validate(t) for t in txns],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/card/{card_id}",
    response_model=Page[TransactionResponse],
    summary="List transactions for one of my cards",
)
async def list_card_transactions(
    card_id: uuid.UUID,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    txns, total = await transfer_service.get_card_transactions(
        db, card_id, limit, offset, owner_id=principal.user_id
    )
    return Page[TransactionResponse](
        items=[TransactionResponse.model_validate(t) for t in txns],
        total=total,
        limit=limit,
        offset=offset,
    )
