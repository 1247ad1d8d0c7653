"""
Admin router: read-only ledger access across all cards.

All endpoints require ADMIN role.

Endpoints:
  GET /api/admin/cards/{card_id}/transactions   Ledger entries for any card

Unlike the member route, the card is not looked up, so the history of a
deleted card can still be audited.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Principal, require_admin
from app.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page
from app.schemas.transaction import TransactionResponse
from app.services import transfer_service

router = APIRouter()


@router.get(
    "/cards/{card_id}/transactions",
    response_model=Page[TransactionResponse],
    summary="[Admin] List any card's transactions",
)
async def admin_list_card_transactions(
    card_id: uuid.UUID,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    txns, total = await transfer_service.get_card_transactions(db, card_id, limit, offset)
    return Page[TransactionResponse](
        items=[TransactionResponse.model_validate(t) for t in txns],
        total=total,
        limit=limit,
        offset=offset,
    )
