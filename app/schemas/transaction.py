"""
Pydantic schemas for Transfer endpoints and ledger listings.

Amounts are decimals with at most two places. Same-card transfers and
non-positive amounts are not rejected here; the transfer service owns those
rules and answers them with a 400.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.transaction import TransactionStatus


class TransferRequest(BaseModel):
    """Request body for POST /api/transfers."""
    from_card_id: uuid.UUID
    to_card_id: uuid.UUID
    amount: Decimal = Field(decimal_places=2, description="Amount, e.g. 100.50")
    description: str | None = Field(default=None, max_length=255)


class TransactionResponse(BaseModel):
    """Public representation of a ledger entry."""
    id: uuid.UUID
    from_card_id: uuid.UUID
    to_card_id: uuid.UUID
    amount: Decimal
    status: TransactionStatus
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
