"""
Pydantic schemas for Card endpoints.

Card numbers and CVVs are NEVER returned in API responses. Responses carry
the masked number only ("**** **** **** 7890"); the CVV is not exposed at
all. Balances are decimal amounts with two places, serialized as strings
(e.g. "500.00") so no precision is lost in JSON.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from app.models.card import Card, CardStatus
from app.utils.card_masking import mask_card_number


class CardCreateRequest(BaseModel):
    """Request body for POST /api/cards."""
    card_holder: str = Field(min_length=3, max_length=100)
    expiry_date: date
    owner_id: uuid.UUID
    initial_balance: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        decimal_places=2,
        description="Opening balance, at most 2 decimal places",
    )

    @field_validator("card_holder", mode="before")
    @classmethod
    def strip_card_holder(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class CardResponse(BaseModel):
    """Public representation of a card (masked number, no CVV)."""
    id: uuid.UUID
    masked_card_number: str
    card_holder: str
    expiry_date: date
    status: CardStatus
    balance: Decimal
    owner_id: uuid.UUID
    created_at: datetime

    @classmethod
    def from_card(cls, card: Card, card_number: str) -> "CardResponse":
        """Build the response from a card and its decrypted number."""
        return cls(
            id=card.id,
            masked_card_number=mask_card_number(card_number),
            card_holder=card.card_holder,
            expiry_date=card.expiry_date,
            status=card.status,
            balance=card.balance,
            owner_id=card.owner_id,
            created_at=card.created_at,
        )


class BalanceResponse(BaseModel):
    card_id: uuid.UUID
    balance: Decimal
