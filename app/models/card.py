"""
Card model: a bank card with its own balance and lifecycle status.

Encryption strategy:
  - card_number: full card number, AES-SIV ciphertext (base64). UNIQUE, and
    because SIV is deterministic the constraint also guarantees that no two
    cards share a plaintext number.
  - cvv: 3-digit verification code, AES-SIV ciphertext (base64).
  Plaintext is never persisted. Display uses the masked form built from a
  decrypted number at response time.

Status lifecycle:
    ACTIVE  --block-->             BLOCKED
    ACTIVE  --expiry reached-->    EXPIRED   (automatic, one-way)
    BLOCKED --unblock, not expired--> ACTIVE
  Nothing leaves EXPIRED. The rules live in card_service.

Balance:
  Decimal with two places, stored as integer cents (see models/types.py).
  A CHECK constraint also keeps it non-negative at the database level.
"""

import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.types import Money, ZERO


class CardStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    EXPIRED = "EXPIRED"


class Card(Base):
    __tablename__ = "cards"

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_cards_non_negative_balance"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # AES-SIV ciphertext of the full card number
    card_number: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )

    # Stored upper-cased, as embossed
    card_holder: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    expiry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    # AES-SIV ciphertext of the CVV
    cvv: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    status: Mapped[CardStatus] = mapped_column(
        Enum(CardStatus),
        default=CardStatus.ACTIVE,
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        Money,
        default=ZERO,
        nullable=False,
    )

    # Owner never changes after issuance
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
