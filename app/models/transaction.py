"""
Transaction model: the append-only audit record of a transfer attempt.

One entry is written per transfer that reaches the execution phase:
  - SUCCESS: both balances moved
  - FAILED: execution raised; balances untouched, description holds the reason
Transfers rejected by pre-checks (same card, bad amount, blocked card,
insufficient funds, ...) write nothing.

Card references are weak: from_card_id / to_card_id are plain indexed UUIDs
without a foreign key, so a card with zero balance can be deleted while its
history stays intact.

Immutability:
  ORM listeners below refuse any UPDATE or DELETE of a Transaction. The audit
  trail can only grow.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Enum, CheckConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.exceptions import ImmutableRecordError
from app.models.types import Money


class TransactionStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    from_card_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        index=True,
    )

    to_card_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )

    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Indexed: listings are newest-first
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )


@event.listens_for(Transaction, "before_update")
def _reject_transaction_update(mapper, connection, target):
    raise ImmutableRecordError("Transaction", str(target.id))


@event.listens_for(Transaction, "before_delete")
def _reject_transaction_delete(mapper, connection, target):
    raise ImmutableRecordError("Transaction", str(target.id))
