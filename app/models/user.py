"""
User model: the user directory the card core resolves owners against.

Users are provisioned by the identity side of the platform (signup, login and
credentials live there, not here). The card core only needs to:
  - confirm that an owner id exists before issuing a card
  - know who owns which card

Roles:
  - USER: card holder; may view and block own cards and move money between them
  - ADMIN: operator; issues, blocks, unblocks and deletes cards, sees all cards
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class UserRole(str, enum.Enum):
    """
    Role a principal holds. Inherits from str so it serializes naturally to
    JSON and matches the X-User-Role header value directly.
    """
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        default=UserRole.USER,
        nullable=False,
    )

    # Deactivated users keep their cards but cannot be issued new ones
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
