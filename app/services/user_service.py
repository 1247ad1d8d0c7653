"""
User directory lookup used by the card core.

The only question the core asks of the user directory is "does this owner
exist?". Profile management belongs to the identity service.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import UserNotFoundError
from app.models.user import User


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    """
    Resolve a user id to an active User.

    Raises:
        UserNotFoundError: If no such user exists or the user is deactivated.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise UserNotFoundError(user_id)

    return user
