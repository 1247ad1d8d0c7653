"""
FastAPI dependencies for caller identity and authorization.

Authentication happens upstream: the API gateway verifies the caller's
credentials and forwards the result as two headers:

  X-User-Id:   UUID of the caller in the user directory
  X-User-Role: USER or ADMIN

The dependency chain turns those headers into a Principal and enforces the
role an endpoint needs:

  get_current_principal (headers -> Principal)
      ├── require_user  (Principal -> Principal)   [USER role]
      └── require_admin (Principal -> Principal)   [ADMIN role]

Role-based access control:
  - USER: Works on their own cards only. Every member query is scoped by
    principal.user_id, so another owner's card looks exactly like a card
    that does not exist.
  - ADMIN: Issues, blocks, unblocks and deletes cards and reads any card or
    ledger entry, but CANNOT initiate transfers.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import UserNotFoundError
from app.models.user import UserRole
from app.services import user_service


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as asserted by the gateway."""
    user_id: uuid.UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def get_current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Build the Principal from the gateway headers.

    The user must also exist and be active in the user directory, so a
    deactivated user is cut off even while the gateway still vouches for them.

    Raises:
        HTTPException 401: If a header is missing or malformed, or the user
                           is unknown or inactive.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate caller identity",
    )

    if x_user_id is None or x_user_role is None:
        raise credentials_exception

    try:
        user_id = uuid.UUID(x_user_id)
        role = UserRole(x_user_role.upper())
    except ValueError:
        raise credentials_exception

    try:
        await user_service.get_user(db, user_id)
    except UserNotFoundError:
        raise credentials_exception

    return Principal(user_id=user_id, role=role)


async def require_user(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """
    Require the USER role.

    Admin callers are blocked from member endpoints; they have their own
    admin routes and never move money.

    Raises:
        HTTPException 403: If the caller is an admin.
    """
    if principal.role != UserRole.USER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User access required",
        )
    return principal


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """
    Require the ADMIN role.

    Raises:
        HTTPException 403: If the caller is not an admin.
    """
    if principal.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal
