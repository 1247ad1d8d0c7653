"""
Custom exception classes and FastAPI exception handlers.

Service code raises these domain errors without importing HTTP concepts; the
handlers registered here translate them into consistent JSON responses of the
form {"detail": "...", "error_type": "..."}.

Exception hierarchy:
    BankAPIError (base, recoverable by the caller)
    ├── ResourceNotFoundError       entity absent, or not owned by the caller
    │   ├── CardNotFoundError
    │   └── UserNotFoundError
    ├── InvalidOperationError       malformed request (same card, bad amount, bad input)
    ├── ForbiddenOperationError     caller may not act on these resources
    ├── CardStateConflictError      illegal card state transition
    ├── CardBlockedError            card unusable for money movement
    ├── InsufficientFundsError      source balance below transfer amount
    └── TransferFailedError         execution phase failed, FAILED entry written

    FatalOperationError (base, operational failure: the request is rolled back)
    ├── EncryptionError             card field cipher failed
    └── CardNumberGenerationError   could not allocate a unique card number

    ImmutableRecordError            attempt to modify or delete a ledger entry
"""

import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exceptions
# ---------------------------------------------------------------------------

class BankAPIError(Exception):
    """Base exception for all domain errors the caller can act on."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


class FatalOperationError(Exception):
    """Base exception for operational failures that abort the request."""

    def __init__(self, detail: str = "Internal error"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class ResourceNotFoundError(BankAPIError):
    """Raised when an entity is absent or hidden from the caller."""


class CardNotFoundError(ResourceNotFoundError):
    """
    Raised when a card does not exist, or exists but belongs to someone else.

    Both cases share one message so callers cannot probe for other owners' cards.
    """

    def __init__(self, card_id: uuid.UUID, detail: str | None = None):
        self.card_id = card_id
        super().__init__(detail or f"Card {card_id} not found")


class UserNotFoundError(ResourceNotFoundError):
    """Raised when a user id does not resolve in the user directory."""

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class InvalidOperationError(BankAPIError):
    """Raised for malformed operations, e.g. transferring to the same card."""


class ForbiddenOperationError(BankAPIError):
    """Raised when the caller is not allowed to act on the given resources."""

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


class CardStateConflictError(BankAPIError):
    """Raised on an illegal card state transition or a delete with money on the card."""

    def __init__(self, card_id: uuid.UUID, detail: str):
        self.card_id = card_id
        super().__init__(detail)


class CardBlockedError(BankAPIError):
    """Raised when a blocked or expired card is used to move money."""

    def __init__(self, card_id: uuid.UUID, detail: str = "Card is blocked"):
        self.card_id = card_id
        super().__init__(detail)


class InsufficientFundsError(BankAPIError):
    """
    Raised when a transfer would make the source balance negative.

    Attributes:
        card_id: The card that lacks sufficient funds.
        requested: The amount the user tried to move.
        available: The current balance of the card.
    """

    def __init__(self, card_id: uuid.UUID, requested: Decimal, available: Decimal):
        self.card_id = card_id
        self.requested = requested
        self.available = available
        super().__init__("Insufficient funds on source card")


class TransferFailedError(BankAPIError):
    """
    Raised when a transfer passed every pre-check but could not be applied.

    A FAILED ledger entry has already been written; its id is attached so
    operators can correlate the client error with the audit trail.
    """

    def __init__(self, transaction_id: uuid.UUID, reason: str):
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__("Transfer failed")


class EncryptionError(FatalOperationError):
    """Raised when card field encryption or decryption fails."""


class CardNumberGenerationError(FatalOperationError):
    """Raised when no unused card number was found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique card number after {attempts} attempts")


class ImmutableRecordError(Exception):
    """Raised by ORM listeners when a ledger entry would be updated or deleted."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} is immutable")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Handlers are matched along the exception's MRO, so registering a base
    class (e.g. ResourceNotFoundError) covers all of its subclasses.

    This is called once during app creation in main.py.
    """

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_handler(
        request: Request, exc: ResourceNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": "not_found"},
        )

    @app.exception_handler(InvalidOperationError)
    async def invalid_operation_handler(
        request: Request, exc: InvalidOperationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": exc.detail, "error_type": "invalid_operation"},
        )

    @app.exception_handler(ForbiddenOperationError)
    async def forbidden_handler(
        request: Request, exc: ForbiddenOperationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=403,
            content={"detail": exc.detail, "error_type": "forbidden"},
        )

    @app.exception_handler(CardStateConflictError)
    async def conflict_handler(
        request: Request, exc: CardStateConflictError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "conflict"},
        )

    @app.exception_handler(CardBlockedError)
    async def card_blocked_handler(
        request: Request, exc: CardBlockedError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,  # Request is well-formed, but the card cannot be used
            content={"detail": exc.detail, "error_type": "card_blocked"},
        )

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "detail": exc.detail,
                "error_type": "insufficient_funds",
                "requested": str(exc.requested),
                "available": str(exc.available),
            },
        )

    @app.exception_handler(TransferFailedError)
    async def transfer_failed_handler(
        request: Request, exc: TransferFailedError
    ) -> JSONResponse:
        # The underlying reason stays in the audit entry, not in the response
        return JSONResponse(
            status_code=500,
            content={
                "detail": exc.detail,
                "error_type": "transfer_failed",
                "transaction_id": str(exc.transaction_id),
            },
        )

    @app.exception_handler(EncryptionError)
    async def encryption_failure_handler(
        request: Request, exc: EncryptionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal error", "error_type": "encryption_failure"},
        )

    @app.exception_handler(CardNumberGenerationError)
    async def card_number_generation_handler(
        request: Request, exc: CardNumberGenerationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"detail": exc.detail, "error_type": "card_number_generation_failed"},
        )
