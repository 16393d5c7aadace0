"""
Domain error taxonomy.

Services raise these instead of HTTPException so the store and the purchase
coordinator stay usable outside a request. The API layer maps each error to a
status code through `status_code`.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    STORAGE_ERROR = "STORAGE_ERROR"


class DomainError(Exception):
    """Base domain error with code, user-safe message and HTTP status."""

    code: ErrorCode
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Malformed input, rejected before touching storage."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class TicketNotFoundError(NotFoundError):
    code = ErrorCode.TICKET_NOT_FOUND

    def __init__(self, ticket_id: int) -> None:
        super().__init__("Ticket not found")
        self.ticket_id = ticket_id


class InsufficientInventoryError(DomainError):
    """Requested quantity exceeds the ticket's current allocation."""

    code = ErrorCode.INSUFFICIENT_INVENTORY
    status_code = 400

    def __init__(self, ticket_id: int, requested: int, available: int) -> None:
        super().__init__("Not enough tickets available")
        self.ticket_id = ticket_id
        self.requested = requested
        self.available = available


class StorageError(DomainError):
    """
    Connectivity or transaction failure.
    Nothing from the failed unit of work persists, so callers may retry it.
    """

    code = ErrorCode.STORAGE_ERROR
    status_code = 500

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation
