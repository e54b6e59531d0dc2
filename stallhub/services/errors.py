"""
Domain errors raised by the stall services.
Every error is recoverable: the operation did not apply and inventory state is unchanged.
main.py maps them to HTTP responses.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INSUFFICIENT_AVAILABLE_STALLS = "INSUFFICIENT_AVAILABLE_STALLS"
    ALREADY_BOOKED = "ALREADY_BOOKED"
    HAS_ACTIVE_BOOKINGS = "HAS_ACTIVE_BOOKINGS"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REFERENCE = "INVALID_REFERENCE"


class DomainError(Exception):
    """Base domain error with code, user-safe message and display details."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    code = ErrorCode.VALIDATION_ERROR


class CapacityExceeded(DomainError):
    """Raised when a quantity would overflow the event's stall_count. `by` is the overflow."""

    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self, by: int, requested: int, remaining: int) -> None:
        super().__init__(
            f"Capacity exceeded by {by} stall(s): requested {requested}, remaining {remaining}",
            by=by, requested=requested, remaining=remaining,
        )
        self.by = by
        self.requested = requested
        self.remaining = remaining


class InsufficientAvailableStalls(DomainError):
    """Raised when a quantity reduction would have to remove booked stalls."""

    code = ErrorCode.INSUFFICIENT_AVAILABLE_STALLS

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Need to remove {required} stall(s) but only {available} are unbooked",
            required=required, available=available, shortfall=required - available,
        )
        self.required = required
        self.available = available


class AlreadyBooked(DomainError):
    code = ErrorCode.ALREADY_BOOKED

    def __init__(self, stall_id: Optional[int], message: Optional[str] = None) -> None:
        super().__init__(message or f"Stall {stall_id} is already booked", stall_id=stall_id)
        self.stall_id = stall_id


class HasActiveBookings(DomainError):
    code = ErrorCode.HAS_ACTIVE_BOOKINGS

    def __init__(self, what: str, booked: int) -> None:
        super().__init__(
            f"{what} has {booked} booked stall(s); confirm cascade to cancel them",
            booked=booked,
        )
        self.booked = booked


class NotFound(DomainError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity} '{entity_id}' not found", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class InvalidReference(DomainError):
    code = ErrorCode.INVALID_REFERENCE

    def __init__(self, reason: str = "Check-in reference does not resolve") -> None:
        super().__init__(reason)
