"""
Error taxonomy for the order lifecycle engine.

Every error carries a machine-readable ``code``; the API layer maps codes to
response status codes (see ``orders.api.middleware.ErrorHandler``).
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """Single field-level validation failure."""
    field: str
    message: str
    code: str | None = None

    def to_dict(self) -> dict:
        data = {"field": self.field, "message": self.message}
        if self.code:
            data["code"] = self.code
        return data


class OrderError(Exception):
    """Base class for expected order engine failures."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(self.message)

    def details(self) -> dict:
        """Extra machine-readable fields for the error body."""
        return {}


class ValidationError(OrderError):
    """Malformed or missing input fields."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[FieldError] | None = None,
        code: str | None = None,
        context: dict | None = None,
    ):
        self.errors = list(errors or [])
        self.context = dict(context or {})
        super().__init__(message, code)

    @classmethod
    def for_field(cls, field: str, message: str, code: str | None = None) -> "ValidationError":
        return cls(message, [FieldError(field, message, code)], code)

    def details(self) -> dict:
        return {**self.context, "errors": [error.to_dict() for error in self.errors]}


class NotFound(OrderError):
    """Referenced order does not exist."""

    code = "NOT_FOUND"

    def __init__(self, order_id: str, message: str | None = None):
        self.order_id = order_id
        super().__init__(message or "Order not found")


class InvalidTransition(OrderError):
    """Requested status change is not in the transition table."""

    code = "INVALID_TRANSITION"

    def __init__(self, current_status, requested_status, allowed: list):
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed = list(allowed)
        super().__init__(
            f"Invalid status transition from {_value(current_status)} "
            f"to {_value(requested_status)}"
        )

    def details(self) -> dict:
        return {
            "currentStatus": _value(self.current_status),
            "allowedTransitions": [_value(status) for status in self.allowed],
        }


class InvalidStatus(OrderError):
    """Operation requires a different current status."""

    code = "INVALID_STATUS"

    def __init__(self, current_status, message: str):
        self.current_status = current_status
        super().__init__(message)

    def details(self) -> dict:
        return {"currentStatus": _value(self.current_status)}


class IdempotencyConflict(OrderError):
    """Idempotency key reused with a different request payload."""

    code = "DUPLICATE_REQUEST"

    def __init__(self, idempotency_key: str):
        self.idempotency_key = idempotency_key
        super().__init__("Idempotency key already used with different request")


class RepositoryError(OrderError):
    """Storage unavailable or write rejected. Callers may retry with backoff."""

    code = "REPOSITORY_ERROR"
    retryable = True

    def details(self) -> dict:
        return {"retryable": self.retryable}


class ConcurrentUpdateError(RepositoryError):
    """Conditional write lost against a concurrent update."""

    code = "CONFLICT"

    def __init__(self, order_id: str, expected_status):
        self.order_id = order_id
        self.expected_status = expected_status
        super().__init__(
            f"Order {order_id} changed concurrently (expected status {_value(expected_status)})"
        )


class DuplicateIdempotencyKey(RepositoryError):
    """Create rejected because the idempotency key is already stored."""

    code = "DUPLICATE_REQUEST"
    retryable = False

    def __init__(self, idempotency_key: str):
        self.idempotency_key = idempotency_key
        super().__init__(f"Idempotency key {idempotency_key!r} already exists")


class ProcessingFailure(OrderError):
    """Fulfillment stage failed; recorded on the order as FAILED."""

    code = "PROCESSING_ERROR"


def _value(status) -> str:
    return getattr(status, "value", status)
