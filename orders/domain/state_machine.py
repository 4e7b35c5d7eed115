"""
Order status state machine.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from django.utils import timezone

from orders.domain.errors import InvalidTransition, ValidationError
from orders.domain.order import Order, OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.PROCESSING, OrderStatus.FAILED),
    OrderStatus.PROCESSING: (OrderStatus.COMPLETED, OrderStatus.FAILED),
    OrderStatus.COMPLETED: (),
    OrderStatus.FAILED: (),
}

DEFAULT_FAILURE_MESSAGE = "Order processing failed"


def parse_status(value) -> OrderStatus:
    """Parse a requested status, raising ValidationError for unknown values."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError.for_field(
            "status",
            f"status must be one of: {', '.join(s.value for s in OrderStatus)}",
        )


def allowed_transitions(status: OrderStatus) -> list[OrderStatus]:
    return list(ALLOWED_TRANSITIONS[status])


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def transition(
    order: Order,
    requested_status,
    error_message: str | None = None,
    now: datetime | None = None,
) -> Order:
    """Return a new snapshot of ``order`` in ``requested_status``.

    Self-loops and edges outside ``ALLOWED_TRANSITIONS`` raise
    InvalidTransition. ``error_message`` is only accepted together with FAILED;
    FAILED always ends up with a message.
    """
    new_status = parse_status(requested_status)

    if not can_transition(order.status, new_status):
        raise InvalidTransition(order.status, new_status, allowed_transitions(order.status))

    if new_status == OrderStatus.FAILED:
        message = (error_message or "").strip() or DEFAULT_FAILURE_MESSAGE
    elif error_message:
        raise ValidationError.for_field(
            "errorMessage",
            "errorMessage may only be set when transitioning to FAILED",
        )
    else:
        message = None

    return replace(
        order,
        status=new_status,
        error_message=message,
        updated_at=now or timezone.now(),
    )
