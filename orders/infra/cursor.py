"""
Opaque keyset cursors for newest-first order listings.
"""
from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime

from orders.domain.errors import ValidationError
from orders.domain.order import Order


def encode_cursor(order: Order) -> str:
    """Encode the resume position right after ``order``."""
    payload = json.dumps(
        {"createdAt": order.created_at.isoformat(), "id": order.id},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, str]:
    """Return ``(created_at, order_id)`` of the last item already returned."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()))
        created_at = datetime.fromisoformat(payload["createdAt"])
        order_id = str(payload["id"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError, AttributeError):
        raise ValidationError.for_field("nextToken", "Invalid pagination cursor", "INVALID_CURSOR")
    return created_at, order_id
