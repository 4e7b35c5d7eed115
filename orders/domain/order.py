"""
Domain model for the Order aggregate.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Union


class OrderStatus(str, Enum):
    """Order status enumeration."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class OrderType(str, Enum):
    """Produced artifact kind."""
    ALBUM = "album"
    COLLAGE = "collage"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CARD_PAYMENT = "card_payment"


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    SQUARE = "square"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.FAILED})


@dataclass(frozen=True)
class UserDetails:
    """Customer contact snapshot taken when the order is created."""
    name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str
    special_instructions: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "UserDetails":
        return cls(
            name=data["name"].strip(),
            email=data["email"].strip(),
            phone=data["phone"].strip(),
            address=data["address"].strip(),
            city=data["city"].strip(),
            postal_code=data["postalCode"].strip(),
            special_instructions=data.get("specialInstructions") or None,
        )

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "postalCode": self.postal_code,
        }
        if self.special_instructions:
            data["specialInstructions"] = self.special_instructions
        return data


@dataclass(frozen=True)
class OrderItem:
    """Order line item value object."""
    id: str
    name: str
    quantity: Decimal
    price: Decimal

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError("Quantity must be positive")
        if self.price < 0:
            raise ValueError("Price must be non-negative")

    @property
    def subtotal(self) -> Decimal:
        """Calculate item subtotal."""
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: dict) -> "OrderItem":
        return cls(
            id=str(data["id"]).strip(),
            name=str(data["name"]).strip(),
            quantity=Decimal(str(data["quantity"])),
            price=Decimal(str(data["price"])),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": str(self.quantity),
            "price": str(self.price),
        }


@dataclass(frozen=True)
class AlbumMetadata:
    """Production parameters for album orders."""
    orientation: Orientation | None = None
    page_count: int | None = None
    extra: dict = field(default_factory=dict)

    type = OrderType.ALBUM

    def to_dict(self) -> dict:
        data = dict(self.extra)
        if self.orientation:
            data["orientation"] = self.orientation.value
        if self.page_count is not None:
            data["pageCount"] = self.page_count
        return data


@dataclass(frozen=True)
class CollageMetadata:
    """Production parameters for collage orders."""
    layout: str | None = None
    orientation: Orientation | None = None
    extra: dict = field(default_factory=dict)

    type = OrderType.COLLAGE

    def to_dict(self) -> dict:
        data = dict(self.extra)
        if self.layout:
            data["layout"] = self.layout
        if self.orientation:
            data["orientation"] = self.orientation.value
        return data


OrderMetadata = Union[AlbumMetadata, CollageMetadata]


def metadata_from_dict(order_type: OrderType, data: dict | None) -> OrderMetadata | None:
    """Build the metadata variant matching ``order_type``."""
    if data is None:
        return None
    extra = dict(data)
    orientation = extra.pop("orientation", None)
    orientation = Orientation(orientation) if orientation else None
    if order_type == OrderType.ALBUM:
        page_count = extra.pop("pageCount", None)
        return AlbumMetadata(
            orientation=orientation,
            page_count=int(page_count) if page_count is not None else None,
            extra=extra,
        )
    return CollageMetadata(
        layout=extra.pop("layout", None),
        orientation=orientation,
        extra=extra,
    )


@dataclass(frozen=True)
class Order:
    """Order aggregate root (immutable snapshot).

    Status changes go through ``orders.domain.state_machine.transition`` which
    returns a new snapshot; nothing else mutates an order after creation.
    """
    id: str
    customer_email: str
    type: OrderType
    status: OrderStatus
    total_price: Decimal
    currency: str
    image_count: int
    created_at: datetime
    updated_at: datetime
    images: list[str] = field(default_factory=list)
    items: list[OrderItem] = field(default_factory=list)
    customer_id: str | None = None
    user_details: UserDetails | None = None
    metadata: OrderMetadata | None = None
    payment_method: PaymentMethod | None = None
    special_note: str | None = None
    error_message: str | None = None
    expires_at: int | None = None
    idempotency_key: str | None = None
    request_hash: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def storage_prefix(self) -> str:
        """Blob storage prefix owned by this order."""
        return f"{self.type.value}s/{self.id}/"
