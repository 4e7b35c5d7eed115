"""
Application service for order intake, lookup, status updates and listing.
"""
from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timedelta
from typing import Callable
from uuid import uuid4

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from orders.domain import state_machine
from orders.domain.errors import (
    ConcurrentUpdateError,
    DuplicateIdempotencyKey,
    IdempotencyConflict,
    NotFound,
    ValidationError,
)
from orders.domain.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    PaymentMethod,
    UserDetails,
    metadata_from_dict,
)
from orders.domain.pricing import PricingEngine
from orders.domain.repository import OrderIndex, OrderPage, OrderStore
from orders.domain.validation import is_non_empty_string, to_decimal, validate_create_order
from orders.infra.pii_masker import mask_email
from orders.infra.retry import retry_with_backoff

logger = logging.getLogger(__name__)

IDEMPOTENCY_KEY_MAX_LENGTH = 255


def _transition_retries() -> int:
    return getattr(settings, "ORDER_TRANSITION_RETRIES", 3)


def load_order_repository(path: str | None = None) -> OrderStore:
    """Instantiate the order store named by ``ORDER_REPOSITORY``."""
    return import_string(path or settings.ORDER_REPOSITORY)()


def request_hash(data: dict) -> str:
    """Create hash of request for deduplication."""
    content = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(content.encode()).hexdigest()


class OrderService:
    """Service for order operations."""

    def __init__(
        self,
        order_repo: OrderStore | None = None,
        pricing: PricingEngine | None = None,
        clock: Callable[[], datetime] | None = None,
        default_currency: str | None = None,
        retention_days: int | None = None,
        default_page_size: int | None = None,
        max_page_size: int | None = None,
    ):
        self.order_repo = order_repo or load_order_repository()
        self.pricing = pricing or PricingEngine(settings.ORDER_FLAT_FEES)
        self.clock = clock or timezone.now
        self.default_currency = default_currency or settings.ORDER_DEFAULT_CURRENCY
        self.retention_days = (
            retention_days if retention_days is not None else settings.ORDER_RETENTION_DAYS
        )
        self.default_page_size = default_page_size or settings.ORDER_DEFAULT_PAGE_SIZE
        self.max_page_size = max_page_size or settings.ORDER_MAX_PAGE_SIZE

    def create_order(self, data: dict, idempotency_key: str | None = None) -> Order:
        """Validate, price and persist a new PENDING order.

        A repeated request with the same idempotency key returns the order
        created by the first one.
        """
        validation = validate_create_order(data)
        if not validation.valid:
            logger.info(
                "order_validation_failed",
                extra={
                    "operation": "create_order",
                    "error": [error.field for error in validation.errors],
                },
            )
            raise ValidationError("Validation failed", validation.errors)

        if idempotency_key is not None:
            if not is_non_empty_string(idempotency_key) or len(idempotency_key) > IDEMPOTENCY_KEY_MAX_LENGTH:
                raise ValidationError.for_field(
                    "idempotencyKey",
                    f"idempotencyKey must be 1-{IDEMPOTENCY_KEY_MAX_LENGTH} characters",
                )

        fingerprint = request_hash(data)
        if idempotency_key:
            existing = self.order_repo.get_by_idempotency_key(idempotency_key)
            if existing:
                return self._replay(existing, idempotency_key, fingerprint)

        order = self._build_order(data, idempotency_key, fingerprint)
        try:
            self.order_repo.create(order)
        except DuplicateIdempotencyKey:
            existing = self.order_repo.get_by_idempotency_key(idempotency_key)
            if existing is None:
                raise
            return self._replay(existing, idempotency_key, fingerprint)

        logger.info(
            "order_created",
            extra={
                "operation": "create_order",
                "order_id": order.id,
                "customer_email": mask_email(order.customer_email),
                "status": order.status.value,
            },
        )
        return order

    def get_order(self, order_id: str) -> Order:
        """Get order by ID."""
        if not is_non_empty_string(order_id):
            raise ValidationError.for_field("orderId", "Order ID is required")
        order = self.order_repo.get(order_id)
        if order is None:
            raise NotFound(order_id)
        return order

    def update_status(self, order_id: str, status, error_message: str | None = None) -> Order:
        """Move an order to ``status`` using a conditional write."""
        if not is_non_empty_string(order_id):
            raise ValidationError.for_field("orderId", "Order ID is required")
        state_machine.parse_status(status)
        return self.apply_transition(order_id, status, error_message)

    @retry_with_backoff(
        max_retries=_transition_retries,
        initial_delay=0.05,
        max_delay=1.0,
        exceptions=(ConcurrentUpdateError,),
    )
    def apply_transition(self, order_id: str, status, error_message: str | None = None) -> Order:
        """Read, transition and write back guarded on the status that was read.

        A lost conditional write re-reads the order and retries the whole
        transition, so a concurrent change that makes the edge illegal
        surfaces as InvalidTransition.
        """
        current = self.get_order(order_id)
        updated = state_machine.transition(current, status, error_message, now=self.clock())
        self.order_repo.update(updated, expected_status=current.status)

        logger.info(
            "order_status_changed",
            extra={
                "operation": "update_status",
                "order_id": updated.id,
                "from_status": current.status.value,
                "to_status": updated.status.value,
            },
        )
        return updated

    def list_orders(
        self,
        customer_email: str | None = None,
        status: str | None = None,
        order_type: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> OrderPage:
        """List orders newest first, filtered by at most one index.

        Precedence when several filters are given: customerEmail, status, type.
        """
        index, key = self._select_index(customer_email, status, order_type)

        if limit is None:
            limit = self.default_page_size
        elif isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError.for_field("limit", "limit must be a positive integer")
        limit = min(limit, self.max_page_size)

        return self.order_repo.query(index, key, limit, cursor or None)

    def _select_index(self, customer_email, status, order_type) -> tuple[OrderIndex | None, str | None]:
        if customer_email:
            return OrderIndex.CUSTOMER_EMAIL, customer_email.strip()
        if status:
            return OrderIndex.STATUS, state_machine.parse_status(status).value
        if order_type:
            try:
                return OrderIndex.TYPE, OrderType(order_type).value
            except ValueError:
                raise ValidationError.for_field("type", "type must be one of: album, collage")
        return None, None

    def _replay(self, existing: Order, idempotency_key: str, fingerprint: str) -> Order:
        if existing.request_hash and existing.request_hash != fingerprint:
            logger.warning(
                "idempotency_key_conflict",
                extra={"operation": "create_order", "idempotency_key": idempotency_key[:8] + "..."},
            )
            raise IdempotencyConflict(idempotency_key)
        logger.info(
            "idempotent_request_replayed",
            extra={"operation": "create_order", "order_id": existing.id},
        )
        return existing

    def _build_order(self, data: dict, idempotency_key: str | None, fingerprint: str) -> Order:
        order_type = OrderType(data["type"])
        currency = (data.get("currency") or self.default_currency).upper()
        items = [
            OrderItem(
                id=item["id"].strip(),
                name=item["name"].strip(),
                quantity=to_decimal(item["quantity"]),
                price=to_decimal(item["price"]),
            )
            for item in data.get("items") or []
        ]
        images = data.get("images") or []
        if isinstance(images, str):
            images = [images]
        images = [ref.strip() for ref in images]

        total_price = self.pricing.price(order_type, items, currency)
        client_total = to_decimal(data.get("totalPrice"))
        if client_total is not None and client_total != total_price:
            logger.warning(
                "client_total_ignored",
                extra={"operation": "create_order", "error": f"client={client_total} server={total_price}"},
            )

        now = self.clock()
        expires_at = None
        if self.retention_days:
            expires_at = int((now + timedelta(days=self.retention_days)).timestamp())

        return Order(
            id=str(uuid4()),
            customer_email=data["customerEmail"].strip(),
            customer_id=(data.get("customerId") or "").strip() or None,
            type=order_type,
            status=OrderStatus.PENDING,
            total_price=total_price,
            currency=currency,
            image_count=data.get("imageCount") or len(images) or len(items),
            created_at=now,
            updated_at=now,
            images=images,
            items=items,
            user_details=UserDetails.from_dict(data["userDetails"]) if data.get("userDetails") else None,
            metadata=metadata_from_dict(order_type, data.get("metadata")),
            payment_method=PaymentMethod(data["paymentMethod"]) if data.get("paymentMethod") else None,
            special_note=data.get("specialNote") or None,
            idempotency_key=idempotency_key or None,
            request_hash=fingerprint if idempotency_key else None,
        )
