"""
Infrastructure repositories for domain entities.
"""
from __future__ import annotations

import logging
from uuid import UUID

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q

from orders.domain.errors import ConcurrentUpdateError, DuplicateIdempotencyKey, RepositoryError
from orders.domain.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    PaymentMethod,
    UserDetails,
    metadata_from_dict,
)
from orders.domain.pricing import quantize
from orders.domain.repository import OrderIndex, OrderPage, OrderStore
from orders.infra.cursor import decode_cursor, encode_cursor
from orders.infra.models import AlbumORM, CollageORM, OrderORM

logger = logging.getLogger(__name__)

INDEX_FIELDS = {
    OrderIndex.CUSTOMER_EMAIL: "customer_email",
    OrderIndex.STATUS: "status",
    OrderIndex.TYPE: "type",
}


def _parse_id(order_id) -> UUID | None:
    try:
        return order_id if isinstance(order_id, UUID) else UUID(str(order_id))
    except (ValueError, TypeError):
        return None


class OrderRepository(OrderStore):
    """Repository for the Order aggregate backed by the Django ORM."""

    def get(self, order_id: str) -> Order | None:
        """Get order by ID."""
        pk = _parse_id(order_id)
        if pk is None:
            return None
        try:
            order_orm = OrderORM.objects.filter(id=pk).first()
        except DatabaseError as e:
            raise RepositoryError(f"Failed to load order {order_id}") from e
        return self._to_domain(order_orm) if order_orm else None

    def get_by_idempotency_key(self, idempotency_key: str) -> Order | None:
        try:
            order_orm = OrderORM.objects.filter(idempotency_key=idempotency_key).first()
        except DatabaseError as e:
            raise RepositoryError("Failed to look up idempotency key") from e
        return self._to_domain(order_orm) if order_orm else None

    def create(self, order: Order) -> Order:
        """Insert a new order; the idempotency key is unique across orders."""
        try:
            with transaction.atomic():
                OrderORM.objects.create(**self._to_fields(order), id=UUID(order.id))
        except IntegrityError as e:
            if order.idempotency_key and OrderORM.objects.filter(
                idempotency_key=order.idempotency_key
            ).exists():
                raise DuplicateIdempotencyKey(order.idempotency_key) from e
            raise RepositoryError(f"Failed to create order {order.id}") from e
        except DatabaseError as e:
            raise RepositoryError(f"Failed to create order {order.id}") from e
        return order

    def update(self, order: Order, expected_status: OrderStatus) -> Order:
        """Compare-and-swap update guarded on the stored status."""
        try:
            updated = OrderORM.objects.filter(
                id=UUID(order.id),
                status=expected_status.value,
            ).update(
                status=order.status.value,
                error_message=order.error_message,
                updated_at=order.updated_at,
            )
        except DatabaseError as e:
            raise RepositoryError(f"Failed to update order {order.id}") from e

        if updated != 1:
            raise ConcurrentUpdateError(order.id, expected_status)
        return order

    def query(
        self,
        index: OrderIndex | None,
        key: str | None,
        limit: int,
        cursor: str | None = None,
    ) -> OrderPage:
        """Newest-first page via keyset pagination on (created_at, id)."""
        queryset = OrderORM.objects.all()
        if index is not None:
            queryset = queryset.filter(**{INDEX_FIELDS[index]: key})

        if cursor:
            created_at, last_id = decode_cursor(cursor)
            last_pk = _parse_id(last_id)
            if last_pk is None:
                queryset = queryset.filter(created_at__lt=created_at)
            else:
                queryset = queryset.filter(
                    Q(created_at__lt=created_at) | Q(created_at=created_at, id__lt=last_pk)
                )

        try:
            rows = list(queryset.order_by("-created_at", "-id")[: limit + 1])
        except DatabaseError as e:
            raise RepositoryError("Failed to list orders") from e

        orders = [self._to_domain(row) for row in rows[:limit]]
        next_cursor = encode_cursor(orders[-1]) if len(rows) > limit else None
        return OrderPage(orders=orders, next_cursor=next_cursor)

    def _to_fields(self, order: Order) -> dict:
        return {
            "customer_email": order.customer_email,
            "customer_id": order.customer_id,
            "type": order.type.value,
            "status": order.status.value,
            "total_price": order.total_price,
            "currency": order.currency,
            "payment_method": order.payment_method.value if order.payment_method else None,
            "image_count": order.image_count,
            "images": list(order.images),
            "items": [item.to_dict() for item in order.items],
            "user_details": order.user_details.to_dict() if order.user_details else None,
            "metadata": order.metadata.to_dict() if order.metadata else None,
            "special_note": order.special_note,
            "error_message": order.error_message,
            "expires_at": order.expires_at,
            "idempotency_key": order.idempotency_key,
            "request_hash": order.request_hash,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def _to_domain(self, order_orm: OrderORM) -> Order:
        """Convert ORM model to domain entity."""
        order_type = OrderType(order_orm.type)
        return Order(
            id=str(order_orm.id),
            customer_email=order_orm.customer_email,
            customer_id=order_orm.customer_id,
            type=order_type,
            status=OrderStatus(order_orm.status),
            total_price=quantize(order_orm.total_price, order_orm.currency),
            currency=order_orm.currency,
            image_count=order_orm.image_count,
            created_at=order_orm.created_at,
            updated_at=order_orm.updated_at,
            images=list(order_orm.images or []),
            items=[OrderItem.from_dict(item) for item in order_orm.items or []],
            user_details=(
                UserDetails.from_dict(order_orm.user_details) if order_orm.user_details else None
            ),
            metadata=metadata_from_dict(order_type, order_orm.metadata),
            payment_method=(
                PaymentMethod(order_orm.payment_method) if order_orm.payment_method else None
            ),
            special_note=order_orm.special_note,
            error_message=order_orm.error_message,
            expires_at=order_orm.expires_at,
            idempotency_key=order_orm.idempotency_key,
            request_hash=order_orm.request_hash,
        )


class AlbumRepository:
    """Repository for album projections."""

    def create(self, customer_id: str, name: str, description: str = "", image_count: int = 0) -> AlbumORM:
        return AlbumORM.objects.create(
            customer_id=customer_id,
            name=name,
            description=description,
            image_count=image_count,
        )

    def get_by_id(self, album_id) -> AlbumORM | None:
        pk = _parse_id(album_id)
        return AlbumORM.objects.filter(id=pk).first() if pk else None

    def get_by_customer(self, customer_id: str, limit: int = 50) -> list[AlbumORM]:
        return list(
            AlbumORM.objects.filter(customer_id=customer_id).order_by("-created_at")[:limit]
        )

    def storage_prefix(self, album: AlbumORM) -> str:
        return f"albums/{album.customer_id}/"


class CollageRepository:
    """Repository for collage projections."""

    def create(
        self,
        customer_id: str,
        name: str,
        template: str = "",
        source_images: list | None = None,
        metadata: dict | None = None,
    ) -> CollageORM:
        return CollageORM.objects.create(
            customer_id=customer_id,
            name=name,
            template=template,
            source_images=source_images or [],
            metadata=metadata,
        )

    def get_by_id(self, collage_id) -> CollageORM | None:
        pk = _parse_id(collage_id)
        return CollageORM.objects.filter(id=pk).first() if pk else None

    def get_by_customer(self, customer_id: str, limit: int = 50) -> list[CollageORM]:
        return list(
            CollageORM.objects.filter(customer_id=customer_id).order_by("-created_at")[:limit]
        )

    def storage_prefix(self, collage: CollageORM) -> str:
        return f"collages/{collage.customer_id}/"
