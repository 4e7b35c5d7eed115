"""
In-process order store.

Implements the same contract as the Django repository. Select it with
``ORDER_REPOSITORY = "orders.infra.memory.InMemoryOrderRepository"`` to run the
service without a database; orders live as long as the process.
"""
from __future__ import annotations

import threading

from orders.domain.errors import ConcurrentUpdateError, DuplicateIdempotencyKey
from orders.domain.order import Order, OrderStatus
from orders.domain.repository import OrderIndex, OrderPage, OrderStore
from orders.infra.cursor import decode_cursor, encode_cursor


class InMemoryOrderRepository(OrderStore):
    """Dict-backed order table guarded by a lock."""

    def __init__(self):
        self._orders: dict[str, Order] = {}
        self._idempotency: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, order_id: str) -> Order | None:
        return self._orders.get(str(order_id))

    def get_by_idempotency_key(self, idempotency_key: str) -> Order | None:
        order_id = self._idempotency.get(idempotency_key)
        return self._orders.get(order_id) if order_id else None

    def create(self, order: Order) -> Order:
        with self._lock:
            if order.idempotency_key and order.idempotency_key in self._idempotency:
                raise DuplicateIdempotencyKey(order.idempotency_key)
            self._orders[order.id] = order
            if order.idempotency_key:
                self._idempotency[order.idempotency_key] = order.id
        return order

    def update(self, order: Order, expected_status: OrderStatus) -> Order:
        with self._lock:
            current = self._orders.get(order.id)
            if current is None or current.status != expected_status:
                raise ConcurrentUpdateError(order.id, expected_status)
            self._orders[order.id] = order
        return order

    def query(
        self,
        index: OrderIndex | None,
        key: str | None,
        limit: int,
        cursor: str | None = None,
    ) -> OrderPage:
        orders = [order for order in self._orders.values() if _matches(order, index, key)]
        orders.sort(key=lambda order: (order.created_at, order.id), reverse=True)

        if cursor:
            position = decode_cursor(cursor)
            orders = [order for order in orders if (order.created_at, order.id) < position]

        page = orders[:limit]
        next_cursor = encode_cursor(page[-1]) if len(orders) > limit else None
        return OrderPage(orders=page, next_cursor=next_cursor)


def _matches(order: Order, index: OrderIndex | None, key: str | None) -> bool:
    if index is None:
        return True
    if index == OrderIndex.CUSTOMER_EMAIL:
        return order.customer_email == key
    if index == OrderIndex.STATUS:
        return order.status.value == key
    return order.type.value == key
