"""
Persistence contract consumed by the order services.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from orders.domain.order import Order, OrderStatus


class OrderIndex(str, Enum):
    """Secondary indexes; every index is sorted by createdAt."""
    CUSTOMER_EMAIL = "customerEmail"
    STATUS = "status"
    TYPE = "type"


@dataclass
class OrderPage:
    orders: list[Order] = field(default_factory=list)
    next_cursor: str | None = None


class OrderStore(ABC):
    """Key-value order table with conditional updates and index scans.

    Implementations raise ``RepositoryError`` subclasses for storage failures,
    ``ConcurrentUpdateError`` when a conditional update does not match and
    ``DuplicateIdempotencyKey`` when a create reuses a stored key.
    """

    @abstractmethod
    def get(self, order_id: str) -> Order | None:
        ...

    @abstractmethod
    def get_by_idempotency_key(self, idempotency_key: str) -> Order | None:
        ...

    @abstractmethod
    def create(self, order: Order) -> Order:
        ...

    @abstractmethod
    def update(self, order: Order, expected_status: OrderStatus) -> Order:
        """Persist ``order`` only if the stored status still equals ``expected_status``."""

    @abstractmethod
    def query(
        self,
        index: OrderIndex | None,
        key: str | None,
        limit: int,
        cursor: str | None = None,
    ) -> OrderPage:
        """Newest-first page, resuming strictly after ``cursor``."""
