"""
Application services. The hosting layer builds one ``Services`` bundle and
hands it to the request handlers.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from orders.services.orders import OrderService, load_order_repository
from orders.services.processing import OrderProcessor, ProcessingResult
from orders.services.uploads import PresignedUpload, UploadService


@dataclass
class Services:
    orders: OrderService
    processor: OrderProcessor
    uploads: UploadService


def build_services(order_repo=None, stage=None, signer=None) -> Services:
    orders = OrderService(order_repo=order_repo or load_order_repository())
    return Services(
        orders=orders,
        processor=OrderProcessor(order_service=orders, stage=stage),
        uploads=UploadService(signer=signer),
    )


@lru_cache(maxsize=None)
def default_services() -> Services:
    """Process-wide bundle shared by the HTTP endpoint and its order store."""
    return build_services()


__all__ = [
    "OrderProcessor",
    "OrderService",
    "PresignedUpload",
    "ProcessingResult",
    "Services",
    "UploadService",
    "build_services",
    "default_services",
]
