"""
Asynchronous order fulfillment.

``OrderProcessor.process`` advances an order from PROCESSING to COMPLETED or
FAILED. It can be called again for the same order: once the order has left
PROCESSING the call only reports the stored terminal status.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.utils.module_loading import import_string

from orders.domain.errors import InvalidStatus, InvalidTransition, ProcessingFailure
from orders.domain.order import Order, OrderStatus
from orders.domain.repository import OrderIndex
from orders.services.orders import OrderService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessingResult:
    order_id: str
    status: OrderStatus
    message: str
    error: str | None = None
    processed: bool = True

    @property
    def failed(self) -> bool:
        return self.status == OrderStatus.FAILED and self.processed


class PlaceholderFulfillmentStage:
    """Stand-in for payment capture and production hand-off."""

    def run(self, order: Order) -> None:
        if order.image_count < 1:
            raise ProcessingFailure("Order has no images to produce")
        logger.info(
            "fulfillment_stage_completed",
            extra={"operation": "process_order", "order_id": order.id},
        )


def load_fulfillment_stage(path: str | None = None):
    return import_string(path or settings.ORDER_FULFILLMENT_STAGE)()


class OrderProcessor:
    """Run the fulfillment stage for orders in PROCESSING."""

    def __init__(self, order_service: OrderService | None = None, stage=None):
        self.order_service = order_service or OrderService()
        self.stage = stage or load_fulfillment_stage()

    def process(self, order_id: str) -> ProcessingResult:
        order = self.order_service.get_order(order_id)

        if order.is_terminal:
            return self._already_processed(order)
        if order.status != OrderStatus.PROCESSING:
            raise InvalidStatus(
                order.status,
                f"Order must be in PROCESSING status. Current status: {order.status.value}",
            )

        logger.info("order_processing_started", extra={"operation": "process_order", "order_id": order.id})
        try:
            self.stage.run(order)
        except Exception as e:
            message = str(e) or "Processing failed"
            logger.error(
                "order_processing_failed",
                extra={"operation": "process_order", "order_id": order.id, "error": message},
                exc_info=True,
            )
            return self._finish(order.id, OrderStatus.FAILED, message)

        return self._finish(order.id, OrderStatus.COMPLETED)

    def process_pending_batch(self, limit: int = 100) -> list[ProcessingResult]:
        """Process one page of orders currently in PROCESSING."""
        page = self.order_service.order_repo.query(
            OrderIndex.STATUS, OrderStatus.PROCESSING.value, limit
        )
        results = []
        for order in page.orders:
            try:
                results.append(self.process(order.id))
            except InvalidStatus:
                # Moved by another worker since the scan.
                continue
        return results

    def _finish(self, order_id: str, status: OrderStatus, error: str | None = None) -> ProcessingResult:
        try:
            updated = self.order_service.apply_transition(order_id, status, error)
        except InvalidTransition:
            # Another invocation finished the order first.
            return self._already_processed(self.order_service.get_order(order_id))

        if status == OrderStatus.FAILED:
            return ProcessingResult(updated.id, updated.status, "Order processing failed", error=error)
        logger.info("order_processed", extra={"operation": "process_order", "order_id": updated.id})
        return ProcessingResult(updated.id, updated.status, "Order processed successfully")

    def _already_processed(self, order: Order) -> ProcessingResult:
        return ProcessingResult(
            order.id,
            order.status,
            f"Order already processed with status {order.status.value}",
            error=order.error_message,
            processed=False,
        )
