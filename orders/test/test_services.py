"""
Tests for OrderService against the in-memory order store.
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, override_settings

from orders.domain.errors import (
    ConcurrentUpdateError,
    IdempotencyConflict,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from orders.domain.order import OrderStatus, OrderType
from orders.infra.memory import InMemoryOrderRepository
from orders.infra.repositories import OrderRepository
from orders.services import build_services
from orders.services.orders import OrderService, load_order_repository

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

USER_DETAILS = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "+1 555 0100",
    "address": "1 Main St",
    "city": "Springfield",
    "postalCode": "12345",
}


class TickingClock:
    """Clock that advances one second per reading."""

    def __init__(self, start=START):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(seconds=1)
        return current


def album_input(**overrides):
    data = {
        "customerEmail": "jane@example.com",
        "type": "album",
        "items": [{"id": "album-1", "name": "Album", "quantity": 1, "price": 5.00}],
    }
    data.update(overrides)
    return data


def flat_input(**overrides):
    data = {
        "customerEmail": "jane@example.com",
        "type": "collage",
        "images": ["uploads/a.jpg", "uploads/b.jpg", "uploads/c.jpg"],
        "userDetails": dict(USER_DETAILS),
    }
    data.update(overrides)
    return data


class OrderServiceTestCase(SimpleTestCase):

    def setUp(self):
        self.repo = InMemoryOrderRepository()
        self.clock = TickingClock()
        self.service = OrderService(order_repo=self.repo, clock=self.clock)


class CreateOrderTest(OrderServiceTestCase):

    def test_itemized_album_order(self):
        """Test itemized album order."""
        order = self.service.create_order(album_input())

        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.type, OrderType.ALBUM)
        self.assertEqual(order.total_price, Decimal("5.00"))
        self.assertEqual(order.currency, "USD")
        self.assertEqual(order.created_at, order.updated_at)
        self.assertEqual(self.repo.get(order.id), order)

    def test_flat_fee_order(self):
        """Test flat fee order."""
        order = self.service.create_order(flat_input())

        self.assertEqual(order.total_price, Decimal("3.00"))
        self.assertEqual(order.image_count, 3)
        self.assertEqual(order.user_details.postal_code, "12345")

    def test_expiry_follows_retention(self):
        """Test expiry follows retention."""
        order = self.service.create_order(flat_input())
        expected = int((order.created_at + timedelta(days=90)).timestamp())
        self.assertEqual(order.expires_at, expected)

    def test_customer_reference_is_kept(self):
        """Test customer reference is kept."""
        order = self.service.create_order(album_input(customerId=" customer-123 "))
        self.assertEqual(order.customer_id, "customer-123")

    def test_client_total_is_ignored(self):
        """Test client total is ignored."""
        order = self.service.create_order(album_input(totalPrice=0.01))
        self.assertEqual(order.total_price, Decimal("5.00"))

    def test_missing_field_persists_nothing(self):
        """Test missing field persists nothing."""
        data = album_input()
        del data["customerEmail"]

        with self.assertRaises(ValidationError) as ctx:
            self.service.create_order(data)

        self.assertEqual(ctx.exception.errors[0].field, "customerEmail")
        self.assertEqual(self.service.list_orders().orders, [])

    def test_oversized_price_persists_nothing(self):
        """Test oversized price persists nothing."""
        data = album_input(items=[{"id": "album-1", "name": "Album", "quantity": 1, "price": "1e30"}])

        with self.assertRaises(ValidationError) as ctx:
            self.service.create_order(data)

        self.assertEqual(ctx.exception.errors[0].field, "items[0].price")
        self.assertEqual(self.service.list_orders().orders, [])

    def test_malformed_images_on_itemized_order(self):
        """Test malformed images on itemized order."""
        for images, field in ((5, "images"), (["uploads/a.jpg", 3], "images[1]")):
            with self.assertRaises(ValidationError) as ctx:
                self.service.create_order(album_input(images=images))
            self.assertEqual(ctx.exception.errors[0].field, field)
        self.assertEqual(self.service.list_orders().orders, [])

    def test_idempotent_replay_returns_same_order(self):
        """Test idempotent replay returns same order."""
        first = self.service.create_order(album_input(), idempotency_key="key-1")
        second = self.service.create_order(album_input(), idempotency_key="key-1")

        self.assertEqual(first.id, second.id)
        self.assertEqual(len(self.service.list_orders().orders), 1)

    def test_idempotency_key_with_different_payload(self):
        """Test idempotency key with different payload."""
        self.service.create_order(album_input(), idempotency_key="key-1")
        with self.assertRaises(IdempotencyConflict):
            self.service.create_order(flat_input(), idempotency_key="key-1")

    def test_blank_idempotency_key_rejected(self):
        """Test blank idempotency key rejected."""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_order(album_input(), idempotency_key="  ")
        self.assertEqual(ctx.exception.errors[0].field, "idempotencyKey")


class GetOrderTest(OrderServiceTestCase):

    def test_unknown_order(self):
        """Test unknown order."""
        with self.assertRaises(NotFound):
            self.service.get_order("does-not-exist")

    def test_empty_order_id(self):
        """Test empty order id."""
        with self.assertRaises(ValidationError) as ctx:
            self.service.get_order("")
        self.assertEqual(ctx.exception.errors[0].field, "orderId")


class UpdateStatusTest(OrderServiceTestCase):

    def setUp(self):
        super().setUp()
        self.order = self.service.create_order(album_input())

    def test_happy_path(self):
        """Test happy path."""
        processing = self.service.update_status(self.order.id, "PROCESSING")
        completed = self.service.update_status(self.order.id, "COMPLETED")

        self.assertEqual(completed.status, OrderStatus.COMPLETED)
        self.assertGreater(processing.updated_at, self.order.updated_at)
        self.assertGreater(completed.updated_at, processing.updated_at)
        self.assertEqual(completed.created_at, self.order.created_at)
        self.assertEqual(self.service.get_order(self.order.id).status, OrderStatus.COMPLETED)

    def test_skipping_processing_is_rejected(self):
        """Test skipping processing is rejected."""
        with self.assertRaises(InvalidTransition) as ctx:
            self.service.update_status(self.order.id, "COMPLETED")
        self.assertEqual(ctx.exception.details()["allowedTransitions"], ["PROCESSING", "FAILED"])
        self.assertEqual(self.service.get_order(self.order.id).status, OrderStatus.PENDING)

    def test_terminal_order_cannot_move(self):
        """Test terminal order cannot move."""
        self.service.update_status(self.order.id, "FAILED")
        with self.assertRaises(InvalidTransition) as ctx:
            self.service.update_status(self.order.id, "PENDING")
        self.assertEqual(ctx.exception.details()["allowedTransitions"], [])

    def test_failed_carries_error_message(self):
        """Test failed carries error message."""
        failed = self.service.update_status(self.order.id, "FAILED", "Payment declined")
        self.assertEqual(failed.error_message, "Payment declined")

    def test_failed_without_message_gets_default(self):
        """Test failed without message gets default."""
        failed = self.service.update_status(self.order.id, "FAILED")
        self.assertEqual(failed.error_message, "Order processing failed")

    def test_error_message_only_with_failed(self):
        """Test error message only with failed."""
        with self.assertRaises(ValidationError):
            self.service.update_status(self.order.id, "PROCESSING", "not a failure")
        self.assertIsNone(self.service.get_order(self.order.id).error_message)

    def test_unknown_status(self):
        """Test unknown status."""
        with self.assertRaises(ValidationError):
            self.service.update_status(self.order.id, "SHIPPED")

    def test_unknown_order(self):
        """Test unknown order."""
        with self.assertRaises(NotFound):
            self.service.update_status("missing", "PROCESSING")

    @override_settings(ORDER_TRANSITION_RETRIES=2)
    def test_lost_conditional_write_is_retried(self):
        """Test lost conditional write is retried."""
        original_update = self.repo.update
        calls = []

        def flaky_update(order, expected_status):
            calls.append(order.status)
            if len(calls) == 1:
                raise ConcurrentUpdateError(order.id, expected_status)
            return original_update(order, expected_status)

        with mock.patch.object(self.repo, "update", side_effect=flaky_update), \
                mock.patch("orders.infra.retry.time.sleep"):
            updated = self.service.update_status(self.order.id, "PROCESSING")

        self.assertEqual(len(calls), 2)
        self.assertEqual(updated.status, OrderStatus.PROCESSING)

    def test_concurrent_change_surfaces_as_invalid_transition(self):
        """Test concurrent change surfaces as invalid transition."""
        original_update = self.repo.update

        def racing_update(order, expected_status):
            # Another writer completes the order between our read and write.
            current = self.repo.get(order.id)
            if current.status == OrderStatus.PROCESSING:
                original_update(replace(current, status=OrderStatus.COMPLETED), OrderStatus.PROCESSING)
            return original_update(order, expected_status)

        self.service.update_status(self.order.id, "PROCESSING")
        with mock.patch.object(self.repo, "update", side_effect=racing_update), \
                mock.patch("orders.infra.retry.time.sleep"):
            with self.assertRaises(InvalidTransition):
                self.service.update_status(self.order.id, "FAILED")

        self.assertEqual(self.repo.get(self.order.id).status, OrderStatus.COMPLETED)


class ListOrdersTest(OrderServiceTestCase):

    def test_newest_first(self):
        """Test newest first."""
        created = [self.service.create_order(album_input()) for _ in range(3)]
        listed = self.service.list_orders().orders
        self.assertEqual([o.id for o in listed], [o.id for o in reversed(created)])

    def test_cursor_pagination_has_no_repeats_or_gaps(self):
        """Test cursor pagination has no repeats or gaps."""
        created = {self.service.create_order(album_input()).id for _ in range(7)}

        seen = []
        cursor = None
        while True:
            page = self.service.list_orders(limit=3, cursor=cursor)
            seen.extend(order.id for order in page.orders)
            if not page.next_cursor:
                break
            cursor = page.next_cursor

        self.assertEqual(len(seen), 7)
        self.assertEqual(set(seen), created)

    def test_filters(self):
        """Test filters."""
        album = self.service.create_order(album_input())
        collage = self.service.create_order(flat_input(customerEmail="bob@example.com"))
        self.service.update_status(collage.id, "PROCESSING")

        by_email = self.service.list_orders(customer_email="bob@example.com").orders
        by_status = self.service.list_orders(status="PENDING").orders
        by_type = self.service.list_orders(order_type="album").orders

        self.assertEqual([o.id for o in by_email], [collage.id])
        self.assertEqual([o.id for o in by_status], [album.id])
        self.assertEqual([o.id for o in by_type], [album.id])

    def test_email_filter_takes_precedence(self):
        """Test email filter takes precedence."""
        self.service.create_order(album_input())
        orders = self.service.list_orders(customer_email="nobody@example.com", order_type="album").orders
        self.assertEqual(orders, [])

    def test_limit_is_capped(self):
        """Test limit is capped."""
        service = OrderService(order_repo=self.repo, clock=self.clock, max_page_size=5)
        for _ in range(7):
            service.create_order(album_input())
        page = service.list_orders(limit=1000)
        self.assertEqual(len(page.orders), 5)
        self.assertIsNotNone(page.next_cursor)

    def test_invalid_limit(self):
        """Test invalid limit."""
        for limit in (0, -1, "10", True):
            with self.assertRaises(ValidationError):
                self.service.list_orders(limit=limit)

    def test_invalid_filters(self):
        """Test invalid filters."""
        with self.assertRaises(ValidationError):
            self.service.list_orders(status="SHIPPED")
        with self.assertRaises(ValidationError):
            self.service.list_orders(order_type="poster")

    def test_malformed_cursor(self):
        """Test malformed cursor."""
        with self.assertRaises(ValidationError) as ctx:
            self.service.list_orders(cursor="%%%not-a-cursor")
        self.assertEqual(ctx.exception.code, "INVALID_CURSOR")


class OrderRepositorySettingTest(SimpleTestCase):
    """The order store is chosen by the ORDER_REPOSITORY setting."""

    def test_default_is_database_repository(self):
        """Test default is database repository."""
        self.assertIsInstance(build_services().orders.order_repo, OrderRepository)

    @override_settings(ORDER_REPOSITORY="orders.infra.memory.InMemoryOrderRepository")
    def test_in_memory_repository_from_settings(self):
        """Test in memory repository from settings."""
        services = build_services()

        self.assertIsInstance(services.orders.order_repo, InMemoryOrderRepository)
        order = services.orders.create_order(album_input())
        self.assertEqual(services.processor.order_service.get_order(order.id).id, order.id)

    def test_explicit_path(self):
        """Test explicit path."""
        repo = load_order_repository("orders.infra.memory.InMemoryOrderRepository")
        self.assertIsInstance(repo, InMemoryOrderRepository)
