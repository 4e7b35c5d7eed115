"""
Tests for the Django ORM repositories.
"""
from dataclasses import replace
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from uuid import uuid4

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from orders.domain.errors import ConcurrentUpdateError, DuplicateIdempotencyKey, ValidationError
from orders.domain.order import (
    AlbumMetadata,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    Orientation,
    PaymentMethod,
    UserDetails,
)
from orders.domain.repository import OrderIndex
from orders.infra.models import OrderORM
from orders.infra.repositories import AlbumRepository, CollageRepository, OrderRepository
from orders.services.orders import OrderService
from orders.test.test_services import album_input


def build_order(created_at=None, **overrides) -> Order:
    created_at = created_at or timezone.now()
    fields = {
        "id": str(uuid4()),
        "customer_email": "jane@example.com",
        "type": OrderType.ALBUM,
        "status": OrderStatus.PENDING,
        "total_price": Decimal("12.50"),
        "currency": "USD",
        "image_count": 2,
        "created_at": created_at,
        "updated_at": created_at,
        "images": ["uploads/a.jpg", "uploads/b.jpg"],
    }
    fields.update(overrides)
    return Order(**fields)


class OrderRepositoryTest(TestCase):

    def setUp(self):
        self.repo = OrderRepository()

    def test_create_and_get(self):
        """Test create and get."""
        order = build_order(
            items=[OrderItem(id="p1", name="Print", quantity=Decimal("5"), price=Decimal("2.50"))],
            user_details=UserDetails(
                name="Jane Doe",
                email="jane@example.com",
                phone="+1 555 0100",
                address="1 Main St",
                city="Springfield",
                postal_code="12345",
            ),
            metadata=AlbumMetadata(orientation=Orientation.SQUARE, page_count=20),
            payment_method=PaymentMethod.CARD_PAYMENT,
            special_note="Gift wrap",
            expires_at=1735689600,
        )
        self.repo.create(order)

        loaded = self.repo.get(order.id)

        self.assertEqual(loaded, order)
        self.assertEqual(loaded.total_price, Decimal("12.50"))
        self.assertEqual(loaded.items[0].subtotal, Decimal("12.50"))

    def test_get_missing_or_malformed_id(self):
        """Test get missing or malformed id."""
        self.assertIsNone(self.repo.get(str(uuid4())))
        self.assertIsNone(self.repo.get("not-a-uuid"))

    def test_duplicate_idempotency_key(self):
        """Test duplicate idempotency key."""
        self.repo.create(build_order(idempotency_key="key-1", request_hash="h1"))
        with self.assertRaises(DuplicateIdempotencyKey):
            self.repo.create(build_order(idempotency_key="key-1", request_hash="h1"))
        self.assertEqual(OrderORM.objects.count(), 1)

    def test_get_by_idempotency_key(self):
        """Test get by idempotency key."""
        order = self.repo.create(build_order(idempotency_key="key-1"))
        self.assertEqual(self.repo.get_by_idempotency_key("key-1").id, order.id)
        self.assertIsNone(self.repo.get_by_idempotency_key("key-2"))

    def test_conditional_update(self):
        """Test conditional update."""
        order = self.repo.create(build_order())
        later = order.updated_at + timedelta(seconds=5)

        self.repo.update(replace(order, status=OrderStatus.PROCESSING, updated_at=later), OrderStatus.PENDING)

        stored = self.repo.get(order.id)
        self.assertEqual(stored.status, OrderStatus.PROCESSING)
        self.assertEqual(stored.updated_at, later)
        self.assertEqual(stored.created_at, order.created_at)

    def test_conditional_update_with_stale_status(self):
        """Test conditional update with stale status."""
        order = self.repo.create(build_order(status=OrderStatus.PROCESSING))
        with self.assertRaises(ConcurrentUpdateError):
            self.repo.update(replace(order, status=OrderStatus.FAILED), OrderStatus.PENDING)
        self.assertEqual(self.repo.get(order.id).status, OrderStatus.PROCESSING)

    def test_query_pages_newest_first(self):
        """Test query pages newest first."""
        base = timezone.now()
        orders = [self.repo.create(build_order(created_at=base + timedelta(seconds=i))) for i in range(5)]
        # Two orders sharing a timestamp are ordered by id.
        twin = self.repo.create(build_order(created_at=orders[2].created_at))

        seen = []
        cursor = None
        while True:
            page = self.repo.query(None, None, 2, cursor)
            seen.extend(order.id for order in page.orders)
            if not page.next_cursor:
                break
            cursor = page.next_cursor

        self.assertEqual(len(seen), 6)
        self.assertEqual(set(seen), {o.id for o in orders} | {twin.id})
        self.assertEqual(seen[0], orders[4].id)
        self.assertEqual(seen[-1], orders[0].id)

    def test_query_by_index(self):
        """Test query by index."""
        album = self.repo.create(build_order())
        collage = self.repo.create(build_order(type=OrderType.COLLAGE, customer_email="bob@example.com"))

        by_type = self.repo.query(OrderIndex.TYPE, "collage", 10)
        by_email = self.repo.query(OrderIndex.CUSTOMER_EMAIL, "jane@example.com", 10)

        self.assertEqual([o.id for o in by_type.orders], [collage.id])
        self.assertEqual([o.id for o in by_email.orders], [album.id])
        self.assertIsNone(by_type.next_cursor)


class OrderServiceDatabaseTest(TestCase):

    def test_amount_beyond_column_is_rejected(self):
        """Test amount beyond column is rejected."""
        service = OrderService()
        items = [{"id": "album-1", "name": "Album", "quantity": 1, "price": 1000000000}]

        with self.assertRaises(ValidationError):
            service.create_order(album_input(items=items))

        self.assertEqual(OrderORM.objects.count(), 0)
        self.assertEqual(service.list_orders().orders, [])

    def test_largest_amount_round_trips(self):
        """Test largest amount round trips."""
        service = OrderService()
        items = [{"id": "album-1", "name": "Album", "quantity": 1, "price": "999999999"}]

        order = service.create_order(album_input(items=items, currency="KWD"))

        self.assertEqual(service.get_order(order.id).total_price, Decimal("999999999.000"))

    def test_idempotent_create_stores_one_row(self):
        """Test idempotent create stores one row."""
        service = OrderService()
        first = service.create_order(album_input(), idempotency_key="checkout-42")
        second = service.create_order(album_input(), idempotency_key="checkout-42")

        self.assertEqual(first.id, second.id)
        self.assertEqual(OrderORM.objects.count(), 1)

    def test_status_lifecycle(self):
        """Test status lifecycle."""
        service = OrderService()
        order = service.create_order(album_input())
        service.update_status(order.id, "PROCESSING")
        service.update_status(order.id, "FAILED", "Out of paper")

        stored = OrderORM.objects.get(id=order.id)
        self.assertEqual(stored.status, "FAILED")
        self.assertEqual(stored.error_message, "Out of paper")


class ProcessOrdersCommandTest(TestCase):

    def test_processes_orders_in_processing(self):
        """Test processes orders in processing."""
        service = OrderService()
        order = service.create_order(album_input())
        service.update_status(order.id, "PROCESSING")

        out = StringIO()
        call_command("process_orders", "--limit", "10", stdout=out)

        self.assertIn("Processed 1 orders (0 failed)", out.getvalue())
        self.assertEqual(service.get_order(order.id).status, OrderStatus.COMPLETED)


class AlbumCollageRepositoryTest(TestCase):

    def test_album(self):
        """Test album."""
        repo = AlbumRepository()
        album = repo.create(customer_id="cust-1", name="Wedding", image_count=12)

        self.assertEqual(repo.get_by_id(album.id).name, "Wedding")
        self.assertEqual([a.id for a in repo.get_by_customer("cust-1")], [album.id])
        self.assertEqual(repo.storage_prefix(album), "albums/cust-1/")
        self.assertIsNone(repo.get_by_id("nope"))

    def test_collage(self):
        """Test collage."""
        repo = CollageRepository()
        collage = repo.create(customer_id="cust-1", name="Holiday", source_images=["a.jpg"])

        self.assertEqual(repo.get_by_id(collage.id).source_images, ["a.jpg"])
        self.assertEqual(repo.get_by_customer("cust-2"), [])
        self.assertEqual(repo.storage_prefix(collage), "collages/cust-1/")
