from __future__ import annotations

from uuid import uuid4

from django.db import models


ORDER_TYPE_CHOICES = (
    ("album", "Album"),
    ("collage", "Collage"),
)

PAYMENT_METHOD_CHOICES = (
    ("bank_transfer", "Bank transfer"),
    ("card_payment", "Card payment"),
)


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class OrderORM(models.Model):
    """Order record. Timestamps are owned by the service layer."""

    STATUS_CHOICES = (
        ("PENDING", "Pending"),
        ("PROCESSING", "Processing"),
        ("COMPLETED", "Completed"),
        ("FAILED", "Failed"),
    )

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    customer_email = models.EmailField(max_length=254)
    customer_id = models.CharField(max_length=255, null=True, blank=True)
    type = models.CharField(max_length=16, choices=ORDER_TYPE_CHOICES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES)
    total_price = models.DecimalField(max_digits=12, decimal_places=3)
    currency = models.CharField(max_length=3, default="USD")
    payment_method = models.CharField(
        max_length=32, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True
    )
    image_count = models.PositiveIntegerField()
    images = models.JSONField(default=list)
    items = models.JSONField(default=list)
    user_details = models.JSONField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)
    special_note = models.TextField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    expires_at = models.BigIntegerField(null=True, blank=True)
    idempotency_key = models.CharField(max_length=255, unique=True, null=True, blank=True)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "orders_order"
        indexes = [
            models.Index(fields=("customer_email", "-created_at"), name="orders_orde_custome_6d1c2a_idx"),
            models.Index(fields=("status", "-created_at"), name="orders_orde_status_8f3b1e_idx"),
            models.Index(fields=("type", "-created_at"), name="orders_orde_type_4a9c7d_idx"),
            models.Index(fields=("-created_at", "-id"), name="orders_orde_created_2e5f90_idx"),
        ]


class AlbumORM(TimeStampedModel):

    STATUS_CHOICES = (
        ("UPLOADING", "Uploading"),
        ("READY", "Ready"),
        ("PROCESSING", "Processing"),
        ("COMPLETED", "Completed"),
    )

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    customer_id = models.CharField(max_length=255)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    image_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="UPLOADING")
    pdf_url = models.URLField(max_length=1024, null=True, blank=True)

    class Meta:
        db_table = "orders_album"
        indexes = [
            models.Index(fields=("customer_id", "-created_at"), name="orders_albu_custome_1b7d3f_idx"),
        ]


class CollageORM(TimeStampedModel):

    STATUS_CHOICES = (
        ("DRAFT", "Draft"),
        ("PROCESSING", "Processing"),
        ("COMPLETED", "Completed"),
        ("FAILED", "Failed"),
    )

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    customer_id = models.CharField(max_length=255)
    name = models.CharField(max_length=255)
    template = models.CharField(max_length=255, blank=True, default="")
    source_images = models.JSONField(default=list)
    output_image_url = models.URLField(max_length=1024, null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="DRAFT")
    metadata = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "orders_collage"
        indexes = [
            models.Index(fields=("customer_id", "-created_at"), name="orders_coll_custome_9e2a64_idx"),
        ]
