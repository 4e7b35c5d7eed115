import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OrderORM",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_email", models.EmailField(max_length=254)),
                ("customer_id", models.CharField(blank=True, max_length=255, null=True)),
                ("type", models.CharField(choices=[("album", "Album"), ("collage", "Collage")], max_length=16)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PROCESSING", "Processing"), ("COMPLETED", "Completed"), ("FAILED", "Failed")], max_length=16)),
                ("total_price", models.DecimalField(decimal_places=3, max_digits=12)),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("payment_method", models.CharField(blank=True, choices=[("bank_transfer", "Bank transfer"), ("card_payment", "Card payment")], max_length=32, null=True)),
                ("image_count", models.PositiveIntegerField()),
                ("images", models.JSONField(default=list)),
                ("items", models.JSONField(default=list)),
                ("user_details", models.JSONField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, null=True)),
                ("special_note", models.TextField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("expires_at", models.BigIntegerField(blank=True, null=True)),
                ("idempotency_key", models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ("request_hash", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "db_table": "orders_order",
                "indexes": [
                    models.Index(fields=["customer_email", "-created_at"], name="orders_orde_custome_6d1c2a_idx"),
                    models.Index(fields=["status", "-created_at"], name="orders_orde_status_8f3b1e_idx"),
                    models.Index(fields=["type", "-created_at"], name="orders_orde_type_4a9c7d_idx"),
                    models.Index(fields=["-created_at", "-id"], name="orders_orde_created_2e5f90_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AlbumORM",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_id", models.CharField(max_length=255)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("image_count", models.PositiveIntegerField(default=0)),
                ("status", models.CharField(choices=[("UPLOADING", "Uploading"), ("READY", "Ready"), ("PROCESSING", "Processing"), ("COMPLETED", "Completed")], default="UPLOADING", max_length=16)),
                ("pdf_url", models.URLField(blank=True, max_length=1024, null=True)),
            ],
            options={
                "db_table": "orders_album",
                "indexes": [
                    models.Index(fields=["customer_id", "-created_at"], name="orders_albu_custome_1b7d3f_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CollageORM",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_id", models.CharField(max_length=255)),
                ("name", models.CharField(max_length=255)),
                ("template", models.CharField(blank=True, default="", max_length=255)),
                ("source_images", models.JSONField(default=list)),
                ("output_image_url", models.URLField(blank=True, max_length=1024, null=True)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("PROCESSING", "Processing"), ("COMPLETED", "Completed"), ("FAILED", "Failed")], default="DRAFT", max_length=16)),
                ("metadata", models.JSONField(blank=True, null=True)),
            ],
            options={
                "db_table": "orders_collage",
                "indexes": [
                    models.Index(fields=["customer_id", "-created_at"], name="orders_coll_custome_9e2a64_idx"),
                ],
            },
        ),
    ]
