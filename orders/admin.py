from django.contrib import admin

from orders.infra.models import AlbumORM, CollageORM, OrderORM


@admin.register(OrderORM)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_email", "type", "status", "total_price", "currency", "created_at")
    list_filter = ("status", "type", "created_at")
    search_fields = ("id", "customer_email", "idempotency_key")
    readonly_fields = ("request_hash", "created_at", "updated_at")


@admin.register(AlbumORM)
class AlbumAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_id", "name", "status", "image_count", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("customer_id", "name")


@admin.register(CollageORM)
class CollageAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_id", "name", "status", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("customer_id", "name")
