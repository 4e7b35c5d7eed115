"""
Wire representations of engine results.
"""
from __future__ import annotations

from orders.domain.order import Order
from orders.domain.repository import OrderPage
from orders.services.processing import ProcessingResult
from orders.services.uploads import PresignedUpload


def format_order(order: Order) -> dict:
    data = {
        "orderId": order.id,
        "customerEmail": order.customer_email,
        "customerId": order.customer_id,
        "type": order.type.value,
        "status": order.status.value,
        "totalPrice": str(order.total_price),
        "currency": order.currency,
        "imageCount": order.image_count,
        "images": list(order.images),
        "userDetails": order.user_details.to_dict() if order.user_details else None,
        "metadata": order.metadata.to_dict() if order.metadata else None,
        "paymentMethod": order.payment_method.value if order.payment_method else None,
        "specialNote": order.special_note,
        "errorMessage": order.error_message,
        "expiresAt": order.expires_at,
        "createdAt": order.created_at.isoformat(),
        "updatedAt": order.updated_at.isoformat(),
    }
    if order.items:
        data["items"] = [item.to_dict() for item in order.items]
    return data


def format_order_page(page: OrderPage) -> dict:
    orders = [format_order(order) for order in page.orders]
    return {
        "orders": orders,
        "nextToken": page.next_cursor,
        "count": len(orders),
    }


def format_processing_result(result: ProcessingResult) -> dict:
    data = {
        "orderId": result.order_id,
        "status": result.status.value,
        "message": result.message,
    }
    if result.error:
        data["error"] = result.error
    return data


def format_presigned_upload(upload: PresignedUpload) -> dict:
    return {
        "uploadKey": upload.upload_key,
        "uploadUrl": upload.upload_url,
        "expiresIn": upload.expires_in,
        "expiry": upload.expiry.isoformat(),
        "maxFileSize": upload.max_file_size,
        "allowedTypes": list(upload.allowed_types),
    }
