"""
Input validation for order intake and upload requests.

Validators never raise for malformed input: they return a ``ValidationResult``
whose errors follow rule order, so identical input always yields the same
error list.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from orders.domain.errors import FieldError
from orders.domain.order import OrderType, Orientation, PaymentMethod
from orders.domain.pricing import MAX_AMOUNT

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")
OWNER_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

USER_DETAILS_REQUIRED = ("name", "email", "phone", "address", "city", "postalCode")
SPECIAL_NOTE_MAX_LENGTH = 1000

ALLOWED_UPLOAD_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "application/pdf",
)


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str, code: str | None = None) -> None:
        self.errors.append(FieldError(field_name, message, code))


def is_non_empty_string(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_valid_email(value) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))


def to_decimal(value) -> Decimal | None:
    """Coerce a JSON number (or numeric string) to Decimal; None if not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
    elif isinstance(value, str) and value.strip():
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite():
        return None
    return number


def _is_choice(value, choices) -> bool:
    return isinstance(value, str) and value in {choice.value for choice in choices}


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_create_order(data) -> ValidationResult:
    """Validate a create-order input record.

    Itemized orders carry ``items``; flat-fee orders carry ``images`` and
    ``userDetails``.
    """
    result = ValidationResult()
    if not isinstance(data, dict):
        result.add("input", "Input must be an object")
        return result

    email = data.get("customerEmail")
    if not is_non_empty_string(email):
        result.add("customerEmail", "customerEmail is required")
    elif not is_valid_email(email):
        result.add("customerEmail", "Invalid email format")

    order_type = data.get("type")
    if not _is_choice(order_type, OrderType):
        result.add("type", "type must be one of: album, collage")

    itemized = "items" in data
    if itemized:
        _validate_items(data.get("items"), result)
        if data.get("images") is not None:
            _validate_images(data["images"], result)
    else:
        _validate_images(data.get("images"), result)

    if "userDetails" in data or not itemized:
        _validate_user_details(data.get("userDetails"), result)

    _validate_optional_fields(data, result)
    return result


def _validate_items(items, result: ValidationResult) -> None:
    if not isinstance(items, list) or not items:
        result.add("items", "Items must be a non-empty array")
        return

    total = Decimal("0")
    priced = True
    for index, item in enumerate(items):
        prefix = f"items[{index}]"
        if not isinstance(item, dict):
            result.add(prefix, "Item must be an object")
            continue
        if not is_non_empty_string(item.get("id")):
            result.add(f"{prefix}.id", "Item ID is required")
        if not is_non_empty_string(item.get("name")):
            result.add(f"{prefix}.name", "Item name is required")
        quantity = to_decimal(item.get("quantity"))
        if quantity is None or quantity <= 0:
            result.add(f"{prefix}.quantity", "Quantity must be a positive number")
            quantity = None
        elif quantity > MAX_AMOUNT:
            result.add(f"{prefix}.quantity", f"Quantity must not exceed {MAX_AMOUNT}")
            quantity = None
        price = to_decimal(item.get("price"))
        if price is None or price < 0:
            result.add(f"{prefix}.price", "Price must be a non-negative number")
            price = None
        elif price > MAX_AMOUNT:
            result.add(f"{prefix}.price", f"Price must not exceed {MAX_AMOUNT}")
            price = None

        if price is None or quantity is None:
            priced = False
        else:
            total += price * quantity

    if priced and total > MAX_AMOUNT:
        result.add("totalPrice", f"Order total exceeds maximum of {MAX_AMOUNT}")


def _validate_images(images, result: ValidationResult) -> None:
    if isinstance(images, str):
        if not images.strip():
            result.add("images", "images is required")
        return
    if not isinstance(images, list) or not images:
        result.add("images", "images must be a non-empty array of references")
        return
    for index, ref in enumerate(images):
        if not is_non_empty_string(ref):
            result.add(f"images[{index}]", "Image reference must be a non-empty string")


def _validate_user_details(details, result: ValidationResult) -> None:
    if not isinstance(details, dict):
        result.add("userDetails", "userDetails is required")
        return

    for name in USER_DETAILS_REQUIRED:
        if not is_non_empty_string(details.get(name)):
            result.add(f"userDetails.{name}", f"{name} is required")
        elif name == "email" and not is_valid_email(details[name]):
            result.add("userDetails.email", "Invalid email format")

    instructions = details.get("specialInstructions")
    if instructions is not None and not isinstance(instructions, str):
        result.add("userDetails.specialInstructions", "specialInstructions must be a string")


def _validate_optional_fields(data: dict, result: ValidationResult) -> None:
    customer_id = data.get("customerId")
    if customer_id is not None and not is_non_empty_string(customer_id):
        result.add("customerId", "customerId must be a non-empty string")

    currency = data.get("currency")
    if currency is not None and not (isinstance(currency, str) and CURRENCY_RE.match(currency)):
        result.add("currency", "currency must be a 3-letter code")

    payment_method = data.get("paymentMethod")
    if payment_method is not None and not _is_choice(payment_method, PaymentMethod):
        result.add("paymentMethod", "paymentMethod must be one of: bank_transfer, card_payment")

    image_count = data.get("imageCount")
    if image_count is not None and not _is_positive_int(image_count):
        result.add("imageCount", "imageCount must be a positive integer")

    note = data.get("specialNote")
    if note is not None:
        if not isinstance(note, str):
            result.add("specialNote", "specialNote must be a string")
        elif len(note) > SPECIAL_NOTE_MAX_LENGTH:
            result.add("specialNote", f"specialNote must be at most {SPECIAL_NOTE_MAX_LENGTH} characters")

    if "metadata" in data and data["metadata"] is not None:
        _validate_metadata(data.get("type"), data["metadata"], result)


def _validate_metadata(order_type, metadata, result: ValidationResult) -> None:
    if not isinstance(metadata, dict):
        result.add("metadata", "metadata must be an object")
        return

    orientation = metadata.get("orientation")
    if orientation is not None and not _is_choice(orientation, Orientation):
        result.add("metadata.orientation", "orientation must be one of: portrait, landscape, square")

    if order_type == OrderType.ALBUM.value:
        page_count = metadata.get("pageCount")
        if page_count is not None and not _is_positive_int(page_count):
            result.add("metadata.pageCount", "pageCount must be a positive integer")
    elif order_type == OrderType.COLLAGE.value:
        layout = metadata.get("layout")
        if layout is not None and not is_non_empty_string(layout):
            result.add("metadata.layout", "layout must be a non-empty string")


def validate_upload_request(
    kind,
    owner_id,
    file_name,
    content_type,
    file_size=None,
    max_file_size: int | None = None,
) -> ValidationResult:
    """Validate presigned upload metadata. Each error carries its own code."""
    result = ValidationResult()

    if not _is_choice(kind, OrderType):
        result.add("kind", "Invalid type. Must be 'album' or 'collage'", "INVALID_TYPE")

    if not is_non_empty_string(owner_id):
        result.add("ownerId", "ownerId is required", "MISSING_OWNER_ID")
    elif not OWNER_ID_RE.match(owner_id):
        result.add("ownerId", "ownerId may only contain letters, digits, '_' and '-'", "INVALID_OWNER_ID")

    if not is_non_empty_string(file_name):
        result.add("fileName", "File name is required", "MISSING_FILE_NAME")

    if not is_non_empty_string(content_type):
        result.add("contentType", "Content type is required", "MISSING_CONTENT_TYPE")
    elif content_type not in ALLOWED_UPLOAD_TYPES:
        result.add(
            "contentType",
            f"Invalid content type. Allowed types: {', '.join(ALLOWED_UPLOAD_TYPES)}",
            "INVALID_CONTENT_TYPE",
        )

    if file_size is not None:
        if not _is_positive_int(file_size):
            result.add("fileSize", "fileSize must be a positive integer", "INVALID_FILE_SIZE")
        elif max_file_size is not None and file_size > max_file_size:
            result.add(
                "fileSize",
                f"File too large. Maximum size: {max_file_size // (1024 * 1024)}MB",
                "FILE_TOO_LARGE",
            )

    return result
