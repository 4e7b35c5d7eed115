"""
Server-side pricing rules.

Itemized orders are priced as the exact sum of ``price * quantity``; orders
without line items pay a flat fee keyed by order type. Client-supplied totals
are never used.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Mapping

from orders.domain.errors import ValidationError
from orders.domain.order import OrderItem, OrderType

DEFAULT_FLAT_FEES = {
    OrderType.ALBUM: Decimal("5.00"),
    OrderType.COLLAGE: Decimal("3.00"),
}

# ISO 4217 minor units for currencies that differ from the default of 2.
CURRENCY_MINOR_UNITS = {
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "BHD": 3,
    "KWD": 3,
    "OMR": 3,
}
DEFAULT_MINOR_UNITS = 2

# Largest amount the order table stores at any currency precision.
MAX_AMOUNT = Decimal("999999999")


class PricingMode(str, Enum):
    ITEMIZED = "itemized"
    FLAT = "flat"


def quantize(amount: Decimal, currency: str) -> Decimal:
    """Round ``amount`` to the currency's minor-unit precision."""
    digits = CURRENCY_MINOR_UNITS.get(currency.upper(), DEFAULT_MINOR_UNITS)
    return amount.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)


def itemized_total(items: Iterable[OrderItem], currency: str) -> Decimal:
    """Sum of line subtotals; Decimal addition keeps the result order independent."""
    return quantize(sum((item.subtotal for item in items), Decimal("0")), currency)


class PricingEngine:
    """Compute an order's total price."""

    def __init__(self, flat_fees: Mapping | None = None):
        fees = flat_fees if flat_fees is not None else DEFAULT_FLAT_FEES
        self.flat_fees = {
            OrderType(order_type): Decimal(str(fee)) for order_type, fee in fees.items()
        }

    def mode_for(self, items: list[OrderItem] | None) -> PricingMode:
        return PricingMode.ITEMIZED if items else PricingMode.FLAT

    def price(
        self,
        order_type: OrderType,
        items: list[OrderItem] | None = None,
        currency: str = "USD",
    ) -> Decimal:
        if self.mode_for(items) == PricingMode.ITEMIZED:
            total = self._checked(lambda: itemized_total(items, currency))
        else:
            try:
                fee = self.flat_fees[OrderType(order_type)]
            except KeyError:
                raise ValueError(f"No flat fee configured for order type {order_type!r}")
            total = self._checked(lambda: quantize(fee, currency))

        if total > MAX_AMOUNT:
            raise ValidationError.for_field(
                "totalPrice", f"Order total exceeds maximum of {MAX_AMOUNT}"
            )
        return total

    def _checked(self, compute) -> Decimal:
        try:
            return compute()
        except InvalidOperation:
            raise ValidationError.for_field("totalPrice", "Order total cannot be represented")
