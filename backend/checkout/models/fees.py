"""
Order amount computation.

Amounts are currency units (COP has no fractional cents in practice);
the gateway expects minor units, so totals are converted at the boundary.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal, str]


@dataclass(frozen=True)
class OrderAmounts:
    """Amount breakdown for a single-product order."""
    amount: Decimal
    base_fee: Decimal
    delivery_fee: Decimal
    total_amount: Decimal


def _to_decimal(value: Number) -> Decimal:
    # floats go through str() so 0.1 stays 0.1
    return value if isinstance(value, Decimal) else Decimal(str(value))


def compute_order_amounts(
    unit_price: Number,
    quantity: int,
    base_fee: Number,
    delivery_fee: Number
) -> OrderAmounts:
    """
    Compute amount and total for an order.

    amount = unit_price * quantity
    total_amount = amount + base_fee + delivery_fee

    Raises:
        ValueError: negative price or fee, or quantity below 1
    """
    price = _to_decimal(unit_price)
    base = _to_decimal(base_fee)
    delivery = _to_decimal(delivery_fee)

    if price < 0:
        raise ValueError("Unit price cannot be negative")
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")
    if base < 0:
        raise ValueError("Base fee cannot be negative")
    if delivery < 0:
        raise ValueError("Delivery fee cannot be negative")

    amount = price * quantity
    return OrderAmounts(
        amount=amount,
        base_fee=base,
        delivery_fee=delivery,
        total_amount=amount + base + delivery,
    )


def to_minor_units(amount: Number) -> int:
    """Convert a currency amount to gateway cents, rounding half up."""
    cents = _to_decimal(amount) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
