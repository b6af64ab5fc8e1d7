# tableside/ordering/pricing.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from ..errors import InvalidInput

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Parse a price (Decimal, int, float or numeric string) into a non-negative Decimal."""
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid price: {value!r}")
    try:
        # str() first so 12.1 becomes Decimal("12.1"), not its binary expansion
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"Invalid price: {value!r}") from None
    if not amount.is_finite() or amount < 0:
        raise InvalidInput(f"Price must be a non-negative amount, got {value!r}")
    return amount


def _quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"Quantity must be a whole number, got {value!r}")
    if value < 0:
        raise InvalidInput(f"Quantity cannot be negative, got {value}")
    return value


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Any, quantity: Any) -> Decimal:
    return round_money(to_money(unit_price) * _quantity(quantity))


def order_total(lines: Iterable[Any]) -> Decimal:
    """Sum of line totals. Lines only need `unit_price` and `quantity` attributes."""
    total = Decimal("0")
    for line in lines:
        total += line_total(line.unit_price, line.quantity)
    return round_money(total)
