# Overview: Fixed-point currency helpers shared by models, validation and reporting.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_AMOUNT = Decimal("9999999.99")


def to_money(value, *, field: str = "amount") -> Decimal:
    """
    Convert user input to a 2-place Decimal.

    Accepts Decimal, int and numeric strings. Floats are routed through
    str() so 10.1 becomes Decimal("10.10") rather than its binary expansion.
    Raises ValidationError for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} cannot have more than 2 decimal places")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    return int((amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return (unit_price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
