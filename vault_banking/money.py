"""
Money Handling Module

Amounts are Decimal with two places, rounded ROUND_HALF_UP. NEVER uses float
for stored values.
"""

from decimal import Decimal, Inexact, InvalidOperation, ROUND_HALF_UP, getcontext, localcontext
from typing import Any

from .exceptions import InvalidAmount

# High precision for intermediate results
getcontext().prec = 28

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Largest amount a single operation may carry
MAX_AMOUNT = Decimal("1000000000.00")


def quantize(value: Decimal) -> Decimal:
    """Round to cents"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value: Any, maximum: Decimal = MAX_AMOUNT) -> Decimal:
    """
    Parse a client-supplied amount into a positive, finite Decimal.

    Accepts Decimal, int, float and numeric strings. Booleans, None, NaN,
    infinities, anything that rounds to zero or below and anything above
    ``maximum`` raise InvalidAmount.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount()

    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            # str() keeps 0.1 as 0.1 instead of its binary expansion
            amount = Decimal(str(value))
        elif isinstance(value, str):
            amount = Decimal(value.strip())
        else:
            raise InvalidAmount()
    except InvalidOperation:
        raise InvalidAmount()

    if not amount.is_finite():
        raise InvalidAmount()

    try:
        amount = quantize(amount)
    except InvalidOperation:
        raise InvalidAmount()
    if amount <= ZERO or amount > maximum:
        raise InvalidAmount()
    return amount


def exact_add(a: Decimal, b: Decimal) -> Decimal:
    """Add two amounts, raising InvalidAmount if the sum cannot be held exactly"""
    with localcontext() as ctx:
        ctx.traps[Inexact] = True
        try:
            return a + b
        except Inexact:
            raise InvalidAmount("Amount exceeds the supported balance precision")


def format_amount(value: Decimal) -> str:
    """Render an amount for activity text, e.g. 100 -> "100", 40.5 -> "40.50" """
    value = quantize(value)
    if value == value.to_integral_value():
        return str(value.to_integral_value())
    return str(value)
