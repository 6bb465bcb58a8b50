"""
Money helpers.

All amounts are handled as ``Decimal`` with two decimal places, the same
precision as the ``Numeric(10, 2)`` columns that store them.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Convert ``value`` into a two-decimal ``Decimal``.

    Raises:
        InvalidOperation / ValueError / TypeError: if the value is not a finite number
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not amounts")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        amount = Decimal(str(value))
    else:
        amount = Decimal(str(value).strip())
    if not amount.is_finite():
        raise InvalidOperation(f"{value!r} is not a finite amount")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: Any) -> Optional[Decimal]:
    """Lenient variant of ``to_money``: ``None`` for anything that is not an amount."""
    if value is None:
        return None
    try:
        return to_money(value)
    except (InvalidOperation, ValueError, TypeError):
        return None


def money_sum(values) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value)
    return total
