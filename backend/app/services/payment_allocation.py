"""
Split an order's payments into the amounts actually applied per method.

An order can be settled with several payments (part cash, part card) and can be
over-tendered, with change handed back. Summing raw payment amounts per method
would count that change as cash sales, so payments are applied in the order
they were taken and capped at what is still owed on the order.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from app.core.money import ZERO, money_sum, parse_money
from app.models.payment import PAYMENT_METHODS


def _method_of(payment: Any) -> Optional[str]:
    method = getattr(payment, "method", None)
    method = getattr(method, "value", method)
    if isinstance(method, str) and method in PAYMENT_METHODS:
        return method
    return None


def _chronological_key(payment: Any):
    # paid_at can collide between payments taken in the same second
    paid_at = getattr(payment, "paid_at", None) or datetime.min
    return paid_at, str(getattr(payment, "id", None) or "")


def allocate_payments(order_total: Any, payments: Iterable[Any]) -> Dict[str, Decimal]:
    """
    Return the amount of ``order_total`` covered by each payment method.

    Payments are applied by (paid_at, id). Each applies at most what is still
    owed; anything past that is change and is not attributed to any method.
    Payments without a positive amount or with an unknown method are ignored,
    as is a negative or unparseable total (treated as zero).

    Args:
        order_total: The order's total
        payments: Objects exposing ``id``, ``amount``, ``method`` and ``paid_at``

    Returns:
        Mapping of method -> applied amount, only for methods that applied something
    """
    total = parse_money(order_total)
    remaining = max(total, ZERO) if total is not None else ZERO
    applied: Dict[str, Decimal] = {}

    for payment in sorted(payments, key=_chronological_key):
        if remaining <= ZERO:
            break
        method = _method_of(payment)
        amount = parse_money(getattr(payment, "amount", None))
        if method is None or amount is None or amount <= ZERO:
            continue
        portion = min(amount, remaining)
        applied[method] = applied.get(method, ZERO) + portion
        remaining -= portion

    return applied


def applied_total(allocation: Dict[str, Decimal]) -> Decimal:
    return money_sum(allocation.values())
