from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

from app.core.money import parse_money, to_money
from app.services.payment_allocation import allocate_payments, applied_total


T0 = datetime(2026, 1, 1, 12, 0, 0)


def pay(method, amount, minutes=0, id=None):
    return SimpleNamespace(
        id=id or f"p-{method}-{minutes}",
        method=method,
        amount=amount,
        paid_at=T0 + timedelta(minutes=minutes),
    )


def test_split_payment_truncates_the_later_method():
    allocation = allocate_payments(1000, [pay("cash", 700, 0), pay("card", 500, 5)])
    assert allocation == {"cash": Decimal("700.00"), "card": Decimal("300.00")}
    assert applied_total(allocation) == Decimal("1000.00")


def test_allocation_follows_payment_time_not_list_order():
    allocation = allocate_payments(1000, [pay("card", 500, 5), pay("cash", 700, 0)])
    assert allocation["cash"] == Decimal("700.00")
    assert allocation["card"] == Decimal("300.00")


def test_over_tendered_cash_is_capped_at_total():
    allocation = allocate_payments(500, [pay("cash", 800)])
    assert allocation == {"cash": Decimal("500.00")}


def test_payments_after_settlement_apply_nothing():
    allocation = allocate_payments(200, [pay("card", 200, 0), pay("cash", 50, 1)])
    assert allocation == {"card": Decimal("200.00")}


def test_underpaid_order_applies_everything_received():
    allocation = allocate_payments(300, [pay("cash", 100, 0), pay("online", 50, 1)])
    assert applied_total(allocation) == Decimal("150.00")


def test_equal_paid_at_breaks_ties_by_id():
    payments = [pay("card", 80, 0, id="b"), pay("cash", 80, 0, id="a")]
    allocation = allocate_payments(100, payments)
    assert allocation == {"cash": Decimal("80.00"), "card": Decimal("20.00")}


def test_malformed_payments_are_ignored():
    payments = [
        pay("cash", -50, 0),
        pay("cash", 0, 1),
        pay("voucher", 40, 2),
        pay("card", "not a number", 3),
        pay("online", 30, 4),
    ]
    assert allocate_payments(100, payments) == {"online": Decimal("30.00")}


def test_negative_or_missing_total_allocates_nothing():
    assert allocate_payments(-10, [pay("cash", 10)]) == {}
    assert allocate_payments(None, [pay("cash", 10)]) == {}
    assert allocate_payments(100, []) == {}


def test_missing_paid_at_sorts_first():
    late = pay("card", 60, 10)
    undated = SimpleNamespace(id="x", method="cash", amount=60, paid_at=None)
    assert allocate_payments(100, [late, undated]) == {"cash": Decimal("60.00"), "card": Decimal("40.00")}


def test_applied_sum_never_exceeds_total():
    payment_sets = [
        [pay("cash", 33.33, 0), pay("card", 33.33, 1), pay("online", 33.34, 2)],
        [pay("cash", 10, 0), pay("card", 999.99, 1)],
        [pay("other", 0.01, 0)],
        [],
    ]
    for total in (Decimal("0"), Decimal("0.01"), Decimal("99.99"), Decimal("100"), Decimal("1000")):
        for payments in payment_sets:
            allocation = allocate_payments(total, payments)
            paid = sum((Decimal(str(p.amount)) for p in payments), Decimal("0"))
            applied = applied_total(allocation)
            assert applied <= total
            assert (applied == total) == (paid >= total)


def test_money_helpers_round_to_cents():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(0.1) == Decimal("0.10")
    assert parse_money("abc") is None
    assert parse_money(True) is None
    assert parse_money(float("nan")) is None
