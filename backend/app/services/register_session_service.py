"""
Cash drawer shifts: open, correct and close register sessions.

A session goes ``open -> closed`` exactly once. Closing reconciles the drawer:
the cash expected in it is the opening float plus the cash applied to the
session's completed orders, and the difference against the counted cash is
stored as an overage (positive) or shortage (negative).
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, List, Optional, TypedDict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AlreadyClosedError, ConflictError, NotFoundError, ValidationError
from app.core.money import ZERO, parse_money, to_money
from app.models.base import new_id, utcnow
from app.models.order import Order, OrderStatus
from app.models.payment import Payment, PaymentMethod
from app.models.register_session import RegisterSession, SessionStatus
from app.models.user import User
from app.services.payment_allocation import allocate_payments


logger = logging.getLogger(__name__)


class SessionFinancials(TypedDict):
    total_sales: Decimal
    total_orders: int
    cash_sales: Decimal


def _user_exists(db: Session, user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    return db.query(User.id).filter(User.id == user_id).first() is not None


def _non_negative_amount(value: Any, field: str, required_message: str) -> Decimal:
    amount = parse_money(value)
    if amount is None:
        raise ValidationError(required_message)
    if amount < ZERO:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def _expected_cash_override(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    amount = parse_money(value)
    if amount is None:
        raise ValidationError("expectedCash must be a number")
    return amount


def get_session(db: Session, session_id: str) -> RegisterSession:
    session = db.query(RegisterSession).filter(RegisterSession.id == session_id).first()
    if not session:
        raise NotFoundError("Register session not found")
    return session


def list_sessions(db: Session) -> List[RegisterSession]:
    return db.query(RegisterSession).order_by(RegisterSession.opened_at.desc()).all()


def get_active_session(db: Session) -> Optional[RegisterSession]:
    return (
        db.query(RegisterSession)
        .filter(RegisterSession.status == SessionStatus.open.value)
        .order_by(RegisterSession.opened_at.desc())
        .first()
    )


def get_session_financials(db: Session, session_id: str) -> SessionFinancials:
    """
    Sales figures of a session, counting completed orders only.

    Orders still open when the session is closed are left out, and so are the
    payments they receive afterwards.
    """
    orders = (
        db.query(Order)
        .filter(
            Order.register_session_id == session_id,
            Order.status == OrderStatus.completed.value,
        )
        .all()
    )
    if not orders:
        return SessionFinancials(total_sales=ZERO, total_orders=0, cash_sales=ZERO)

    payments_by_order = defaultdict(list)
    payments = db.query(Payment).filter(Payment.order_id.in_([o.id for o in orders])).all()
    for payment in payments:
        payments_by_order[payment.order_id].append(payment)

    total_sales = ZERO
    cash_sales = ZERO
    for order in orders:
        total_sales += to_money(order.total)
        allocation = allocate_payments(order.total, payments_by_order[order.id])
        cash_sales += allocation.get(PaymentMethod.cash.value, ZERO)

    return SessionFinancials(total_sales=total_sales, total_orders=len(orders), cash_sales=cash_sales)


def open_session(
    db: Session,
    opened_by: Optional[str],
    opening_cash: Any,
    session_id: Optional[str] = None,
) -> RegisterSession:
    """
    Open the cash drawer.

    The "one open session" rule is enforced by a partial unique index on
    ``register_sessions.status``; the lookup below only produces a friendlier
    error in the common case. Two concurrent openers that both pass it are
    separated by the index, and the loser gets a ConflictError.

    Raises:
        ValidationError: missing fields, bad amount, unknown user
        ConflictError: a session is already open, or the id is taken
    """
    if not opened_by or opening_cash is None:
        raise ValidationError("Missing required fields")
    amount = _non_negative_amount(opening_cash, "openingCash", "openingCash must be a number")
    if not _user_exists(db, opened_by):
        raise ValidationError("Opening user not found")

    active = get_active_session(db)
    if active is not None:
        raise ConflictError(f"Register session {active.id} is already open")
    if session_id and db.query(RegisterSession.id).filter(RegisterSession.id == session_id).first():
        raise ConflictError(f"Register session {session_id} already exists")

    session = RegisterSession(
        id=session_id or new_id(),
        status=SessionStatus.open.value,
        opened_by=opened_by,
        opened_at=utcnow(),
        opening_cash=amount,
        total_sales=ZERO,
        total_orders=0,
    )
    db.add(session)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Another register session is already open") from exc
    db.refresh(session)

    logger.info("Register session %s opened by %s with %s", session.id, opened_by, amount)
    return session


def close_session(
    db: Session,
    session_id: str,
    closed_by: Optional[str],
    closing_cash: Any,
    expected_cash: Any = None,
    notes: Optional[str] = None,
) -> RegisterSession:
    """
    Close the drawer and store its reconciliation.

    ``expected_cash`` overrides the computed figure (manual correction). The
    write is conditional on the row still being open, so of two concurrent
    closes only one succeeds.

    Raises:
        NotFoundError: unknown session
        ValidationError: missing/unknown closer, missing or invalid closing cash
        AlreadyClosedError: the session is not open
    """
    session = get_session(db, session_id)
    if not closed_by:
        raise ValidationError("closedBy is required to close the session")
    if not _user_exists(db, closed_by):
        raise ValidationError("Closing user not found")
    if session.status == SessionStatus.closed.value:
        raise AlreadyClosedError("Session is already closed")

    closing = _non_negative_amount(closing_cash, "closingCash", "closingCash is required to close the session")
    override = _expected_cash_override(expected_cash)

    financials = get_session_financials(db, session.id)
    if override is not None:
        expected = override
    else:
        expected = to_money(session.opening_cash) + financials["cash_sales"]
    difference = closing - expected

    updated = (
        db.query(RegisterSession)
        .filter(
            RegisterSession.id == session.id,
            RegisterSession.status == SessionStatus.open.value,
        )
        .update(
            {
                RegisterSession.status: SessionStatus.closed.value,
                RegisterSession.closed_by: closed_by,
                RegisterSession.closed_at: utcnow(),
                RegisterSession.closing_cash: closing,
                RegisterSession.expected_cash: expected,
                RegisterSession.cash_difference: difference,
                RegisterSession.notes: notes,
                RegisterSession.total_sales: financials["total_sales"],
                RegisterSession.total_orders: financials["total_orders"],
            },
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        raise AlreadyClosedError("Session is already closed")
    db.commit()
    db.refresh(session)

    if difference != ZERO:
        logger.warning(
            "Register session %s closed with cash difference %s (expected %s, counted %s)",
            session.id, difference, expected, closing,
        )
    else:
        logger.info("Register session %s closed by %s, drawer balanced at %s", session.id, closed_by, closing)
    return session


def update_session(
    db: Session,
    session_id: str,
    closed_by: Optional[str] = None,
    closing_cash: Any = None,
    expected_cash: Any = None,
    notes: Optional[str] = None,
) -> RegisterSession:
    """
    Correct a session's reconciliation fields.

    Fields left as None keep their stored value. The status is never changed
    here: closing only happens through ``close_session``.

    An open session has its sales figures refreshed from its orders. A closed
    session keeps the figures reconciled at close, since its orders may have
    been archived or changed since; only the explicit corrections apply.
    """
    session = get_session(db, session_id)
    if closed_by and not _user_exists(db, closed_by):
        raise ValidationError("Closing user not found")

    if closing_cash is not None:
        closing = _non_negative_amount(closing_cash, "closingCash", "closingCash must be a number")
    elif session.closing_cash is not None:
        closing = to_money(session.closing_cash)
    else:
        closing = None
    override = _expected_cash_override(expected_cash)

    reconciled = session.status == SessionStatus.closed.value
    financials = None if reconciled else get_session_financials(db, session.id)
    if override is not None:
        expected = override
    elif reconciled and session.expected_cash is not None:
        expected = to_money(session.expected_cash)
    elif reconciled:
        expected = to_money(session.opening_cash)
    else:
        expected = to_money(session.opening_cash) + financials["cash_sales"]

    session.closed_by = closed_by or session.closed_by
    session.closing_cash = closing
    session.expected_cash = expected
    session.cash_difference = closing - expected if closing is not None else None
    if notes is not None:
        session.notes = notes
    if financials is not None:
        session.total_sales = financials["total_sales"]
        session.total_orders = financials["total_orders"]
    db.commit()
    db.refresh(session)

    logger.info("Register session %s updated (status=%s)", session.id, session.status)
    return session
