"""
Move finished orders from the live tables into the archive tables.

Each order is archived in its own transaction: the copy into ``past_*`` and
the purge of the live rows commit together or not at all. A run that dies
half-way can simply be started again; orders already present in the archive
are recognised by id and only have their live rows purged.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, List, Optional, Tuple, TypedDict

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from app.core.database import scoped_transaction
from app.core.errors import NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.order import Order, OrderItem, OrderStatus
from app.models.past_order import PastOrder, PastOrderItem, PastPayment
from app.models.payment import Payment
from app.models.print_tracking import KotPrint, RiderReceipt
from app.models.row_mapping import archive_copy


logger = logging.getLogger(__name__)

ARCHIVABLE_STATUSES = (OrderStatus.completed.value, OrderStatus.cancelled.value)

# Children first so foreign keys to orders.id are never left dangling
_PURGE_ORDER = (KotPrint, RiderReceipt, Payment, OrderItem)


@dataclass
class MigrationResult:
    migrated_count: int = 0
    total_found: int = 0
    errors: List[str] = field(default_factory=list)


class MigrationPreview(TypedDict):
    orders_to_migrate: int
    current_active_orders: int
    current_past_orders: int
    cutoff_date: datetime


def parse_older_than_days(value: Any) -> int:
    """
    Raises:
        ValidationError: if the value is not an integer of at least 1
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("olderThanDays must be at least 1")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError("olderThanDays must be a whole number of days")
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationError("olderThanDays must be at least 1") from None
    if days < 1:
        raise ValidationError("olderThanDays must be at least 1")
    return days


def _candidates(db: Session, cutoff: datetime) -> Query:
    return db.query(Order).filter(
        Order.status.in_(ARCHIVABLE_STATUSES),
        Order.created_at < cutoff,
    )


def _describe(exc: Exception) -> str:
    # DBAPI errors wrap the driver message in statement text and parameters
    return str(getattr(exc, "orig", None) or exc)


def _copy_to_archive(db: Session, order: Order, migrated_at: datetime) -> None:
    db.add(archive_copy(order, PastOrder, migrated_at=migrated_at))
    db.flush()

    items = db.query(OrderItem).filter(OrderItem.order_id == order.id).all()
    db.add_all([archive_copy(item, PastOrderItem, migrated_at=migrated_at) for item in items])
    payments = db.query(Payment).filter(Payment.order_id == order.id).all()
    db.add_all([archive_copy(payment, PastPayment, migrated_at=migrated_at) for payment in payments])
    db.flush()


def _purge_live_rows(db: Session, order_id: str) -> None:
    for model in _PURGE_ORDER:
        db.query(model).filter(model.order_id == order_id).delete(synchronize_session=False)
    db.query(Order).filter(Order.id == order_id).delete(synchronize_session=False)
    db.flush()


def archive_order(db: Session, order_id: str, migrated_at: datetime) -> bool:
    """
    Copy one order with its items and payments to the archive and purge it.

    Does not commit. Returns False when the archive already held the order and
    only the purge was needed.
    """
    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None:
        raise NotFoundError(f"Order {order_id} no longer exists")

    already_archived = db.query(PastOrder.id).filter(PastOrder.id == order_id).first() is not None
    if already_archived:
        logger.info("Order %s already archived, purging live rows only", order.order_number)
    else:
        _copy_to_archive(db, order, migrated_at)

    db.expunge(order)
    _purge_live_rows(db, order_id)
    return not already_archived


def migrate_orders_older_than(
    db: Session,
    older_than_days: Any,
    now: Optional[datetime] = None,
) -> MigrationResult:
    """
    Archive every completed or cancelled order created before now - N days.

    Orders are processed one at a time in creation order. A failing order is
    rolled back and reported in ``errors``; the batch carries on.

    Raises:
        ValidationError: if ``older_than_days`` is below 1
    """
    days = parse_older_than_days(older_than_days)
    now = now or utcnow()
    cutoff = now - timedelta(days=days)

    candidates: List[Tuple[str, str]] = (
        _candidates(db, cutoff)
        .with_entities(Order.id, Order.order_number)
        .order_by(Order.created_at, Order.id)
        .all()
    )
    result = MigrationResult(total_found=len(candidates))
    if not candidates:
        logger.info("No orders older than %s day(s) to migrate", days)
        return result

    for order_id, order_number in candidates:
        try:
            with scoped_transaction(db):
                archive_order(db, order_id, migrated_at=now)
        except Exception as exc:
            logger.warning("Failed to migrate order %s (%s)", order_number, order_id, exc_info=True)
            result.errors.append(f"Failed to migrate order {order_number}: {_describe(exc)}")
            continue
        result.migrated_count += 1

    logger.info(
        "Migrated %s of %s order(s) older than %s day(s), %s error(s)",
        result.migrated_count, result.total_found, days, len(result.errors),
    )
    return result


def preview_migration(
    db: Session,
    older_than_days: Any,
    now: Optional[datetime] = None,
) -> MigrationPreview:
    """Counts for a dry run of ``migrate_orders_older_than``. Read-only."""
    days = parse_older_than_days(older_than_days)
    cutoff = (now or utcnow()) - timedelta(days=days)

    return MigrationPreview(
        orders_to_migrate=_candidates(db, cutoff).count(),
        current_active_orders=db.query(func.count(Order.id)).scalar() or 0,
        current_past_orders=db.query(func.count(PastOrder.id)).scalar() or 0,
        cutoff_date=cutoff,
    )


def list_past_orders(
    db: Session,
    status: Optional[str] = None,
    order_type: Optional[str] = None,
    customer_id: Optional[str] = None,
    register_session_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    is_paid: Optional[bool] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Tuple[List[PastOrder], int]:
    query = db.query(PastOrder)
    if status:
        query = query.filter(PastOrder.status == status)
    if order_type:
        query = query.filter(PastOrder.order_type == order_type)
    if customer_id:
        query = query.filter(PastOrder.customer_id == customer_id)
    if register_session_id:
        query = query.filter(PastOrder.register_session_id == register_session_id)
    if start_date:
        query = query.filter(PastOrder.created_at >= start_date)
    if end_date:
        query = query.filter(PastOrder.created_at <= end_date)
    if is_paid is not None:
        query = query.filter(PastOrder.is_paid == is_paid)
    if search:
        term = search.strip().lower()
        if term:
            like = f"%{term}%"
            query = query.filter(
                or_(
                    func.lower(PastOrder.order_number).like(like),
                    func.lower(PastOrder.customer_name).like(like),
                    func.lower(PastOrder.customer_phone).like(like),
                )
            )

    total = query.count()
    query = query.order_by(PastOrder.created_at.desc())
    if limit:
        query = query.offset(offset).limit(limit)
    return query.all(), total


def get_past_order(db: Session, order_id: str) -> PastOrder:
    order = db.query(PastOrder).filter(PastOrder.id == order_id).first()
    if not order:
        raise NotFoundError("Past order not found")
    return order


def list_past_order_items(db: Session, order_id: str) -> List[PastOrderItem]:
    return (
        db.query(PastOrderItem)
        .filter(PastOrderItem.order_id == order_id)
        .order_by(PastOrderItem.added_at)
        .all()
    )
