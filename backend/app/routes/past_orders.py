from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import PosError
from app.core.serialization_helpers import CamelModel, serialize_datetime
from app.services import order_archive_service


router = APIRouter()


class PastOrderItemOut(CamelModel):
    id: str
    order_id: str
    item_type: str
    menu_item_id: Optional[str] = None
    deal_id: Optional[str] = None
    name: str
    quantity: int
    unit_price: float
    total_price: float
    notes: Optional[str] = None
    selected_variants: Optional[List[Any]] = None
    deal_breakdown: Optional[Any] = None
    added_at: datetime
    last_printed_at: Optional[datetime] = None


class PastPaymentOut(CamelModel):
    id: str
    order_id: str
    amount: float
    method: str
    reference: Optional[str] = None
    paid_at: datetime
    received_by: str
    notes: Optional[str] = None


class PastOrderOut(CamelModel):
    id: str
    order_number: str
    register_session_id: str
    order_type: str
    table_id: Optional[str] = None
    waiter_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_id: Optional[str] = None
    rider_id: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_charge: float
    subtotal: float
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    discount_reference: Optional[str] = None
    discount_amount: float
    total: float
    status: str
    delivery_status: Optional[str] = None
    is_paid: bool
    notes: Optional[str] = None
    last_kot_printed_at: Optional[datetime] = None
    kot_print_count: int
    created_by: str
    completed_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    migrated_at: datetime


class PastOrderDetailOut(PastOrderOut):
    items: List[PastOrderItemOut]
    payments: List[PastPaymentOut]


class PastOrderPage(CamelModel):
    orders: List[PastOrderOut]
    total: int


class MigrateRequest(CamelModel):
    older_than_days: Any = None


@router.get("", response_model=PastOrderPage)
def list_past_orders(
    db: Session = Depends(get_db),
    status: Optional[str] = Query(None),
    order_type: Optional[str] = Query(None, alias="orderType"),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    register_session_id: Optional[str] = Query(None, alias="registerSessionId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    is_paid: Optional[bool] = Query(None, alias="isPaid"),
    search: Optional[str] = Query(None, description="Order number, customer name or phone"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    orders, total = order_archive_service.list_past_orders(
        db,
        status=status,
        order_type=order_type,
        customer_id=customer_id,
        register_session_id=register_session_id,
        start_date=start_date,
        end_date=end_date,
        is_paid=is_paid,
        search=search,
        limit=limit,
        offset=offset,
    )
    return PastOrderPage(orders=[PastOrderOut.model_validate(o) for o in orders], total=total)


@router.post("/migrate")
def migrate_past_orders(data: MigrateRequest, db: Session = Depends(get_db)):
    """Archive completed/cancelled orders older than `olderThanDays` days."""
    try:
        result = order_archive_service.migrate_orders_older_than(db, data.older_than_days)
    except PosError as exc:
        raise exc.to_http()

    if result.total_found == 0:
        return {"message": "No orders to migrate", "migratedCount": 0, "totalFound": 0}
    response = {
        "message": "Migration complete",
        "migratedCount": result.migrated_count,
        "totalFound": result.total_found,
    }
    if result.errors:
        response["errors"] = result.errors
    return response


@router.get("/migrate/preview")
def preview_past_orders_migration(
    older_than_days: Optional[str] = Query(None, alias="olderThanDays"),
    db: Session = Depends(get_db),
):
    if older_than_days is None:
        raise HTTPException(status_code=400, detail="olderThanDays query parameter is required")
    try:
        preview = order_archive_service.preview_migration(db, older_than_days)
    except PosError as exc:
        raise exc.to_http()
    return {
        "ordersToMigrate": preview["orders_to_migrate"],
        "currentActiveOrders": preview["current_active_orders"],
        "currentPastOrders": preview["current_past_orders"],
        "cutoffDate": serialize_datetime(preview["cutoff_date"]),
    }


@router.get("/{order_id}", response_model=PastOrderDetailOut)
def get_past_order(order_id: str, db: Session = Depends(get_db)):
    try:
        return order_archive_service.get_past_order(db, order_id)
    except PosError as exc:
        raise exc.to_http()


@router.get("/{order_id}/items", response_model=List[PastOrderItemOut])
def get_past_order_items(order_id: str, db: Session = Depends(get_db)):
    return order_archive_service.list_past_order_items(db, order_id)
