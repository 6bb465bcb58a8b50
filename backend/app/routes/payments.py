from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_notifier
from app.core.money import ZERO, parse_money
from app.core.notifier import Action, ChangeNotifier, Resource
from app.core.serialization_helpers import CamelModel
from app.models.base import new_id, utcnow
from app.models.order import Order
from app.models.past_order import PastPayment
from app.models.payment import Payment, PAYMENT_METHODS
from app.models.user import User


router = APIRouter()


class PaymentOut(CamelModel):
    id: str
    order_id: str
    amount: float
    method: str
    reference: Optional[str] = None
    paid_at: datetime
    received_by: str
    notes: Optional[str] = None


class PaymentCreate(CamelModel):
    id: Optional[str] = None
    order_id: Optional[str] = None
    amount: Any = None
    method: Optional[str] = None
    reference: Optional[str] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None


class PaymentUpdate(CamelModel):
    amount: Any = None
    method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


def _positive_amount(value: Any):
    amount = parse_money(value)
    if amount is None or amount <= ZERO:
        raise HTTPException(status_code=400, detail="amount must be greater than zero")
    return amount


def _valid_method(method: str) -> str:
    if method not in PAYMENT_METHODS:
        raise HTTPException(status_code=400, detail=f"Invalid payment method: {method}")
    return method


def _get_payment_or_404(db: Session, payment_id: str) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.get("", response_model=List[PaymentOut])
def list_payments(
    db: Session = Depends(get_db),
    order_id: Optional[str] = Query(None, alias="orderId"),
    method: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    include_past: bool = Query(False, alias="includePast", description="Also return archived payments"),
):
    models = (Payment, PastPayment) if include_past else (Payment,)
    rows = []
    for model in models:
        query = db.query(model)
        if order_id:
            query = query.filter(model.order_id == order_id)
        if method:
            query = query.filter(model.method == method)
        if start_date:
            query = query.filter(model.paid_at >= start_date)
        if end_date:
            query = query.filter(model.paid_at <= end_date)
        rows.extend(query.all())
    rows.sort(key=lambda p: p.paid_at, reverse=True)
    return rows


@router.get("/order/{order_id}", response_model=List[PaymentOut])
def list_order_payments(order_id: str, db: Session = Depends(get_db)):
    return (
        db.query(Payment)
        .filter(Payment.order_id == order_id)
        .order_by(Payment.paid_at.desc())
        .all()
    )


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: str, db: Session = Depends(get_db)):
    return _get_payment_or_404(db, payment_id)


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(
    data: PaymentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    if not data.order_id or data.amount is None or not data.method or not data.received_by:
        raise HTTPException(status_code=400, detail="Missing required fields")
    amount = _positive_amount(data.amount)
    method = _valid_method(data.method)
    if not db.query(Order.id).filter(Order.id == data.order_id).first():
        raise HTTPException(status_code=400, detail="Order not found")
    if not db.query(User.id).filter(User.id == data.received_by).first():
        raise HTTPException(status_code=400, detail="Receiving user not found")
    payment_id = data.id or new_id()
    if db.query(Payment.id).filter(Payment.id == payment_id).first():
        raise HTTPException(status_code=409, detail="Payment already exists")

    now = utcnow()
    payment = Payment(
        id=payment_id,
        order_id=data.order_id,
        amount=amount,
        method=method,
        reference=data.reference,
        paid_at=now,
        received_by=data.received_by,
        notes=data.notes,
        created_at=now,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    background_tasks.add_task(notifier.notify, Resource.payments, Action.create, payment.id)
    return payment


@router.put("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: str,
    data: PaymentUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    payment = _get_payment_or_404(db, payment_id)
    if data.amount is not None:
        payment.amount = _positive_amount(data.amount)
    if data.method is not None:
        payment.method = _valid_method(data.method)
    if data.reference is not None:
        payment.reference = data.reference
    if data.notes is not None:
        payment.notes = data.notes
    db.commit()
    db.refresh(payment)

    background_tasks.add_task(notifier.notify, Resource.payments, Action.update, payment.id)
    return payment


@router.delete("/{payment_id}")
def delete_payment(
    payment_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    payment = _get_payment_or_404(db, payment_id)
    db.delete(payment)
    db.commit()

    background_tasks.add_task(notifier.notify, Resource.payments, Action.delete, payment_id)
    return {"message": "Payment deleted successfully"}
