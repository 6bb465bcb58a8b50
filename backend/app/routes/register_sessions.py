from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_notifier
from app.core.errors import PosError
from app.core.notifier import Action, ChangeNotifier, Resource
from app.core.serialization_helpers import CamelModel
from app.services import register_session_service


router = APIRouter()


class RegisterSessionOut(CamelModel):
    id: str
    status: str
    opened_by: str
    closed_by: Optional[str] = None
    opened_at: datetime
    closed_at: Optional[datetime] = None
    opening_cash: float
    closing_cash: Optional[float] = None
    expected_cash: Optional[float] = None
    cash_difference: Optional[float] = None
    total_sales: float
    total_orders: int
    notes: Optional[str] = None


# Amounts are accepted loosely and validated by the service, which answers 400
class OpenSessionRequest(CamelModel):
    id: Optional[str] = None
    opened_by: Optional[str] = None
    opening_cash: Any = None


class UpdateSessionRequest(CamelModel):
    closed_by: Optional[str] = None
    closing_cash: Any = None
    expected_cash: Any = None
    notes: Optional[str] = None


@router.get("", response_model=List[RegisterSessionOut])
def list_register_sessions(db: Session = Depends(get_db)):
    return register_session_service.list_sessions(db)


@router.get("/status/active", response_model=Optional[RegisterSessionOut])
def get_active_register_session(db: Session = Depends(get_db)):
    return register_session_service.get_active_session(db)


@router.get("/{session_id}", response_model=RegisterSessionOut)
def get_register_session(session_id: str, db: Session = Depends(get_db)):
    try:
        return register_session_service.get_session(db, session_id)
    except PosError as exc:
        raise exc.to_http()


@router.post("", response_model=RegisterSessionOut, status_code=status.HTTP_201_CREATED)
def open_register_session(
    data: OpenSessionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        session = register_session_service.open_session(
            db,
            opened_by=data.opened_by,
            opening_cash=data.opening_cash,
            session_id=data.id,
        )
    except PosError as exc:
        raise exc.to_http()
    background_tasks.add_task(notifier.notify, Resource.register_sessions, Action.create, session.id)
    return session


@router.put("/{session_id}", response_model=RegisterSessionOut)
def update_register_session(
    session_id: str,
    data: UpdateSessionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        session = register_session_service.update_session(
            db,
            session_id,
            closed_by=data.closed_by,
            closing_cash=data.closing_cash,
            expected_cash=data.expected_cash,
            notes=data.notes,
        )
    except PosError as exc:
        raise exc.to_http()
    background_tasks.add_task(notifier.notify, Resource.register_sessions, Action.update, session.id)
    return session


@router.post("/{session_id}/close", response_model=RegisterSessionOut)
def close_register_session(
    session_id: str,
    data: UpdateSessionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        session = register_session_service.close_session(
            db,
            session_id,
            closed_by=data.closed_by,
            closing_cash=data.closing_cash,
            expected_cash=data.expected_cash,
            notes=data.notes,
        )
    except PosError as exc:
        raise exc.to_http()
    background_tasks.add_task(notifier.notify, Resource.register_sessions, Action.update, session.id)
    return session
