import os

# Settings are read at import time, so point them at an in-memory database first
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.database import SessionLocal, engine
from app.core.notifier import notifier
from app.main import app
from app.models import Base, Order, OrderItem, Payment, RegisterSession, User
from app.models.base import new_id, utcnow


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(schema):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def events():
    received = []
    notifier.subscribe(received.append)
    yield received
    notifier.unsubscribe(received.append)


@pytest.fixture
def make_user(db):
    def _make(username=None, full_name="Test Cashier", role="cashier"):
        user = User(id=new_id(), username=username or f"user-{new_id()[:8]}", full_name=full_name, role=role)
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def user(make_user):
    return make_user(username="cashier")


@pytest.fixture
def register_session(db, user):
    session = RegisterSession(
        id=new_id(),
        status="open",
        opened_by=user.id,
        opened_at=utcnow(),
        opening_cash=Decimal("1000.00"),
        total_sales=Decimal("0"),
        total_orders=0,
    )
    db.add(session)
    db.commit()
    return session


@pytest.fixture
def make_order(db, user, register_session):
    counter = {"n": 0}

    def _make(total, status="completed", created_at=None, session_id=None, items=1, order_number=None,
              order_type="dine_in"):
        counter["n"] += 1
        created_at = created_at or utcnow()
        order = Order(
            id=new_id(),
            order_number=order_number or f"ORD-{counter['n']}",
            register_session_id=session_id or register_session.id,
            order_type=order_type,
            subtotal=Decimal(str(total)),
            total=Decimal(str(total)),
            status=status,
            is_paid=status == "completed",
            created_by=user.id,
            created_at=created_at,
            updated_at=created_at,
            completed_at=created_at if status == "completed" else None,
        )
        db.add(order)
        db.flush()
        for index in range(items):
            db.add(OrderItem(
                id=new_id(),
                order_id=order.id,
                name=f"Item {index + 1}",
                quantity=1,
                unit_price=Decimal(str(total)),
                total_price=Decimal(str(total)),
                selected_variants=[{"name": "size", "option": "large"}],
                added_at=created_at,
                created_at=created_at,
            ))
        db.commit()
        return order
    return _make


@pytest.fixture
def make_payment(db, user):
    def _make(order, amount, method="cash", paid_at=None, payment_id=None):
        payment = Payment(
            id=payment_id or new_id(),
            order_id=order.id,
            amount=Decimal(str(amount)),
            method=method,
            paid_at=paid_at or utcnow(),
            received_by=user.id,
        )
        db.add(payment)
        db.commit()
        return payment
    return _make
