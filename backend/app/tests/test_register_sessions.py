from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.database import SessionLocal
from app.core.errors import AlreadyClosedError, ConflictError, NotFoundError, ValidationError
from app.models import RegisterSession
from app.models.base import new_id, utcnow
from app.services import order_archive_service, register_session_service


def test_open_session_via_api(client, user, events):
    r = client.post("/register-sessions", json={"openedBy": user.id, "openingCash": 250})
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "open"
    assert body["openingCash"] == 250
    assert body["totalSales"] == 0
    assert body["totalOrders"] == 0
    assert body["closingCash"] is None
    assert body["expectedCash"] is None
    assert (events[-1].resource, events[-1].action, events[-1].id) == ("register_sessions", "create", body["id"])

    r = client.get("/register-sessions/status/active")
    assert r.status_code == 200
    assert r.json()["id"] == body["id"]


def test_open_session_accepts_client_id(client, user):
    session_id = new_id()
    r = client.post("/register-sessions", json={"id": session_id, "openedBy": user.id, "openingCash": "100.50"})
    assert r.status_code == 201
    assert r.json()["id"] == session_id
    assert r.json()["openingCash"] == 100.5


def test_second_open_is_a_conflict(client, user):
    r = client.post("/register-sessions", json={"openedBy": user.id, "openingCash": 100})
    assert r.status_code == 201
    r = client.post("/register-sessions", json={"openedBy": user.id, "openingCash": 100})
    assert r.status_code == 409


@pytest.mark.parametrize("payload", [
    {"openingCash": 100},
    {"openedBy": "someone"},
    {},
])
def test_open_requires_fields(client, user, payload):
    r = client.post("/register-sessions", json=payload)
    assert r.status_code == 400


def test_open_rejects_unknown_user_and_bad_amount(client, user):
    r = client.post("/register-sessions", json={"openedBy": "ghost", "openingCash": 100})
    assert r.status_code == 400
    assert r.json()["detail"] == "Opening user not found"

    r = client.post("/register-sessions", json={"openedBy": user.id, "openingCash": -5})
    assert r.status_code == 400
    r = client.post("/register-sessions", json={"openedBy": user.id, "openingCash": "lots"})
    assert r.status_code == 400


def test_single_open_row_enforced_by_the_database(db, user, register_session):
    db.add(RegisterSession(id=new_id(), status="open", opened_by=user.id, opened_at=utcnow(), opening_cash=0))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_concurrent_open_loser_gets_conflict(db, user, register_session, monkeypatch):
    # Simulate a racing request that checked before the other insert committed
    monkeypatch.setattr(register_session_service, "get_active_session", lambda db: None)
    with pytest.raises(ConflictError):
        register_session_service.open_session(db, user.id, 50)
    assert db.query(RegisterSession).count() == 1


def test_close_computes_expected_cash_and_difference(client, user, register_session, make_order, make_payment, events):
    order = make_order(500)
    make_payment(order, 500, "cash")

    r = client.post(
        f"/register-sessions/{register_session.id}/close",
        json={"closedBy": user.id, "closingCash": 1450, "notes": "end of day"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "closed"
    assert body["expectedCash"] == 1500
    assert body["cashDifference"] == -50
    assert body["closingCash"] == 1450
    assert body["totalSales"] == 500
    assert body["totalOrders"] == 1
    assert body["closedBy"] == user.id
    assert body["closedAt"] is not None
    assert body["notes"] == "end of day"
    assert events[-1].action == "update"

    assert client.get("/register-sessions/status/active").json() is None


def test_close_counts_only_applied_cash(db, user, register_session, make_order, make_payment):
    start = utcnow()
    split = make_order(1000)
    make_payment(split, 700, "cash", paid_at=start)
    make_payment(split, 500, "card", paid_at=start + timedelta(minutes=1))
    change = make_order(500)
    make_payment(change, 800, "cash", paid_at=start)

    session = register_session_service.close_session(db, register_session.id, user.id, closing_cash=2200)
    # 1000 float + 700 + 500 applied cash; the 300 change is not a sale
    assert session.expected_cash == Decimal("2200.00")
    assert session.cash_difference == Decimal("0.00")
    assert session.total_sales == Decimal("1500.00")
    assert session.total_orders == 2


def test_close_ignores_open_and_cancelled_orders(db, user, register_session, make_order, make_payment):
    make_payment(make_order(300, status="open"), 300, "cash")
    make_payment(make_order(200, status="cancelled"), 200, "cash")
    make_payment(make_order(100), 100, "cash")

    session = register_session_service.close_session(db, register_session.id, user.id, closing_cash="1100")
    assert session.total_orders == 1
    assert session.expected_cash == Decimal("1100.00")


def test_close_with_overage_and_expected_override(client, user, register_session, make_order, make_payment):
    make_payment(make_order(100), 100, "cash")
    r = client.post(
        f"/register-sessions/{register_session.id}/close",
        json={"closedBy": user.id, "closingCash": 1200, "expectedCash": 1150},
    )
    assert r.status_code == 200
    assert r.json()["expectedCash"] == 1150
    assert r.json()["cashDifference"] == 50


def test_close_validation(client, user, register_session):
    url = f"/register-sessions/{register_session.id}/close"
    assert client.post(url, json={"closingCash": 100}).status_code == 400
    assert client.post(url, json={"closedBy": "ghost", "closingCash": 100}).status_code == 400
    assert client.post(url, json={"closedBy": user.id}).status_code == 400
    assert client.post(url, json={"closedBy": user.id, "closingCash": "abc"}).status_code == 400
    assert client.post(url, json={"closedBy": user.id, "closingCash": -1}).status_code == 400
    assert client.post("/register-sessions/missing/close", json={"closedBy": user.id, "closingCash": 1}).status_code == 404


def test_double_close_is_rejected(client, db, user, register_session):
    url = f"/register-sessions/{register_session.id}/close"
    assert client.post(url, json={"closedBy": user.id, "closingCash": 1000}).status_code == 200
    r = client.post(url, json={"closedBy": user.id, "closingCash": 900})
    assert r.status_code == 400
    assert r.json()["detail"] == "Session is already closed"

    db.expire_all()
    with pytest.raises(AlreadyClosedError):
        register_session_service.close_session(db, register_session.id, user.id, 900)
    assert db.query(RegisterSession).one().closing_cash == Decimal("1000.00")


def test_close_loses_race_against_concurrent_close(db, user, register_session):
    slow = SessionLocal()
    try:
        # This request reads the session as open...
        assert register_session_service.get_session(slow, register_session.id).status == "open"
        # ...while another one closes it
        register_session_service.close_session(db, register_session.id, user.id, 1000)

        with pytest.raises(AlreadyClosedError):
            register_session_service.close_session(slow, register_session.id, user.id, 800)
    finally:
        slow.close()
    db.expire_all()
    assert db.query(RegisterSession).one().closing_cash == Decimal("1000.00")


def test_reopen_after_close(client, user, register_session):
    client.post(f"/register-sessions/{register_session.id}/close", json={"closedBy": user.id, "closingCash": 1000})
    r = client.post("/register-sessions", json={"openedBy": user.id, "openingCash": 500})
    assert r.status_code == 201


def test_update_corrects_without_closing(client, user, register_session, make_order, make_payment, events):
    make_payment(make_order(200), 200, "cash")
    r = client.put(f"/register-sessions/{register_session.id}", json={"notes": "float recounted"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "open"
    assert body["expectedCash"] == 1200
    assert body["cashDifference"] is None
    assert body["totalSales"] == 200
    assert body["notes"] == "float recounted"
    assert events[-1].action == "update"


def test_update_after_close_recomputes_difference(client, user, make_user, register_session):
    url = f"/register-sessions/{register_session.id}"
    client.post(f"{url}/close", json={"closedBy": user.id, "closingCash": 990})
    manager = make_user(username="manager", role="manager")

    r = client.put(url, json={"closedBy": manager.id, "closingCash": 1000})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "closed"
    assert body["closedBy"] == manager.id
    assert body["cashDifference"] == 0

    assert client.put(url, json={"closedBy": "ghost"}).status_code == 400
    assert client.put("/register-sessions/missing", json={}).status_code == 404


def test_get_and_list_sessions(client, db, user, register_session):
    assert client.get(f"/register-sessions/{register_session.id}").json()["openedBy"] == user.id
    assert client.get("/register-sessions/nope").status_code == 404
    assert [s["id"] for s in client.get("/register-sessions").json()] == [register_session.id]


def test_service_errors(db, user):
    with pytest.raises(NotFoundError):
        register_session_service.get_session(db, "missing")
    with pytest.raises(ValidationError):
        register_session_service.open_session(db, None, 10)
    assert register_session_service.get_active_session(db) is None


def test_correcting_a_closed_session_keeps_its_reconciliation(client, db, user, register_session, make_order, make_payment):
    order = make_order(500, created_at=utcnow() - timedelta(days=40))
    make_payment(order, 500, "cash")
    register_session_service.close_session(db, register_session.id, user.id, closing_cash=1500)
    # The session's orders leave the live tables afterwards
    assert order_archive_service.migrate_orders_older_than(db, 30).migrated_count == 1

    r = client.put(f"/register-sessions/{register_session.id}", json={"notes": "typo fix"})
    assert r.status_code == 200
    body = r.json()
    assert body["notes"] == "typo fix"
    assert body["totalSales"] == 500
    assert body["totalOrders"] == 1
    assert body["expectedCash"] == 1500
    assert body["cashDifference"] == 0

    r = client.put(f"/register-sessions/{register_session.id}", json={"closingCash": 1480})
    assert r.json()["expectedCash"] == 1500
    assert r.json()["cashDifference"] == -20
    assert r.json()["totalSales"] == 500

    r = client.put(f"/register-sessions/{register_session.id}", json={"expectedCash": 1470})
    assert r.json()["cashDifference"] == 10
    assert r.json()["status"] == "closed"
