from datetime import datetime, timezone, timedelta

import pytest

from conftest import cart_lines, load_order, split_location
from app.data.database import SessionLocal
from app.services.payment_service import PaymentService


@pytest.fixture
def initiate(client, user, address, make_product, add_to_cart):
    product = make_product(price="1000.00")

    def _initiate():
        if not cart_lines(user.id):
            add_to_cart(user.id, product.id, 1)
        return client.post(
            f"/api/payment/phonepe/initiate?user_id={user.id}",
            json={"address_id": address.id, "mobile_number": "9876543210"},
        ).json()

    return _initiate


def sweep(gateway, minutes_from_now):
    now = datetime.now(timezone.utc) + timedelta(minutes=minutes_from_now)
    with SessionLocal() as db:
        return PaymentService(db, gateway=gateway).reconcile_expired_orders(now=now)


def test_fresh_pending_orders_are_left_alone(gateway, initiate):
    data = initiate()

    assert sweep(gateway, 1) == {"finalized": 0, "cancelled": 0, "skipped": 0}
    assert load_order(data["order_id"]).status == "pending"
    assert gateway.status_calls == []


def test_unpaid_expired_order_is_cancelled(gateway, initiate):
    data = initiate()
    gateway.decline(data["merchant_transaction_id"])

    assert sweep(gateway, 60) == {"finalized": 0, "cancelled": 1, "skipped": 0}
    assert load_order(data["order_id"]).status == "cancelled"


def test_paid_but_unverified_order_is_finalized(gateway, user, initiate):
    data = initiate()
    gateway.pay(data["merchant_transaction_id"])

    assert sweep(gateway, 60) == {"finalized": 1, "cancelled": 0, "skipped": 0}
    order = load_order(data["order_id"])
    assert order.status == "processing"
    assert len(order.items) == 1
    assert cart_lines(user.id) == []


def test_in_flight_and_unreachable_are_skipped(gateway, initiate):
    in_flight = initiate()
    unreachable = initiate()
    gateway.statuses[unreachable["merchant_transaction_id"]] = "NETWORK_ERROR"

    assert sweep(gateway, 60) == {"finalized": 0, "cancelled": 0, "skipped": 2}
    assert load_order(in_flight["order_id"]).status == "pending"
    assert load_order(unreachable["order_id"]).status == "pending"


def test_finalized_orders_are_never_cancelled(client, gateway, initiate):
    data = initiate()
    gateway.pay(data["merchant_transaction_id"])
    client.get(
        "/api/payment/phonepe/verify",
        params={"orderId": data["order_id"], "transactionId": data["merchant_transaction_id"]},
        follow_redirects=False,
    )

    assert sweep(gateway, 60) == {"finalized": 0, "cancelled": 0, "skipped": 0}
    assert load_order(data["order_id"]).status == "processing"


def test_celery_task_runs_sweep(monkeypatch):
    from app.tasks import expire

    calls = []

    def fake_reconcile(self, now=None):
        calls.append(now)
        return {"finalized": 0, "cancelled": 2, "skipped": 0}

    monkeypatch.setattr(PaymentService, "reconcile_expired_orders", fake_reconcile)

    assert expire.expire_pending_orders_task.apply().get() == {"finalized": 0, "cancelled": 2, "skipped": 0}
    assert calls == [None]


@pytest.mark.parametrize("code", ["INTERNAL_SERVER_ERROR", "AUTHORIZATION_FAILED", "UNKNOWN"])
def test_inconclusive_provider_answer_keeps_order_payable(client, gateway, initiate, code):
    data = initiate()
    gateway.statuses[data["merchant_transaction_id"]] = code

    assert sweep(gateway, 120) == {"finalized": 0, "cancelled": 0, "skipped": 1}
    assert load_order(data["order_id"]).status == "pending"

    # platnosc potwierdzona pozniej nadal finalizuje zamowienie
    gateway.pay(data["merchant_transaction_id"])
    resp = client.get(
        "/api/payment/phonepe/verify",
        params={"orderId": data["order_id"], "transactionId": data["merchant_transaction_id"]},
        follow_redirects=False,
    )

    assert split_location(resp)[0] == "http://shop.test/order-success"
    assert load_order(data["order_id"]).status == "processing"


@pytest.mark.parametrize("code", ["PAYMENT_DECLINED", "TIMED_OUT", "TRANSACTION_NOT_FOUND"])
def test_definite_decline_cancels_expired_order(gateway, initiate, code):
    data = initiate()
    gateway.statuses[data["merchant_transaction_id"]] = code

    assert sweep(gateway, 60)["cancelled"] == 1
    assert load_order(data["order_id"]).status == "cancelled"
