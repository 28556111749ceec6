from decimal import Decimal

import pytest

from conftest import cart_lines, load_order, split_location, _add
from app.data.database import SessionLocal
from app.data.models import OrderModel, OrderItemModel
from app.services.payment_service import PaymentService, VerificationResult

SUCCESS_PAGE = "http://shop.test/order-success"
FAILURE_PAGE = "http://shop.test/payment-failed"


@pytest.fixture
def product(make_product):
    return make_product(price="1000.00")


@pytest.fixture
def initiated(client, user, address, product, add_to_cart):
    add_to_cart(user.id, product.id, 2)
    resp = client.post(
        f"/api/payment/phonepe/initiate?user_id={user.id}",
        json={"address_id": address.id, "mobile_number": "9876543210"},
    )
    assert resp.status_code == 200
    return resp.json()


def verify(client, order_id=None, transaction_id=None):
    params = {}
    if order_id is not None:
        params["orderId"] = order_id
    if transaction_id is not None:
        params["transactionId"] = transaction_id
    return client.get("/api/payment/phonepe/verify", params=params, follow_redirects=False)


def test_end_to_end_success(client, gateway, user, product, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    gateway.pay(txn)

    resp = verify(client, order_id, txn)

    assert resp.status_code in (302, 303, 307)
    page, query = split_location(resp)
    assert page == SUCCESS_PAGE
    assert query == {"orderId": order_id}

    order = load_order(order_id)
    assert order.status == "processing"
    assert order.payment_method == "phonepe"
    assert [(i.product_id, i.quantity, i.price) for i in order.items] == [
        (product.id, 2, Decimal("1000.00"))
    ]
    assert cart_lines(user.id) == []
    assert gateway.status_calls == [txn]


def test_end_to_end_provider_failure(client, gateway, user, product, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    gateway.decline(txn)

    resp = verify(client, order_id, txn)

    page, query = split_location(resp)
    assert page == FAILURE_PAGE
    assert query == {"orderId": order_id}

    order = load_order(order_id)
    assert order.status == "pending"
    assert order.items == []
    assert cart_lines(user.id) == [(product.id, "", 2)]


def test_provider_unreachable_keeps_order_pending(client, gateway, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    gateway.statuses[txn] = "NETWORK_ERROR"

    page, query = split_location(verify(client, order_id, txn))

    assert page == FAILURE_PAGE
    assert query == {"orderId": order_id}
    assert load_order(order_id).status == "pending"


def test_duplicate_verification_is_idempotent(client, gateway, user, make_product, add_to_cart, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    gateway.pay(txn)

    verify(client, order_id, txn)

    # koszyk zapelniony ponownie po zakupie nie moze zniknac przy replay
    later = make_product(price="500.00")
    add_to_cart(user.id, later.id, 1)

    resp = verify(client, order_id, txn)

    page, query = split_location(resp)
    assert page == SUCCESS_PAGE
    assert query == {"orderId": order_id}
    assert len(load_order(order_id).items) == 1
    assert cart_lines(user.id) == [(later.id, "", 1)]


@pytest.mark.parametrize(
    "params",
    [{}, {"order_id": "abc"}, {"transaction_id": "T1"}],
)
def test_missing_parameters(client, gateway, params):
    page, query = split_location(verify(client, **params))

    assert page == FAILURE_PAGE
    assert query == {"error": "Missing parameters"}
    assert gateway.status_calls == []


def test_unknown_order_redirects_to_failure(client, gateway):
    gateway.pay("T-UNKNOWN")

    resp = verify(client, "does-not-exist", "T-UNKNOWN")

    page, query = split_location(resp)
    assert page == FAILURE_PAGE
    assert query == {"error": "Order not found"}


def test_transaction_of_another_order_is_rejected(client, gateway, user, initiated):
    order_id = initiated["order_id"]
    other = _add(
        OrderModel(
            user_id=user.id,
            status="pending",
            total_amount=Decimal("10.00"),
            merchant_transaction_id="MTOTHER",
        )
    )
    gateway.pay("MTOTHER")

    page, query = split_location(verify(client, order_id, "MTOTHER"))

    assert page == FAILURE_PAGE
    assert query == {"orderId": order_id, "error": "Invalid transaction"}
    assert load_order(order_id).status == "pending"
    assert load_order(other.id).status == "pending"


def test_verify_without_item_snapshot_leaves_order_pending(client, gateway, user):
    order = _add(
        OrderModel(
            user_id=user.id,
            status="pending",
            total_amount=Decimal("2860.00"),
            merchant_transaction_id="MTEMPTY",
        )
    )
    gateway.pay("MTEMPTY")

    page, query = split_location(verify(client, order.id, "MTEMPTY"))

    assert page == FAILURE_PAGE
    assert query == {"orderId": order.id, "error": "Cart is empty"}
    reloaded = load_order(order.id)
    assert reloaded.status == "pending"
    assert reloaded.items == []


def test_cancelled_order_is_not_resurrected(client, gateway, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    with SessionLocal() as db:
        db.get(OrderModel, order_id).status = "cancelled"
        db.commit()
    gateway.pay(txn)

    page, query = split_location(verify(client, order_id, txn))

    assert page == FAILURE_PAGE
    assert query == {"orderId": order_id, "error": "Order cancelled"}
    assert load_order(order_id).items == []


def test_price_change_during_payment_does_not_affect_order(client, gateway, product, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    client.patch(f"/admin/products/{product.id}", json={"price": "1500.00"})
    gateway.pay(txn)

    verify(client, order_id, txn)

    order = load_order(order_id)
    assert [i.price for i in order.items] == [Decimal("1000.00")]
    assert order.total_amount == Decimal("2860.00")


def test_cart_edits_during_payment_are_not_ordered_and_survive(
    client, gateway, user, product, make_product, add_to_cart, initiated
):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]

    extra = make_product(price="700.00")
    add_to_cart(user.id, extra.id, 1)
    # ten sam produkt, wiecej sztuk niz w snapshocie
    with SessionLocal() as db:
        from app.data.models import CartItemModel

        line = db.query(CartItemModel).filter_by(user_id=user.id, product_id=product.id).one()
        line.quantity = 5
        db.commit()

    gateway.pay(txn)
    verify(client, order_id, txn)

    order = load_order(order_id)
    assert [(i.product_id, i.quantity) for i in order.items] == [(product.id, 2)]
    assert cart_lines(user.id) == [(product.id, "", 3), (extra.id, "", 1)]


def test_cleared_cart_during_payment_still_finalizes_from_snapshot(client, gateway, user, product, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    client.delete(f"/cart/?user_id={user.id}")
    gateway.pay(txn)

    page, _ = split_location(verify(client, order_id, txn))

    assert page == SUCCESS_PAGE
    order = load_order(order_id)
    assert order.status == "processing"
    assert [(i.product_id, i.quantity) for i in order.items] == [(product.id, 2)]


def test_concurrent_finalization_materializes_items_once(gateway, initiated):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    gateway.pay(txn)

    slow = SessionLocal()
    fast = SessionLocal()
    try:
        # wolniejsze zadanie przeczytalo order jako pending zanim szybsze go sfinalizowalo
        assert slow.get(OrderModel, order_id).status == "pending"

        first = PaymentService(fast, gateway=gateway).finalize_paid_order(order_id, txn)
        second = PaymentService(slow, gateway=gateway).finalize_paid_order(order_id, txn)
    finally:
        fast.close()
        slow.close()

    assert first.result == VerificationResult.SUCCESS
    assert second.result == VerificationResult.ALREADY_FINALIZED
    with SessionLocal() as db:
        assert db.query(OrderItemModel).filter_by(order_id=order_id).count() == 1


def test_service_error_redirects_to_failure(client, gateway, initiated, monkeypatch):
    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    gateway.pay(txn)

    def boom(self, user_id, snapshot):
        raise RuntimeError("db went away")

    monkeypatch.setattr(PaymentService, "_remove_ordered_lines", boom)

    page, query = split_location(verify(client, order_id, txn))

    assert page == FAILURE_PAGE
    assert query == {"orderId": order_id, "error": "Verification failed"}
    order = load_order(order_id)
    assert order.status == "pending"
    assert order.items == []


def test_confirmation_email_failure_does_not_affect_order(client, gateway, initiated, monkeypatch):
    from app.services import notification_service

    order_id, txn = initiated["order_id"], initiated["merchant_transaction_id"]
    gateway.pay(txn)

    def broker_down(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(notification_service.send_order_confirmation_task, "delay", broker_down)

    page, _ = split_location(verify(client, order_id, txn))

    assert page == SUCCESS_PAGE
    assert load_order(order_id).status == "processing"
