import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["PHONEPE_MERCHANT_ID"] = "MERCHANTTEST"
os.environ["PHONEPE_SALT_KEY"] = "test-salt-key"
os.environ["PHONEPE_SALT_INDEX"] = "1"
os.environ["APP_URL"] = "http://shop.test"
os.environ["API_URL"] = "http://api.shop.test"
os.environ["EMAIL_API_KEY"] = ""

from decimal import Decimal
from urllib.parse import urlsplit, parse_qs

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.api.routers.payments import get_gateway, get_lock_service
from app.data.database import Base, SessionLocal, engine
from app.data.models import (
    AddressModel,
    CartItemModel,
    OrderModel,
    ProductModel,
    UserModel,
)
from app.services.phonepe_client import GatewayResult, PaymentGatewayError

REDIRECT_URL = "https://mercury.phonepe.test/transact/pg?token=abc"


class FakeGateway:
    """Bramka w pamieci: statusy per transakcja, zapis wywolan."""

    merchant_id = "MERCHANTTEST"

    def __init__(self):
        self.statuses = {}
        self.initiate_calls = []
        self.status_calls = []
        self.initiate_error = False
        self.initiate_result = GatewayResult(
            success=True,
            code="PAYMENT_INITIATED",
            data={"instrumentResponse": {"redirectInfo": {"url": REDIRECT_URL}}},
        )

    def initiate(self, payload):
        self.initiate_calls.append(payload)
        if self.initiate_error:
            raise PaymentGatewayError("provider down")
        return self.initiate_result

    def check_status(self, merchant_transaction_id):
        self.status_calls.append(merchant_transaction_id)
        code = self.statuses.get(merchant_transaction_id, "PAYMENT_PENDING")
        if code == "NETWORK_ERROR":
            raise PaymentGatewayError("provider down")
        return GatewayResult(success=code == "PAYMENT_SUCCESS", code=code)

    def pay(self, merchant_transaction_id):
        self.statuses[merchant_transaction_id] = "PAYMENT_SUCCESS"

    def decline(self, merchant_transaction_id):
        self.statuses[merchant_transaction_id] = "PAYMENT_ERROR"


class FakeLockService:
    def __init__(self):
        self.held = set()

    def acquire_checkout_lock(self, user_id, ttl):
        if user_id in self.held:
            return None
        self.held.add(user_id)
        return f"token-{user_id}"

    def release_checkout_lock(self, user_id, token):
        self.held.discard(user_id)
        return True


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def client(gateway, lock_service):
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _add(obj):
    with SessionLocal() as db:
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj


@pytest.fixture
def user():
    return _add(UserModel(id=1, name="Asha", email="asha@example.com"))


@pytest.fixture
def address(user):
    return _add(
        AddressModel(
            user_id=user.id,
            street="12 MG Road",
            city="Bengaluru",
            state="Karnataka",
            postal_code="560001",
            country="India",
        )
    )


@pytest.fixture
def make_product():
    counter = {"n": 0}

    def _make(price="1000.00", colors=None, stock=10):
        counter["n"] += 1
        return _add(
            ProductModel(
                name=f"Product {counter['n']}",
                slug=f"product-{counter['n']}",
                price=Decimal(price),
                stock=stock,
                colors=colors or [],
            )
        )

    return _make


@pytest.fixture
def add_to_cart():
    def _add_line(user_id, product_id, quantity, color=""):
        return _add(
            CartItemModel(user_id=user_id, product_id=product_id, quantity=quantity, color=color)
        )

    return _add_line


def load_order(order_id):
    with SessionLocal() as db:
        order = db.get(OrderModel, order_id)
        if order is None:
            return None
        # wymus zaladowanie relacji przed zamknieciem sesji
        order.items, order.pending_items
        return order


def cart_lines(user_id):
    with SessionLocal() as db:
        return [
            (i.product_id, i.color, i.quantity)
            for i in db.query(CartItemModel)
            .filter(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.id)
        ]


def count_orders():
    with SessionLocal() as db:
        return db.query(OrderModel).count()


def split_location(response):
    parts = urlsplit(response.headers["location"])
    query = {k: v[0] for k, v in parse_qs(parts.query).items()}
    return f"{parts.scheme}://{parts.netloc}{parts.path}", query
