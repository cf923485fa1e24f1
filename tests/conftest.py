from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from market.dev_backend.main import create_app
from market.dev_backend.models import ProductModel, UserModel
from market.dev_backend.routers.auth import hash_password
from market.domain.schemas import Role, ShippingStatus, User
from market.main import create_market
from market.services.api_client import ApiClient
from market.services.session import AppSession

PASSWORD = "secret123"
BASE_URL = "http://testserver"


@pytest.fixture
def backend():
    app = create_app("sqlite://")
    with TestClient(app) as client:
        yield client


@pytest.fixture
def db_session(backend):
    """Opens a fresh ORM session per call so reads never hit a stale identity map."""
    factory = backend.app.state.session_factory

    def _open():
        return factory()

    return _open


def _add(db_session, obj):
    db = db_session()
    try:
        db.add(obj)
        db.commit()
        return obj.id
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    def _make(username, role="Customer", location=None):
        return _add(
            db_session,
            UserModel(
                username=username,
                email=f"{username}@example.com",
                password_hash=hash_password(PASSWORD),
                role=role,
                verified=role == "Vendor",
                location=location,
                wallet_balance=0,
            ),
        )

    return _make


@pytest.fixture
def make_product(db_session):
    def _make(vendor_id, name, price, quantity, category="Vegetables", location="Nakuru"):
        return _add(
            db_session,
            ProductModel(
                vendor_id=vendor_id,
                name=name,
                price=Decimal(str(price)),
                quantity=quantity,
                category=category,
                location=location,
            ),
        )

    return _make


@pytest.fixture
def vendor_id(make_user):
    return make_user("shamba_fresh", role="Vendor", location="Nakuru")


@pytest.fixture
def customer_id(make_user):
    return make_user("wanjiku", location="Nairobi")


@pytest.fixture
def products(make_product, vendor_id):
    """A: 100 KSh with 10 in stock, B: 50 KSh with 5 in stock."""
    return {
        "A": make_product(vendor_id, "Avocado (kg)", 100, 10, category="Fruits"),
        "B": make_product(vendor_id, "Sukuma wiki", 50, 5),
    }


@pytest.fixture
def login(backend):
    def _login(username):
        market = create_market(base_url=BASE_URL, session_file=None, http=backend)
        market.auth.login(username, PASSWORD)
        return market

    return _login


@pytest.fixture
def market(login, customer_id, products):
    return login("wanjiku")


@pytest.fixture
def vendor_market(login, vendor_id):
    return login("shamba_fresh")


@pytest.fixture
def settle_payment(backend):
    def _settle(transaction_id, result_code=0):
        resp = backend.post(
            "/payments/callback",
            json={"transaction_id": transaction_id, "result_code": result_code},
        )
        assert resp.status_code == 200

    return _settle


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is not None:
            self.text = text
            self.content = text.encode()
        elif payload is None:
            self.text = ""
            self.content = b""
        else:
            self.text = repr(payload)
            self.content = b"{}"

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class RecordingHttp:
    """requests-style session that replays canned responses and records calls."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "json": json, "params": params, "headers": headers}
        )
        result = self.responses.pop(0) if self.responses else FakeResponse(204)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_api():
    def _make(*responses, role=Role.CUSTOMER, user_id=1):
        session = AppSession()
        session.authenticate("tok", User(id=user_id, username="tester", role=role))
        http = RecordingHttp(*responses)
        return ApiClient(session, base_url=BASE_URL, http=http), http

    return _make


@pytest.fixture
def paid_order(market, products, settle_payment):
    """Two avocados bought and paid for, still pending shipment."""
    product = market.catalog.get_product(products["A"])
    market.cart.add(product, 2)
    flow = market.checkout(poll_attempts=2, poll_initial_delay=0, poll_max_delay=0)
    receipt = flow.begin("0712345678")
    settle_payment(receipt.transaction_id)
    flow.await_confirmation()
    return market.orders.list_orders()[0]


@pytest.fixture
def delivered_order(paid_order, vendor_market, market):
    vendor_market.orders.update_status(paid_order.id, ShippingStatus.SHIPPED, tracking_number=" TRK-1 ")
    vendor_market.orders.update_status(paid_order.id, "delivered")
    return market.orders.list_orders(refresh=True)[0]
