import json
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("MERCADOPAGO_PUBLIC_KEY", "TEST-public-key")
os.environ.setdefault("MERCADOPAGO_ACCESS_TOKEN", "TEST-access-token")
os.environ.setdefault("MERCADOPAGO_WEBHOOK_SECRET", "test-webhook-secret")

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from main import create_app
from settings import Settings
from vitabalance.database import Database
from vitabalance.services.mercadopago import MercadoPagoClient
from vitabalance.services.notifications import EntitlementNotifier
from vitabalance.services.reconciliation import WebhookReconciler, sign_payload
from vitabalance.services.store import Store

JWT_SECRET = "test-jwt-secret"
WEBHOOK_SECRET = "test-webhook-secret"
USER_ID = "user-123"
USER_EMAIL = "ana@example.com"

COMPLETE_REGISTRATION = {
    "weight": 70,
    "height": 175,
    "age": 25,
    "goal": "lose_weight",
    "calorie_target": "2000_2300",
    "gender": "male",
    "activity_level": "moderately_active",
    "training_preference": "gym",
    "meal_times": "06:00, 09:00, 12:00, 15:00, 19:00",
    "chocolate_preference": "bis",
}

SIX_ITEMS = ["Ovos", "Aveia", "Banana", "Iogurte", "Mel", "Tapioca"]


class FakeMercadoPago:
    """In-memory stand-in for the Mercado Pago REST API, served through httpx.MockTransport."""

    def __init__(self):
        self.payments = {}
        self.requests = []
        self.preference_error = None
        self.payment_failures = 0

    def add_payment(self, payment_id, status="approved", user_id=USER_ID, amount=9.9):
        self.payments[str(payment_id)] = {
            "id": int(payment_id),
            "status": status,
            "external_reference": user_id,
            "transaction_amount": amount,
            "currency_id": "BRL",
            "payment_type_id": "credit_card",
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path == "/checkout/preferences":
            if self.preference_error:
                status_code, message = self.preference_error
                return httpx.Response(status_code, json={"message": message})
            return httpx.Response(201, json={
                "id": "pref-1",
                "init_point": "https://www.mercadopago.com.br/checkout/v1/redirect?pref_id=pref-1",
            })
        if request.method == "GET" and path.startswith("/v1/payments/"):
            if self.payment_failures:
                self.payment_failures -= 1
                return httpx.Response(500, json={"message": "internal_error"})
            payment = self.payments.get(path.rsplit("/", 1)[-1])
            if payment is None:
                return httpx.Response(404, json={"message": "Payment not found"})
            return httpx.Response(200, json=payment)
        return httpx.Response(404, json={"message": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def payment_fetches(self) -> int:
        return sum(1 for r in self.requests if r.url.path.startswith("/v1/payments/"))


def make_token(user_id=USER_ID, email=USER_EMAIL, secret=JWT_SECRET, expires_in=3600):
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(user_id=USER_ID, email=USER_EMAIL):
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


def payment_notification(payment_id, secret=WEBHOOK_SECRET, type_="payment"):
    body = json.dumps({"type": type_, "data": {"id": str(payment_id)}}).encode()
    return body, sign_payload(body, secret)


def count_rows(database, model):
    with database.session() as db:
        return db.query(model).count()


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return Store(database, retry_attempts=3, retry_base_delay=0, sleep=lambda _: None)


@pytest.fixture
def fake_mp():
    return FakeMercadoPago()


@pytest.fixture
def notifier():
    return EntitlementNotifier()


@pytest.fixture
def payment_client(fake_mp):
    return MercadoPagoClient(
        access_token="TEST-access-token",
        base_url="https://api.mercadopago.test",
        retry_attempts=3,
        retry_base_delay=0,
        transport=fake_mp.transport(),
    )


@pytest.fixture
def reconciler(store, payment_client, notifier):
    return WebhookReconciler(store, payment_client, notifier, WEBHOOK_SECRET)


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        AUTH_JWT_SECRET=JWT_SECRET,
        MERCADOPAGO_API_URL="https://api.mercadopago.test",
        MERCADOPAGO_PUBLIC_KEY="TEST-public-key",
        MERCADOPAGO_ACCESS_TOKEN="TEST-access-token",
        MERCADOPAGO_WEBHOOK_SECRET=WEBHOOK_SECRET,
        BACKEND_URL="https://api.vitabalance.test",
        PAYMENT_POLL_INTERVAL_SECONDS=0.01,
        PAYMENT_POLL_MAX_ATTEMPTS=3,
        STORE_RETRY_BASE_DELAY_SECONDS=0,
        UPSTREAM_RETRY_BASE_DELAY_SECONDS=0,
        REGISTRATION_DEBOUNCE_SECONDS=0.05,
        SENTRY_DSN=None,
    )


@pytest.fixture
def client(test_settings, fake_mp):
    app = create_app(test_settings, payment_transport=fake_mp.transport())
    with TestClient(app) as test_client:
        yield test_client
