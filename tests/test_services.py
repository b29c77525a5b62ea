"""Tests for the payment gateway and admin authentication adapters."""
import hashlib
import hmac

import pytest

from services.admin_auth import AdminAuthenticator, AuthError
from services.payment_gateway import (
    PaymentGatewayError,
    RazorpayGateway,
    cash_on_delivery_outcome,
    format_amount_for_display,
    format_amount_for_gateway,
)


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def _signature(secret, order_id, payment_id):
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def test_amount_conversion():
    assert format_amount_for_gateway(10.5) == 1050
    assert format_amount_for_display(1050) == "10.50"


def test_cash_on_delivery_needs_no_payment():
    outcome = cash_on_delivery_outcome(10)
    assert outcome.status == "not_required"
    assert outcome.is_terminal_success


def test_create_order_posts_amount_in_paise():
    http = FakeSession(FakeResponse(200, {"id": "order_9", "amount": 2599, "currency": "INR"}))
    gateway = RazorpayGateway("key", "secret", session=http)
    order = gateway.create_order(25.99, "INR", notes={"customer_name": "Asha"})
    assert order["id"] == "order_9"
    url, kwargs = http.calls[0]
    assert url.endswith("/orders")
    assert kwargs["json"]["amount"] == 2599
    assert kwargs["auth"] == ("key", "secret")


def test_create_order_surfaces_api_errors():
    http = FakeSession(FakeResponse(400, {"error": {"description": "bad amount"}}))
    with pytest.raises(PaymentGatewayError, match="bad amount"):
        RazorpayGateway("key", "secret", session=http).create_order(1)


def test_callback_signature_is_verified():
    gateway = RazorpayGateway("key", "secret", session=FakeSession(None))
    good = {"payment_id": "pay_1", "order_id": "order_1", "signature": _signature("secret", "order_1", "pay_1")}
    assert gateway.outcome_from_callback(good, 10).status == "completed"
    bad = dict(good, signature="forged")
    assert gateway.outcome_from_callback(bad, 10).status == "failed"
    assert gateway.outcome_from_callback({"status": "cancelled"}, 10).status == "cancelled"


def test_admin_sign_in_and_session():
    auth = AdminAuthenticator("admin@example.com", "admin123", "secret")
    events = []
    unsubscribe = auth.on_auth_state_change(lambda event, session: events.append(event))

    token = auth.sign_in_with_password("Admin@Example.com", "admin123")
    assert auth.get_session(token)["user"]["email"] == "admin@example.com"
    assert auth.get_session("garbage") is None
    assert AdminAuthenticator("admin@example.com", "admin123", "other").get_session(token) is None

    auth.sign_out()
    unsubscribe()
    auth.sign_in_with_password("admin@example.com", "admin123")
    assert events == ["SIGNED_IN", "SIGNED_OUT"]

    with pytest.raises(AuthError):
        auth.sign_in_with_password("admin@example.com", "wrong")


def test_expired_token_is_rejected():
    auth = AdminAuthenticator("admin@example.com", "admin123", "secret", ttl=-10)
    token = auth.sign_in_with_password("admin@example.com", "admin123")
    assert auth.get_session(token) is None
