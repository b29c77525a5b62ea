"""Booking API: stock check, payment callback and confirmation."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, session

from common.services.booking_service import (
    BookingAttempt,
    BookingError,
    BookingPersistenceError,
    BookingPreconditionError,
    PaymentCancelledError,
    PaymentFailedError,
    PaymentOutcome,
    StockValidationError,
)
from common.services.logging import log_event
from services.payment_gateway import PaymentGatewayError, cash_on_delivery_outcome


api_bp = Blueprint("store_api", __name__, url_prefix="/api")

PENDING_KEY = "pending_booking"
PAYMENT_KEY = "pending_payment"


def _components() -> Dict[str, Any]:
    return current_app.extensions["store_components"]


def _config():
    return current_app.config["STORE_CONFIG"]


def _reset_booking() -> None:
    session.pop(PENDING_KEY, None)
    session.pop(PAYMENT_KEY, None)


def _pending_attempt():
    data = session.get(PENDING_KEY)
    return BookingAttempt.from_dict(data) if data else None


@api_bp.get("/health")
def health_check():
    return jsonify({"status": "healthy", "backend": _config().app.backend})


@api_bp.post("/booking")
def start_booking():
    payload = request.get_json(silent=True) or {}
    orchestrator = _components()["orchestrator"]
    try:
        attempt = orchestrator.begin(
            customer_name=str(payload.get("customer_name", "")),
            date=str(payload.get("date", "")),
            time_slot=payload.get("time_slot"),
            quantities=payload.get("quantities") or {},
            payment_method=str(payload.get("payment_method") or "cash_on_delivery"),
        )
    except BookingPreconditionError as exc:
        return jsonify({"error": str(exc)}), 400
    except StockValidationError as exc:
        return jsonify({"error": str(exc), "details": exc.details}), 409

    response: Dict[str, Any] = {"status": "awaiting_payment", "booking": attempt.to_dict()}
    if attempt.payment_method == "online":
        gateway = _components()["payments"]
        try:
            response["payment_order"] = gateway.create_order(
                attempt.total_cost,
                _config().app.currency,
                notes={"customer_name": attempt.customer_name, "date": attempt.date, "time_slot": attempt.time_slot},
            )
        except PaymentGatewayError as exc:
            return jsonify({"error": str(exc)}), 502
        response["payment_key"] = gateway.key_id

    session[PENDING_KEY] = attempt.to_dict()
    session.pop(PAYMENT_KEY, None)
    return jsonify(response)


@api_bp.post("/booking/payment")
def complete_payment():
    attempt = _pending_attempt()
    if attempt is None:
        return jsonify({"error": "No booking is awaiting payment."}), 409
    payload = request.get_json(silent=True) or {}
    if attempt.payment_method == "cash_on_delivery":
        outcome = cash_on_delivery_outcome(attempt.total_cost)
    else:
        outcome = _components()["payments"].outcome_from_callback(payload, attempt.total_cost)

    try:
        confirmation = _components()["orchestrator"].complete(attempt, outcome)
    except PaymentCancelledError as exc:
        _reset_booking()
        return jsonify({"status": "cancelled", "message": str(exc)})
    except PaymentFailedError as exc:
        _reset_booking()
        return jsonify({"error": str(exc)}), 402
    except BookingPersistenceError as exc:
        session[PENDING_KEY] = exc.attempt.to_dict()
        session[PAYMENT_KEY] = asdict(outcome)
        return jsonify(
            {
                "error": str(exc),
                "order_number": exc.attempt.order_number,
                "allow_demo_fallback": exc.allow_demo_fallback,
            }
        ), 503
    except BookingError as exc:
        return jsonify({"error": str(exc)}), 409

    _reset_booking()
    return jsonify({"status": "confirmed", "confirmation": confirmation.to_dict()}), 201


@api_bp.post("/booking/demo-complete")
def complete_in_demo_mode():
    attempt = _pending_attempt()
    outcome_data = session.get(PAYMENT_KEY)
    if attempt is None or not outcome_data:
        return jsonify({"error": "No failed booking to confirm in demo mode."}), 409
    try:
        confirmation = _components()["orchestrator"].complete_demo(attempt, PaymentOutcome(**outcome_data))
    except BookingError as exc:
        return jsonify({"error": str(exc)}), 409
    _reset_booking()
    log_event("warning", "api.demo_confirmation", order_number=confirmation.order_number)
    return jsonify({"status": "confirmed", "confirmation": confirmation.to_dict()})


@api_bp.post("/booking/cancel")
def cancel_booking():
    _reset_booking()
    return jsonify({"status": "ok"})
