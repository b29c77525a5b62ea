"""Admin panel routes: stock, orders and rush status."""

from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, jsonify, request, session

from common.services.order_service import summarize_bookings
from common.services.stock_ledger import stock_status
from services.admin_auth import AuthError


admin_bp = Blueprint("store_admin", __name__, url_prefix="/admin")

TOKEN_KEY = "admin_token"


def _components() -> dict:
    return current_app.extensions["store_components"]


def _current_session():
    return _components()["auth"].get_session(session.get(TOKEN_KEY))


def _error(message: str, status: int):
    return jsonify({"status": "error", "message": message}), status


@admin_bp.before_request
def guard_private_routes():
    if request.endpoint and request.endpoint.startswith("store_admin."):
        public = {"store_admin.login_submit"}
        if request.endpoint not in public and _current_session() is None:
            return _error("Please sign in.", 401)
    return None


@admin_bp.post("/login")
def login_submit():
    payload = request.get_json(silent=True) or {}
    auth = _components()["auth"]
    try:
        token = auth.sign_in_with_password(
            str(payload.get("email", "")).strip(),
            str(payload.get("password", "")),
        )
    except AuthError as exc:
        return _error(str(exc), 401)
    session[TOKEN_KEY] = token
    return jsonify({"status": "ok", "session": auth.get_session(token)})


@admin_bp.post("/logout")
def logout():
    session.pop(TOKEN_KEY, None)
    _components()["auth"].sign_out()
    return jsonify({"status": "ok"})


@admin_bp.get("/session")
def current_session():
    return jsonify({"status": "ok", "session": _current_session()})


# -- stock -------------------------------------------------------------------


@admin_bp.get("/items")
def list_items():
    items = _components()["catalog"].list_items()
    for item in items:
        item["stock_status"] = stock_status(item["stock_quantity"])
    return jsonify({"status": "ok", "items": items})


@admin_bp.post("/items")
def create_item():
    payload = request.get_json(silent=True) or {}
    try:
        item = _components()["catalog"].create_item(
            name=str(payload.get("name", "")),
            price=payload.get("price"),
            stock_quantity=payload.get("stock_quantity", 0),
        )
    except (TypeError, ValueError) as exc:
        return _error(str(exc), 400)
    return jsonify({"status": "ok", "item": item}), 201


@admin_bp.put("/items/<item_id>")
def update_item(item_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        item = _components()["catalog"].update_item(item_id, name=payload.get("name"), price=payload.get("price"))
    except LookupError as exc:
        return _error(str(exc), 404)
    except ValueError as exc:
        return _error(str(exc), 400)
    return jsonify({"status": "ok", "item": item})


@admin_bp.delete("/items/<item_id>")
def delete_item(item_id: str):
    if not _components()["catalog"].delete_item(item_id):
        return _error(f"Item not found: {item_id}", 404)
    return jsonify({"status": "ok"})


@admin_bp.patch("/items/<item_id>/stock")
def update_stock(item_id: str):
    """Absolute ``stock_quantity`` or relative ``delta``; both clamp at zero."""
    payload = request.get_json(silent=True) or {}
    ledger = _components()["ledger"]
    try:
        if "stock_quantity" in payload:
            quantity = ledger.set_stock(item_id, int(payload["stock_quantity"]))
        elif "delta" in payload:
            quantity = ledger.adjust_stock(item_id, int(payload["delta"]))
        else:
            return _error("stock_quantity or delta required", 400)
    except LookupError as exc:
        return _error(str(exc), 404)
    except (TypeError, ValueError):
        return _error("stock values must be integers", 400)
    return jsonify({"status": "ok", "item_id": item_id, "stock_quantity": quantity, "stock_status": stock_status(quantity)})


# -- orders ------------------------------------------------------------------


def _filter_value(name: str):
    value = (request.args.get(name) or "").strip()
    return None if value in ("", "all") else value


@admin_bp.get("/orders")
def list_orders():
    orders = _components()["bookings"].list_bookings(
        date=_filter_value("date"),
        order_status=_filter_value("order_status"),
        payment_status=_filter_value("payment_status"),
        search=_filter_value("search"),
    )
    return jsonify({"status": "ok", "orders": orders, "summary": summarize_bookings(orders)})


@admin_bp.patch("/orders/<booking_id>/status")
def update_order_status(booking_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        booking = _components()["bookings"].update_status(booking_id, payload.get("order_status"))
    except LookupError as exc:
        return _error(str(exc), 404)
    except ValueError as exc:
        return _error(str(exc), 400)
    return jsonify({"status": "ok", "order": booking})


@admin_bp.delete("/orders/<booking_id>")
def delete_order(booking_id: str):
    if not _components()["bookings"].delete(booking_id):
        return _error(f"Booking not found: {booking_id}", 404)
    return jsonify({"status": "ok"})


# -- rush status -------------------------------------------------------------


@admin_bp.get("/rush")
def rush_grid():
    selected = request.args.get("date") or date.today().isoformat()
    try:
        slots = _components()["rush"].slots_for(selected)
    except ValueError as exc:
        return _error(str(exc), 400)
    return jsonify({"status": "ok", "date": selected, "slots": slots})


@admin_bp.put("/rush")
def set_rush_status():
    payload = request.get_json(silent=True) or {}
    try:
        level = _components()["rush"].set_status(
            str(payload.get("date", "")),
            str(payload.get("time_slot", "")),
            str(payload.get("status", "")),
        )
    except ValueError as exc:
        return _error(str(exc), 400)
    return jsonify({"status": "ok", "rush": level})
