"""Storefront routes: catalog, time slots and order status check."""

from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, jsonify, request

from common.services.order_numbers import is_valid_order_number, normalize_order_number, order_status_text
from common.services.stock_ledger import stock_status


user_bp = Blueprint("store_user", __name__)


def _components() -> dict:
    return current_app.extensions["store_components"]


def _items_with_status() -> list:
    items = _components()["catalog"].list_items()
    for item in items:
        item["stock_status"] = stock_status(item["stock_quantity"])
    return items


@user_bp.get("/")
def storefront_home():
    today = date.today().isoformat()
    return jsonify(
        {
            "items": _items_with_status(),
            "date": today,
            "slots": _components()["rush"].slots_for(today),
            "currency": current_app.config["STORE_CONFIG"].app.currency,
        }
    )


@user_bp.get("/items")
def list_items():
    return jsonify({"items": _items_with_status()})


@user_bp.get("/slots")
def list_slots():
    selected = request.args.get("date") or date.today().isoformat()
    try:
        slots = _components()["rush"].slots_for(selected)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"date": selected, "slots": slots})


@user_bp.get("/orders/<order_number>")
def order_status(order_number: str):
    number = normalize_order_number(order_number)
    if not is_valid_order_number(number):
        return jsonify({"error": "Order numbers look like 05_2025_001."}), 400
    booking = _components()["bookings"].find_by_order_number(number)
    if not booking:
        return jsonify({"error": "No order found with this order number."}), 404
    booking["order_status_text"] = order_status_text(booking.get("order_status"))
    return jsonify({"order": booking})
