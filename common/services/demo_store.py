"""In-memory backend used in demo mode and by the test suite."""

from __future__ import annotations

import copy
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from ..utils.validators import ensure_positive_int
from .catalog_service import parse_price
from .interfaces import (
    BookingStore,
    DecrementLine,
    ItemCatalog,
    RushStatusStore,
    SequenceCounter,
    StockCheck,
    StockLedger,
    StockUpdate,
    ValidationLine,
    check_lines,
)
from .logging import log_event
from .order_numbers import OrderStatus, search_orders
from .order_service import PAYMENT_STATUSES, check_order_status


DEMO_ITEMS = [
    {"id": "1", "name": "Notebook", "price": 25.99, "stock_quantity": 50},
    {"id": "2", "name": "Pen Set", "price": 15.50, "stock_quantity": 30},
    {"id": "3", "name": "Highlighters", "price": 12.00, "stock_quantity": 3},
    {"id": "4", "name": "Sticky Notes", "price": 8.75, "stock_quantity": 100},
    {"id": "5", "name": "Stapler", "price": 22.00, "stock_quantity": 0},
    {"id": "6", "name": "Paper Clips", "price": 5.25, "stock_quantity": 200},
    {"id": "7", "name": "Ruler", "price": 7.50, "stock_quantity": 40},
    {"id": "8", "name": "Eraser", "price": 3.00, "stock_quantity": 75},
]


def _iso(value):
    return value.isoformat() if hasattr(value, "isoformat") else value


class DemoDataStore(StockLedger, ItemCatalog, BookingStore, RushStatusStore, SequenceCounter):
    """One object implementing every store capability over plain dicts."""

    def __init__(self, items: Optional[Iterable[Dict]] = None) -> None:
        seed = DEMO_ITEMS if items is None else items
        now = datetime.now().isoformat()
        self._items: Dict[str, Dict] = {}
        for raw in seed:
            entry = {
                "id": str(raw["id"]),
                "name": raw["name"],
                "price": float(raw["price"]),
                "stock_quantity": int(raw.get("stock_quantity", 0)),
                "created_at": raw.get("created_at", now),
            }
            self._items[entry["id"]] = entry
        self._bookings: Dict[str, Dict] = {}
        self._rush: Dict[str, Dict[str, str]] = {}
        self._counters: Dict[str, int] = {}

    # -- StockLedger -----------------------------------------------------

    def get_levels(self, item_ids: Optional[Iterable[str]] = None) -> Dict[str, int]:
        if item_ids is None:
            return {k: v["stock_quantity"] for k, v in self._items.items()}
        wanted = {str(i) for i in item_ids}
        return {k: v["stock_quantity"] for k, v in self._items.items() if k in wanted}

    def validate(self, lines: Sequence[ValidationLine]) -> StockCheck:
        return check_lines(lines, self.get_levels([line[0] for line in lines]))

    def decrement(self, lines: Sequence[DecrementLine]) -> StockUpdate:
        applied = []
        for item_id, quantity in lines:
            qty = ensure_positive_int(quantity, "quantity")
            item = self._items.get(str(item_id))
            if item is None:
                return StockUpdate(
                    success=False,
                    message="Failed to update stock",
                    applied=applied,
                    error=f"Item with id {item_id} not found",
                )
            item["stock_quantity"] = max(0, item["stock_quantity"] - qty)
            applied.append(str(item_id))
        log_event("debug", "demo.stock.decremented", items=applied)
        return StockUpdate(success=True, message="Stock updated (Demo Mode)", applied=applied)

    def set_stock(self, item_id: str, quantity: int) -> int:
        item = self._require_item(item_id)
        item["stock_quantity"] = max(0, int(quantity))
        return item["stock_quantity"]

    def adjust_stock(self, item_id: str, delta: int) -> int:
        item = self._require_item(item_id)
        item["stock_quantity"] = max(0, item["stock_quantity"] + int(delta))
        return item["stock_quantity"]

    def _require_item(self, item_id: str) -> Dict:
        item = self._items.get(str(item_id))
        if item is None:
            raise LookupError(f"Item not found: {item_id}")
        return item

    # -- ItemCatalog -----------------------------------------------------

    def list_items(self) -> List[Dict]:
        return [dict(i) for i in sorted(self._items.values(), key=lambda i: i["name"])]

    def get_item(self, item_id: str) -> Dict:
        item = self._items.get(str(item_id))
        return dict(item) if item else {}

    def create_item(self, *, name: str, price, stock_quantity: int = 0, item_id: Optional[str] = None) -> Dict:
        name = (name or "").strip()
        if not name:
            raise ValueError("name required")
        entry = {
            "id": str(item_id or uuid4()),
            "name": name,
            "price": float(parse_price(price)),
            "stock_quantity": ensure_positive_int(stock_quantity, "stock_quantity"),
            "created_at": datetime.now().isoformat(),
        }
        self._items[entry["id"]] = entry
        return dict(entry)

    def update_item(self, item_id: str, *, name: Optional[str] = None, price=None) -> Dict:
        item = self._require_item(item_id)
        if name is not None:
            if not name.strip():
                raise ValueError("name required")
            item["name"] = name.strip()
        if price is not None:
            item["price"] = float(parse_price(price))
        return dict(item)

    def delete_item(self, item_id: str) -> bool:
        return self._items.pop(str(item_id), None) is not None

    # -- BookingStore ----------------------------------------------------

    def insert(self, record: Dict) -> Dict:
        if any(b["order_number"] == record["order_number"] for b in self._bookings.values()):
            raise ValueError(f"Duplicate order number: {record['order_number']}")
        payment_amount = record.get("payment_amount")
        booking = {
            "id": record.get("id") or str(uuid4()),
            "order_number": record["order_number"],
            "customer_name": record["customer_name"],
            "date": record["date"],
            "time_slot": record["time_slot"],
            "items": copy.deepcopy(record["items"]),
            "total_cost": float(Decimal(str(record["total_cost"]))),
            "order_status": record.get("order_status") or OrderStatus.PENDING,
            "payment_method": record["payment_method"],
            "payment_status": record["payment_status"],
            "payment_id": record.get("payment_id"),
            "payment_amount": float(payment_amount) if payment_amount is not None else None,
            "payment_currency": record.get("payment_currency") or "INR",
            "payment_completed_at": _iso(record.get("payment_completed_at")),
            "created_at": datetime.now().isoformat(),
        }
        self._bookings[booking["id"]] = booking
        return copy.deepcopy(booking)

    def get(self, booking_id: str) -> Dict:
        b = self._bookings.get(booking_id or "")
        return copy.deepcopy(b) if b else {}

    def find_by_order_number(self, order_number: str) -> Dict:
        target = (order_number or "").strip()
        for b in self._bookings.values():
            if target and b["order_number"] == target:
                return copy.deepcopy(b)
        return {}

    def list_bookings(
        self,
        *,
        date: Optional[str] = None,
        order_status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict]:
        rows = [
            copy.deepcopy(b)
            for b in sorted(self._bookings.values(), key=lambda b: b["created_at"], reverse=True)
            if (not date or b["date"] == date)
            and (not order_status or b["order_status"] == order_status)
            and (not payment_status or b["payment_status"] == payment_status)
        ]
        return search_orders(rows, search)

    def update_status(self, booking_id: str, order_status: str) -> Dict:
        check_order_status(order_status)
        b = self._bookings.get(booking_id)
        if not b:
            raise LookupError(f"Booking not found: {booking_id}")
        b["order_status"] = order_status
        return copy.deepcopy(b)

    def update_payment(self, booking_id: str, *, payment_status: str, payment_id: Optional[str] = None) -> Dict:
        if payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"payment_status must be one of {', '.join(PAYMENT_STATUSES)}")
        b = self._bookings.get(booking_id)
        if not b:
            raise LookupError(f"Booking not found: {booking_id}")
        b["payment_status"] = payment_status
        if payment_id is not None:
            b["payment_id"] = payment_id
        if payment_status == "completed" and not b["payment_completed_at"]:
            b["payment_completed_at"] = datetime.now().isoformat()
        return copy.deepcopy(b)

    def delete(self, booking_id: str) -> bool:
        return self._bookings.pop(booking_id, None) is not None

    # -- RushStatusStore -------------------------------------------------

    def lookup(self, date: str, time_slot: str) -> Optional[str]:
        return self._rush.get(date, {}).get(time_slot)

    def statuses_for(self, date: str) -> Dict[str, str]:
        return dict(self._rush.get(date, {}))

    def upsert(self, date: str, time_slot: str, status: str) -> None:
        self._rush.setdefault(date, {})[time_slot] = status

    # -- SequenceCounter -------------------------------------------------

    def increment(self, name: str) -> int:
        self._counters[name] = self._counters.get(name, 0) + 1
        return self._counters[name]
