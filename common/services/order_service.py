from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from ..models.booking import Booking
from ..utils.dto import to_booking_dto
from .interfaces import BookingStore
from .logging import log_event
from .order_numbers import OrderStatus, search_orders


PAYMENT_STATUSES = ("completed", "not_required", "pending", "failed")


def check_order_status(value: Optional[str]) -> str:
    if value not in OrderStatus.ALL:
        raise ValueError(f"order_status must be one of {', '.join(OrderStatus.ALL)}")
    return value


def summarize_bookings(bookings: Iterable[Dict]) -> Dict:
    """Totals shown above the admin order list."""
    bookings = list(bookings)
    revenue = sum((Decimal(str(b.get("total_cost") or 0)) for b in bookings), Decimal("0"))
    by_date: "OrderedDict[str, List[Dict]]" = OrderedDict()
    for b in sorted(bookings, key=lambda x: x.get("date") or "", reverse=True):
        by_date.setdefault(b.get("date") or "", []).append(b)
    status_counts = {s: 0 for s in OrderStatus.ALL}
    for b in bookings:
        status = b.get("order_status") or OrderStatus.PENDING
        status_counts[status] = status_counts.get(status, 0) + 1
    return {
        "count": len(bookings),
        "revenue": float(revenue),
        "customers": len({b.get("customer_name") for b in bookings}),
        "order_status": status_counts,
        "by_date": [
            {
                "date": d,
                "count": len(rows),
                "total": float(sum((Decimal(str(r.get("total_cost") or 0)) for r in rows), Decimal("0"))),
            }
            for d, rows in by_date.items()
        ],
    }


class SqlBookingStore(BookingStore):
    """Booking creation and retrieval backed by DB."""

    def __init__(self, session_factory: Callable) -> None:
        self._session_factory = session_factory

    def insert(self, record: Dict) -> Dict:
        booking = Booking(
            id=record.get("id") or str(uuid4()),
            order_number=record["order_number"],
            customer_name=record["customer_name"],
            date=record["date"],
            time_slot=record["time_slot"],
            items=record["items"],
            total_cost=Decimal(str(record["total_cost"])),
            order_status=record.get("order_status") or OrderStatus.PENDING,
            payment_method=record["payment_method"],
            payment_status=record["payment_status"],
            payment_id=record.get("payment_id"),
            payment_amount=Decimal(str(record["payment_amount"])) if record.get("payment_amount") is not None else None,
            payment_currency=record.get("payment_currency") or "INR",
            payment_completed_at=record.get("payment_completed_at"),
        )
        with self._session_factory() as session:
            session.add(booking)
            session.flush()
            dto = to_booking_dto(booking)
        log_event("info", "booking.created", booking_id=dto["id"], order_number=dto["order_number"])
        return dto

    def get(self, booking_id: str) -> Dict:
        if not booking_id:
            return {}
        with self._session_factory() as session:
            b = session.query(Booking).filter(Booking.id == booking_id).first()
            return to_booking_dto(b) if b else {}

    def find_by_order_number(self, order_number: str) -> Dict:
        if not order_number:
            return {}
        with self._session_factory() as session:
            b = session.query(Booking).filter(Booking.order_number == order_number.strip()).first()
            return to_booking_dto(b) if b else {}

    def list_bookings(
        self,
        *,
        date: Optional[str] = None,
        order_status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict]:
        with self._session_factory() as session:
            q = session.query(Booking)
            if date:
                q = q.filter(Booking.date == date)
            if order_status:
                q = q.filter(Booking.order_status == order_status)
            if payment_status:
                q = q.filter(Booking.payment_status == payment_status)
            rows = [to_booking_dto(b) for b in q.order_by(Booking.created_at.desc()).all()]
        return search_orders(rows, search)

    def update_status(self, booking_id: str, order_status: str) -> Dict:
        check_order_status(order_status)
        with self._session_factory() as session:
            b = session.query(Booking).filter(Booking.id == booking_id).first()
            if not b:
                raise LookupError(f"Booking not found: {booking_id}")
            b.order_status = order_status
            session.flush()
            dto = to_booking_dto(b)
        log_event("info", "booking.status_updated", booking_id=booking_id, order_status=order_status)
        return dto

    def update_payment(self, booking_id: str, *, payment_status: str, payment_id: Optional[str] = None) -> Dict:
        if payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"payment_status must be one of {', '.join(PAYMENT_STATUSES)}")
        with self._session_factory() as session:
            b = session.query(Booking).filter(Booking.id == booking_id).first()
            if not b:
                raise LookupError(f"Booking not found: {booking_id}")
            b.payment_status = payment_status
            if payment_id is not None:
                b.payment_id = payment_id
            if payment_status == "completed" and b.payment_completed_at is None:
                b.payment_completed_at = datetime.now()
            session.flush()
            return to_booking_dto(b)

    def delete(self, booking_id: str) -> bool:
        with self._session_factory() as session:
            b = session.query(Booking).filter(Booking.id == booking_id).first()
            if not b:
                return False
            session.delete(b)
        log_event("info", "booking.deleted", booking_id=booking_id)
        return True
