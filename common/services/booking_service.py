"""Booking flow: validate stock, collect payment, persist, decrement stock.

The steps run strictly in sequence for one attempt, but nothing spans the
validation and the decrement: a concurrent booking or admin stock edit may
interleave, so validation is a snapshot and not a reservation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import OperationalError, ProgrammingError, SQLAlchemyError

from ..utils.validators import parse_iso_date
from .interfaces import BookingStore, ItemCatalog, StockCheck, StockLedger
from .logging import log_event
from .order_numbers import OrderStatus, format_order_number


PAYMENT_METHODS = ("online", "cash_on_delivery")


class BookingState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_PAYMENT = "awaiting_payment"
    PERSISTING = "persisting"
    STOCK_ADJUSTING = "stock_adjusting"
    COMPLETE = "complete"
    ERROR = "error"


class BookingError(Exception):
    """Base class for booking flow failures."""


class BookingPreconditionError(BookingError):
    pass


class StockValidationError(BookingError):
    def __init__(self, check: StockCheck) -> None:
        super().__init__(check.message)
        self.check = check

    @property
    def details(self) -> List[str]:
        return list(self.check.details)


class PaymentCancelledError(BookingError):
    pass


class PaymentFailedError(BookingError):
    pass


class BookingPersistenceError(BookingError):
    def __init__(self, message: str, attempt: "BookingAttempt", allow_demo_fallback: bool) -> None:
        super().__init__(message)
        self.attempt = attempt
        self.allow_demo_fallback = allow_demo_fallback


@dataclass
class PaymentOutcome:
    method: str
    status: str  # completed | not_required | cancelled | failed
    payment_id: Optional[str] = None
    amount: Optional[float] = None
    message: Optional[str] = None

    @property
    def is_terminal_success(self) -> bool:
        return self.status in ("completed", "not_required")


@dataclass
class BookingLine:
    item_id: str
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def snapshot(self) -> Dict:
        return {"id": self.item_id, "name": self.name, "price": float(self.unit_price), "quantity": self.quantity}


@dataclass
class BookingAttempt:
    customer_name: str
    date: str
    time_slot: str
    payment_method: str
    lines: List[BookingLine] = field(default_factory=list)
    total_cost: Decimal = Decimal("0.00")
    state: BookingState = BookingState.IDLE
    order_number: Optional[str] = None
    allow_demo_fallback: bool = False

    def to_dict(self) -> Dict:
        return {
            "customer_name": self.customer_name,
            "date": self.date,
            "time_slot": self.time_slot,
            "payment_method": self.payment_method,
            "items": [line.snapshot() for line in self.lines],
            "total_cost": str(self.total_cost),
            "state": self.state.value,
            "order_number": self.order_number,
            "allow_demo_fallback": self.allow_demo_fallback,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "BookingAttempt":
        return cls(
            customer_name=data["customer_name"],
            date=data["date"],
            time_slot=data["time_slot"],
            payment_method=data["payment_method"],
            lines=[
                BookingLine(
                    item_id=str(i["id"]),
                    name=i["name"],
                    unit_price=Decimal(str(i["price"])),
                    quantity=int(i["quantity"]),
                )
                for i in data.get("items", [])
            ],
            total_cost=Decimal(str(data.get("total_cost", "0"))),
            state=BookingState(data.get("state", BookingState.IDLE.value)),
            order_number=data.get("order_number"),
            allow_demo_fallback=bool(data.get("allow_demo_fallback", False)),
        )


@dataclass
class BookingConfirmation:
    order_number: str
    customer_name: str
    date: str
    time_slot: str
    total_cost: Decimal
    payment_method: str
    payment_status: str
    payment_id: Optional[str] = None
    booking_id: Optional[str] = None
    stock_message: Optional[str] = None
    demo: bool = False

    @property
    def payment_method_text(self) -> str:
        return "Online Payment" if self.payment_method == "online" else "Cash on Delivery"

    @property
    def payment_status_text(self) -> str:
        return "Successful" if self.payment_status == "completed" else "Pending"

    def to_dict(self) -> Dict:
        return {
            "order_number": format_order_number(self.order_number),
            "booking_id": self.booking_id,
            "customer_name": self.customer_name,
            "date": self.date,
            "time_slot": self.time_slot,
            "total_cost": float(self.total_cost),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "payment_summary": f"{self.payment_method_text} ({self.payment_status_text})",
            "payment_id": self.payment_id,
            "stock_message": self.stock_message,
            "demo": self.demo,
        }


def _describe_persistence_error(exc: Exception):
    """Return ``(message, allow_demo_fallback)`` for a failed booking write."""
    if isinstance(exc, OperationalError):
        return "Network error. Please check your connection and try again.", False
    if isinstance(exc, ProgrammingError):
        return "Database configuration issue. The database schema needs to be updated.", True
    text = str(exc)
    if "permission" in text.lower():
        return "Permission denied. Database policies need to be configured.", True
    return f"Booking failed: {text}", True


class BookingOrchestrator:
    """Sequences one booking attempt through the store collaborators."""

    def __init__(
        self,
        *,
        catalog: ItemCatalog,
        ledger: StockLedger,
        bookings: BookingStore,
        order_numbers,
        currency: str = "INR",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._bookings = bookings
        self._order_numbers = order_numbers
        self._currency = currency
        self._clock = clock

    def begin(
        self,
        *,
        customer_name: str,
        date: str,
        time_slot: Optional[str],
        quantities: Dict[str, int],
        payment_method: str = "cash_on_delivery",
    ) -> BookingAttempt:
        """Check preconditions and stock; return an attempt awaiting payment."""
        name = (customer_name or "").strip()
        if not name:
            raise BookingPreconditionError("Please enter your name")
        if not time_slot:
            raise BookingPreconditionError("Please select a time slot")
        try:
            parse_iso_date(date)
        except ValueError as exc:
            raise BookingPreconditionError(str(exc)) from exc
        if payment_method not in PAYMENT_METHODS:
            raise BookingPreconditionError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")

        lines = self._selected_lines(quantities or {})
        if not lines:
            raise BookingPreconditionError("Please select at least one item")

        attempt = BookingAttempt(
            customer_name=name,
            date=date,
            time_slot=time_slot,
            payment_method=payment_method,
            lines=lines,
            total_cost=sum((line.subtotal for line in lines), Decimal("0")).quantize(Decimal("0.01")),
            state=BookingState.VALIDATING,
        )
        check = self._ledger.validate([(line.item_id, line.quantity, line.name) for line in lines])
        if not check.valid:
            attempt.state = BookingState.ERROR
            log_event("info", "booking.validation_failed", customer=name, details=check.details)
            raise StockValidationError(check)

        attempt.state = BookingState.AWAITING_PAYMENT
        log_event("info", "booking.awaiting_payment", customer=name, total=float(attempt.total_cost))
        return attempt

    def complete(self, attempt: BookingAttempt, outcome: PaymentOutcome) -> BookingConfirmation:
        """Persist the booking once payment reached a terminal outcome."""
        if attempt.state != BookingState.AWAITING_PAYMENT:
            raise BookingError("No booking is awaiting payment")
        if outcome.status == "cancelled":
            attempt.state = BookingState.IDLE
            log_event("info", "booking.payment_cancelled", customer=attempt.customer_name)
            raise PaymentCancelledError("Payment was cancelled")
        if not outcome.is_terminal_success:
            attempt.state = BookingState.ERROR
            log_event("warning", "booking.payment_failed", customer=attempt.customer_name, status=outcome.status)
            raise PaymentFailedError(outcome.message or "Payment failed. Please try again or choose a different method.")

        attempt.state = BookingState.PERSISTING
        now = self._clock()
        order_number = self._order_numbers.next(now)
        attempt.order_number = order_number
        record = {
            "order_number": order_number,
            "customer_name": attempt.customer_name,
            "date": attempt.date,
            "time_slot": attempt.time_slot,
            "items": [line.snapshot() for line in attempt.lines],
            "total_cost": attempt.total_cost,
            "order_status": OrderStatus.PENDING,
            "payment_method": outcome.method,
            "payment_status": outcome.status,
            "payment_id": outcome.payment_id,
            "payment_amount": outcome.amount if outcome.amount is not None else float(attempt.total_cost),
            "payment_currency": self._currency,
            "payment_completed_at": now if outcome.status == "completed" else None,
        }
        try:
            saved = self._bookings.insert(record)
        except (SQLAlchemyError, ValueError) as exc:
            message, allow_demo = _describe_persistence_error(exc)
            attempt.state = BookingState.ERROR
            attempt.allow_demo_fallback = allow_demo
            log_event("error", "booking.persist_failed", order_number=order_number, error=str(exc))
            raise BookingPersistenceError(message, attempt, allow_demo) from exc

        attempt.state = BookingState.STOCK_ADJUSTING
        stock = self._ledger.decrement([(line.item_id, line.quantity) for line in attempt.lines])
        if not stock.success:
            # the booking is durable; stock is left as-is and only reported
            log_event("error", "booking.stock_update_failed", order_number=order_number, error=stock.error)

        attempt.state = BookingState.COMPLETE
        log_event("info", "booking.completed", order_number=order_number, booking_id=saved.get("id"))
        return BookingConfirmation(
            order_number=saved.get("order_number") or order_number,
            customer_name=attempt.customer_name,
            date=attempt.date,
            time_slot=attempt.time_slot,
            total_cost=attempt.total_cost,
            payment_method=outcome.method,
            payment_status=outcome.status,
            payment_id=outcome.payment_id,
            booking_id=saved.get("id"),
            stock_message=stock.message,
        )

    def complete_demo(self, attempt: BookingAttempt, outcome: PaymentOutcome) -> BookingConfirmation:
        """Confirmation without a durable record, offered after a failed write."""
        if attempt.state != BookingState.ERROR or not attempt.allow_demo_fallback:
            raise BookingError("Demo mode confirmation is not available for this booking")
        order_number = attempt.order_number or self._order_numbers.next(self._clock())
        attempt.state = BookingState.COMPLETE
        log_event("warning", "booking.demo_confirmation", order_number=order_number)
        return BookingConfirmation(
            order_number=order_number,
            customer_name=attempt.customer_name,
            date=attempt.date,
            time_slot=attempt.time_slot,
            total_cost=attempt.total_cost,
            payment_method=outcome.method,
            payment_status=outcome.status,
            payment_id=outcome.payment_id,
            demo=True,
        )

    def _selected_lines(self, quantities: Dict[str, int]) -> List[BookingLine]:
        items = {str(i["id"]): i for i in self._catalog.list_items()}
        lines = []
        for item_id, raw_qty in quantities.items():
            try:
                qty = int(raw_qty or 0)
            except (TypeError, ValueError) as exc:
                raise BookingPreconditionError(f"Invalid quantity for item {item_id}") from exc
            if qty < 0:
                raise BookingPreconditionError(f"Invalid quantity for item {item_id}")
            if qty == 0:
                continue
            item = items.get(str(item_id))
            if item is None:
                # unknown ids still go through validation, which reports them
                lines.append(BookingLine(item_id=str(item_id), name=str(item_id), unit_price=Decimal("0"), quantity=qty))
                continue
            lines.append(
                BookingLine(
                    item_id=str(item_id),
                    name=item["name"],
                    unit_price=Decimal(str(item["price"])),
                    quantity=qty,
                )
            )
        return lines
