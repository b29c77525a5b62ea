"""Tests for the booking flow from stock check to confirmation."""
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from common.services.booking_service import (
    BookingAttempt,
    BookingError,
    BookingOrchestrator,
    BookingPersistenceError,
    BookingPreconditionError,
    BookingState,
    PaymentCancelledError,
    PaymentFailedError,
    PaymentOutcome,
    StockValidationError,
)
from common.services.catalog_service import SqlItemCatalog
from common.services.demo_store import DemoDataStore
from common.services.order_numbers import CounterOrderNumbers, SqlSequenceCounter, is_valid_order_number
from common.services.order_service import SqlBookingStore
from common.services.stock_ledger import SqlStockLedger

FIXED_NOW = datetime(2025, 5, 14, 9, 0)
ITEMS = [
    {"id": "A", "name": "A", "price": 10.00, "stock_quantity": 5},
    {"id": "B", "name": "B", "price": 4.50, "stock_quantity": 0},
]


def _orchestrator(catalog, ledger, bookings, counter):
    return BookingOrchestrator(
        catalog=catalog,
        ledger=ledger,
        bookings=bookings,
        order_numbers=CounterOrderNumbers(counter),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def store():
    return DemoDataStore(items=ITEMS)


@pytest.fixture
def orchestrator(store):
    return _orchestrator(store, store, store, store)


def _begin(orchestrator, quantities, payment_method="cash_on_delivery"):
    return orchestrator.begin(
        customer_name="Asha",
        date="2025-05-14",
        time_slot="10:00 AM",
        quantities=quantities,
        payment_method=payment_method,
    )


def cod(amount=None):
    return PaymentOutcome(method="cash_on_delivery", status="not_required", amount=amount)


def test_insufficient_stock_blocks_booking(orchestrator, store):
    with pytest.raises(StockValidationError) as info:
        _begin(orchestrator, {"A": 2, "B": 1})
    assert info.value.details == ["B: Requested 1, only 0 available"]
    assert store.list_bookings() == []
    assert store.get_levels(["A"]) == {"A": 5}


def test_cash_on_delivery_booking_persists_and_decrements(orchestrator, store):
    attempt = _begin(orchestrator, {"A": 1})
    assert attempt.state == BookingState.AWAITING_PAYMENT
    assert attempt.total_cost == Decimal("10.00")

    confirmation = orchestrator.complete(attempt, cod())

    assert attempt.state == BookingState.COMPLETE
    assert confirmation.order_number == "05_2025_001"
    booking = store.find_by_order_number(confirmation.order_number)
    assert booking["payment_status"] == "not_required"
    assert booking["order_status"] == "pending"
    assert booking["total_cost"] == 10.00
    assert booking["items"] == [{"id": "A", "name": "A", "price": 10.0, "quantity": 1}]
    assert store.get_levels(["A"]) == {"A": 4}
    assert confirmation.to_dict()["payment_summary"] == "Cash on Delivery (Pending)"


def test_total_is_a_snapshot_of_prices_at_booking_time(orchestrator, store):
    attempt = _begin(orchestrator, {"A": 2})
    store.update_item("A", price="99.00")
    confirmation = orchestrator.complete(attempt, cod())
    assert store.find_by_order_number(confirmation.order_number)["total_cost"] == 20.00


@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"customer_name": "  "}, "Please enter your name"),
        ({"time_slot": None}, "Please select a time slot"),
        ({"quantities": {"A": 0}}, "Please select at least one item"),
        ({"quantities": {}}, "Please select at least one item"),
    ],
)
def test_preconditions(orchestrator, kwargs, message):
    args = {
        "customer_name": "Asha",
        "date": "2025-05-14",
        "time_slot": "10:00 AM",
        "quantities": {"A": 1},
    }
    args.update(kwargs)
    with pytest.raises(BookingPreconditionError, match=message):
        orchestrator.begin(**args)


def test_unknown_item_is_reported_by_validation(orchestrator):
    with pytest.raises(StockValidationError) as info:
        _begin(orchestrator, {"Z": 1})
    assert info.value.details == ["Z: Item not found"]


def test_cancelled_payment_returns_to_idle_without_writes(orchestrator, store):
    attempt = _begin(orchestrator, {"A": 1}, payment_method="online")
    with pytest.raises(PaymentCancelledError):
        orchestrator.complete(attempt, PaymentOutcome(method="online", status="cancelled"))
    assert attempt.state == BookingState.IDLE
    assert store.list_bookings() == []
    assert store.get_levels(["A"]) == {"A": 5}


def test_failed_payment_is_an_error(orchestrator, store):
    attempt = _begin(orchestrator, {"A": 1}, payment_method="online")
    with pytest.raises(PaymentFailedError):
        orchestrator.complete(attempt, PaymentOutcome(method="online", status="failed"))
    assert attempt.state == BookingState.ERROR
    assert store.list_bookings() == []


def test_online_payment_records_transaction(orchestrator, store):
    attempt = _begin(orchestrator, {"A": 3}, payment_method="online")
    outcome = PaymentOutcome(method="online", status="completed", payment_id="pay_123", amount=30.0)
    confirmation = orchestrator.complete(attempt, outcome)
    booking = store.find_by_order_number(confirmation.order_number)
    assert booking["payment_id"] == "pay_123"
    assert booking["payment_status"] == "completed"
    assert booking["payment_completed_at"] is not None
    assert confirmation.payment_status_text == "Successful"


def test_complete_requires_pending_attempt(orchestrator):
    attempt = _begin(orchestrator, {"A": 1})
    orchestrator.complete(attempt, cod())
    with pytest.raises(BookingError):
        orchestrator.complete(attempt, cod())


def test_stock_failure_after_commit_keeps_the_booking(orchestrator, store):
    attempt = _begin(orchestrator, {"A": 1})
    store.delete_item("A")
    confirmation = orchestrator.complete(attempt, cod())
    assert attempt.state == BookingState.COMPLETE
    assert store.find_by_order_number(confirmation.order_number)
    assert confirmation.stock_message == "Failed to update stock"


class _FailingBookings(DemoDataStore):
    def __init__(self, exc):
        super().__init__(items=ITEMS)
        self._exc = exc

    def insert(self, record):
        raise self._exc


def test_schema_error_offers_demo_fallback():
    store = _FailingBookings(ProgrammingError("INSERT", {}, Exception("column does not exist")))
    orchestrator = _orchestrator(store, store, store, store)
    attempt = _begin(orchestrator, {"A": 1})
    with pytest.raises(BookingPersistenceError) as info:
        orchestrator.complete(attempt, cod())
    assert info.value.allow_demo_fallback
    assert attempt.state == BookingState.ERROR
    # no durable record and no stock change
    assert store.get_levels(["A"]) == {"A": 5}

    confirmation = orchestrator.complete_demo(attempt, cod())
    assert confirmation.demo
    assert confirmation.order_number == attempt.order_number
    assert is_valid_order_number(confirmation.order_number)


def test_network_error_does_not_offer_demo_fallback():
    store = _FailingBookings(OperationalError("INSERT", {}, Exception("network down")))
    orchestrator = _orchestrator(store, store, store, store)
    attempt = _begin(orchestrator, {"A": 1})
    with pytest.raises(BookingPersistenceError) as info:
        orchestrator.complete(attempt, cod())
    assert not info.value.allow_demo_fallback
    with pytest.raises(BookingError):
        orchestrator.complete_demo(attempt, cod())


def test_attempt_survives_serialisation(orchestrator):
    attempt = _begin(orchestrator, {"A": 2})
    restored = BookingAttempt.from_dict(attempt.to_dict())
    assert restored.state == BookingState.AWAITING_PAYMENT
    assert restored.total_cost == Decimal("20.00")
    assert restored.lines[0].quantity == 2
    confirmation = orchestrator.complete(restored, cod())
    assert confirmation.total_cost == Decimal("20.00")


def test_sql_backed_flow(session_factory):
    orchestrator = _orchestrator(
        SqlItemCatalog(session_factory),
        SqlStockLedger(session_factory),
        SqlBookingStore(session_factory),
        SqlSequenceCounter(session_factory),
    )
    attempt = _begin(orchestrator, {"3": 2, "8": 1})
    assert attempt.total_cost == Decimal("27.00")
    confirmation = orchestrator.complete(attempt, cod())

    bookings = SqlBookingStore(session_factory)
    saved = bookings.find_by_order_number(confirmation.order_number)
    assert saved["order_status"] == "pending"
    assert saved["total_cost"] == 27.0
    assert SqlStockLedger(session_factory).get_levels(["3", "8"]) == {"3": 1, "8": 74}

    with pytest.raises(StockValidationError) as info:
        _begin(orchestrator, {"3": 2})
    assert info.value.details == ["Highlighters: Requested 2, only 1 available"]
