"""Order number generation and helpers.

Order numbers look like ``05_2025_001``: two-digit month, four-digit year and
a three-digit sequence. Two interchangeable strategies produce the sequence
part: a persistent counter, or a random number when no counter is available.
"""

from __future__ import annotations

import random
import re
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models.counter import Counter
from .interfaces import SequenceCounter
from .logging import log_event


ORDER_NUMBER_PATTERN = re.compile(r"^\d{2}_\d{4}_\d{3}$")


class OrderStatus:
    PENDING = "pending"
    TAKEN = "taken"
    NOT_TAKEN = "not_taken"

    ALL = (PENDING, TAKEN, NOT_TAKEN)


_STATUS_TEXT = {
    OrderStatus.TAKEN: "Order Taken",
    OrderStatus.NOT_TAKEN: "Order Not Taken",
    OrderStatus.PENDING: "Pending Pickup",
}


def build_order_number(now: datetime, sequence: int) -> str:
    return f"{now.month:02d}_{now.year:04d}_{sequence % 1000:03d}"


def format_order_number(order_number: Optional[str]) -> str:
    # display format equals storage format
    if not order_number:
        return ""
    return order_number


def is_valid_order_number(order_number: Optional[str]) -> bool:
    if not order_number:
        return False
    return ORDER_NUMBER_PATTERN.match(order_number) is not None


def normalize_order_number(value: Optional[str]) -> str:
    if not value:
        return ""
    return re.sub(r"\s", "", value).upper()


def order_status_text(status: Optional[str]) -> str:
    return _STATUS_TEXT.get(status or OrderStatus.PENDING, _STATUS_TEXT[OrderStatus.PENDING])


def search_orders(orders: Iterable[Dict], term: Optional[str]) -> List[Dict]:
    """Filter orders by order number (ignoring ``_`` and spaces), customer name or id."""
    orders = list(orders)
    if not term:
        return orders
    compact = re.sub(r"[_\s]", "", term.lower())
    lowered = term.lower()
    matches = []
    for order in orders:
        number = re.sub(r"[_\s]", "", (order.get("order_number") or "").lower())
        customer = (order.get("customer_name") or "").lower()
        order_id = str(order.get("id") or "")
        if compact in number or lowered in customer or compact in order_id:
            matches.append(order)
    return matches


class RandomOrderNumbers:
    """Sequence part drawn uniformly from [100, 999]."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def next(self, now: Optional[datetime] = None) -> str:
        return build_order_number(now or datetime.now(), self._rng.randint(100, 999))


class CounterOrderNumbers:
    """Sequence part taken from a global persistent counter.

    Falls back to ``fallback`` when the counter store cannot be reached.
    """

    def __init__(self, counter: SequenceCounter, fallback: Optional[RandomOrderNumbers] = None) -> None:
        self._counter = counter
        self._fallback = fallback or RandomOrderNumbers()

    def next(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        try:
            sequence = self._counter.increment(Counter.ORDER_NUMBER)
        except (SQLAlchemyError, OSError) as exc:
            log_event("warning", "order_number.counter_unavailable", error=str(exc))
            return self._fallback.next(now)
        return build_order_number(now, sequence)


class SqlSequenceCounter(SequenceCounter):
    """Upsert-and-increment on the ``counters`` table."""

    def __init__(self, session_factory: Callable) -> None:
        self._session_factory = session_factory

    def increment(self, name: str) -> int:
        with self._session_factory() as session:
            updated = (
                session.query(Counter)
                .filter(Counter.name == name)
                .update({Counter.sequence_value: Counter.sequence_value + 1}, synchronize_session=False)
            )
            if not updated:
                session.add(Counter(name=name, sequence_value=1))
                session.flush()
                return 1
            row = session.query(Counter.sequence_value).filter(Counter.name == name).one()
            return int(row[0])
