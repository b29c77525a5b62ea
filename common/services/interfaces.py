"""Capability interfaces shared by the SQL stores and the in-memory demo store.

Each concrete backend implements the same contracts, so the booking flow and
the admin routes never branch on which backend is configured.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


# (item_id, requested_quantity, display_name)
ValidationLine = Tuple[str, int, str]
# (item_id, quantity)
DecrementLine = Tuple[str, int]


@dataclass
class StockCheck:
    valid: bool
    message: str
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        data = {"valid": self.valid, "message": self.message}
        if self.details:
            data["details"] = list(self.details)
        return data


@dataclass
class StockUpdate:
    success: bool
    message: str
    applied: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "message": self.message,
            "applied": list(self.applied),
            "error": self.error,
        }


def check_lines(lines: Sequence[ValidationLine], levels: Dict[str, int]) -> StockCheck:
    """Compare requested quantities against a fetched id -> stock mapping."""
    problems: List[str] = []
    for item_id, requested, name in lines:
        key = str(item_id)
        if key not in levels:
            problems.append(f"{name}: Item not found")
            continue
        current = levels[key]
        if int(requested) > current:
            problems.append(f"{name}: Requested {int(requested)}, only {current} available")
    if problems:
        return StockCheck(valid=False, message="Insufficient stock for some items", details=problems)
    return StockCheck(valid=True, message="Stock validation passed")


class StockLedger(ABC):
    """Per-item integer stock counts."""

    @abstractmethod
    def get_levels(self, item_ids: Optional[Iterable[str]] = None) -> Dict[str, int]:
        ...

    @abstractmethod
    def validate(self, lines: Sequence[ValidationLine]) -> StockCheck:
        ...

    @abstractmethod
    def decrement(self, lines: Sequence[DecrementLine]) -> StockUpdate:
        ...

    @abstractmethod
    def set_stock(self, item_id: str, quantity: int) -> int:
        ...

    @abstractmethod
    def adjust_stock(self, item_id: str, delta: int) -> int:
        ...


class ItemCatalog(ABC):
    @abstractmethod
    def list_items(self) -> List[Dict]:
        ...

    @abstractmethod
    def get_item(self, item_id: str) -> Dict:
        ...

    @abstractmethod
    def create_item(self, *, name: str, price, stock_quantity: int = 0, item_id: Optional[str] = None) -> Dict:
        ...

    @abstractmethod
    def update_item(self, item_id: str, *, name: Optional[str] = None, price=None) -> Dict:
        ...

    @abstractmethod
    def delete_item(self, item_id: str) -> bool:
        ...


class BookingStore(ABC):
    @abstractmethod
    def insert(self, record: Dict) -> Dict:
        ...

    @abstractmethod
    def get(self, booking_id: str) -> Dict:
        ...

    @abstractmethod
    def find_by_order_number(self, order_number: str) -> Dict:
        ...

    @abstractmethod
    def list_bookings(
        self,
        *,
        date: Optional[str] = None,
        order_status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict]:
        ...

    @abstractmethod
    def update_status(self, booking_id: str, order_status: str) -> Dict:
        ...

    @abstractmethod
    def update_payment(self, booking_id: str, *, payment_status: str, payment_id: Optional[str] = None) -> Dict:
        ...

    @abstractmethod
    def delete(self, booking_id: str) -> bool:
        ...


class RushStatusStore(ABC):
    @abstractmethod
    def lookup(self, date: str, time_slot: str) -> Optional[str]:
        ...

    @abstractmethod
    def statuses_for(self, date: str) -> Dict[str, str]:
        ...

    @abstractmethod
    def upsert(self, date: str, time_slot: str, status: str) -> None:
        ...


class SequenceCounter(ABC):
    @abstractmethod
    def increment(self, name: str) -> int:
        """Increment the named counter (created at zero when absent) and return the new value."""
