"""Rush status per (date, time slot).

Stored entries are sparse overrides; anything without an entry falls back to
``default_rush_status``, which the storefront and the admin grid both call.
"""

from __future__ import annotations

import re
from datetime import date as date_type, datetime
from typing import Callable, Dict, Iterable, List, Optional

from ..models.rush_status import RushStatus
from ..utils.validators import parse_iso_date
from .interfaces import RushStatusStore
from .logging import log_event


RUSH_LEVELS = ("high", "medium", "low")

_SLOT_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def parse_slot_time(slot: str):
    """Return ``(hour24, minute)`` for a label such as ``"2:30 PM"``."""
    m = _SLOT_PATTERN.match(slot or "")
    if not m:
        raise ValueError(f"Invalid time slot: {slot!r}")
    hour, minute, suffix = int(m.group(1)), int(m.group(2)), m.group(3).upper()
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid time slot: {slot!r}")
    if suffix == "PM" and hour != 12:
        hour += 12
    elif suffix == "AM" and hour == 12:
        hour = 0
    return hour, minute


def parse_slot_hour(slot: str) -> int:
    return parse_slot_time(slot)[0]


def default_rush_status(slot: str) -> str:
    hour = parse_slot_hour(slot)
    if 9 <= hour <= 11:
        return "high"
    if hour == 12 or 14 <= hour <= 15:
        return "medium"
    return "low"


def format_slot(hour: int, minute: int) -> str:
    suffix = "PM" if hour >= 12 else "AM"
    display = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display}:{minute:02d} {suffix}"


def generate_time_slots(opening_hour: int = 9, closing_hour: int = 18, lunch_hours: Iterable[int] = (13,)) -> List[str]:
    skip = set(lunch_hours or ())
    return [
        format_slot(hour, minute)
        for hour in range(opening_hour, closing_hour)
        if hour not in skip
        for minute in range(0, 60, 10)
    ]


def is_slot_in_past(day: date_type, slot: str, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    if day != now.date():
        return day < now.date()
    hour, minute = parse_slot_time(slot)
    return datetime(day.year, day.month, day.day, hour, minute) < now


def check_rush_level(status: Optional[str]) -> str:
    v = (status or "").strip().lower()
    if v not in RUSH_LEVELS:
        raise ValueError(f"status must be one of {', '.join(RUSH_LEVELS)}")
    return v


class RushStatusResolver:
    def __init__(
        self,
        store: RushStatusStore,
        *,
        opening_hour: int = 9,
        closing_hour: int = 18,
        lunch_hours: Iterable[int] = (13,),
    ) -> None:
        self._store = store
        self._slots = generate_time_slots(opening_hour, closing_hour, lunch_hours)

    @property
    def time_slots(self) -> List[str]:
        return list(self._slots)

    def resolve(self, date: str, time_slot: str) -> str:
        stored = self._store.lookup(date, time_slot)
        if stored:
            return stored
        return default_rush_status(time_slot)

    def slots_for(self, date: str, now: Optional[datetime] = None) -> List[Dict]:
        day = parse_iso_date(date)
        overrides = self._store.statuses_for(date)
        return [
            {
                "time_slot": slot,
                "rush": overrides.get(slot) or default_rush_status(slot),
                "overridden": slot in overrides,
                "disabled": is_slot_in_past(day, slot, now),
            }
            for slot in self._slots
        ]

    def set_status(self, date: str, time_slot: str, status: str) -> str:
        parse_iso_date(date)
        parse_slot_time(time_slot)
        level = check_rush_level(status)
        self._store.upsert(date, time_slot, level)
        log_event("info", "rush_status.set", date=date, time_slot=time_slot, status=level)
        return level


class SqlRushStatusStore(RushStatusStore):
    def __init__(self, session_factory: Callable) -> None:
        self._session_factory = session_factory

    def lookup(self, date: str, time_slot: str) -> Optional[str]:
        with self._session_factory() as session:
            row = (
                session.query(RushStatus.status)
                .filter(RushStatus.date == date, RushStatus.time_slot == time_slot)
                .first()
            )
            return row[0] if row else None

    def statuses_for(self, date: str) -> Dict[str, str]:
        with self._session_factory() as session:
            rows = session.query(RushStatus.time_slot, RushStatus.status).filter(RushStatus.date == date).all()
            return {slot: status for slot, status in rows}

    def upsert(self, date: str, time_slot: str, status: str) -> None:
        with self._session_factory() as session:
            row = (
                session.query(RushStatus)
                .filter(RushStatus.date == date, RushStatus.time_slot == time_slot)
                .first()
            )
            if row:
                row.status = status
            else:
                session.add(RushStatus(date=date, time_slot=time_slot, status=status))
            session.flush()
