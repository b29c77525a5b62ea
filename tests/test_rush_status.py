"""Tests for time slots and rush status resolution."""
from datetime import date, datetime

import pytest

from common.services.demo_store import DemoDataStore
from common.services.rush_status import (
    RushStatusResolver,
    SqlRushStatusStore,
    default_rush_status,
    generate_time_slots,
    is_slot_in_past,
    parse_slot_hour,
)


@pytest.fixture(params=["sql", "demo"])
def resolver(request, session_factory):
    store = SqlRushStatusStore(session_factory) if request.param == "sql" else DemoDataStore()
    return RushStatusResolver(store)


@pytest.mark.parametrize(
    "slot,expected",
    [
        ("9:30 AM", "high"),
        ("11:50 AM", "high"),
        ("12:00 PM", "medium"),
        ("2:30 PM", "medium"),
        ("3:50 PM", "medium"),
        ("4:00 PM", "low"),
        ("5:00 PM", "low"),
        ("8:00 AM", "low"),
    ],
)
def test_default_rush_status(slot, expected):
    assert default_rush_status(slot) == expected


def test_default_rule_is_stable_for_the_same_slot():
    assert {default_rush_status("10:10 AM") for _ in range(5)} == {"high"}


def test_parse_slot_hour_handles_noon_and_midnight():
    assert parse_slot_hour("12:10 PM") == 12
    assert parse_slot_hour("12:10 AM") == 0
    assert parse_slot_hour("1:00 PM") == 13
    with pytest.raises(ValueError):
        parse_slot_hour("13:00 PM")


def test_generate_time_slots_skips_lunch_hour():
    slots = generate_time_slots(9, 18, (13,))
    assert len(slots) == 48
    assert slots[0] == "9:00 AM"
    assert slots[-1] == "5:50 PM"
    assert "12:50 PM" in slots
    assert "1:00 PM" not in slots


def test_stored_override_takes_precedence(resolver):
    assert resolver.resolve("2025-05-14", "9:30 AM") == "high"
    resolver.set_status("2025-05-14", "9:30 AM", "low")
    assert resolver.resolve("2025-05-14", "9:30 AM") == "low"
    # other dates keep the computed default
    assert resolver.resolve("2025-05-15", "9:30 AM") == "high"


def test_override_is_replaced_not_duplicated(resolver):
    resolver.set_status("2025-05-14", "5:00 PM", "high")
    resolver.set_status("2025-05-14", "5:00 PM", "medium")
    slots = {s["time_slot"]: s for s in resolver.slots_for("2025-05-14", now=datetime(2025, 5, 1))}
    assert slots["5:00 PM"]["rush"] == "medium"
    assert slots["5:00 PM"]["overridden"]
    assert not slots["9:00 AM"]["overridden"]


def test_set_status_validates_input(resolver):
    with pytest.raises(ValueError):
        resolver.set_status("2025-05-14", "9:30 AM", "extreme")
    with pytest.raises(ValueError):
        resolver.set_status("14/05/2025", "9:30 AM", "low")


def test_slots_for_today_disables_elapsed_slots(resolver):
    slots = resolver.slots_for("2025-05-14", now=datetime(2025, 5, 14, 10, 5))
    disabled = {s["time_slot"] for s in slots if s["disabled"]}
    assert "10:00 AM" in disabled
    assert "10:10 AM" not in disabled


def test_is_slot_in_past_for_other_days():
    now = datetime(2025, 5, 14, 12, 0)
    assert is_slot_in_past(date(2025, 5, 13), "5:00 PM", now)
    assert not is_slot_in_past(date(2025, 5, 15), "9:00 AM", now)
