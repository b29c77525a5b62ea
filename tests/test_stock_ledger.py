"""Tests for stock validation, decrement and admin stock edits."""
import pytest

from common.services.demo_store import DemoDataStore
from common.services.stock_ledger import SqlStockLedger, stock_status


@pytest.fixture(params=["sql", "demo"])
def ledger(request, session_factory):
    if request.param == "sql":
        return SqlStockLedger(session_factory)
    return DemoDataStore()


def test_get_levels_for_selected_ids(ledger):
    assert ledger.get_levels(["1", "3"]) == {"1": 50, "3": 3}
    assert len(ledger.get_levels()) == 8


def test_validate_passes_when_stock_suffices(ledger):
    result = ledger.validate([("1", 50, "Notebook"), ("3", 3, "Highlighters")])
    assert result.valid
    assert result.details == []


def test_validate_reports_one_detail_per_offending_line(ledger):
    result = ledger.validate(
        [
            ("1", 2, "Notebook"),
            ("3", 4, "Highlighters"),
            ("5", 1, "Stapler"),
            ("99", 1, "Ghost"),
        ]
    )
    assert not result.valid
    assert result.message == "Insufficient stock for some items"
    assert result.details == [
        "Highlighters: Requested 4, only 3 available",
        "Stapler: Requested 1, only 0 available",
        "Ghost: Item not found",
    ]


def test_decrement_reduces_stock(ledger):
    result = ledger.decrement([("1", 5), ("2", 1)])
    assert result.success
    assert result.applied == ["1", "2"]
    assert ledger.get_levels(["1", "2"]) == {"1": 45, "2": 29}


def test_decrement_clamps_at_zero(ledger):
    ledger.decrement([("3", 10)])
    assert ledger.get_levels(["3"]) == {"3": 0}


def test_decrement_keeps_earlier_lines_when_an_item_is_missing(ledger):
    result = ledger.decrement([("1", 1), ("missing", 1), ("2", 1)])
    assert not result.success
    assert result.applied == ["1"]
    assert "missing" in result.error
    assert ledger.get_levels(["1", "2"]) == {"1": 49, "2": 30}


def test_decrement_rejects_negative_quantity(ledger):
    with pytest.raises(ValueError):
        ledger.decrement([("1", -1)])


def test_set_and_adjust_stock_clamp_at_zero(ledger):
    assert ledger.set_stock("4", 12) == 12
    assert ledger.adjust_stock("4", 3) == 15
    assert ledger.adjust_stock("4", -40) == 0
    assert ledger.set_stock("4", -5) == 0
    with pytest.raises(LookupError):
        ledger.adjust_stock("missing", 1)


def test_unreachable_ledger_validates_permissively(unreachable_session_factory):
    result = SqlStockLedger(unreachable_session_factory).validate([("1", 1000, "Notebook")])
    assert result.valid
    assert "Demo Mode" in result.message


def test_unreachable_ledger_decrement_is_a_reported_no_op(unreachable_session_factory):
    result = SqlStockLedger(unreachable_session_factory).decrement([("1", 1)])
    assert result.success
    assert "Demo Mode" in result.message
    assert result.applied == []


@pytest.mark.parametrize(
    "quantity,status",
    [(0, "out_of_stock"), (1, "low_stock"), (5, "low_stock"), (6, "in_stock")],
)
def test_stock_status(quantity, status):
    assert stock_status(quantity)["status"] == status
