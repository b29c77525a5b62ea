"""Tests for configuration loading."""
import pytest

from common.config import load_env, parse_hours, validate_currency


def test_overrides_select_backend_and_strategy():
    cfg = load_env({"STORE_BACKEND": "demo", "ORDER_NUMBER_STRATEGY": "random", "CURRENCY": "inr"})
    assert cfg.demo_mode
    assert cfg.order_number_strategy == "random"
    assert cfg.currency == "INR"


def test_invalid_values_are_rejected():
    with pytest.raises(ValueError):
        load_env({"STORE_BACKEND": "mongo"})
    with pytest.raises(ValueError):
        load_env({"OPENING_HOUR": "18", "CLOSING_HOUR": "9"})
    with pytest.raises(ValueError):
        validate_currency("RUPEE")


def test_parse_hours():
    assert parse_hours("12, 13", (13,)) == (12, 13)
    assert parse_hours("", (13,)) == (13,)
    with pytest.raises(ValueError):
        parse_hours("25", ())
