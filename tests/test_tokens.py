"""Tests for the token registry and substitution."""

from datetime import date, datetime

import pytest

from receiptdsl.printing.tokens import (
    ARRAY_PLACEHOLDER,
    AVAILABLE_TOKENS,
    TokenType,
    create_mock_context,
    extract_tokens,
    format_token_value,
    get_token,
    is_known_token,
    replace_tokens,
)


REGISTRY_KEYS = {
    "store_name", "store_address", "store_phone",
    "order_number", "transaction_id", "timestamp", "date", "time",
    "cashier_name", "cashier_id",
    "subtotal", "tax", "total", "amount_paid", "change",
    "order_items",
    "payment_method", "card_last_four",
}


def test_registry_keys():
    keys = [token.key for token in AVAILABLE_TOKENS]
    assert len(keys) == 18
    assert set(keys) == REGISTRY_KEYS


def test_get_token():
    assert get_token("total").type == TokenType.CURRENCY
    assert get_token("order_items").type == TokenType.ARRAY
    assert get_token("nope") is None
    assert is_known_token("store_name")
    assert not is_known_token("store")


def test_currency_formatting():
    assert format_token_value("total", 27.24) == "$27.24"
    assert format_token_value("total", 5) == "$5.00"
    assert format_token_value("change", 2.76, currency_symbol="€") == "€2.76"


def test_non_currency_numbers_are_plain():
    assert format_token_value("order_number", 42) == "42"
    assert format_token_value("unknown_key", 1.5) == "1.5"


def test_integral_floats_and_bools():
    assert format_token_value("order_number", 2.0) == "2"
    assert format_token_value("total", 2.0) == "$2.00"
    assert format_token_value("unknown_key", True) == "true"
    assert format_token_value("cashier_id", False) == "false"
    assert replace_tokens("Paid: {paid} x{count}", {"paid": True, "count": 3.0}) == "Paid: true x3"


def test_array_and_date_formatting():
    assert format_token_value("order_items", [{"name": "x"}]) == ARRAY_PLACEHOLDER
    assert format_token_value("date", date(2024, 1, 15)) == "01/15/2024"
    assert format_token_value("timestamp", datetime(2024, 1, 15, 14, 32), date_format="%Y-%m-%d %H:%M") == "2024-01-15 14:32"


def test_replace_tokens_round_trip():
    assert replace_tokens("Hi {store_name}", {"store_name": "Acme"}) == "Hi Acme"
    assert replace_tokens("Hi {store_name}", {}) == "Hi {store_name}"


def test_replace_tokens_leaves_unknown_and_none():
    context = {"store_name": "Acme", "cashier_name": None}
    text = "{store_name} {mystery} {cashier_name}"
    assert replace_tokens(text, context) == "Acme {mystery} {cashier_name}"


def test_replace_tokens_all_occurrences():
    assert replace_tokens("{tax}/{tax}", {"tax": 2.25}) == "$2.25/$2.25"


def test_extract_tokens_keeps_order_and_duplicates():
    assert extract_tokens("{a} and {b} then {a}") == ["a", "b", "a"]
    assert extract_tokens("") == []
    assert extract_tokens("no tokens") == []


def test_mock_context_is_a_copy():
    context = create_mock_context()
    assert set(context) == REGISTRY_KEYS
    assert context["total"] == pytest.approx(27.24)

    context["order_items"][0]["name"] = "Changed"
    assert create_mock_context()["order_items"][0]["name"] == "Crunchy Taco"
