"""Token registry and substitution.

Tokens are ``{key}`` placeholders embedded in receipt text. The compiler
only records which keys a layout uses; values are substituted by the
interpreter, once per print run, from a token context.
"""

import copy
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


TOKEN_REGISTRY_VERSION = "1.0"

TOKEN_PATTERN = re.compile(r"\{([^}]+)\}")

ARRAY_PLACEHOLDER = "[Array Data]"


class TokenType(str, Enum):
    """Semantic type of a token value, drives formatting."""

    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    ARRAY = "array"


@dataclass(frozen=True)
class TokenDefinition:
    """A named substitution value known to the designer."""

    key: str
    description: str
    mock_value: Any
    type: TokenType = TokenType.STRING


AVAILABLE_TOKENS: Tuple[TokenDefinition, ...] = (
    # Store
    TokenDefinition("store_name", "Store name", "Taco Bell #1234"),
    TokenDefinition("store_address", "Store address", "123 Main St, City, ST 12345"),
    TokenDefinition("store_phone", "Store phone number", "(555) 123-4567"),
    # Transaction
    TokenDefinition("order_number", "Order number", "000123"),
    TokenDefinition("transaction_id", "Transaction ID", "TXN-2024-001234"),
    TokenDefinition("timestamp", "Transaction timestamp", "2024-01-15 14:32:10", TokenType.DATE),
    TokenDefinition("date", "Transaction date", "01/15/2024", TokenType.DATE),
    TokenDefinition("time", "Transaction time", "2:32 PM", TokenType.DATE),
    # Staff
    TokenDefinition("cashier_name", "Cashier name", "John D."),
    TokenDefinition("cashier_id", "Cashier ID", "EMP001"),
    # Financial
    TokenDefinition("subtotal", "Subtotal amount", 24.99, TokenType.CURRENCY),
    TokenDefinition("tax", "Tax amount", 2.25, TokenType.CURRENCY),
    TokenDefinition("total", "Total amount", 27.24, TokenType.CURRENCY),
    TokenDefinition("amount_paid", "Amount paid", 30.00, TokenType.CURRENCY),
    TokenDefinition("change", "Change due", 2.76, TokenType.CURRENCY),
    # Order items
    TokenDefinition(
        "order_items",
        "List of order items",
        (
            {"name": "Crunchy Taco", "quantity": 2, "price": 3.99},
            {"name": "Baja Blast", "quantity": 1, "price": 2.49},
            {"name": "Nacho Fries", "quantity": 1, "price": 1.99},
        ),
        TokenType.ARRAY,
    ),
    # Payment
    TokenDefinition("payment_method", "Payment method", "Credit Card"),
    TokenDefinition("card_last_four", "Last 4 digits of card", "1234"),
)

_TOKENS_BY_KEY: Dict[str, TokenDefinition] = {token.key: token for token in AVAILABLE_TOKENS}


def get_token(key: str) -> Optional[TokenDefinition]:
    """Look up a registry entry by key."""
    return _TOKENS_BY_KEY.get(key)


def is_known_token(key: str) -> bool:
    return key in _TOKENS_BY_KEY


def extract_tokens(text: str) -> List[str]:
    """Return token keys in order of appearance (duplicates kept)."""
    if not text:
        return []
    return TOKEN_PATTERN.findall(text)


def create_mock_context() -> Dict[str, Any]:
    """Build a token context holding every registry mock value."""
    context: Dict[str, Any] = {}
    for token in AVAILABLE_TOKENS:
        value = token.mock_value
        if isinstance(value, tuple):
            value = [dict(item) for item in value]
        context[token.key] = copy.deepcopy(value)
    return context


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def format_token_value(
    key: str,
    value: Any,
    currency_symbol: str = "$",
    date_format: str = "%m/%d/%Y",
) -> str:
    """Format a context value according to the token's registry type."""
    token = get_token(key)

    if isinstance(value, bool):
        return "true" if value else "false"

    if _is_number(value):
        if token is not None and token.type == TokenType.CURRENCY:
            return f"{currency_symbol}{value:.2f}"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    if isinstance(value, (datetime, date)):
        return value.strftime(date_format)

    if isinstance(value, (list, tuple)):
        # Lists are expanded upstream by dynamic-list flattening
        return ARRAY_PLACEHOLDER

    return str(value)


def replace_tokens(
    text: str,
    context: Mapping[str, Any],
    currency_symbol: str = "$",
    date_format: str = "%m/%d/%Y",
) -> str:
    """Substitute every ``{key}`` found in ``context``.

    Keys missing from the context are left as-is, braces included, so the
    rendered receipt shows which values were not supplied.
    """
    if not text:
        return text

    def _substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        value = context.get(key)
        if value is None:
            return match.group(0)
        return format_token_value(key, value, currency_symbol, date_format)

    return TOKEN_PATTERN.sub(_substitute, text)
