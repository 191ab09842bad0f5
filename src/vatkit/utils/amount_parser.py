"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Optional

from vatkit.domain.money import Money

CURRENCY_SYMBOLS = {"€": "EUR", "£": "GBP", "$": "USD"}

_CODE_PATTERN = re.compile(r"^([A-Za-z]{3})\s+|\s+([A-Za-z]{3})$")


def _split_currency(amount_str: str) -> tuple[str, Optional[str]]:
    """Strip a currency code or symbol from either end of the string."""
    currency = None
    match = _CODE_PATTERN.search(amount_str)
    if match:
        currency = (match.group(1) or match.group(2)).upper()
        amount_str = _CODE_PATTERN.sub("", amount_str, count=1)

    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in amount_str:
            if currency is not None and currency != code:
                raise ValueError(f"Conflicting currencies '{currency}' and '{symbol}'")
            currency = code
            amount_str = amount_str.replace(symbol, "")
    return amount_str.strip(), currency


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "€123.45"
    - "123.45 EUR"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str, _ = _split_currency(amount_str.strip())

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_money(amount_str: str, default_currency: str) -> Money:
    """Parse an amount string into Money.

    A currency code or symbol in the string wins over ``default_currency``.

    Raises:
        ValueError: If the amount cannot be parsed (domain errors are
            ValueErrors too, e.g. for more than two decimals)
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")
    _, currency = _split_currency(amount_str.strip())
    return Money.from_decimal(parse_amount(amount_str), currency or default_currency)
