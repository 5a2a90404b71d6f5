"""
Currency and Decimal Helpers

All balances and amounts in the ledger are Decimal values rounded to the
precision of the ledger currency. NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from enum import Enum
from typing import Union
import re

# Set global decimal context for financial precision
getcontext().prec = 28


class Currency(Enum):
    """ISO 4217 Currency Codes with precision info"""
    USD = ("USD", 2, "$")
    EUR = ("EUR", 2, "€")
    GBP = ("GBP", 2, "£")
    GHS = ("GHS", 2, "GH₵")
    JPY = ("JPY", 0, "¥")

    def __init__(self, code: str, precision: int, symbol: str):
        self.code = code
        self.precision = precision
        self.symbol = symbol

    @classmethod
    def from_code(cls, code: str) -> 'Currency':
        """Look up a currency by its ISO code"""
        for currency in cls:
            if currency.code == code.upper():
                return currency
        raise ValueError(f"Unsupported currency code: {code}")


AmountLike = Union[Decimal, int, str, float]

# Strings may carry thousands separators and a currency symbol, nothing else
_SEPARATORS = re.compile(r"[,\s_]")
_SYMBOLS = sorted({c.symbol for c in Currency}, key=len, reverse=True)
_PLAIN_NUMBER = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")


def to_decimal(value: AmountLike) -> Decimal:
    """
    Convert a primitive amount to Decimal

    Floats go through str() so 0.1 becomes Decimal('0.1') rather than
    the binary approximation.

    Raises:
        ValueError: If value cannot be converted to a finite Decimal
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        clean_value = _SEPARATORS.sub('', value.strip())
        for symbol in _SYMBOLS:
            clean_value = clean_value.replace(symbol, '')
        if not _PLAIN_NUMBER.fullmatch(clean_value):
            raise ValueError(f"Cannot convert '{value}' to Decimal")
        result = Decimal(clean_value)
    else:
        raise ValueError(f"Cannot convert {value!r} to Decimal")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def quantize(value: AmountLike, currency: Currency = Currency.USD) -> Decimal:
    """
    Round an amount to currency precision

    Args:
        value: Amount to round
        currency: Currency defining precision

    Returns:
        Properly rounded Decimal
    """
    try:
        return to_decimal(value).quantize(
            Decimal('0.1') ** currency.precision,
            rounding=ROUND_HALF_UP
        )
    except InvalidOperation:
        raise ValueError(f"Amount {value!r} is too large to represent")


def format_amount(value: Decimal, currency: Currency = Currency.USD) -> str:
    """Format for display, e.g. $1,200.00 or -$800.00"""
    amount = quantize(value, currency)
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency.symbol}{abs(amount):,.{currency.precision}f}"
