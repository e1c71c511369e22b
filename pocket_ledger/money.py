"""Decimal-safe money handling and seed validation."""

import re
from decimal import Decimal, InvalidOperation

from pocket_ledger.errors import InvalidState

# Currency symbols and grouping characters users type into amount cells
_NOISE = re.compile(r"[\s,₹$€£]")


def parse_amount(value) -> Decimal | None:
    """Parse a user-entered amount leniently.

    Args:
        value: The value to parse (can be Decimal, int, float, str, or None)

    Returns:
        A finite Decimal, or None if the value is empty or not a number
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = _NOISE.sub("", value)
        if not cleaned:
            return None
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            return None
    else:
        return None

    if not number.is_finite():
        return None
    return number


def to_money(value, what: str = "balance") -> Decimal:
    """Convert a seed or balance to Decimal, refusing anything non-finite.

    Raises:
        InvalidState: If the value is missing, non-numeric, NaN or infinite.
    """
    number = parse_amount(value)
    if number is None:
        raise InvalidState(f"{what} must be a finite number, got {value!r}")
    return number


def validate_opening_balance(value) -> Decimal:
    """Boundary check for a user-supplied opening balance (finite, not negative)."""
    number = to_money(value, "opening balance")
    if number < 0:
        raise InvalidState(f"opening balance must not be negative, got {number}")
    return number


def validate_declared_income(value) -> Decimal | None:
    """Boundary check for a declared monthly income (absent, or finite and positive)."""
    if value is None:
        return None
    number = to_money(value, "declared income")
    if number <= 0:
        raise InvalidState(f"declared income must be positive, got {number}")
    return number
