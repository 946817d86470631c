"""
Currency conversion between shekels and agorot.

Amounts are stored and summed as integer agorot. Conversion from shekels goes
through the shortest decimal representation of the float, so values such as
0.1 + 0.2 convert to exactly 30 agorot.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from payroll.constants import CURRENCY_SYMBOL, MAX_MONETARY_AMOUNT, MIN_MONETARY_AMOUNT
from payroll.models import AmountValidation

Number = Union[int, float, Decimal]

AGOROT_PER_SHEKEL = 100
_ONE = Decimal("1")


def _to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, bool):
        raise TypeError("amount must be a number, not bool")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, int):
        value = Decimal(amount)
    elif isinstance(amount, float):
        # repr() is the shortest string that round-trips, e.g. 0.30000000000000004
        value = Decimal(repr(amount))
    else:
        raise TypeError(f"amount must be a number, got {type(amount).__name__}")

    if not value.is_finite():
        raise ValueError(f"amount must be finite, got {amount!r}")
    return value


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def to_minor_units(amount_major: Number) -> int:
    """Convert shekels to agorot (e.g. 12.345 -> 1235)."""
    return round_half_up(_to_decimal(amount_major) * AGOROT_PER_SHEKEL)


def to_major_units(amount_minor: int) -> float:
    """Convert agorot to shekels."""
    return amount_minor / AGOROT_PER_SHEKEL


def to_minor_units_safe(amount_major: Optional[Number]) -> Optional[int]:
    if amount_major is None:
        return None
    return to_minor_units(amount_major)


def to_major_units_safe(amount_minor: Optional[int]) -> Optional[float]:
    if amount_minor is None:
        return None
    return to_major_units(amount_minor)


def format_shekel(amount_major: Number) -> str:
    """
    Format shekels for display: "1,000 ₪" for whole amounts, "1.50 ₪" otherwise.
    """
    if amount_major % 1 == 0:
        text = f"{amount_major:,.0f}"
    else:
        text = f"{amount_major:,.2f}"
    return f"{text} {CURRENCY_SYMBOL}"


def format_agorot(amount_minor: int) -> str:
    """Format an agorot amount as a shekel string."""
    return format_shekel(to_major_units(amount_minor))


def format_agorot_plain(amount_minor: int) -> str:
    """Agorot as shekels with exactly two decimals and no symbol (for exports)."""
    return f"{to_major_units(amount_minor):.2f}"


def _fmt_bound(value: Number) -> str:
    return f"{int(value):,}" if value % 1 == 0 else f"{value:,.2f}"


def validate_monetary_amount(
    amount: Number,
    max_amount: Number = MAX_MONETARY_AMOUNT,
    min_amount: Number = MIN_MONETARY_AMOUNT,
) -> AmountValidation:
    """
    Validate a shekel amount entered by a user.

    Returns:
        AmountValidation(valid=True, minor_units=...) or
        AmountValidation(valid=False, error=...) - never raises.
    """
    try:
        value = _to_decimal(amount)
    except (TypeError, ValueError):
        return AmountValidation(valid=False, error="סכום לא תקין")
    if value < _to_decimal(min_amount):
        return AmountValidation(valid=False, error=f'הסכום חייב להיות לפחות {_fmt_bound(min_amount)} ש"ח')
    if value > _to_decimal(max_amount):
        return AmountValidation(valid=False, error=f'הסכום לא יכול לעלות על {_fmt_bound(max_amount)} ש"ח')
    return AmountValidation(valid=True, minor_units=to_minor_units(value))


def validate_minor_amount(
    amount_minor: int,
    max_amount: Number = MAX_MONETARY_AMOUNT,
    min_amount: Number = MIN_MONETARY_AMOUNT,
) -> AmountValidation:
    """Same bounds as validate_monetary_amount, for values already in agorot."""
    if isinstance(amount_minor, bool) or not isinstance(amount_minor, int):
        return AmountValidation(valid=False, error="סכום לא תקין")
    result = validate_monetary_amount(Decimal(amount_minor) / AGOROT_PER_SHEKEL, max_amount, min_amount)
    if not result.valid:
        return result
    return AmountValidation(valid=True, minor_units=amount_minor)
