"""
Input validation helpers for employee and shift forms.
"""
from __future__ import annotations

import logging
import re

from payroll.constants import MAX_SHIFT_MINUTES
from payroll.models import DurationResult
from payroll.time_utils import duration_minutes, parse_time

logger = logging.getLogger(__name__)

NATIONAL_ID_LENGTH = 9

_NON_DIGITS = re.compile(r"\D")


def validate_national_id(text: str) -> bool:
    """
    Check an Israeli national ID (ת.ז.).

    Separators are stripped; exactly nine digits must remain. Digits at odd
    positions are doubled (minus 9 when above 9) and the total must divide by 10.
    """
    if not isinstance(text, str):
        return False

    digits = _NON_DIGITS.sub("", text)
    if len(digits) != NATIONAL_ID_LENGTH:
        return False

    total = 0
    for index, char in enumerate(digits):
        value = int(char) * (2 if index % 2 else 1)
        if value > 9:
            value -= 9
        total += value
    return total % 10 == 0


def validate_time_range(start_text: str, end_text: str, max_minutes: int = MAX_SHIFT_MINUTES) -> DurationResult:
    """Validate a start/end pair from a shift form and return its duration."""
    start = parse_time(start_text)
    if not start.valid:
        return DurationResult(valid=False, error=f"שעת התחלה: {start.error}")
    end = parse_time(end_text)
    if not end.valid:
        return DurationResult(valid=False, error=f"שעת סיום: {end.error}")
    return duration_minutes(start_text, end_text, max_minutes)
