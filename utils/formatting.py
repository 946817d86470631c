"""
Display helpers shared by reports and scripts.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

_GEMATRIA_HUNDREDS = [(400, "ת"), (300, "ש"), (200, "ר"), (100, "ק")]
_GEMATRIA_TENS = {10: "י", 20: "כ", 30: "ל", 40: "מ", 50: "נ", 60: "ס", 70: "ע", 80: "פ", 90: "צ"}
_GEMATRIA_UNITS = {1: "א", 2: "ב", 3: "ג", 4: "ד", 5: "ה", 6: "ו", 7: "ז", 8: "ח", 9: "ט"}


def to_gematria(num: int) -> str:
    """
    Hebrew numeral for day numbers and years (thousands are dropped).

    1 -> "א'", 15 -> 'ט"ו', 5786 -> 'תשפ"ו'
    """
    if num <= 0:
        return str(num)

    rest = num % 1000
    if rest == 0:
        return str(num)

    letters = ""
    for value, letter in _GEMATRIA_HUNDREDS:
        while rest >= value:
            letters += letter
            rest -= value

    # 15 and 16 are written 9+6 / 9+7 rather than spelling a divine name
    if rest in (15, 16):
        letters += "ט" + _GEMATRIA_UNITS[rest - 9]
    else:
        tens = rest - rest % 10
        if tens:
            letters += _GEMATRIA_TENS[tens]
        if rest % 10:
            letters += _GEMATRIA_UNITS[rest % 10]

    if len(letters) == 1:
        return letters + "'"
    return letters[:-1] + '"' + letters[-1]


def human_date(ts: datetime | date | None, tz: Optional[ZoneInfo] = None) -> str:
    """Format a datetime or date to dd/mm/yyyy (datetimes converted to tz when given)."""
    if ts is None:
        return "-"
    if isinstance(ts, datetime) and tz is not None:
        ts = ts.astimezone(tz) if ts.tzinfo else ts.replace(tzinfo=tz)
    return ts.strftime("%d/%m/%Y")
