"""
Holiday calendar data for the payroll engine.

The engine reads calendar flags from a plain mapping keyed by local date
("YYYY-MM-DD"). The mapping normally comes from the organisation calendar
(payroll.data_access.load_holiday_map); israeli_holidays() computes the
statutory rest days from the Hebrew calendar for callers without one.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from convertdate import hebrew

from payroll.constants import SATURDAY
from payroll.models import HolidayInfo, NO_HOLIDAY
from utils.formatting import to_gematria

logger = logging.getLogger(__name__)

DATE_KEY_FORMAT = "%Y-%m-%d"

# (hebrew month, day, name) of statutory rest days in Israel
# Months follow convertdate numbering (1 = Nisan ... 7 = Tishri)
NISAN = 1
SIVAN = 3
TISHRI = 7

REST_DAY_HOLIDAYS: List[Tuple[int, int, str]] = [
    (TISHRI, 1, "ראש השנה א'"),
    (TISHRI, 2, "ראש השנה ב'"),
    (TISHRI, 10, "יום כיפור"),
    (TISHRI, 15, "סוכות"),
    (TISHRI, 22, "שמיני עצרת"),
    (NISAN, 15, "פסח"),
    (NISAN, 21, "שביעי של פסח"),
    (SIVAN, 6, "שבועות"),
]

HEBREW_MONTHS = {
    1: "ניסן", 2: "אייר", 3: "סיוון", 4: "תמוז", 5: "אב", 6: "אלול",
    7: "תשרי", 8: "חשוון", 9: "כסלו", 10: "טבת", 11: "שבט", 12: "אדר",
    13: "אדר ב'"
}


def date_key(day: date) -> str:
    return day.strftime(DATE_KEY_FORMAT)


def _coerce(value) -> HolidayInfo:
    if isinstance(value, HolidayInfo):
        return value
    if isinstance(value, Mapping):
        return HolidayInfo(
            is_holiday=bool(value.get("is_holiday")),
            is_rest_day=bool(value.get("is_rest_day")),
            is_short_day=bool(value.get("is_short_day")),
            event_name=value.get("event_name"),
        )
    raise TypeError(f"Unsupported holiday entry: {value!r}")


def holiday_info_for(holidays: Optional[Mapping], day: date) -> HolidayInfo:
    """Calendar flags for a local date; days missing from the map are ordinary."""
    if not holidays:
        return NO_HOLIDAY
    value = holidays.get(date_key(day))
    if value is None:
        value = holidays.get(day)
    if value is None:
        return NO_HOLIDAY
    return _coerce(value)


def _holiday_dates(hebrew_year: int) -> Iterator[Tuple[date, str]]:
    for month, day, name in REST_DAY_HOLIDAYS:
        y, m, d = hebrew.to_gregorian(hebrew_year, month, day)
        yield date(y, m, d), name


def _days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def israeli_holidays(start: date, end: date, include_saturdays: bool = True) -> Dict[str, HolidayInfo]:
    """
    Statutory rest days, their eves (short days) and Saturdays in [start, end].

    Returns:
        {"YYYY-MM-DD": HolidayInfo} for every flagged date in range
    """
    result: Dict[str, HolidayInfo] = {}

    holidays: Dict[date, str] = {}
    for g_year in range(start.year - 1, end.year + 1):
        # Tishri holidays of hebrew year g_year + 3761 fall in autumn of g_year,
        # Nisan/Sivan holidays of the same hebrew year in spring of g_year + 1.
        for holiday_day, name in _holiday_dates(g_year + 3761):
            holidays[holiday_day] = name

    for holiday_day, name in holidays.items():
        if start <= holiday_day <= end:
            result[date_key(holiday_day)] = HolidayInfo(
                is_holiday=True, is_rest_day=True, event_name=name
            )

    for holiday_day, name in holidays.items():
        eve = holiday_day - timedelta(days=1)
        if eve in holidays or not start <= eve <= end:
            continue
        if include_saturdays and eve.weekday() == SATURDAY:
            continue
        result[date_key(eve)] = HolidayInfo(
            is_holiday=True, is_short_day=True, event_name=f"ערב {name}"
        )

    if include_saturdays:
        for day in _days(start, end):
            key = date_key(day)
            if day.weekday() == SATURDAY and key not in result:
                result[key] = HolidayInfo(is_rest_day=True, event_name="שבת")

    logger.debug(f"Built holiday calendar {start} - {end}: {len(result)} flagged days")
    return result


def hebrew_date_label(day: date) -> str:
    """Hebrew date for display, e.g. 'ט"ו בניסן תשפ"ו'."""
    h_year, h_month, h_day = hebrew.from_gregorian(day.year, day.month, day.day)
    month_name = HEBREW_MONTHS.get(h_month, str(h_month))
    if h_month == 12 and hebrew.leap(h_year):
        month_name = "אדר א'"
    return f"{to_gematria(h_day)} ב{month_name} {to_gematria(h_year)}"
