"""
Time utilities for the payroll engine.
Contains "HH:MM" parsing, duration arithmetic (including shifts that cross
midnight), local-date conversion and night-hours detection.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Tuple
from zoneinfo import ZoneInfo

from payroll.config import config
from payroll.constants import (
    MAX_SHIFT_MINUTES,
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
    NIGHT_HOURS_END,
    NIGHT_HOURS_START,
    NIGHT_HOURS_THRESHOLD,
)
from payroll.currency import round_half_up
from payroll.models import DurationResult, ExclusionReason, TimeParseResult
from utils.error_handler import CalculationError, ValidationError

logger = logging.getLogger(__name__)

LOCAL_TZ = config.LOCAL_TZ
UTC = ZoneInfo("UTC")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{1,2})$")

TIME_FORMAT_ERROR = "פורמט שעה לא תקין"
HOURS_RANGE_ERROR = "שעות חייבות להיות בין 0 ל-23"
MINUTES_RANGE_ERROR = "דקות חייבות להיות בין 0 ל-59"


# =============================================================================
# "HH:MM" parsing and formatting
# =============================================================================

def parse_time(text: str) -> TimeParseResult:
    """
    Parse an "H:MM" / "HH:MM" wall-clock string.

    One or two digits are accepted on each side of the colon ("9:5" is 09:05).
    Returns a TimeParseResult; never raises.
    """
    if not isinstance(text, str):
        return TimeParseResult(valid=False, error=TIME_FORMAT_ERROR)

    match = _TIME_RE.match(text.strip())
    if not match:
        return TimeParseResult(valid=False, error=TIME_FORMAT_ERROR)

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not 0 <= hours <= 23:
        return TimeParseResult(valid=False, error=HOURS_RANGE_ERROR)
    if not 0 <= minutes <= 59:
        return TimeParseResult(valid=False, error=MINUTES_RANGE_ERROR)

    return TimeParseResult(valid=True, hours=hours, minutes=minutes)


def duration_minutes(
    start_text: str,
    end_text: str,
    max_minutes: int = MAX_SHIFT_MINUTES
) -> DurationResult:
    """
    Minutes worked between two "HH:MM" wall-clock times.

    When end <= start the shift is taken to cross midnight:
    duration = (1440 - start) + end. The result must fall in (0, max_minutes];
    identical start and end times are rejected rather than credited as 24 hours.
    """
    start = parse_time(start_text)
    if not start.valid:
        return DurationResult(valid=False, error=start.error)
    end = parse_time(end_text)
    if not end.valid:
        return DurationResult(valid=False, error=end.error)

    start_min = start.minute_of_day
    end_min = end.minute_of_day

    minutes = end_min - start_min
    if minutes <= 0:
        minutes = (MINUTES_PER_DAY - start_min) + end_min

    if not 0 < minutes <= max_minutes:
        return DurationResult(
            valid=False,
            minutes=0,
            error=f"משך משמרת חייב להיות עד {format_minutes(max_minutes)} שעות ולא אפס",
        )

    return DurationResult(valid=True, minutes=minutes)


def span_minutes(start_str: str, end_str: str) -> Tuple[int, int]:
    """Return start/end minutes-from-midnight, handling overnight end <= start."""
    start = parse_time(start_str)
    end = parse_time(end_str)
    if not start.valid or not end.valid:
        raise ValidationError(
            f"Invalid time span {start_str!r}-{end_str!r}",
            user_message=start.error or end.error,
        )
    start_min = start.minute_of_day
    end_min = end.minute_of_day
    if end_min <= start_min:
        end_min += MINUTES_PER_DAY
    return start_min, end_min


def format_minutes(total_minutes: int) -> str:
    """Format minutes as "H:MM" (e.g. 510 -> "8:30", 10830 -> "180:30")."""
    hours = total_minutes // MINUTES_PER_HOUR
    minutes = total_minutes % MINUTES_PER_HOUR
    return f"{hours}:{minutes:02d}"


def format_decimal_hours(total_minutes: int) -> str:
    """Format minutes as decimal hours with two places (510 -> "8.50")."""
    return f"{total_minutes / MINUTES_PER_HOUR:.2f}"


def decimal_hours_to_minutes(hours: float) -> int:
    """8.6 hours = 8 hours and 36 minutes = 516 minutes."""
    return round_half_up(Decimal(repr(float(hours))) * MINUTES_PER_HOUR)


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format (handles >24h wrapping)."""
    day_minutes = minutes % MINUTES_PER_DAY
    h = day_minutes // MINUTES_PER_HOUR
    m = day_minutes % MINUTES_PER_HOUR
    return f"{h:02d}:{m:02d}"


# =============================================================================
# Timestamps and local dates
# =============================================================================

def to_local_datetime(ts: int | float | datetime, tz: ZoneInfo = LOCAL_TZ) -> datetime:
    """Convert epoch seconds or datetime to an aware datetime in tz (naive = UTC)."""
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            return ts.replace(tzinfo=UTC).astimezone(tz)
        return ts.astimezone(tz)
    return datetime.fromtimestamp(ts, tz)


def to_local_date(ts: int | float | datetime | date, tz: ZoneInfo = LOCAL_TZ) -> date:
    """Convert epoch timestamp, datetime, or date object to a calendar date in tz."""
    if isinstance(ts, date) and not isinstance(ts, datetime):
        return ts
    return to_local_datetime(ts, tz).date()


def minute_of_day(ts: datetime, tz: ZoneInfo = LOCAL_TZ) -> int:
    local = to_local_datetime(ts, tz)
    return local.hour * MINUTES_PER_HOUR + local.minute


def shift_duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Whole minutes between clock-in and clock-out.

    Raises:
        CalculationError: if end_time precedes start_time
    """
    start = to_local_datetime(start_time, UTC)
    end = to_local_datetime(end_time, UTC)
    seconds = (end - start).total_seconds()
    if seconds < 0:
        raise CalculationError(
            f"Shift ends before it starts ({start_time} > {end_time})",
            reason=ExclusionReason.INVALID_DURATION,
            details={"start_time": str(start_time), "end_time": str(end_time)},
            user_message="שעת הסיום מוקדמת משעת ההתחלה",
        )
    return int(seconds // 60)


def wall_clock_shift(
    day: date,
    start_text: str,
    end_text: str,
    tz: ZoneInfo = LOCAL_TZ
) -> Tuple[datetime, datetime]:
    """
    Build clock-in/clock-out timestamps for a manually entered shift.

    An end time at or before the start time belongs to the next day.

    Raises:
        ValidationError: on malformed times or an implausible duration
    """
    result = duration_minutes(start_text, end_text)
    if not result.valid:
        raise ValidationError(
            f"Invalid shift times {start_text!r}-{end_text!r}",
            details={"start": start_text, "end": end_text},
            user_message=result.error,
        )

    start = parse_time(start_text)
    end = parse_time(end_text)
    end_day = day if end.minute_of_day > start.minute_of_day else day + timedelta(days=1)

    start_dt = datetime.combine(day, time(start.hours, start.minutes), tzinfo=tz)
    end_dt = datetime.combine(end_day, time(end.hours, end.minutes), tzinfo=tz)
    return start_dt, end_dt


# =============================================================================
# Night hours
# =============================================================================

def overlap_minutes(a_start: int, a_end: int, b_start: int, b_end: int) -> int:
    """Calculate overlapping minutes between two time ranges."""
    return max(0, min(a_end, b_end) - max(a_start, b_start))


def night_minutes(start_min: int, end_min: int) -> int:
    """
    Minutes of a segment that fall within night hours (22:00-06:00).

    Args:
        start_min: Start time in minutes from midnight
        end_min: End time in minutes from midnight (can be >1440 for overnight)
    """
    if end_min <= start_min:
        end_min += MINUTES_PER_DAY

    total = 0
    # Night k runs from 22:00 of day k-1 to 06:00 of day k
    for k in range(3):
        night_start = NIGHT_HOURS_START + (k - 1) * MINUTES_PER_DAY
        night_end = NIGHT_HOURS_END + k * MINUTES_PER_DAY
        total += overlap_minutes(start_min, end_min, night_start, night_end)
    return total


def qualifies_as_night_shift(
    start_time: datetime,
    worked_minutes: int,
    tz: ZoneInfo = LOCAL_TZ
) -> bool:
    """Check if a shift has 2+ hours inside 22:00-06:00."""
    if worked_minutes <= 0:
        return False
    start_min = minute_of_day(start_time, tz)
    return night_minutes(start_min, start_min + worked_minutes) >= NIGHT_HOURS_THRESHOLD
