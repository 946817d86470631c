"""
Unit tests for time parsing, durations and night-hours detection.
"""

import unittest
from datetime import date, datetime
from zoneinfo import ZoneInfo
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from payroll.models import ExclusionReason
from payroll.time_utils import (
    decimal_hours_to_minutes,
    duration_minutes,
    format_decimal_hours,
    format_minutes,
    minutes_to_time_str,
    night_minutes,
    parse_time,
    qualifies_as_night_shift,
    shift_duration_minutes,
    span_minutes,
    to_local_date,
    wall_clock_shift,
)
from utils.error_handler import CalculationError, ValidationError

TZ = ZoneInfo("Asia/Jerusalem")


class TestParseTime(unittest.TestCase):

    def test_single_digit_parts(self):
        result = parse_time("9:5")
        self.assertTrue(result.valid)
        self.assertEqual((result.hours, result.minutes), (9, 5))
        self.assertEqual(result.minute_of_day, 545)

    def test_out_of_range(self):
        self.assertFalse(parse_time("25:00").valid)
        self.assertFalse(parse_time("12:60").valid)

    def test_malformed(self):
        for text in ("", "0900", "9", "ab:cd", "09:00:00", None):
            self.assertFalse(parse_time(text).valid, text)

    def test_error_messages(self):
        self.assertEqual(parse_time("24:00").error, "שעות חייבות להיות בין 0 ל-23")
        self.assertEqual(parse_time("10:75").error, "דקות חייבות להיות בין 0 ל-59")


class TestDurations(unittest.TestCase):

    def test_same_day(self):
        result = duration_minutes("09:00", "17:00")
        self.assertTrue(result.valid)
        self.assertEqual(result.minutes, 480)

    def test_overnight_wraps(self):
        self.assertEqual(duration_minutes("22:00", "06:00").minutes, 480)

    def test_identical_times_rejected(self):
        result = duration_minutes("09:00", "09:00")
        self.assertFalse(result.valid)
        self.assertEqual(result.minutes, 0)

    def test_over_maximum_rejected(self):
        self.assertFalse(duration_minutes("00:00", "23:59").valid)
        self.assertTrue(duration_minutes("06:00", "22:00").valid)  # exactly 16h

    def test_invalid_input_propagates_error(self):
        result = duration_minutes("25:00", "06:00")
        self.assertFalse(result.valid)
        self.assertIsNotNone(result.error)

    def test_span_minutes(self):
        self.assertEqual(span_minutes("22:00", "06:00"), (1320, 1800))
        with self.assertRaises(ValidationError):
            span_minutes("xx", "06:00")


class TestFormatting(unittest.TestCase):

    def test_format_minutes(self):
        self.assertEqual(format_minutes(510), "8:30")
        self.assertEqual(format_minutes(10830), "180:30")
        self.assertEqual(format_minutes(0), "0:00")

    def test_decimal_hours(self):
        self.assertEqual(format_decimal_hours(510), "8.50")
        self.assertEqual(decimal_hours_to_minutes(8.6), 516)

    def test_minutes_to_time_str(self):
        self.assertEqual(minutes_to_time_str(1800), "06:00")


class TestTimestamps(unittest.TestCase):

    def test_naive_is_utc(self):
        # 22:30 UTC is already the next day in Israel
        self.assertEqual(to_local_date(datetime(2025, 10, 20, 22, 30), TZ), date(2025, 10, 21))

    def test_shift_duration(self):
        start = datetime(2025, 10, 20, 8, 0, tzinfo=TZ)
        end = datetime(2025, 10, 20, 16, 30, 59, tzinfo=TZ)
        self.assertEqual(shift_duration_minutes(start, end), 510)
        self.assertEqual(shift_duration_minutes(start, start), 0)

    def test_end_before_start(self):
        start = datetime(2025, 10, 20, 8, 0, tzinfo=TZ)
        end = datetime(2025, 10, 20, 7, 0, tzinfo=TZ)
        with self.assertRaises(CalculationError) as ctx:
            shift_duration_minutes(start, end)
        self.assertEqual(ctx.exception.reason, ExclusionReason.INVALID_DURATION)

    def test_wall_clock_overnight(self):
        start, end = wall_clock_shift(date(2025, 10, 20), "22:00", "06:00", TZ)
        self.assertEqual(start, datetime(2025, 10, 20, 22, 0, tzinfo=TZ))
        self.assertEqual(end, datetime(2025, 10, 21, 6, 0, tzinfo=TZ))

    def test_wall_clock_invalid(self):
        with self.assertRaises(ValidationError):
            wall_clock_shift(date(2025, 10, 20), "09:00", "09:00", TZ)


class TestNightHours(unittest.TestCase):

    def test_full_night(self):
        self.assertEqual(night_minutes(1320, 1800), 480)

    def test_day_shift(self):
        self.assertEqual(night_minutes(540, 1020), 0)

    def test_early_morning(self):
        self.assertEqual(night_minutes(240, 600), 120)  # 04:00-10:00

    def test_qualifies(self):
        start = datetime(2025, 10, 20, 22, 0, tzinfo=TZ)
        self.assertTrue(qualifies_as_night_shift(start, 480, TZ))
        self.assertFalse(qualifies_as_night_shift(start, 60, TZ))
        self.assertFalse(qualifies_as_night_shift(start, 0, TZ))


if __name__ == '__main__':
    unittest.main()
