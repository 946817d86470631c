"""
Unit tests for day classification, overtime tiers and weekly overtime.
"""

import unittest
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from payroll.models import DayType, HolidayInfo, Shift, WorkRule
from payroll.overtime import (
    OVERTIME_TIER1,
    OVERTIME_TIER2,
    REGULAR_TIER,
    calculate_tier_pay,
    classify_day,
    format_percent,
    split_tiers,
    tier_label,
    tier_multipliers,
    week_start,
    weekly_overtime,
)
from payroll.wage_calculator import calculate_shift_pay

TZ = ZoneInfo("Asia/Jerusalem")

RULE = WorkRule(
    standard_daily_minutes=480,
    short_day_standard_minutes=420,
    overtime_tier1_minutes=120,
    overtime_tier1_multiplier=1.25,
    overtime_tier2_multiplier=1.5,
    holiday_multiplier=1.5,
)

MONDAY = date(2025, 10, 20)
FRIDAY = date(2025, 10, 24)
SATURDAY = date(2025, 10, 25)


class TestClassifyDay(unittest.TestCase):

    def test_plain_weekday(self):
        self.assertEqual(classify_day(None, MONDAY), DayType.WEEKDAY)

    def test_saturday_is_rest_day(self):
        self.assertEqual(classify_day(None, SATURDAY), DayType.REST_DAY)

    def test_holiday_rest_day(self):
        info = HolidayInfo(is_holiday=True, is_rest_day=True)
        self.assertEqual(classify_day(info, MONDAY), DayType.REST_DAY)

    def test_short_day(self):
        info = HolidayInfo(is_holiday=True, is_short_day=True)
        self.assertEqual(classify_day(info, MONDAY), DayType.SHORT_DAY)

    def test_rest_day_wins_over_short_day(self):
        info = HolidayInfo(is_rest_day=True, is_short_day=True)
        self.assertEqual(classify_day(info, MONDAY), DayType.REST_DAY)

    def test_night(self):
        self.assertEqual(classify_day(None, MONDAY, is_night=True), DayType.NIGHT)
        short = HolidayInfo(is_short_day=True)
        self.assertEqual(classify_day(short, MONDAY, is_night=True), DayType.SHORT_DAY)

    def test_friday_before_shabbat_entry(self):
        self.assertEqual(classify_day(None, FRIDAY, start_minute=8 * 60), DayType.FRIDAY)
        self.assertEqual(classify_day(None, FRIDAY, start_minute=17 * 60 + 59), DayType.FRIDAY)
        self.assertEqual(classify_day(None, FRIDAY), DayType.FRIDAY)

    def test_friday_from_shabbat_entry_is_rest_day(self):
        self.assertEqual(classify_day(None, FRIDAY, start_minute=18 * 60), DayType.REST_DAY)
        self.assertEqual(classify_day(None, FRIDAY, is_night=True, start_minute=22 * 60), DayType.REST_DAY)

    def test_short_day_on_friday(self):
        eve = HolidayInfo(is_holiday=True, is_short_day=True)
        self.assertEqual(classify_day(eve, FRIDAY, start_minute=8 * 60), DayType.SHORT_DAY)
        self.assertEqual(classify_day(eve, FRIDAY, start_minute=19 * 60), DayType.REST_DAY)


class TestSplitTiers(unittest.TestCase):
    """Boundary minutes stay in the cheaper tier."""

    def test_exact_standard_is_regular(self):
        breakdown = split_tiers(480, DayType.WEEKDAY, RULE)
        self.assertEqual(breakdown.regular_minutes, 480)
        self.assertEqual(breakdown.overtime_tier1_minutes, 0)
        self.assertEqual(breakdown.overtime_tier2_minutes, 0)

    def test_thirty_minutes_over(self):
        breakdown = split_tiers(510, DayType.WEEKDAY, RULE)
        self.assertEqual(breakdown.regular_minutes, 480)
        self.assertEqual(breakdown.overtime_tier1_minutes, 30)

    def test_tier1_boundary(self):
        breakdown = split_tiers(600, DayType.WEEKDAY, RULE)
        self.assertEqual((breakdown.overtime_tier1_minutes, breakdown.overtime_tier2_minutes), (120, 0))
        breakdown = split_tiers(601, DayType.WEEKDAY, RULE)
        self.assertEqual((breakdown.overtime_tier1_minutes, breakdown.overtime_tier2_minutes), (120, 1))

    def test_short_day_threshold(self):
        breakdown = split_tiers(480, DayType.SHORT_DAY, RULE)
        self.assertEqual(breakdown.regular_minutes, 420)
        self.assertEqual(breakdown.overtime_tier1_minutes, 60)

    def test_zero_and_invalid(self):
        self.assertEqual(split_tiers(0, DayType.WEEKDAY, RULE).total_minutes, 0)
        with self.assertRaises(ValueError):
            split_tiers(-1, DayType.WEEKDAY, RULE)
        with self.assertRaises(ValueError):
            split_tiers(1.5, DayType.WEEKDAY, RULE)


class TestMultipliers(unittest.TestCase):

    def test_weekday(self):
        m = tier_multipliers(DayType.WEEKDAY, RULE)
        self.assertEqual(m[REGULAR_TIER], Decimal("1"))
        self.assertEqual(m[OVERTIME_TIER1], Decimal("1.25"))
        self.assertEqual(m[OVERTIME_TIER2], Decimal("1.5"))

    def test_rest_day_compounds(self):
        m = tier_multipliers(DayType.REST_DAY, RULE)
        self.assertEqual(m[REGULAR_TIER], Decimal("1.5"))
        self.assertEqual(m[OVERTIME_TIER1], Decimal("1.875"))
        self.assertEqual(m[OVERTIME_TIER2], Decimal("2.25"))

    def test_decimal_multipliers(self):
        rule = WorkRule(480, 420, 120, Decimal("1.25"), Decimal("1.5"), Decimal("1.5"))
        m = tier_multipliers(DayType.REST_DAY, rule)
        self.assertEqual(m[OVERTIME_TIER1], Decimal("1.875"))
        self.assertEqual(tier_label(OVERTIME_TIER1, DayType.WEEKDAY, rule), "Overtime 125%")

    def test_format_percent(self):
        self.assertEqual(format_percent(1.25), "125%")
        self.assertEqual(format_percent(1.5), "150%")
        self.assertEqual(format_percent(Decimal("1.875")), "187.5%")

    def test_labels(self):
        self.assertEqual(tier_label(REGULAR_TIER, DayType.WEEKDAY, RULE), "Regular")
        self.assertEqual(tier_label(OVERTIME_TIER1, DayType.WEEKDAY, RULE), "Overtime 125%")
        self.assertEqual(tier_label(OVERTIME_TIER2, DayType.NIGHT, RULE), "Overtime 150%")
        self.assertEqual(tier_label(REGULAR_TIER, DayType.REST_DAY, RULE), "Holiday Regular")
        self.assertEqual(tier_label(OVERTIME_TIER1, DayType.REST_DAY, RULE), "Holiday Overtime 125%")


class TestTierPay(unittest.TestCase):

    def test_values(self):
        self.assertEqual(calculate_tier_pay(480, 4000, 1), 32000)
        self.assertEqual(calculate_tier_pay(30, 4000, 1.25), 2500)
        self.assertEqual(calculate_tier_pay(0, 4000, 1.5), 0)

    def test_rounding_half_up(self):
        self.assertEqual(calculate_tier_pay(30, 1, 1), 1)    # 0.5 agora
        self.assertEqual(calculate_tier_pay(1, 1001, 1), 17)  # 16.68 agorot


class TestWeeklyOvertime(unittest.TestCase):

    def _shift_pay(self, day, minutes, rule, holiday_info=None):
        start = datetime(day.year, day.month, day.day, 8, 0, tzinfo=TZ)
        end = datetime.fromtimestamp(start.timestamp() + minutes * 60, TZ)
        return calculate_shift_pay(Shift(start, end), 4000, rule, holiday_info=holiday_info, tz=TZ)

    def test_week_start_is_sunday(self):
        self.assertEqual(week_start(date(2025, 10, 22)), date(2025, 10, 19))
        self.assertEqual(week_start(date(2025, 10, 19)), date(2025, 10, 19))
        self.assertEqual(week_start(SATURDAY), date(2025, 10, 19))

    def test_disabled_without_weekly_standard(self):
        pays = [self._shift_pay(date(2025, 10, 19 + i), 480, RULE) for i in range(6)]
        self.assertEqual(weekly_overtime(pays, RULE), [])

    def test_premium_beyond_weekly_standard(self):
        rule = WorkRule(
            standard_daily_minutes=480,
            short_day_standard_minutes=420,
            overtime_tier1_minutes=120,
            overtime_tier1_multiplier=1.25,
            overtime_tier2_multiplier=1.5,
            holiday_multiplier=1.5,
            weekly_standard_minutes=2400,
        )
        # Sunday to Friday, 8 regular hours each = 48h against a 40h week
        pays = [self._shift_pay(date(2025, 10, 19 + i), 480, rule) for i in range(6)]
        weeks = weekly_overtime(pays, rule)

        self.assertEqual(len(weeks), 1)
        week = weeks[0]
        self.assertEqual(week.week_start, date(2025, 10, 19))
        self.assertEqual(week.regular_minutes, 2880)
        self.assertEqual(week.overtime_tier1_minutes, 120)
        self.assertEqual(week.overtime_tier2_minutes, 360)
        # 2h x 40 x 0.25 + 6h x 40 x 0.5 = 20 + 120 shekels
        self.assertEqual(week.pay, 14000)

    def test_rest_days_not_counted(self):
        rule = WorkRule(
            standard_daily_minutes=480,
            short_day_standard_minutes=420,
            overtime_tier1_minutes=120,
            overtime_tier1_multiplier=1.25,
            overtime_tier2_multiplier=1.5,
            holiday_multiplier=1.5,
            weekly_standard_minutes=2400,
        )
        pays = [self._shift_pay(date(2025, 10, 19 + i), 480, rule) for i in range(5)]
        pays.append(self._shift_pay(SATURDAY, 480, rule))
        self.assertEqual(weekly_overtime(pays, rule), [])


if __name__ == '__main__':
    unittest.main()
