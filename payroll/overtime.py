"""
Shift classification and overtime tiers.

Worked minutes are split against the organisation's work rule:
- regular minutes up to the daily standard (reduced on short days, for
  night shifts and, in a 6-day week, on Fridays),
- first-tier overtime up to overtime_tier1_minutes,
- second-tier overtime for everything beyond.
On a rest day (Shabbat from Friday 18:00, or a holiday) every tier is
additionally multiplied by holiday_multiplier, so overtime on a rest day
compounds both premiums.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from payroll.constants import FRIDAY, MINUTES_PER_HOUR, SATURDAY, SHABBAT_ENTRY_MINUTE
from payroll.currency import round_half_up
from payroll.models import (
    DayType,
    HolidayInfo,
    NO_HOLIDAY,
    ShiftPay,
    TierBreakdown,
    WeeklyOvertime,
    WorkRule,
)

logger = logging.getLogger(__name__)

REGULAR_TIER = "regular"
OVERTIME_TIER1 = "overtime_tier1"
OVERTIME_TIER2 = "overtime_tier2"
TIERS = (REGULAR_TIER, OVERTIME_TIER1, OVERTIME_TIER2)

_ONE = Decimal("1")


def as_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(repr(value)) if isinstance(value, float) else Decimal(value)


# =============================================================================
# Day classification
# =============================================================================

def is_shabbat_start(local_day: date, start_minute: Optional[int]) -> bool:
    """Saturday, or Friday from Shabbat entry (18:00) onwards."""
    if local_day.weekday() == SATURDAY:
        return True
    return (
        local_day.weekday() == FRIDAY
        and start_minute is not None
        and start_minute >= SHABBAT_ENTRY_MINUTE
    )


def classify_day(
    holiday_info: Optional[HolidayInfo],
    local_day: date,
    is_night: bool = False,
    start_minute: Optional[int] = None
) -> DayType:
    """
    Classify the day a shift starts on.

    start_minute is the local minute of day the shift starts at; without it a
    Friday shift is never treated as a Shabbat shift.

    Precedence: rest day (holiday rest day or Shabbat) > short day > Friday >
    night > weekday.
    """
    info = holiday_info or NO_HOLIDAY
    if info.is_rest_day or is_shabbat_start(local_day, start_minute):
        return DayType.REST_DAY
    if info.is_short_day:
        return DayType.SHORT_DAY
    if local_day.weekday() == FRIDAY:
        return DayType.FRIDAY
    if is_night:
        return DayType.NIGHT
    return DayType.WEEKDAY


def standard_minutes_for(day_type: DayType, rule: WorkRule) -> int:
    """Daily threshold of regular-rate minutes for the given day type."""
    if day_type is DayType.SHORT_DAY:
        return rule.short_day_standard_minutes
    if day_type is DayType.NIGHT and rule.night_standard_minutes is not None:
        return rule.night_standard_minutes
    if day_type is DayType.FRIDAY and rule.friday_standard_minutes is not None:
        return rule.friday_standard_minutes
    return rule.standard_daily_minutes


# =============================================================================
# Tier split
# =============================================================================

def split_tiers(total_minutes: int, day_type: DayType, rule: WorkRule) -> TierBreakdown:
    """
    Split worked minutes into regular / overtime tier 1 / overtime tier 2.

    A minute exactly on a boundary stays in the cheaper tier, e.g. with a
    480 minute standard a 480 minute shift is all regular.
    """
    if isinstance(total_minutes, bool) or not isinstance(total_minutes, int) or total_minutes < 0:
        raise ValueError(f"total_minutes must be a non-negative integer, got {total_minutes!r}")

    standard = standard_minutes_for(day_type, rule)

    regular = min(total_minutes, standard)
    overtime = total_minutes - regular
    tier1 = min(overtime, rule.overtime_tier1_minutes)
    tier2 = overtime - tier1

    return TierBreakdown(
        regular_minutes=regular,
        overtime_tier1_minutes=tier1,
        overtime_tier2_minutes=tier2,
    )


def tier_base_multipliers(rule: WorkRule) -> Dict[str, Decimal]:
    return {
        REGULAR_TIER: _ONE,
        OVERTIME_TIER1: as_decimal(rule.overtime_tier1_multiplier),
        OVERTIME_TIER2: as_decimal(rule.overtime_tier2_multiplier),
    }


def tier_multipliers(day_type: DayType, rule: WorkRule) -> Dict[str, Decimal]:
    """Effective multiplier per tier; rest days layer the holiday multiplier on top."""
    multipliers = tier_base_multipliers(rule)
    if day_type.is_rest_day:
        holiday = as_decimal(rule.holiday_multiplier)
        multipliers = {tier: m * holiday for tier, m in multipliers.items()}
    return multipliers


def format_percent(multiplier: Decimal | float) -> str:
    """1.25 -> "125%", 1.875 -> "187.5%"."""
    pct = (as_decimal(multiplier) * 100).normalize()
    return f"{pct:f}%"


def tier_label(tier: str, day_type: DayType, rule: WorkRule) -> str:
    """
    Display label for a tier. Never used in calculations.

    "Regular", "Overtime 125%", "Overtime 150%"; rest days prefix "Holiday ".
    """
    if tier == REGULAR_TIER:
        label = "Regular"
    else:
        label = f"Overtime {format_percent(tier_base_multipliers(rule)[tier])}"
    if day_type.is_rest_day:
        label = f"Holiday {label}"
    return label


def calculate_tier_pay(minutes: int, hourly_rate: int, multiplier: Decimal | float) -> int:
    """
    Pay for one tier in agorot: minutes / 60 * rate * multiplier.

    Each tier is rounded on its own (half away from zero) before summing.
    """
    if minutes == 0:
        return 0
    amount = Decimal(minutes) * Decimal(hourly_rate) * as_decimal(multiplier) / MINUTES_PER_HOUR
    return round_half_up(amount)


# =============================================================================
# Weekly overtime
# =============================================================================

def week_start(day: date) -> date:
    """Sunday that starts the week containing day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def weekly_overtime(shift_pays: Iterable[ShiftPay], rule: WorkRule) -> List[WeeklyOvertime]:
    """
    Premium top-up for regular minutes beyond the weekly standard.

    Regular minutes of non-rest-day shifts are accumulated in start order per
    Sunday-started week. Minutes past weekly_standard_minutes were already paid
    at 100%, so only the overtime premium (multiplier - 1) is added, at the
    rate of the shift that crossed the threshold. Returns one entry per week
    with weekly overtime; empty when the rule has no weekly standard.
    """
    if rule.weekly_standard_minutes is None:
        return []

    threshold = rule.weekly_standard_minutes
    base = tier_base_multipliers(rule)
    premium1 = base[OVERTIME_TIER1] - _ONE
    premium2 = base[OVERTIME_TIER2] - _ONE

    weeks: Dict[date, List[ShiftPay]] = defaultdict(list)
    for sp in sorted(shift_pays, key=lambda s: s.start_time):
        if sp.day_type.is_rest_day:
            continue
        weeks[week_start(sp.local_date)].append(sp)

    results = []
    for start in sorted(weeks):
        accumulated = 0
        tier1_left = rule.overtime_tier1_minutes
        totals = [0, 0, 0]  # tier1 minutes, tier2 minutes, pay
        for sp in weeks[start]:
            before = accumulated
            accumulated += sp.regular_minutes
            excess = max(0, accumulated - max(before, threshold))
            if not excess:
                continue
            tier1 = min(excess, tier1_left)
            tier1_left -= tier1
            tier2 = excess - tier1
            totals[0] += tier1
            totals[1] += tier2
            totals[2] += (
                calculate_tier_pay(tier1, sp.hourly_rate, premium1)
                + calculate_tier_pay(tier2, sp.hourly_rate, premium2)
            )

        if totals[0] or totals[1]:
            logger.debug(
                f"Weekly overtime for week of {start}: {totals[0]}+{totals[1]} min, {totals[2]} agorot"
            )
            results.append(WeeklyOvertime(
                week_start=start,
                regular_minutes=accumulated,
                overtime_tier1_minutes=totals[0],
                overtime_tier2_minutes=totals[1],
                pay=totals[2],
            ))

    return results


def breakdown_for(
    total_minutes: int,
    day_type: DayType,
    rule: WorkRule
) -> Tuple[TierBreakdown, Dict[str, Decimal]]:
    """Tier minutes and the effective multiplier for each tier."""
    return split_tiers(total_minutes, day_type, rule), tier_multipliers(day_type, rule)
