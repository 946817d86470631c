"""
Wage calculation engine.
Contains per-shift pay, period summaries and the flat contractor calculation.

All functions are pure: work rules, rates, holidays, bonuses and the time zone
are passed in, and every amount is an integer number of agorot.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Collection, Iterable, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from payroll.bonuses import hourly_bonus_lines, is_bonus_active, one_time_bonus_line
from payroll.constants import MAX_SHIFT_MINUTES, MINUTES_PER_HOUR
from payroll.currency import format_agorot, round_half_up, validate_minor_amount
from payroll.holidays import holiday_info_for
from payroll.models import (
    BonusInfo,
    BonusLine,
    BonusType,
    ContractorPayrollSummary,
    ExcludedBonus,
    ExcludedShift,
    ExclusionReason,
    HolidayInfo,
    PeriodPayrollSummary,
    Shift,
    ShiftPay,
    TierLine,
    WorkRule,
)
from payroll.overtime import (
    OVERTIME_TIER1,
    OVERTIME_TIER2,
    REGULAR_TIER,
    breakdown_for,
    calculate_tier_pay,
    classify_day,
    tier_label,
    weekly_overtime,
)
from payroll.time_utils import (
    LOCAL_TZ,
    format_minutes,
    qualifies_as_night_shift,
    shift_duration_minutes,
    to_local_date,
    to_local_datetime,
)
from utils.error_handler import (
    CalculationError,
    ConfigurationError,
    IncompleteShiftError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _require_work_rule(work_rule: Optional[WorkRule]) -> WorkRule:
    if work_rule is None:
        raise ConfigurationError(
            "No work rule configured for the organization",
            user_message="לא הוגדרו חוקי עבודה לארגון",
        )
    return work_rule


# =============================================================================
# Single shift
# =============================================================================

def calculate_shift_pay(
    shift: Shift,
    hourly_rate: int,
    work_rule: WorkRule,
    holiday_info: Optional[HolidayInfo] = None,
    bonuses: Iterable[BonusInfo] = (),
    tz: ZoneInfo = LOCAL_TZ,
    max_shift_minutes: int = MAX_SHIFT_MINUTES,
) -> ShiftPay:
    """
    Calculate the itemized pay of one closed shift.

    Args:
        shift: The shift to calculate
        hourly_rate: Base hourly rate in agorot
        work_rule: Organisation work rule (required)
        holiday_info: Calendar flags for the shift's start date
        bonuses: Employee bonuses; only hourly bonuses active on the shift date apply
        tz: Time zone in which the shift date is determined
        max_shift_minutes: Longest acceptable shift

    Raises:
        ConfigurationError: work_rule is None
        IncompleteShiftError: the shift has no end time
        CalculationError: invalid rate, bonus amount or duration
    """
    rule = _require_work_rule(work_rule)

    if shift.is_open:
        raise IncompleteShiftError(
            f"Shift {shift.shift_id} is still open",
            reason=ExclusionReason.INCOMPLETE,
            details={"shift_id": shift.shift_id},
            user_message="המשמרת עדיין פתוחה",
        )

    rate_check = validate_minor_amount(hourly_rate)
    if not rate_check.valid:
        raise CalculationError(
            f"Invalid hourly rate {hourly_rate!r} for shift {shift.shift_id}",
            reason=ExclusionReason.INVALID_AMOUNT,
            details={"shift_id": shift.shift_id, "hourly_rate": hourly_rate},
            user_message=rate_check.error,
        )

    worked = shift_duration_minutes(shift.start_time, shift.end_time)
    if worked > max_shift_minutes:
        raise CalculationError(
            f"Shift {shift.shift_id} lasts {worked} minutes (max {max_shift_minutes})",
            reason=ExclusionReason.INVALID_DURATION,
            details={"shift_id": shift.shift_id, "minutes": worked},
            user_message=f"משך המשמרת עולה על {format_minutes(max_shift_minutes)} שעות",
        )

    local_start = to_local_datetime(shift.start_time, tz)
    local_day = local_start.date()
    is_night = (
        rule.night_standard_minutes is not None
        and qualifies_as_night_shift(shift.start_time, worked, tz)
    )
    day_type = classify_day(
        holiday_info, local_day, is_night,
        start_minute=local_start.hour * MINUTES_PER_HOUR + local_start.minute,
    )
    breakdown, multipliers = breakdown_for(worked, day_type, rule)

    tier_minutes = (
        (REGULAR_TIER, breakdown.regular_minutes),
        (OVERTIME_TIER1, breakdown.overtime_tier1_minutes),
        (OVERTIME_TIER2, breakdown.overtime_tier2_minutes),
    )
    tiers = tuple(
        TierLine(
            tier=tier,
            minutes=minutes,
            multiplier=float(multipliers[tier]),
            pay=calculate_tier_pay(minutes, hourly_rate, multipliers[tier]),
            label=tier_label(tier, day_type, rule),
        )
        for tier, minutes in tier_minutes
    )
    regular_pay, tier1_pay, tier2_pay = (t.pay for t in tiers)
    base_pay = regular_pay + tier1_pay + tier2_pay

    bonus_list = list(bonuses)
    bonus_lines = tuple(hourly_bonus_lines(bonus_list, local_day, worked, tz))
    bonus_pay = sum(line.amount for line in bonus_lines)

    hourly_supplement = sum(
        b.amount_per_hour or 0
        for b in bonus_list
        if b.bonus_type is BonusType.HOURLY and is_bonus_active(b, local_day, tz)
    )

    logger.debug(
        f"Shift {shift.shift_id} on {local_day} ({day_type.value}): {worked} min "
        f"= {breakdown.regular_minutes}/{breakdown.overtime_tier1_minutes}/"
        f"{breakdown.overtime_tier2_minutes}, base {base_pay}, bonus {bonus_pay}"
    )

    return ShiftPay(
        shift_id=shift.shift_id,
        work_type_id=shift.work_type_id,
        start_time=shift.start_time,
        end_time=shift.end_time,
        local_date=local_day,
        day_type=day_type,
        is_retro=shift.is_retro,
        worked_minutes=worked,
        hourly_rate=hourly_rate,
        tiers=tiers,
        regular_minutes=breakdown.regular_minutes,
        overtime_tier1_minutes=breakdown.overtime_tier1_minutes,
        overtime_tier2_minutes=breakdown.overtime_tier2_minutes,
        regular_pay=regular_pay,
        overtime_tier1_pay=tier1_pay,
        overtime_tier2_pay=tier2_pay,
        base_pay=base_pay,
        bonus_lines=bonus_lines,
        bonus_pay=bonus_pay,
        total_pay=base_pay + bonus_pay,
        effective_hourly_rate=hourly_rate + hourly_supplement,
    )


def resolve_hourly_rate(
    work_type_id: Optional[str],
    hourly_rates: Optional[Mapping[str, int]] = None,
    base_hourly_rate: Optional[int] = None,
) -> Optional[int]:
    """Rate for the work type if the employee has one, else the base rate."""
    if work_type_id is not None and hourly_rates and work_type_id in hourly_rates:
        return hourly_rates[work_type_id]
    return base_hourly_rate


# =============================================================================
# Period summary
# =============================================================================

def month_period(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month."""
    start = date(year, month, 1)
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return start, next_month - timedelta(days=1)


def _merge_bonus_lines(lines: Iterable[BonusLine]) -> List[BonusLine]:
    """Distinct bonus items, summing amounts of the same bonus across shifts."""
    merged: "OrderedDict[tuple, BonusLine]" = OrderedDict()
    for line in lines:
        key = (line.bonus_id, line.bonus_type, line.label)
        if key in merged:
            prev = merged[key]
            merged[key] = BonusLine(
                bonus_id=prev.bonus_id,
                bonus_type=prev.bonus_type,
                label=prev.label,
                amount=prev.amount + line.amount,
                minutes=prev.minutes + line.minutes,
            )
        else:
            merged[key] = line
    return list(merged.values())


def calculate_period_payroll(
    shifts: Iterable[Shift],
    work_rule: WorkRule,
    period_start: date,
    period_end: date,
    hourly_rates: Optional[Mapping[str, int]] = None,
    base_hourly_rate: Optional[int] = None,
    holidays: Optional[Mapping] = None,
    bonuses: Iterable[BonusInfo] = (),
    tz: ZoneInfo = LOCAL_TZ,
    paid_one_time_bonus_ids: Collection[str] = (),
) -> PeriodPayrollSummary:
    """
    Payroll summary for one employee over [period_start, period_end].

    Shifts are attributed to the local date they start on; shifts outside the
    period are ignored. Shifts that cannot be calculated (still open, no rate,
    invalid amounts or durations) are reported in summary.excluded and the
    rest of the period is still computed.

    One-time bonuses are added once per call when at least one shift was
    computed; one with an invalid amount is reported in
    summary.excluded_bonuses instead. Callers running the same period again
    must pass the ids already paid in paid_one_time_bonus_ids.

    Raises:
        ConfigurationError: work_rule is None
        ValidationError: period_end precedes period_start
    """
    rule = _require_work_rule(work_rule)
    if period_end < period_start:
        raise ValidationError(
            f"Invalid period {period_start} - {period_end}",
            user_message="תאריך הסיום מוקדם מתאריך ההתחלה",
        )

    bonus_list = list(bonuses)
    summary = PeriodPayrollSummary(period_start=period_start, period_end=period_end)

    for shift in sorted(shifts, key=lambda s: s.start_time):
        local_day = to_local_date(shift.start_time, tz)
        if not period_start <= local_day <= period_end:
            continue

        if shift.is_open:
            summary.excluded.append(ExcludedShift(
                shift_id=shift.shift_id,
                start_time=shift.start_time,
                reason=ExclusionReason.INCOMPLETE,
                message="המשמרת עדיין פתוחה",
            ))
            continue

        try:
            # Negative duration is reported before a missing rate
            shift_duration_minutes(shift.start_time, shift.end_time)

            rate = resolve_hourly_rate(shift.work_type_id, hourly_rates, base_hourly_rate)
            if rate is None:
                raise CalculationError(
                    f"No hourly rate for work type {shift.work_type_id!r}",
                    reason=ExclusionReason.MISSING_RATE,
                    details={"shift_id": shift.shift_id, "work_type_id": shift.work_type_id},
                    user_message="לא הוגדר תעריף לסוג העבודה",
                )

            shift_pay = calculate_shift_pay(
                shift,
                rate,
                rule,
                holiday_info=holiday_info_for(holidays, local_day),
                bonuses=bonus_list,
                tz=tz,
            )
        except CalculationError as e:
            logger.warning(f"Shift {shift.shift_id} excluded from payroll: {e.message}")
            summary.excluded.append(ExcludedShift(
                shift_id=shift.shift_id,
                start_time=shift.start_time,
                reason=e.reason or ExclusionReason.INVALID_AMOUNT,
                message=e.user_message,
            ))
            continue

        summary.shifts.append(shift_pay)

    for sp in summary.shifts:
        summary.total_minutes += sp.worked_minutes
        summary.regular_minutes += sp.regular_minutes
        summary.overtime_tier1_minutes += sp.overtime_tier1_minutes
        summary.overtime_tier2_minutes += sp.overtime_tier2_minutes
        if sp.day_type.is_rest_day:
            summary.rest_day_minutes += sp.worked_minutes
        summary.regular_pay += sp.regular_pay
        summary.overtime_tier1_pay += sp.overtime_tier1_pay
        summary.overtime_tier2_pay += sp.overtime_tier2_pay
        summary.base_pay += sp.base_pay
        summary.hourly_bonus_pay += sp.bonus_pay
    summary.total_shifts = len(summary.shifts)

    one_time_lines: List[BonusLine] = []
    if summary.shifts:
        for bonus in bonus_list:
            if bonus.bonus_type is not BonusType.ONE_TIME:
                continue
            try:
                line = one_time_bonus_line(bonus, period_start, period_end, paid_one_time_bonus_ids, tz)
            except CalculationError as e:
                logger.warning(f"Bonus {bonus.bonus_id} excluded from payroll: {e.message}")
                summary.excluded_bonuses.append(ExcludedBonus(
                    bonus_id=bonus.bonus_id,
                    bonus_type=bonus.bonus_type,
                    reason=e.reason or ExclusionReason.INVALID_AMOUNT,
                    message=e.user_message,
                ))
                continue
            if line is not None:
                one_time_lines.append(line)
    summary.one_time_bonus_pay = sum(line.amount for line in one_time_lines)

    summary.bonus_lines = _merge_bonus_lines(
        [line for sp in summary.shifts for line in sp.bonus_lines] + one_time_lines
    )
    summary.bonus_pay = summary.hourly_bonus_pay + summary.one_time_bonus_pay

    summary.weekly_overtime = weekly_overtime(summary.shifts, rule)
    summary.weekly_overtime_pay = sum(w.pay for w in summary.weekly_overtime)

    summary.total_pay = summary.base_pay + summary.bonus_pay + summary.weekly_overtime_pay

    logger.info(
        f"Period {period_start} - {period_end}: {summary.total_shifts} shifts, "
        f"{len(summary.excluded)} excluded, total {summary.total_pay} agorot"
    )
    return summary


# =============================================================================
# Contractors
# =============================================================================

def calculate_contractor_payroll(
    durations_minutes: Iterable[int],
    hourly_rate: int
) -> ContractorPayrollSummary:
    """Flat hours x rate for contractors: no overtime tiers, no bonuses."""
    durations = list(durations_minutes)
    total_minutes = sum(durations)
    total_pay = round_half_up(Decimal(total_minutes) * Decimal(hourly_rate) / MINUTES_PER_HOUR)

    return ContractorPayrollSummary(
        total_entries=len(durations),
        total_minutes=total_minutes,
        total_hours_formatted=format_minutes(total_minutes),
        hourly_rate=hourly_rate,
        total_pay=total_pay,
        formatted_pay=format_agorot(total_pay),
    )
