"""
Bonus validity and bonus line items.

Hourly bonuses pay amount_per_hour for every hour worked in a shift (not tier
weighted). One-time bonuses are paid once per period; the caller passes the
ids already paid in earlier runs for the same period so they are not paid twice.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Collection, Iterable, List, Optional
from zoneinfo import ZoneInfo

from payroll.constants import MINUTES_PER_HOUR
from payroll.currency import format_agorot, round_half_up, validate_minor_amount
from payroll.models import BonusInfo, BonusLine, BonusType, ExclusionReason
from payroll.time_utils import LOCAL_TZ, to_local_date
from utils.error_handler import CalculationError

logger = logging.getLogger(__name__)


def _as_date(value: Optional[date | datetime], tz: ZoneInfo) -> Optional[date]:
    if value is None:
        return None
    return to_local_date(value, tz)


def is_bonus_active(bonus: BonusInfo, day: date, tz: ZoneInfo = LOCAL_TZ) -> bool:
    """valid_from <= day <= valid_to, inclusive; a missing bound is open."""
    valid_from = _as_date(bonus.valid_from, tz)
    valid_to = _as_date(bonus.valid_to, tz)
    if valid_from is not None and day < valid_from:
        return False
    if valid_to is not None and day > valid_to:
        return False
    return True


def bonus_overlaps_period(
    bonus: BonusInfo,
    period_start: date,
    period_end: date,
    tz: ZoneInfo = LOCAL_TZ
) -> bool:
    valid_from = _as_date(bonus.valid_from, tz)
    valid_to = _as_date(bonus.valid_to, tz)
    if valid_from is not None and valid_from > period_end:
        return False
    if valid_to is not None and valid_to < period_start:
        return False
    return True


def bonus_amount(bonus: BonusInfo) -> Optional[int]:
    """The amount relevant to the bonus type, validated. None/0 means nothing to pay."""
    amount = bonus.amount_per_hour if bonus.bonus_type is BonusType.HOURLY else bonus.amount_fixed
    if not amount:
        return None

    validation = validate_minor_amount(amount)
    if not validation.valid:
        raise CalculationError(
            f"Bonus {bonus.bonus_id} has an invalid amount: {amount!r}",
            reason=ExclusionReason.INVALID_AMOUNT,
            details={"bonus_id": bonus.bonus_id, "amount": amount},
            user_message=validation.error,
        )
    return validation.minor_units


def bonus_label(bonus: BonusInfo) -> str:
    if bonus.description:
        return bonus.description
    if bonus.bonus_type is BonusType.HOURLY:
        return f"Hourly Bonus ({format_agorot(bonus.amount_per_hour or 0)}/h)"
    return "One-time Bonus"


def hourly_bonus_lines(
    bonuses: Iterable[BonusInfo],
    day: date,
    worked_minutes: int,
    tz: ZoneInfo = LOCAL_TZ
) -> List[BonusLine]:
    """One line per hourly bonus active on day, each rounded on its own."""
    lines = []
    for bonus in bonuses:
        if bonus.bonus_type is not BonusType.HOURLY:
            continue
        if not is_bonus_active(bonus, day, tz):
            continue
        rate = bonus_amount(bonus)
        if rate is None:
            continue
        amount = round_half_up(Decimal(worked_minutes) * Decimal(rate) / MINUTES_PER_HOUR)
        lines.append(BonusLine(
            bonus_id=bonus.bonus_id,
            bonus_type=BonusType.HOURLY,
            label=bonus_label(bonus),
            amount=amount,
            minutes=worked_minutes,
        ))
    return lines


def one_time_bonus_line(
    bonus: BonusInfo,
    period_start: date,
    period_end: date,
    paid_bonus_ids: Collection[str] = (),
    tz: ZoneInfo = LOCAL_TZ
) -> Optional[BonusLine]:
    """
    The line for a one-time bonus payable in the period, or None.

    Bonuses without an id cannot be tracked across runs and are paid every time.

    Raises:
        CalculationError: the bonus amount is out of range
    """
    if bonus.bonus_type is not BonusType.ONE_TIME:
        return None
    if bonus.bonus_id is not None and bonus.bonus_id in paid_bonus_ids:
        logger.debug(f"One-time bonus {bonus.bonus_id} already paid for this period")
        return None
    if not bonus_overlaps_period(bonus, period_start, period_end, tz):
        return None
    amount = bonus_amount(bonus)
    if amount is None:
        return None
    return BonusLine(
        bonus_id=bonus.bonus_id,
        bonus_type=BonusType.ONE_TIME,
        label=bonus_label(bonus),
        amount=amount,
    )


def one_time_bonus_lines(
    bonuses: Iterable[BonusInfo],
    period_start: date,
    period_end: date,
    paid_bonus_ids: Collection[str] = (),
    tz: ZoneInfo = LOCAL_TZ
) -> List[BonusLine]:
    """One-time bonuses whose window intersects the period, minus those already paid."""
    lines = []
    for bonus in bonuses:
        line = one_time_bonus_line(bonus, period_start, period_end, paid_bonus_ids, tz)
        if line is not None:
            lines.append(line)
    return lines
