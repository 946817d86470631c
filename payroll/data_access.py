"""
Data access for the payroll engine.
Loads shifts, rates, bonuses, work rules and calendar flags from PostgreSQL
and turns rows into the engine's immutable input values.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import psycopg2.extras

from payroll.config import config
from payroll.holidays import date_key
from payroll.models import BonusInfo, HolidayInfo, Shift, WorkRule
from utils.error_handler import ConfigurationError, safe_database_operation

logger = logging.getLogger(__name__)

# Statuses whose shifts take part in payroll; OPEN shifts are loaded so they
# can be reported as incomplete.
PAYROLL_SHIFT_STATUSES = ("OPEN", "CLOSED", "CORRECTED")

# Only these calendar events change pay
PAYROLL_EVENT_TYPES = ("HOLIDAY", "MEMORIAL")


@safe_database_operation("load_work_rule")
def load_work_rule(conn, organization_id: str) -> WorkRule:
    """
    Load the organization's work rule.

    Raises:
        ConfigurationError: if the organization has no work rule
    """
    cursor = conn.cursor(cursor_factory=psycopg2.extras.DictCursor)
    try:
        cursor.execute("""
            SELECT standard_daily_minutes, short_day_standard_minutes,
                   overtime_tier1_minutes, overtime_tier1_multiplier,
                   overtime_tier2_multiplier, holiday_multiplier,
                   night_standard_minutes, weekly_standard_minutes,
                   friday_standard_minutes
            FROM work_rules
            WHERE organization_id = %s
        """, (organization_id,))
        row = cursor.fetchone()
    finally:
        cursor.close()

    if row is None:
        raise ConfigurationError(
            f"No work rule for organization {organization_id}",
            details={"organization_id": organization_id},
            user_message="לא הוגדרו חוקי עבודה לארגון",
        )
    return WorkRule.from_mapping(dict(row))


@safe_database_operation("load_holiday_map")
def load_holiday_map(conn, start: date, end: date) -> Dict[str, HolidayInfo]:
    """
    Calendar flags for [start, end] keyed by "YYYY-MM-DD".
    Several events on one day are merged (any rest day / short day wins).
    """
    cursor = conn.cursor(cursor_factory=psycopg2.extras.DictCursor)
    try:
        cursor.execute("""
            SELECT gregorian_date, name_he, is_rest_day, is_short_day
            FROM calendar_events
            WHERE gregorian_date BETWEEN %s AND %s
              AND event_type IN %s
            ORDER BY gregorian_date
        """, (start, end, PAYROLL_EVENT_TYPES))
        rows = cursor.fetchall()
    finally:
        cursor.close()

    result: Dict[str, HolidayInfo] = {}
    for r in rows:
        day = r["gregorian_date"]
        if isinstance(day, datetime):
            day = day.date()
        key = date_key(day)
        prev = result.get(key)
        result[key] = HolidayInfo(
            is_holiday=True,
            is_rest_day=bool(r["is_rest_day"]) or (prev is not None and prev.is_rest_day),
            is_short_day=bool(r["is_short_day"]) or (prev is not None and prev.is_short_day),
            event_name=prev.event_name if prev is not None else r["name_he"],
        )
    return result


@safe_database_operation("load_employee_bonuses")
def load_employee_bonuses(conn, employee_id: str) -> List[BonusInfo]:
    cursor = conn.cursor(cursor_factory=psycopg2.extras.DictCursor)
    try:
        cursor.execute("""
            SELECT id, bonus_type, amount_per_hour, amount_fixed,
                   valid_from, valid_to, description
            FROM employee_bonuses
            WHERE employee_id = %s
        """, (employee_id,))
        rows = cursor.fetchall()
    finally:
        cursor.close()

    return [
        BonusInfo(
            bonus_type=r["bonus_type"],
            amount_per_hour=r["amount_per_hour"],
            amount_fixed=r["amount_fixed"],
            valid_from=r["valid_from"],
            valid_to=r["valid_to"],
            bonus_id=str(r["id"]),
            description=r["description"],
        )
        for r in rows
    ]


@safe_database_operation("load_hourly_rates")
def load_hourly_rates(conn, employee_id: str) -> Tuple[Dict[str, int], Optional[int]]:
    """
    Per-work-type rates and the base hourly rate of an employee (agorot).

    Returns:
        ({work_type_id: rate}, base_hourly_rate or None)
    """
    cursor = conn.cursor(cursor_factory=psycopg2.extras.DictCursor)
    try:
        cursor.execute("""
            SELECT work_type_id, hourly_rate
            FROM employee_work_rates
            WHERE employee_id = %s
        """, (employee_id,))
        rates = {str(r["work_type_id"]): int(r["hourly_rate"]) for r in cursor.fetchall()}

        cursor.execute("SELECT base_hourly_rate FROM employees WHERE id = %s", (employee_id,))
        row = cursor.fetchone()
    finally:
        cursor.close()

    base_rate = None
    if row is not None and row["base_hourly_rate"] is not None:
        base_rate = int(row["base_hourly_rate"])
    return rates, base_rate


@safe_database_operation("load_shifts")
def load_shifts(conn, employee_id: str, start: date, end: date, tz: ZoneInfo = config.LOCAL_TZ) -> List[Shift]:
    """Shifts of an employee starting within [start, end] local days, oldest first."""
    range_start = datetime.combine(start, time.min, tzinfo=tz)
    range_end = datetime.combine(end + timedelta(days=1), time.min, tzinfo=tz)

    cursor = conn.cursor(cursor_factory=psycopg2.extras.DictCursor)
    try:
        cursor.execute("""
            SELECT id, start_time, end_time, work_type_id, is_retro
            FROM shifts
            WHERE employee_id = %s
              AND start_time >= %s AND start_time < %s
              AND status IN %s
            ORDER BY start_time ASC
        """, (employee_id, range_start, range_end, PAYROLL_SHIFT_STATUSES))
        rows = cursor.fetchall()
    finally:
        cursor.close()

    return [
        Shift(
            start_time=r["start_time"],
            end_time=r["end_time"],
            work_type_id=str(r["work_type_id"]) if r["work_type_id"] is not None else None,
            is_retro=bool(r["is_retro"]),
            shift_id=str(r["id"]),
        )
        for r in rows
    ]


@safe_database_operation("load_platform_timezone")
def load_platform_timezone(conn) -> ZoneInfo:
    """Platform time zone from settings, falling back to config.DEFAULT_TIMEZONE."""
    cursor = conn.cursor(cursor_factory=psycopg2.extras.DictCursor)
    try:
        cursor.execute("SELECT timezone FROM platform_settings WHERE id = %s", ("default",))
        row = cursor.fetchone()
    finally:
        cursor.close()

    name = row["timezone"] if row and row["timezone"] else config.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown platform timezone {name!r}, using {config.DEFAULT_TIMEZONE}")
        return ZoneInfo(config.DEFAULT_TIMEZONE)
