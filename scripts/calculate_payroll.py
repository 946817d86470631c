"""
Monthly payroll for one employee, from a JSON file or from the database.

JSON input (amounts in shekels, timestamps ISO 8601):

    {
      "base_hourly_rate": 40,
      "hourly_rates": {"night": 45.5},
      "work_rule": {"standard_daily_minutes": 516, ...},
      "shifts": [{"id": "1", "start": "2025-10-05T08:00:00+03:00",
                  "end": "2025-10-05T17:00:00+03:00", "work_type_id": "night"}],
      "bonuses": [{"id": "b1", "type": "HOURLY", "amount_per_hour": 5,
                   "valid_from": "2025-10-01", "valid_to": "2025-10-31"}],
      "paid_one_time_bonus_ids": []
    }

Usage:
    python scripts/calculate_payroll.py --input shifts.json --year 2025 --month 10
    python scripts/calculate_payroll.py --employee-id 7 --organization-id 1 --year 2025 --month 10
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date, datetime
from typing import Any, Dict, Optional

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from payroll.config import config
from payroll.currency import format_agorot, to_minor_units, to_minor_units_safe
from payroll.holidays import hebrew_date_label, israeli_holidays
from payroll.models import DEFAULT_WORK_RULE, BonusInfo, PeriodPayrollSummary, Shift, WorkRule
from payroll.time_utils import format_minutes
from payroll.wage_calculator import calculate_period_payroll, month_period
from utils.cache_manager import TimezoneCache
from utils.error_handler import PayrollError, configure_logging, log_error
from utils.formatting import human_date

logger = logging.getLogger(__name__)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def load_input(path: str) -> Dict[str, Any]:
    """Read the JSON input file into calculate_period_payroll keyword arguments."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    shifts = [
        Shift(
            start_time=_parse_datetime(s["start"]),
            end_time=_parse_datetime(s.get("end")),
            work_type_id=s.get("work_type_id"),
            is_retro=bool(s.get("is_retro", False)),
            shift_id=str(s.get("id")) if s.get("id") is not None else None,
        )
        for s in data.get("shifts", [])
    ]

    bonuses = [
        BonusInfo(
            bonus_type=b["type"],
            amount_per_hour=to_minor_units_safe(b.get("amount_per_hour")),
            amount_fixed=to_minor_units_safe(b.get("amount_fixed")),
            valid_from=_parse_date(b.get("valid_from")),
            valid_to=_parse_date(b.get("valid_to")),
            bonus_id=b.get("id"),
            description=b.get("description"),
        )
        for b in data.get("bonuses", [])
    ]

    rule_data = data.get("work_rule")
    work_rule = WorkRule.from_mapping(rule_data) if rule_data else DEFAULT_WORK_RULE

    return {
        "shifts": shifts,
        "work_rule": work_rule,
        "hourly_rates": {k: to_minor_units(v) for k, v in data.get("hourly_rates", {}).items()},
        "base_hourly_rate": to_minor_units_safe(data.get("base_hourly_rate")),
        "bonuses": bonuses,
        "paid_one_time_bonus_ids": data.get("paid_one_time_bonus_ids", []),
    }


def load_from_database(employee_id: str, organization_id: str, start: date, end: date) -> Dict[str, Any]:
    """Load the same keyword arguments from PostgreSQL."""
    from payroll.data_access import (
        load_employee_bonuses,
        load_holiday_map,
        load_hourly_rates,
        load_platform_timezone,
        load_shifts,
        load_work_rule,
    )
    from payroll.database import close_pool, get_conn

    try:
        with get_conn() as conn:
            tz_cache = TimezoneCache(lambda: load_platform_timezone(conn))
            tz = tz_cache.get()
            rates, base_rate = load_hourly_rates(conn, employee_id)
            return {
                "shifts": load_shifts(conn, employee_id, start, end, tz),
                "work_rule": load_work_rule(conn, organization_id),
                "hourly_rates": rates,
                "base_hourly_rate": base_rate,
                "bonuses": load_employee_bonuses(conn, employee_id),
                "holidays": load_holiday_map(conn, start, end),
                "tz": tz,
            }
    finally:
        close_pool()


def print_summary(summary: PeriodPayrollSummary):
    print(f"\n=== Payroll {human_date(summary.period_start)} - {human_date(summary.period_end)} ===")
    for sp in summary.shifts:
        print(
            f"{human_date(sp.local_date)} ({hebrew_date_label(sp.local_date)}) {sp.day_label:<9} "
            f"{format_minutes(sp.worked_minutes):>6}  {format_agorot(sp.total_pay):>12}  "
            f"{', '.join(sp.labels)}"
        )

    if summary.excluded:
        print("\nExcluded shifts:")
        for ex in summary.excluded:
            print(f"  {ex.shift_id or '-'} {ex.start_time:%Y-%m-%d %H:%M} {ex.reason.value}: {ex.message}")

    if summary.excluded_bonuses:
        print("\nExcluded bonuses:")
        for eb in summary.excluded_bonuses:
            print(f"  {eb.bonus_id or '-'} {eb.bonus_type.value} {eb.reason.value}: {eb.message}")

    print("\n--- Totals ---")
    print(f"Shifts:            {summary.total_shifts}")
    print(f"Hours:             {format_minutes(summary.total_minutes)}")
    print(f"  Regular:         {format_minutes(summary.regular_minutes)}")
    print(f"  Overtime tier 1: {format_minutes(summary.overtime_tier1_minutes)}")
    print(f"  Overtime tier 2: {format_minutes(summary.overtime_tier2_minutes)}")
    print(f"  Rest days:       {format_minutes(summary.rest_day_minutes)}")
    print(f"Base pay:          {format_agorot(summary.base_pay)}")
    for line in summary.bonus_lines:
        print(f"  {line.label}: {format_agorot(line.amount)}")
    if summary.weekly_overtime_pay:
        print(f"Weekly overtime:   {format_agorot(summary.weekly_overtime_pay)}")
    print(f"Total:             {format_agorot(summary.total_pay)}")
    if summary.has_incomplete:
        print("\n* Some shifts are still open; totals are provisional")


def main():
    parser = argparse.ArgumentParser(description="Monthly payroll calculation")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", help="JSON file with shifts, rates and bonuses")
    source.add_argument("--employee-id", help="Load the employee from DATABASE_URL")
    parser.add_argument("--organization-id", help="Organization whose work rule applies (with --employee-id)")
    parser.add_argument("--year", type=int, required=True)
    parser.add_argument("--month", type=int, required=True)
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")

    args = parser.parse_args()
    configure_logging(config.LOG_LEVEL, config.LOG_FILE)

    start, end = month_period(args.year, args.month)

    try:
        if args.input:
            kwargs = load_input(args.input)
            kwargs["holidays"] = israeli_holidays(start, end)
        else:
            if not args.organization_id:
                parser.error("--organization-id is required with --employee-id")
            kwargs = load_from_database(args.employee_id, args.organization_id, start, end)

        summary = calculate_period_payroll(period_start=start, period_end=end, **kwargs)
    except PayrollError as e:
        error_id = log_error(e, {"year": args.year, "month": args.month})
        print(f"Error [{error_id}]: {e.user_message}")
        sys.exit(1)

    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
    else:
        print_summary(summary)


if __name__ == "__main__":
    main()
