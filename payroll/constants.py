"""
Central constants for the payroll engine.

This module serves as the single source of truth for constants used across:
- payroll/time_utils.py
- payroll/overtime.py
- payroll/wage_calculator.py
- payroll/holidays.py
"""
from payroll.config import config

# =============================================================================
# Time Constants (in minutes)
# =============================================================================

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR  # 1440

# Longest single shift accepted from manual entry or timestamps
MAX_SHIFT_MINUTES = config.MAX_SHIFT_MINUTES  # 960 = 16 hours

# =============================================================================
# Default Work Rule (Israeli Hours of Work and Rest Law, 5-day week)
# Documented fallback only - never applied implicitly by the engine.
# =============================================================================

DEFAULT_STANDARD_DAILY_MINUTES = 516      # 8:36
DEFAULT_SHORT_DAY_MINUTES = 456           # 7:36
DEFAULT_NIGHT_STANDARD_MINUTES = 420      # 7:00
DEFAULT_OVERTIME_TIER1_MINUTES = 120      # first 2 overtime hours
DEFAULT_OVERTIME_TIER1_MULTIPLIER = 1.25
DEFAULT_OVERTIME_TIER2_MULTIPLIER = 1.5
DEFAULT_HOLIDAY_MULTIPLIER = 1.5
DEFAULT_WEEKLY_STANDARD_MINUTES = 42 * MINUTES_PER_HOUR  # 2520

# =============================================================================
# Night Shift Detection
# A shift qualifies as a night shift if 2+ hours are between 22:00-06:00
# =============================================================================

NIGHT_HOURS_START = 22 * 60             # 1320 = 22:00
NIGHT_HOURS_END = 6 * 60                # 360 = 06:00
NIGHT_HOURS_THRESHOLD = 120             # 2 hours required to qualify as night shift

# =============================================================================
# Weekdays (Python's weekday())
# =============================================================================

FRIDAY = 4
SATURDAY = 5
SUNDAY = 6

# Friday shifts starting at or after this minute of the day are Shabbat shifts
SHABBAT_ENTRY_MINUTE = 18 * 60          # 1080 = 18:00

# =============================================================================
# Monetary bounds (in shekels)
# =============================================================================

MAX_MONETARY_AMOUNT = config.MAX_MONETARY_AMOUNT
MIN_MONETARY_AMOUNT = config.MIN_MONETARY_AMOUNT

CURRENCY_SYMBOL = "₪"
