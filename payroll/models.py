"""
Value objects for the payroll engine.

Inputs (Shift, WorkRule, HolidayInfo, BonusInfo) are immutable snapshots of
records owned by the persistence layer. Results are built fresh on every call
and belong to the caller. All money is an integer number of agorot.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from payroll.constants import (
    DEFAULT_HOLIDAY_MULTIPLIER,
    DEFAULT_NIGHT_STANDARD_MINUTES,
    DEFAULT_OVERTIME_TIER1_MINUTES,
    DEFAULT_OVERTIME_TIER1_MULTIPLIER,
    DEFAULT_OVERTIME_TIER2_MULTIPLIER,
    DEFAULT_SHORT_DAY_MINUTES,
    DEFAULT_STANDARD_DAILY_MINUTES,
    DEFAULT_WEEKLY_STANDARD_MINUTES,
)
from utils.error_handler import ConfigurationError


# =============================================================================
# Enumerations
# =============================================================================

class BonusType(str, Enum):
    HOURLY = "HOURLY"
    ONE_TIME = "ONE_TIME"


class DayType(str, Enum):
    """Pay classification of the day a shift starts on."""
    WEEKDAY = "WEEKDAY"
    FRIDAY = "FRIDAY"
    SHORT_DAY = "SHORT_DAY"
    NIGHT = "NIGHT"
    REST_DAY = "REST_DAY"

    @property
    def label(self) -> str:
        return _DAY_TYPE_LABELS[self]

    @property
    def is_rest_day(self) -> bool:
        return self is DayType.REST_DAY


_DAY_TYPE_LABELS = {
    DayType.WEEKDAY: "Weekday",
    DayType.FRIDAY: "Friday",
    DayType.SHORT_DAY: "Short Day",
    DayType.NIGHT: "Night",
    DayType.REST_DAY: "Rest Day",
}


class ExclusionReason(str, Enum):
    """Why a shift or bonus was left out of a period calculation."""
    INCOMPLETE = "INCOMPLETE"
    MISSING_RATE = "MISSING_RATE"
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_AMOUNT = "INVALID_AMOUNT"


# =============================================================================
# Tagged validation results
# =============================================================================

@dataclass(frozen=True)
class TimeParseResult:
    valid: bool
    hours: Optional[int] = None
    minutes: Optional[int] = None
    error: Optional[str] = None

    @property
    def minute_of_day(self) -> Optional[int]:
        if not self.valid:
            return None
        return self.hours * 60 + self.minutes


@dataclass(frozen=True)
class DurationResult:
    valid: bool
    minutes: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class AmountValidation:
    valid: bool
    minor_units: Optional[int] = None
    error: Optional[str] = None


# =============================================================================
# Inputs
# =============================================================================

@dataclass(frozen=True)
class Shift:
    """
    One work period.

    Attributes:
        start_time: Clock-in timestamp
        end_time: Clock-out timestamp, None while the shift is still open
        work_type_id: Work type reference used to pick the hourly rate
        is_retro: Entered after the fact rather than by live clock-in/out
        shift_id: Identifier of the persisted record, for reporting only
    """
    start_time: datetime
    end_time: Optional[datetime] = None
    work_type_id: Optional[str] = None
    is_retro: bool = False
    shift_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


def _is_positive_number(value: Any) -> bool:
    """Finite and > 0; bool is not a number here."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    number = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    return number.is_finite() and number > 0


@dataclass(frozen=True)
class WorkRule:
    """
    Organisation work-rule configuration. Thresholds are minutes per shift.

    night_standard_minutes, weekly_standard_minutes and friday_standard_minutes
    are optional; None disables night-shift thresholds, weekly overtime and the
    shorter Friday standard of a 6-day week respectively. Multipliers may be
    int, float or Decimal.
    """
    standard_daily_minutes: int
    short_day_standard_minutes: int
    overtime_tier1_minutes: int
    overtime_tier1_multiplier: float
    overtime_tier2_multiplier: float
    holiday_multiplier: float
    night_standard_minutes: Optional[int] = None
    weekly_standard_minutes: Optional[int] = None
    friday_standard_minutes: Optional[int] = None

    def __post_init__(self):
        minute_fields = {
            "standard_daily_minutes": self.standard_daily_minutes,
            "short_day_standard_minutes": self.short_day_standard_minutes,
            "overtime_tier1_minutes": self.overtime_tier1_minutes,
            "night_standard_minutes": self.night_standard_minutes,
            "weekly_standard_minutes": self.weekly_standard_minutes,
            "friday_standard_minutes": self.friday_standard_minutes,
        }
        for name, value in minute_fields.items():
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(
                    f"Work rule field {name} must be a non-negative integer",
                    details={name: value},
                    user_message="הגדרות חוקי העבודה אינן תקינות",
                )

        multiplier_fields = {
            "overtime_tier1_multiplier": self.overtime_tier1_multiplier,
            "overtime_tier2_multiplier": self.overtime_tier2_multiplier,
            "holiday_multiplier": self.holiday_multiplier,
        }
        for name, value in multiplier_fields.items():
            if not _is_positive_number(value):
                raise ConfigurationError(
                    f"Work rule field {name} must be a positive number",
                    details={name: value},
                    user_message="הגדרות חוקי העבודה אינן תקינות",
                )

    @classmethod
    def from_hours(
        cls,
        standard_daily_hours: float,
        short_day_standard_hours: float,
        overtime_tier1_hours: float,
        overtime_tier1_multiplier: float,
        overtime_tier2_multiplier: float,
        holiday_multiplier: float,
        night_standard_hours: Optional[float] = None,
        weekly_standard_hours: Optional[float] = None,
        friday_standard_hours: Optional[float] = None,
    ) -> WorkRule:
        """Build a rule from decimal hours (8.6 hours = 8:36 = 516 minutes)."""
        from payroll.time_utils import decimal_hours_to_minutes

        def _minutes(hours):
            return None if hours is None else decimal_hours_to_minutes(hours)

        return cls(
            standard_daily_minutes=_minutes(standard_daily_hours),
            short_day_standard_minutes=_minutes(short_day_standard_hours),
            overtime_tier1_minutes=_minutes(overtime_tier1_hours),
            overtime_tier1_multiplier=overtime_tier1_multiplier,
            overtime_tier2_multiplier=overtime_tier2_multiplier,
            holiday_multiplier=holiday_multiplier,
            night_standard_minutes=_minutes(night_standard_hours),
            weekly_standard_minutes=_minutes(weekly_standard_hours),
            friday_standard_minutes=_minutes(friday_standard_hours),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> WorkRule:
        """Build a rule from a row or settings mapping keyed by field name."""
        missing = [
            name for name in (
                "standard_daily_minutes", "short_day_standard_minutes",
                "overtime_tier1_minutes", "overtime_tier1_multiplier",
                "overtime_tier2_multiplier", "holiday_multiplier",
            )
            if data.get(name) is None
        ]
        if missing:
            raise ConfigurationError(
                "Work rule is missing required fields",
                details={"missing": missing},
                user_message="הגדרות חוקי העבודה חסרות",
            )

        def _opt_int(name):
            value = data.get(name)
            return None if value is None else int(value)

        return cls(
            standard_daily_minutes=int(data["standard_daily_minutes"]),
            short_day_standard_minutes=int(data["short_day_standard_minutes"]),
            overtime_tier1_minutes=int(data["overtime_tier1_minutes"]),
            overtime_tier1_multiplier=float(data["overtime_tier1_multiplier"]),
            overtime_tier2_multiplier=float(data["overtime_tier2_multiplier"]),
            holiday_multiplier=float(data["holiday_multiplier"]),
            night_standard_minutes=_opt_int("night_standard_minutes"),
            weekly_standard_minutes=_opt_int("weekly_standard_minutes"),
            friday_standard_minutes=_opt_int("friday_standard_minutes"),
        )


# Documented fallback for callers that have no organisation rule of their own.
DEFAULT_WORK_RULE = WorkRule(
    standard_daily_minutes=DEFAULT_STANDARD_DAILY_MINUTES,
    short_day_standard_minutes=DEFAULT_SHORT_DAY_MINUTES,
    overtime_tier1_minutes=DEFAULT_OVERTIME_TIER1_MINUTES,
    overtime_tier1_multiplier=DEFAULT_OVERTIME_TIER1_MULTIPLIER,
    overtime_tier2_multiplier=DEFAULT_OVERTIME_TIER2_MULTIPLIER,
    holiday_multiplier=DEFAULT_HOLIDAY_MULTIPLIER,
    night_standard_minutes=DEFAULT_NIGHT_STANDARD_MINUTES,
    weekly_standard_minutes=DEFAULT_WEEKLY_STANDARD_MINUTES,
)


@dataclass(frozen=True)
class HolidayInfo:
    is_holiday: bool = False
    is_rest_day: bool = False
    is_short_day: bool = False
    event_name: Optional[str] = None


NO_HOLIDAY = HolidayInfo()


@dataclass(frozen=True)
class BonusInfo:
    """
    Employee bonus definition. Amounts are in agorot.

    A missing valid_from / valid_to means the window is open on that side.
    """
    bonus_type: BonusType
    amount_per_hour: Optional[int] = None
    amount_fixed: Optional[int] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    bonus_id: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        # Accept plain strings from rows and JSON
        if not isinstance(self.bonus_type, BonusType):
            object.__setattr__(self, "bonus_type", BonusType(self.bonus_type))


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class TierBreakdown:
    regular_minutes: int = 0
    overtime_tier1_minutes: int = 0
    overtime_tier2_minutes: int = 0

    @property
    def total_minutes(self) -> int:
        return self.regular_minutes + self.overtime_tier1_minutes + self.overtime_tier2_minutes


@dataclass(frozen=True)
class TierLine:
    tier: str  # "regular" / "overtime_tier1" / "overtime_tier2"
    minutes: int
    multiplier: float
    pay: int
    label: str


@dataclass(frozen=True)
class BonusLine:
    bonus_id: Optional[str]
    bonus_type: BonusType
    label: str
    amount: int
    minutes: int = 0


@dataclass(frozen=True)
class ShiftPay:
    shift_id: Optional[str]
    work_type_id: Optional[str]
    start_time: datetime
    end_time: datetime
    local_date: date
    day_type: DayType
    is_retro: bool
    worked_minutes: int
    hourly_rate: int
    tiers: Tuple[TierLine, ...]
    regular_minutes: int
    overtime_tier1_minutes: int
    overtime_tier2_minutes: int
    regular_pay: int
    overtime_tier1_pay: int
    overtime_tier2_pay: int
    base_pay: int
    bonus_lines: Tuple[BonusLine, ...]
    bonus_pay: int
    total_pay: int
    effective_hourly_rate: int

    @property
    def labels(self) -> List[str]:
        return [t.label for t in self.tiers if t.minutes] + [b.label for b in self.bonus_lines]

    @property
    def day_label(self) -> str:
        return self.day_type.label


@dataclass(frozen=True)
class ExcludedShift:
    shift_id: Optional[str]
    start_time: datetime
    reason: ExclusionReason
    message: str


@dataclass(frozen=True)
class ExcludedBonus:
    bonus_id: Optional[str]
    bonus_type: BonusType
    reason: ExclusionReason
    message: str


@dataclass(frozen=True)
class WeeklyOvertime:
    week_start: date
    regular_minutes: int
    overtime_tier1_minutes: int
    overtime_tier2_minutes: int
    pay: int


@dataclass
class PeriodPayrollSummary:
    period_start: date
    period_end: date
    shifts: List[ShiftPay] = field(default_factory=list)
    excluded: List[ExcludedShift] = field(default_factory=list)
    excluded_bonuses: List[ExcludedBonus] = field(default_factory=list)
    bonus_lines: List[BonusLine] = field(default_factory=list)
    weekly_overtime: List[WeeklyOvertime] = field(default_factory=list)
    total_shifts: int = 0
    total_minutes: int = 0
    regular_minutes: int = 0
    overtime_tier1_minutes: int = 0
    overtime_tier2_minutes: int = 0
    rest_day_minutes: int = 0
    regular_pay: int = 0
    overtime_tier1_pay: int = 0
    overtime_tier2_pay: int = 0
    base_pay: int = 0
    hourly_bonus_pay: int = 0
    one_time_bonus_pay: int = 0
    bonus_pay: int = 0
    weekly_overtime_pay: int = 0
    total_pay: int = 0

    @property
    def has_incomplete(self) -> bool:
        return any(e.reason is ExclusionReason.INCOMPLETE for e in self.excluded)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-friendly representation (dates as ISO strings)."""
        def _convert(value):
            if isinstance(value, (date, datetime)):
                return value.isoformat()
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, dict):
                return {k: _convert(v) for k, v in value.items()}
            if isinstance(value, (list, tuple)):
                return [_convert(v) for v in value]
            return value

        return _convert(asdict(self))


@dataclass(frozen=True)
class ContractorPayrollSummary:
    total_entries: int
    total_minutes: int
    total_hours_formatted: str
    hourly_rate: int
    total_pay: int
    formatted_pay: str
