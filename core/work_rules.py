"""
Work rules configuration according to the Israeli Hours of Work and Rest Law.

Private sector - 5 day week (42 weekly hours):
- 4 regular days: 8:36 (8.6 hours) = full day
- 1 short day: 7:36 (7.6 hours) = full day

Private sector - 6 day week (42 weekly hours):
- Sunday-Thursday: 8 hours = full day
- Friday: 7 hours = full day

Night shift: 7 hours = full day

Weekday overtime:
- first 2 overtime hours: 125%
- from the third hour on: 150%

Shabbat/holiday:
- base premium: 150%
- first 2 overtime hours: 175%
- from the third hour on: 200%
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from decimal import Decimal
from typing import Any, Dict, Mapping

from core.constants import ShiftType, WorkWeekType, SHABBAT_ENTRY_HOUR_DEFAULT


@dataclass(frozen=True)
class WorkRulesConfig:
    """Statutory thresholds and multipliers for one computation. Hours are decimal."""

    work_week_type: WorkWeekType = WorkWeekType.FIVE_DAYS

    # 5 day week
    daily_standard_hours_5_days: float = 8.6    # 8:36
    daily_short_day_hours_5_days: float = 7.6   # 7:36

    # 6 day week
    daily_standard_hours_6_days: float = 8
    daily_friday_hours_6_days: float = 7

    night_shift_hours: float = 7

    weekly_standard_hours: float = 42

    # Weekday overtime
    overtime_first_rate: float = 1.25
    overtime_second_rate: float = 1.5
    overtime_first_hours: float = 2

    # Shabbat/holiday
    shabbat_holiday_rate: float = 1.5
    shabbat_overtime_first_rate: float = 1.75
    shabbat_overtime_second_rate: float = 2.0

    max_daily_hours: float = 12

    shabbat_entry_hour: int = SHABBAT_ENTRY_HOUR_DEFAULT

    @property
    def is_five_day_week(self) -> bool:
        return self.work_week_type == WorkWeekType.FIVE_DAYS

    def with_overrides(self, **overrides: Any) -> WorkRulesConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> WorkRulesConfig:
        """
        Build rules from a mapping of field names, ignoring unknown keys and
        None values (which keep their defaults). NUMERIC database values
        arrive as Decimal and are stored as float.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {
            key: value for key, value in values.items()
            if key in known and value is not None
        }
        for key, value in kwargs.items():
            if isinstance(value, Decimal):
                kwargs[key] = float(value)
        if "work_week_type" in kwargs:
            kwargs["work_week_type"] = WorkWeekType(kwargs["work_week_type"])
        return cls(**kwargs)


DEFAULT_WORK_RULES = WorkRulesConfig()


def get_daily_standard_hours(
    shift_type: ShiftType,
    rules: WorkRulesConfig = DEFAULT_WORK_RULES
) -> float:
    """Return the number of regular (100%) hours for a day of the given shift type."""
    if shift_type == ShiftType.NIGHT:
        return rules.night_shift_hours

    if shift_type == ShiftType.SHORT_DAY:
        if rules.is_five_day_week:
            return rules.daily_short_day_hours_5_days
        return rules.daily_standard_hours_6_days

    if shift_type == ShiftType.FRIDAY:
        if rules.is_five_day_week:
            return rules.daily_standard_hours_5_days
        return rules.daily_friday_hours_6_days

    if shift_type in (ShiftType.SHABBAT, ShiftType.HOLIDAY):
        # Every Shabbat/holiday hour is overtime once the weekly quota is met
        return 0

    if rules.is_five_day_week:
        return rules.daily_standard_hours_5_days
    return rules.daily_standard_hours_6_days
