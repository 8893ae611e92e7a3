"""
Overtime breakdown engine.
Classifies a shift by its start time and partitions the shift's minutes into
regular, weekday overtime and Shabbat/holiday buckets.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from core.constants import (
    ShiftType,
    FRIDAY, SATURDAY,
    SHABBAT_ENTRY_HOUR_DEFAULT,
    is_night_hour,
    is_shabbat_shift_type,
)
from core.time_utils import (
    calculate_shift_duration_minutes,  # noqa: F401 (re-export)
    decimal_hours_to_minutes,
    round_half_away_from_zero,
    to_local_datetime,
)
from core.work_rules import WorkRulesConfig, DEFAULT_WORK_RULES, get_daily_standard_hours

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OvertimeBreakdown:
    """Minutes per statutory bucket for one shift."""

    # Weekday
    regular_minutes: int = 0                 # 100%
    overtime_125_minutes: int = 0            # 125%
    overtime_150_minutes: int = 0            # 150%

    # Shabbat/holiday
    shabbat_regular_minutes: int = 0         # 150%
    shabbat_overtime_175_minutes: int = 0    # 175%
    shabbat_overtime_200_minutes: int = 0    # 200%

    total_minutes: int = 0

    @property
    def overtime_minutes(self) -> int:
        return self.overtime_125_minutes + self.overtime_150_minutes

    @property
    def shabbat_minutes(self) -> int:
        return (
            self.shabbat_regular_minutes
            + self.shabbat_overtime_175_minutes
            + self.shabbat_overtime_200_minutes
        )

    @property
    def bucket_sum(self) -> int:
        return self.regular_minutes + self.overtime_minutes + self.shabbat_minutes


# =============================================================================
# Shift Type Classification
# =============================================================================

def determine_shift_type(
    start_time: datetime,
    is_short_day: bool = False,
    is_holiday: bool = False,
    shabbat_entry_hour: int = SHABBAT_ENTRY_HOUR_DEFAULT
) -> ShiftType:
    """
    Classify a shift by its start time.

    Precedence (first match wins): holiday > Saturday > Friday (Shabbat after
    the entry hour) > night (22:00-06:00) > short day > regular.
    """
    if is_holiday:
        return ShiftType.HOLIDAY

    local_start = to_local_datetime(start_time)
    weekday = local_start.weekday()
    hour = local_start.hour

    if weekday == SATURDAY:
        return ShiftType.SHABBAT

    if weekday == FRIDAY:
        if hour >= shabbat_entry_hour:
            return ShiftType.SHABBAT
        return ShiftType.FRIDAY

    if is_night_hour(hour):
        return ShiftType.NIGHT

    if is_short_day:
        return ShiftType.SHORT_DAY

    return ShiftType.REGULAR


# =============================================================================
# Daily Breakdown
# =============================================================================

def _split_tiers(overtime_minutes: int, first_tier_minutes: int) -> Tuple[int, int]:
    """Split overtime into (first tier, second tier); tier 2 only after tier 1 is full."""
    if overtime_minutes <= 0:
        return 0, 0
    first = min(overtime_minutes, first_tier_minutes)
    return first, overtime_minutes - first


def calculate_daily_overtime_breakdown(
    total_minutes: int,
    shift_type: ShiftType = ShiftType.REGULAR,
    rules: WorkRulesConfig = DEFAULT_WORK_RULES
) -> OvertimeBreakdown:
    """
    Partition a shift's minutes into regular and overtime buckets at the daily level.

    Args:
        total_minutes: Total minutes worked
        shift_type: Classified shift type
        rules: Work rules

    Returns:
        OvertimeBreakdown. Non-positive durations give all-zero buckets.
    """
    total = round_half_away_from_zero(total_minutes)
    if total <= 0:
        return OvertimeBreakdown()

    first_tier_minutes = decimal_hours_to_minutes(rules.overtime_first_hours)

    if is_shabbat_shift_type(shift_type):
        return _calculate_shabbat_holiday_breakdown(total, first_tier_minutes)

    standard_minutes = decimal_hours_to_minutes(get_daily_standard_hours(shift_type, rules))

    regular = min(total, standard_minutes)
    overtime_125, overtime_150 = _split_tiers(total - standard_minutes, first_tier_minutes)

    logger.debug(
        f"Daily breakdown {shift_type}: total={total} standard={standard_minutes} "
        f"regular={regular} ot125={overtime_125} ot150={overtime_150}"
    )

    return OvertimeBreakdown(
        regular_minutes=regular,
        overtime_125_minutes=overtime_125,
        overtime_150_minutes=overtime_150,
        total_minutes=total,
    )


def _calculate_shabbat_holiday_breakdown(total: int, first_tier_minutes: int) -> OvertimeBreakdown:
    """
    Shabbat/holiday breakdown.

    The employee is assumed to have completed the weekly quota already, so
    every Shabbat/holiday minute is overtime from the first hour:
    - first overtime hours: 175% (100% + 50% Shabbat + 25% overtime)
    - from then on: 200% (100% + 50% Shabbat + 50% overtime)
    """
    overtime_175, overtime_200 = _split_tiers(total, first_tier_minutes)

    logger.debug(f"Shabbat breakdown: total={total} ot175={overtime_175} ot200={overtime_200}")

    return OvertimeBreakdown(
        shabbat_overtime_175_minutes=overtime_175,
        shabbat_overtime_200_minutes=overtime_200,
        total_minutes=total,
    )


# =============================================================================
# Weekly Overtime
# =============================================================================

def calculate_weekly_overtime_minutes(
    weekly_regular_minutes: int,
    rules: WorkRulesConfig = DEFAULT_WORK_RULES
) -> Tuple[int, int]:
    """
    Weekly-level overtime, applied after every day of the week was computed.

    Args:
        weekly_regular_minutes: Regular (non-overtime) minutes worked this week
        rules: Work rules

    Returns:
        (overtime 125% minutes, overtime 150% minutes) beyond the weekly quota
    """
    weekly_standard_minutes = decimal_hours_to_minutes(rules.weekly_standard_hours)
    excess = weekly_regular_minutes - weekly_standard_minutes
    return _split_tiers(excess, decimal_hours_to_minutes(rules.overtime_first_hours))

