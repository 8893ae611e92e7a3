"""
Payroll aggregation for the shift payroll engine.
Prices the overtime buckets of a shift, adds bonuses, and reduces shift
results into period summaries and weekly payroll with weekly overtime.

All amounts are integers in agorot. Every bucket and every bonus is rounded
on its own, so itemized lines always add up to the totals shown.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, fields
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from core.constants import BonusType, ShiftType
from core.overtime import (
    OvertimeBreakdown,
    calculate_daily_overtime_breakdown,
    calculate_shift_duration_minutes,
    calculate_weekly_overtime_minutes,
    determine_shift_type,
)
from core.time_utils import (
    MINUTES_PER_HOUR,
    decimal_hours_to_minutes,
    round_half_away_from_zero,
    to_utc_datetime,
)
from core.work_rules import WorkRulesConfig, DEFAULT_WORK_RULES

logger = logging.getLogger(__name__)


# =============================================================================
# Data Types
# =============================================================================

@dataclass(frozen=True)
class BonusInfo:
    """A bonus entitlement. Amounts are in agorot."""

    id: str
    bonus_type: BonusType
    amount_per_hour: Optional[int] = None    # HOURLY only
    amount_fixed: Optional[int] = None       # ONE_TIME only
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    description: Optional[str] = None

    def is_active_at(self, moment: datetime) -> bool:
        """
        Active iff both bounds exist and valid_from <= moment <= valid_to.
        Naive and aware values compare as instants, naive taken as local time.
        """
        if self.valid_from is None or self.valid_to is None:
            return False
        return (
            to_utc_datetime(self.valid_from)
            <= to_utc_datetime(moment)
            <= to_utc_datetime(self.valid_to)
        )


@dataclass(frozen=True)
class ShiftPayrollResult:
    """Itemized pay for one shift. Amounts are in agorot."""

    breakdown: OvertimeBreakdown
    shift_type: ShiftType

    # Weekday pay
    regular_pay: int                # 100%
    overtime_125_pay: int           # 125%
    overtime_150_pay: int           # 150%

    # Shabbat/holiday pay
    shabbat_regular_pay: int        # 150%
    shabbat_overtime_175_pay: int   # 175%
    shabbat_overtime_200_pay: int   # 200%

    base_pay: int

    hourly_bonus_pay: int
    one_time_bonus_pay: int
    total_bonus_pay: int

    total_pay: int

    hourly_rate: int
    effective_hourly_rate: int      # including hourly bonuses

    exceeds_max_daily_hours: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["shift_type"] = self.shift_type.value
        return data


@dataclass(frozen=True)
class PeriodPayrollSummary:
    """Totals over a list of shift results (for reports)."""

    total_shifts: int = 0
    total_minutes: int = 0

    regular_minutes: int = 0
    overtime_125_minutes: int = 0
    overtime_150_minutes: int = 0
    shabbat_minutes: int = 0

    base_pay: int = 0
    bonus_pay: int = 0
    total_pay: int = 0


@dataclass(frozen=True)
class WeeklyPayrollResult:
    """A week of daily results plus the weekly overtime premium."""

    daily_payroll: Tuple[ShiftPayrollResult, ...]
    total_daily_pay: int
    total_regular_minutes: int
    weekly_overtime_125_minutes: int
    weekly_overtime_150_minutes: int
    weekly_overtime_pay: int
    total_weekly_pay: int


# =============================================================================
# Bonuses
# =============================================================================

def get_active_bonuses(bonuses: Iterable[BonusInfo], moment: datetime) -> List[BonusInfo]:
    """Filter bonuses active at the given moment. Bonuses missing a bound are never active."""
    return [bonus for bonus in bonuses if bonus.is_active_at(moment)]


def calculate_bonus_pay(bonuses: Iterable[BonusInfo], total_minutes: int) -> Tuple[int, int]:
    """
    Sum bonus pay for a shift.

    Args:
        bonuses: Bonuses already filtered to those active for the shift
        total_minutes: Shift duration in minutes

    Returns:
        (hourly_bonus_pay, one_time_bonus_pay) in agorot
    """
    hourly_bonus_pay = 0
    one_time_bonus_pay = 0

    total_hours = total_minutes / MINUTES_PER_HOUR

    for bonus in bonuses:
        if bonus.bonus_type == BonusType.HOURLY and bonus.amount_per_hour:
            # Per-hour bonus, multiplied by the shift hours and rounded per bonus
            hourly_bonus_pay += round_half_away_from_zero(bonus.amount_per_hour * total_hours)
        elif bonus.bonus_type == BonusType.ONE_TIME and bonus.amount_fixed:
            # Fixed bonus, paid once per shift
            one_time_bonus_pay += bonus.amount_fixed

    return hourly_bonus_pay, one_time_bonus_pay


# =============================================================================
# Shift Payroll
# =============================================================================

def _bucket_pay(minutes: int, rate_per_minute: float, multiplier: float) -> int:
    return round_half_away_from_zero(minutes * rate_per_minute * multiplier)


def calculate_shift_payroll(
    start_time: datetime,
    end_time: datetime,
    hourly_rate: int,
    bonuses: Sequence[BonusInfo] = (),
    rules: WorkRulesConfig = DEFAULT_WORK_RULES,
    shift_type: Optional[ShiftType] = None,
    is_short_day: bool = False,
    is_holiday: bool = False
) -> ShiftPayrollResult:
    """
    Calculate the pay for a shift including overtime and bonuses,
    according to the Israeli Hours of Work and Rest Law.

    Args:
        start_time: Shift start
        end_time: Shift end (open shifts must be rejected before calling)
        hourly_rate: Hourly rate in agorot (work-type rate or base rate)
        bonuses: All of the employee's bonuses; filtering happens here
        rules: Work rules
        shift_type: Explicit shift type; classified from start_time when None
        is_short_day: Calendar flag used by classification
        is_holiday: Calendar flag used by classification

    Returns:
        ShiftPayrollResult. Zero or negative intervals give a zero-pay result.
    """
    if shift_type is None:
        shift_type = determine_shift_type(
            start_time, is_short_day, is_holiday, rules.shabbat_entry_hour
        )

    total_minutes = calculate_shift_duration_minutes(start_time, end_time)

    exceeds_max_daily_hours = total_minutes > decimal_hours_to_minutes(rules.max_daily_hours)
    if exceeds_max_daily_hours:
        logger.warning(
            f"Shift starting {start_time.isoformat()} lasts {total_minutes} minutes, "
            f"more than the {rules.max_daily_hours} hour daily maximum"
        )

    breakdown = calculate_daily_overtime_breakdown(total_minutes, shift_type, rules)

    rate_per_minute = hourly_rate / MINUTES_PER_HOUR

    # Weekday pay
    regular_pay = _bucket_pay(breakdown.regular_minutes, rate_per_minute, 1.0)
    overtime_125_pay = _bucket_pay(
        breakdown.overtime_125_minutes, rate_per_minute, rules.overtime_first_rate
    )
    overtime_150_pay = _bucket_pay(
        breakdown.overtime_150_minutes, rate_per_minute, rules.overtime_second_rate
    )

    # Shabbat/holiday pay
    shabbat_regular_pay = _bucket_pay(
        breakdown.shabbat_regular_minutes, rate_per_minute, rules.shabbat_holiday_rate
    )
    shabbat_overtime_175_pay = _bucket_pay(
        breakdown.shabbat_overtime_175_minutes, rate_per_minute, rules.shabbat_overtime_first_rate
    )
    shabbat_overtime_200_pay = _bucket_pay(
        breakdown.shabbat_overtime_200_minutes, rate_per_minute, rules.shabbat_overtime_second_rate
    )

    base_pay = (
        regular_pay
        + overtime_125_pay
        + overtime_150_pay
        + shabbat_regular_pay
        + shabbat_overtime_175_pay
        + shabbat_overtime_200_pay
    )

    active_bonuses = get_active_bonuses(bonuses, start_time)
    hourly_bonus_pay, one_time_bonus_pay = calculate_bonus_pay(active_bonuses, total_minutes)
    total_bonus_pay = hourly_bonus_pay + one_time_bonus_pay

    hourly_bonus_per_hour = sum(
        bonus.amount_per_hour or 0
        for bonus in active_bonuses
        if bonus.bonus_type == BonusType.HOURLY
    )

    logger.debug(
        f"Shift payroll {shift_type}: minutes={total_minutes} base={base_pay} "
        f"bonuses={total_bonus_pay} active_bonuses={len(active_bonuses)}"
    )

    return ShiftPayrollResult(
        breakdown=breakdown,
        shift_type=shift_type,
        regular_pay=regular_pay,
        overtime_125_pay=overtime_125_pay,
        overtime_150_pay=overtime_150_pay,
        shabbat_regular_pay=shabbat_regular_pay,
        shabbat_overtime_175_pay=shabbat_overtime_175_pay,
        shabbat_overtime_200_pay=shabbat_overtime_200_pay,
        base_pay=base_pay,
        hourly_bonus_pay=hourly_bonus_pay,
        one_time_bonus_pay=one_time_bonus_pay,
        total_bonus_pay=total_bonus_pay,
        total_pay=base_pay + total_bonus_pay,
        hourly_rate=hourly_rate,
        effective_hourly_rate=hourly_rate + hourly_bonus_per_hour,
        exceeds_max_daily_hours=exceeds_max_daily_hours,
    )


# =============================================================================
# Period and Weekly Aggregation
# =============================================================================

def calculate_period_payroll(shifts: Iterable[ShiftPayrollResult]) -> PeriodPayrollSummary:
    """Sum hours and pay over a period's shift results."""
    totals: Dict[str, int] = {f.name: 0 for f in fields(PeriodPayrollSummary)}

    for shift in shifts:
        breakdown = shift.breakdown
        totals["total_shifts"] += 1
        totals["total_minutes"] += breakdown.total_minutes
        totals["regular_minutes"] += breakdown.regular_minutes
        totals["overtime_125_minutes"] += breakdown.overtime_125_minutes
        totals["overtime_150_minutes"] += breakdown.overtime_150_minutes
        totals["shabbat_minutes"] += breakdown.shabbat_minutes
        totals["base_pay"] += shift.base_pay
        totals["bonus_pay"] += shift.total_bonus_pay
        totals["total_pay"] += shift.total_pay

    return PeriodPayrollSummary(**totals)


def calculate_weekly_payroll(
    shifts: Sequence[ShiftPayrollResult],
    hourly_rate: int,
    rules: WorkRulesConfig = DEFAULT_WORK_RULES
) -> WeeklyPayrollResult:
    """
    Weekly overtime, computed after every shift of the week.

    By law overtime is evaluated daily first, then weekly. The weekly pass
    only looks at each day's regular minutes (daily overtime is already
    paid) and adds only the premium above the 100% that the daily results
    already include.

    Args:
        shifts: The week's shift results
        hourly_rate: Hourly rate in agorot
        rules: Work rules

    Returns:
        WeeklyPayrollResult
    """
    total_daily_pay = sum(shift.total_pay for shift in shifts)
    total_regular_minutes = sum(shift.breakdown.regular_minutes for shift in shifts)

    overtime_125_minutes, overtime_150_minutes = calculate_weekly_overtime_minutes(
        total_regular_minutes, rules
    )

    weekly_overtime_pay = 0
    if overtime_125_minutes or overtime_150_minutes:
        # The difference between 125%/150% and the 100% paid daily
        premium = (
            overtime_125_minutes / MINUTES_PER_HOUR * hourly_rate * (rules.overtime_first_rate - 1)
            + overtime_150_minutes / MINUTES_PER_HOUR * hourly_rate * (rules.overtime_second_rate - 1)
        )
        weekly_overtime_pay = round_half_away_from_zero(premium)
        logger.info(
            f"Weekly overtime: regular={total_regular_minutes}min "
            f"ot125={overtime_125_minutes}min ot150={overtime_150_minutes}min "
            f"premium={weekly_overtime_pay}"
        )

    return WeeklyPayrollResult(
        daily_payroll=tuple(shifts),
        total_daily_pay=total_daily_pay,
        total_regular_minutes=total_regular_minutes,
        weekly_overtime_125_minutes=overtime_125_minutes,
        weekly_overtime_150_minutes=overtime_150_minutes,
        weekly_overtime_pay=weekly_overtime_pay,
        total_weekly_pay=total_daily_pay + weekly_overtime_pay,
    )
