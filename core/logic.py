"""
Core business logic for shift payroll.
Public API functions that load a shift's data through the providers, run the
engine and shape the results for display.

The engine itself lives in:
- core.overtime: shift classification and overtime breakdown
- core.wage_calculator: pay, bonuses, period and weekly aggregation
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

from core.hebrew_calendar import get_day_info
from core.providers import (
    get_employee_bonuses,
    get_employee_shifts,
    get_hourly_rate,
    get_shift,
    get_work_rules,
)
from core.time_utils import LOCAL_TZ, to_local_datetime, week_start
from core.wage_calculator import (
    PeriodPayrollSummary,
    ShiftPayrollResult,
    calculate_period_payroll,
    calculate_shift_payroll,
    calculate_weekly_payroll,
)
from core.work_rules import WorkRulesConfig
from utils.error_handler import validate_shift_input
from utils.utils import format_agorot, format_minutes, get_shift_type_label

logger = logging.getLogger(__name__)

DISPLAY_DATETIME_FORMAT = "%d/%m/%Y %H:%M"


def _format_datetime(ts: datetime) -> str:
    return to_local_datetime(ts).strftime(DISPLAY_DATETIME_FORMAT)


def _calendar_flags(start_time: datetime) -> Dict[str, bool]:
    info = get_day_info(to_local_datetime(start_time).date())
    return {"is_holiday": info.is_holiday, "is_short_day": info.is_short_day}


def format_shift_payroll(shift: Dict[str, Any], payroll: ShiftPayrollResult) -> Dict[str, Any]:
    """
    Display-ready shift payroll: formatted times and amounts alongside the
    raw integer values (minutes, agorot).
    """
    breakdown = payroll.breakdown
    return {
        "shift_id": shift["id"],
        "employee_name": shift.get("employee_name"),
        "start_time": _format_datetime(shift["start_time"]),
        "end_time": _format_datetime(shift["end_time"]),
        "work_type_name": shift.get("work_type_name"),
        "shift_type": payroll.shift_type.value,
        "shift_type_label": get_shift_type_label(payroll.shift_type),

        "total_time": format_minutes(breakdown.total_minutes),
        "regular_time": format_minutes(breakdown.regular_minutes),
        "overtime_125_time": format_minutes(breakdown.overtime_125_minutes),
        "overtime_150_time": format_minutes(breakdown.overtime_150_minutes),
        "shabbat_time": format_minutes(breakdown.shabbat_minutes),

        "hourly_rate": format_agorot(payroll.hourly_rate),
        "regular_pay": format_agorot(payroll.regular_pay),
        "overtime_125_pay": format_agorot(payroll.overtime_125_pay),
        "overtime_150_pay": format_agorot(payroll.overtime_150_pay),
        "shabbat_pay": format_agorot(
            payroll.shabbat_regular_pay
            + payroll.shabbat_overtime_175_pay
            + payroll.shabbat_overtime_200_pay
        ),
        "base_pay": format_agorot(payroll.base_pay),
        "bonus_pay": format_agorot(payroll.total_bonus_pay),
        "total_pay": format_agorot(payroll.total_pay),

        "raw_total_pay": payroll.total_pay,
        "raw_base_pay": payroll.base_pay,
        "raw_bonus_pay": payroll.total_bonus_pay,
    }


def calculate_shift_pay_details(conn, shift_id: Any) -> Optional[Dict[str, Any]]:
    """
    Calculate the pay details of a single stored shift.

    Returns:
        Display dict (see format_shift_payroll), or None if the shift does not exist

    Raises:
        ValidationError: the shift is still open or the stored rate is invalid
    """
    shift = get_shift(conn, shift_id)
    if not shift:
        logger.info(f"Shift {shift_id} not found")
        return None

    hourly_rate = get_hourly_rate(conn, shift["employee_id"], shift["work_type_id"])
    validate_shift_input(shift["start_time"], shift["end_time"], hourly_rate)

    payroll = calculate_shift_payroll(
        start_time=shift["start_time"],
        end_time=shift["end_time"],
        hourly_rate=hourly_rate,
        bonuses=get_employee_bonuses(conn, shift["employee_id"]),
        rules=get_work_rules(conn),
        **_calendar_flags(shift["start_time"]),
    )
    return format_shift_payroll(shift, payroll)


def _calculate_employee_shifts(
    conn,
    employee_id: Any,
    rows: List[Dict[str, Any]],
    rules: WorkRulesConfig
) -> Tuple[List[ShiftPayrollResult], List[Dict[str, Any]], int]:
    """
    Compute each closed shift at its work-type rate.

    Returns:
        (payroll results, display dicts, number of open shifts skipped)
    """
    bonuses = get_employee_bonuses(conn, employee_id)

    rates: Dict[Any, int] = {}
    results: List[ShiftPayrollResult] = []
    display: List[Dict[str, Any]] = []
    skipped = 0

    for shift in rows:
        if shift["end_time"] is None:
            skipped += 1
            logger.info(f"Skipping open shift {shift['id']}")
            continue

        work_type_id = shift["work_type_id"]
        if work_type_id not in rates:
            rates[work_type_id] = get_hourly_rate(conn, employee_id, work_type_id)
        validate_shift_input(shift["start_time"], shift["end_time"], rates[work_type_id])

        payroll = calculate_shift_payroll(
            start_time=shift["start_time"],
            end_time=shift["end_time"],
            hourly_rate=rates[work_type_id],
            bonuses=bonuses,
            rules=rules,
            **_calendar_flags(shift["start_time"]),
        )
        results.append(payroll)
        display.append(format_shift_payroll(shift, payroll))

    return results, display, skipped


def format_period_summary(summary: PeriodPayrollSummary) -> Dict[str, Any]:
    """Display-ready period totals."""
    return {
        "total_shifts": summary.total_shifts,
        "total_time": format_minutes(summary.total_minutes),
        "regular_time": format_minutes(summary.regular_minutes),
        "overtime_125_time": format_minutes(summary.overtime_125_minutes),
        "overtime_150_time": format_minutes(summary.overtime_150_minutes),
        "shabbat_time": format_minutes(summary.shabbat_minutes),
        "base_pay": format_agorot(summary.base_pay),
        "bonus_pay": format_agorot(summary.bonus_pay),
        "total_pay": format_agorot(summary.total_pay),
    }


def calculate_period_pay(conn, employee_id: Any, start: datetime, end: datetime) -> Dict[str, Any]:
    """
    Payroll for an employee's closed shifts that started at or after start
    and ended at or before end (e.g. a calendar month). Each shift uses its
    work-type rate. No weekly overtime pass is applied.

    Returns:
        Dict with shifts (display dicts), summary (display totals) and
        totals (PeriodPayrollSummary)
    """
    rows = get_employee_shifts(conn, employee_id, start, end, closed_only=True)
    results, display, _ = _calculate_employee_shifts(
        conn, employee_id, rows, get_work_rules(conn)
    )
    totals = calculate_period_payroll(results)

    logger.info(
        f"Period pay for employee {employee_id} {start.date()} - {end.date()}: "
        f"{totals.total_shifts} shifts, total={totals.total_pay}"
    )

    return {
        "shifts": display,
        "summary": format_period_summary(totals),
        "totals": totals,
    }


def calculate_weekly_pay(conn, employee_id: Any, day: date) -> Dict[str, Any]:
    """
    Payroll for the Sunday-Saturday week containing day: every closed shift
    is computed on its own, then weekly overtime is added on top.

    Open shifts are skipped and counted. Weekly overtime uses the
    employee's base hourly rate.

    Returns:
        Dict with week_start, week_end, weekly (WeeklyPayrollResult),
        summary (PeriodPayrollSummary), shifts (display dicts) and
        skipped_open_shifts
    """
    first_day = week_start(day)
    start = datetime.combine(first_day, time(0, 0), tzinfo=LOCAL_TZ)
    end = start + timedelta(days=7)

    rows = get_employee_shifts(conn, employee_id, start, end)
    rules = get_work_rules(conn)
    base_rate = get_hourly_rate(conn, employee_id)

    results, display, skipped = _calculate_employee_shifts(conn, employee_id, rows, rules)

    return {
        "week_start": first_day,
        "week_end": first_day + timedelta(days=6),
        "weekly": calculate_weekly_payroll(results, base_rate, rules),
        "summary": calculate_period_payroll(results),
        "shifts": display,
        "skipped_open_shifts": skipped,
    }
