"""
Calculate the pay of a single shift from the command line.

Examples:
    python scripts/shift_pay.py --date 2025-03-02 --start 08:00 --end 18:36 --rate 50
    python scripts/shift_pay.py --date 2025-03-08 --start 07:00 --end 20:00 --rate 50 --bonus-per-hour 5
    python scripts/shift_pay.py --shift-id 42
"""
import argparse
import os
import sys
from datetime import date, datetime, timedelta

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.config import config
from core.constants import BonusType, ShiftType, WorkWeekType
from core.hebrew_calendar import get_day_info
from core.time_utils import shift_datetimes
from core.wage_calculator import BonusInfo, calculate_shift_payroll
from core.work_rules import DEFAULT_WORK_RULES
from utils.error_handler import PayrollError, configure_logging, log_error, validate_shift_input
from utils.utils import (
    format_agorot,
    format_decimal_hours,
    format_minutes,
    get_shift_type_label,
    shekels_to_agorot,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Calculate shift pay (Israeli overtime rules)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {config.VERSION}")
    parser.add_argument("--shift-id", help="Load the shift from the database")
    parser.add_argument("--date", type=date.fromisoformat, help="Shift date (YYYY-MM-DD)")
    parser.add_argument("--start", help="Start time HH:MM")
    parser.add_argument("--end", help="End time HH:MM (earlier than start = next day)")
    parser.add_argument("--rate", type=float, help="Hourly rate in shekels")
    parser.add_argument("--shift-type", choices=[t.value for t in ShiftType],
                        help="Override the shift type classification")
    parser.add_argument("--holiday", action="store_true", help="Treat the day as a holiday")
    parser.add_argument("--short-day", action="store_true", help="Treat the day as a short day")
    parser.add_argument("--bonus-per-hour", type=float, default=0,
                        help="Hourly bonus in shekels, active for this shift")
    parser.add_argument("--six-day-week", action="store_true", help="Use 6-day week thresholds")
    args = parser.parse_args(argv)

    if not args.shift_id and not all([args.date, args.start, args.end, args.rate is not None]):
        parser.error("either --shift-id or all of --date, --start, --end, --rate are required")
    return args


def print_stored_shift(shift_id):
    from core.database import close_pool, get_conn
    from core.logic import calculate_shift_pay_details

    try:
        with get_conn() as conn:
            details = calculate_shift_pay_details(conn, shift_id)
    finally:
        close_pool()

    if details is None:
        print(f"Shift {shift_id} not found")
        return 1

    for key, value in details.items():
        print(f"{key:>20}: {value}")
    return 0


def print_manual_shift(args):
    start_time, end_time = shift_datetimes(args.date, args.start, args.end)
    hourly_rate = shekels_to_agorot(args.rate)
    validate_shift_input(start_time, end_time, hourly_rate)

    day_info = get_day_info(args.date)
    rules = DEFAULT_WORK_RULES
    if args.six_day_week:
        rules = rules.with_overrides(work_week_type=WorkWeekType.SIX_DAYS)

    bonuses = []
    if args.bonus_per_hour:
        bonuses.append(BonusInfo(
            id="cli",
            bonus_type=BonusType.HOURLY,
            amount_per_hour=shekels_to_agorot(args.bonus_per_hour),
            valid_from=start_time,
            valid_to=start_time + timedelta(days=1),
        ))

    payroll = calculate_shift_payroll(
        start_time=start_time,
        end_time=end_time,
        hourly_rate=hourly_rate,
        bonuses=bonuses,
        rules=rules,
        shift_type=ShiftType(args.shift_type) if args.shift_type else None,
        is_short_day=args.short_day or day_info.is_short_day,
        is_holiday=args.holiday or day_info.is_holiday,
    )
    b = payroll.breakdown

    print(f"--- {start_time:%d/%m/%Y %H:%M} - {end_time:%d/%m/%Y %H:%M} ---")
    if day_info.name:
        print(f"Calendar: {day_info.name}")
    print(f"Shift type: {get_shift_type_label(payroll.shift_type)} ({payroll.shift_type})")
    print(f"Total: {format_minutes(b.total_minutes)} ({format_decimal_hours(b.total_minutes)}h)")
    rows = [
        ("100%", b.regular_minutes, payroll.regular_pay),
        ("125%", b.overtime_125_minutes, payroll.overtime_125_pay),
        ("150%", b.overtime_150_minutes, payroll.overtime_150_pay),
        ("150% shabbat", b.shabbat_regular_minutes, payroll.shabbat_regular_pay),
        ("175%", b.shabbat_overtime_175_minutes, payroll.shabbat_overtime_175_pay),
        ("200%", b.shabbat_overtime_200_minutes, payroll.shabbat_overtime_200_pay),
    ]
    for label, minutes, pay in rows:
        if minutes:
            print(f"{label:>14}: {format_minutes(minutes):>6}  {format_agorot(pay):>12}")
    print(f"{'Base pay':>14}: {format_agorot(payroll.base_pay):>20}")
    print(f"{'Bonuses':>14}: {format_agorot(payroll.total_bonus_pay):>20}")
    print(f"{'Total':>14}: {format_agorot(payroll.total_pay):>20}")
    if payroll.exceeds_max_daily_hours:
        print(f"WARNING: shift is longer than {rules.max_daily_hours} hours")
    return 0


def main(argv=None):
    configure_logging("DEBUG" if config.is_development() else config.LOG_LEVEL, config.LOG_FILE or None)
    args = parse_args(argv)
    try:
        if args.shift_id:
            return print_stored_shift(args.shift_id)
        return print_manual_shift(args)
    except PayrollError as e:
        error_id = log_error(e, context={'started_at': datetime.now().isoformat()})
        print(f"Error ({error_id}): {e.user_message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
