"""
Time utilities for the shift payroll engine.
Contains time conversion functions, minute/hour rounding and shift duration.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from core.config import config

# =============================================================================
# Constants
# =============================================================================

# Time constants (in minutes)
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR  # 1440

ONE_MINUTE = timedelta(minutes=1)

# Use LOCAL_TZ from config
LOCAL_TZ = config.LOCAL_TZ


# =============================================================================
# Rounding
# =============================================================================

def round_half_away_from_zero(value: float | int) -> int:
    """
    Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3).

    Python's round() is banker's rounding, which would shift itemized
    payroll amounts by one agora on exact halves.
    """
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def decimal_hours_to_minutes(hours: float) -> int:
    """Convert decimal hours to whole minutes: 8.6 -> 516 (8:36)."""
    return round_half_away_from_zero(hours * MINUTES_PER_HOUR)


def minutes_to_decimal_hours(minutes: int) -> float:
    """Convert minutes to decimal hours: 516 -> 8.6."""
    return minutes / MINUTES_PER_HOUR


# =============================================================================
# Date/Time Conversion Functions
# =============================================================================

def to_local_datetime(ts: datetime) -> datetime:
    """
    Return the local wall-clock datetime used for shift classification.

    Aware datetimes are converted to LOCAL_TZ; naive datetimes are already
    local wall-clock time and are returned unchanged.
    """
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(LOCAL_TZ)


def to_utc_datetime(ts: datetime) -> datetime:
    """
    Return ts as an aware UTC datetime, taking naive values as LOCAL_TZ
    wall-clock time. Used wherever instants are subtracted or compared.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=LOCAL_TZ)
    return ts.astimezone(timezone.utc)


def calculate_shift_duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Whole elapsed minutes between start and end, floored; never negative.

    Subtraction happens in UTC: two datetimes sharing a ZoneInfo subtract
    as wall-clock times, which would gain or lose an hour across DST.
    """
    elapsed = to_utc_datetime(end_time) - to_utc_datetime(start_time)
    return max(0, elapsed // ONE_MINUTE)


def parse_hhmm(value: str) -> Tuple[int, int]:
    """Return (hours, minutes) integers from 'HH:MM'."""
    h, m = value.split(":")
    return int(h), int(m)


def span_minutes(start_str: str, end_str: str) -> Tuple[int, int]:
    """Return start/end minutes-from-midnight, handling overnight end < start."""
    sh, sm = parse_hhmm(start_str)
    eh, em = parse_hhmm(end_str)
    start = sh * MINUTES_PER_HOUR + sm
    end = eh * MINUTES_PER_HOUR + em
    if end <= start:
        end += MINUTES_PER_DAY
    return start, end


def shift_datetimes(day: date, start_str: str, end_str: str) -> Tuple[datetime, datetime]:
    """
    Build local start/end datetimes for a shift entered as a date plus
    'HH:MM' times. An end time at or before the start belongs to the next day.
    """
    start_min, end_min = span_minutes(start_str, end_str)
    midnight = datetime.combine(day, time(0, 0), tzinfo=LOCAL_TZ)
    return (
        midnight + timedelta(minutes=start_min),
        midnight + timedelta(minutes=end_min),
    )


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format (handles >24h wrapping)."""
    day_minutes = minutes % MINUTES_PER_DAY
    h = day_minutes // MINUTES_PER_HOUR
    m = day_minutes % MINUTES_PER_HOUR
    return f"{h:02d}:{m:02d}"


def week_start(day: date) -> date:
    """Return the Sunday that opens the (Israeli) work week containing day."""
    # weekday(): Monday=0 ... Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)
