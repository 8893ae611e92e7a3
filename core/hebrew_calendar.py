"""
Israeli statutory rest days and holiday eves from the Hebrew calendar.
Supplies the is_holiday / is_short_day flags used by shift classification.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from typing import Dict, Optional, Tuple

from convertdate import hebrew

logger = logging.getLogger(__name__)

# Hebrew month numbers as used by convertdate (Nisan = 1)
NISAN = 1
IYAR = 2
SIVAN = 3
TISHREI = 7

# Hebrew year N starts in the autumn of Gregorian year N - 3761
HEBREW_YEAR_OFFSET = 3760

# (month, day, name) of rest days with a fixed Hebrew date
REST_DAYS: Tuple[Tuple[int, int, str], ...] = (
    (TISHREI, 1, "ראש השנה"),
    (TISHREI, 2, "ראש השנה"),
    (TISHREI, 10, "יום כיפור"),
    (TISHREI, 15, "סוכות"),
    (TISHREI, 22, "שמיני עצרת"),
    (NISAN, 15, "פסח"),
    (NISAN, 21, "שביעי של פסח"),
    (SIVAN, 6, "שבועות"),
)

INDEPENDENCE_DAY_NAME = "יום העצמאות"

# Python weekday() indices
MONDAY = 0
FRIDAY = 4
SATURDAY = 5


@dataclass(frozen=True)
class DayInfo:
    """Calendar facts about one day that affect payroll."""

    is_holiday: bool = False
    is_rest_day: bool = False
    is_short_day: bool = False
    name: Optional[str] = None


def _to_gregorian(h_year: int, h_month: int, h_day: int) -> date:
    return date(*hebrew.to_gregorian(h_year, h_month, h_day))


def _independence_day(h_year: int) -> date:
    """
    Yom HaAtzmaut, 5 Iyar, moved so it never touches Shabbat:
    Friday or Saturday -> the preceding Thursday, Monday -> Tuesday.
    """
    day = _to_gregorian(h_year, IYAR, 5)
    weekday = day.weekday()
    if weekday == FRIDAY:
        return day - timedelta(days=1)
    if weekday == SATURDAY:
        return day - timedelta(days=2)
    if weekday == MONDAY:
        return day + timedelta(days=1)
    return day


@lru_cache(maxsize=32)
def holidays_for_year(year: int) -> Dict[date, str]:
    """
    Return {gregorian date: holiday name} for every statutory rest day
    falling in the given Gregorian year.
    """
    result: Dict[date, str] = {}

    # Spring holidays come from Hebrew year year+3760, autumn ones from year+3761
    for h_year in (year + HEBREW_YEAR_OFFSET, year + HEBREW_YEAR_OFFSET + 1):
        for h_month, h_day, name in REST_DAYS:
            day = _to_gregorian(h_year, h_month, h_day)
            if day.year == year:
                result[day] = name

        independence_day = _independence_day(h_year)
        if independence_day.year == year:
            result[independence_day] = INDEPENDENCE_DAY_NAME

    logger.debug(f"Loaded {len(result)} rest days for {year}")
    return result


def _holiday_name(day: date) -> Optional[str]:
    return holidays_for_year(day.year).get(day)


def get_day_info(day: date) -> DayInfo:
    """
    Calendar information for a day.

    The eve of a rest day is a short day, unless it is itself a rest day
    (the first day of Rosh Hashana is not a short day for the second).
    Independence Day eve is Memorial Day, a regular working day.
    """
    name = _holiday_name(day)
    if name:
        return DayInfo(is_holiday=True, is_rest_day=True, name=name)

    tomorrow_name = _holiday_name(day + timedelta(days=1))
    if tomorrow_name and tomorrow_name != INDEPENDENCE_DAY_NAME:
        return DayInfo(is_short_day=True, name=f"ערב {tomorrow_name}")

    return DayInfo()


def is_holiday(day: date) -> bool:
    """Check if a day is a statutory rest day."""
    return get_day_info(day).is_holiday


def is_short_day(day: date) -> bool:
    """Check if a day is a holiday eve (short working day)."""
    return get_day_info(day).is_short_day
