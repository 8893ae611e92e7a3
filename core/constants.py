"""
Central constants for the shift payroll engine.
Shift types, bonus types, work week types and the classification thresholds
shared by:
- core/overtime.py
- core/wage_calculator.py
- core/work_rules.py
- utils/utils.py
"""
from enum import Enum
from typing import Set


# =============================================================================
# Shift Types
# =============================================================================

class ShiftType(str, Enum):
    """Day/time classification that selects the statutory threshold branch."""

    REGULAR = "REGULAR"        # יום רגיל
    SHORT_DAY = "SHORT_DAY"    # יום מקוצר (ערב חג)
    NIGHT = "NIGHT"            # משמרת לילה
    FRIDAY = "FRIDAY"          # יום שישי
    SHABBAT = "SHABBAT"        # שבת
    HOLIDAY = "HOLIDAY"        # חג

    def __str__(self):
        return self.value


# Shift types paid on the Sabbath/holiday table (175%/200%)
SHABBAT_SHIFT_TYPES: Set[ShiftType] = {ShiftType.SHABBAT, ShiftType.HOLIDAY}


# =============================================================================
# Bonus Types
# =============================================================================

class BonusType(str, Enum):
    """Bonus entitlement kinds."""

    HOURLY = "HOURLY"          # סכום לשעה, מוכפל במשך המשמרת
    ONE_TIME = "ONE_TIME"      # סכום קבוע, פעם אחת למשמרת

    def __str__(self):
        return self.value


# =============================================================================
# Work Week Types
# =============================================================================

class WorkWeekType(str, Enum):
    """Number of working days per week (selects the daily thresholds)."""

    FIVE_DAYS = "5_DAYS"
    SIX_DAYS = "6_DAYS"

    def __str__(self):
        return self.value


# =============================================================================
# Classification Thresholds
# =============================================================================

# Weekday indices (Python's weekday())
FRIDAY = 4
SATURDAY = 5

# Night window (22:00-06:00) by start hour
NIGHT_HOURS_START = 22
NIGHT_HOURS_END = 6

# Friday shifts starting at/after this hour are Shabbat shifts
SHABBAT_ENTRY_HOUR_DEFAULT = 18


# =============================================================================
# Helper Functions for Shift Type Identification
# =============================================================================

def is_shabbat_shift_type(shift_type: ShiftType) -> bool:
    """Check if shift type is paid on the Sabbath/holiday table."""
    return shift_type in SHABBAT_SHIFT_TYPES


def is_night_hour(hour: int) -> bool:
    """Check if an hour-of-day falls in the night window."""
    return hour >= NIGHT_HOURS_START or hour < NIGHT_HOURS_END
