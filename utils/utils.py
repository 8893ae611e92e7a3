"""
Utility functions for the shift payroll engine.
Formatting of minutes and agorot for display, currency conversion and
shift type labels. These only format the engine's integer results.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Tuple

from core.constants import ShiftType
from core.time_utils import MINUTES_PER_HOUR, minutes_to_decimal_hours, round_half_away_from_zero

AGOROT_PER_SHEKEL = 100

# Upper bound for a single monetary amount entered by an administrator (shekels)
MAX_MONETARY_AMOUNT = 100000

SHIFT_TYPE_LABELS = {
    ShiftType.REGULAR: "יום רגיל",
    ShiftType.SHORT_DAY: "יום מקוצר",
    ShiftType.NIGHT: "משמרת לילה",
    ShiftType.FRIDAY: "יום שישי",
    ShiftType.SHABBAT: "שבת",
    ShiftType.HOLIDAY: "חג",
}


def format_minutes(minutes: int) -> str:
    """Format minutes as H:MM (516 -> '8:36'). Hours are not wrapped at 24."""
    hours, mins = divmod(minutes, MINUTES_PER_HOUR)
    return f"{hours}:{mins:02d}"


def format_decimal_hours(minutes: int) -> str:
    """Format minutes as decimal hours with two places (516 -> '8.60')."""
    return f"{minutes_to_decimal_hours(minutes):.2f}"


def shekels_to_agorot(shekels: float | Decimal) -> int:
    """Convert shekels to agorot for storage (0.1 + 0.2 -> 30)."""
    return round_half_away_from_zero(shekels * AGOROT_PER_SHEKEL)


def agorot_to_shekels(agorot: int) -> Decimal:
    """Convert agorot to shekels for display, exactly."""
    return Decimal(agorot) / AGOROT_PER_SHEKEL


def format_agorot(agorot: int) -> str:
    """Format agorot as a shekel amount (43000 -> '₪430.00')."""
    return f"₪{agorot_to_shekels(agorot):.2f}"


def format_currency(value: float | int | Decimal | None) -> str:
    """Format number as currency with thousand separators (e.g., 11403.00 -> 11,403.00)."""
    if value is None:
        value = 0
    return f"{Decimal(value):,.2f}"


def get_shift_type_label(shift_type: ShiftType) -> str:
    """Hebrew display label for a shift type."""
    return SHIFT_TYPE_LABELS[ShiftType(shift_type)]


def validate_monetary_amount(
    amount: float,
    max_amount: float = MAX_MONETARY_AMOUNT,
    min_amount: float = 0
) -> Tuple[bool, Optional[int], Optional[str]]:
    """
    Validate a shekel amount entered by a user.

    Returns:
        (True, agorot, None) when valid, (False, None, error message) otherwise
    """
    if not isinstance(amount, (int, float, Decimal)) or isinstance(amount, bool):
        return False, None, "סכום לא תקין"
    if not Decimal(amount).is_finite():
        return False, None, "סכום לא תקין"
    if amount < min_amount:
        return False, None, f'הסכום חייב להיות לפחות {min_amount} ש"ח'
    if amount > max_amount:
        return False, None, f'הסכום לא יכול לעלות על {max_amount} ש"ח'
    return True, shekels_to_agorot(amount), None
